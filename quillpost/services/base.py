"""
Base service classes and shared context.

The ServiceContext holds the long-lived dependencies (config, token codec,
dispatchers, OAuth client). Services are created per request around a
database session and the shared context.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import AuthMethod, CredentialResolver, OtpStore, TokenCodec, UserStore
from ..config import Config, load_config
from ..errors import SuccessMessage
from .email_service import EmailService
from .google_oauth import GoogleOAuthClient
from .sms_service import SMSService

logger = logging.getLogger(__name__)


@dataclass
class DevDebugInfo:
    """OTP code and token echoed back outside production."""
    code: str
    token: str

    def to_dict(self) -> dict:
        return {"code": self.code, "token": self.token}


@dataclass
class OtpChallenge:
    """Result of an operation that issued an OTP."""
    message: str
    token: Optional[str] = None
    debug: Optional[DevDebugInfo] = None

    def to_dict(self) -> dict:
        result = {"message": self.message}
        if self.debug:
            result["debug"] = self.debug.to_dict()
        return result


@dataclass
class LoginResult:
    """Result of a completed authentication."""
    access_token: str
    message: str = SuccessMessage.LOGIN.value
    token_type: str = "bearer"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "access_token": self.access_token,
            "token_type": self.token_type,
        }


@dataclass
class ServiceContext:
    """
    Shared context for all services.

    Built once per process; safe to share across concurrent requests since
    none of its members hold per-request state.
    """
    config: Config
    tokens: TokenCodec
    sms: SMSService
    email: EmailService
    google: GoogleOAuthClient

    @classmethod
    def create(cls, config: Optional[Config] = None) -> "ServiceContext":
        """
        Factory method to create a ServiceContext with all dependencies.

        Args:
            config: Optional config (loads from env if not provided)
        """
        cfg = config or load_config()
        timeout = cfg.dispatch_timeout_seconds

        return cls(
            config=cfg,
            tokens=TokenCodec(cfg.tokens),
            sms=SMSService(cfg.sms, region=cfg.phone_region, timeout=timeout),
            email=EmailService(cfg.email, timeout=timeout),
            google=GoogleOAuthClient(cfg.google, timeout=timeout),
        )

    async def close(self):
        await self.google.close()


class BaseService:
    """
    Base class for request-scoped services.

    Each service receives the request's session and the shared context.
    """

    def __init__(self, session: AsyncSession, context: ServiceContext):
        self.session = session
        self.context = context
        self.users = UserStore(session)
        self.otps = OtpStore(session, expire_seconds=context.config.otp.expire_seconds)
        self.credentials = CredentialResolver(self.users, phone_region=context.config.phone_region)

    @property
    def config(self) -> Config:
        return self.context.config

    @property
    def tokens(self) -> TokenCodec:
        return self.context.tokens

    async def dispatch_otp(self, method: str, destination: Optional[str], code: str):
        """
        Deliver a code out-of-band.

        Only runs in production; other environments echo the code in the
        response instead. Failures raise InternalServerError after the OTP
        has already been committed.
        """
        if not self.config.is_production:
            logger.debug(f"Skipping {method} dispatch outside production")
            return

        if not destination:
            logger.warning(f"No destination to dispatch {method} OTP to")
            return

        if method == AuthMethod.PHONE:
            await self.context.sms.send_verification_code(destination, code)
        elif method == AuthMethod.EMAIL:
            await self.context.email.send_verification_code(destination, code)

    def challenge(self, token: str, code: str) -> OtpChallenge:
        """Build the OTP response, attaching debug info outside production."""
        debug = None if self.config.is_production else DevDebugInfo(code=code, token=token)
        return OtpChallenge(message=SuccessMessage.SEND_OTP.value, token=token, debug=debug)
