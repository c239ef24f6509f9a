"""
JWT token codec.

Issues and verifies the four token kinds used by the auth flow. Each purpose
has its own secret and lifetime, so a token minted for one purpose never
verifies as another.
"""

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type

from jose import jwt, JWTError

from ..config import DEFAULT_SECRET, TokenConfig
from ..errors import (
    AuthMessage,
    BadRequest,
    BadRequestMessage,
    ServiceError,
    Unauthorized,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# exp/iat/token_type are added by the codec and stripped on verify
RESERVED_CLAIMS = ("exp", "iat", "token_type")

JWT_PATTERN = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*$")


class TokenPurpose(str, Enum):
    OTP = "otp"
    ACCESS = "access"
    EMAIL = "email"
    PHONE = "phone"


@dataclass
class TokenRule:
    """Signing settings of one purpose."""
    secret: str
    expires_in: int
    claim: str
    error: Type[ServiceError]
    message: Enum


def is_jwt(token: str) -> bool:
    """Check that a string is shaped like a compact JWS."""
    return bool(token) and JWT_PATTERN.match(token) is not None


class TokenCodec:
    """
    Creates and validates purpose-scoped JWTs.

    - otp: {user_id}, 2 minutes, proves a pending login/register
    - access: {user_id}, 1 year, bearer credential for the API
    - email / phone: {email} / {phone}, 2 minutes, scopes a credential change
    """

    def __init__(self, config: Optional[TokenConfig] = None):
        config = config or TokenConfig()
        self._rules = {
            TokenPurpose.OTP: TokenRule(
                secret=config.otp_secret,
                expires_in=config.otp_expire_seconds,
                claim="user_id",
                error=Unauthorized,
                message=AuthMessage.AUTHORIZATION_FAILED,
            ),
            TokenPurpose.ACCESS: TokenRule(
                secret=config.access_secret,
                expires_in=config.access_expire_seconds,
                claim="user_id",
                error=Unauthorized,
                message=AuthMessage.AUTHORIZATION_FAILED,
            ),
            TokenPurpose.EMAIL: TokenRule(
                secret=config.email_secret,
                expires_in=config.change_expire_seconds,
                claim="email",
                error=BadRequest,
                message=BadRequestMessage.INVALID_TOKEN,
            ),
            TokenPurpose.PHONE: TokenRule(
                secret=config.phone_secret,
                expires_in=config.change_expire_seconds,
                claim="phone",
                error=BadRequest,
                message=BadRequestMessage.INVALID_TOKEN,
            ),
        }

        for purpose, rule in self._rules.items():
            if rule.secret == DEFAULT_SECRET:
                logger.warning(
                    f"Using default secret for {purpose.value} tokens. "
                    f"Set {purpose.value.upper()}_TOKEN_SECRET in production!"
                )

    def rule(self, purpose: TokenPurpose) -> TokenRule:
        return self._rules[TokenPurpose(purpose)]

    def issue(
        self,
        purpose: TokenPurpose,
        claims: dict,
        expires_in: Optional[int] = None
    ) -> str:
        """
        Sign claims for a purpose.

        Args:
            purpose: Which token kind to create
            claims: Payload, must contain the purpose's claim key
            expires_in: Custom lifetime in seconds (default: purpose lifetime)

        Returns:
            Encoded JWT string
        """
        rule = self.rule(purpose)
        if rule.claim not in claims:
            raise ValueError(f"{purpose.value} token requires a '{rule.claim}' claim")

        now = int(time.time())
        lifetime = rule.expires_in if expires_in is None else expires_in

        payload = dict(claims)
        payload.update(exp=now + lifetime, iat=now, token_type=TokenPurpose(purpose).value)

        token = jwt.encode(payload, rule.secret, algorithm=ALGORITHM)
        logger.debug(f"Issued {purpose.value} token, expires in {lifetime}s")
        return token

    def verify(self, purpose: TokenPurpose, token: str) -> dict:
        """
        Verify a token and return its claims.

        Raises:
            Unauthorized: otp/access token invalid, expired or malformed
            BadRequest: email/phone token invalid, expired or malformed
        """
        rule = self.rule(purpose)

        try:
            data = jwt.decode(token, rule.secret, algorithms=[ALGORITHM])
        except JWTError as e:
            logger.debug(f"{purpose.value} token verification failed: {e}")
            raise rule.error(rule.message) from e

        if not isinstance(data, dict) or rule.claim not in data:
            raise rule.error(rule.message)

        if data.get("token_type") != TokenPurpose(purpose).value:
            logger.warning(f"Rejected {data.get('token_type')} token presented as {purpose.value}")
            raise rule.error(rule.message)

        return {k: v for k, v in data.items() if k not in RESERVED_CLAIMS}
