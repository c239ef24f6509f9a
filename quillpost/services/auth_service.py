"""
User authentication service.

Login and registration are two-step: ``user_existence`` issues an OTP and a
short-lived OTP token, ``check_otp`` trades the code for an access token.
Google sign-in skips the OTP step entirely.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError

from ..auth import AuthMethod, AuthType, TokenPurpose
from ..db.models import Otp, User
from ..errors import (
    AuthMessage,
    BadRequest,
    BadRequestMessage,
    Conflict,
    ConflictMessage,
    OtpExpired,
    OtpNotFound,
    Unauthorized,
)
from ..auth.users import username_from_email
from .base import BaseService, LoginResult, OtpChallenge
from .google_oauth import GoogleProfile
from .profile_service import ProfileService

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Service for user authentication.

    Handles:
    - Login / register through an OTP sent by SMS or email
    - OTP verification and access token issuance
    - Access token validation for the route guard
    - Google OAuth sign-in
    """

    async def user_existence(self, method: str, auth_type: str, identifier: str) -> OtpChallenge:
        """
        Start a login or registration.

        Args:
            method: username, email or phone
            auth_type: login or register
            identifier: The username, email address or phone number

        Returns:
            OtpChallenge carrying the OTP token for the cookie

        Raises:
            BadRequest: Unknown auth type or method, username registration,
                        a still-valid OTP
            Unauthorized: Login for an unknown identifier
            Conflict: Registration of an identifier already in use
            UnprocessableEntity: Malformed email or phone
        """
        try:
            auth_type = AuthType(auth_type)
        except ValueError:
            raise BadRequest(BadRequestMessage.INVALID_AUTH_TYPE) from None

        try:
            if auth_type == AuthType.LOGIN:
                user, otp = await self.login(method, identifier)
            else:
                user, otp = await self.register(method, identifier)

            token = self.tokens.issue(TokenPurpose.OTP, {"user_id": user.id})
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Registration conflict for {identifier}: {e.orig}")
            raise Conflict(ConflictMessage.ACCOUNT_INFO) from e

        channel, destination = self._dispatch_target(user, otp.method)
        await self.dispatch_otp(channel, destination, otp.code)

        return self.challenge(token, otp.code)

    async def login(self, method: str, identifier: str) -> Tuple[User, Otp]:
        """Find an existing user and issue an OTP."""
        ident = self.credentials.validate(method, identifier)

        user = await self.credentials.find_user(ident)
        if user is None:
            logger.info(f"Login attempt for unknown {ident.method.value}")
            raise Unauthorized(AuthMessage.INVALID_DATA)

        otp = await self.otps.issue(user.id, ident.method.value)
        logger.info(f"Login OTP issued for user {user.id}")
        return user, otp

    async def register(self, method: str, identifier: str) -> Tuple[User, Otp]:
        """Create a user bound to an email or phone and issue an OTP."""
        ident = self.credentials.validate(method, identifier)

        if ident.method == AuthMethod.USERNAME:
            raise BadRequest(BadRequestMessage.INVALID_REGISTER_METHOD)

        if await self.credentials.find_user(ident) is not None:
            raise Conflict(ConflictMessage.ACCOUNT_INFO)

        user = await self.users.create_user(**{ident.method.value: ident.value})

        otp = await self.otps.issue(user.id, ident.method.value)
        logger.info(f"Registered user {user.id} via {ident.method.value}")
        return user, otp

    @staticmethod
    def _dispatch_target(user: User, method: str) -> Tuple[str, Optional[str]]:
        """Channel and address an OTP should be delivered to."""
        if method == AuthMethod.PHONE:
            return AuthMethod.PHONE.value, user.phone
        if method == AuthMethod.EMAIL:
            return AuthMethod.EMAIL.value, user.email

        # Username logins go to whichever channel the account has
        if user.email:
            return AuthMethod.EMAIL.value, user.email
        return AuthMethod.PHONE.value, user.phone

    async def check_otp(self, token: Optional[str], code: str) -> LoginResult:
        """
        Verify an OTP code and issue an access token.

        Args:
            token: OTP token read from the caller's cookie
            code: The code the user received

        Raises:
            Unauthorized: Missing/invalid/expired token, missing or expired
                          OTP, incorrect code
        """
        if not token:
            raise Unauthorized(AuthMessage.EXPIRED_CODE)

        user_id = self.tokens.verify(TokenPurpose.OTP, token)["user_id"]

        try:
            otp = await self.otps.verify(user_id, code)
        except (OtpNotFound, OtpExpired) as e:
            raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED) from e

        access_token = self.tokens.issue(TokenPurpose.ACCESS, {"user_id": user_id})

        if otp.method == AuthMethod.EMAIL:
            await self.users.update_fields(user_id, verify_email=True)
        elif otp.method == AuthMethod.PHONE:
            await self.users.update_fields(user_id, verify_phone=True)

        await self.session.commit()

        logger.info(f"User {user_id} logged in via {otp.method} OTP")
        return LoginResult(access_token=access_token)

    async def validate_access_token(self, token: str) -> User:
        """
        Resolve an access token to its user.

        The user is always re-read so deleted accounts lose access at once.

        Raises:
            Unauthorized: Invalid/expired token or unknown user
        """
        user_id = self.tokens.verify(TokenPurpose.ACCESS, token)["user_id"]

        user = await self.users.get_by_id(user_id)
        if user is None:
            logger.warning(f"Access token for missing user {user_id}")
            raise Unauthorized(AuthMessage.AUTHORIZATION_FAILED)

        return user

    async def google_auth(self, profile: GoogleProfile) -> LoginResult:
        """
        Sign in with a Google-asserted identity.

        Existing users (matched by email) get an access token straight away;
        new users are created with a verified email and a profile seeded from
        their Google name.
        """
        user = await self.users.get_by_email(profile.email)

        if user is None:
            try:
                user = await self.users.create_user(
                    username=username_from_email(profile.email),
                    email=profile.email,
                    verify_email=True,
                )
                await ProfileService(self.session, self.context).create_profile(
                    user.id,
                    nickname=profile.full_name or user.username,
                    profile_image=profile.picture,
                )
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                raise Conflict(ConflictMessage.ACCOUNT_INFO) from e

            logger.info(f"Created user {user.id} from Google sign-in")
        else:
            logger.info(f"User {user.id} signed in with Google")

        access_token = self.tokens.issue(TokenPurpose.ACCESS, {"user_id": user.id})
        return LoginResult(access_token=access_token)
