"""
Account Service - change a signed-in user's email, phone or username.

Email and phone changes are staged in ``new_email``/``new_phone`` and only
promoted after the OTP sent to the new address is verified.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..auth import AuthMethod, TokenPurpose
from ..db.models import User
from ..errors import (
    AuthMessage,
    BadRequest,
    BadRequestMessage,
    Conflict,
    ConflictMessage,
    SuccessMessage,
)
from .base import BaseService, OtpChallenge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Channel:
    """Column names and messages for one changeable credential."""
    method: AuthMethod
    purpose: TokenPurpose
    staged_field: str
    conflict: ConflictMessage


EMAIL_CHANNEL = Channel(AuthMethod.EMAIL, TokenPurpose.EMAIL, "new_email", ConflictMessage.EMAIL_ADDRESS)
PHONE_CHANNEL = Channel(AuthMethod.PHONE, TokenPurpose.PHONE, "new_phone", ConflictMessage.PHONE_NUMBER)


class AccountService(BaseService):
    """
    Service for credential changes of the current user.

    The current user is always passed in explicitly by the caller.
    """

    async def change_email(self, user: User, email: str) -> OtpChallenge:
        """
        Stage a new email address and send it an OTP.

        Raises:
            Conflict: The address belongs to another user
            BadRequest: A previous OTP is still valid
            UnprocessableEntity: Malformed address
        """
        return await self._change(user, EMAIL_CHANNEL, email)

    async def change_phone(self, user: User, phone: str) -> OtpChallenge:
        """Stage a new phone number and send it an OTP."""
        return await self._change(user, PHONE_CHANNEL, phone)

    async def verify_email(self, user: User, token: Optional[str], code: str) -> str:
        """
        Promote the staged email once its OTP is verified.

        Raises:
            BadRequest: Missing/invalid change token, token or OTP does not
                        match the staged change
            Unauthorized: Missing, expired or incorrect OTP
            Conflict: The address was taken in the meantime
        """
        return await self._verify(user, EMAIL_CHANNEL, token, code)

    async def verify_phone(self, user: User, token: Optional[str], code: str) -> str:
        """Promote the staged phone number once its OTP is verified."""
        return await self._verify(user, PHONE_CHANNEL, token, code)

    async def _change(self, user: User, channel: Channel, value: str) -> OtpChallenge:
        ident = self.credentials.validate(channel.method.value, value)

        owner = await self.credentials.find_user(ident)
        if owner is not None:
            if owner.id != user.id:
                raise Conflict(channel.conflict)
            # Already this user's address
            return OtpChallenge(message=SuccessMessage.DEFAULT.value)

        otp = await self.otps.issue(user.id, channel.method.value)
        await self.users.update_fields(user.id, **{channel.staged_field: ident.value})
        setattr(user, channel.staged_field, ident.value)

        token = self.tokens.issue(channel.purpose, {channel.method.value: ident.value})

        await self.session.commit()
        logger.info(f"User {user.id} staged a {channel.method.value} change")

        await self.dispatch_otp(channel.method.value, ident.value, otp.code)

        return self.challenge(token, otp.code)

    async def _verify(self, user: User, channel: Channel, token: Optional[str], code: str) -> str:
        user_id = user.id

        if not token:
            raise BadRequest(AuthMessage.EXPIRED_CODE)

        value = self.tokens.verify(channel.purpose, token)[channel.method.value]

        staged = await self.users.get_field(user_id, channel.staged_field)
        if value != staged:
            raise BadRequest(BadRequestMessage.SOMETHING_WENT_WRONG)

        otp = await self.otps.verify(user_id, code)
        if otp.method != channel.method:
            raise BadRequest(BadRequestMessage.SOMETHING_WENT_WRONG)

        promote = self.users.promote_email if channel is EMAIL_CHANNEL else self.users.promote_phone

        try:
            promoted = await promote(user_id, value)
            if not promoted:
                raise BadRequest(BadRequestMessage.SOMETHING_WENT_WRONG)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"User {user_id} lost the {channel.method.value} {value} to another account")
            raise Conflict(channel.conflict) from e

        logger.info(f"User {user_id} verified new {channel.method.value}")
        return SuccessMessage.DEFAULT.value

    async def change_username(self, user: User, username: str) -> str:
        """
        Rename the user.

        Raises:
            Conflict: The username belongs to another user
        """
        owner = await self.users.get_by_username(username)
        if owner is not None:
            if owner.id != user.id:
                raise Conflict(ConflictMessage.USERNAME)
            return SuccessMessage.DEFAULT.value

        try:
            await self.users.update_fields(user.id, username=username)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise Conflict(ConflictMessage.USERNAME) from e

        logger.info(f"User {user.id} changed username to {username}")
        return SuccessMessage.DEFAULT.value
