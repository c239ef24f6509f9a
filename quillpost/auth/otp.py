"""
OTP storage.

Each user owns at most one OTP row. A live code cannot be replaced; an
expired one is overwritten in place.
"""

import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Otp, User, utc_now
from ..errors import IncorrectCode, NotExpiredOTP, OtpExpired, OtpNotFound

logger = logging.getLogger(__name__)

CODE_MIN = 10000
CODE_MAX = 99999
DEFAULT_EXPIRE_SECONDS = 120


def generate_code() -> str:
    """Random 5 digit code, uniform over 10000..99999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OtpStore:
    """
    Issues and checks OTP codes.

    The store flushes but never commits; the calling service owns the
    transaction.
    """

    def __init__(self, session: AsyncSession, expire_seconds: int = DEFAULT_EXPIRE_SECONDS):
        self.session = session
        self.expire_seconds = expire_seconds

    async def get(self, user_id: int) -> Optional[Otp]:
        return await self.session.scalar(select(Otp).where(Otp.user_id == user_id))

    async def issue(self, user_id: int, method: str) -> Otp:
        """
        Create or re-issue the user's OTP.

        Args:
            user_id: Owner of the code
            method: Channel the code is meant for (email, phone, username)

        Returns:
            The stored Otp row

        Raises:
            NotExpiredOTP: The current code is still valid
        """
        now = utc_now()
        code = generate_code()
        expires_in = now + timedelta(seconds=self.expire_seconds)

        otp = await self.get(user_id)

        if otp is None:
            otp = Otp(user_id=user_id, code=code, expires_in=expires_in, method=method)
            self.session.add(otp)
            try:
                await self.session.flush()
            except IntegrityError as e:
                # A concurrent request created the row first
                logger.warning(f"Concurrent OTP creation for user {user_id}")
                raise NotExpiredOTP() from e

            await self.session.execute(
                update(User).where(User.id == user_id).values(otp_id=otp.id)
            )
            logger.info(f"Created OTP for user {user_id} via {method}")
            return otp

        if not otp.is_expired(now):
            raise NotExpiredOTP()

        # Only overwrite a row that is still expired at write time
        result = await self.session.execute(
            update(Otp)
            .where(Otp.user_id == user_id, Otp.expires_in <= now)
            .values(code=code, expires_in=expires_in, method=method)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(f"OTP for user {user_id} was re-issued concurrently")
            raise NotExpiredOTP()

        await self.session.refresh(otp)
        logger.info(f"Re-issued OTP for user {user_id} via {method}")
        return otp

    async def verify(self, user_id: int, code: str) -> Otp:
        """
        Check a code against the user's OTP.

        A matching code is not consumed; it stays valid until it expires or
        the next issue overwrites it.

        Raises:
            OtpNotFound: The user never requested a code
            OtpExpired: The code has expired
            IncorrectCode: The code does not match
        """
        otp = await self.get(user_id)

        if otp is None:
            raise OtpNotFound()

        if otp.is_expired():
            raise OtpExpired()

        if not hmac.compare_digest(otp.code.encode(), str(code).encode()):
            logger.warning(f"Incorrect OTP code for user {user_id}")
            raise IncorrectCode()

        return otp
