"""
User storage and management.

Async repository over the ``users`` table. Every mutation is a single-row
keyed write; committing is left to the caller.
"""

import logging
import secrets
import time
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import User

logger = logging.getLogger(__name__)


def generate_username() -> str:
    """Placeholder username for accounts created through OTP: m_<epoch-ms>."""
    return f"m_{int(time.time() * 1000)}"


def username_from_email(email: str) -> str:
    """Username for accounts created through Google: <local-part><random>."""
    return email.split("@")[0] + secrets.token_hex(4)


class UserStore:
    """
    SQLAlchemy backed user store.

    Users are looked up by id, username, email or phone; each lookup hits
    exactly one unique column.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self.session.scalar(select(User).where(User.username == username))

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.session.scalar(select(User).where(User.email == email))

    async def get_by_phone(self, phone: str) -> Optional[User]:
        return await self.session.scalar(select(User).where(User.phone == phone))

    async def create_user(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        verify_email: bool = False,
        verify_phone: bool = False,
    ) -> User:
        """
        Create a new user.

        Args:
            username: Username (default: generated m_<epoch-ms>)
            email: Optional email address
            phone: Optional phone number
            verify_email: Mark the email as already verified
            verify_phone: Mark the phone as already verified

        Returns:
            Created User, flushed so its id is set
        """
        user = User(
            username=username or generate_username(),
            email=email,
            phone=phone,
            verify_email=verify_email,
            verify_phone=verify_phone,
        )
        self.session.add(user)
        await self.session.flush()

        logger.info(f"Created user {user.id} ({user.username})")
        return user

    async def get_field(self, user_id: int, column: str):
        """Read one column of a user straight from the database."""
        return await self.session.scalar(
            select(getattr(User, column)).where(User.id == user_id)
        )

    async def update_fields(self, user_id: int, **values) -> None:
        """Update columns of one user by id."""
        await self.session.execute(
            update(User).where(User.id == user_id).values(**values)
        )

    async def promote_email(self, user_id: int, email: str) -> bool:
        """
        Move a staged email into ``email`` and mark it verified.

        Only applies while ``new_email`` still holds the same value.

        Returns:
            True if the row was updated
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id, User.new_email == email)
            .values(email=email, verify_email=True, new_email=None)
        )
        return result.rowcount == 1

    async def promote_phone(self, user_id: int, phone: str) -> bool:
        """Move a staged phone into ``phone`` and mark it verified."""
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id, User.new_phone == phone)
            .values(phone=phone, verify_phone=True, new_phone=None)
        )
        return result.rowcount == 1
