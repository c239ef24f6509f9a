"""
Profile Service - read and update user profiles.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select

from ..db.models import Profile, User
from .base import BaseService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "nickname",
    "bio",
    "profile_image",
    "profile_bg_image",
    "gender",
    "birthday",
    "linkedin_profile",
)


class ProfileService(BaseService):
    """Service for the profile attached to a user."""

    async def get_by_user_id(self, user_id: int) -> Optional[Profile]:
        return await self.session.scalar(select(Profile).where(Profile.user_id == user_id))

    async def get_profile(self, user: User) -> Tuple[User, Optional[Profile]]:
        """Return the user together with their profile, if they have one."""
        return user, await self.get_by_user_id(user.id)

    async def create_profile(
        self,
        user_id: int,
        nickname: str,
        profile_image: Optional[str] = None,
        **fields,
    ) -> Profile:
        """
        Create a profile and link it from the user row.

        Flushes only; the caller commits.
        """
        profile = Profile(user_id=user_id, nickname=nickname, profile_image=profile_image, **fields)
        self.session.add(profile)
        await self.session.flush()

        await self.users.update_fields(user_id, profile_id=profile.id)

        logger.info(f"Created profile {profile.id} for user {user_id}")
        return profile

    async def update_profile(self, user: User, changes: dict) -> Profile:
        """
        Merge non-empty fields into the user's profile.

        A missing profile is created, with the username as nickname when
        none is given.
        """
        values = {
            key: value for key, value in changes.items()
            if key in PROFILE_FIELDS and value not in (None, "")
        }

        profile = await self.get_by_user_id(user.id)

        if profile is None:
            nickname = values.pop("nickname", None) or user.username
            profile = await self.create_profile(user.id, nickname, **values)
        else:
            for key, value in values.items():
                setattr(profile, key, value)

        await self.session.commit()
        return profile
