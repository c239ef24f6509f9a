"""
Tests for ProfileService.
"""

from datetime import datetime

import pytest


class TestProfileService:
    """Tests for profile read and update."""

    @pytest.mark.service
    async def test_get_profile_without_profile(self, profile_service, sample_user):
        user, profile = await profile_service.get_profile(sample_user)

        assert user.id == sample_user.id
        assert profile is None

    @pytest.mark.service
    async def test_update_creates_profile(self, profile_service, sample_user, session):
        """Test the first update creates the profile with the username as nickname."""
        profile = await profile_service.update_profile(sample_user, {"bio": "Writes about databases"})

        assert profile.nickname == sample_user.username
        assert profile.bio == "Writes about databases"
        await session.refresh(sample_user)
        assert sample_user.profile_id == profile.id

    @pytest.mark.service
    async def test_update_merges_non_empty_fields(self, profile_service, sample_user):
        await profile_service.update_profile(sample_user, {"nickname": "Ada", "bio": "First bio"})

        profile = await profile_service.update_profile(sample_user, {
            "bio": "",
            "gender": "female",
            "birthday": datetime(1990, 12, 10),
        })

        assert profile.nickname == "Ada"
        assert profile.bio == "First bio"
        assert profile.gender == "female"
        assert profile.birthday == datetime(1990, 12, 10)

    @pytest.mark.service
    async def test_unknown_fields_ignored(self, profile_service, sample_user):
        profile = await profile_service.update_profile(sample_user, {"user_id": 999, "nickname": "Ada"})

        assert profile.user_id == sample_user.id

    @pytest.mark.service
    async def test_get_profile_after_update(self, profile_service, sample_user):
        await profile_service.update_profile(sample_user, {"nickname": "Ada"})

        _, profile = await profile_service.get_profile(sample_user)

        assert profile.nickname == "Ada"
        assert profile.to_dict()["user_id"] == sample_user.id
