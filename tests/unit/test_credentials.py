"""
Unit tests for identifier validation and lookup.
"""

import pytest

from quillpost.auth import AuthMethod, CredentialResolver, Identifier
from quillpost.auth.credentials import is_email, is_mobile_phone, to_e164
from quillpost.errors import (
    BadRequest,
    BadRequestMessage,
    UnprocessableEntity,
    ValidationMessage,
)


@pytest.fixture
def resolver(user_store) -> CredentialResolver:
    return CredentialResolver(user_store, phone_region="IR")


class TestValidators:

    @pytest.mark.unit
    def test_is_email(self):
        assert is_email("a@b.com")
        assert not is_email("not-an-email")
        assert not is_email("a@")

    @pytest.mark.unit
    def test_is_mobile_phone(self):
        assert is_mobile_phone("09121234567", "IR")
        assert is_mobile_phone("+989121234567", "IR")

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["12345", "abc", "02188776655"])
    def test_rejects_non_mobile(self, value):
        """Test short, non-numeric and landline numbers are rejected."""
        assert not is_mobile_phone(value, "IR")

    @pytest.mark.unit
    def test_to_e164(self):
        assert to_e164("09121234567", "IR") == "+989121234567"


class TestCredentialResolver:
    """Tests for CredentialResolver."""

    @pytest.mark.unit
    def test_validate_email(self, resolver):
        ident = resolver.validate("email", "a@b.com")

        assert ident == Identifier(AuthMethod.EMAIL, "a@b.com")

    @pytest.mark.unit
    @pytest.mark.parametrize("phone", ["09121234567", "+989121234567", "+98 912 123 4567"])
    def test_validate_phone_returns_e164(self, resolver, phone):
        ident = resolver.validate("phone", phone)

        assert ident == Identifier(AuthMethod.PHONE, "+989121234567")

    @pytest.mark.unit
    def test_validate_username_accepts_anything(self, resolver):
        ident = resolver.validate("username", "writer")

        assert ident.method == AuthMethod.USERNAME

    @pytest.mark.unit
    def test_validate_unknown_method(self, resolver):
        with pytest.raises(BadRequest) as exc_info:
            resolver.validate("fax", "123")

        assert exc_info.value.message == BadRequestMessage.INVALID_AUTH_METHOD.value

    @pytest.mark.unit
    def test_validate_bad_email(self, resolver):
        with pytest.raises(UnprocessableEntity) as exc_info:
            resolver.validate("email", "nope")

        assert exc_info.value.message == ValidationMessage.INVALID_EMAIL.value

    @pytest.mark.unit
    def test_validate_bad_phone(self, resolver):
        with pytest.raises(UnprocessableEntity) as exc_info:
            resolver.validate("phone", "12345")

        assert exc_info.value.message == ValidationMessage.INVALID_PHONE.value

    @pytest.mark.unit
    async def test_find_user_by_method(self, resolver, user_store, session):
        """Test each method looks at its own column only."""
        user = await user_store.create_user(username="a@b.com", phone="09121234567")
        other = await user_store.create_user(email="a@b.com")
        await session.commit()

        assert (await resolver.find_user(Identifier(AuthMethod.USERNAME, "a@b.com"))).id == user.id
        assert (await resolver.find_user(Identifier(AuthMethod.EMAIL, "a@b.com"))).id == other.id
        assert (await resolver.find_user(Identifier(AuthMethod.PHONE, "09121234567"))).id == user.id
        assert await resolver.find_user(Identifier(AuthMethod.PHONE, "09351234567")) is None
