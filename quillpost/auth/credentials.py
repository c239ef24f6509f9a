"""
Identifier validation and user lookup.

An identifier is always qualified by its method, so a lookup touches exactly
one column: username, email or phone.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import phonenumbers
from email_validator import EmailNotValidError, validate_email
from phonenumbers import NumberParseException, PhoneNumberType

from ..db.models import User
from ..errors import (
    BadRequest,
    BadRequestMessage,
    UnprocessableEntity,
    ValidationMessage,
)
from .users import UserStore

logger = logging.getLogger(__name__)

MOBILE_TYPES = (PhoneNumberType.MOBILE, PhoneNumberType.FIXED_LINE_OR_MOBILE)


class AuthMethod(str, Enum):
    USERNAME = "username"
    EMAIL = "email"
    PHONE = "phone"


class AuthType(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


@dataclass(frozen=True)
class Identifier:
    """A validated identifier tagged with the column it refers to."""
    method: AuthMethod
    value: str


def is_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def is_mobile_phone(value: str, region: str) -> bool:
    """Check a number is a valid mobile number of the given region."""
    try:
        number = phonenumbers.parse(value, region)
    except NumberParseException:
        return False

    return (
        phonenumbers.is_valid_number_for_region(number, region)
        and phonenumbers.number_type(number) in MOBILE_TYPES
    )


def to_e164(value: str, region: str) -> str:
    """Format a national or international number as E.164."""
    number = phonenumbers.parse(value, region)
    return phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)


class CredentialResolver:
    """Validates identifiers and finds the user that owns one."""

    def __init__(self, users: UserStore, phone_region: str = "IR"):
        self.users = users
        self.phone_region = phone_region

    def validate(self, method: str, identifier: str) -> Identifier:
        """
        Validate an identifier against its claimed method.

        Phone numbers come back in E.164 form.

        Raises:
            UnprocessableEntity: Malformed email or phone number
            BadRequest: Unknown method
        """
        try:
            method = AuthMethod(method)
        except ValueError:
            raise BadRequest(BadRequestMessage.INVALID_AUTH_METHOD) from None

        if method == AuthMethod.EMAIL and not is_email(identifier):
            raise UnprocessableEntity(ValidationMessage.INVALID_EMAIL)

        if method == AuthMethod.PHONE:
            if not is_mobile_phone(identifier, self.phone_region):
                raise UnprocessableEntity(ValidationMessage.INVALID_PHONE)
            # Stored and looked up in one canonical form
            identifier = to_e164(identifier, self.phone_region)

        return Identifier(method=method, value=identifier)

    async def find_user(self, identifier: Identifier) -> Optional[User]:
        if identifier.method == AuthMethod.EMAIL:
            return await self.users.get_by_email(identifier.value)
        if identifier.method == AuthMethod.PHONE:
            return await self.users.get_by_phone(identifier.value)
        return await self.users.get_by_username(identifier.value)
