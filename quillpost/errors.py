"""
Service errors and user-facing messages.

Every failure in the auth core is one of the ServiceError subclasses below.
The API layer turns them into HTTP responses using ``status_code``.
"""

from enum import Enum
from typing import Union


class BadRequestMessage(str, Enum):
    INVALID_AUTH_TYPE = "Invalid auth type"
    INVALID_AUTH_METHOD = "Invalid auth method"
    NOT_EXPIRED_OTP = "OTP code is not expire"
    INVALID_REGISTER_METHOD = "Register method can't be username"
    INVALID_TOKEN = "The verification token is invalid"
    SOMETHING_WENT_WRONG = "Some thing went wrong, please retry"


class AuthMessage(str, Enum):
    INVALID_DATA = "The entered data is invalid"
    EXPIRED_CODE = "This OTP has been expired"
    AUTHORIZATION_FAILED = "Authorization failed. log in again."
    INCORRECT_CODE = "This code is incorrect"


class NotFoundMessage(str, Enum):
    OTP_CODE = "No otp code for this request has been found"


class ConflictMessage(str, Enum):
    ACCOUNT_INFO = "Your account has already been registered"
    EMAIL_ADDRESS = "Duplicated email address"
    PHONE_NUMBER = "Duplicated phone number"
    USERNAME = "Duplicated username"


class ValidationMessage(str, Enum):
    INVALID_EMAIL = "Invalid email address"
    INVALID_PHONE = "Invalid phone number"
    OTP_LENGTH = "The OTP code should be 5 characters"


class SuccessMessage(str, Enum):
    DEFAULT = "Process ended successfully"
    SEND_OTP = "OTP has been sent successfully"
    LOGIN = "You have logged in to your account successfully"


Message = Union[str, Enum]


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: Message):
        self.message = message.value if isinstance(message, Enum) else str(message)
        super().__init__(self.message)


class BadRequest(ServiceError):
    status_code = 400


class Unauthorized(ServiceError):
    status_code = 401


class Conflict(ServiceError):
    status_code = 409


class UnprocessableEntity(ServiceError):
    status_code = 422


class InternalServerError(ServiceError):
    status_code = 500


# OTP specific failures

class NotExpiredOTP(BadRequest):
    def __init__(self):
        super().__init__(BadRequestMessage.NOT_EXPIRED_OTP)


class OtpNotFound(Unauthorized):
    def __init__(self):
        super().__init__(NotFoundMessage.OTP_CODE)


class OtpExpired(Unauthorized):
    def __init__(self):
        super().__init__(AuthMessage.EXPIRED_CODE)


class IncorrectCode(Unauthorized):
    def __init__(self):
        super().__init__(AuthMessage.INCORRECT_CODE)
