"""
Authentication module for Quillpost.

Provides purpose-scoped JWTs, OTP storage, identifier validation and the
user repository the auth services build on.
"""

from .tokens import TokenCodec, TokenPurpose, is_jwt
from .otp import OtpStore
from .users import UserStore
from .credentials import AuthMethod, AuthType, CredentialResolver, Identifier

__all__ = [
    "TokenCodec",
    "TokenPurpose",
    "is_jwt",
    "OtpStore",
    "UserStore",
    "AuthMethod",
    "AuthType",
    "CredentialResolver",
    "Identifier",
]
