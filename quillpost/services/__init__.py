"""
Services layer for Quillpost.

Request-scoped services wrap a database session and the shared
ServiceContext; dispatchers and the OAuth client live in the context.
"""

from .base import BaseService, DevDebugInfo, LoginResult, OtpChallenge, ServiceContext
from .auth_service import AuthService
from .account_service import AccountService
from .profile_service import ProfileService
from .sms_service import SMSService
from .email_service import EmailService
from .google_oauth import GoogleOAuthClient, GoogleProfile

__all__ = [
    "BaseService",
    "DevDebugInfo",
    "LoginResult",
    "OtpChallenge",
    "ServiceContext",
    "AuthService",
    "AccountService",
    "ProfileService",
    "SMSService",
    "EmailService",
    "GoogleOAuthClient",
    "GoogleProfile",
]
