"""
Persistence layer for Quillpost.

SQLAlchemy 2.0 async models and session management.
"""

from .base import Base
from .models import User, Otp, Profile, utc_now
from .session import Database

__all__ = [
    "Base",
    "Database",
    "User",
    "Otp",
    "Profile",
    "utc_now",
]
