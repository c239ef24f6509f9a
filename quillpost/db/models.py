"""
ORM models.

Timestamps are stored as naive UTC datetimes so comparisons behave the same
on SQLite and server databases.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def utc_now() -> datetime:
    """Naive UTC now."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Account identity record."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)

    # Pending credential changes, promoted after OTP verification
    new_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    new_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    verify_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verify_phone: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Reserved, the OTP flow never sets it
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    otp_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    profile_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
            "new_email": self.new_email,
            "new_phone": self.new_phone,
            "verify_email": self.verify_email,
            "verify_phone": self.verify_phone,
            "otp_id": self.otp_id,
            "profile_id": self.profile_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


class Otp(Base):
    """The single OTP row of a user, overwritten on re-issue."""
    __tablename__ = "otp"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False)
    expires_in: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_in <= (now or utc_now())

    def __repr__(self) -> str:
        return f"<Otp user_id={self.user_id} method={self.method!r} expires_in={self.expires_in}>"


class Profile(Base):
    """Public profile data of a user."""
    __tablename__ = "profile"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    profile_bg_image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    birthday: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    linkedin_profile: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "nickname": self.nickname,
            "bio": self.bio,
            "profile_image": self.profile_image,
            "profile_bg_image": self.profile_bg_image,
            "gender": self.gender,
            "birthday": self.birthday.isoformat() if self.birthday else None,
            "linkedin_profile": self.linkedin_profile,
        }
