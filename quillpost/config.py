"""Configuration module for Quillpost."""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET = "quillpost-secret-key-change-in-production"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class DatabaseConfig:
    """Relational store configuration."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/quillpost.db"))
    echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO", "false"))
    create_tables: bool = field(default_factory=lambda: _env_bool("DATABASE_CREATE_TABLES", "true"))


@dataclass
class TokenConfig:
    """Per-purpose JWT secrets and lifetimes (seconds)."""
    otp_secret: str = field(default_factory=lambda: os.getenv("OTP_TOKEN_SECRET", DEFAULT_SECRET))
    access_secret: str = field(default_factory=lambda: os.getenv("ACCESS_TOKEN_SECRET", DEFAULT_SECRET))
    email_secret: str = field(default_factory=lambda: os.getenv("EMAIL_TOKEN_SECRET", DEFAULT_SECRET))
    phone_secret: str = field(default_factory=lambda: os.getenv("PHONE_TOKEN_SECRET", DEFAULT_SECRET))

    otp_expire_seconds: int = field(default_factory=lambda: int(os.getenv("OTP_TOKEN_EXPIRE_SECONDS", "120")))
    access_expire_seconds: int = field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", str(86400 * 365))))
    change_expire_seconds: int = field(default_factory=lambda: int(os.getenv("CHANGE_TOKEN_EXPIRE_SECONDS", "120")))


@dataclass
class OtpConfig:
    """OTP code settings."""
    expire_seconds: int = field(default_factory=lambda: int(os.getenv("OTP_EXPIRE_SECONDS", "120")))


@dataclass
class CookieConfig:
    """Signed cookie settings."""
    secret: str = field(default_factory=lambda: os.getenv("COOKIE_SECRET", DEFAULT_SECRET))
    max_age: int = field(default_factory=lambda: int(os.getenv("OTP_TOKEN_EXPIRE_SECONDS", "120")))


@dataclass
class SmsConfig:
    """Twilio credentials."""
    account_sid: str = field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID", ""))
    auth_token: str = field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN", ""))
    from_number: str = field(default_factory=lambda: os.getenv("TWILIO_PHONE_NUMBER", ""))


@dataclass
class EmailConfig:
    """SMTP credentials."""
    server: str = field(default_factory=lambda: os.getenv("SMTP_SERVER", ""))
    port: int = field(default_factory=lambda: int(os.getenv("SMTP_PORT", "587")))
    sender: str = field(default_factory=lambda: os.getenv("SMTP_EMAIL", ""))
    password: str = field(default_factory=lambda: os.getenv("SMTP_PASSWORD", ""))


@dataclass
class GoogleConfig:
    """Google OAuth2 client."""
    client_id: str = field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_ID", ""))
    client_secret: str = field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_SECRET", ""))
    server_link: str = field(default_factory=lambda: os.getenv("SERVER_LINK", "http://localhost:8000"))

    @property
    def redirect_uri(self) -> str:
        return self.server_link.rstrip("/") + "/api/v1/auth/google/redirect"


@dataclass
class Config:
    """Main configuration container."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tokens: TokenConfig = field(default_factory=TokenConfig)
    otp: OtpConfig = field(default_factory=OtpConfig)
    cookies: CookieConfig = field(default_factory=CookieConfig)
    sms: SmsConfig = field(default_factory=SmsConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    phone_region: str = field(default_factory=lambda: os.getenv("PHONE_REGION", "IR"))
    dispatch_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("DISPATCH_TIMEOUT_SECONDS", "10")))

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def load_config() -> Config:
    """Load configuration from environment variables."""
    return Config()
