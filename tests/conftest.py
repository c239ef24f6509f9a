"""
Pytest configuration and shared fixtures.

This module provides common fixtures for testing:
- Token codec
- In-memory database and sessions
- Request-scoped services
- API client backed by a fresh in-memory database
"""

import os
import sys
from datetime import timedelta
from pathlib import Path
from typing import AsyncGenerator, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select, update

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["OTP_TOKEN_SECRET"] = "test_otp_secret_for_testing_only"
os.environ["ACCESS_TOKEN_SECRET"] = "test_access_secret_for_testing_only"
os.environ["EMAIL_TOKEN_SECRET"] = "test_email_secret_for_testing_only"
os.environ["PHONE_TOKEN_SECRET"] = "test_phone_secret_for_testing_only"
os.environ["COOKIE_SECRET"] = "test_cookie_secret_for_testing_only"
os.environ["PHONE_REGION"] = "IR"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["SMTP_SERVER"] = ""
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["SERVER_LINK"] = "http://testserver"

from quillpost.auth import OtpStore, TokenCodec, UserStore
from quillpost.config import Config, load_config
from quillpost.db import Database, Otp, User, utc_now
from quillpost.services import (
    AccountService,
    AuthService,
    ProfileService,
    ServiceContext,
)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "service: service tests against an in-memory database")
    config.addinivalue_line("markers", "api: HTTP tests through the FastAPI test client")


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def test_config():
    """Test configuration values."""
    return {
        "email": "a@b.com",
        "other_email": "writer@quillpost.io",
        "phone": "09121234567",
        "other_phone": "09351234567",
        "phone_e164": "+989121234567",
        "other_phone_e164": "+989351234567",
        "username": "writer",
    }


@pytest.fixture
def config() -> Config:
    return load_config()


@pytest.fixture
def token_codec(config) -> TokenCodec:
    """Create a TokenCodec with the test secrets."""
    return TokenCodec(config.tokens)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def database(config) -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables."""
    db = Database(config.database)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def user_store(session) -> UserStore:
    return UserStore(session)


@pytest.fixture
def otp_store(session) -> OtpStore:
    return OtpStore(session, expire_seconds=120)


async def count_rows(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def count_users(session):
    async def _count() -> int:
        return await count_rows(session, User)
    return _count


@pytest.fixture
def count_otps(session):
    async def _count() -> int:
        return await count_rows(session, Otp)
    return _count


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
async def context(config) -> AsyncGenerator[ServiceContext, None]:
    ctx = ServiceContext.create(config=config)
    yield ctx
    await ctx.close()


@pytest.fixture
async def production_context(config) -> AsyncGenerator[ServiceContext, None]:
    """Context that dispatches codes, with both dispatchers mocked."""
    config.environment = "production"
    ctx = ServiceContext.create(config=config)
    ctx.sms.send_verification_code = AsyncMock(return_value="SM123")
    ctx.email.send_verification_code = AsyncMock()
    yield ctx
    await ctx.close()


@pytest.fixture
def auth_service(session, context) -> AuthService:
    return AuthService(session, context)


@pytest.fixture
def account_service(session, context) -> AccountService:
    return AccountService(session, context)


@pytest.fixture
def profile_service(session, context) -> ProfileService:
    return ProfileService(session, context)


@pytest.fixture
async def sample_user(user_store, session, test_config) -> User:
    """A committed user registered by email."""
    user = await user_store.create_user(email=test_config["email"], verify_email=True)
    await session.commit()
    return user


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_services(monkeypatch):
    """Services backed by a fresh in-memory database."""
    import api.deps
    from api.deps import Services

    services = Services.create(load_config())
    monkeypatch.setattr(api.deps, "_services", services)
    return services


@pytest.fixture
def api_client(api_services) -> Generator[TestClient, None, None]:
    """Create test client for API; the lifespan creates the tables."""
    from api.main import app

    with TestClient(app) as client:
        yield client


def otp_login(client: TestClient, method: str, identifier: str, auth_type: str = "register") -> str:
    """Run the OTP flow through the API and return an access token."""
    response = client.post(
        "/api/v1/auth/user-existence",
        json={"method": method, "type": auth_type, "identifier": identifier},
    )
    assert response.status_code == 200, response.text
    code = response.json()["debug"]["code"]

    response = client.post("/api/v1/auth/check-otp", json={"code": code})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def authenticated_client(api_client, test_config) -> TestClient:
    """Create authenticated test client for a user registered by email."""
    access_token = otp_login(api_client, "email", test_config["email"])
    api_client.headers["Authorization"] = f"Bearer {access_token}"
    return api_client


@pytest.fixture
def login():
    """The OTP login helper, for tests that need more than one user."""
    return otp_login


@pytest.fixture
def expire_otps(api_client, api_services):
    """Move every stored OTP past its expiry, as if the codes timed out."""
    async def _expire():
        async with api_services.database.sessionmaker() as session:
            await session.execute(update(Otp).values(expires_in=utc_now() - timedelta(seconds=1)))
            await session.commit()

    def _run() -> None:
        api_client.portal.call(_expire)

    return _run
