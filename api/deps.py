"""
API dependencies.

Provides dependency injection for the database session and the
request-scoped services.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.config import Config, load_config
from quillpost.db import Database
from quillpost.services import (
    AccountService,
    AuthService,
    ProfileService,
    ServiceContext,
)

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Container for the process-wide dependencies."""
    config: Config
    context: ServiceContext
    database: Database

    @classmethod
    def create(cls, config: Optional[Config] = None) -> "Services":
        cfg = config or load_config()
        return cls(
            config=cfg,
            context=ServiceContext.create(config=cfg),
            database=Database(cfg.database),
        )


# Global services instance (singleton)
_services: Optional[Services] = None


def get_services() -> Services:
    """
    Get or create the services singleton.

    This initializes all services on first call.
    """
    global _services

    if _services is None:
        logger.info("Initializing services...")
        _services = Services.create()
        logger.info("Services initialized successfully")

    return _services


async def close_services():
    """Close and cleanup services."""
    global _services
    if _services:
        await _services.context.close()
        await _services.database.dispose()
        _services = None
        logger.info("Services closed")


# Dependency for getting services
def services_dep() -> Services:
    """FastAPI dependency for services."""
    return get_services()


ServicesDep = Annotated[Services, Depends(services_dep)]


async def get_session(services: ServicesDep) -> AsyncGenerator[AsyncSession, None]:
    """One session per request; uncommitted work is rolled back on close."""
    async with services.database.sessionmaker() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_auth_service(session: SessionDep, services: ServicesDep) -> AuthService:
    return AuthService(session, services.context)


def get_account_service(session: SessionDep, services: ServicesDep) -> AccountService:
    return AccountService(session, services.context)


def get_profile_service(session: SessionDep, services: ServicesDep) -> ProfileService:
    return ProfileService(session, services.context)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
