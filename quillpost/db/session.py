"""
Async engine and session factory.

One AsyncSession per request. Stores never commit; services do.
"""

import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..config import DatabaseConfig
from .base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine and hands out sessions."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: AsyncEngine = self._create_engine(config)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(config: DatabaseConfig) -> AsyncEngine:
        url = make_url(config.url)
        kwargs = {"echo": config.echo}

        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if not url.database or url.database == ":memory:":
                # Every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        return create_async_engine(url, **kwargs)

    async def create_all(self):
        """Create missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def dispose(self):
        await self.engine.dispose()
        logger.info("Database engine disposed")
