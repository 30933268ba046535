"""Async SQLAlchemy storage client with an explicit connect/dispose lifecycle."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from udyam.config.settings import DatabaseConfig
from udyam.errors import PersistenceError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the engine and its bounded connection pool.

    Created once per process, connected on startup and disposed on shutdown.
    Tests inject their own instance pointed at SQLite.
    """

    def __init__(self, config: DatabaseConfig, echo: bool = False) -> None:
        self._config = config
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise PersistenceError("Database is not connected")
        return self._engine

    def _engine_options(self, url: Any) -> dict[str, Any]:
        if make_url(url).get_backend_name() == "sqlite":
            return {}
        return {
            "pool_size": self._config.pool_max_size,
            "max_overflow": 0,
            "pool_timeout": self._config.connect_timeout_s,
            "pool_recycle": self._config.idle_timeout_s,
            "pool_pre_ping": True,
            "connect_args": {
                "timeout": self._config.connect_timeout_s,
                "server_settings": {"application_name": "udyam"},
            },
        }

    async def connect(self) -> None:
        if self._engine is not None:
            return
        url = self._config.sqlalchemy_url()
        self._engine = create_async_engine(url, echo=self._echo, **self._engine_options(url))
        self._sessions = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine created (pool max %d, backend %s)",
            self._config.pool_max_size,
            self._engine.url.get_backend_name(),
        )

    async def create_schema(self) -> None:
        """Create tables that do not exist yet."""
        # Registers the mapped tables on Base.metadata.
        from udyam.storage import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessions is None:
            raise PersistenceError("Database is not connected")
        async with self._sessions() as session:
            yield session

    async def dispose(self) -> None:
        """Close every pooled connection."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database connection pool closed")
