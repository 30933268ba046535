"""Shared fixtures: a throwaway SQLite-backed database per test."""

from __future__ import annotations

import pytest
import pytest_asyncio

from udyam.config.settings import DatabaseConfig
from udyam.storage.database import Database


@pytest.fixture
def database_config(tmp_path) -> DatabaseConfig:
    return DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'udyam.db'}")


@pytest_asyncio.fixture
async def database(database_config):
    db = Database(database_config)
    await db.connect()
    await db.create_schema()
    yield db
    await db.dispose()
