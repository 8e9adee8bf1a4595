"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import AsyncIterator

import pytest_asyncio

from app.db.connection import Database


@pytest_asyncio.fixture
async def test_db(tmp_path: Path) -> AsyncIterator[Database]:
    """Create a test database with temporary path."""
    db = Database(tmp_path / "test.db")
    await db.connect()
    await db.init_schema()

    yield db

    await db.disconnect()
