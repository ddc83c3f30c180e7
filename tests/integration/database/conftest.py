# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

These tests need a real PostgreSQL server. Point TEST_DATABASE_URL at an
empty database to enable them; they are skipped otherwise.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


@pytest.fixture(scope="session")
def postgres_url() -> str:
    """Get the PostgreSQL URL for tests, or skip."""
    url = os.environ.get("TEST_DATABASE_URL")
    if not url or not url.startswith("postgresql"):
        pytest.skip("TEST_DATABASE_URL is not set to a PostgreSQL database")
    return url


async def _reset_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(text("DROP SCHEMA public CASCADE"))
        await conn.execute(text("CREATE SCHEMA public"))


@pytest_asyncio.fixture(scope="function")
async def empty_postgres(postgres_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a freshly emptied public schema."""
    engine = create_async_engine(postgres_url, echo=False)
    await _reset_schema(engine)

    yield engine

    await _reset_schema(engine)
    await engine.dispose()
