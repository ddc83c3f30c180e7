# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schema migration runner.

Revisions in migrations/versions are plain Alembic revision modules.
They are applied in MIGRATIONS order through alembic Operations, with
the current head recorded in the alembic_version table, so no
alembic.ini or CLI is needed at deploy time.

The branch backfill only makes sense once BRANCH_SCOPING_REVISION is in
place; it checks that with is_revision_applied() before touching data.

Example:
    $ campusops-migrate
    Applied 002_add_branch_scoping
    $ campusops-backfill
"""

import asyncio
import importlib
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import ModuleType
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from src.core.config import get_settings
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)

VERSIONS_PACKAGE = "src.infrastructure.database.migrations.versions"

# Applied in this order; each revision's down_revision is its predecessor
MIGRATIONS = [
    "001_initial_schema",
    "002_add_branch_scoping",
]

BRANCH_SCOPING_REVISION = "002_add_branch_scoping"


class MigrationError(Exception):
    """Raised when a revision cannot be loaded or the schema is behind."""

    pass


@asynccontextmanager
async def _migration_engine(db_url: str) -> AsyncIterator[AsyncEngine]:
    """Engine with the version table in place, disposed on exit."""
    engine = create_async_engine(db_url, echo=False)
    try:
        await _ensure_version_table(engine)
        yield engine
    finally:
        await engine.dispose()


async def run_migrations(db_url: str, target_revision: str | None = None) -> list[str]:
    """Apply every pending revision, or those up to target_revision.

    Args:
        db_url: Async database URL.
        target_revision: Last revision to apply; None for all.

    Returns:
        Revisions applied by this call, in order.

    Raises:
        MigrationError: If a revision module is missing or malformed.
    """
    async with _migration_engine(db_url) as engine:
        current = await _get_current_version(engine)
        pending = _get_pending_migrations(current, target_revision)
        logger.info(
            "Schema at %s, %d revision(s) pending",
            current or "empty",
            len(pending),
        )

        for revision in pending:
            await _apply_migration(engine, revision)
            logger.info("Applied migration: %s", revision)
        return pending


async def check_migrations_pending(db_url: str) -> bool:
    """Whether the database is behind the newest known revision."""
    async with _migration_engine(db_url) as engine:
        return bool(_get_pending_migrations(await _get_current_version(engine)))


async def is_revision_applied(db_url: str, revision: str) -> bool:
    """Whether revision is at or below the database's current head."""
    async with _migration_engine(db_url) as engine:
        current = await _get_current_version(engine)
    if current is None or current not in MIGRATIONS:
        return False
    return MIGRATIONS.index(current) >= MIGRATIONS.index(revision)


async def get_migration_status(db_url: str) -> dict[str, Any]:
    """Report the current head and what is left to apply."""
    async with _migration_engine(db_url) as engine:
        current = await _get_current_version(engine)
    pending = _get_pending_migrations(current)

    return {
        "current_version": current,
        "latest_version": MIGRATIONS[-1],
        "pending_count": len(pending),
        "pending_migrations": pending,
        "all_migrations": MIGRATIONS,
        "is_up_to_date": not pending,
    }


async def _ensure_version_table(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "CREATE TABLE IF NOT EXISTS alembic_version ("
                "version_num VARCHAR(128) NOT NULL, "
                "CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num))"
            )
        )


async def _get_current_version(engine: AsyncEngine) -> str | None:
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT version_num FROM alembic_version"))
        return result.scalar_one_or_none()


def _get_pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
) -> list[str]:
    """Revisions after current_version, up to and including target_revision.

    An unrecognised current or target revision yields nothing, with a
    warning, instead of guessing where to resume.
    """
    if current_version is not None and current_version not in MIGRATIONS:
        logger.warning("Database is at unknown revision %s", current_version)
        return []
    if target_revision is not None and target_revision not in MIGRATIONS:
        logger.warning("Unknown target revision %s", target_revision)
        return []

    start = MIGRATIONS.index(current_version) + 1 if current_version else 0
    end = MIGRATIONS.index(target_revision) + 1 if target_revision else len(MIGRATIONS)
    return MIGRATIONS[start:end]


def _load_revision(revision: str) -> ModuleType:
    try:
        module = importlib.import_module(f"{VERSIONS_PACKAGE}.{revision}")
    except ImportError as e:
        raise MigrationError(f"Cannot import migration {revision}: {e}") from e
    if not callable(getattr(module, "upgrade", None)):
        raise MigrationError(f"Migration {revision} has no upgrade()")
    return module


async def _apply_migration(engine: AsyncEngine, revision: str) -> None:
    """Run one revision's upgrade() and move the head, in one transaction."""
    module = _load_revision(revision)

    async with engine.begin() as conn:
        await conn.run_sync(_upgrade_with_operations, module.upgrade)
        await _set_version(conn, revision)


async def _set_version(conn: AsyncConnection, revision: str) -> None:
    await conn.execute(text("DELETE FROM alembic_version"))
    await conn.execute(
        text("INSERT INTO alembic_version (version_num) VALUES (:revision)"),
        {"revision": revision},
    )


def _upgrade_with_operations(connection, upgrade) -> None:
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    context = MigrationContext.configure(connection)
    with context.begin_transaction(), Operations.context(context):
        upgrade()


def main() -> None:
    """Console entry point: bring the configured database to the newest revision."""
    settings = get_settings()
    setup_logging(settings)
    try:
        applied = asyncio.run(run_migrations(settings.database.url))
    except MigrationError as e:
        logger.error("Migration failed: %s", e)
        print(f"Migration failed: {e}")
        sys.exit(1)

    if not applied:
        print("Schema is up to date")
    for revision in applied:
        print(f"Applied {revision}")
    if BRANCH_SCOPING_REVISION in applied:
        print("Run campusops-backfill to assign legacy records to branches")


if __name__ == "__main__":
    main()
