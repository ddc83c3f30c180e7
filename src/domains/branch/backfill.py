# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch backfill: move every school onto the multi-branch model.

For each school the default branch is resolved (or created), then every
legacy record with no branch is assigned to it:

- directly scoped records (school_id on the row): one count and, when
  non-zero, one bulk UPDATE conditioned on branch_id IS NULL;
- indirectly scoped records (Fee via student, StaffAttendance via user):
  the ids are read through the relationship first, because a bulk UPDATE
  cannot filter on a related table, then updated by id;
- leads: preferred_branch_id instead of branch_id.

Every step is conditioned on the target column being NULL and commits
on its own, so re-running is a no-op and an interrupted run can simply
be started again. Schools are processed one after another; a database
error in one school is logged with its id and the run moves on.

The backfill refuses to start until the branch scoping revision has been
applied (campusops-migrate).

Usage:
    DATABASE_URL=postgresql+asyncpg://... python -m src.domains.branch.backfill
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, field

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.domains.branch.scopes import (
    DIRECT_SCOPES,
    INDIRECT_SCOPES,
    LEAD_SCOPE,
    DirectScope,
    IndirectScope,
)
from src.domains.branch.service import MAIN_BRANCH_NAME, BranchService
from src.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    get_sessionmaker,
    init_database,
)
from src.infrastructure.database.migrations.runner import (
    BRANCH_SCOPING_REVISION,
    MigrationError,
    is_revision_applied,
)
from src.infrastructure.database.models.tenant.school import School
from src.utils.logging import bind_context, setup_logging, unbind_context

logger = logging.getLogger(__name__)

# Upper bound on ids per UPDATE ... WHERE id IN (...) for indirect scopes
ID_BATCH_SIZE = 5000


@dataclass
class SchoolBackfillResult:
    """Outcome of backfilling one school."""

    school_id: str
    school_name: str
    branch_id: str | None = None
    branch_name: str | None = None
    branch_created: bool = False
    updated: dict[str, int] = field(default_factory=dict)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def records_migrated(self) -> int:
        return sum(self.updated.values())


@dataclass
class BackfillReport:
    """Outcome of a whole backfill run."""

    schools: list[SchoolBackfillResult] = field(default_factory=list)

    @property
    def schools_processed(self) -> int:
        return len(self.schools)

    @property
    def schools_failed(self) -> int:
        return sum(1 for school in self.schools if not school.succeeded)

    @property
    def branches_created(self) -> int:
        return sum(1 for school in self.schools if school.branch_created)

    @property
    def records_migrated(self) -> int:
        return sum(school.records_migrated for school in self.schools)

    @property
    def succeeded(self) -> bool:
        return self.schools_failed == 0

    def summary_lines(self) -> list[str]:
        """Human-readable per-school summary for the operator."""
        lines = []
        for school in self.schools:
            if not school.succeeded:
                lines.append(f"{school.school_name} ({school.school_id}): FAILED - {school.error}")
                continue
            created = " (created)" if school.branch_created else ""
            moved = ", ".join(f"{label}={count}" for label, count in school.updated.items() if count)
            lines.append(
                f"{school.school_name} ({school.school_id}): branch "
                f"'{school.branch_name}' {school.branch_id}{created}; "
                f"{moved or 'up to date'}"
            )
        lines.append(
            f"Schools: {self.schools_processed}, failed: {self.schools_failed}, "
            f"branches created: {self.branches_created}, "
            f"records migrated: {self.records_migrated}"
        )
        return lines


class BranchBackfill:
    """Assigns legacy branch-less records to each school's default branch.

    Attributes:
        _db: Async database session.
        _branches: Branch service used to resolve the default branch.
    """

    def __init__(self, db: AsyncSession, main_branch_name: str = MAIN_BRANCH_NAME) -> None:
        self._db = db
        self._branches = BranchService(db, main_branch_name=main_branch_name)

    async def run(self) -> BackfillReport:
        """Backfill every school, oldest first.

        Returns:
            Report with one entry per school, including failed ones.
        """
        logger.info("Starting multi-branch backfill")

        result = await self._db.execute(
            select(School.id, School.name).order_by(School.created_at.asc(), School.id.asc())
        )
        schools = result.all()
        logger.info("Found %d schools", len(schools))

        report = BackfillReport()
        for school_id, school_name in schools:
            report.schools.append(await self.backfill_school(school_id, school_name))

        logger.info(
            "Backfill complete: schools=%d failed=%d branches_created=%d records=%d",
            report.schools_processed,
            report.schools_failed,
            report.branches_created,
            report.records_migrated,
        )
        return report

    async def backfill_school(self, school_id: str, school_name: str) -> SchoolBackfillResult:
        """Backfill a single school; errors are recorded, not raised."""
        outcome = SchoolBackfillResult(school_id=school_id, school_name=school_name)
        bind_context(school_id=school_id)
        logger.info("Processing school: %s (%s)", school_name, school_id)

        try:
            branch, created = await self._branches.resolve_default_branch(school_id)
            outcome.branch_id = branch.id
            outcome.branch_name = branch.name
            outcome.branch_created = created

            for scope in DIRECT_SCOPES:
                outcome.updated[scope.label] = await self._backfill_direct(scope, school_id, branch.id)
            for scope in INDIRECT_SCOPES:
                outcome.updated[scope.label] = await self._backfill_indirect(scope, school_id, branch.id)
            outcome.updated[LEAD_SCOPE.label] = await self._backfill_direct(
                LEAD_SCOPE, school_id, branch.id
            )
        except (SQLAlchemyError, DatabaseError) as e:
            await self._db.rollback()
            outcome.error = str(e)
            logger.exception("Backfill failed for school %s (%s)", school_name, school_id)
        finally:
            unbind_context("school_id")

        return outcome

    async def _backfill_direct(self, scope: DirectScope, school_id: str, branch_id: str) -> int:
        """Assign the branch to a directly scoped record type in one UPDATE."""
        conditions = (scope.school_key == school_id, scope.target.is_(None))

        count_stmt = select(func.count()).select_from(scope.model).where(*conditions)
        count = (await self._db.execute(count_stmt)).scalar() or 0
        if count == 0:
            logger.info("Assignments for %s are up to date", scope.label)
            return 0

        logger.info("Updating %d %s records", count, scope.label)
        stmt = (
            update(scope.model)
            .where(*conditions)
            .values({scope.target_column: branch_id})
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        await self._db.commit()

        logger.info("Updated %s records", scope.label)
        return result.rowcount

    async def _backfill_indirect(self, scope: IndirectScope, school_id: str, branch_id: str) -> int:
        """Assign the branch to an indirectly scoped record type by id."""
        ids_stmt = (
            select(scope.model.id)
            .join(scope.relation)
            .where(scope.target.is_(None), scope.parent_school_key == school_id)
        )
        ids = list((await self._db.execute(ids_stmt)).scalars().all())
        if not ids:
            logger.info("Assignments for %s are up to date", scope.label)
            return 0

        logger.info("Found %d %s records to update", len(ids), scope.label)
        updated = 0
        for start in range(0, len(ids), ID_BATCH_SIZE):
            batch = ids[start:start + ID_BATCH_SIZE]
            stmt = (
                update(scope.model)
                .where(scope.model.id.in_(batch), scope.target.is_(None))
                .values(branch_id=branch_id)
                .execution_options(synchronize_session=False)
            )
            result = await self._db.execute(stmt)
            updated += result.rowcount
        await self._db.commit()

        logger.info("Updated %s records", scope.label)
        return updated


async def run_backfill() -> BackfillReport:
    """Run the backfill against the configured database.

    Raises:
        MigrationError: If the branch scoping revision is not applied yet.
    """
    settings = get_settings()
    if not await is_revision_applied(settings.database.url, BRANCH_SCOPING_REVISION):
        raise MigrationError(
            f"Revision {BRANCH_SCOPING_REVISION} is not applied; run campusops-migrate first"
        )

    await init_database(settings)
    try:
        async with get_sessionmaker()() as session:
            return await BranchBackfill(
                session,
                main_branch_name=settings.backfill.main_branch_name,
            ).run()
    finally:
        await close_database()


def main() -> None:
    """Console entry point; exits non-zero if any school failed."""
    setup_logging(get_settings())
    try:
        report = asyncio.run(run_backfill())
    except MigrationError as e:
        logger.error("Backfill not started: %s", e)
        print(f"Backfill not started: {e}")
        sys.exit(1)
    for line in report.summary_lines():
        print(line)
    sys.exit(0 if report.succeeded else 1)


if __name__ == "__main__":
    main()
