# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory SQLite database (aiosqlite) with the full schema
- A RecordFactory for seeding schools, branches and school records
- Sample identifiers
"""

from collections.abc import AsyncGenerator
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.config import clear_settings_cache
from src.infrastructure.database.models import (
    Admission,
    Base,
    Branch,
    Classroom,
    Fee,
    Lead,
    LeadInteraction,
    LibraryBook,
    School,
    StaffAttendance,
    Student,
    TransportRoute,
    TransportVehicle,
    User,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed base time so created_at ordering in tests never depends on the clock
BASE_TIME = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP stack)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> None:
    """Settings are cached per process; start every test from the environment."""
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    db_sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create an async session on the in-memory database."""
    async with db_sessionmaker() as session:
        yield session


class RecordFactory:
    """Seeds rows with predictable, strictly increasing created_at values."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._tick = 0

    def _next_time(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    async def _save(self, record: Any) -> Any:
        if getattr(record, "created_at", None) is None:
            record.created_at = self._next_time()
        self.db.add(record)
        await self.db.commit()
        return record

    async def school(self, name: str, slug: str | None = None) -> School:
        return await self._save(School(name=name, slug=slug or name.lower().replace(" ", "-")))

    async def branch(self, school: School, name: str, **kwargs: Any) -> Branch:
        return await self._save(Branch(school_id=school.id, name=name, **kwargs))

    async def user(
        self,
        school: School,
        first_name: str = "Asha",
        last_name: str = "Rao",
        role: str = "STAFF",
    ) -> User:
        return await self._save(
            User(school_id=school.id, first_name=first_name, last_name=last_name, role=role)
        )

    async def student(self, school: School, branch: Branch | None = None, name: str = "Student") -> Student:
        parts = name.split(" ", 1)
        return await self._save(
            Student(
                school_id=school.id,
                branch_id=branch.id if branch else None,
                first_name=parts[0],
                last_name=parts[1] if len(parts) > 1 else "",
            )
        )

    async def classroom(self, school: School, name: str = "Grade 1 A") -> Classroom:
        return await self._save(Classroom(school_id=school.id, name=name))

    async def admission(self, school: School) -> Admission:
        return await self._save(
            Admission(school_id=school.id, student_name="Ravi", parent_name="Meera")
        )

    async def library_book(self, school: School) -> LibraryBook:
        return await self._save(LibraryBook(school_id=school.id, title="Atlas"))

    async def vehicle(self, school: School) -> TransportVehicle:
        return await self._save(TransportVehicle(school_id=school.id, registration_number="KA01"))

    async def route(self, school: School) -> TransportRoute:
        return await self._save(TransportRoute(school_id=school.id, name="North loop"))

    async def fee(self, student: Student, amount: str = "1500.00") -> Fee:
        return await self._save(Fee(student_id=student.id, title="Term 1", amount=Decimal(amount)))

    async def attendance(self, user: User, day: date | None = None) -> StaffAttendance:
        return await self._save(
            StaffAttendance(user_id=user.id, attendance_date=day or date(2025, 1, 6))
        )

    async def lead(self, school: School, **kwargs: Any) -> Lead:
        kwargs.setdefault("parent_name", "Meera Iyer")
        kwargs.setdefault("child_name", "Ravi Iyer")
        return await self._save(Lead(school_id=school.id, **kwargs))

    async def interaction(
        self,
        lead: Lead,
        content: str = "Called parent.",
        type: str = "NOTE",
        staff: User | None = None,
    ) -> LeadInteraction:
        return await self._save(
            LeadInteraction(
                lead_id=lead.id,
                staff_id=staff.id if staff else None,
                type=type,
                content=content,
            )
        )


@pytest.fixture
def factory(db_session: AsyncSession) -> RecordFactory:
    """Provide a record factory bound to the test session."""
    return RecordFactory(db_session)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_lead_data() -> dict[str, Any]:
    """Provide a lead capture payload."""
    return {
        "parent_name": "Meera Iyer",
        "child_name": "Ravi Iyer",
        "mobile": "+919800000001",
        "source": "Website",
        "program_interested": "Grade 1",
    }
