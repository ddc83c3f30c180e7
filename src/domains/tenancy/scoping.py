# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant scoping for school-owned data.

Every query issued on behalf of a school goes through a TenantScope,
which injects the school_id predicate and checks that ids supplied by a
client (lead ids, branch ids, counsellor ids) resolve inside the same
school before they are read or written.

A record that exists but belongs to another school is reported exactly
like a record that does not exist, so callers cannot probe for ids in
other tenants.

Example:
    >>> scope = await TenantScope.for_slug(db, "oakwood")
    >>> stmt = scope.scoped(select(Lead), Lead)
    >>> lead = await scope.get_owned(Lead, lead_id)
"""

import logging
from typing import Any, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.tenant.school import Branch, School, User

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class TenantScopeError(Exception):
    """Base exception for tenant scoping errors."""

    pass


class SchoolNotFoundError(TenantScopeError):
    """Raised when no school matches the given slug or id."""

    pass


class RecordNotFoundError(TenantScopeError):
    """Raised when a record is missing or belongs to another school."""

    def __init__(self, model_name: str, record_id: str | None) -> None:
        super().__init__(f"{model_name} {record_id} not found")
        self.model_name = model_name
        self.record_id = record_id


async def resolve_school(db: AsyncSession, slug: str) -> School:
    """Resolve a school by its slug.

    Raises:
        SchoolNotFoundError: If no school has this slug.
    """
    result = await db.execute(select(School).where(School.slug == slug))
    school = result.scalar_one_or_none()
    if school is None:
        raise SchoolNotFoundError(f"School '{slug}' not found")
    return school


class TenantScope:
    """Query helper bound to one school.

    Attributes:
        db: Async database session.
        school_id: Id of the school every query is restricted to.
        school_slug: Slug of that school, for messages and logs.
    """

    def __init__(self, db: AsyncSession, school: School) -> None:
        self.db = db
        self.school_id: str = school.id
        self.school_slug: str = school.slug

    @classmethod
    async def for_slug(cls, db: AsyncSession, slug: str) -> "TenantScope":
        """Build a scope for the school with this slug.

        Raises:
            SchoolNotFoundError: If no school has this slug.
        """
        return cls(db, await resolve_school(db, slug))

    def scoped(self, stmt: Select[Any], model: type) -> Select[Any]:
        """Restrict a select to rows of this school.

        Args:
            stmt: Select statement over model.
            model: A mapped class with a school_id column.
        """
        return stmt.where(model.school_id == self.school_id)

    async def get_owned(self, model: type[ModelT], record_id: str | None, *options: Any) -> ModelT:
        """Fetch a record by id only if it belongs to this school.

        Args:
            model: A mapped class with id and school_id columns.
            record_id: Primary key supplied by the caller.
            *options: Loader options (e.g. selectinload) for the query.

        Raises:
            RecordNotFoundError: If missing or owned by another school.
        """
        if not record_id:
            raise RecordNotFoundError(model.__name__, record_id)

        stmt = self.scoped(select(model).where(model.id == record_id), model)
        if options:
            stmt = stmt.options(*options)
        result = await self.db.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            logger.debug(
                "%s %s not visible to school %s",
                model.__name__, record_id, self.school_id,
            )
            raise RecordNotFoundError(model.__name__, record_id)
        return record

    async def verify_branch(self, branch_id: str | None) -> Branch:
        """Check that a client-supplied branch id belongs to this school."""
        return await self.get_owned(Branch, branch_id)

    async def verify_user(self, user_id: str | None) -> User:
        """Check that a client-supplied staff user id belongs to this school."""
        return await self.get_owned(User, user_id)
