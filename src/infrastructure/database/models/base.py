# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared mixins for all ORM models.

Primary keys are string UUIDs generated on the Python side so that a
freshly added row has its id as soon as it is flushed, on PostgreSQL and
on SQLite alike.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from src.utils.datetime import utc_now

__all__ = [
    "Base",
    "TimestampMixin",
    "TenantScopedMixin",
    "BranchScopedMixin",
    "new_uuid",
    "utc_now",
]


def new_uuid() -> str:
    """Generate a new primary key value."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """Adds created_at / updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )


class TenantScopedMixin:
    """Adds the mandatory school_id tenant key."""

    @declared_attr
    def school_id(cls) -> Mapped[str]:
        return mapped_column(
            String(36),
            ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class BranchScopedMixin(TenantScopedMixin):
    """Adds school_id plus a nullable branch_id.

    branch_id is NULL for legacy rows created before the school moved to
    the multi-branch model; the branch backfill assigns it.
    """

    @declared_attr
    def branch_id(cls) -> Mapped[str | None]:
        return mapped_column(
            String(36),
            ForeignKey("branches.id", ondelete="RESTRICT"),
            nullable=True,
            index=True,
        )
