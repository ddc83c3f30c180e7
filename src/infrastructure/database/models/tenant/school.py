# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School (tenant), branch and staff user models."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantScopedMixin,
    TimestampMixin,
    new_uuid,
)


class School(Base, TimestampMixin):
    """A tenant: root of data isolation."""

    __tablename__ = "schools"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)

    branches: Mapped[list["Branch"]] = relationship(
        back_populates="school",
        order_by="Branch.created_at",
    )

    def __repr__(self) -> str:
        return f"<School {self.slug}>"


class Branch(Base, TimestampMixin):
    """A campus or organizational sub-unit of exactly one school."""

    __tablename__ = "branches"
    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_branches_school_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    school_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    school: Mapped[School] = relationship(back_populates="branches")

    def __repr__(self) -> str:
        return f"<Branch {self.name!r} school={self.school_id}>"


class User(Base, TenantScopedMixin, TimestampMixin):
    """A staff member (admin, counsellor, teacher) of a school."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="STAFF")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
