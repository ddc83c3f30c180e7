# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admissions lead models.

A Lead is a prospective-student inquiry moved through the pipeline
stages by staff. status is stored as a plain string so that legacy
values written before the stage set was fixed can still be read.
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TenantScopedMixin,
    TimestampMixin,
    new_uuid,
)


class Lead(Base, TenantScopedMixin, TimestampMixin):
    __tablename__ = "leads"
    __table_args__ = (
        CheckConstraint(
            "score IS NULL OR (score >= 0 AND score <= 100)",
            name="ck_leads_score_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    parent_name: Mapped[str] = mapped_column(String(200), nullable=False)
    child_name: Mapped[str] = mapped_column(String(200), nullable=False)
    mobile: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="NEW", index=True)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    program_interested: Mapped[str | None] = mapped_column(String(100), nullable=True)
    preferred_branch_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    counsellor_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    interactions: Mapped[list["LeadInteraction"]] = relationship(
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadInteraction.created_at.desc()",
    )


class LeadInteraction(Base, TimestampMixin):
    """A timeline entry on a lead: NOTE, STATUS_CHANGE or AUTOMATION."""

    __tablename__ = "lead_interactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    lead_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    staff_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    lead: Mapped[Lead] = relationship(back_populates="interactions")
