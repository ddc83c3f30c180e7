# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial single-branch schema.

Schools, staff users, the school-scoped domain records and the
admissions leads, before branches existed.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-06
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _school_fk() -> sa.Column:
    return sa.Column(
        "school_id",
        sa.String(36),
        sa.ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    """Create the single-branch schema."""
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True, index=True),
        *_timestamps(),
    )

    op.create_table(
        "users",
        _id(),
        _school_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(30), nullable=False, server_default="STAFF"),
        *_timestamps(),
    )

    op.create_table(
        "students",
        _id(),
        _school_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        *_timestamps(),
    )

    op.create_table(
        "classrooms",
        _id(),
        _school_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "admissions",
        _id(),
        _school_fk(),
        sa.Column("student_name", sa.String(200), nullable=False),
        sa.Column("parent_name", sa.String(200), nullable=True),
        sa.Column("stage", sa.String(30), nullable=False, server_default="INQUIRY"),
        *_timestamps(),
    )

    op.create_table(
        "library_books",
        _id(),
        _school_fk(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("isbn", sa.String(20), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "transport_vehicles",
        _id(),
        _school_fk(),
        sa.Column("registration_number", sa.String(30), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "transport_routes",
        _id(),
        _school_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "fees",
        _id(),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        *_timestamps(),
    )

    op.create_table(
        "staff_attendance",
        _id(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("attendance_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PRESENT"),
        *_timestamps(),
    )

    op.create_table(
        "leads",
        _id(),
        _school_fk(),
        sa.Column("parent_name", sa.String(200), nullable=False),
        sa.Column("child_name", sa.String(200), nullable=False),
        sa.Column("mobile", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("source", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="NEW", index=True),
        sa.Column("score", sa.Integer, nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("program_interested", sa.String(100), nullable=True),
        sa.Column(
            "counsellor_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.CheckConstraint(
            "score IS NULL OR (score >= 0 AND score <= 100)",
            name="ck_leads_score_range",
        ),
        *_timestamps(),
    )

    op.create_table(
        "lead_interactions",
        _id(),
        sa.Column(
            "lead_id",
            sa.String(36),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "staff_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop the initial schema."""
    for table in (
        "lead_interactions",
        "leads",
        "staff_attendance",
        "fees",
        "transport_routes",
        "transport_vehicles",
        "library_books",
        "admissions",
        "classrooms",
        "students",
        "users",
        "schools",
    ):
        op.drop_table(table)
