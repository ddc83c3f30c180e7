# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Add branches and nullable branch scoping columns.

Existing rows keep branch_id NULL ("unassigned"); the branch backfill
(python -m src.domains.branch.backfill) assigns them afterwards.

Revision ID: 002_add_branch_scoping
Revises: 001_initial_schema
Create Date: 2025-02-17
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_add_branch_scoping"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (table, column) pairs that reference branches.id
BRANCH_COLUMNS = [
    ("students", "branch_id"),
    ("classrooms", "branch_id"),
    ("admissions", "branch_id"),
    ("library_books", "branch_id"),
    ("transport_vehicles", "branch_id"),
    ("transport_routes", "branch_id"),
    ("fees", "branch_id"),
    ("staff_attendance", "branch_id"),
    ("leads", "preferred_branch_id"),
]


def upgrade() -> None:
    """Create branches and add the nullable branch columns."""
    op.create_table(
        "branches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "school_id",
            sa.String(36),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("school_id", "name", name="uq_branches_school_name"),
    )

    for table, column in BRANCH_COLUMNS:
        op.add_column(table, sa.Column(column, sa.String(36), nullable=True))
        op.create_index(f"ix_{table}_{column}", table, [column])
        op.create_foreign_key(
            f"fk_{table}_{column}_branches",
            table,
            "branches",
            [column],
            ["id"],
            ondelete="RESTRICT",
        )


def downgrade() -> None:
    """Drop the branch columns and the branches table."""
    for table, column in reversed(BRANCH_COLUMNS):
        op.drop_constraint(f"fk_{table}_{column}_branches", table, type_="foreignkey")
        op.drop_index(f"ix_{table}_{column}", table_name=table)
        op.drop_column(table, column)

    op.drop_table("branches")
