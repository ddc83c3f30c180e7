# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Descriptors of every record type that points at a branch.

Directly scoped records carry school_id themselves. Indirectly scoped
records reach their school through a relationship, named here as a
mapped attribute rather than a dotted string so a typo fails at import.
"""

from dataclasses import dataclass
from typing import Any

from src.infrastructure.database.models.tenant import (
    Admission,
    Classroom,
    Fee,
    Lead,
    LibraryBook,
    StaffAttendance,
    Student,
    TransportRoute,
    TransportVehicle,
    User,
)


@dataclass(frozen=True)
class DirectScope:
    """A record type with its own school_id column.

    Attributes:
        label: Name used in logs and reports.
        model: Mapped class.
        target_column: Column holding the branch reference.
    """

    label: str
    model: type
    target_column: str = "branch_id"

    @property
    def target(self) -> Any:
        return getattr(self.model, self.target_column)

    @property
    def school_key(self) -> Any:
        return self.model.school_id


@dataclass(frozen=True)
class IndirectScope:
    """A record type whose school is reached through a relationship.

    Attributes:
        label: Name used in logs and reports.
        model: Mapped class carrying branch_id.
        relation: Relationship attribute to the parent (e.g. Fee.student).
        parent_school_key: The parent's school_id column.
    """

    label: str
    model: type
    relation: Any
    parent_school_key: Any

    @property
    def target(self) -> Any:
        return self.model.branch_id


DIRECT_SCOPES: tuple[DirectScope, ...] = (
    DirectScope("Student", Student),
    DirectScope("Classroom", Classroom),
    DirectScope("Admission", Admission),
    DirectScope("LibraryBook", LibraryBook),
    DirectScope("TransportVehicle", TransportVehicle),
    DirectScope("TransportRoute", TransportRoute),
)

INDIRECT_SCOPES: tuple[IndirectScope, ...] = (
    IndirectScope("Fee", Fee, Fee.student, Student.school_id),
    IndirectScope("StaffAttendance", StaffAttendance, StaffAttendance.user, User.school_id),
)

# Leads reference a branch as a preference, not as ownership
LEAD_SCOPE = DirectScope("Lead", Lead, target_column="preferred_branch_id")

ALL_SCOPES: tuple[DirectScope | IndirectScope, ...] = (
    *DIRECT_SCOPES,
    *INDIRECT_SCOPES,
    LEAD_SCOPE,
)
