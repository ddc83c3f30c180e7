# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin
from src.infrastructure.database.models.tenant import (
    Admission,
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

__all__ = [
    "Base",
    "TimestampMixin",
    "School",
    "Branch",
    "User",
    "Student",
    "Classroom",
    "Admission",
    "LibraryBook",
    "TransportVehicle",
    "TransportRoute",
    "Fee",
    "StaffAttendance",
    "Lead",
    "LeadInteraction",
]
