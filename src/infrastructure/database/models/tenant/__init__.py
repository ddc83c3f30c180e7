# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant-scoped ORM models."""

from src.infrastructure.database.models.tenant.lead import Lead, LeadInteraction
from src.infrastructure.database.models.tenant.records import (
    Admission,
    Classroom,
    Fee,
    LibraryBook,
    StaffAttendance,
    Student,
    TransportRoute,
    TransportVehicle,
)
from src.infrastructure.database.models.tenant.school import Branch, School, User

__all__ = [
    # Organization
    "School",
    "Branch",
    "User",
    # Branch-scoped records
    "Student",
    "Classroom",
    "Admission",
    "LibraryBook",
    "TransportVehicle",
    "TransportRoute",
    "Fee",
    "StaffAttendance",
    # Admissions pipeline
    "Lead",
    "LeadInteraction",
]
