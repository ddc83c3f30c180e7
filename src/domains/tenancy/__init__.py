# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenancy domain package.

This package provides the school (tenant) scoping used by every
school-facing service:
- School resolution by slug
- Mandatory school_id predicate injection
- Ownership checks for client-supplied ids
"""

from src.domains.tenancy.scoping import (
    RecordNotFoundError,
    SchoolNotFoundError,
    TenantScope,
    TenantScopeError,
    resolve_school,
)

__all__ = [
    "TenantScope",
    "TenantScopeError",
    "SchoolNotFoundError",
    "RecordNotFoundError",
    "resolve_school",
]
