# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    leads: Admissions lead pipeline endpoints.
    branches: Branch management endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import branches, leads

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(leads.router, prefix="/schools/{slug}/leads", tags=["Leads"])
router.include_router(branches.router, prefix="/schools/{slug}/branches", tags=["Branches"])

__all__ = ["router"]
