# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch management API endpoints.

This module provides endpoints for a school's branches:
- GET / - List branches (branch picker)
- POST / - Create a branch
- DELETE /{branch_id} - Delete an unreferenced branch
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, HTTPException, status

from src.api.dependencies import DbSession, SchoolScope
from src.domains.admissions import create_branch_action, get_branches_action
from src.domains.branch import BranchInUseError, BranchNotFoundError, BranchService
from src.models.branch import BranchListResult, BranchResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=BranchListResult, summary="List branches")
async def list_branches(slug: str, db: DbSession) -> BranchListResult:
    """List a school's branches ordered by name."""
    return await get_branches_action(db, slug)


@router.post("", response_model=BranchResult, summary="Create branch")
async def create_branch(
    slug: str,
    db: DbSession,
    data: Annotated[dict, Body()],
) -> BranchResult:
    """Create a named branch."""
    return await create_branch_action(db, slug, data)


@router.delete(
    "/{branch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete branch",
)
async def delete_branch(branch_id: str, scope: SchoolScope) -> None:
    """Delete a branch no record points at.

    Returns 409 while any student, classroom, fee, lead or other
    branch-aware record still references it.
    """
    try:
        await BranchService(scope.db).delete_branch(scope.school_id, branch_id)
    except BranchNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except BranchInUseError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
