# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server actions for the admissions UI.

Each action resolves the school from its slug, runs one service call
and returns a result model. Nothing is raised to the caller: domain
errors become success=False with a message the UI can show, and
unexpected errors are logged and reported generically.
"""

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.admissions.service import LeadService, LeadServiceError
from src.domains.branch.service import BranchService, BranchServiceError
from src.domains.tenancy import TenantScope, TenantScopeError
from src.models.branch import BranchCreateRequest, BranchListResult, BranchResponse, BranchResult
from src.models.common import ActionResult
from src.models.lead import (
    CounsellorListResult,
    CounsellorOption,
    LeadActivityResult,
    LeadBoardResult,
    LeadCreateRequest,
    LeadDetail,
    LeadFilters,
    LeadListResult,
    LeadResult,
    LeadStatsResult,
    LeadSummary,
    LeadUpdateRequest,
)

logger = logging.getLogger(__name__)

EXPECTED_ERRORS = (LeadServiceError, BranchServiceError, TenantScopeError)


def _error_message(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
            for item in error.errors()
        )
    return str(error)


async def list_leads_action(
    db: AsyncSession,
    school_slug: str,
    filters: LeadFilters | None = None,
) -> LeadListResult:
    """List a school's leads for the admissions table."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        leads = await LeadService(scope).list_leads(filters)
        return LeadListResult.ok(leads=[LeadSummary.model_validate(lead) for lead in leads])
    except EXPECTED_ERRORS as e:
        return LeadListResult.fail(str(e))
    except Exception:
        logger.exception("Failed to list leads for %s", school_slug)
        return LeadListResult.fail("Failed to fetch leads")


async def update_lead_action(
    db: AsyncSession,
    school_slug: str,
    lead_id: str,
    data: dict[str, Any],
) -> ActionResult:
    """Apply a partial update (including a stage move) to a lead."""
    try:
        request = LeadUpdateRequest.model_validate(data)
        scope = await TenantScope.for_slug(db, school_slug)
        await LeadService(scope).update_lead(lead_id, request)
        return ActionResult.ok()
    except ValidationError as e:
        return ActionResult.fail(_error_message(e))
    except EXPECTED_ERRORS as e:
        return ActionResult.fail(str(e))
    except Exception:
        logger.exception("Failed to update lead %s for %s", lead_id, school_slug)
        return ActionResult.fail("Failed to update lead")


async def update_lead_status_action(
    db: AsyncSession,
    school_slug: str,
    lead_id: str,
    status: str,
) -> ActionResult:
    """Move a lead to another stage from the board."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        await LeadService(scope).update_lead_status(lead_id, status)
        return ActionResult.ok()
    except EXPECTED_ERRORS as e:
        return ActionResult.fail(str(e))
    except Exception:
        logger.exception("Failed to move lead %s for %s", lead_id, school_slug)
        return ActionResult.fail("Failed to update lead")


async def create_lead_action(
    db: AsyncSession,
    school_slug: str,
    data: dict[str, Any],
) -> LeadResult:
    """Capture a lead from the public inquiry form or staff entry."""
    try:
        request = LeadCreateRequest.model_validate(data)
        scope = await TenantScope.for_slug(db, school_slug)
        lead = await LeadService(scope).create_lead(request)
        return LeadResult.ok(lead=LeadDetail.model_validate(lead))
    except ValidationError as e:
        return LeadResult.fail(_error_message(e))
    except EXPECTED_ERRORS as e:
        return LeadResult.fail(str(e))
    except Exception:
        logger.exception("Failed to create lead for %s", school_slug)
        return LeadResult.fail("Failed to create lead")


async def get_board_action(
    db: AsyncSession,
    school_slug: str,
    filters: LeadFilters | None = None,
) -> LeadBoardResult:
    """Build the kanban board for a school."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        board = await LeadService(scope).get_board(filters)
        return LeadBoardResult.ok(board=board)
    except EXPECTED_ERRORS as e:
        return LeadBoardResult.fail(str(e))
    except Exception:
        logger.exception("Failed to build lead board for %s", school_slug)
        return LeadBoardResult.fail("Failed to fetch leads")


async def get_lead_stats_action(db: AsyncSession, school_slug: str) -> LeadStatsResult:
    """Compute the admissions dashboard figures for a school."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        stats = await LeadService(scope).get_stats()
        return LeadStatsResult.ok(stats=stats)
    except EXPECTED_ERRORS as e:
        return LeadStatsResult.fail(str(e))
    except Exception:
        logger.exception("Failed to compute lead stats for %s", school_slug)
        return LeadStatsResult.fail("Failed to fetch lead stats")


async def get_lead_action(db: AsyncSession, school_slug: str, lead_id: str) -> LeadResult:
    """Load one lead with its timeline for the detail page."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        lead = await LeadService(scope).get_lead(lead_id)
        return LeadResult.ok(lead=LeadDetail.model_validate(lead))
    except EXPECTED_ERRORS as e:
        return LeadResult.fail(str(e))
    except Exception:
        logger.exception("Failed to load lead %s for %s", lead_id, school_slug)
        return LeadResult.fail("Failed to fetch lead")


async def add_lead_note_action(
    db: AsyncSession,
    school_slug: str,
    lead_id: str,
    content: str,
    staff_id: str | None = None,
) -> ActionResult:
    """Add a note to a lead's timeline."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        await LeadService(scope).add_note(lead_id, content, staff_id)
        return ActionResult.ok()
    except EXPECTED_ERRORS as e:
        return ActionResult.fail(str(e))
    except Exception:
        logger.exception("Failed to add note to lead %s for %s", lead_id, school_slug)
        return ActionResult.fail("Failed to add note")


async def assign_lead_action(
    db: AsyncSession,
    school_slug: str,
    lead_id: str,
    counsellor_id: str,
    actor_id: str | None = None,
) -> ActionResult:
    """Hand a lead to a counsellor."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        await LeadService(scope).assign_counsellor(lead_id, counsellor_id, actor_id)
        return ActionResult.ok()
    except EXPECTED_ERRORS as e:
        return ActionResult.fail(str(e))
    except Exception:
        logger.exception("Failed to assign lead %s for %s", lead_id, school_slug)
        return ActionResult.fail("Failed to assign lead")


async def get_counsellors_action(db: AsyncSession, school_slug: str) -> CounsellorListResult:
    """List the staff offered in the counsellor picker."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        counsellors = await LeadService(scope).list_counsellors()
        return CounsellorListResult.ok(
            counsellors=[CounsellorOption.model_validate(user) for user in counsellors]
        )
    except EXPECTED_ERRORS as e:
        return CounsellorListResult.fail(str(e))
    except Exception:
        logger.exception("Failed to list counsellors for %s", school_slug)
        return CounsellorListResult.fail("Failed to fetch counsellors")


async def get_recent_activity_action(db: AsyncSession, school_slug: str) -> LeadActivityResult:
    """Latest timeline entries across the school's leads."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        activities = await LeadService(scope).get_recent_activity()
        return LeadActivityResult.ok(activities=activities)
    except EXPECTED_ERRORS as e:
        return LeadActivityResult.fail(str(e))
    except Exception:
        logger.exception("Failed to fetch recent activity for %s", school_slug)
        return LeadActivityResult.fail("Failed to fetch recent activity")


async def get_branches_action(db: AsyncSession, school_slug: str) -> BranchListResult:
    """List a school's branches for the branch picker."""
    try:
        scope = await TenantScope.for_slug(db, school_slug)
        branches = await BranchService(db).list_branches(scope.school_id)
        return BranchListResult.ok(
            branches=[BranchResponse.model_validate(branch) for branch in branches]
        )
    except EXPECTED_ERRORS as e:
        return BranchListResult.fail(str(e))
    except Exception:
        logger.exception("Failed to list branches for %s", school_slug)
        return BranchListResult.fail("Failed to fetch branches")


async def create_branch_action(
    db: AsyncSession,
    school_slug: str,
    data: dict[str, Any],
) -> BranchResult:
    """Create a branch for a school."""
    try:
        request = BranchCreateRequest.model_validate(data)
        scope = await TenantScope.for_slug(db, school_slug)
        branch = await BranchService(db).create_branch(scope.school_id, request.name)
        return BranchResult.ok(branch=BranchResponse.model_validate(branch))
    except ValidationError as e:
        return BranchResult.fail(_error_message(e))
    except EXPECTED_ERRORS as e:
        return BranchResult.fail(str(e))
    except Exception:
        logger.exception("Failed to create branch for %s", school_slug)
        return BranchResult.fail("Failed to create branch")
