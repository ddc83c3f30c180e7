# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admissions lead API endpoints.

This module provides endpoints for a school's lead pipeline:
- GET / - List leads with optional filters
- POST / - Capture a new lead
- GET /board - Kanban board grouped by stage
- GET /stats - Dashboard figures
- GET /counsellors - Staff for the counsellor picker
- GET /activity - Recent timeline entries across all leads
- GET /{lead_id} - Lead details with timeline
- PATCH /{lead_id} - Partial update
- PUT /{lead_id}/status - Move to another stage
- POST /{lead_id}/notes - Add a timeline note
- POST /{lead_id}/assign - Assign a counsellor

Collection routes and the update routes return the same result envelopes
as the server actions ({success, error, ...}) with HTTP 200. Single-lead
reads, notes and assignment use HTTP status codes instead.

Example:
    PUT /api/v1/schools/oakwood/leads/{lead_id}/status
    {"status": "TOUR_SCHEDULED"}
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, HTTPException, Query, status

from src.api.dependencies import DbSession, SchoolScope
from src.domains.admissions import (
    LeadNotFoundError,
    LeadService,
    LeadValidationError,
    create_lead_action,
    get_board_action,
    get_counsellors_action,
    get_lead_stats_action,
    get_recent_activity_action,
    list_leads_action,
    update_lead_action,
    update_lead_status_action,
)
from src.models.common import ActionResult
from src.models.lead import (
    CounsellorListResult,
    LeadActivityResult,
    LeadAssignRequest,
    LeadBoardResult,
    LeadDetail,
    LeadFilters,
    LeadInteractionResponse,
    LeadListResult,
    LeadNoteRequest,
    LeadResult,
    LeadStatsResult,
    LeadStatusUpdateRequest,
    LeadSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _filters(
    status_filter: str | None,
    counsellor_id: str | None,
    branch_id: str | None,
    search: str | None,
) -> LeadFilters:
    return LeadFilters(
        status=status_filter,
        counsellor_id=counsellor_id,
        branch_id=branch_id,
        search_term=search,
    )


@router.get("", response_model=LeadListResult, summary="List leads")
async def list_leads(
    slug: str,
    db: DbSession,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    counsellor_id: str | None = None,
    branch_id: str | None = None,
    search: str | None = None,
) -> LeadListResult:
    """List a school's leads, newest first."""
    return await list_leads_action(
        db, slug, _filters(status_filter, counsellor_id, branch_id, search)
    )


@router.post("", response_model=LeadResult, summary="Capture lead")
async def create_lead(
    slug: str,
    db: DbSession,
    data: Annotated[dict, Body()],
) -> LeadResult:
    """Capture a new lead in the NEW stage."""
    return await create_lead_action(db, slug, data)


@router.get("/board", response_model=LeadBoardResult, summary="Lead board")
async def get_board(
    slug: str,
    db: DbSession,
    counsellor_id: str | None = None,
    branch_id: str | None = None,
    search: str | None = None,
) -> LeadBoardResult:
    """Group the school's leads into the pipeline columns."""
    return await get_board_action(db, slug, _filters(None, counsellor_id, branch_id, search))


@router.get("/stats", response_model=LeadStatsResult, summary="Lead statistics")
async def get_stats(slug: str, db: DbSession) -> LeadStatsResult:
    """Admissions dashboard figures."""
    return await get_lead_stats_action(db, slug)


@router.get("/counsellors", response_model=CounsellorListResult, summary="List counsellors")
async def list_counsellors(slug: str, db: DbSession) -> CounsellorListResult:
    """Staff with the ADMIN or STAFF role, by first name."""
    return await get_counsellors_action(db, slug)


@router.get("/activity", response_model=LeadActivityResult, summary="Recent activity")
async def get_recent_activity(slug: str, db: DbSession) -> LeadActivityResult:
    """The ten newest interactions across the school's leads."""
    return await get_recent_activity_action(db, slug)


@router.get("/{lead_id}", response_model=LeadDetail, summary="Get lead")
async def get_lead(lead_id: str, scope: SchoolScope) -> LeadDetail:
    """Get a lead with its interaction timeline."""
    try:
        lead = await LeadService(scope).get_lead(lead_id)
    except LeadNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return LeadDetail.model_validate(lead)


@router.patch("/{lead_id}", response_model=ActionResult, summary="Update lead")
async def update_lead(
    slug: str,
    lead_id: str,
    db: DbSession,
    data: Annotated[dict, Body()],
) -> ActionResult:
    """Apply a partial update to a lead."""
    return await update_lead_action(db, slug, lead_id, data)


@router.put("/{lead_id}/status", response_model=ActionResult, summary="Move lead")
async def update_lead_status(
    slug: str,
    lead_id: str,
    db: DbSession,
    data: LeadStatusUpdateRequest,
) -> ActionResult:
    """Move a lead to any pipeline stage."""
    return await update_lead_status_action(db, slug, lead_id, data.status)


@router.post(
    "/{lead_id}/notes",
    response_model=LeadInteractionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add note",
)
async def add_note(
    lead_id: str,
    data: LeadNoteRequest,
    scope: SchoolScope,
) -> LeadInteractionResponse:
    """Add a note to a lead's timeline."""
    try:
        interaction = await LeadService(scope).add_note(lead_id, data.content, data.staff_id)
    except LeadNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except LeadValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return LeadInteractionResponse.model_validate(interaction)


@router.post("/{lead_id}/assign", response_model=LeadSummary, summary="Assign counsellor")
async def assign_counsellor(
    lead_id: str,
    data: LeadAssignRequest,
    scope: SchoolScope,
) -> LeadSummary:
    """Assign a staff member as the lead's counsellor."""
    try:
        lead = await LeadService(scope).assign_counsellor(lead_id, data.counsellor_id)
    except LeadNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except LeadValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return LeadSummary.model_validate(lead)
