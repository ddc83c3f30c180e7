# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lead service for the admissions pipeline.

This module provides the LeadService that handles:
- Listing and filtering a school's leads
- Capturing new leads and editing existing ones
- Moving leads between pipeline stages
- Counsellor assignment and timeline notes
- The counsellor picker and the recent activity feed
- Dashboard statistics and the kanban board

Every query is restricted to one school through a TenantScope; a lead,
branch or counsellor id from another school behaves as if it did not
exist.

Example:
    >>> scope = await TenantScope.for_slug(db, "oakwood")
    >>> service = LeadService(scope)
    >>> await service.update_lead_status(lead_id, "CONTACTED")
    >>> board = await service.get_board()
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from src.core.config import PipelineSettings, get_settings
from src.domains.admissions.stages import (
    INITIAL_STAGE,
    InteractionType,
    LeadStage,
    build_board,
    parse_stage,
)
from src.domains.tenancy import RecordNotFoundError, TenantScope
from src.infrastructure.database.models.tenant.lead import Lead, LeadInteraction
from src.infrastructure.database.models.tenant.school import User
from src.models.lead import (
    DEFAULT_LEAD_SOURCE,
    CounsellorPerformance,
    LeadBoard,
    LeadCreateRequest,
    LeadActivity,
    LeadFilters,
    LeadStats,
    LeadSummary,
    LeadUpdateRequest,
)
from src.utils.datetime import days_before, start_of_day, start_of_month, utc_now

logger = logging.getLogger(__name__)

# Optional fields where an empty string from a form means "clear it"
CLEARABLE_FIELDS = ("preferred_branch_id", "counsellor_id", "program_interested")

# Staff roles offered in the counsellor picker
COUNSELLOR_ROLES = ("ADMIN", "STAFF")

RECENT_ACTIVITY_LIMIT = 10


class LeadServiceError(Exception):
    """Base exception for lead service errors."""

    pass


class LeadNotFoundError(LeadServiceError):
    """Raised when a lead is missing or belongs to another school."""

    pass


class LeadValidationError(LeadServiceError):
    """Raised when a lead field has an invalid value."""

    pass


class LeadPersistenceError(LeadServiceError):
    """Raised when the database rejects a lead change."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class LeadService:
    """Service for managing a school's admissions leads.

    Attributes:
        _scope: Tenant scope of the school being served.
        _db: Async database session (the scope's session).
        _settings: Pipeline settings for dashboard figures.
    """

    def __init__(self, scope: TenantScope, settings: PipelineSettings | None = None) -> None:
        self._scope = scope
        self._db = scope.db
        self._settings = settings or get_settings().pipeline

    async def list_leads(self, filters: LeadFilters | None = None) -> list[Lead]:
        """List the school's leads, newest first.

        Args:
            filters: Optional status, counsellor, preferred branch and
                free-text filters. "all" disables the status or
                counsellor filter.
        """
        stmt = self._scope.scoped(select(Lead), Lead)

        if filters:
            if filters.status and filters.status != "all":
                stmt = stmt.where(Lead.status == filters.status)
            if filters.counsellor_id and filters.counsellor_id != "all":
                stmt = stmt.where(Lead.counsellor_id == filters.counsellor_id)
            if filters.branch_id and filters.branch_id != "all":
                stmt = stmt.where(Lead.preferred_branch_id == filters.branch_id)
            if filters.search_term:
                pattern = f"%{filters.search_term.strip()}%"
                stmt = stmt.where(
                    or_(
                        Lead.parent_name.ilike(pattern),
                        Lead.child_name.ilike(pattern),
                        Lead.mobile.ilike(pattern),
                    )
                )

        stmt = stmt.order_by(Lead.created_at.desc(), Lead.id.desc())
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def get_lead(self, lead_id: str) -> Lead:
        """Get a lead with its interaction timeline.

        Raises:
            LeadNotFoundError: If the lead is not in this school.
        """
        return await self._get_owned_lead(lead_id, selectinload(Lead.interactions))

    async def create_lead(self, request: LeadCreateRequest) -> Lead:
        """Capture a new lead.

        The initial stage is NEW unless a valid stage is supplied, and an
        AUTOMATION entry records the capture channel.

        Raises:
            LeadValidationError: If status is not a stage, or the branch
                or counsellor is not in this school.
        """
        status = self._require_stage(request.status) if request.status else INITIAL_STAGE
        if request.preferred_branch_id:
            await self._verify_reference("preferred_branch_id", request.preferred_branch_id)
        if request.counsellor_id:
            await self._verify_reference("counsellor_id", request.counsellor_id)

        source = request.source or DEFAULT_LEAD_SOURCE
        lead = Lead(
            school_id=self._scope.school_id,
            parent_name=request.parent_name,
            child_name=request.child_name,
            mobile=request.mobile,
            email=request.email,
            source=source,
            status=status.value,
            score=request.score,
            priority=request.priority,
            program_interested=request.program_interested,
            preferred_branch_id=request.preferred_branch_id or None,
            counsellor_id=request.counsellor_id or None,
        )
        lead.interactions.append(
            LeadInteraction(
                type=InteractionType.AUTOMATION.value,
                content=f"Lead captured via {source}.",
            )
        )
        self._db.add(lead)
        await self._commit("create lead")

        logger.info("Lead created: %s school=%s", lead.id, self._scope.school_id)
        return lead

    async def update_lead_status(self, lead_id: str, new_status: str) -> Lead:
        """Move a lead to another stage.

        Any stage may follow any other. Concurrent moves are not
        serialised; the last write wins.

        Raises:
            LeadNotFoundError: If the lead is not in this school.
            LeadValidationError: If new_status is not a stage.
        """
        stage = self._require_stage(new_status)
        lead = await self._get_owned_lead(lead_id)

        previous = lead.status
        lead.status = stage.value
        await self._commit("update lead status")

        logger.info("Lead %s status: %s -> %s", lead.id, previous, stage.value)
        return lead

    async def update_lead(self, lead_id: str, request: LeadUpdateRequest) -> Lead:
        """Apply a partial update to a lead.

        Only fields present in the request are written. An empty string
        for preferred_branch_id, counsellor_id or program_interested
        clears the value.

        Raises:
            LeadNotFoundError: If the lead is not in this school.
            LeadValidationError: If a value is invalid for this school.
        """
        lead = await self._get_owned_lead(lead_id)
        changes: dict[str, Any] = request.model_dump(exclude_unset=True)

        for field_name in CLEARABLE_FIELDS:
            if changes.get(field_name) == "":
                changes[field_name] = None

        if "status" in changes:
            if changes["status"] is None:
                raise LeadValidationError("Status cannot be empty")
            changes["status"] = self._require_stage(changes["status"]).value

        for field_name in ("parent_name", "child_name"):
            if field_name in changes and changes[field_name] is None:
                raise LeadValidationError(f"{field_name} cannot be empty")

        for field_name in ("preferred_branch_id", "counsellor_id"):
            if changes.get(field_name):
                await self._verify_reference(field_name, changes[field_name])

        for field_name, value in changes.items():
            setattr(lead, field_name, value)
        await self._commit("update lead")

        logger.info("Lead updated: %s fields=%s", lead.id, sorted(changes))
        return lead

    async def assign_counsellor(
        self,
        lead_id: str,
        counsellor_id: str,
        actor_id: str | None = None,
    ) -> Lead:
        """Assign a staff member of the school as the lead's counsellor.

        Raises:
            LeadNotFoundError: If the lead is not in this school.
            LeadValidationError: If the counsellor is not staff of this school.
        """
        lead = await self._get_owned_lead(lead_id)
        counsellor = await self._verify_reference("counsellor_id", counsellor_id)

        lead.counsellor_id = counsellor.id
        self._db.add(
            LeadInteraction(
                lead_id=lead.id,
                staff_id=actor_id,
                type=InteractionType.STATUS_CHANGE.value,
                content=f"Lead assigned to {counsellor.full_name}.",
            )
        )
        await self._commit("assign counsellor")

        logger.info("Lead %s assigned to %s", lead.id, counsellor.id)
        return lead

    async def add_note(self, lead_id: str, content: str, staff_id: str | None = None) -> LeadInteraction:
        """Add a NOTE entry to the lead's timeline.

        Raises:
            LeadNotFoundError: If the lead is not in this school.
            LeadValidationError: If the note is blank or staff_id is foreign.
        """
        if not content or not content.strip():
            raise LeadValidationError("Note content cannot be empty")
        lead = await self._get_owned_lead(lead_id)
        if staff_id:
            await self._verify_reference("staff_id", staff_id)

        interaction = LeadInteraction(
            lead_id=lead.id,
            staff_id=staff_id or None,
            type=InteractionType.NOTE.value,
            content=content.strip(),
        )
        self._db.add(interaction)
        await self._commit("add note")

        logger.info("Note added to lead %s", lead.id)
        return interaction

    async def get_stats(self, now: datetime | None = None) -> LeadStats:
        """Compute admissions dashboard figures.

        Args:
            now: Reference time for the today/week/month windows.
        """
        now = now or utc_now()
        school_filter = Lead.school_id == self._scope.school_id

        async def count_since(since: datetime) -> int:
            stmt = select(func.count(Lead.id)).where(school_filter, Lead.created_at >= since)
            return (await self._db.execute(stmt)).scalar() or 0

        today = await count_since(start_of_day(now))
        week = await count_since(days_before(self._settings.recent_window_days, now))
        month = await count_since(start_of_month(now))

        status_rows = await self._db.execute(
            select(Lead.status, func.count(Lead.id)).where(school_filter).group_by(Lead.status)
        )
        by_status = {status: count for status, count in status_rows.all()}
        total = sum(by_status.values())
        enrolled = by_status.get(LeadStage.ENROLLED.value, 0)
        conversion_rate = round(enrolled / total * 100) if total else 0

        lead_count = func.count(Lead.id).label("lead_count")
        counsellor_rows = await self._db.execute(
            select(User, lead_count)
            .join(Lead, Lead.counsellor_id == User.id)
            .where(school_filter)
            .group_by(User.id)
            .order_by(desc(lead_count), User.first_name.asc())
            .limit(self._settings.top_counsellors)
        )
        staff_performance = [
            CounsellorPerformance(name=user.full_name, count=count)
            for user, count in counsellor_rows.all()
        ]

        return LeadStats(
            today=today,
            week=week,
            month=month,
            total=total,
            enrolled=enrolled,
            conversion_rate=conversion_rate,
            by_status=by_status,
            staff_performance=staff_performance,
        )

    async def list_counsellors(self) -> list[User]:
        """List staff who can own leads (ADMIN or STAFF), by first name."""
        stmt = self._scope.scoped(select(User).where(User.role.in_(COUNSELLOR_ROLES)), User)
        stmt = stmt.order_by(User.first_name.asc(), User.last_name.asc(), User.id.asc())
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def get_recent_activity(self, limit: int = RECENT_ACTIVITY_LIMIT) -> list[LeadActivity]:
        """Newest timeline entries across all of the school's leads.

        Interactions carry no school_id; they are scoped through their lead.
        """
        stmt = self._scope.scoped(
            select(LeadInteraction, Lead.parent_name, Lead.child_name, User)
            .join(Lead, LeadInteraction.lead_id == Lead.id)
            .outerjoin(User, LeadInteraction.staff_id == User.id),
            Lead,
        )
        stmt = stmt.order_by(LeadInteraction.created_at.desc(), LeadInteraction.id.desc()).limit(limit)
        result = await self._db.execute(stmt)

        return [
            LeadActivity(
                id=interaction.id,
                type=interaction.type,
                content=interaction.content,
                created_at=interaction.created_at,
                lead_id=interaction.lead_id,
                parent_name=parent_name,
                child_name=child_name,
                staff_name=staff.full_name if staff is not None else None,
            )
            for interaction, parent_name, child_name, staff in result.all()
        ]

    async def get_board(self, filters: LeadFilters | None = None) -> LeadBoard:
        """Group the school's leads into the pipeline board columns."""
        leads = await self.list_leads(filters)
        return build_board(LeadSummary.model_validate(lead) for lead in leads)

    async def _get_owned_lead(self, lead_id: str, *options: Any) -> Lead:
        try:
            return await self._scope.get_owned(Lead, lead_id, *options)
        except RecordNotFoundError as e:
            raise LeadNotFoundError(f"Lead {lead_id} not found") from e

    async def _verify_reference(self, field_name: str, record_id: str) -> Any:
        """Check a client-supplied branch or staff id against this school."""
        try:
            if field_name == "preferred_branch_id":
                return await self._scope.verify_branch(record_id)
            return await self._scope.verify_user(record_id)
        except RecordNotFoundError as e:
            raise LeadValidationError(f"Invalid {field_name}: {record_id}") from e

    @staticmethod
    def _require_stage(value: str) -> LeadStage:
        stage = parse_stage(value)
        if stage is None:
            allowed = ", ".join(s.value for s in LeadStage)
            raise LeadValidationError(f"Invalid status '{value}'. Expected one of: {allowed}")
        return stage

    async def _commit(self, operation: str) -> None:
        try:
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error("Failed to %s: %s", operation, e)
            raise LeadPersistenceError(f"Failed to {operation}", e) from e
