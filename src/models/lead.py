# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admissions lead request/response schemas.

Status values are accepted as plain strings here and checked against
the pipeline stages by LeadService, so that an unknown stage surfaces
as a LeadValidationError rather than a schema error.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from src.models.common import ActionResult

DEFAULT_LEAD_SCORE = 50
DEFAULT_LEAD_SOURCE = "Direct"


def effective_score(score: int | None) -> int:
    """Score shown for a lead; unscored leads count as neutral."""
    return DEFAULT_LEAD_SCORE if score is None else score


class LeadCreateRequest(BaseModel):
    """Request to capture a new inquiry (public form or staff entry)."""

    parent_name: str = Field(min_length=1, max_length=200)
    child_name: str = Field(min_length=1, max_length=200)
    mobile: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    source: str | None = Field(default=None, max_length=50, description="Channel of origin")
    status: str | None = Field(default=None, description="Initial stage, NEW when omitted")
    priority: str | None = Field(default=None, max_length=20)
    program_interested: str | None = Field(default=None, max_length=100)
    preferred_branch_id: str | None = None
    counsellor_id: str | None = None
    score: int | None = Field(default=None, ge=0, le=100)


class LeadUpdateRequest(BaseModel):
    """Partial update of a lead's mutable fields.

    Only fields present in the payload are applied. For the optional
    foreign keys and program_interested an empty string clears the value.
    """

    parent_name: str | None = Field(default=None, min_length=1, max_length=200)
    child_name: str | None = Field(default=None, min_length=1, max_length=200)
    mobile: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    source: str | None = Field(default=None, max_length=50)
    status: str | None = None
    priority: str | None = Field(default=None, max_length=20)
    program_interested: str | None = Field(default=None, max_length=100)
    preferred_branch_id: str | None = None
    counsellor_id: str | None = None
    score: int | None = Field(default=None, ge=0, le=100)


class LeadStatusUpdateRequest(BaseModel):
    status: str


class LeadNoteRequest(BaseModel):
    content: str = Field(min_length=1)
    staff_id: str | None = None


class LeadAssignRequest(BaseModel):
    counsellor_id: str


class LeadFilters(BaseModel):
    """Optional list filters. "all" for status or counsellor means no filter."""

    status: str | None = None
    counsellor_id: str | None = None
    branch_id: str | None = None
    search_term: str | None = None


class LeadSummary(BaseModel):
    """Lead card as consumed by the list view and the kanban board."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    parent_name: str
    child_name: str
    status: str
    score: int = DEFAULT_LEAD_SCORE
    source: str = DEFAULT_LEAD_SOURCE
    mobile: str | None = None
    email: str | None = None
    priority: str | None = None
    program_interested: str | None = None
    preferred_branch_id: str | None = None
    counsellor_id: str | None = None
    created_at: datetime | None = None

    @field_validator("score", mode="before")
    @classmethod
    def default_score(cls, value: int | None) -> int:
        return effective_score(value)

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, value: str | None) -> str:
        return value or DEFAULT_LEAD_SOURCE


class LeadInteractionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    content: str
    staff_id: str | None = None
    created_at: datetime


class LeadDetail(LeadSummary):
    interactions: list[LeadInteractionResponse] = Field(default_factory=list)


class BoardColumn(BaseModel):
    """One kanban column: a pipeline stage and the leads in it."""

    stage: str
    label: str
    leads: list[LeadSummary] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.leads)


class LeadBoard(BaseModel):
    """Kanban board: the five stage columns in order.

    unknown holds leads whose stored status is not a known stage, so
    they are visible to operators instead of silently disappearing.
    """

    columns: list[BoardColumn]
    unknown: list[LeadSummary] = Field(default_factory=list)


class CounsellorOption(BaseModel):
    """Staff member offered in the counsellor picker."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str = ""


class LeadActivity(BaseModel):
    """One entry of the school-wide recent activity feed."""

    id: str
    type: str
    content: str
    created_at: datetime
    lead_id: str
    parent_name: str
    child_name: str
    staff_name: str | None = None


class CounsellorPerformance(BaseModel):
    name: str
    count: int


class LeadStats(BaseModel):
    """Admissions dashboard figures."""

    today: int
    week: int
    month: int
    total: int
    enrolled: int
    conversion_rate: int = Field(description="Enrolled share of all leads, in percent")
    by_status: dict[str, int] = Field(default_factory=dict)
    staff_performance: list[CounsellorPerformance] = Field(default_factory=list)


# Server-action result envelopes


class LeadListResult(ActionResult):
    leads: list[LeadSummary] = Field(default_factory=list)


class LeadResult(ActionResult):
    lead: LeadDetail | None = None


class LeadBoardResult(ActionResult):
    board: LeadBoard | None = None


class LeadStatsResult(ActionResult):
    stats: LeadStats | None = None


class CounsellorListResult(ActionResult):
    counsellors: list[CounsellorOption] = Field(default_factory=list)


class LeadActivityResult(ActionResult):
    activities: list[LeadActivity] = Field(default_factory=list)
