# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admissions domain package.

This package provides the lead pipeline:
- LeadStage and the kanban board grouping
- LeadService for tenant-scoped lead operations
- Server actions returning structured results for the UI
- The counsellor picker and the recent activity feed
"""

from src.domains.admissions.actions import (
    add_lead_note_action,
    assign_lead_action,
    create_branch_action,
    create_lead_action,
    get_board_action,
    get_branches_action,
    get_counsellors_action,
    get_lead_action,
    get_lead_stats_action,
    get_recent_activity_action,
    list_leads_action,
    update_lead_action,
    update_lead_status_action,
)
from src.domains.admissions.service import (
    LeadNotFoundError,
    LeadPersistenceError,
    LeadService,
    LeadServiceError,
    LeadValidationError,
)
from src.domains.admissions.stages import (
    INITIAL_STAGE,
    STAGE_LABELS,
    InteractionType,
    LeadStage,
    build_board,
    effective_score,
    parse_stage,
)

__all__ = [
    # Stages
    "LeadStage",
    "InteractionType",
    "INITIAL_STAGE",
    "STAGE_LABELS",
    "parse_stage",
    "effective_score",
    "build_board",
    # Service
    "LeadService",
    "LeadServiceError",
    "LeadNotFoundError",
    "LeadValidationError",
    "LeadPersistenceError",
    # Actions
    "list_leads_action",
    "update_lead_action",
    "update_lead_status_action",
    "create_lead_action",
    "get_board_action",
    "get_lead_stats_action",
    "get_branches_action",
    "create_branch_action",
    "get_lead_action",
    "add_lead_note_action",
    "assign_lead_action",
    "get_counsellors_action",
    "get_recent_activity_action",
]
