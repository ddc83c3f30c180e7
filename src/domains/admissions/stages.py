# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admissions pipeline stages and kanban board grouping.

The pipeline is a fixed, ordered set of five stages. Staff may move a
lead between any two stages, including backwards, so there is no
transition table: any stage is a valid target from any other.
"""

import logging
from collections.abc import Iterable
from enum import Enum

from src.models.lead import BoardColumn, LeadBoard, LeadSummary, effective_score

__all__ = [
    "LeadStage",
    "STAGE_LABELS",
    "INITIAL_STAGE",
    "InteractionType",
    "parse_stage",
    "effective_score",
    "build_board",
]

logger = logging.getLogger(__name__)


class LeadStage(str, Enum):
    """Pipeline stages in board order."""

    NEW = "NEW"
    CONTACTED = "CONTACTED"
    INTERESTED = "INTERESTED"
    TOUR_SCHEDULED = "TOUR_SCHEDULED"
    ENROLLED = "ENROLLED"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


STAGE_LABELS: dict[LeadStage, str] = {
    LeadStage.NEW: "New Leads",
    LeadStage.CONTACTED: "Contacted",
    LeadStage.INTERESTED: "Interested",
    LeadStage.TOUR_SCHEDULED: "Tour Scheduled",
    LeadStage.ENROLLED: "Enrolled",
}

INITIAL_STAGE = LeadStage.NEW


class InteractionType(str, Enum):
    """Kinds of timeline entries recorded on a lead."""

    NOTE = "NOTE"
    STATUS_CHANGE = "STATUS_CHANGE"
    AUTOMATION = "AUTOMATION"


def parse_stage(value: str | None) -> LeadStage | None:
    """Map a stored or submitted status string to a stage, None if unknown."""
    if value is None:
        return None
    try:
        return LeadStage(value)
    except ValueError:
        return None


def build_board(leads: Iterable[LeadSummary]) -> LeadBoard:
    """Partition leads into the five stage columns, preserving input order.

    Leads whose status is not a known stage land in LeadBoard.unknown and
    are reported once in a warning.
    """
    columns = {stage: BoardColumn(stage=stage.value, label=stage.label) for stage in LeadStage}
    unknown: list[LeadSummary] = []

    for lead in leads:
        stage = parse_stage(lead.status)
        if stage is None:
            unknown.append(lead)
        else:
            columns[stage].leads.append(lead)

    if unknown:
        logger.warning(
            "%d leads have an unrecognised status and are not on any column: %s",
            len(unknown),
            ", ".join(f"{lead.id}={lead.status}" for lead in unknown),
        )

    return LeadBoard(columns=list(columns.values()), unknown=unknown)
