# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Lead service."""

from datetime import datetime, timedelta, timezone
from itertools import permutations
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from src.core.config import PipelineSettings
from src.domains.admissions.service import (
    LeadNotFoundError,
    LeadPersistenceError,
    LeadService,
    LeadValidationError,
)
from src.domains.admissions.stages import LeadStage
from src.domains.tenancy import TenantScope
from src.infrastructure.database.models import Lead, LeadInteraction
from src.models.lead import LeadCreateRequest, LeadFilters, LeadUpdateRequest

STAGES = [stage.value for stage in LeadStage]


@pytest_asyncio.fixture
async def oakwood(factory):
    return await factory.school("Oakwood", slug="oakwood")


@pytest_asyncio.fixture
async def elm(factory):
    return await factory.school("Elm", slug="elm")


@pytest.fixture
def service(db_session, oakwood):
    """Create lead service scoped to Oakwood."""
    return LeadService(TenantScope(db_session, oakwood), settings=PipelineSettings())


@pytest.mark.asyncio
class TestListLeads:
    """Tests for list_leads."""

    async def test_only_own_leads_newest_first(self, service, factory, oakwood, elm):
        older = await factory.lead(oakwood, parent_name="Older")
        newer = await factory.lead(oakwood, parent_name="Newer")
        await factory.lead(elm)

        leads = await service.list_leads()

        assert [lead.id for lead in leads] == [newer.id, older.id]

    async def test_status_filter(self, service, factory, oakwood):
        await factory.lead(oakwood, status="NEW")
        contacted = await factory.lead(oakwood, status="CONTACTED")

        leads = await service.list_leads(LeadFilters(status="CONTACTED"))

        assert [lead.id for lead in leads] == [contacted.id]

    async def test_all_means_no_filter(self, service, factory, oakwood):
        await factory.lead(oakwood, status="NEW")
        await factory.lead(oakwood, status="CONTACTED")

        leads = await service.list_leads(LeadFilters(status="all", counsellor_id="all"))

        assert len(leads) == 2

    async def test_counsellor_and_branch_filters(self, service, factory, oakwood):
        counsellor = await factory.user(oakwood)
        branch = await factory.branch(oakwood, "East")
        match = await factory.lead(oakwood, counsellor_id=counsellor.id, preferred_branch_id=branch.id)
        await factory.lead(oakwood, counsellor_id=counsellor.id)

        leads = await service.list_leads(
            LeadFilters(counsellor_id=counsellor.id, branch_id=branch.id)
        )

        assert [lead.id for lead in leads] == [match.id]

    async def test_search_matches_names_and_mobile(self, service, factory, oakwood):
        by_parent = await factory.lead(oakwood, parent_name="Sunita Menon")
        by_child = await factory.lead(oakwood, child_name="Arjun Menon")
        by_mobile = await factory.lead(oakwood, mobile="+919811122233")
        await factory.lead(oakwood, parent_name="Other", child_name="Other")

        menon = await service.list_leads(LeadFilters(search_term="menon"))
        mobile = await service.list_leads(LeadFilters(search_term="1112"))

        assert {lead.id for lead in menon} == {by_parent.id, by_child.id}
        assert [lead.id for lead in mobile] == [by_mobile.id]


@pytest.mark.asyncio
class TestUpdateLeadStatus:
    """Tests for stage moves."""

    @pytest.mark.parametrize(("start", "target"), list(permutations(STAGES, 2)))
    async def test_any_stage_to_any_other(self, service, factory, oakwood, start, target):
        lead = await factory.lead(oakwood, status=start)

        updated = await service.update_lead_status(lead.id, target)

        assert updated.status == target

    async def test_enrolled_back_to_new(self, service, factory, oakwood, db_session):
        lead = await factory.lead(oakwood, status="ENROLLED")

        await service.update_lead_status(lead.id, "NEW")

        stored = await db_session.execute(select(Lead.status).where(Lead.id == lead.id))
        assert stored.scalar_one() == "NEW"

    @pytest.mark.parametrize("status", ["LOST", "new", ""])
    async def test_unknown_status_rejected(self, service, factory, oakwood, status):
        lead = await factory.lead(oakwood, status="NEW")

        with pytest.raises(LeadValidationError):
            await service.update_lead_status(lead.id, status)

    async def test_cross_tenant_lead_is_not_found(self, service, factory, elm, db_session):
        foreign = await factory.lead(elm, status="NEW")

        with pytest.raises(LeadNotFoundError):
            await service.update_lead_status(foreign.id, "ENROLLED")

        stored = await db_session.execute(select(Lead.status).where(Lead.id == foreign.id))
        assert stored.scalar_one() == "NEW"

    async def test_missing_lead_is_not_found(self, service):
        with pytest.raises(LeadNotFoundError):
            await service.update_lead_status("missing", "NEW")


@pytest.mark.asyncio
class TestCreateLead:
    """Tests for lead capture."""

    async def test_defaults(self, service, oakwood):
        lead = await service.create_lead(
            LeadCreateRequest(parent_name="Meera", child_name="Ravi", source="Website")
        )

        assert lead.school_id == oakwood.id
        assert lead.status == "NEW"
        assert lead.score is None
        assert [(i.type, i.content) for i in lead.interactions] == [
            ("AUTOMATION", "Lead captured via Website.")
        ]

    async def test_missing_source_is_direct(self, service):
        lead = await service.create_lead(LeadCreateRequest(parent_name="Meera", child_name="Ravi"))

        assert lead.source == "Direct"
        assert lead.interactions[0].content == "Lead captured via Direct."

    async def test_foreign_branch_rejected(self, service, factory, elm):
        foreign = await factory.branch(elm, "Main Branch")

        with pytest.raises(LeadValidationError):
            await service.create_lead(
                LeadCreateRequest(
                    parent_name="Meera",
                    child_name="Ravi",
                    preferred_branch_id=foreign.id,
                )
            )

    async def test_foreign_counsellor_rejected(self, service, factory, elm):
        foreign = await factory.user(elm)

        with pytest.raises(LeadValidationError):
            await service.create_lead(
                LeadCreateRequest(parent_name="Meera", child_name="Ravi", counsellor_id=foreign.id)
            )

    async def test_invalid_initial_status(self, service):
        with pytest.raises(LeadValidationError):
            await service.create_lead(
                LeadCreateRequest(parent_name="Meera", child_name="Ravi", status="LOST")
            )


@pytest.mark.asyncio
class TestUpdateLead:
    """Tests for partial updates."""

    async def test_only_sent_fields_change(self, service, factory, oakwood):
        lead = await factory.lead(oakwood, mobile="111", priority="HIGH")

        updated = await service.update_lead(lead.id, LeadUpdateRequest(mobile="222"))

        assert updated.mobile == "222"
        assert updated.priority == "HIGH"

    async def test_empty_string_clears_optional_references(self, service, factory, oakwood):
        branch = await factory.branch(oakwood, "East")
        counsellor = await factory.user(oakwood)
        lead = await factory.lead(
            oakwood,
            preferred_branch_id=branch.id,
            counsellor_id=counsellor.id,
            program_interested="Grade 2",
        )

        updated = await service.update_lead(
            lead.id,
            LeadUpdateRequest(preferred_branch_id="", counsellor_id="", program_interested=""),
        )

        assert updated.preferred_branch_id is None
        assert updated.counsellor_id is None
        assert updated.program_interested is None

    async def test_status_and_score(self, service, factory, oakwood):
        lead = await factory.lead(oakwood)

        updated = await service.update_lead(lead.id, LeadUpdateRequest(status="INTERESTED", score=80))

        assert updated.status == "INTERESTED"
        assert updated.score == 80

    async def test_foreign_branch_rejected(self, service, factory, oakwood, elm):
        lead = await factory.lead(oakwood)
        foreign = await factory.branch(elm, "Main Branch")

        with pytest.raises(LeadValidationError):
            await service.update_lead(lead.id, LeadUpdateRequest(preferred_branch_id=foreign.id))

    async def test_null_status_rejected(self, service, factory, oakwood):
        lead = await factory.lead(oakwood)

        with pytest.raises(LeadValidationError):
            await service.update_lead(lead.id, LeadUpdateRequest(status=None))

    async def test_cross_tenant_update_is_not_found(self, service, factory, elm):
        foreign = await factory.lead(elm)

        with pytest.raises(LeadNotFoundError):
            await service.update_lead(foreign.id, LeadUpdateRequest(mobile="999"))


@pytest.mark.asyncio
class TestTimeline:
    """Tests for counsellor assignment and notes."""

    async def test_assign_counsellor(self, service, factory, oakwood, db_session):
        lead = await factory.lead(oakwood)
        counsellor = await factory.user(oakwood, first_name="Priya", last_name="Nair")

        updated = await service.assign_counsellor(lead.id, counsellor.id)

        assert updated.counsellor_id == counsellor.id
        entries = await db_session.execute(
            select(LeadInteraction).where(LeadInteraction.lead_id == lead.id)
        )
        (entry,) = entries.scalars().all()
        assert entry.type == "STATUS_CHANGE"
        assert entry.content == "Lead assigned to Priya Nair."

    async def test_assign_foreign_counsellor(self, service, factory, oakwood, elm):
        lead = await factory.lead(oakwood)
        foreign = await factory.user(elm)

        with pytest.raises(LeadValidationError):
            await service.assign_counsellor(lead.id, foreign.id)

    async def test_add_note_and_read_timeline(self, service, factory, oakwood):
        lead = await factory.lead(oakwood)
        staff = await factory.user(oakwood)

        note = await service.add_note(lead.id, "  Called, asked for fee sheet.  ", staff.id)
        detail = await service.get_lead(lead.id)

        assert note.type == "NOTE"
        assert note.content == "Called, asked for fee sheet."
        assert [i.id for i in detail.interactions] == [note.id]

    async def test_blank_note_rejected(self, service, factory, oakwood):
        lead = await factory.lead(oakwood)

        with pytest.raises(LeadValidationError):
            await service.add_note(lead.id, "   ")


@pytest.mark.asyncio
class TestCounsellorsAndActivity:
    """Tests for the counsellor picker and the recent activity feed."""

    async def test_counsellors_by_first_name(self, service, factory, oakwood, elm):
        await factory.user(oakwood, first_name="Vikram", role="ADMIN")
        await factory.user(oakwood, first_name="Anita", role="STAFF")
        await factory.user(oakwood, first_name="Bala", role="TEACHER")
        await factory.user(elm, first_name="Aarav", role="STAFF")

        counsellors = await service.list_counsellors()

        assert [user.first_name for user in counsellors] == ["Anita", "Vikram"]

    async def test_recent_activity_newest_first_and_limited(self, service, factory, oakwood):
        lead = await factory.lead(oakwood, parent_name="Meera Iyer", child_name="Ravi Iyer")
        for index in range(12):
            await factory.interaction(lead, content=f"entry {index}")

        activity = await service.get_recent_activity()

        assert len(activity) == 10
        assert [entry.content for entry in activity] == [f"entry {i}" for i in range(11, 1, -1)]
        assert {(entry.parent_name, entry.child_name) for entry in activity} == {
            ("Meera Iyer", "Ravi Iyer")
        }

    async def test_recent_activity_excludes_other_schools(self, service, factory, oakwood, elm):
        own = await factory.lead(oakwood)
        foreign = await factory.lead(elm, parent_name="Other Parent")
        await factory.interaction(own, content="ours")
        # Newer than anything in Oakwood
        await factory.interaction(foreign, content="theirs")

        activity = await service.get_recent_activity()

        assert [entry.content for entry in activity] == ["ours"]
        assert all(entry.lead_id == own.id for entry in activity)

    async def test_recent_activity_staff_name(self, service, factory, oakwood):
        lead = await factory.lead(oakwood)
        staff = await factory.user(oakwood, first_name="Priya", last_name="Nair")
        await factory.interaction(lead, content="automated", type="AUTOMATION")
        await factory.interaction(lead, content="called", staff=staff)

        first, second = await service.get_recent_activity(limit=2)

        assert (first.content, first.staff_name) == ("called", "Priya Nair")
        assert (second.content, second.staff_name) == ("automated", None)


@pytest.mark.asyncio
class TestStatsAndBoard:
    """Tests for dashboard figures and the board."""

    async def test_stats(self, service, factory, oakwood, elm):
        now = datetime(2025, 3, 20, 15, 0, tzinfo=timezone.utc)
        priya = await factory.user(oakwood, first_name="Priya", last_name="Nair")
        dev = await factory.user(oakwood, first_name="Dev", last_name="Shah")

        await factory.lead(oakwood, status="ENROLLED", counsellor_id=priya.id, created_at=now - timedelta(hours=2))
        await factory.lead(oakwood, status="NEW", counsellor_id=priya.id, created_at=now - timedelta(days=3))
        await factory.lead(oakwood, status="CONTACTED", counsellor_id=dev.id, created_at=now - timedelta(days=12))
        await factory.lead(oakwood, status="ENROLLED", created_at=now - timedelta(days=40))
        await factory.lead(elm, status="ENROLLED", created_at=now)

        stats = await service.get_stats(now=now)

        assert stats.today == 1
        assert stats.week == 2
        assert stats.month == 3
        assert stats.total == 4
        assert stats.enrolled == 2
        assert stats.conversion_rate == 50
        assert stats.by_status == {"ENROLLED": 2, "NEW": 1, "CONTACTED": 1}
        assert [(p.name, p.count) for p in stats.staff_performance] == [
            ("Priya Nair", 2),
            ("Dev Shah", 1),
        ]

    async def test_stats_without_leads(self, service):
        stats = await service.get_stats()

        assert stats.total == 0
        assert stats.conversion_rate == 0
        assert stats.staff_performance == []

    async def test_board_applies_score_default(self, service, factory, oakwood):
        await factory.lead(oakwood, status="TOUR_SCHEDULED")
        await factory.lead(oakwood, status="TOUR_SCHEDULED", score=0)
        await factory.lead(oakwood, status="WAITLIST")

        board = await service.get_board()

        tour = next(c for c in board.columns if c.stage == "TOUR_SCHEDULED")
        assert sorted(lead.score for lead in tour.leads) == [0, 50]
        assert [lead.status for lead in board.unknown] == ["WAITLIST"]


@pytest.mark.asyncio
class TestPersistenceErrors:
    """Database failures surface as LeadPersistenceError."""

    async def test_commit_failure_is_wrapped(self, service, factory, oakwood, db_session, monkeypatch):
        lead = await factory.lead(oakwood)
        monkeypatch.setattr(
            db_session,
            "commit",
            AsyncMock(side_effect=OperationalError("UPDATE leads", {}, Exception("locked"))),
        )

        with pytest.raises(LeadPersistenceError) as exc_info:
            await service.update_lead_status(lead.id, "CONTACTED")

        assert isinstance(exc_info.value.original_error, OperationalError)
