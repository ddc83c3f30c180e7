# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the leads and branches API.

Runs the FastAPI application over an in-memory database by overriding
the session dependency.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.dependencies import get_db

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def client(db_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""
    app = create_app()

    async def override_get_db():
        async with db_sessionmaker() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def oakwood(factory):
    return await factory.school("Oakwood", slug="oakwood")


@pytest.mark.asyncio
class TestLeadsAPI:
    """Lead pipeline endpoints."""

    async def test_capture_list_and_move(self, client, oakwood, sample_lead_data):
        created = await client.post("/api/v1/schools/oakwood/leads", json=sample_lead_data)
        assert created.status_code == 200
        lead_id = created.json()["lead"]["id"]

        listed = await client.get("/api/v1/schools/oakwood/leads")
        body = listed.json()
        assert body["success"] is True
        assert [(lead["id"], lead["score"]) for lead in body["leads"]] == [(lead_id, 50)]

        moved = await client.put(
            f"/api/v1/schools/oakwood/leads/{lead_id}/status",
            json={"status": "TOUR_SCHEDULED"},
        )
        assert moved.json() == {"success": True, "error": None}

        board = (await client.get("/api/v1/schools/oakwood/leads/board")).json()["board"]
        tour = next(column for column in board["columns"] if column["stage"] == "TOUR_SCHEDULED")
        assert tour["label"] == "Tour Scheduled"
        assert tour["count"] == 1

    async def test_status_filter_query(self, client, factory, oakwood):
        await factory.lead(oakwood, status="NEW")
        await factory.lead(oakwood, status="ENROLLED")

        response = await client.get("/api/v1/schools/oakwood/leads", params={"status": "ENROLLED"})

        assert [lead["status"] for lead in response.json()["leads"]] == ["ENROLLED"]

    async def test_invalid_status_is_structured_error(self, client, factory, oakwood):
        lead = await factory.lead(oakwood)

        response = await client.patch(
            f"/api/v1/schools/oakwood/leads/{lead.id}",
            json={"status": "LOST"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is False

    async def test_cross_tenant_detail_is_404(self, client, factory, oakwood):
        elm = await factory.school("Elm", slug="elm")
        foreign = await factory.lead(elm)

        response = await client.get(f"/api/v1/schools/oakwood/leads/{foreign.id}")

        assert response.status_code == 404

    async def test_unknown_school_detail_is_404(self, client):
        response = await client.get("/api/v1/schools/nowhere/leads/some-id")

        assert response.status_code == 404

    async def test_notes_and_assignment(self, client, factory, oakwood):
        lead = await factory.lead(oakwood)
        counsellor = await factory.user(oakwood, first_name="Priya", last_name="Nair")

        note = await client.post(
            f"/api/v1/schools/oakwood/leads/{lead.id}/notes",
            json={"content": "Asked about transport."},
        )
        assigned = await client.post(
            f"/api/v1/schools/oakwood/leads/{lead.id}/assign",
            json={"counsellor_id": counsellor.id},
        )
        detail = await client.get(f"/api/v1/schools/oakwood/leads/{lead.id}")

        assert note.status_code == 201
        assert assigned.json()["counsellor_id"] == counsellor.id
        types = sorted(entry["type"] for entry in detail.json()["interactions"])
        assert types == ["NOTE", "STATUS_CHANGE"]

    async def test_counsellors(self, client, factory, oakwood):
        await factory.user(oakwood, first_name="Priya", role="ADMIN")
        await factory.user(oakwood, first_name="Kabir", role="TEACHER")

        body = (await client.get("/api/v1/schools/oakwood/leads/counsellors")).json()

        assert body["success"] is True
        assert [c["first_name"] for c in body["counsellors"]] == ["Priya"]

    async def test_recent_activity(self, client, factory, oakwood):
        elm = await factory.school("Elm", slug="elm")
        await factory.interaction(await factory.lead(oakwood), content="ours")
        await factory.interaction(await factory.lead(elm), content="theirs")

        body = (await client.get("/api/v1/schools/oakwood/leads/activity")).json()

        assert [a["content"] for a in body["activities"]] == ["ours"]

    async def test_stats(self, client, factory, oakwood):
        await factory.lead(oakwood, status="ENROLLED")
        await factory.lead(oakwood, status="NEW")

        stats = (await client.get("/api/v1/schools/oakwood/leads/stats")).json()["stats"]

        assert stats["total"] == 2
        assert stats["conversion_rate"] == 50


@pytest.mark.asyncio
class TestBranchesAPI:
    """Branch endpoints."""

    async def test_create_and_list(self, client, oakwood):
        created = await client.post("/api/v1/schools/oakwood/branches", json={"name": "East"})
        listed = await client.get("/api/v1/schools/oakwood/branches")

        assert created.json()["success"] is True
        assert [branch["name"] for branch in listed.json()["branches"]] == ["East"]

    async def test_delete_branch_in_use_conflicts(self, client, factory, oakwood):
        branch = await factory.branch(oakwood, "East")
        await factory.student(oakwood, branch=branch)

        response = await client.delete(f"/api/v1/schools/oakwood/branches/{branch.id}")

        assert response.status_code == 409

    async def test_delete_unused_branch(self, client, factory, oakwood):
        branch = await factory.branch(oakwood, "East")

        response = await client.delete(f"/api/v1/schools/oakwood/branches/{branch.id}")

        assert response.status_code == 204


@pytest.mark.asyncio
class TestHealth:
    async def test_health_without_database_engine(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"]["status"] == "unhealthy"
