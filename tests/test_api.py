"""
End-to-end tests through the FastAPI app (httpx over ASGI, in-memory storage).
"""

import datetime as dt
import json
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from backend.app import create_app
from backend.responses import strip_secrets
from data.memory_storage import MemoryStorage
from domain.errors import UpstreamError

ANALYSIS = {
    "clarity": 80,
    "marketNeed": 70,
    "teamStrength": 90,
    "overallScore": 85,
    "suggestion": "Add market sizing.",
    "swotAnalysis": {"strengths": ["Team"], "weaknesses": [], "opportunities": [], "threats": []},
}


def _has_password_key(value):
    if isinstance(value, dict):
        return "password" in value or any(_has_password_key(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_password_key(v) for v in value)
    return False


async def register(client, username, role, **extra):
    body = {
        "username": username,
        "password": "password123",
        "fullName": f"{username.title()} Example",
        "email": f"{username}@example.com",
        "role": role,
        **extra,
    }
    resp = await client.post("/api/auth/register", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_startup(client, owner_id, name="Acme", **extra):
    body = {"userId": owner_id, "name": name, "fundingMin": 100_000, "fundingMax": 500_000, **extra}
    resp = await client.post("/api/startups", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
async def alice(client):
    return await register(client, "alice", "entrepreneur")


@pytest.fixture
async def bob(client):
    return await register(client, "bob", "investor", interests=["HealthTech"])


@pytest.fixture
async def acme(client, alice):
    return await create_startup(client, alice["id"])


class TestScenarios:
    """The four reference user journeys."""

    async def test_a_owner_lists_own_startup(self, client, alice, acme):
        resp = await client.get(f"/api/users/{alice['id']}/startups")
        assert resp.status_code == 200
        startups = resp.json()
        assert [s["name"] for s in startups] == ["Acme"]
        assert startups[0]["fundingMin"] == 100_000
        assert startups[0]["fundingMax"] == 500_000

    async def test_b_interest_notifies_owner(self, client, alice, bob, acme):
        resp = await client.post("/api/interests", json={"investorId": bob["id"], "startupId": acme["id"]})
        assert resp.status_code == 201

        notes = (await client.get(f"/api/users/{alice['id']}/notifications")).json()
        assert len(notes) == 1
        assert notes[0]["type"] == "interest"
        assert "Acme" in notes[0]["message"]
        assert notes[0]["link"] == f"/startup/{acme['id']}"
        assert "sourceKey" not in notes[0]

    async def test_c_upcoming_events_only(self, client):
        now = dt.datetime.now(dt.timezone.utc)
        for title, delta in (("Next week", 7), ("Yesterday", -1)):
            resp = await client.post(
                "/api/events", json={"title": title, "eventDate": (now + dt.timedelta(days=delta)).isoformat()}
            )
            assert resp.status_code == 201

        upcoming = (await client.get("/api/events", params={"upcoming": "true"})).json()
        assert [e["title"] for e in upcoming] == ["Next week"]
        assert len((await client.get("/api/events")).json()) == 2

    async def test_d_mark_read_is_idempotent(self, client, alice, bob, acme):
        await client.post("/api/interests", json={"investorId": bob["id"], "startupId": acme["id"]})
        note = (await client.get(f"/api/users/{alice['id']}/notifications")).json()[0]
        assert note["read"] is False

        for _ in range(2):
            resp = await client.patch(f"/api/notifications/{note['id']}/read")
            assert resp.status_code == 200
            assert resp.json()["read"] is True


class TestAuth:

    async def test_register_never_returns_password(self, client):
        user = await register(client, "alice", "entrepreneur")
        assert "password" not in user
        assert user["fullName"] == "Alice Example"

    async def test_duplicate_username_is_rejected(self, client, alice):
        body = {
            "username": "alice", "password": "password123", "fullName": "Other Alice",
            "email": "other@example.com", "role": "entrepreneur",
        }
        resp = await client.post("/api/auth/register", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Username already taken"

    async def test_invalid_registration_lists_every_field(self, client):
        resp = await client.post(
            "/api/auth/register",
            json={"username": "al", "password": "123", "fullName": "A", "email": "nope", "role": "entrepreneur"},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Invalid data"
        assert {"username", "password", "fullName", "email"} <= {e["field"] for e in body["errors"]}

    async def test_login(self, client, alice):
        resp = await client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
        assert resp.status_code == 200
        assert resp.json()["id"] == alice["id"]
        assert not _has_password_key(resp.json())

    async def test_login_failures_look_identical(self, client, alice):
        wrong_password = await client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
        unknown_user = await client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})
        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json() == {"message": "Invalid username or password"}


class TestResources:

    async def test_profile_update_cannot_touch_password(self, client, alice):
        resp = await client.patch(f"/api/users/{alice['id']}", json={"bio": "Builder", "password": "hijack1"})
        assert resp.status_code == 200
        assert resp.json()["bio"] == "Builder"
        login = await client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
        assert login.status_code == 200

    async def test_startup_filters(self, client, alice):
        await create_startup(client, alice["id"], "EcoTrack", industry="Sustainability", tags=["CleanTech"])
        await create_startup(client, alice["id"], "MediConnect", industry="HealthTech", tags=["AI", "SaaS"])
        resp = await client.get("/api/startups", params={"industry": "HealthTech", "tags": "SaaS,B2B"})
        assert [s["name"] for s in resp.json()] == ["MediConnect"]

    async def test_inverted_funding_range_is_rejected(self, client, alice):
        resp = await client.post(
            "/api/startups", json={"userId": alice["id"], "name": "Upside", "fundingMin": 10, "fundingMax": 5}
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "fundingMin"

    async def test_unknown_startup_is_404(self, client):
        resp = await client.get("/api/startups/424242")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Startup not found"}

    async def test_delete_is_idempotent(self, client, acme):
        first = await client.delete(f"/api/startups/{acme['id']}")
        second = await client.delete(f"/api/startups/{acme['id']}")
        assert first.status_code == second.status_code == 204
        assert (await client.get(f"/api/startups/{acme['id']}")).status_code == 404

    async def test_delete_of_unknown_interest_and_event_is_204(self, client):
        assert (await client.delete("/api/interests/424242")).status_code == 204
        assert (await client.delete("/api/events/424242")).status_code == 204

    async def test_duplicate_interest_is_rejected(self, client, bob, acme):
        body = {"investorId": bob["id"], "startupId": acme["id"]}
        assert (await client.post("/api/interests", json=body)).status_code == 201
        assert (await client.post("/api/interests", json=body)).status_code == 400

    async def test_interest_lists_and_update(self, client, bob, acme):
        interest = (await client.post(
            "/api/interests", json={"investorId": bob["id"], "startupId": acme["id"], "notes": "Promising"}
        )).json()
        resp = await client.patch(f"/api/interests/{interest['id']}", json={"status": "accepted"})
        assert resp.json()["status"] == "accepted"
        assert resp.json()["notes"] == "Promising"
        assert len((await client.get(f"/api/investors/{bob['id']}/interests")).json()) == 1
        assert len((await client.get(f"/api/startups/{acme['id']}/interests")).json()) == 1

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAiEndpoints:

    async def test_feedback_missing_is_404(self, client, acme):
        resp = await client.get(f"/api/startups/{acme['id']}/ai-feedback")
        assert resp.status_code == 404

    async def test_resubmitted_feedback_replaces_and_notifies_again(self, client, alice, acme):
        body = {"startupId": acme["id"], "clarity": 60, "marketNeed": 60, "teamStrength": 60}
        first = (await client.post("/api/ai-feedback", json=body)).json()
        second = (await client.post("/api/ai-feedback", json={**body, "clarity": 90})).json()

        assert second["id"] == first["id"]
        assert second["clarity"] == 90
        stored = (await client.get(f"/api/startups/{acme['id']}/ai-feedback")).json()
        assert stored["clarity"] == 90
        notes = (await client.get(f"/api/users/{alice['id']}/notifications")).json()
        assert [n["type"] for n in notes] == ["ai-feedback", "ai-feedback"]

    async def test_feedback_scores_are_bounded(self, client, acme):
        body = {"startupId": acme["id"], "clarity": 120, "marketNeed": 60, "teamStrength": 60}
        resp = await client.post("/api/ai-feedback", json=body)
        assert resp.status_code == 400

    async def test_analyze_and_save(self, client, fake_llm, alice, acme):
        fake_llm.queue("```json\n" + json.dumps(ANALYSIS) + "\n```")
        resp = await client.post("/api/ai/analyze", json={"startupId": acme["id"], "save": True})
        assert resp.status_code == 200
        assert resp.json()["overallScore"] == 85

        stored = (await client.get(f"/api/startups/{acme['id']}/ai-feedback")).json()
        assert stored["teamStrength"] == 90
        notes = (await client.get(f"/api/users/{alice['id']}/notifications")).json()
        assert notes[0]["title"] == "New AI Analysis Complete"

    async def test_analyze_inline_pitch(self, client, fake_llm):
        fake_llm.queue(json.dumps({"clarity": 40}))
        resp = await client.post("/api/ai/analyze", json={"pitch": {"name": "Stealth"}})
        assert resp.status_code == 200
        assert resp.json()["suggestion"] == "No suggestions provided"

    async def test_analyze_requires_a_source(self, client):
        resp = await client.post("/api/ai/analyze", json={"save": True})
        assert resp.status_code == 400

    async def test_upstream_failure_is_502(self, client, fake_llm, acme):
        fake_llm.queue(UpstreamError("AI service error: Error code: 500 - upstream secret detail"))
        resp = await client.post("/api/ai/analyze", json={"startupId": acme["id"]})
        assert resp.status_code == 502
        assert resp.json() == {"message": "AI analysis is unavailable. Please try again."}

    async def test_unparseable_answer_is_502(self, client, fake_llm, acme):
        fake_llm.queue("The pitch looks great!")
        resp = await client.post("/api/ai/analyze", json={"startupId": acme["id"]})
        assert resp.status_code == 502
        assert resp.json() == {"message": "AI returned an unreadable answer. Please try again."}

    async def test_swot_merges_into_feedback(self, client, fake_llm, acme):
        await client.post(
            "/api/ai-feedback", json={"startupId": acme["id"], "clarity": 60, "marketNeed": 60, "teamStrength": 60}
        )
        fake_llm.queue(json.dumps({"strengths": ["Clear niche"], "threats": ["Incumbents"]}))
        resp = await client.post("/api/ai/swot", json={"startupId": acme["id"]})
        assert resp.status_code == 200
        assert resp.json()["swotAnalysis"]["strengths"] == ["Clear niche"]
        stored = (await client.get(f"/api/startups/{acme['id']}/ai-feedback")).json()
        assert stored["swotAnalysis"]["threats"] == ["Incumbents"]


class TestRecommendations:

    async def test_ranked_and_excludes_existing_interest(self, client, alice, bob):
        health = await create_startup(client, alice["id"], "MediConnect", industry="HealthTech")
        green = await create_startup(client, alice["id"], "EcoTrack", industry="Sustainability")
        other = await create_startup(client, alice["id"], "Bookmarked", industry="HealthTech")
        await client.post("/api/interests", json={"investorId": bob["id"], "startupId": other["id"]})

        resp = await client.get(f"/api/investors/{bob['id']}/recommendations")
        assert resp.status_code == 200
        ranked = resp.json()
        assert [r["startup"]["id"] for r in ranked] == [health["id"], green["id"]]
        assert ranked[0]["matchScore"] == 40

    async def test_non_investor_is_rejected(self, client, alice):
        resp = await client.get(f"/api/investors/{alice['id']}/recommendations")
        assert resp.status_code == 400


class TestErrorMapping:

    async def test_unhandled_error_is_500_without_detail(self):
        storage = MemoryStorage()
        app = create_app(storage=storage)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with patch.object(storage, "list_events", AsyncMock(side_effect=RuntimeError("boom"))):
            async with AsyncClient(transport=transport, base_url="http://test") as c:
                resp = await c.get("/api/events")
        assert resp.status_code == 500
        assert resp.json() == {"message": "Internal server error"}

    def test_password_keys_are_stripped_at_any_depth(self):
        content = {"user": {"id": "1", "password": "x"}, "items": [{"password": "y", "name": "n"}]}
        assert strip_secrets(content) == {"user": {"id": "1"}, "items": [{"name": "n"}]}
