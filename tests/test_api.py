"""Tests for the HTTP API."""

import httpx
import pytest_asyncio

from durable_agents.api import create_fastapi_app
from durable_agents.app import Application
from durable_agents.config import Settings


async def make_started_app(**settings) -> Application:
    app = Application(settings=Settings(db_path=":memory:", **settings))
    await app.start()
    return app


@pytest_asyncio.fixture
async def application():
    """Create and start an application on in-memory storage."""
    app = await make_started_app()
    yield app
    await app.stop()


@pytest_asyncio.fixture
async def client(application):
    """HTTP client bound to the ASGI app."""
    transport = httpx.ASGITransport(app=create_fastapi_app(application))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestAgentRoutes:
    """Tests for /agents/{actor_id}/..."""

    async def test_health(self, client):
        """Test GET /agents/echo/health."""
        response = await client.get("/agents/echo/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert 0.0 <= body["score"] <= 1.0

    async def test_state(self, client):
        """Test GET /agents/echo/state."""
        response = await client.get("/agents/echo/state")

        assert response.status_code == 200
        body = response.json()
        assert body["agent_type"] == "echo"
        assert body["initialized"] is True
        assert body["data"] == {"echo_count": 0, "seen_ids": []}

    async def test_post_message(self, client):
        """Test POST /agents/echo/message handles the message directly."""
        response = await client.post(
            "/agents/echo/message",
            json={
                "id": "m1",
                "from": "a",
                "to": "echo",
                "payload": {"text": "hi"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["echo"]["text"] == "hi"

    async def test_post_invalid_message(self, client):
        """Test that an invalid message returns 400 with details."""
        response = await client.post(
            "/agents/echo/message", json={"from": "a", "priority": "critical"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = {d["field"] for d in body["details"]}
        assert {"to", "priority"} <= fields

    async def test_post_invalid_json(self, client):
        """Test that a non-JSON body returns 400."""
        response = await client.post(
            "/agents/echo/message",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_JSON"

    async def test_unknown_agent(self, client):
        """Test that an unregistered identity returns 404."""
        response = await client.get("/agents/ghost/state")

        assert response.status_code == 404
        assert response.json() == {"detail": "Unknown agent"}


class TestMessagingRoutes:
    """Tests for /api/messages."""

    async def test_enqueue_then_drain(self, client):
        """Test that an accepted message is processed in the background."""
        response = await client.post(
            "/api/messages",
            json={"id": "m1", "from": "a", "to": "echo", "priority": "high"},
        )

        assert response.status_code == 202
        assert response.json() == {"id": "m1", "queued": True}

        message = (await client.get("/api/messages/m1")).json()
        assert message["processed"] is True
        assert message["priority"] == "high"

        state = (await client.get("/agents/echo/state")).json()
        assert state["message_count"] == 1

    async def test_enqueue_for_unregistered_recipient_stays_pending(self, client):
        """Test that messages to other identities are stored, not processed."""
        response = await client.post(
            "/api/messages", json={"id": "m1", "from": "echo", "to": "elsewhere"}
        )

        assert response.status_code == 202
        message = (await client.get("/api/messages/m1")).json()
        assert message["processed"] is False
        assert message["to"] == "elsewhere"

    async def test_enqueue_invalid(self, client):
        """Test that an invalid message is not enqueued."""
        response = await client.post("/api/messages", json={"id": "m1", "from": "a"})

        assert response.status_code == 400
        assert (await client.get("/api/messages/m1")).status_code == 404

    async def test_enqueue_duplicate_id(self, client):
        """Test that a duplicate id cannot be queued twice."""
        body = {"id": "m1", "from": "a", "to": "elsewhere"}
        await client.post("/api/messages", json=body)

        response = await client.post("/api/messages", json=body)

        assert response.status_code == 503

    async def test_get_unknown_message(self, client):
        """Test GET /api/messages/{id} for an unknown id."""
        response = await client.get("/api/messages/nope")

        assert response.status_code == 404


class TestObservabilityRoutes:
    """Tests for /api/trace-events."""

    async def test_trace_events(self, client):
        """Test that queue activity shows up as trace events."""
        await client.post("/api/messages", json={"id": "m1", "from": "a", "to": "x"})

        response = await client.get(
            "/api/trace-events", params={"event_type": "message_sent"}
        )

        assert response.status_code == 200
        events = response.json()
        assert len(events) == 1
        assert events[0]["data"]["message_id"] == "m1"

    async def test_invalid_after(self, client):
        """Test that a malformed timestamp filter returns 400."""
        response = await client.get("/api/trace-events", params={"after": "yesterday"})

        assert response.status_code == 400


class TestControlRoutes:
    """Tests for /api/control."""

    async def test_reset(self, client):
        """Test that reset clears stored messages."""
        await client.post("/api/messages", json={"id": "m1", "from": "a", "to": "x"})

        response = await client.post("/api/control/reset")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert (await client.get("/api/messages/m1")).status_code == 404


class TestRateLimiting:
    """Tests for the rate-limit middleware."""

    async def test_headers_on_allowed_response(self, client):
        """Test that allowed responses carry quota headers."""
        response = await client.get("/agents/echo/state")

        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"
        assert int(response.headers["X-RateLimit-Reset"]) > 0

    async def test_rejects_over_quota(self):
        """Test that the request past the limit gets 429 with Retry-After."""
        app = await make_started_app(rate_limit_per_minute=2)
        transport = httpx.ASGITransport(app=create_fastapi_app(app))
        try:
            async with httpx.AsyncClient(
                transport=transport, base_url="http://test"
            ) as c:
                assert (await c.get("/agents/echo/state")).status_code == 200
                assert (await c.get("/agents/echo/state")).status_code == 200
                response = await c.get("/agents/echo/state")

                assert response.status_code == 429
                assert 0 < int(response.headers["Retry-After"]) <= 60
                assert response.json()["error"] == "Too many requests"

                other = await c.get(
                    "/agents/echo/state", headers={"X-Forwarded-For": "10.0.0.9"}
                )
                assert other.status_code == 200
        finally:
            await app.stop()
