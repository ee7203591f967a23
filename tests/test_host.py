"""Tests for ActorHost."""

import asyncio

import pytest

from durable_agents.actors import ActorHost
from durable_agents.errors import UnknownActorError


@pytest.fixture
def host(storage, queue, tracker, clock):
    """Create ActorHost sharing the test storage."""
    return ActorHost(storage, queue, tracker, clock=clock)


class TestActorHostRegistry:
    """Tests for registration and lookup."""

    def test_register_and_lookup(self, host, recording_handler):
        """Test that a registered identity resolves to one live Actor."""
        host.register("b", recording_handler)

        assert host.is_registered("b") is True
        assert host.actor_ids == ["b"]
        assert host.get("b") is host.get("b")
        assert host.get("b").agent_type == "recorder"

    def test_unknown_actor(self, host):
        """Test that an unregistered identity raises."""
        with pytest.raises(UnknownActorError) as exc_info:
            host.get("ghost")

        assert exc_info.value.actor_id == "ghost"
        assert host.is_registered("ghost") is False

    async def test_unknown_actor_dispatch(self, host):
        """Test that dispatching to an unknown identity raises."""
        with pytest.raises(UnknownActorError):
            await host.dispatch("ghost", "GET", "/state")


class TestActorHostDispatch:
    """Tests for ActorHost.dispatch() and drain()."""

    async def test_dispatch_routes_to_actor(self, host, recording_handler):
        """Test a dispatched request reaches the actor."""
        host.register("b", recording_handler)

        response = await host.dispatch("b", "GET", "/state")

        assert response.status_code == 200
        assert response.body["actor_id"] == "b"

    async def test_requests_are_serialized_per_identity(self, host):
        """Test that two concurrent requests never interleave on one actor."""
        events = []

        class SlowHandler:
            agent_type = "slow"

            def default_state(self):
                return {}

            async def process_message(self, message, actor):
                events.append(("start", message.id))
                await asyncio.sleep(0.01)
                events.append(("end", message.id))
                return {}

        host.register("b", SlowHandler())
        body = {"from": "a", "to": "b", "type": "notification", "payload": {}}

        await asyncio.gather(
            host.dispatch("b", "POST", "/message", {**body, "id": "m1"}),
            host.dispatch("b", "POST", "/message", {**body, "id": "m2"}),
        )

        assert [kind for kind, _ in events] == ["start", "end", "start", "end"]
        assert host.get("b").state.message_count == 2

    async def test_drain_initializes_and_replays(
        self, host, queue, make_message, recording_handler
    ):
        """Test that drain runs the backlog for a cold actor."""
        host.register("b", recording_handler)
        await queue.send(make_message(id="m1"))

        assert await host.drain("b") == 1
        assert recording_handler.seen == ["m1"]

    async def test_drain_picks_up_new_arrivals(
        self, host, queue, make_message, recording_handler
    ):
        """Test that a warm actor drains messages sent after initialization."""
        host.register("b", recording_handler)
        await host.dispatch("b", "GET", "/state")
        await queue.send(make_message(id="late"))

        assert await host.drain("b") == 1
        assert recording_handler.seen == ["late"]
        assert host.get("b").state.backlog == 0


class TestActorHostEvict:
    """Tests for ActorHost.evict()."""

    async def test_evicted_actor_rebuilds_from_storage(self, host, recording_handler):
        """Test that eviction loses only memory, not state."""
        host.register("b", recording_handler)
        first = host.get("b")
        await first.initialize()
        await first.set_state({"message_count": 4})

        host.evict("b")
        second = host.get("b")
        response = await host.dispatch("b", "GET", "/state")

        assert second is not first
        assert response.body["message_count"] == 4

    async def test_stop_drops_all_instances(self, host, recording_handler):
        """Test that stop evicts every live actor."""
        host.register("b", recording_handler)
        first = host.get("b")

        await host.stop()

        assert host.get("b") is not first
