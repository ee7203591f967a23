"""Tests for Tracker."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

from durable_agents.tracker import Tracker


class TestTrackerTrack:
    """Tests for Tracker.track() method."""

    async def test_track_creates_event(self, tracker, storage):
        """Test that track() creates a TraceEvent."""
        await tracker.track(
            event_type="test_event",
            actor="test_actor",
            data={"key": "value"},
        )

        events = await storage.get_trace_events()
        assert len(events) == 1
        assert events[0].event_type == "test_event"
        assert events[0].actor == "test_actor"
        assert events[0].data == {"key": "value"}

    async def test_track_generates_id_and_timestamp(self, tracker, storage):
        """Test that track() fills in id and timestamp."""
        before = datetime.now(timezone.utc)

        await tracker.track(event_type="test_event", actor="test_actor", data={})

        events = await storage.get_trace_events()
        assert events[0].id
        assert events[0].timestamp >= before.replace(microsecond=0)

    async def test_track_filters(self, tracker, storage):
        """Test that stored events can be filtered by type and actor."""
        await tracker.track("message_sent", "queue", {})
        await tracker.track("health_check", "agent:a", {})
        await tracker.track("health_check", "agent:b", {})

        events = await storage.get_trace_events(
            event_types=["health_check"], actor="agent:b"
        )

        assert len(events) == 1
        assert events[0].actor == "agent:b"

    async def test_track_swallows_storage_failure(self):
        """Test that a failing sink never reaches the caller."""
        storage = Mock()
        storage.save_trace_event = AsyncMock(side_effect=RuntimeError("disk full"))
        tracker = Tracker(storage)

        await tracker.track("message_sent", "queue", {"message_id": "m1"})

        storage.save_trace_event.assert_awaited_once()
