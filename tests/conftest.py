"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Controllable UTC clock for actors and the queue."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from durable_agents.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from durable_agents.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def mock_tracker():
    """Create mock tracker."""
    tr = Mock()
    tr.track = AsyncMock()
    return tr


@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def queue(storage, tracker):
    """Create MessageQueue with storage and tracker."""
    from durable_agents.queue import MessageQueue

    return MessageQueue(storage, tracker)


@pytest.fixture
def make_message():
    """Factory for queue messages."""
    from durable_agents.models import (
        Message,
        MessageType,
        NotificationPayload,
        Priority,
    )

    counter = {"n": 0}

    def _make(
        id=None,
        sender="a",
        recipient="b",
        priority=Priority.MEDIUM,
        type=MessageType.NOTIFICATION,
        payload=None,
        timestamp=None,
    ):
        counter["n"] += 1
        return Message(
            id=id or f"msg{counter['n']}",
            sender=sender,
            recipient=recipient,
            type=type,
            payload=payload or NotificationPayload(text=f"hello {counter['n']}"),
            priority=priority,
            timestamp=timestamp or 1_700_000_000_000 + counter["n"],
        )

    return _make


@pytest.fixture
def recording_handler():
    """Domain handler that records every message it processes."""

    class RecordingHandler:
        agent_type = "recorder"

        def __init__(self):
            self.seen = []
            self.fail_ids: set[str] = set()

        def default_state(self) -> dict:
            return {"notes": []}

        async def process_message(self, message, actor) -> dict:
            if message.id in self.fail_ids:
                raise ValueError(f"cannot handle {message.id}")
            self.seen.append(message.id)
            return {"handled": message.id}

    return RecordingHandler()


@pytest.fixture
def make_actor(storage, queue, tracker, clock):
    """Factory for actors sharing the same durable storage."""
    from durable_agents.actors import Actor

    def _make(actor_id="b", handler=None, score_policy=None, **overrides):
        return Actor(
            actor_id=actor_id,
            handler=handler,
            storage=overrides.get("storage", storage),
            queue=overrides.get("queue", queue),
            tracker=overrides.get("tracker", tracker),
            score_policy=score_policy,
            clock=overrides.get("clock", clock),
        )

    return _make
