"""ActorHost: one Actor per identity, one request at a time per identity."""

import asyncio
from datetime import datetime
from typing import Any, Callable

from ..errors import UnknownActorError
from ..health import ScorePolicy
from ..logging_config import get_logger
from ..queue import IMessageQueue
from ..storage import IStorage
from ..tracker import ITracker
from .actor import Actor, ActorResponse, IMessageHandler

logger = get_logger(__name__)


class ActorHost:
    """Owns actor instances and serializes work per identity."""

    def __init__(
        self,
        storage: IStorage,
        queue: IMessageQueue,
        tracker: ITracker,
        clock: Callable[[], datetime] | None = None,
    ):
        self._storage = storage
        self._queue = queue
        self._tracker = tracker
        self._clock = clock
        self._registrations: dict[str, tuple[IMessageHandler, ScorePolicy | None]] = {}
        self._actors: dict[str, Actor] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def register(
        self,
        actor_id: str,
        handler: IMessageHandler,
        score_policy: ScorePolicy | None = None,
    ) -> None:
        """Register the handler serving an identity."""
        self._registrations[actor_id] = (handler, score_policy)
        logger.info("Registered %s actor %s", handler.agent_type, actor_id)

    def is_registered(self, actor_id: str) -> bool:
        return actor_id in self._registrations

    @property
    def actor_ids(self) -> list[str]:
        return list(self._registrations)

    def get(self, actor_id: str) -> Actor:
        """Get the live Actor for an identity, creating it on first use."""
        if actor_id not in self._registrations:
            raise UnknownActorError(actor_id)

        actor = self._actors.get(actor_id)
        if actor is None:
            handler, score_policy = self._registrations[actor_id]
            actor = Actor(
                actor_id=actor_id,
                handler=handler,
                storage=self._storage,
                queue=self._queue,
                tracker=self._tracker,
                score_policy=score_policy,
                clock=self._clock,
            )
            self._actors[actor_id] = actor
        return actor

    def _lock(self, actor_id: str) -> asyncio.Lock:
        return self._locks.setdefault(actor_id, asyncio.Lock())

    async def dispatch(
        self, actor_id: str, method: str, path: str, body: Any = None
    ) -> ActorResponse:
        """Serve one request on an actor under its identity lock."""
        actor = self.get(actor_id)
        async with self._lock(actor_id):
            return await actor.dispatch(method, path, body)

    async def drain(self, actor_id: str) -> int:
        """Replay an actor's pending messages. Returns the count processed."""
        actor = self.get(actor_id)
        async with self._lock(actor_id):
            if not actor.initialized:
                return await actor.initialize()
            return await actor.process_pending()

    def evict(self, actor_id: str | None = None) -> None:
        """Drop in-memory instances; the next request rebuilds from storage."""
        if actor_id is None:
            self._actors.clear()
        else:
            self._actors.pop(actor_id, None)

    async def start(self) -> None:
        """Log registered identities. Actors initialize lazily."""
        logger.info("ActorHost started with actors: %s", ", ".join(self.actor_ids))

    async def stop(self) -> None:
        """Drop all live instances."""
        self.evict()
