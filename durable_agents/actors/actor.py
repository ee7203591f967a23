"""Generic actor runtime composed with a per-agent message handler."""

import copy
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from ..errors import MessageValidationError, PersistenceError, ProcessingError
from ..health import HEALTH_MESSAGES, ScorePolicy, classify_score
from ..logging_config import get_logger
from ..models import (
    AgentState,
    AgentStatus,
    HealthLevel,
    HealthStatus,
    Message,
    MessagePayload,
    MessageResult,
    MessageType,
    Priority,
    SendResult,
    validate_message,
)
from ..models.messages import PAYLOAD_MODELS
from ..queue import IMessageQueue
from ..storage import IStorage
from ..tracker import ITracker

logger = get_logger(__name__)


_CORE_FIELDS = {
    "initialized",
    "last_activity",
    "message_count",
    "error_count",
    "backlog",
    "last_health_check",
    "created_at",
    "data",
}


class IMessageHandler(Protocol):
    """Domain capability plugged into an Actor: maps a Message to a result."""

    @property
    def agent_type(self) -> str:
        """Agent type identifier."""
        ...

    def default_state(self) -> dict:
        """Initial domain fields for a fresh actor."""
        ...

    async def process_message(self, message: Message, actor: "Actor") -> dict:
        """Handle one message. Must tolerate duplicate delivery."""
        ...


@dataclass
class ActorResponse:
    """Result of a dispatched request."""

    status_code: int
    body: dict


class Actor:
    """
    Durable, identity-addressed actor.

    The host must run at most one request per identity at a time; the
    runtime itself holds no locks. The first request loads (or creates) the
    persisted AgentState and replays this identity's pending messages before
    anything else is served.
    """

    def __init__(
        self,
        actor_id: str,
        handler: IMessageHandler,
        storage: IStorage,
        queue: IMessageQueue,
        tracker: ITracker,
        score_policy: ScorePolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._actor_id = actor_id
        self._handler = handler
        self._storage = storage
        self._queue = queue
        self._tracker = tracker
        self._score_policy = score_policy or ScorePolicy()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._state: AgentState | None = None
        self._status = AgentStatus.UNINITIALIZED
        self._resumed = False
        self._started = time.monotonic()

    @property
    def actor_id(self) -> str:
        return self._actor_id

    @property
    def agent_type(self) -> str:
        return self._handler.agent_type

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def initialized(self) -> bool:
        """State is loaded and the backlog has been replayed once."""
        return self._state is not None and self._resumed

    @property
    def state(self) -> AgentState:
        if self._state is None:
            raise RuntimeError(f"Actor {self._actor_id} not initialized")
        return self._state

    @property
    def _state_key(self) -> str:
        return f"agent:{self._actor_id}:state"

    @property
    def _actor_label(self) -> str:
        return f"agent:{self._actor_id}"

    # Lifecycle

    async def initialize(self) -> int:
        """
        Load state and replay pending messages.

        Returns:
            Number of pending messages replayed (0 when already initialized).
        """
        if self._state is None:
            await self._load_or_create_state()

        if self._resumed:
            return 0

        replayed = await self.process_pending()
        self._resumed = True

        await self._tracker.track(
            "actor_initialized",
            self._actor_label,
            {"agent_type": self.agent_type, "replayed": replayed},
        )
        return replayed

    async def _load_or_create_state(self) -> None:
        self._status = AgentStatus.INITIALIZING

        try:
            raw = await self._storage.get(self._state_key)
        except Exception as e:
            # Retried on the next request
            self._status = AgentStatus.UNINITIALIZED
            raise PersistenceError(
                f"Could not load state for {self._actor_id}"
            ) from e

        if raw is None:
            stored = self._default_state()
            try:
                await self._storage.put(self._state_key, stored.to_dict())
            except Exception as e:
                self._status = AgentStatus.UNINITIALIZED
                raise PersistenceError(
                    f"Could not persist initial state for {self._actor_id}"
                ) from e
            logger.info("Created initial state for %s", self._actor_id)
        else:
            try:
                stored = AgentState.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                # No retry: a corrupt entry must not wedge the actor
                logger.error(
                    "Corrupt state for %s, using defaults: %s", self._actor_id, e
                )
                stored = self._default_state()

        self._state = stored
        self._status = AgentStatus.READY

    def _default_state(self) -> AgentState:
        now = self._clock()
        return AgentState(
            initialized=True,
            last_activity=now,
            created_at=now,
            data=self._handler.default_state(),
        )

    async def process_pending(self) -> int:
        """Replay this identity's pending messages and record the backlog left."""
        processed = await self._queue.resume(self._actor_id, self._process)
        remaining = await self._queue.pending(self._actor_id)
        if len(remaining) != self.state.backlog:
            await self.set_state({"backlog": len(remaining)})
        return processed

    # State

    async def set_state(self, partial: dict[str, Any]) -> AgentState:
        """
        Merge `partial` into the snapshot and persist the whole snapshot.

        Core field names update the matching attribute; any other key is a
        domain field stored in `data`. If the write fails the in-memory
        snapshot is rolled back.

        Raises:
            PersistenceError: the write failed; in-memory state is unchanged.
        """
        previous = copy.deepcopy(self.state)
        for key, value in partial.items():
            if key in _CORE_FIELDS:
                setattr(self._state, key, value)
            else:
                self._state.data[key] = value

        try:
            await self._storage.put(self._state_key, self._state.to_dict())
        except Exception as e:
            self._state = previous
            logger.error("Failed to persist state for %s: %s", self._actor_id, e)
            raise PersistenceError(
                f"Could not persist state for {self._actor_id}"
            ) from e

        return self._state

    def snapshot(self) -> dict[str, Any]:
        """AgentState plus runtime fields."""
        body = self.state.to_dict()
        body.update(
            {
                "actor_id": self._actor_id,
                "agent_type": self.agent_type,
                "status": self._status.value,
                "uptime_seconds": int(time.monotonic() - self._started),
            }
        )
        return body

    # Messages

    async def _process(self, message: Message) -> dict:
        """Run the handler and count the message. Raises on failure."""
        self._status = AgentStatus.PROCESSING
        try:
            data = await self._handler.process_message(message, self)
        except Exception as e:
            self._status = AgentStatus.ERROR
            logger.error(
                "Agent %s failed on message %s: %s", self._actor_id, message.id, e
            )
            await self._tracker.track(
                "message_failed",
                self._actor_label,
                {"message_id": message.id, "error_type": type(e).__name__},
            )
            try:
                await self.set_state(
                    {
                        "message_count": self.state.message_count + 1,
                        "error_count": self.state.error_count + 1,
                        "last_activity": self._clock(),
                    }
                )
            except PersistenceError as pe:
                logger.error("Could not record failure for %s: %s", message.id, pe)
            raise ProcessingError(message.id, e) from e

        try:
            await self.set_state(
                {
                    "message_count": self.state.message_count + 1,
                    "last_activity": self._clock(),
                }
            )
        except PersistenceError:
            self._status = AgentStatus.ERROR
            raise

        self._status = AgentStatus.READY
        return data or {}

    async def handle_message(self, message: Message) -> MessageResult:
        """Process a message and return a tagged result. Never raises."""
        try:
            data = await self._process(message)
        except ProcessingError:
            return MessageResult(
                success=False,
                agent=self.agent_type,
                timestamp=self._clock(),
                error="Message processing failed",
            )
        except PersistenceError:
            return MessageResult(
                success=False,
                agent=self.agent_type,
                timestamp=self._clock(),
                error="State could not be saved",
            )

        return MessageResult(
            success=True, agent=self.agent_type, timestamp=self._clock(), data=data
        )

    async def send(
        self,
        recipient: str,
        message_type: MessageType,
        payload: MessagePayload,
        priority: Priority = Priority.MEDIUM,
    ) -> SendResult:
        """Enqueue a message from this actor to another identity."""
        if not isinstance(payload, PAYLOAD_MODELS[message_type]):
            raise MessageValidationError(
                "Invalid message",
                [
                    {
                        "field": "payload",
                        "message": f"Payload does not match type {message_type.value}",
                    }
                ],
            )
        message = Message(
            id=str(uuid.uuid4()),
            sender=self._actor_id,
            recipient=recipient,
            type=message_type,
            payload=payload,
            priority=priority,
        )
        return await self._queue.send(message)

    # Health

    def calculate_score(self) -> float:
        """Health score in [0, 1] for the current state."""
        score, _ = self._score_policy.score(self.state, self._clock())
        return score

    async def check_health(self) -> HealthStatus:
        """Score, classify and record a health check. Never raises."""
        now = self._clock()
        try:
            score, components = self._score_policy.score(self.state, now)
            level = classify_score(score)
            await self.set_state({"last_health_check": now})
            health = HealthStatus(
                status=level,
                score=score,
                message=HEALTH_MESSAGES[level],
                timestamp=now,
                details={
                    "components": components,
                    "agent_status": self._status.value,
                    "message_count": self.state.message_count,
                    "error_count": self.state.error_count,
                    "backlog": self.state.backlog,
                },
            )
        except Exception:
            logger.exception("Health check failed for %s", self._actor_id)
            health = HealthStatus(
                status=HealthLevel.UNHEALTHY,
                score=0.0,
                message=HEALTH_MESSAGES[HealthLevel.UNHEALTHY],
                timestamp=now,
                details={"error": "Health check failed"},
            )

        await self._tracker.track(
            "health_check",
            self._actor_label,
            {"status": health.status.value, "score": health.score},
        )
        return health

    # Dispatch

    async def dispatch(
        self, method: str, path: str, body: Any = None
    ) -> ActorResponse:
        """Route the generic actor paths: /health, /state, /message."""
        await self.initialize()

        method = method.upper()
        route = "/" + path.strip("/")

        if route == "/health" and method == "GET":
            health = await self.check_health()
            return ActorResponse(200, health.to_dict())

        if route == "/state" and method == "GET":
            return ActorResponse(200, self.snapshot())

        if route == "/message" and method == "POST":
            try:
                message = validate_message(body)
            except MessageValidationError as e:
                return ActorResponse(
                    400,
                    {
                        "error": "Invalid message",
                        "code": "VALIDATION_ERROR",
                        "details": e.details,
                    },
                )
            result = await self.handle_message(message)
            return ActorResponse(200, result.to_dict())

        return ActorResponse(404, {"error": "Not found"})
