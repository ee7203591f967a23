"""Agent-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AgentStatus(str, Enum):
    """Runtime status of an actor."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    PROCESSING = "processing"
    ERROR = "error"


class HealthLevel(str, Enum):
    """Health status derived from the score."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class AgentState:
    """Durable per-actor state. Persisted as one full snapshot."""

    initialized: bool = False
    last_activity: datetime = field(default_factory=_utc_now)
    message_count: int = 0
    error_count: int = 0
    backlog: int = 0
    last_health_check: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)
    data: dict = field(default_factory=dict)  # domain fields, opaque to the core

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "initialized": self.initialized,
            "last_activity": self.last_activity.isoformat(),
            "message_count": self.message_count,
            "error_count": self.error_count,
            "backlog": self.backlog,
            "last_health_check": (
                self.last_health_check.isoformat() if self.last_health_check else None
            ),
            "created_at": self.created_at.isoformat(),
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "AgentState":
        """Deserialize a stored snapshot. Raises on malformed input."""
        state = cls(
            initialized=bool(raw["initialized"]),
            last_activity=_parse_datetime(raw["last_activity"]) or _utc_now(),
            message_count=int(raw.get("message_count", 0)),
            error_count=int(raw.get("error_count", 0)),
            backlog=int(raw.get("backlog", 0)),
            last_health_check=_parse_datetime(raw.get("last_health_check")),
            created_at=_parse_datetime(raw.get("created_at")) or _utc_now(),
            data=dict(raw.get("data") or {}),
        )
        if state.message_count < 0 or state.error_count < 0 or state.backlog < 0:
            raise ValueError("AgentState counters must be non-negative")
        return state


@dataclass
class HealthStatus:
    """Result of a health check. Derived, never persisted."""

    status: HealthLevel
    score: float
    message: str
    timestamp: datetime
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "score": self.score,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }
