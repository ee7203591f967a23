"""Telemetry data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single telemetry record."""

    id: str
    event_type: str  # e.g. "message_sent", "health_check"
    actor: str  # who emitted this event
    data: dict
    timestamp: datetime
