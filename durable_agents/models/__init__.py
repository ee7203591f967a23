"""Core data models for durable agents."""

from .agents import AgentState, AgentStatus, HealthLevel, HealthStatus
from .messages import (
    CommandPayload,
    EventPayload,
    Message,
    MessageEnvelope,
    MessagePayload,
    MessageResult,
    MessageType,
    NotificationPayload,
    Priority,
    PRIORITY_RANK,
    RequestPayload,
    ResponsePayload,
    SendResult,
    now_ms,
    parse_payload,
    validate_message,
)
from .rate_limit import RateLimitCounter, RateLimitDecision
from .tracing import TraceEvent

__all__ = [
    # Agents
    "AgentState",
    "AgentStatus",
    "HealthLevel",
    "HealthStatus",
    # Messages
    "Message",
    "MessageEnvelope",
    "MessagePayload",
    "MessageResult",
    "MessageType",
    "Priority",
    "PRIORITY_RANK",
    "SendResult",
    "RequestPayload",
    "CommandPayload",
    "ResponsePayload",
    "NotificationPayload",
    "EventPayload",
    "now_ms",
    "parse_payload",
    "validate_message",
    # Rate limiting
    "RateLimitCounter",
    "RateLimitDecision",
    # Tracing
    "TraceEvent",
]
