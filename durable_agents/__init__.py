"""Durable agents: stateful actors with a persistent message queue."""

from .actors import Actor, ActorHost, ActorResponse, IMessageHandler
from .app import Application, IApplication
from .client import CallResult, IRetryClient, RetryClient
from .config import Settings
from .errors import (
    DurableAgentsError,
    MessageValidationError,
    PersistenceError,
    ProcessingError,
    UnknownActorError,
)
from .health import ScorePolicy, classify_score
from .models import (
    AgentState,
    AgentStatus,
    HealthLevel,
    HealthStatus,
    Message,
    MessageResult,
    MessageType,
    Priority,
    RateLimitDecision,
    SendResult,
    TraceEvent,
    validate_message,
)
from .queue import IMessageQueue, MessageQueue
from .rate_limit import IRateLimiter, RateLimiter
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "AgentState",
    "AgentStatus",
    "HealthLevel",
    "HealthStatus",
    "Message",
    "MessageResult",
    "MessageType",
    "Priority",
    "RateLimitDecision",
    "SendResult",
    "TraceEvent",
    "validate_message",
    # Errors
    "DurableAgentsError",
    "MessageValidationError",
    "PersistenceError",
    "ProcessingError",
    "UnknownActorError",
    # Components
    "IStorage",
    "Storage",
    "ITracker",
    "Tracker",
    "IMessageQueue",
    "MessageQueue",
    "IRateLimiter",
    "RateLimiter",
    "IRetryClient",
    "RetryClient",
    "CallResult",
    "ScorePolicy",
    "classify_score",
    "Actor",
    "ActorHost",
    "ActorResponse",
    "IMessageHandler",
]
