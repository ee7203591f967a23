"""Message-related data models and ingress validation."""

import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..config import MAX_MESSAGE_SIZE
from ..errors import MessageValidationError


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class MessageType(str, Enum):
    """Kinds of cross-actor messages."""

    REQUEST = "request"
    RESPONSE = "response"
    NOTIFICATION = "notification"
    EVENT = "event"
    COMMAND = "command"


class Priority(str, Enum):
    """Message priority, read in descending rank."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


# Payloads: one model per message type, domain fields go in `data`


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data: dict[str, Any] = Field(default_factory=dict)


class RequestPayload(_Payload):
    action: str = Field(min_length=1, max_length=100)


class CommandPayload(_Payload):
    action: str = Field(min_length=1, max_length=100)


class ResponsePayload(_Payload):
    success: bool = True
    in_reply_to: str | None = None
    error: str | None = None


class NotificationPayload(_Payload):
    text: str = ""


class EventPayload(_Payload):
    name: str = Field(min_length=1, max_length=100)


MessagePayload = Union[
    RequestPayload,
    CommandPayload,
    ResponsePayload,
    NotificationPayload,
    EventPayload,
]

PAYLOAD_MODELS: dict[MessageType, type[_Payload]] = {
    MessageType.REQUEST: RequestPayload,
    MessageType.COMMAND: CommandPayload,
    MessageType.RESPONSE: ResponsePayload,
    MessageType.NOTIFICATION: NotificationPayload,
    MessageType.EVENT: EventPayload,
}


def parse_payload(message_type: MessageType, raw: dict[str, Any]) -> MessagePayload:
    """Validate a raw payload against the model for its message type."""
    return PAYLOAD_MODELS[message_type].model_validate(raw)


@dataclass
class Message:
    """A message exchanged between actors through the durable queue."""

    id: str
    sender: str
    recipient: str
    type: MessageType
    payload: MessagePayload
    priority: Priority = Priority.MEDIUM
    timestamp: int = field(default_factory=now_ms)
    processed: bool = False
    processed_at: datetime | None = None

    def to_wire(self) -> dict[str, Any]:
        """Wire shape: {id, from, to, type, payload, priority, timestamp}."""
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "type": self.type.value,
            "payload": self.payload.model_dump(),
            "priority": self.priority.value,
            "timestamp": self.timestamp,
        }

    def to_dict(self) -> dict[str, Any]:
        """Wire shape plus the processing flags."""
        wire = self.to_wire()
        wire["processed"] = self.processed
        wire["processed_at"] = (
            self.processed_at.isoformat() if self.processed_at else None
        )
        return wire


@dataclass
class SendResult:
    """Outcome of enqueueing a message. Never an exception."""

    success: bool
    message_id: str
    error: str | None = None


@dataclass
class MessageResult:
    """Outcome of handling one message, as returned to the caller."""

    success: bool
    agent: str
    timestamp: datetime
    data: dict | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "agent": self.agent,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.success:
            body["data"] = self.data or {}
        else:
            body["error"] = self.error
        return body


class MessageEnvelope(BaseModel):
    """Inbound wire model. The payload is checked separately per type."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), min_length=1, max_length=255
    )
    sender: str = Field(alias="from", min_length=1, max_length=255)
    recipient: str = Field(alias="to", min_length=1, max_length=255)
    type: MessageType = MessageType.NOTIFICATION
    payload: dict[str, Any] = Field(default_factory=dict)
    priority: Priority = Priority.MEDIUM
    timestamp: int | None = Field(default=None, gt=0)


def _error_details(
    exc: PydanticValidationError, prefix: str = ""
) -> list[dict[str, str]]:
    return [
        {
            "field": prefix + ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def validate_message(raw: Any) -> Message:
    """
    Validate an inbound message body and build a Message.

    Raises:
        MessageValidationError: with per-field details when the envelope or
            the typed payload is malformed, or the payload is too large.
    """
    try:
        envelope = MessageEnvelope.model_validate(raw)
    except PydanticValidationError as e:
        raise MessageValidationError("Invalid message", _error_details(e)) from e

    payload_size = len(json.dumps(envelope.payload, default=str).encode("utf-8"))
    if payload_size > MAX_MESSAGE_SIZE:
        raise MessageValidationError(
            "Invalid message",
            [{"field": "payload", "message": "Payload exceeds maximum size"}],
        )

    try:
        payload = parse_payload(envelope.type, envelope.payload)
    except PydanticValidationError as e:
        raise MessageValidationError(
            "Invalid message", _error_details(e, prefix="payload.")
        ) from e

    return Message(
        id=envelope.id,
        sender=envelope.sender,
        recipient=envelope.recipient,
        type=envelope.type,
        payload=payload,
        priority=envelope.priority,
        timestamp=envelope.timestamp or now_ms(),
    )
