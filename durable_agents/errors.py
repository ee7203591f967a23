"""Exception taxonomy for the actor and queue core."""


class DurableAgentsError(Exception):
    """Base class for all errors raised by this package."""


class MessageValidationError(DurableAgentsError):
    """An inbound message failed validation and must not be enqueued."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []


class PersistenceError(DurableAgentsError):
    """A state or queue write failed."""


class ProcessingError(DurableAgentsError):
    """A domain handler failed while processing one message."""

    def __init__(self, message_id: str, cause: BaseException):
        super().__init__(f"Handler failed for message {message_id}")
        self.message_id = message_id
        self.cause = cause


class UnknownActorError(DurableAgentsError):
    """No handler is registered for an actor identity."""

    def __init__(self, actor_id: str):
        super().__init__(f"Unknown actor: {actor_id}")
        self.actor_id = actor_id
