"""Message queue module."""

from .queue import IMessageQueue, MessageHandler, MessageQueue

__all__ = ["IMessageQueue", "MessageHandler", "MessageQueue"]
