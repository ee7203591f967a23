"""Actor runtime module."""

from .actor import Actor, ActorResponse, IMessageHandler
from .host import ActorHost

__all__ = ["Actor", "ActorHost", "ActorResponse", "IMessageHandler"]
