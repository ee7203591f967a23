"""Domain handlers plugged into the actor runtime."""

from .echo_agent import EchoAgent
from .webhook_agent import WebhookAgent

__all__ = ["EchoAgent", "WebhookAgent"]
