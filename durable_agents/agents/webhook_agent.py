"""Webhook agent: relays messages to an external HTTP endpoint."""

from ..actors import Actor
from ..client import IRetryClient
from ..logging_config import get_logger
from ..models import Message

logger = get_logger(__name__)


class WebhookAgent:
    """POSTs each message to a URL through the retry client."""

    def __init__(self, client: IRetryClient, url: str, agent_type: str = "webhook"):
        self._client = client
        self._url = url
        self._agent_type = agent_type

    @property
    def agent_type(self) -> str:
        return self._agent_type

    def default_state(self) -> dict:
        return {"delivered": 0, "failed": 0, "last_status_code": None}

    async def process_message(self, message: Message, actor: Actor) -> dict:
        """Deliver the message. Delivery failures come back as data, not errors."""
        # The receiver can de-duplicate redeliveries on this key
        result = await self._client.request_result(
            "POST",
            self._url,
            json=message.to_wire(),
            headers={"Idempotency-Key": message.id},
        )

        data = actor.state.data
        if result.success:
            await actor.set_state(
                {
                    "delivered": data.get("delivered", 0) + 1,
                    "last_status_code": result.status_code,
                }
            )
        else:
            logger.warning(
                "WebhookAgent %s failed to deliver %s: %s",
                actor.actor_id,
                message.id,
                result.error,
            )
            await actor.set_state(
                {
                    "failed": data.get("failed", 0) + 1,
                    "last_status_code": result.status_code,
                }
            )

        return {
            "delivered": result.success,
            "status_code": result.status_code,
            "message_id": message.id,
        }
