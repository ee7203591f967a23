"""Echo agent: minimal domain handler for exercising the message flow."""

from ..actors import Actor
from ..logging_config import get_logger
from ..models import Message, MessageType, ResponsePayload

logger = get_logger(__name__)


class EchoAgent:
    """Echoes payloads back and answers requests with a response message."""

    # How many recent message ids to remember for de-duplication
    SEEN_LIMIT = 100

    def __init__(self, agent_type: str = "echo"):
        self._agent_type = agent_type

    @property
    def agent_type(self) -> str:
        return self._agent_type

    def default_state(self) -> dict:
        return {"echo_count": 0, "seen_ids": []}

    async def process_message(self, message: Message, actor: Actor) -> dict:
        """Echo the payload. Redelivered messages are acknowledged, not re-echoed."""
        seen = list(actor.state.data.get("seen_ids", []))
        if message.id in seen:
            logger.info(
                "EchoAgent %s skipping duplicate message %s", actor.actor_id, message.id
            )
            return {"duplicate": True, "message_id": message.id}

        echo = message.payload.model_dump()
        await actor.set_state(
            {
                "echo_count": actor.state.data.get("echo_count", 0) + 1,
                "seen_ids": (seen + [message.id])[-self.SEEN_LIMIT :],
            }
        )

        if message.type == MessageType.REQUEST and message.sender != actor.actor_id:
            reply = ResponsePayload(
                success=True, in_reply_to=message.id, data={"echo": echo}
            )
            result = await actor.send(
                message.sender, MessageType.RESPONSE, reply, message.priority
            )
            if not result.success:
                logger.warning(
                    "EchoAgent %s could not reply to %s: %s",
                    actor.actor_id,
                    message.sender,
                    result.error,
                )

        logger.info(
            "EchoAgent %s echoed %s message %s from %s",
            actor.actor_id,
            message.type.value,
            message.id,
            message.sender,
        )
        return {"echo": echo, "message_id": message.id}
