"""Durable message queue on top of Storage."""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..config import PENDING_BATCH_LIMIT
from ..logging_config import get_logger
from ..models import Message, SendResult
from ..storage import IStorage
from ..tracker import ITracker

logger = get_logger(__name__)


MessageHandler = Callable[[Message], Awaitable[object]]


class IMessageQueue(Protocol):
    """Durable outbox/inbox of cross-actor messages."""

    async def send(self, message: Message) -> SendResult:
        """Append a message. Never raises."""
        ...

    async def pending(
        self, recipient: str, limit: int = PENDING_BATCH_LIMIT
    ) -> list[Message]:
        """Unprocessed messages for recipient, priority then FIFO."""
        ...

    async def mark_processed(self, message_id: str) -> None:
        """Mark a message processed. Idempotent."""
        ...

    async def get(self, message_id: str) -> Message | None:
        """Get a message by id, processed or not."""
        ...

    async def resume(self, recipient: str, handler: MessageHandler) -> int:
        """Replay pending messages through handler. Returns count processed."""
        ...


class MessageQueue:
    """
    Row-based message queue with at-least-once delivery.

    Readers do not lease rows: two overlapping `pending()` calls can see the
    same message, and a handler that succeeds right before a failed
    `mark_processed()` will see the message again. Handlers must tolerate
    duplicates.
    """

    def __init__(
        self,
        storage: IStorage,
        tracker: ITracker,
        clock: Callable[[], datetime] | None = None,
    ):
        self._storage = storage
        self._tracker = tracker
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def send(self, message: Message) -> SendResult:
        """Append a message with processed=false. Never raises."""
        try:
            await self._storage.insert_message(message)
        except Exception as e:
            logger.error(
                "Failed to enqueue message %s from %s to %s: %s",
                message.id,
                message.sender,
                message.recipient,
                e,
            )
            return SendResult(success=False, message_id=message.id, error=str(e))

        logger.debug(
            "Enqueued %s message %s for %s",
            message.priority.value,
            message.id,
            message.recipient,
        )
        await self._tracker.track(
            "message_sent",
            f"agent:{message.sender}",
            {
                "message_id": message.id,
                "to": message.recipient,
                "type": message.type.value,
                "priority": message.priority.value,
            },
        )
        return SendResult(success=True, message_id=message.id)

    async def pending(
        self, recipient: str, limit: int = PENDING_BATCH_LIMIT
    ) -> list[Message]:
        """Unprocessed messages for recipient, priority then FIFO. No lease."""
        return await self._storage.select_pending(recipient, limit)

    async def mark_processed(self, message_id: str) -> None:
        """Set processed=true and processed_at=now. Idempotent."""
        found = await self._storage.update_processed(message_id, self._clock())
        if not found:
            logger.warning("mark_processed: unknown message %s", message_id)

    async def get(self, message_id: str) -> Message | None:
        """Get a message by id, processed or not."""
        return await self._storage.get_message(message_id)

    async def resume(self, recipient: str, handler: MessageHandler) -> int:
        """
        Replay the recipient's backlog sequentially.

        A handler failure is logged and the loop moves on; the failed message
        stays pending for a later pass.

        Returns:
            Number of messages handled and marked processed.
        """
        messages = await self.pending(recipient)
        if not messages:
            return 0

        logger.info("Resuming %s pending messages for %s", len(messages), recipient)

        processed = 0
        failed = 0
        for message in messages:
            try:
                await handler(message)
            except Exception as e:
                failed += 1
                logger.error(
                    "Handler failed for message %s (%s): %s",
                    message.id,
                    recipient,
                    e,
                )
                continue

            try:
                await self.mark_processed(message.id)
            except Exception as e:
                logger.error(
                    "Processed message %s but could not mark it: %s", message.id, e
                )
                continue

            processed += 1

        await self._tracker.track(
            "queue_resumed",
            f"agent:{recipient}",
            {"pending": len(messages), "processed": processed, "failed": failed},
        )
        return processed
