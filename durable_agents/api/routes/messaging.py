"""Messaging API routes: enqueue and inspect queued messages."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse

from ...app import Application
from ...errors import MessageValidationError
from ...logging_config import get_logger
from ...models import validate_message

logger = get_logger(__name__)


class EnqueueResponse(BaseModel):
    """Response model for an accepted message."""

    id: str
    queued: bool


def create_messaging_router(app: Application) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    async def drain_recipient(actor_id: str) -> None:
        try:
            processed = await app.host.drain(actor_id)
            logger.info("Drained %s messages for %s", processed, actor_id)
        except Exception:
            # Messages stay pending for the next pass
            logger.exception("Background drain failed for %s", actor_id)

    @router.post("/messages", status_code=202, response_model=EnqueueResponse)
    async def enqueue_message(
        request: Request, background_tasks: BackgroundTasks
    ) -> Any:
        """Validate a message and append it to the durable queue."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid JSON", "code": "INVALID_JSON"},
            )

        try:
            message = validate_message(body)
        except MessageValidationError as e:
            return JSONResponse(
                status_code=400,
                content={
                    "error": "Invalid message",
                    "code": "VALIDATION_ERROR",
                    "details": e.details,
                },
            )

        result = await app.queue.send(message)
        if not result.success:
            raise HTTPException(status_code=503, detail="Message could not be queued")

        if app.host.is_registered(message.recipient):
            background_tasks.add_task(drain_recipient, message.recipient)

        return {"id": message.id, "queued": True}

    @router.get("/messages/{message_id}")
    async def get_message(message_id: str) -> dict:
        """Get a queued message with its processing flags."""
        try:
            message = await app.queue.get(message_id)
        except Exception:
            logger.exception("Failed to load message %s", message_id)
            raise HTTPException(status_code=500, detail="Internal server error")

        if message is None:
            raise HTTPException(status_code=404, detail="Message not found")
        return message.to_dict()

    return router
