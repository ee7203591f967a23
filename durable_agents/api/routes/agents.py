"""Actor API routes: /agents/{actor_id}/health, /state, /message."""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from ...app import Application
from ...errors import UnknownActorError
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_agents_router(app: Application) -> APIRouter:
    """Create actor router."""
    router = APIRouter(prefix="/agents", tags=["agents"])

    async def dispatch(
        actor_id: str, method: str, path: str, body: Any = None
    ) -> JSONResponse:
        try:
            response = await app.host.dispatch(actor_id, method, path, body)
        except UnknownActorError:
            raise HTTPException(status_code=404, detail="Unknown agent")
        except Exception as e:
            logger.exception("Request %s %s failed for %s", method, path, actor_id)
            await app.tracker.track(
                "request_failed",
                f"agent:{actor_id}",
                {"method": method, "path": path, "error_type": type(e).__name__},
            )
            raise HTTPException(status_code=500, detail="Internal server error")
        return JSONResponse(status_code=response.status_code, content=response.body)

    @router.get("/{actor_id}/health")
    async def get_health(actor_id: str) -> JSONResponse:
        """Health status of an agent."""
        return await dispatch(actor_id, "GET", "/health")

    @router.get("/{actor_id}/state")
    async def get_state(actor_id: str) -> JSONResponse:
        """Current state snapshot of an agent."""
        return await dispatch(actor_id, "GET", "/state")

    @router.post("/{actor_id}/message")
    async def post_message(actor_id: str, request: Request) -> JSONResponse:
        """Deliver a message directly to an agent."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(
                status_code=400,
                content={"error": "Invalid JSON", "code": "INVALID_JSON"},
            )
        return await dispatch(actor_id, "POST", "/message", body)

    return router
