"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...logging_config import get_logger

logger = get_logger(__name__)


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Clear stored data and drop live actors."""
        try:
            await app.reset()
        except Exception:
            logger.exception("Reset failed")
            raise HTTPException(status_code=500, detail="Internal server error")
        return {"status": "ok"}

    return router
