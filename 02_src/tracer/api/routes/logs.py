"""Transaction history and exclusion pattern routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import Application
from ...errors import MutationRejected


class PatternRequest(BaseModel):
    """Request model for adding/removing an exclusion pattern."""

    pattern: str = ""


class OkResponse(BaseModel):
    """Response model for simple mutations."""

    ok: bool


class ClearResponse(BaseModel):
    """Response model for clearing history."""

    ok: bool
    cleared: int


class LogsResponse(BaseModel):
    """Response model for the history snapshot."""

    apiCalls: list[dict[str, Any]]
    excludedPatterns: list[str]


def create_logs_router(app: Application) -> APIRouter:
    """Create logs router."""
    router = APIRouter(tags=["logs"])

    @router.get("/logs", response_model=LogsResponse)
    async def get_logs() -> dict:
        """Current transaction history and exclusion patterns."""
        return {
            "apiCalls": app.store.history_payload(),
            "excludedPatterns": app.exclusion_filter.patterns,
        }

    @router.post("/clear", response_model=ClearResponse)
    async def clear_logs() -> dict:
        """Clear the transaction history."""
        try:
            cleared = app.clear_history()
        except OSError as e:
            raise HTTPException(status_code=500, detail=f"Failed to clear log file: {e}")
        return {"ok": True, "cleared": cleared}

    @router.post("/exclude", response_model=OkResponse)
    async def add_exclusion(request: PatternRequest) -> dict:
        """Add an exclusion pattern."""
        try:
            app.exclusion_filter.add(request.pattern)
        except MutationRejected as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True}

    @router.post("/include", response_model=OkResponse)
    async def remove_exclusion(request: PatternRequest) -> dict:
        """Remove an exclusion pattern."""
        try:
            app.exclusion_filter.remove(request.pattern)
        except MutationRejected as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True}

    return router
