"""Device log stream routes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...app import Application
from ...errors import MutationRejected
from ...models import LogLevel
from ...supervisor.adb import parse_level


class FilterRequest(BaseModel):
    """Request model for setting the pid/level filter."""

    pids: list[str | int] = Field(default_factory=list)
    level: str | None = None


class LevelRequest(BaseModel):
    """Request model for setting the level filter."""

    level: str | None = None


class FilterResponse(BaseModel):
    """Response model for the active filter."""

    ok: bool = True
    pids: list[str]
    level: LogLevel


def create_logcat_router(app: Application) -> APIRouter:
    """Create logcat router."""
    router = APIRouter(tags=["logcat"])

    def current_pids() -> list[str]:
        pid = app.supervisor.pid_filter
        return [pid] if pid else []

    @router.get("/logcat")
    async def get_lines() -> dict:
        """Buffered device log lines, already filtered by the producer."""
        return {"lines": app.supervisor.lines}

    @router.get("/logcat/filter", response_model=FilterResponse)
    async def get_filter() -> dict:
        """Active pid/level filter."""
        return {"pids": current_pids(), "level": app.supervisor.level}

    @router.post("/logcat/filter", response_model=FilterResponse)
    async def set_filter(request: FilterRequest) -> dict:
        """Restart the producer filtered to the first pid (or all) and a level."""
        try:
            level = parse_level(request.level or app.supervisor.level)
        except MutationRejected as e:
            raise HTTPException(status_code=400, detail=str(e))

        pid = str(request.pids[0]) if request.pids else None
        await app.supervisor.start(pid, level)
        return {"pids": [pid] if pid else [], "level": level}

    @router.post("/logcat/level", response_model=FilterResponse)
    async def set_level(request: LevelRequest) -> dict:
        """Restart the producer with the current pid and a new level."""
        try:
            level = parse_level(request.level)
        except MutationRejected as e:
            raise HTTPException(status_code=400, detail=str(e))

        await app.supervisor.start(app.supervisor.pid_filter, level)
        return {"pids": current_pids(), "level": level}

    @router.post("/logcat/clear")
    async def clear_lines() -> dict:
        """Empty the device log buffer."""
        app.supervisor.clear_lines()
        return {"ok": True}

    @router.get("/config")
    async def get_config() -> dict:
        """Viewer configuration."""
        return {
            "LOGCAT_MAX_LINES": app.supervisor.max_lines,
            "source": app.source,
        }

    return router
