"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import control, events, logcat, logs


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    application: Application = app.state.application
    await application.start()
    yield
    sim_instance = control.get_sim_instance()
    if sim_instance:
        await sim_instance.stop()
    await application.stop()


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    fastapi_app = FastAPI(
        title="Tracer API",
        description="Live HTTP trace and device log viewer",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Viewer may be served from a dev server on another port
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application = application or get_app()
    fastapi_app.state.application = application

    fastapi_app.include_router(events.create_events_router(application))
    fastapi_app.include_router(logs.create_logs_router(application))
    fastapi_app.include_router(logcat.create_logcat_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
