"""Main entry point for Tracer."""

import os

import uvicorn
from dotenv import load_dotenv

from sim import Sim
from tracer.api import create_fastapi_app, get_app
from tracer.config import DEFAULT_API_HOST, DEFAULT_API_PORT, PROJECT_ROOT
from tracer.logging_config import setup_logging


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", DEFAULT_API_HOST)
    api_port = int(os.getenv("API_PORT", str(DEFAULT_API_PORT)))

    application = get_app()

    # SIM only makes sense with a trace file to write to
    if application.trace_log:
        from tracer.api.routes import control
        control.set_sim_instance(Sim(application.trace_log))

    app = create_fastapi_app(application)

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
