"""FastAPI application factory."""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rwmapper.api.routes import session
from rwmapper.api.schemas import StatusResponse
from rwmapper.collector.driver import StreamDriver
from rwmapper.version import __version__


def create_app(
    driver: StreamDriver,
    log_path: Optional[Path] = None,
    collector_running: bool = False,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        driver: Stream driver owning the session being served
        log_path: Path to log file being monitored
        collector_running: Whether a live tail is feeding the driver

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Rusted Warden Mapper API",
        description="Live level layout reconstructed from the game log",
        version=__version__,
    )

    # CORS middleware for the local GUI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_driver() -> StreamDriver:
        return driver

    app.dependency_overrides[session.get_driver] = get_driver
    app.include_router(session.router)

    app.state.driver = driver
    app.state.log_path = log_path
    app.state.collector_running = collector_running

    @app.get("/api/status", response_model=StatusResponse, tags=["status"])
    def get_status() -> StatusResponse:
        """Get server status."""
        snapshot = driver.snapshot()
        return StatusResponse(
            status="ok",
            collector_running=app.state.collector_running,
            log_path=str(log_path) if log_path else None,
            lines_processed=snapshot.lines_processed,
            finalized=snapshot.finalized,
            diagnostic_count=len(snapshot.diagnostics),
        )

    return app
