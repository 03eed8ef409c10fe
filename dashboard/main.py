"""
FastAPI application for the navigation monitor dashboard.

Starts/stops the monitor test module as a child process, serves its results and
screenshots, and pushes progress-file changes to browsers over `/ws`.

Run with: uvicorn --factory dashboard.main:create_app --port 3000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.staticfiles import StaticFiles

from dashboard.process_manager import MonitorProcessManager
from dashboard.progress_watcher import ConnectionManager, ProgressWatcher, progress_message, read_progress_json
from dashboard.routes import monitor
from shared.config import get_config
from shared.logging import configure_logging_from_config, get_logger
from suite.progress import ProgressReporter

logger = get_logger(__name__)


def create_app(
    results_dir: Optional[str | Path] = None,
    process_manager: Optional[MonitorProcessManager] = None,
) -> FastAPI:
    """Create and configure the monitor dashboard."""
    config = get_config()
    configure_logging_from_config(config)

    results_root = Path(results_dir or config.results_dir)
    reporter = ProgressReporter(results_root / "navigation-monitoring")
    reporter.base_dir.mkdir(parents=True, exist_ok=True)

    connections = ConnectionManager()
    watcher = ProgressWatcher(reporter.progress_file, connections.broadcast)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        reporter.reset_progress()
        watcher.start()
        logger.info("monitor_dashboard_started", results_dir=str(results_root))
        yield
        await watcher.stop()

    app = FastAPI(
        title="Navigation Monitor Dashboard",
        description="Start, stop and follow the storefront navigation monitor",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.results_dir = results_root
    app.state.reporter = reporter
    app.state.process_manager = process_manager or MonitorProcessManager(reporter)
    app.state.connections = connections

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "message": exc.detail},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("dashboard_request_failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content={"status": "error", "message": str(exc)})

    app.include_router(monitor.router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.websocket("/ws")
    async def progress_socket(websocket: WebSocket) -> None:
        await connections.connect(websocket)
        data = read_progress_json(reporter.progress_file)
        if data is not None:
            await websocket.send_json(progress_message(data))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            connections.disconnect(websocket)

    app.mount("/test-results", StaticFiles(directory=results_root), name="test-results")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=get_config().port)
