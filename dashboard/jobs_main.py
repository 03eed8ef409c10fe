"""
FastAPI application for the multi-region jobs server.

Runs the authentication tests for chosen regions and environments in the
background and exposes job status, results and retries. Every route sits
behind HTTP Basic auth.

Run with: uvicorn --factory dashboard.jobs_main:create_jobs_app --port 3000
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard.job_store import JobStore
from dashboard.routes import jobs
from dashboard.runner import TestRunner
from shared.config import AppConfig, get_config
from shared.logging import configure_logging_from_config, get_logger

logger = get_logger(__name__)

EVICTION_INTERVAL_SECONDS = 60 * 60


async def _evict_periodically(store: JobStore, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            store.evict_expired()
        except Exception as e:
            logger.error("job_eviction_failed", error=str(e), error_type=type(e).__name__)


def create_jobs_app(
    config: Optional[AppConfig] = None,
    job_store: Optional[JobStore] = None,
    test_runner: Optional[TestRunner] = None,
) -> FastAPI:
    """Create and configure the jobs server."""
    config = config or get_config()
    configure_logging_from_config(config)

    results_root = Path(config.results_dir)
    store = job_store or JobStore()

    if not (config.auth_username and config.auth_password):
        logger.warning("basic_auth_not_configured", detail="AUTH_USERNAME/AUTH_PASSWORD unset; all requests will be rejected")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(_evict_periodically(store, EVICTION_INTERVAL_SECONDS))
        logger.info("jobs_server_started", results_dir=str(results_root))
        yield
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title="Automated Testing Dashboard",
        description="Run authentication tests across regions and environments",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.results_dir = results_root
    app.state.job_store = store
    app.state.test_runner = test_runner or TestRunner(results_dir=results_root)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("jobs_request_failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(jobs.router)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_jobs_app(), host="0.0.0.0", port=get_config().port)
