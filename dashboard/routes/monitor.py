"""
Route handlers for the navigation monitor dashboard.

Every error body uses `{status: "error", message}`; see the exception handlers
in `dashboard.main`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from dashboard.process_manager import MonitorProcessManager, NoTestRunningError, TestAlreadyRunningError
from dashboard.progress_watcher import read_progress_json
from dashboard.schemas import StartTestRequest
from shared.logging import get_logger
from suite.monitor import environment_dir_name
from suite.progress import ProgressReporter

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["monitor"])

DEFAULT_ENVIRONMENT_DIR = "qa-printerpix-co-uk"


def get_process_manager(request: Request) -> MonitorProcessManager:
    """Dependency returning the app's single process manager."""
    return request.app.state.process_manager


def get_reporter(request: Request) -> ProgressReporter:
    return request.app.state.reporter


def _environment_dir(environment: Optional[str]) -> str:
    env_dir = environment_dir_name(environment) if environment else DEFAULT_ENVIRONMENT_DIR
    if not env_dir or "/" in env_dir or "\\" in env_dir:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid environment")
    return env_dir


@router.get("/status")
def get_status(
    reporter: Annotated[ProgressReporter, Depends(get_reporter)],
    manager: Annotated[MonitorProcessManager, Depends(get_process_manager)],
) -> dict:
    data = read_progress_json(reporter.progress_file)
    if data is None:
        return {
            "status": "success",
            "data": {"status": "idle", "message": "No test running"},
            "isRunning": False,
        }
    return {"status": "success", "data": data, "isRunning": manager.is_running}


@router.post("/start-test")
def start_test(
    manager: Annotated[MonitorProcessManager, Depends(get_process_manager)],
    request: Optional[StartTestRequest] = None,
) -> dict:
    request = request or StartTestRequest()
    try:
        pid = manager.start(request.duration, request.environment)
    except TestAlreadyRunningError:
        logger.warning("start_test_rejected", reason="already_running")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Test is already running")

    return {"status": "success", "message": "Test started successfully", "pid": pid}


@router.post("/stop-test")
def stop_test(manager: Annotated[MonitorProcessManager, Depends(get_process_manager)]) -> dict:
    try:
        manager.stop()
    except NoTestRunningError:
        logger.warning("stop_test_rejected", reason="not_running")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No test is currently running")

    return {"status": "success", "message": "Stop signal sent to test"}


@router.get("/results")
def get_results(
    reporter: Annotated[ProgressReporter, Depends(get_reporter)],
    environment: Optional[str] = None,
) -> dict:
    summary_path = reporter.base_dir / _environment_dir(environment) / "summary.json"
    if not summary_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No results found for this environment",
        )
    return {"status": "success", "data": json.loads(summary_path.read_text(encoding="utf-8"))}


@router.get("/screenshots")
def list_screenshots(
    request: Request,
    reporter: Annotated[ProgressReporter, Depends(get_reporter)],
    environment: Optional[str] = None,
) -> dict:
    """Failure screenshots for one environment, newest first."""
    env_dir = _environment_dir(environment)
    screenshots_dir = reporter.base_dir / env_dir / "screenshots"
    if not screenshots_dir.is_dir():
        return {"status": "success", "data": []}

    results_root: Path = request.app.state.results_dir
    try:
        url_prefix = screenshots_dir.relative_to(results_root).as_posix()
    except ValueError:
        url_prefix = f"navigation-monitoring/{env_dir}/screenshots"

    entries = []
    for file in screenshots_dir.glob("*.png"):
        mtime = file.stat().st_mtime
        entries.append((mtime, file.name))
    entries.sort(reverse=True)

    return {
        "status": "success",
        "data": [
            {
                "filename": name,
                "path": f"/test-results/{url_prefix}/{name}",
                "timestamp": datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat(),
            }
            for mtime, name in entries
        ],
    }
