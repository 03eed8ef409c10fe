"""
Route handlers for the multi-region jobs server.

Error bodies are `{error: ...}`; see the exception handler in
`dashboard.jobs_main`.
"""

from __future__ import annotations

import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from dashboard.job_store import JobStore
from dashboard.runner import TestRunner
from dashboard.schemas import (
    Job,
    JobStatusResponse,
    RetryAllFailedRequest,
    RetryTestRequest,
    RunTestsRequest,
)
from dashboard.trivia import get_random_trivia
from shared.config import AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3

security = HTTPBasic(realm="Automated Testing Dashboard")


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_test_runner(request: Request) -> TestRunner:
    return request.app.state.test_runner


def verify_credentials(
    credentials: Annotated[HTTPBasicCredentials, Depends(security)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> str:
    """
    Check the basic-auth pair against AUTH_USERNAME / AUTH_PASSWORD.

    With either variable unset every request is rejected.
    """
    expected_user = config.auth_username
    expected_password = config.auth_password
    if expected_user and expected_password:
        user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), expected_user.encode("utf-8"))
        password_ok = secrets.compare_digest(
            credentials.password.encode("utf-8"), expected_password.encode("utf-8")
        )
        if user_ok and password_ok:
            return credentials.username

    logger.warning("basic_auth_rejected", username=credentials.username)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
        headers={"WWW-Authenticate": 'Basic realm="Automated Testing Dashboard"'},
    )


router = APIRouter(dependencies=[Depends(verify_credentials)])


def _require_job(store: JobStore, job_id: str, detail: str = "Job not found") -> Job:
    job = store.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return job


def _require_completed(job: Job) -> None:
    if job.status != "completed":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job is not completed yet")


async def execute_job(
    store: JobStore, runner: TestRunner, job_id: str, regions: list[str], environments: list[str]
) -> None:
    try:
        results = await runner.run_tests(
            job_id, regions, environments, lambda update: store.update_progress(job_id, update)
        )
    except Exception as e:
        store.fail(job_id, str(e))
        return
    store.complete(job_id, results)


async def execute_retry(
    store: JobStore,
    runner: TestRunner,
    retry_job_id: str,
    region: str,
    environment: str,
    test_file: str,
    retry_attempt: int,
    test: dict[str, Any],
) -> None:
    try:
        result = await runner.run_single_test(region, environment, test_file, retry_attempt)
    except Exception as e:
        store.fail(retry_job_id, str(e))
        return

    store.complete(retry_job_id, result)
    test.setdefault("retryHistory", []).append(
        {
            "retryJobId": retry_job_id,
            "attempt": retry_attempt,
            "timestamp": result["timestamp"],
            "status": "passed" if result["success"] else "failed",
            "duration": result["duration"],
        }
    )


@router.post("/api/run-tests")
def run_tests(
    request: RunTestsRequest,
    background_tasks: BackgroundTasks,
    store: Annotated[JobStore, Depends(get_job_store)],
    runner: Annotated[TestRunner, Depends(get_test_runner)],
) -> dict:
    if not request.regions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Regions array is required and cannot be empty",
        )
    if not request.environments:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Environments array is required and cannot be empty",
        )

    job = store.create_job(request.regions, request.environments)
    background_tasks.add_task(execute_job, store, runner, job.id, job.regions, job.environments)

    return {
        "jobId": job.id,
        "message": "Test execution started",
        "totalTests": job.progress.total,
    }


@router.get("/api/test-status/{job_id}")
def get_test_status(job_id: str, store: Annotated[JobStore, Depends(get_job_store)]) -> dict:
    job = _require_job(store, job_id)
    return JobStatusResponse.model_validate(job.model_dump()).to_json_dict()


@router.get("/api/test-results/{job_id}")
def get_test_results(job_id: str, store: Annotated[JobStore, Depends(get_job_store)]) -> dict:
    job = _require_job(store, job_id)
    _require_completed(job)
    return {
        "id": job.id,
        "status": job.status,
        "startTime": job.start_time,
        "endTime": job.end_time,
        "regions": job.regions,
        "environments": job.environments,
        "results": job.results,
    }


@router.get("/api/test-results/{job_id}/download")
def download_test_results(job_id: str, store: Annotated[JobStore, Depends(get_job_store)]) -> Response:
    job = _require_job(store, job_id)
    _require_completed(job)
    filename = f"test-results-{job_id}-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.json"
    return Response(
        content=json.dumps(job.results, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/retry-test")
def retry_test(
    request: RetryTestRequest,
    background_tasks: BackgroundTasks,
    store: Annotated[JobStore, Depends(get_job_store)],
    runner: Annotated[TestRunner, Depends(get_test_runner)],
) -> dict:
    if not (request.job_id and request.region and request.environment and request.test_file):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="jobId, region, environment, and testFile are required",
        )

    original = _require_job(store, request.job_id, "Original job not found")
    test_runs = (original.results or {}).get("testRuns", [])
    test_run = next(
        (r for r in test_runs if r.get("region") == request.region and r.get("environment") == request.environment),
        None,
    )
    if test_run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Test run not found for specified region/environment",
        )

    test = next((t for t in test_run.get("tests") or [] if t.get("file") and request.test_file in t["file"]), None)
    if test is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test file not found in results")

    retry_count = len(test.get("retryHistory") or [])
    if retry_count >= MAX_RETRIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum retry attempts ({MAX_RETRIES}) reached for this test",
        )

    attempt = retry_count + 1
    retry_job = store.create_retry_job(original, request.region, request.environment, request.test_file, attempt)
    background_tasks.add_task(
        execute_retry,
        store,
        runner,
        retry_job.id,
        request.region,
        request.environment,
        request.test_file,
        attempt,
        test,
    )

    return {
        "retryJobId": retry_job.id,
        "retryAttempt": attempt,
        "message": f"Retry started for {request.test_file} ({request.region}-{request.environment})",
    }


@router.post("/api/retry-all-failed")
def retry_all_failed(
    request: RetryAllFailedRequest,
    background_tasks: BackgroundTasks,
    store: Annotated[JobStore, Depends(get_job_store)],
    runner: Annotated[TestRunner, Depends(get_test_runner)],
) -> dict:
    if not request.job_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="jobId is required")

    original = _require_job(store, request.job_id)
    if original.status != "completed":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Job must be completed before retrying",
        )

    failed: list[tuple[dict, dict]] = []
    for test_run in (original.results or {}).get("testRuns", []):
        for test in test_run.get("tests") or []:
            if test.get("status") == "failed" and test.get("file") and len(test.get("retryHistory") or []) < MAX_RETRIES:
                failed.append((test_run, test))

    if not failed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No failed tests to retry (or all have reached max attempts)",
        )

    retry_job_ids: list[str] = []
    for test_run, test in failed:
        attempt = len(test.get("retryHistory") or []) + 1
        retry_job = store.create_retry_job(
            original, test_run["region"], test_run["environment"], test["file"], attempt
        )
        retry_job_ids.append(retry_job.id)
        background_tasks.add_task(
            execute_retry,
            store,
            runner,
            retry_job.id,
            test_run["region"],
            test_run["environment"],
            test["file"],
            attempt,
            test,
        )

    return {
        "message": f"Started retries for {len(failed)} failed tests",
        "retriedTests": len(failed),
        "retryJobIds": retry_job_ids,
    }


@router.get("/api/retry-status/{retry_job_id}")
def get_retry_status(retry_job_id: str, store: Annotated[JobStore, Depends(get_job_store)]) -> dict:
    job = _require_job(store, retry_job_id, "Retry job not found")
    return {
        "id": job.id,
        "status": job.status,
        "retryAttempt": job.retry_attempt,
        "startTime": job.start_time,
        "endTime": job.end_time,
        "results": job.results,
        "error": job.error,
    }


@router.get("/api/trivia")
def trivia() -> dict:
    return {"message": get_random_trivia()}


@router.get("/api/health")
def health(store: Annotated[JobStore, Depends(get_job_store)]) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "activeJobs": len(store),
    }


@router.get("/test-results/{file_path:path}")
def serve_result_file(file_path: str, request: Request) -> FileResponse:
    """Results and screenshots, confined to the results directory."""
    root: Path = request.app.state.results_dir.resolve()
    target = (root / file_path).resolve()
    if not target.is_relative_to(root) or not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(target)

