"""
Tests for the multi-region jobs server: auth, job lifecycle, results,
downloads, retries and result-file serving.

A fake runner returns canned results; background tasks run inside the
TestClient request, so jobs are finished when the POST returns.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from dashboard.jobs_main import create_jobs_app
from dashboard.job_store import JobStore
from dashboard.routes.jobs import MAX_RETRIES
from dashboard.trivia import TRIVIA_MESSAGES

RUN_RESULTS = {
    "summary": {"total": 3, "passed": 2, "failed": 1, "skipped": 0, "duration": 1200},
    "testRuns": [
        {
            "region": "GB",
            "environment": "qa",
            "baseUrl": "https://qa.printerpix.co.uk",
            "status": "failed",
            "duration": 1200,
            "summary": {"total": 3, "passed": 2, "failed": 1, "skipped": 0},
            "tests": [
                {"title": "test_login_page_displays_form", "file": "e2e/test_signin.py", "status": "passed"},
                {"title": "test_sign_in_with_valid_credentials", "file": "e2e/test_signin.py", "status": "failed"},
                {"title": "test_password_reset_flow_returns_to_sign_in", "file": "e2e/test_forgot_password.py", "status": "passed"},
            ],
        }
    ],
}


class FakeRunner:
    def __init__(self, fail_with: Exception | None = None, retry_success: bool = True) -> None:
        self.fail_with = fail_with
        self.retry_success = retry_success
        self.single_calls: list[tuple] = []

    async def run_tests(self, job_id, regions, environments, progress_callback):
        progress_callback({"progress": {"total": 1, "completed": 0, "current": "Testing GB - qa"}})
        if self.fail_with:
            raise self.fail_with
        progress_callback({"progress": {"total": 1, "completed": 1, "current": "Tests completed"}})
        return {"jobId": job_id, **copy.deepcopy(RUN_RESULTS)}

    async def run_single_test(self, region, environment, test_file, retry_attempt=0):
        self.single_calls.append((region, environment, test_file, retry_attempt))
        return {
            "region": region,
            "environment": environment,
            "testFile": test_file,
            "retryAttempt": retry_attempt,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "duration": 800,
            "success": self.retry_success,
            "summary": {"total": 1, "passed": 1 if self.retry_success else 0, "failed": 0, "skipped": 0},
            "tests": [],
        }


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def store() -> JobStore:
    return JobStore()


@pytest.fixture
def client(results_dir, runner, store, make_config):
    app = create_jobs_app(config=make_config(results_dir), job_store=store, test_runner=runner)
    with TestClient(app) as client:
        yield client


def _start_job(client, auth_headers) -> str:
    response = client.post(
        "/api/run-tests", json={"regions": ["GB"], "environments": ["qa"]}, headers=auth_headers
    )
    assert response.status_code == 200
    return response.json()["jobId"]


# --- Auth ---


def test_requires_credentials(client):
    response = client.get("/api/health")
    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith("Basic")


def test_rejects_wrong_password(client, basic_auth):
    response = client.get("/api/health", headers=basic_auth("dashboard-user", "nope"))
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_rejects_everything_when_auth_unset(results_dir, runner, make_config, basic_auth):
    app = create_jobs_app(
        config=make_config(results_dir, auth_username=None, auth_password=None), test_runner=runner
    )
    with TestClient(app) as client:
        response = client.get("/api/health", headers=basic_auth("admin", "anything"))
    assert response.status_code == 401


def test_health(client, auth_headers):
    body = client.get("/api/health", headers=auth_headers).json()
    assert body["status"] == "ok"
    assert body["activeJobs"] == 0


def test_trivia(client, auth_headers):
    assert client.get("/api/trivia", headers=auth_headers).json()["message"] in TRIVIA_MESSAGES


# --- Jobs ---


def test_run_tests_validation(client, auth_headers):
    response = client.post("/api/run-tests", json={"regions": [], "environments": ["qa"]}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Regions array is required and cannot be empty"}

    response = client.post("/api/run-tests", json={"regions": ["GB"]}, headers=auth_headers)
    assert response.json() == {"error": "Environments array is required and cannot be empty"}


def test_run_tests_completes_job(client, auth_headers):
    response = client.post(
        "/api/run-tests", json={"regions": ["GB", "US"], "environments": ["qa", "live"]}, headers=auth_headers
    )
    body = response.json()
    assert body["message"] == "Test execution started"
    assert body["totalTests"] == 4
    assert body["jobId"].startswith("job-")

    status = client.get(f"/api/test-status/{body['jobId']}", headers=auth_headers).json()
    assert status["status"] == "completed"
    assert status["progress"]["current"] == "Tests completed"
    assert status["endTime"] is not None


def test_failed_job(results_dir, store, auth_headers, make_config):
    app = create_jobs_app(
        config=make_config(results_dir), job_store=store, test_runner=FakeRunner(RuntimeError("spawn failed"))
    )
    with TestClient(app) as client:
        job_id = _start_job(client, auth_headers)
        status = client.get(f"/api/test-status/{job_id}", headers=auth_headers).json()
        results = client.get(f"/api/test-results/{job_id}", headers=auth_headers)

    assert status["status"] == "failed"
    assert status["error"] == "spawn failed"
    assert results.status_code == 400
    assert results.json() == {"error": "Job is not completed yet"}


def test_unknown_job(client, auth_headers):
    response = client.get("/api/test-status/job-0-missing", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Job not found"}


def test_results_and_download(client, auth_headers):
    job_id = _start_job(client, auth_headers)

    results = client.get(f"/api/test-results/{job_id}", headers=auth_headers).json()
    assert results["regions"] == ["GB"]
    assert results["results"]["summary"]["failed"] == 1

    download = client.get(f"/api/test-results/{job_id}/download", headers=auth_headers)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert download.headers["content-disposition"] == (
        f'attachment; filename="test-results-{job_id}-{today}.json"'
    )
    assert download.json()["testRuns"][0]["region"] == "GB"


# --- Retries ---


def test_retry_validation(client, auth_headers):
    response = client.post("/api/retry-test", json={"jobId": "x"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "jobId, region, environment, and testFile are required"}


def test_retry_unknown_original(client, auth_headers):
    response = client.post(
        "/api/retry-test",
        json={"jobId": "job-1-x", "region": "GB", "environment": "qa", "testFile": "test_signin.py"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Original job not found"}


def test_retry_unknown_run_and_file(client, auth_headers):
    job_id = _start_job(client, auth_headers)
    payload = {"jobId": job_id, "region": "US", "environment": "qa", "testFile": "test_signin.py"}

    response = client.post("/api/retry-test", json=payload, headers=auth_headers)
    assert response.json() == {"error": "Test run not found for specified region/environment"}

    payload.update(region="GB", testFile="test_register.py")
    response = client.post("/api/retry-test", json=payload, headers=auth_headers)
    assert response.json() == {"error": "Test file not found in results"}


def test_retry_records_history_and_caps_attempts(client, runner, store, auth_headers):
    job_id = _start_job(client, auth_headers)
    payload = {"jobId": job_id, "region": "GB", "environment": "qa", "testFile": "test_signin.py"}

    for attempt in range(1, MAX_RETRIES + 1):
        body = client.post("/api/retry-test", json=payload, headers=auth_headers).json()
        assert body["retryAttempt"] == attempt
        assert body["message"] == "Retry started for test_signin.py (GB-qa)"

    response = client.post("/api/retry-test", json=payload, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": f"Maximum retry attempts ({MAX_RETRIES}) reached for this test"}

    test = store.get(job_id).results["testRuns"][0]["tests"][0]
    assert [h["attempt"] for h in test["retryHistory"]] == [1, 2, 3]
    assert test["retryHistory"][0]["status"] == "passed"
    assert runner.single_calls[0] == ("GB", "qa", "test_signin.py", 1)

    retry_job_id = test["retryHistory"][0]["retryJobId"]
    retry_job = store.get(retry_job_id)
    assert retry_job.parent_job_id == job_id
    assert retry_job.original_job_id == job_id

    status = client.get(f"/api/retry-status/{retry_job_id}", headers=auth_headers).json()
    assert status["status"] == "completed"
    assert status["retryAttempt"] == 1
    assert status["results"]["testFile"] == "test_signin.py"


def test_retry_status_unknown(client, auth_headers):
    response = client.get("/api/retry-status/retry-0-x", headers=auth_headers)
    assert response.json() == {"error": "Retry job not found"}


def test_retry_all_failed(client, runner, auth_headers):
    job_id = _start_job(client, auth_headers)

    body = client.post("/api/retry-all-failed", json={"jobId": job_id}, headers=auth_headers).json()

    assert body["retriedTests"] == 1
    assert body["message"] == "Started retries for 1 failed tests"
    assert len(body["retryJobIds"]) == 1
    assert runner.single_calls == [("GB", "qa", "e2e/test_signin.py", 1)]


def test_retry_all_failed_nothing_left(client, auth_headers):
    job_id = _start_job(client, auth_headers)
    for _ in range(MAX_RETRIES):
        client.post("/api/retry-all-failed", json={"jobId": job_id}, headers=auth_headers)

    response = client.post("/api/retry-all-failed", json={"jobId": job_id}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "No failed tests to retry (or all have reached max attempts)"}


def test_retry_all_failed_requires_job_id(client, auth_headers):
    response = client.post("/api/retry-all-failed", json={}, headers=auth_headers)
    assert response.json() == {"error": "jobId is required"}


# --- Result files ---


def test_serves_result_files(client, results_dir, auth_headers):
    shots = results_dir / "screenshots"
    shots.mkdir()
    (shots / "fail.png").write_bytes(b"\x89PNG")

    response = client.get("/test-results/screenshots/fail.png", headers=auth_headers)

    assert response.status_code == 200
    assert response.content == b"\x89PNG"


def test_result_files_require_auth(client, results_dir):
    (results_dir / "a.json").write_text("{}")
    assert client.get("/test-results/a.json").status_code == 401


def test_result_files_confined(client, results_dir, auth_headers):
    (results_dir.parent / "secret.txt").write_text("nope")
    response = client.get("/test-results/..%2Fsecret.txt", headers=auth_headers)
    assert response.status_code == 404
