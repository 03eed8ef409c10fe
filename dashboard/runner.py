"""
Runs the authentication tests once per region/environment pair.

Each run is a pytest child process with BASE_URL / TEST_REGION / TEST_ENV set;
outcomes are read back from the JUnit XML report it writes. When that report
is missing or unreadable, the run is summarized from the exit code alone.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
import sys
import tempfile
import time
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from shared.junit import JunitReport, parse_junit_file
from shared.logging import get_logger
from suite.environments import get_base_url
from suite.regions import get_region

logger = get_logger(__name__)

AUTH_MARKER = "e2e and auth"
SPECS_DIR = "e2e"
MAX_OUTPUT_CHARS = 1000
FALLBACK_TEST_COUNT = 5

ProgressCallback = Callable[[dict[str, Any]], None]


def _empty_summary() -> dict[str, int]:
    return {"total": 0, "passed": 0, "failed": 0, "skipped": 0}


def spec_target(test_file: str) -> str:
    """`test_signin.py` -> `e2e/test_signin.py`; paths already under e2e/ are kept."""
    normalized = test_file.replace("\\", "/")
    if normalized.startswith(f"{SPECS_DIR}/"):
        return normalized
    return f"{SPECS_DIR}/{normalized}"


class TestRunner:
    __test__ = False

    def __init__(
        self,
        results_dir: str | Path = "test-results",
        cwd: Optional[str | Path] = None,
        run_command: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.results_dir = Path(results_dir)
        self.cwd = Path(cwd) if cwd is not None else None
        self.run_command = run_command

    def build_command(self, target: str, junit_path: Path) -> list[str]:
        return [
            sys.executable,
            "-m",
            "pytest",
            target,
            "-m",
            AUTH_MARKER,
            f"--junitxml={junit_path}",
            "-o",
            "junit_family=xunit1",
        ]

    def _relative_screenshot(self, path: str) -> str:
        try:
            return Path(path).resolve().relative_to(self.results_dir.resolve()).as_posix()
        except ValueError:
            return path.replace("\\", "/")

    def _tests_from_report(self, report: JunitReport) -> list[dict[str, Any]]:
        return [
            {
                "title": case.title,
                "file": case.file or case.classname,
                "status": case.status,
                "duration": case.duration_ms,
                "error": case.error,
                "screenshots": [self._relative_screenshot(s) for s in case.screenshots],
            }
            for case in report.cases
        ]

    def _execute(self, region: str, environment: str, target: str, fallback: bool) -> dict[str, Any]:
        base_url = get_base_url(get_region(region), environment)  # type: ignore[arg-type]
        env = {**os.environ, "BASE_URL": base_url, "TEST_REGION": region, "TEST_ENV": environment}

        with tempfile.TemporaryDirectory(prefix="e2e-junit-") as tmp:
            junit_path = Path(tmp) / "junit.xml"
            started = time.monotonic()
            completed = self.run_command(
                self.build_command(target, junit_path),
                env=env,
                cwd=self.cwd,
                capture_output=True,
                text=True,
            )
            duration = int((time.monotonic() - started) * 1000)
            success = completed.returncode == 0

            summary = _empty_summary()
            tests: list[dict[str, Any]] = []
            try:
                report = parse_junit_file(junit_path)
            except (OSError, ET.ParseError, ValueError) as e:
                logger.warning("junit_report_unreadable", region=region, environment=environment, error=str(e))
                report = None

        stdout = completed.stdout or ""
        stderr = completed.stderr or ""

        if report is not None:
            summary.update(
                total=report.total, passed=report.passed, failed=report.failed, skipped=report.skipped
            )
            tests = self._tests_from_report(report)
        elif fallback:
            summary.update(
                total=FALLBACK_TEST_COUNT,
                passed=FALLBACK_TEST_COUNT if success else 0,
                failed=0 if success else FALLBACK_TEST_COUNT,
            )
            tests.append(
                {
                    "title": "Test execution",
                    "status": "passed" if success else "failed",
                    "duration": duration,
                    "error": None if success else (stderr or "Test execution failed"),
                }
            )

        return {
            "baseUrl": base_url,
            "success": success,
            "duration": duration,
            "summary": summary,
            "tests": tests,
            "stdout": stdout[:MAX_OUTPUT_CHARS],
            "stderr": stderr[:MAX_OUTPUT_CHARS],
        }

    async def run_tests(
        self,
        job_id: str,
        regions: list[str],
        environments: list[str],
        progress_callback: ProgressCallback,
    ) -> dict[str, Any]:
        """Run every region x environment pair in turn and aggregate the outcomes."""
        results: dict[str, Any] = {
            "jobId": job_id,
            "summary": {**_empty_summary(), "duration": 0},
            "testRuns": [],
        }
        started = time.monotonic()
        total_runs = len(regions) * len(environments)
        completed_count = 0

        logger.info("test_job_started", job_id=job_id, regions=regions, environments=environments)

        for region in regions:
            for environment in environments:
                progress_callback(
                    {
                        "progress": {
                            "total": total_runs,
                            "completed": completed_count,
                            "current": f"Testing {region} - {environment}",
                        }
                    }
                )
                try:
                    outcome = await asyncio.to_thread(self._execute, region, environment, SPECS_DIR, True)
                    results["testRuns"].append(
                        {
                            "region": region,
                            "environment": environment,
                            "baseUrl": outcome["baseUrl"],
                            "status": "passed" if outcome["success"] else "failed",
                            "duration": outcome["duration"],
                            "tests": outcome["tests"],
                            "summary": outcome["summary"],
                        }
                    )
                    for key in ("total", "passed", "failed", "skipped"):
                        results["summary"][key] += outcome["summary"][key]
                    logger.info(
                        "test_run_finished",
                        job_id=job_id,
                        region=region,
                        environment=environment,
                        passed=outcome["summary"]["passed"],
                        total=outcome["summary"]["total"],
                    )
                except Exception as e:
                    logger.error(
                        "test_run_error",
                        job_id=job_id,
                        region=region,
                        environment=environment,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    results["testRuns"].append(
                        {
                            "region": region,
                            "environment": environment,
                            "status": "error",
                            "error": str(e),
                            "duration": 0,
                        }
                    )
                completed_count += 1

        results["summary"]["duration"] = int((time.monotonic() - started) * 1000)
        progress_callback(
            {"progress": {"total": total_runs, "completed": completed_count, "current": "Tests completed"}}
        )
        logger.info("test_job_finished", job_id=job_id, **results["summary"])
        return results

    async def run_single_test(
        self,
        region: str,
        environment: str,
        test_file: str,
        retry_attempt: int = 0,
    ) -> dict[str, Any]:
        logger.info(
            "test_retry_started",
            region=region,
            environment=environment,
            test_file=test_file,
            attempt=retry_attempt,
        )
        outcome = await asyncio.to_thread(self._execute, region, environment, spec_target(test_file), False)
        return {
            "region": region,
            "environment": environment,
            "testFile": test_file,
            "retryAttempt": retry_attempt,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "duration": outcome["duration"],
            "success": outcome["success"],
            "summary": outcome["summary"],
            "tests": outcome["tests"],
        }
