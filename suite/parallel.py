"""
Run one Printbox link-validation pytest process per chunk file, concurrently.

Each child gets its chunk through CHUNK_FILE / CHUNK_ID / BATCH_START /
BATCH_SIZE and writes combined stdout/stderr to
`<results_dir>/printbox/chunk-{i}/test-output.log`.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Optional

from shared.logging import get_logger
from suite.splitter import CHUNK_FILE_TEMPLATE

logger = get_logger(__name__)

PRINTBOX_TEST_MODULE = "e2e/test_printbox_links.py"
TERMINATE_GRACE_SECONDS = 10.0


@dataclass(frozen=True)
class WorkerResult:
    worker_id: int
    chunk_file: str
    exit_code: int

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


def worker_command(target: str = PRINTBOX_TEST_MODULE) -> list[str]:
    return [sys.executable, "-m", "pytest", target, "-m", "e2e"]


def _abort_workers(running: list[tuple[int, str, subprocess.Popen, IO]], grace: float) -> None:
    """Terminate, then kill if needed, every started worker and close its log."""
    for worker_id, _, process, log_handle in running:
        try:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=grace)
                except subprocess.TimeoutExpired:
                    logger.warning("worker_force_killed", worker_id=worker_id)
                    process.kill()
                    process.wait()
        finally:
            log_handle.close()
        logger.warning("worker_aborted", worker_id=worker_id)


def _chunk_length(chunk_file: Path) -> int:
    try:
        return len(json.loads(chunk_file.read_text(encoding="utf-8")))
    except (OSError, ValueError):
        return 0


def run_parallel_tests(
    num_workers: int = 10,
    chunks_dir: str | Path = "test-data/chunks",
    results_dir: str | Path = "test-results",
    spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
    on_finish: Optional[Callable[[WorkerResult], None]] = None,
    terminate_grace: float = TERMINATE_GRACE_SECONDS,
) -> list[WorkerResult]:
    """
    Start every worker, then wait for all of them. There is no timeout and no
    retry; a missing chunk file is logged and skipped. If a worker cannot be
    started, the ones already running are stopped before the error propagates.
    """
    chunks_path = Path(chunks_dir)
    if not chunks_path.is_dir():
        raise FileNotFoundError(f"Chunks directory not found: {chunks_path}")

    running: list[tuple[int, str, subprocess.Popen, IO]] = []
    for i in range(1, num_workers + 1):
        chunk_file = chunks_path / CHUNK_FILE_TEMPLATE.format(i)
        if not chunk_file.exists():
            logger.error("chunk_file_missing", worker_id=i, path=str(chunk_file))
            continue

        log_path = Path(results_dir) / "printbox" / f"chunk-{i}" / "test-output.log"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_handle = open(log_path, "wb")

        env = {
            **os.environ,
            "CHUNK_FILE": str(chunk_file),
            "CHUNK_ID": str(i),
            "BATCH_START": "1",
            "BATCH_SIZE": str(_chunk_length(chunk_file)),
        }
        try:
            process = spawn(worker_command(), env=env, stdout=log_handle, stderr=subprocess.STDOUT)
        except Exception as e:
            log_handle.close()
            logger.error("worker_spawn_failed", worker_id=i, error=str(e), error_type=type(e).__name__)
            _abort_workers(running, terminate_grace)
            raise
        logger.info("worker_started", worker_id=i, chunk_file=chunk_file.name, log=str(log_path))
        running.append((i, chunk_file.name, process, log_handle))

    results: list[WorkerResult] = []
    for worker_id, chunk_name, process, log_handle in running:
        try:
            exit_code = process.wait()
        finally:
            log_handle.close()
        result = WorkerResult(worker_id=worker_id, chunk_file=chunk_name, exit_code=exit_code)
        logger.info("worker_finished", worker_id=worker_id, exit_code=exit_code, passed=result.passed)
        if on_finish is not None:
            on_finish(result)
        results.append(result)

    return results
