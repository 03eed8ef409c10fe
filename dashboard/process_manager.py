"""
Owner of the single navigation-monitor child process.

The dashboard starts the monitor test module as a pytest subprocess, relays its output
into the log, and asks it to stop through the progress file's stop signal
before terminating it.
"""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import threading
from typing import Callable, Optional

from shared.logging import get_logger
from suite.progress import ProgressReporter

logger = get_logger(__name__)

MONITOR_SPEC = "e2e/test_navigation_monitor.py"
KILL_GRACE_SECONDS = 5.0


class TestAlreadyRunningError(RuntimeError):
    __test__ = False


class NoTestRunningError(RuntimeError):
    pass


def monitor_command(target: str = MONITOR_SPEC) -> list[str]:
    return [sys.executable, "-m", "pytest", target, "-m", "e2e", "-s"]


class MonitorProcessManager:
    """At most one monitor run at a time; `start`/`stop` raise when that would be violated."""

    def __init__(
        self,
        reporter: ProgressReporter,
        spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
        cwd: Optional[str] = None,
        kill_grace_seconds: float = KILL_GRACE_SECONDS,
    ) -> None:
        self.reporter = reporter
        self.spawn = spawn
        self.cwd = cwd
        self.kill_grace_seconds = kill_grace_seconds
        self._process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._process is not None

    def start(self, duration: float, environment: str) -> int:
        with self._lock:
            if self._process is not None:
                raise TestAlreadyRunningError("Test is already running")

            env = {
                **os.environ,
                "TEST_DURATION_MINUTES": str(duration),
                "TEST_ENVIRONMENT": environment,
            }
            process = self.spawn(
                monitor_command(),
                env=env,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
            self._process = process

        logger.info("monitor_test_started", pid=process.pid, duration=duration, environment=environment)
        threading.Thread(target=self._watch, args=(process,), daemon=True).start()
        return process.pid

    def _watch(self, process: subprocess.Popen) -> None:
        if process.stdout is not None:
            for line in process.stdout:
                line = line.rstrip()
                if line:
                    logger.info("monitor_test_output", line=line)
        code = process.wait()
        self._on_exit(process, code)

    def _on_exit(self, process: subprocess.Popen, code: int) -> None:
        logger.info("monitor_test_exited", pid=process.pid, exit_code=code)
        with self._lock:
            if self._process is process:
                self._process = None

        current = self.reporter.get_current_progress()
        if current is not None and current.status == "running":
            self.reporter.mark_test_complete()

    def stop(self) -> None:
        with self._lock:
            process = self._process
            if process is None:
                raise NoTestRunningError("No test is currently running")

        self.reporter.create_stop_signal()
        self.reporter.update_progress(status="stopped")

        logger.info("monitor_test_stopping", pid=process.pid)
        process.send_signal(signal.SIGTERM)

        timer = threading.Timer(self.kill_grace_seconds, self._force_kill, args=(process,))
        timer.daemon = True
        timer.start()

    def _force_kill(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        logger.warning("monitor_test_force_killed", pid=process.pid)
        process.kill()
        with self._lock:
            if self._process is process:
                self._process = None
