"""
Live progress file shared by the navigation monitor and the dashboard.

The monitor (a pytest child process) writes `.progress.json` after every click;
the dashboard watches it and relays it to browsers. A `.stop-signal` sentinel
next to it asks the monitor to stop at its next iteration.

Writes go to a temp file in the same directory followed by `os.replace`, so a
reader never observes a half-written document.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, ValidationError

from shared.logging import get_logger
from suite.results import CamelModel, format_success_rate

logger = get_logger(__name__)

PROGRESS_FILENAME = ".progress.json"
STOP_SIGNAL_FILENAME = ".stop-signal"
MAX_RECENT_FAILURES = 10

ProgressStatus = Literal["idle", "running", "completed", "stopped"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def default_progress_dir() -> Path:
    return Path(os.getenv("RESULTS_DIR", "test-results")) / "navigation-monitoring"


class RecentFailure(CamelModel):
    link_name: str
    timestamp: str
    screenshot_path: str
    error_details: str


class ProgressState(CamelModel):
    status: ProgressStatus
    start_time: str
    current_time: str
    duration: int
    elapsed: int = 0
    remaining: int = 0
    total_clicks: int = 0
    successful_clicks: int = 0
    failed_clicks: int = 0
    success_rate: str = "0.0%"
    current_link: Optional[str] = None
    current_environment: str = ""
    recent_failures: list[RecentFailure] = Field(default_factory=list)
    should_stop: bool = False


def _fresh_state(status: ProgressStatus, duration: int, environment: str) -> ProgressState:
    now = _now().isoformat()
    return ProgressState(
        status=status,
        start_time=now,
        current_time=now,
        duration=duration,
        remaining=duration,
        current_environment=environment,
    )


class ProgressReporter:
    """Reads and writes the monitor's progress file and stop sentinel."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else default_progress_dir()
        self.progress_file = self.base_dir / PROGRESS_FILENAME
        self.stop_signal_file = self.base_dir / STOP_SIGNAL_FILENAME

    def _read(self) -> Optional[ProgressState]:
        if not self.progress_file.exists():
            return None
        try:
            return ProgressState.model_validate_json(self.progress_file.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("progress_file_unreadable", path=str(self.progress_file), error=str(e))
            return None

    def _write(self, state: ProgressState) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, prefix=".progress-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(state.to_json_dict(), handle, indent=2)
            os.replace(tmp_path, self.progress_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _clear_stop_signal(self) -> None:
        self.stop_signal_file.unlink(missing_ok=True)

    def init_progress_file(self, environment: str, duration_minutes: float) -> ProgressState:
        state = _fresh_state("running", int(duration_minutes * 60), environment)
        self._write(state)
        self._clear_stop_signal()
        logger.info("progress_initialized", environment=environment, duration=state.duration)
        return state

    def update_progress(self, **partial: Any) -> ProgressState:
        """
        Merge snake_case fields into the current state.

        Elapsed/remaining always come from the wall clock. The success rate is
        recomputed whenever `total_clicks` is part of the update.
        """
        current = self._read() or _fresh_state("running", 300, "unknown")

        now = _now()
        elapsed = max(0, int((now - _parse_time(current.start_time)).total_seconds()))

        merged = current.model_dump()
        merged.update(partial)
        merged["current_time"] = now.isoformat()
        merged["elapsed"] = elapsed
        merged["remaining"] = max(0, current.duration - elapsed)

        state = ProgressState.model_validate(merged)
        if "total_clicks" in partial:
            state.success_rate = format_success_rate(state.successful_clicks, state.total_clicks)

        self._write(state)
        return state

    def add_failure(self, failure: RecentFailure | dict) -> None:
        """Push onto the recent-failures ring (newest first). No-op when no run is recorded."""
        current = self._read()
        if current is None:
            return
        entry = failure if isinstance(failure, RecentFailure) else RecentFailure.model_validate(failure)
        current.recent_failures = [entry, *current.recent_failures][:MAX_RECENT_FAILURES]
        self._write(current)

    def mark_test_complete(self) -> ProgressState:
        return self.update_progress(status="completed")

    def mark_test_stopped(self) -> ProgressState:
        return self.update_progress(status="stopped")

    def should_stop_test(self) -> bool:
        if self.stop_signal_file.exists():
            return True
        current = self._read()
        return bool(current and current.should_stop)

    def create_stop_signal(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.stop_signal_file.write_text(_now().isoformat(), encoding="utf-8")
        self.update_progress(should_stop=True)
        logger.info("stop_signal_created", path=str(self.stop_signal_file))

    def get_current_progress(self) -> Optional[ProgressState]:
        return self._read()

    def reset_progress(self) -> ProgressState:
        state = _fresh_state("idle", 0, "")
        self._write(state)
        self._clear_stop_signal()
        return state
