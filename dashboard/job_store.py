"""In-memory registry of test jobs and retry jobs for the jobs server."""

from __future__ import annotations

import random
import string
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from dashboard.schemas import Job, JobProgress
from shared.logging import get_logger

logger = get_logger(__name__)

MAX_JOB_AGE = timedelta(hours=24)
_ID_ALPHABET = string.ascii_lowercase + string.digits


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id(prefix: str = "job") -> str:
    """`job-<epoch ms>-<9 random chars>`."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


class JobStore:
    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def create_job(self, regions: list[str], environments: list[str]) -> Job:
        job = Job(
            id=new_job_id("job"),
            start_time=_now().isoformat(),
            progress=JobProgress(total=len(regions) * len(environments)),
            regions=list(regions),
            environments=list(environments),
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.info("job_created", job_id=job.id, regions=regions, environments=environments)
        return job

    def create_retry_job(
        self,
        parent: Job,
        region: str,
        environment: str,
        test_file: str,
        retry_attempt: int,
    ) -> Job:
        job = Job(
            id=new_job_id("retry"),
            start_time=_now().isoformat(),
            parent_job_id=parent.id,
            original_job_id=parent.original_job_id or parent.id,
            retry_attempt=retry_attempt,
            region=region,
            environment=environment,
            test_file=test_file,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.info("retry_job_created", job_id=job.id, parent_job_id=parent.id, attempt=retry_attempt)
        return job

    def update_progress(self, job_id: str, update: dict[str, Any]) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        progress = update.get("progress")
        if progress is not None:
            job.progress = JobProgress.model_validate(progress)

    def complete(self, job_id: str, results: dict[str, Any]) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.status = "completed"
        job.end_time = _now().isoformat()
        job.results = results
        logger.info("job_completed", job_id=job_id)

    def fail(self, job_id: str, error: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.status = "failed"
        job.end_time = _now().isoformat()
        job.error = error
        logger.warning("job_failed", job_id=job_id, error=error)

    def evict_expired(self, max_age: timedelta = MAX_JOB_AGE, now: Optional[datetime] = None) -> int:
        """Drop finished jobs whose end time is older than `max_age`. Running jobs are kept."""
        cutoff = (now or _now()) - max_age
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.status in ("completed", "failed")
                and job.end_time is not None
                and datetime.fromisoformat(job.end_time) < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.info("jobs_evicted", count=len(expired))
        return len(expired)
