"""
Request/response models for both dashboards.

Wire keys are camelCase to match the browser dashboards; Python attributes
stay snake_case.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field

from suite.results import CamelModel

JobStatus = Literal["running", "completed", "failed"]


class StartTestRequest(CamelModel):
    duration: float = Field(default=5, gt=0, description="Monitor duration in minutes")
    environment: str = Field(default="qa", description="Environment name or base URL")


class RunTestsRequest(CamelModel):
    # Left optional so an empty or missing list gets the dashboard's own 400 message
    regions: Optional[list[str]] = None
    environments: Optional[list[str]] = None


class RetryTestRequest(CamelModel):
    job_id: Optional[str] = None
    region: Optional[str] = None
    environment: Optional[str] = None
    test_file: Optional[str] = None


class RetryAllFailedRequest(CamelModel):
    job_id: Optional[str] = None


class JobProgress(CamelModel):
    total: int = 0
    completed: int = 0
    current: Optional[str] = None


class Job(CamelModel):
    id: str
    status: JobStatus = "running"
    start_time: str
    end_time: Optional[str] = None
    progress: JobProgress = Field(default_factory=JobProgress)
    regions: list[str] = Field(default_factory=list)
    environments: list[str] = Field(default_factory=list)
    results: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    # Retry jobs only
    parent_job_id: Optional[str] = None
    original_job_id: Optional[str] = None
    retry_attempt: Optional[int] = None
    region: Optional[str] = None
    environment: Optional[str] = None
    test_file: Optional[str] = None


class JobStatusResponse(CamelModel):
    id: str
    status: JobStatus
    start_time: str
    end_time: Optional[str] = None
    progress: JobProgress
    error: Optional[str] = None
