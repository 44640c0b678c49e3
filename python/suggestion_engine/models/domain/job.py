"""
Background job models.
A "find more suggestions" job and the progress events it emits.
"""

from typing import Optional, Any
from datetime import datetime
from enum import Enum
from pydantic import ConfigDict, Field, field_validator

from suggestion_engine.models.base import ApiModel


class JobStatus(str, Enum):
    """Job lifecycle status."""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobPhase(str, Enum):
    """Job phases, declared in the order they occur."""
    QUEUED = "queued"
    SELECTING = "selecting"
    SEARCHING = "searching"
    CREATING = "creating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        """Position in the phase order; `failed` ranks after everything."""
        return list(JobPhase).index(self)

    @property
    def is_terminal(self) -> bool:
        return self in (JobPhase.COMPLETED, JobPhase.FAILED)


class JobProgress(ApiModel):
    """
    One progress payload from the stream or the status endpoint.

    Terminal payloads carry result fields (suggestionsCreated, ...);
    unknown fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    phase: JobPhase = JobPhase.QUEUED
    current: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
    message: str = ""
    timestamp: Optional[datetime] = None

    # Terminal fields
    error: Optional[str] = None
    suggestions_created: Optional[int] = None
    prototypes_used: Optional[int] = None
    candidates_found: Optional[int] = None
    duplicates_skipped: Optional[int] = None

    @field_validator("current", "total", mode="before")
    @classmethod
    def _default_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("message", mode="before")
    @classmethod
    def _default_message(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def status(self) -> JobStatus:
        if self.phase == JobPhase.COMPLETED:
            return JobStatus.COMPLETED
        if self.phase == JobPhase.FAILED:
            return JobStatus.FAILED
        if self.phase == JobPhase.QUEUED:
            return JobStatus.QUEUED
        return JobStatus.RUNNING

    @property
    def percentage(self) -> int:
        """Progress percentage (0-100)."""
        if self.total == 0:
            return 0
        return min(100, int((self.current / self.total) * 100))

    def is_behind(self, previous: "JobProgress") -> bool:
        """True if this event would move the job backwards."""
        if self.phase.rank != previous.phase.rank:
            return self.phase.rank < previous.phase.rank
        return self.current < previous.current


class FindMoreJob(ApiModel):
    """Job handle returned when a "find more" job is queued."""

    job_id: str
    person_id: str
    progress_key: str
    prototype_count: Optional[int] = None
    status: JobStatus = JobStatus.QUEUED

    @field_validator("job_id", "person_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)


class TrackedJob(ApiModel):
    """Latest known state of a monitored job."""

    job_id: str
    progress_key: str
    person_id: Optional[str] = None
    person_name: Optional[str] = None
    progress: JobProgress = Field(default_factory=JobProgress)
    error: Optional[str] = None
    finished: bool = False

    @property
    def status(self) -> JobStatus:
        if self.error is not None:
            return JobStatus.FAILED
        return self.progress.status

    @property
    def is_running(self) -> bool:
        return self.status in (JobStatus.QUEUED, JobStatus.RUNNING) and not self.finished
