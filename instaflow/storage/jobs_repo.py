"""Storage interfaces for background jobs."""

from __future__ import annotations

from typing import Any, Protocol

from instaflow.jobs.models import JobRecord, JobStatus


class DuplicateJobError(Exception):
  """Raised when a job id is inserted twice."""

  def __init__(self, job_id: str) -> None:
    super().__init__(f"Job {job_id} already exists")
    self.job_id = job_id


class JobStateError(Exception):
  """Raised when an update would break the forward-only job lifecycle."""


class JobsRepository(Protocol):
  """Repository contract for job persistence."""

  async def create_job(self, record: JobRecord) -> JobRecord:
    """Persist a new job record; raises DuplicateJobError for a reused id."""

  async def get_job(self, job_id: str) -> JobRecord | None:
    """Fetch a job by identifier."""

  async def update_job(self, job_id: str, *, status: JobStatus, result: Any | None = None, is_fallback: bool | None = None, error: str | None = None) -> JobRecord | None:
    """Move a job to a new status, returning None when the job is unknown."""

  async def delete_job(self, job_id: str) -> bool:
    """Remove a job, reporting whether it existed."""

  async def sweep(self, max_age_seconds: float) -> int:
    """Delete jobs created more than max_age_seconds ago and return how many were removed."""

  async def count(self) -> int:
    """Return the number of tracked jobs."""


def check_transition(record: JobRecord, status: JobStatus, *, has_result: bool) -> None:
  """Reject lifecycle regressions, updates to finished jobs and results on unfinished jobs."""
  if record.status.is_terminal:
    raise JobStateError(f"Job {record.job_id} is already {record.status.value}; cannot move to {status.value}")

  if status.rank < record.status.rank:
    raise JobStateError(f"Job {record.job_id} cannot regress from {record.status.value} to {status.value}")

  if has_result and not status.is_terminal:
    raise JobStateError(f"Job {record.job_id} result may only be written with a terminal status, got {status.value}")
