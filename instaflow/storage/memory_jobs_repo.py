"""Process-local job registry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from instaflow.jobs.models import JobRecord, JobStatus, utc_now
from instaflow.storage.jobs_repo import DuplicateJobError, JobStateError, check_transition

logger = logging.getLogger(__name__)


class InMemoryJobsRepository:
  """Dict-backed JobsRepository; contents are lost on restart.

  Every write swaps in a new frozen record, so readers always see a whole
  snapshot. All access happens on the event loop thread, which is why no
  lock is needed.
  """

  def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
    self._jobs: dict[str, JobRecord] = {}
    self._clock = clock or utc_now

  async def create_job(self, record: JobRecord) -> JobRecord:
    if record.job_id in self._jobs:
      raise DuplicateJobError(record.job_id)

    if record.result is not None and not record.status.is_terminal:
      raise JobStateError(f"Job {record.job_id} cannot be created with a result while {record.status.value}")

    now = self._clock()
    # Copy the request so later caller mutations cannot leak into the stored job.
    stored = replace(record, request=dict(record.request), created_at=now, updated_at=now)
    self._jobs[record.job_id] = stored
    logger.debug("Created job %s task=%s status=%s", stored.job_id, stored.task_type.value, stored.status.value)
    return stored

  async def get_job(self, job_id: str) -> JobRecord | None:
    return self._jobs.get(job_id)

  async def update_job(self, job_id: str, *, status: JobStatus, result: Any | None = None, is_fallback: bool | None = None, error: str | None = None) -> JobRecord | None:
    record = self._jobs.get(job_id)
    if record is None:
      logger.warning("Update skipped for unknown job %s (status=%s)", job_id, status.value)
      return None

    check_transition(record, status, has_result=result is not None)

    changes: dict[str, Any] = {"status": status, "updated_at": self._clock()}
    if result is not None:
      changes["result"] = result
    if is_fallback is not None:
      changes["is_fallback"] = is_fallback
    if error is not None:
      changes["error"] = error

    updated = replace(record, **changes)
    self._jobs[job_id] = updated
    return updated

  async def delete_job(self, job_id: str) -> bool:
    return self._jobs.pop(job_id, None) is not None

  async def sweep(self, max_age_seconds: float) -> int:
    cutoff = self._clock() - timedelta(seconds=max_age_seconds)
    expired = [job_id for job_id, record in self._jobs.items() if record.created_at < cutoff]
    for job_id in expired:
      del self._jobs[job_id]

    if expired:
      logger.info("Swept %d expired jobs (older than %ss)", len(expired), max_age_seconds)

    return len(expired)

  async def count(self) -> int:
    return len(self._jobs)
