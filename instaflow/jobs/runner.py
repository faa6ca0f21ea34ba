"""Supervised launcher for background orchestration tasks."""

from __future__ import annotations

import asyncio
import logging

from instaflow.ai.fallback import empty_result_for, fallback_for
from instaflow.ai.orchestrator import GenerationOrchestrator
from instaflow.jobs.models import JobRecord, JobStatus
from instaflow.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)


class JobRunner:
  """Owns every in-flight orchestration task.

  Tasks are strongly referenced until they finish. An exception escaping the
  orchestrator, or a cancellation at shutdown, is converted into a terminal
  job instead of leaving the record in processing.
  """

  def __init__(self, *, orchestrator: GenerationOrchestrator, jobs_repo: JobsRepository) -> None:
    self._orchestrator = orchestrator
    self._jobs_repo = jobs_repo
    self._tasks: set[asyncio.Task[None]] = set()

  @property
  def active_count(self) -> int:
    return len(self._tasks)

  def spawn(self, job: JobRecord) -> asyncio.Task[None]:
    """Start processing a job without waiting for it."""
    task = asyncio.create_task(self._supervise(job), name=f"job-{job.job_id}")
    self._tasks.add(task)
    task.add_done_callback(self._tasks.discard)
    return task

  async def wait_idle(self) -> None:
    """Wait until every task spawned so far has finished."""
    while self._tasks:
      await asyncio.gather(*list(self._tasks), return_exceptions=True)

  async def shutdown(self) -> None:
    """Cancel in-flight jobs and wait for them to unwind."""
    tasks = list(self._tasks)
    if not tasks:
      return

    logger.info("Cancelling %d in-flight jobs", len(tasks))
    for task in tasks:
      task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

  async def _supervise(self, job: JobRecord) -> None:
    try:
      await self._orchestrator.run(job)
    except asyncio.CancelledError:
      logger.warning("Job %s cancelled before completion", job.job_id)
      await self._complete_with_fallback(job, "JOB_CANCELLED: server shutting down")
      raise
    except Exception as exc:  # noqa: BLE001
      logger.error("Orchestration crashed for job %s (%s)", job.job_id, job.task_type.value, exc_info=True)
      await self._complete_with_fallback(job, f"INTERNAL_ERROR: {exc}")

  async def _complete_with_fallback(self, job: JobRecord, reason: str) -> None:
    """Write fallback content; mark the job failed only if that write also breaks."""
    try:
      current = await self._jobs_repo.get_job(job.job_id)
      if current is None or current.status.is_terminal:
        return

      await self._jobs_repo.update_job(job.job_id, status=JobStatus.COMPLETED, result=fallback_for(job.task_type, job.request), is_fallback=True, error=reason)
    except Exception:  # noqa: BLE001
      logger.error("Fallback write failed for job %s; marking failed", job.job_id, exc_info=True)
      try:
        await self._jobs_repo.update_job(job.job_id, status=JobStatus.FAILED, result=empty_result_for(job.task_type), is_fallback=True, error=reason)
      except Exception:  # noqa: BLE001
        logger.critical("Unable to record a terminal state for job %s", job.job_id, exc_info=True)
