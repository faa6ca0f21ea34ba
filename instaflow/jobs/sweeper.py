"""Periodic cleanup of expired jobs."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from instaflow.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)


class JobSweeper:
  """Deletes jobs older than the retention window on a fixed interval."""

  def __init__(self, *, jobs_repo: JobsRepository, retention_seconds: float, interval_seconds: float) -> None:
    self._jobs_repo = jobs_repo
    self._retention_seconds = retention_seconds
    self._interval_seconds = interval_seconds
    self._task: asyncio.Task[None] | None = None

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()

  def start(self) -> None:
    if self.running:
      return
    self._task = asyncio.create_task(self._loop(), name="job-sweeper")
    logger.info("Job sweeper started (retention=%ss, interval=%ss)", self._retention_seconds, self._interval_seconds)

  async def stop(self) -> None:
    if self._task is None:
      return
    self._task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await self._task
    self._task = None

  async def sweep_once(self) -> int:
    return await self._jobs_repo.sweep(self._retention_seconds)

  async def _loop(self) -> None:
    while True:
      await asyncio.sleep(self._interval_seconds)
      try:
        await self.sweep_once()
      except Exception:  # noqa: BLE001
        # Keep the loop alive; the next tick retries.
        logger.error("Job sweep failed", exc_info=True)
