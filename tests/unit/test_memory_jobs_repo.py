from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from instaflow.jobs.models import JobRecord, JobStatus, TaskType
from instaflow.storage.jobs_repo import DuplicateJobError, JobStateError
from instaflow.storage.memory_jobs_repo import InMemoryJobsRepository


class FakeClock:
  def __init__(self) -> None:
    self.now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

  def __call__(self) -> datetime:
    return self.now

  def advance(self, seconds: float) -> None:
    self.now += timedelta(seconds=seconds)


def _record(job_id: str = "CAPTIONS-1", **overrides: object) -> JobRecord:
  return JobRecord(job_id=job_id, task_type=TaskType.CAPTIONS, request={"topic": "yoga"}, **overrides)


@pytest.mark.anyio
async def test_create_and_get_job() -> None:
  clock = FakeClock()
  repo = InMemoryJobsRepository(clock=clock)

  created = await repo.create_job(_record())
  fetched = await repo.get_job("CAPTIONS-1")

  assert fetched == created
  assert created.status is JobStatus.QUEUED
  assert created.created_at == clock.now
  assert created.result is None
  assert await repo.get_job("missing") is None


@pytest.mark.anyio
async def test_duplicate_id_is_rejected() -> None:
  repo = InMemoryJobsRepository()
  await repo.create_job(_record())

  with pytest.raises(DuplicateJobError):
    await repo.create_job(_record())


@pytest.mark.anyio
async def test_stored_request_is_isolated_from_caller() -> None:
  repo = InMemoryJobsRepository()
  request = {"topic": "yoga"}
  await repo.create_job(JobRecord(job_id="CAPTIONS-1", task_type=TaskType.CAPTIONS, request=request))

  request["topic"] = "changed"

  job = await repo.get_job("CAPTIONS-1")
  assert job is not None
  assert job.request == {"topic": "yoga"}


@pytest.mark.anyio
async def test_update_moves_forward_and_refreshes_timestamp() -> None:
  clock = FakeClock()
  repo = InMemoryJobsRepository(clock=clock)
  created = await repo.create_job(_record())

  clock.advance(2)
  processing = await repo.update_job("CAPTIONS-1", status=JobStatus.PROCESSING)
  clock.advance(3)
  completed = await repo.update_job("CAPTIONS-1", status=JobStatus.COMPLETED, result=[{"text": "hi there friends"}], is_fallback=True, error="GEMINI_TIMEOUT")

  assert processing is not None and completed is not None
  assert processing.updated_at == created.created_at + timedelta(seconds=2)
  assert completed.updated_at == created.created_at + timedelta(seconds=5)
  assert completed.created_at == created.created_at
  assert completed.status is JobStatus.COMPLETED
  assert completed.is_fallback is True
  assert completed.error == "GEMINI_TIMEOUT"


@pytest.mark.anyio
async def test_update_unknown_job_returns_none() -> None:
  repo = InMemoryJobsRepository()

  assert await repo.update_job("missing", status=JobStatus.PROCESSING) is None


@pytest.mark.anyio
async def test_status_cannot_regress() -> None:
  repo = InMemoryJobsRepository()
  await repo.create_job(_record())
  await repo.update_job("CAPTIONS-1", status=JobStatus.PROCESSING)

  with pytest.raises(JobStateError):
    await repo.update_job("CAPTIONS-1", status=JobStatus.QUEUED)


@pytest.mark.anyio
@pytest.mark.parametrize("next_status", [JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED])
async def test_terminal_jobs_are_frozen(next_status: JobStatus) -> None:
  repo = InMemoryJobsRepository()
  await repo.create_job(_record())
  await repo.update_job("CAPTIONS-1", status=JobStatus.COMPLETED, result=[])

  with pytest.raises(JobStateError):
    await repo.update_job("CAPTIONS-1", status=next_status, result=[])


@pytest.mark.anyio
async def test_result_requires_terminal_status() -> None:
  repo = InMemoryJobsRepository()
  await repo.create_job(_record())

  with pytest.raises(JobStateError):
    await repo.update_job("CAPTIONS-1", status=JobStatus.PROCESSING, result=[{"text": "too early"}])


@pytest.mark.anyio
async def test_sweep_deletes_only_expired_jobs() -> None:
  clock = FakeClock()
  repo = InMemoryJobsRepository(clock=clock)
  await repo.create_job(_record("CAPTIONS-old"))
  clock.advance(3000)
  await repo.create_job(_record("CAPTIONS-new"))
  clock.advance(1000)

  removed = await repo.sweep(3600)

  assert removed == 1
  assert await repo.get_job("CAPTIONS-old") is None
  assert await repo.get_job("CAPTIONS-new") is not None
  assert await repo.count() == 1


@pytest.mark.anyio
async def test_delete_job_reports_existence() -> None:
  repo = InMemoryJobsRepository()
  await repo.create_job(_record())

  assert await repo.delete_job("CAPTIONS-1") is True
  assert await repo.delete_job("CAPTIONS-1") is False
  assert await repo.count() == 0
