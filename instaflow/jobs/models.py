"""Domain models for asynchronous content generation jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class JobStatus(StrEnum):
  """Canonical lifecycle status; transitions only move forward."""

  QUEUED = "queued"
  PROCESSING = "processing"
  COMPLETED = "completed"
  FAILED = "failed"

  @property
  def rank(self) -> int:
    return _STATUS_RANK[self]

  @property
  def is_terminal(self) -> bool:
    return self in {JobStatus.COMPLETED, JobStatus.FAILED}


_STATUS_RANK: dict[JobStatus, int] = {JobStatus.QUEUED: 0, JobStatus.PROCESSING: 1, JobStatus.COMPLETED: 2, JobStatus.FAILED: 2}


class TaskType(StrEnum):
  """Generation task owning a job."""

  CAPTIONS = "captions"
  CALENDAR = "calendar"
  STRATEGY = "strategy"
  ANALYZE = "analyze"
  REELS_SCRIPT = "reels_script"
  IMAGE_CAPTIONS = "image_captions"

  @property
  def id_prefix(self) -> str:
    """Prefix used when minting job ids for this task."""
    return _ID_PREFIXES[self]

  @property
  def returns_list(self) -> bool:
    """True when the task result is a JSON array rather than an object."""
    return self in {TaskType.CAPTIONS, TaskType.CALENDAR}


_ID_PREFIXES: dict[TaskType, str] = {
  TaskType.CAPTIONS: "CAPTIONS",
  TaskType.CALENDAR: "CALENDAR",
  TaskType.STRATEGY: "STRATEGY",
  TaskType.ANALYZE: "ANALYZE",
  TaskType.REELS_SCRIPT: "SCRIPT",
  TaskType.IMAGE_CAPTIONS: "MEDIA",
}


def utc_now() -> datetime:
  return datetime.now(UTC)


@dataclass(frozen=True)
class JobRecord:
  """Represents one background generation job."""

  job_id: str
  task_type: TaskType
  request: dict[str, Any]
  status: JobStatus = JobStatus.QUEUED
  created_at: datetime = field(default_factory=utc_now)
  updated_at: datetime = field(default_factory=utc_now)
  result: Any = None
  is_fallback: bool = False
  error: str | None = None
