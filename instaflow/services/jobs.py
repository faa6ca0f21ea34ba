import logging
from typing import Any, Literal

from pydantic import ValidationError

from instaflow.ai.fallback import empty_result_for, fallback_for
from instaflow.api.models import AnalyzeRequest, CalendarRequest, CaptionsRequest, JobStatusResponse, JobSubmitResponse, MediaCaptionRequest, ReelScriptRequest, StrategyRequest, SubmitRequest, validation_message
from instaflow.config import Settings
from instaflow.core.exceptions import JobNotFoundError, SubmitValidationError
from instaflow.jobs.models import JobRecord, JobStatus, TaskType
from instaflow.jobs.runner import JobRunner
from instaflow.storage.jobs_repo import JobsRepository
from instaflow.utils.ids import generate_job_id

logger = logging.getLogger(__name__)

type ExternalStatus = Literal["pending", "completed", "failed"]

_REQUEST_MODELS: dict[TaskType, type[SubmitRequest]] = {
  TaskType.CAPTIONS: CaptionsRequest,
  TaskType.CALENDAR: CalendarRequest,
  TaskType.STRATEGY: StrategyRequest,
  TaskType.ANALYZE: AnalyzeRequest,
  TaskType.REELS_SCRIPT: ReelScriptRequest,
  TaskType.IMAGE_CAPTIONS: MediaCaptionRequest,
}


def to_external_status(status: JobStatus) -> ExternalStatus:
  """Translate the lifecycle status into the client vocabulary."""
  if status is JobStatus.COMPLETED:
    return "completed"
  if status is JobStatus.FAILED:
    return "failed"
  return "pending"


def parse_submit_request(task_type: TaskType, payload: Any, settings: Settings) -> SubmitRequest:
  """Validate a raw submit body, raising SubmitValidationError with the task's empty data shape."""
  model = _REQUEST_MODELS[task_type]
  if not isinstance(payload, dict):
    raise SubmitValidationError("Request body must be a JSON object", data=empty_result_for(task_type))

  try:
    return model.model_validate(payload, context={"max_image_base64_bytes": settings.max_image_base64_bytes})
  except ValidationError as exc:
    raise SubmitValidationError(validation_message(exc), data=empty_result_for(task_type)) from exc


async def submit_job(task_type: TaskType, payload: Any, *, settings: Settings, jobs_repo: JobsRepository, runner: JobRunner) -> JobSubmitResponse:
  """Create a queued job and start its orchestration without waiting for it."""
  request = parse_submit_request(task_type, payload, settings)
  record = JobRecord(job_id=generate_job_id(task_type.id_prefix), task_type=task_type, request=request.to_job_request())
  created = await jobs_repo.create_job(record)
  runner.spawn(created)
  logger.info("Job %s queued (%s, regenerate=%s)", created.job_id, task_type.value, request.regenerate)
  return JobSubmitResponse(job_id=created.job_id)


async def get_job_status(job_id: str, *, jobs_repo: JobsRepository) -> JobStatusResponse:
  """Return the current job view; terminal jobs always carry data."""
  record = await jobs_repo.get_job(job_id)
  if record is None:
    raise JobNotFoundError(job_id)

  response = JobStatusResponse(
    status=to_external_status(record.status),
    job_id=record.job_id,
    task_type=record.task_type.value,
    created_at=record.created_at,
    updated_at=record.updated_at,
  )
  if not record.status.is_terminal:
    return response

  data = record.result
  is_fallback = record.is_fallback
  if not data:
    # Last-resort guard so a finished job never reaches the client without content.
    logger.error("Job %s is %s without a result; serving fallback content", record.job_id, record.status.value)
    data = fallback_for(record.task_type, record.request)
    is_fallback = True

  return response.model_copy(update={"data": data, "is_fallback": is_fallback, "error": record.error})
