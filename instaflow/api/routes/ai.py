from typing import Any

from fastapi import APIRouter, Body, Depends

from instaflow.api.deps import get_app_settings, get_job_runner, get_jobs_repo
from instaflow.api.models import JobStatusResponse, JobSubmitResponse
from instaflow.config import Settings
from instaflow.jobs.models import TaskType
from instaflow.jobs.runner import JobRunner
from instaflow.services import jobs as job_service
from instaflow.storage.jobs_repo import JobsRepository

router = APIRouter()


@router.post("/captions", response_model=JobSubmitResponse)
async def submit_captions(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue caption generation."""
  return await job_service.submit_job(TaskType.CAPTIONS, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.post("/calendar", response_model=JobSubmitResponse)
async def submit_calendar(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue a content calendar."""
  return await job_service.submit_job(TaskType.CALENDAR, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.post("/strategy", response_model=JobSubmitResponse)
async def submit_strategy(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue a growth strategy."""
  return await job_service.submit_job(TaskType.STRATEGY, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.post("/analyze", response_model=JobSubmitResponse)
async def submit_analysis(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue a niche analysis."""
  return await job_service.submit_job(TaskType.ANALYZE, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.post("/reels-script", response_model=JobSubmitResponse)
async def submit_reel_script(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue a reel script; generation is capped by the script deadline."""
  return await job_service.submit_job(TaskType.REELS_SCRIPT, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.post("/caption-from-media", response_model=JobSubmitResponse)
async def submit_media_captions(  # noqa: B008
  payload: Any = Body(None),  # noqa: B008
  settings: Settings = Depends(get_app_settings),  # noqa: B008
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
  runner: JobRunner = Depends(get_job_runner),  # noqa: B008
) -> JobSubmitResponse:
  """Queue captions for an uploaded image."""
  return await job_service.submit_job(TaskType.IMAGE_CAPTIONS, payload, settings=settings, jobs_repo=jobs_repo, runner=runner)


@router.get("/job-status/{job_id}", response_model=JobStatusResponse, response_model_exclude_none=True)
async def get_job_status(  # noqa: B008
  job_id: str,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> JobStatusResponse:
  """Poll a job; terminal jobs include data, isFallback and any error."""
  return await job_service.get_job_status(job_id, jobs_repo=jobs_repo)
