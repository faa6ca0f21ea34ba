from __future__ import annotations

import os
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from instaflow.ai.orchestrator import GenerationOrchestrator
from instaflow.ai.providers import AIModel, GeminiProvider
from instaflow.ai.tasks import build_task_registry
from instaflow.api.routes import ai
from instaflow.config import Settings, get_settings
from instaflow.core.exceptions import (
  JobNotFoundError,
  SubmitValidationError,
  global_exception_handler,
  http_exception_handler,
  job_not_found_exception_handler,
  request_validation_exception_handler,
  submit_validation_exception_handler,
)
from instaflow.core.lifespan import lifespan
from instaflow.core.middleware import NoCacheHeadersMiddleware, RequestLoggingMiddleware
from instaflow.jobs.runner import JobRunner
from instaflow.jobs.sweeper import JobSweeper
from instaflow.storage.jobs_repo import JobsRepository
from instaflow.storage.memory_jobs_repo import InMemoryJobsRepository


def create_app(settings: Settings | None = None, *, model: AIModel | None = None, vision_model: AIModel | None = None, jobs_repo: JobsRepository | None = None) -> FastAPI:
  """Build the gateway app; tests inject stub models and a repository."""
  settings = settings or get_settings()
  jobs_repo = jobs_repo or InMemoryJobsRepository()
  if model is None:
    provider = GeminiProvider(settings.gemini_api_key, timeout_seconds=settings.gemini_timeout_seconds, max_retries=settings.gemini_max_retries)
    model = provider.get_model(settings.gemini_model)
    if vision_model is None and settings.gemini_vision_model != settings.gemini_model:
      vision_model = provider.get_model(settings.gemini_vision_model)

  orchestrator = GenerationOrchestrator(jobs_repo=jobs_repo, model=model, vision_model=vision_model, registry=build_task_registry(settings))

  app = FastAPI(title="InstaFlow Backend API", lifespan=lifespan, docs_url=None, redoc_url=None)
  # Wire shared objects at construction so the app also works without a lifespan run.
  app.state.settings = settings
  app.state.jobs_repo = jobs_repo
  app.state.job_runner = JobRunner(orchestrator=orchestrator, jobs_repo=jobs_repo)
  app.state.job_sweeper = JobSweeper(jobs_repo=jobs_repo, retention_seconds=settings.job_retention_seconds, interval_seconds=settings.job_sweep_interval_seconds)

  # Browsers reject credentialed requests against a wildcard origin.
  allow_credentials = "*" not in settings.allowed_origins
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=allow_credentials, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"])

  # Add exception handlers
  app.add_exception_handler(Exception, global_exception_handler)
  app.add_exception_handler(HTTPException, http_exception_handler)
  app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
  app.add_exception_handler(SubmitValidationError, submit_validation_exception_handler)
  app.add_exception_handler(JobNotFoundError, job_not_found_exception_handler)

  # Add middleware
  app.add_middleware(NoCacheHeadersMiddleware)
  app.add_middleware(RequestLoggingMiddleware)

  @app.get("/health", include_in_schema=False)
  async def health_check(request: Request) -> dict[str, Any]:
    """Return service health and the number of tracked jobs."""
    return {"status": "ok", "success": True, "jobs": await request.app.state.jobs_repo.count()}

  @app.get("/", include_in_schema=False)
  async def root() -> dict[str, Any]:
    return {"success": True, "message": "InstaFlow Backend API"}

  app.include_router(ai.router, prefix="/ai", tags=["ai"])
  return app


app = create_app()


if __name__ == "__main__":
  import uvicorn

  uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))  # noqa: S104
