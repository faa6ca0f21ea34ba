"""Request-scoped accessors for objects wired onto the application state."""

from fastapi import Request

from instaflow.config import Settings
from instaflow.jobs.runner import JobRunner
from instaflow.storage.jobs_repo import JobsRepository


def get_app_settings(request: Request) -> Settings:
  return request.app.state.settings


def get_jobs_repo(request: Request) -> JobsRepository:
  return request.app.state.jobs_repo


def get_job_runner(request: Request) -> JobRunner:
  return request.app.state.job_runner
