"""Shared fixtures: stub models, test settings and an in-process client."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from instaflow.ai.providers.base import AIModel, GenerationConfig, ImageInput, ModelResponse
from instaflow.config import Settings
from instaflow.main import create_app
from instaflow.storage.memory_jobs_repo import InMemoryJobsRepository

TERMINAL_STATUSES = {"completed", "failed"}


class StubModel(AIModel):
  """Scripted model: returns fixed text, raises a fixed error, optionally after a delay."""

  def __init__(self, content: str = "", *, error: BaseException | None = None, delay: float = 0.0) -> None:
    self.name = "stub-model"
    self.content = content
    self.error = error
    self.delay = delay
    self.calls: list[dict[str, Any]] = []
    self.cancelled = False

  async def generate(self, prompt: str, *, system_instruction: str | None = None, image: ImageInput | None = None, config: GenerationConfig | None = None) -> ModelResponse:
    self.calls.append({"prompt": prompt, "system_instruction": system_instruction, "image": image, "config": config})
    if self.delay:
      try:
        await asyncio.sleep(self.delay)
      except asyncio.CancelledError:
        self.cancelled = True
        raise
    if self.error is not None:
      raise self.error
    return ModelResponse(content=self.content)


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
  return Settings(
    environment="test",
    debug=False,
    allowed_origins=("*",),
    log_dir=str(tmp_path / "logs"),
    log_max_bytes=1024 * 1024,
    log_backup_count=1,
    gemini_api_key=None,
    gemini_model="gemini-2.0-flash",
    gemini_vision_model="gemini-2.0-flash",
    gemini_timeout_seconds=5.0,
    gemini_max_retries=1,
    job_retention_seconds=3600,
    job_sweep_interval_seconds=1800,
    script_deadline_seconds=25.0,
    max_image_base64_bytes=10 * 1024 * 1024,
  )


@pytest.fixture
def jobs_repo() -> InMemoryJobsRepository:
  return InMemoryJobsRepository()


@pytest.fixture
async def make_client(settings: Settings, jobs_repo: InMemoryJobsRepository) -> AsyncIterator[Callable[..., Any]]:
  """Factory building an app around a stub model and yielding an AsyncClient for it."""
  apps: list[FastAPI] = []
  clients: list[AsyncClient] = []

  async def _make(model: AIModel, **overrides: Any) -> AsyncClient:
    app = create_app(replace(settings, **overrides), model=model, jobs_repo=jobs_repo)
    apps.append(app)
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    clients.append(client)
    return client

  yield _make

  for client in clients:
    await client.aclose()
  for app in apps:
    await app.state.job_runner.shutdown()


async def poll_until_terminal(client: AsyncClient, job_id: str, *, timeout: float = 5.0) -> list[dict[str, Any]]:
  """Poll a job until it finishes; returns every body observed, oldest first."""
  seen: list[dict[str, Any]] = []
  async with asyncio.timeout(timeout):
    while True:
      response = await client.get(f"/ai/job-status/{job_id}")
      assert response.status_code == 200
      body = response.json()
      seen.append(body)
      if body["status"] in TERMINAL_STATUSES:
        return seen
      await asyncio.sleep(0.01)
