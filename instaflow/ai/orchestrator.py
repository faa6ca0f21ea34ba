"""Drives one generation job from queued to a terminal status."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import Any

import msgspec

from instaflow.ai.errors import EmptyResponseError, ModelAdapterError, ModelTimeoutError
from instaflow.ai.extraction import Extracted, ExtractionFailed, ExtractionResult
from instaflow.ai.fallback import fallback_for
from instaflow.ai.prompts import Prompt
from instaflow.ai.providers.base import AIModel, GenerationConfig, ImageInput, ModelResponse
from instaflow.ai.tasks import TaskRegistry, TaskSpec
from instaflow.jobs.models import JobRecord, JobStatus
from instaflow.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

_MAX_SEED = 2**31 - 1


def _random_seed() -> int:
  return random.randint(0, _MAX_SEED)


class GenerationOrchestrator:
  """Runs prompt -> model -> extraction for a job and always writes a terminal result.

  Any adapter error, empty response or failed extraction resolves to the
  task's fallback content with status completed, is_fallback=True and the
  failure reason in `error`.
  """

  def __init__(self, *, jobs_repo: JobsRepository, model: AIModel, registry: TaskRegistry, vision_model: AIModel | None = None, seed_source: Callable[[], int] | None = None) -> None:
    self._jobs_repo = jobs_repo
    self._model = model
    self._vision_model = vision_model
    self._registry = registry
    self._seed_source = seed_source or _random_seed

  async def run(self, job: JobRecord) -> JobRecord | None:
    """Process a queued job; returns the terminal record, or None if the job vanished."""
    spec = self._registry.resolve(job.task_type)
    started = await self._jobs_repo.update_job(job.job_id, status=JobStatus.PROCESSING)
    if started is None:
      logger.warning("Job %s no longer exists; skipping %s generation", job.job_id, job.task_type.value)
      return None

    outcome = await self._generate(spec, job)
    if isinstance(outcome, Extracted):
      logger.info("Job %s (%s) completed from model output", job.job_id, job.task_type.value)
      return await self._jobs_repo.update_job(job.job_id, status=JobStatus.COMPLETED, result=msgspec.to_builtins(outcome.value), is_fallback=False)

    logger.warning("Job %s (%s) completed with fallback content: %s", job.job_id, job.task_type.value, outcome.reason)
    return await self._jobs_repo.update_job(job.job_id, status=JobStatus.COMPLETED, result=fallback_for(job.task_type, job.request), is_fallback=True, error=outcome.reason)

  async def _generate(self, spec: TaskSpec, job: JobRecord) -> ExtractionResult[Any]:
    """Call the model and extract; every failure becomes ExtractionFailed."""
    image = spec.image_input(job.request)
    if spec.uses_image and image is None:
      return ExtractionFailed("image payload missing or not valid base64")

    prompt = spec.build_prompt(job.request)
    config = spec.generation_config(job.request, seed=self._seed_source())
    try:
      response = await self._call_model(spec, prompt, config, image)
      if not response.content or not response.content.strip():
        raise EmptyResponseError("model returned only whitespace")

      return spec.extract(response.content, job.request)
    except ModelAdapterError as exc:
      logger.warning("Model call failed for job %s: %s", job.job_id, exc.describe())
      return ExtractionFailed(exc.describe())
    except Exception as exc:  # noqa: BLE001
      logger.error("Unexpected generation failure for job %s", job.job_id, exc_info=True)
      return ExtractionFailed(f"{ModelAdapterError.code}: {exc}")

  async def _call_model(self, spec: TaskSpec, prompt: Prompt, config: GenerationConfig, image: ImageInput | None) -> ModelResponse:
    model = self._vision_model if spec.uses_image and self._vision_model is not None else self._model
    call = model.generate(prompt.text, system_instruction=prompt.system_instruction, image=image, config=config)
    if spec.deadline_seconds is None:
      return await call

    # Race the call against the wall-clock budget and cancel the loser.
    task = asyncio.ensure_future(call)
    try:
      done, _ = await asyncio.wait({task}, timeout=spec.deadline_seconds)
    except asyncio.CancelledError:
      task.cancel()
      raise

    if task not in done:
      task.cancel()
      raise ModelTimeoutError(f"no response within the {spec.deadline_seconds:g}s deadline")

    return task.result()
