"""Per-task generation specs and the registry that resolves them."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from instaflow.ai import fallback, prompts
from instaflow.ai.extraction import ExtractionResult, extract_analysis, extract_calendar, extract_captions, extract_media_captions, extract_reel_script, extract_strategy
from instaflow.ai.providers.base import GenerationConfig, ImageInput
from instaflow.config import Settings
from instaflow.jobs.models import TaskType

REGENERATE_TEMPERATURE_BOOST = 0.15
MAX_TEMPERATURE = 1.5


@dataclass(frozen=True)
class TaskSpec:
  """Everything the orchestrator needs to run one task type."""

  task_type: TaskType
  build_prompt: Callable[[dict[str, Any]], prompts.Prompt]
  extract: Callable[[str, dict[str, Any]], ExtractionResult[Any]]
  config: GenerationConfig
  deadline_seconds: float | None = None
  uses_image: bool = False

  def generation_config(self, request: dict[str, Any], *, seed: int | None) -> GenerationConfig:
    """Sampling config for one call; regeneration runs a little hotter."""
    config = self.config.with_seed(seed)
    if request.get("regenerate"):
      config = replace(config, temperature=min(config.temperature + REGENERATE_TEMPERATURE_BOOST, MAX_TEMPERATURE))
    return config

  def image_input(self, request: dict[str, Any]) -> ImageInput | None:
    if not self.uses_image:
      return None

    try:
      data = base64.b64decode(request.get("image_base64") or "", validate=True)
    except (binascii.Error, ValueError):
      return None
    return ImageInput(data=data, mime_type=request.get("image_mime_type") or "image/jpeg")


class TaskRegistry:
  """Registry mapping task types to their specs."""

  def __init__(self, specs: dict[TaskType, TaskSpec]) -> None:
    self._specs = specs

  def resolve(self, task_type: TaskType) -> TaskSpec:
    """Resolve the TaskSpec registered for a task type."""
    spec = self._specs.get(task_type)
    if spec is None:
      raise ValueError(f"Unsupported task type: {task_type}")
    return spec


def build_task_registry(settings: Settings) -> TaskRegistry:
  """Default specs; the reel script task also gets a hard wall-clock deadline."""
  specs = [
    TaskSpec(
      task_type=TaskType.CAPTIONS,
      build_prompt=prompts.captions_prompt,
      extract=lambda text, request: extract_captions(text),
      config=GenerationConfig(temperature=0.95, max_output_tokens=1500, top_p=0.98, top_k=40),
    ),
    TaskSpec(
      task_type=TaskType.CALENDAR,
      build_prompt=prompts.calendar_prompt,
      extract=lambda text, request: extract_calendar(text, days=fallback.calendar_days(request)),
      config=GenerationConfig(temperature=0.7, max_output_tokens=4096),
    ),
    TaskSpec(
      task_type=TaskType.STRATEGY,
      build_prompt=prompts.strategy_prompt,
      extract=lambda text, request: extract_strategy(text),
      config=GenerationConfig(temperature=0.7, max_output_tokens=4096),
    ),
    TaskSpec(
      task_type=TaskType.ANALYZE,
      build_prompt=prompts.analysis_prompt,
      extract=lambda text, request: extract_analysis(text),
      config=GenerationConfig(temperature=0.7, max_output_tokens=4096),
    ),
    TaskSpec(
      task_type=TaskType.REELS_SCRIPT,
      build_prompt=prompts.reel_script_prompt,
      extract=lambda text, request: extract_reel_script(text, topic=request.get("topic")),
      config=GenerationConfig(temperature=0.8, max_output_tokens=1024, top_p=0.95),
      deadline_seconds=settings.script_deadline_seconds,
    ),
    TaskSpec(
      task_type=TaskType.IMAGE_CAPTIONS,
      build_prompt=prompts.media_captions_prompt,
      extract=lambda text, request: extract_media_captions(text),
      config=GenerationConfig(temperature=0.8, max_output_tokens=2048),
      uses_image=True,
    ),
  ]
  return TaskRegistry({spec.task_type: spec for spec in specs})
