"""Base interfaces for AI providers and models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class GenerationConfig:
  """Sampling parameters for one model call."""

  temperature: float = 0.7
  max_output_tokens: int = 1024
  top_p: float = 0.95
  top_k: int | None = None
  seed: int | None = None

  def with_seed(self, seed: int | None) -> GenerationConfig:
    return replace(self, seed=seed)


@dataclass(frozen=True)
class ImageInput:
  """Raw image bytes attached to a multimodal prompt."""

  data: bytes
  mime_type: str = "image/jpeg"


@dataclass
class ModelResponse:
  """Raw generated text plus optional token usage."""

  content: str
  usage: dict[str, int] | None = None


class AIModel(ABC):
  """Abstract base class for AI models."""

  name: str

  @abstractmethod
  async def generate(self, prompt: str, *, system_instruction: str | None = None, image: ImageInput | None = None, config: GenerationConfig | None = None) -> ModelResponse:
    """Generate text for the prompt, raising ModelAdapterError subclasses on failure."""


class Provider(ABC):
  """Abstract base class for AI providers."""

  name: str

  @abstractmethod
  def get_model(self, model: str | None = None) -> AIModel:
    """Return the model client for the provider."""
