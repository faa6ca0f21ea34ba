"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

from google import genai
from google.genai import errors, types

from instaflow.ai.backoff import retry_with_backoff
from instaflow.ai.errors import EmptyResponseError, ModelAdapterError, ModelNotFoundError, ModelPermissionError, ModelQuotaError, ModelTimeoutError, ModelUnavailableError
from instaflow.ai.providers.base import AIModel, GenerationConfig, ImageInput, ModelResponse, Provider

logger = logging.getLogger(__name__)


class GeminiModel(AIModel):
  """Gemini model client for text and image+text prompts."""

  def __init__(self, name: str, *, api_key: str | None = None, timeout_seconds: float = 20.0, max_retries: int = 3) -> None:
    self.name: str = name
    self._timeout_seconds = timeout_seconds
    self._max_retries = max_retries
    # Without a key the model still constructs so the service can boot and serve fallback content.
    self._client = genai.Client(api_key=api_key) if api_key else None

  async def generate(self, prompt: str, *, system_instruction: str | None = None, image: ImageInput | None = None, config: GenerationConfig | None = None) -> ModelResponse:
    """Generate text from Gemini, translating SDK failures into ModelAdapterError subclasses."""
    if self._client is None:
      raise ModelUnavailableError("GEMINI_API_KEY is not configured")

    contents = _build_contents(prompt, image)
    request_config = _build_request_config(config or GenerationConfig(), system_instruction)

    try:
      # The timeout bounds the whole call including rate-limit retries.
      async with asyncio.timeout(self._timeout_seconds):
        response = await retry_with_backoff(self._client.aio.models.generate_content, model=self.name, contents=contents, config=request_config, retries=self._max_retries)
    except TimeoutError as exc:
      raise ModelTimeoutError(f"Gemini did not respond within {self._timeout_seconds:g}s") from exc
    except errors.APIError as exc:
      raise _translate_api_error(exc, self.name) from exc

    text = response.text or ""
    if not text.strip():
      raise EmptyResponseError("Gemini returned an empty response")

    logger.debug("Gemini response model=%s chars=%d", self.name, len(text))
    return ModelResponse(content=text, usage=_usage(response))


class GeminiProvider(Provider):
  """Gemini provider."""

  _DEFAULT_MODEL: Final[str] = "gemini-2.0-flash"

  def __init__(self, api_key: str | None = None, *, timeout_seconds: float = 20.0, max_retries: int = 3) -> None:
    self.name: str = "gemini"
    self._api_key = api_key
    self._timeout_seconds = timeout_seconds
    self._max_retries = max_retries

  def get_model(self, model: str | None = None) -> AIModel:
    """Return a Gemini model client."""
    return GeminiModel(model or self._DEFAULT_MODEL, api_key=self._api_key, timeout_seconds=self._timeout_seconds, max_retries=self._max_retries)


def _build_contents(prompt: str, image: ImageInput | None) -> list[Any]:
  if image is None:
    return [prompt]

  # Image first, then the instruction text, as the vision models expect.
  return [types.Part.from_bytes(data=image.data, mime_type=image.mime_type), prompt]


def _build_request_config(config: GenerationConfig, system_instruction: str | None) -> types.GenerateContentConfig:
  return types.GenerateContentConfig(
    system_instruction=system_instruction,
    temperature=config.temperature,
    max_output_tokens=config.max_output_tokens,
    top_p=config.top_p,
    top_k=config.top_k,
    seed=config.seed,
  )


def _translate_api_error(exc: errors.APIError, model_name: str) -> ModelAdapterError:
  """Map an SDK error onto the adapter error taxonomy."""
  message = getattr(exc, "message", None) or str(exc)
  if exc.code == 404:
    return ModelNotFoundError(f"Model {model_name} not found: {message}")
  if exc.code == 403:
    return ModelPermissionError(message)
  if exc.code == 429:
    return ModelQuotaError(message)
  return ModelAdapterError(message)


def _usage(response: Any) -> dict[str, int] | None:
  metadata = getattr(response, "usage_metadata", None)
  if metadata is None:
    return None

  return {"prompt_tokens": metadata.prompt_token_count or 0, "completion_tokens": metadata.candidates_token_count or 0, "total_tokens": metadata.total_token_count or 0}
