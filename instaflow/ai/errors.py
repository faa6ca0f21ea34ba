"""Typed failures raised by model adapters."""

from __future__ import annotations


class ModelAdapterError(RuntimeError):
  """Base class for generation failures; `code` is stable and safe to expose."""

  code = "GEMINI_API_ERROR"

  def __init__(self, message: str | None = None) -> None:
    super().__init__(message or self.code)

  def describe(self) -> str:
    """Return `CODE: message`, or just the code when no detail was given."""
    detail = str(self)
    if detail == self.code:
      return self.code
    return f"{self.code}: {detail}"


class ModelTimeoutError(ModelAdapterError):
  code = "GEMINI_TIMEOUT"


class ModelQuotaError(ModelAdapterError):
  code = "GEMINI_QUOTA_EXCEEDED"


class ModelPermissionError(ModelQuotaError):
  code = "GEMINI_PERMISSION_DENIED"


class ModelNotFoundError(ModelAdapterError):
  code = "GEMINI_MODEL_NOT_FOUND"


class EmptyResponseError(ModelAdapterError):
  code = "GEMINI_EMPTY_RESPONSE"


class ModelUnavailableError(ModelAdapterError):
  """No API key is configured, so the gateway runs on fallback content only."""

  code = "GEMINI_API_UNAVAILABLE"
