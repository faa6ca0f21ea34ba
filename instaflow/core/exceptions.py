from __future__ import annotations

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger("uvicorn.error")

_MALFORMED_BODY_MSG = "Request body must be valid JSON"


class SubmitValidationError(Exception):
  """Raised when a submit payload is rejected before any job is created."""

  def __init__(self, message: str, *, data: list[Any] | dict[str, Any]) -> None:
    super().__init__(message)
    self.message = message
    self.data = data


class JobNotFoundError(Exception):
  """Raised when a polled job id is unknown or already swept."""

  def __init__(self, job_id: str) -> None:
    super().__init__(f"Job {job_id} not found")
    self.job_id = job_id


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for logs."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  if isinstance(value, BaseException):
    error_message = str(value)
    if error_message:
      return f"{type(value).__name__}: {error_message}"
    return type(value).__name__
  return str(value)


def _sanitize_validation_errors(errors: Any) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    # Remove nested input values from context payloads as well.
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx

    sanitized.append(_coerce_json_safe(scrubbed))

  return sanitized


def _error_payload(error: str, *, request_id: str | None = None, **extra: Any) -> dict[str, Any]:
  payload: dict[str, Any] = {"success": False, "error": error, **extra}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    payload["requestId"] = request_id
  return payload


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=exc)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Wrap HTTPExceptions in the standard envelope without leaking 5xx details."""
  request_id = getattr(request.state, "request_id", None)
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
  return JSONResponse(status_code=exc.status_code, content=_error_payload(detail, request_id=request_id), headers=getattr(exc, "headers", None))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Reject unparseable bodies with a 400 in the submit envelope."""
  request_id = getattr(request.state, "request_id", None)
  sanitized_errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(_MALFORMED_BODY_MSG, request_id=request_id, data={}))


async def submit_validation_exception_handler(request: Request, exc: SubmitValidationError) -> JSONResponse:
  """Return 400 for rejected submit payloads."""
  request_id = getattr(request.state, "request_id", None)
  logger.info("Submit rejected request_id=%s path=%s error=%s", request_id, request.url.path, exc.message)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(exc.message, request_id=request_id, data=exc.data))


async def job_not_found_exception_handler(request: Request, exc: JobNotFoundError) -> JSONResponse:
  """Return 404 for unknown job ids."""
  request_id = getattr(request.state, "request_id", None)
  logger.info("Job not found request_id=%s job_id=%s", request_id, exc.job_id)
  return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_payload("Job not found", request_id=request_id, status="not_found"))
