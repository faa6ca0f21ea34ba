from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Any, ClassVar, Literal, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

from instaflow.ai.fallback import MAX_CALENDAR_DAYS
from instaflow.ai.schemas import DEFAULT_SCRIPT_DURATION, SCRIPT_DURATIONS

DEFAULT_MAX_IMAGE_BASE64_BYTES = 10 * 1024 * 1024
MAX_TEXT_FIELD_CHARS = 500

# Error types whose message is already client-facing.
_CLIENT_MESSAGE_TYPES = {"blank_field", "days_range", "image_too_large", "image_invalid"}
_NOT_AN_OBJECT_TYPES = {"model_type", "model_attributes_type", "dict_type"}


def validation_message(exc: ValidationError) -> str:
  """Collapse a pydantic error into the single message returned to clients."""
  error = exc.errors()[0]
  if error["type"] in _CLIENT_MESSAGE_TYPES:
    return error["msg"]
  if error["type"] in _NOT_AN_OBJECT_TYPES:
    return "Request body must be a JSON object"

  field = ".".join(str(part) for part in error["loc"]) or "body"
  return f"Invalid {field}: {error['msg']}"


class SubmitRequest(BaseModel):
  """Shared behavior for generation submit payloads."""

  model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

  # (attribute, label) pairs checked in order; the first blank one is reported.
  required_fields: ClassVar[tuple[tuple[str, str], ...]] = ()

  regenerate: bool = Field(default=False, description="Ask for output that differs from a previous run.")

  @model_validator(mode="before")
  @classmethod
  def _drop_null_required(cls, data: Any) -> Any:
    # A null required field counts as missing, not as a type error.
    if not isinstance(data, dict):
      return data

    keys: set[str] = set()
    for name, _ in cls.required_fields:
      keys.add(name)
      alias = cls.model_fields[name].validation_alias
      if isinstance(alias, AliasChoices):
        keys.update(choice for choice in alias.choices if isinstance(choice, str))
    return {key: value for key, value in data.items() if not (value is None and key in keys)}

  @model_validator(mode="after")
  def _require_fields(self) -> Self:
    for name, label in self.required_fields:
      if not getattr(self, name):
        raise PydanticCustomError("blank_field", "{field} is required", {"field": label})
    return self

  def to_job_request(self) -> dict[str, Any]:
    """Return the trimmed request stored on the job."""
    return self.model_dump(exclude_none=True)


class CaptionsRequest(SubmitRequest):
  """Request payload for caption generation."""

  required_fields = (("topic", "Topic"), ("tone", "Mood/Tone"), ("audience", "Audience"), ("language", "Language"))

  topic: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS, validation_alias=AliasChoices("topic", "userInput"))
  tone: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS, validation_alias=AliasChoices("tone", "mood"))
  audience: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)
  language: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)


class CalendarRequest(SubmitRequest):
  """Request payload for a content calendar."""

  required_fields = (("topic", "Topic"),)

  topic: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)
  days: int = Field(default=7, description="Number of calendar days (1-31).")

  @field_validator("days", mode="before")
  @classmethod
  def _default_days(cls, value: Any) -> Any:
    return 7 if value is None else value

  @field_validator("days")
  @classmethod
  def _check_days(cls, value: int) -> int:
    if not 1 <= value <= MAX_CALENDAR_DAYS:
      raise PydanticCustomError("days_range", "Days must be between 1 and {max_days}", {"max_days": MAX_CALENDAR_DAYS})
    return value


class StrategyRequest(SubmitRequest):
  """Request payload for a growth strategy."""

  required_fields = (("niche", "Niche"),)

  niche: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)


class AnalyzeRequest(SubmitRequest):
  """Request payload for niche analysis."""

  required_fields = (("topic", "Topic"),)

  topic: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)


class ReelScriptRequest(SubmitRequest):
  """Request payload for a reel script; optional fields fall back to sensible defaults."""

  required_fields = (("topic", "Topic"),)

  topic: StrictStr = Field(default="", max_length=MAX_TEXT_FIELD_CHARS)
  duration: str = DEFAULT_SCRIPT_DURATION
  tone: StrictStr = "Motivational"
  audience: StrictStr = "Creator"
  language: StrictStr = "English"

  @field_validator("duration", mode="before")
  @classmethod
  def _normalize_duration(cls, value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in SCRIPT_DURATIONS:
      return value.strip().lower()
    return DEFAULT_SCRIPT_DURATION

  @field_validator("tone", "audience", "language", mode="before")
  @classmethod
  def _default_if_blank(cls, value: Any, info: ValidationInfo) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
      return cls.model_fields[info.field_name].default
    return value


class MediaCaptionRequest(SubmitRequest):
  """Request payload for captions generated from an uploaded image."""

  required_fields = (("image_base64", "Image"),)

  image_base64: StrictStr = Field(default="", validation_alias=AliasChoices("imageBase64", "image_base64"))
  image_mime_type: StrictStr = Field(default="image/jpeg", validation_alias=AliasChoices("imageMimeType", "image_mime_type"))
  topic: StrictStr | None = Field(default=None, max_length=MAX_TEXT_FIELD_CHARS)

  @field_validator("image_base64")
  @classmethod
  def _check_image(cls, value: str, info: ValidationInfo) -> str:
    if not value:
      return value

    # Accept data URLs by dropping the "data:image/...;base64," header.
    if value.startswith("data:") and "," in value:
      value = value.split(",", 1)[1]

    limit = (info.context or {}).get("max_image_base64_bytes", DEFAULT_MAX_IMAGE_BASE64_BYTES)
    if len(value) > limit:
      raise PydanticCustomError("image_too_large", "Image too large. Please use an image smaller than {limit_mb}MB.", {"limit_mb": max(limit // (1024 * 1024), 1)})

    try:
      base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
      raise PydanticCustomError("image_invalid", "Image must be valid base64 data") from exc
    return value

  @field_validator("image_mime_type", mode="before")
  @classmethod
  def _default_mime_type(cls, value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
      return "image/jpeg"
    return value


class JobSubmitResponse(BaseModel):
  """Response returned as soon as a job is accepted."""

  model_config = ConfigDict(populate_by_name=True)

  success: bool = True
  job_id: str = Field(alias="jobId")


class JobStatusResponse(BaseModel):
  """Poll response; result fields appear once the job is terminal."""

  model_config = ConfigDict(populate_by_name=True)

  success: bool = True
  status: Literal["pending", "completed", "failed"]
  job_id: str = Field(alias="jobId")
  task_type: str = Field(alias="taskType")
  created_at: datetime = Field(alias="createdAt")
  updated_at: datetime = Field(alias="updatedAt")
  data: Any = None
  is_fallback: bool | None = Field(default=None, alias="isFallback")
  error: str | None = None
