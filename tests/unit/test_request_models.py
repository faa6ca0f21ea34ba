from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from instaflow.api.models import CalendarRequest, CaptionsRequest, MediaCaptionRequest, ReelScriptRequest, validation_message


def _message(model: type, payload: dict, **context: object) -> str:
  with pytest.raises(ValidationError) as exc_info:
    model.model_validate(payload, context=context or None)
  return validation_message(exc_info.value)


def test_captions_fields_are_checked_in_order() -> None:
  assert _message(CaptionsRequest, {}) == "Topic is required"
  assert _message(CaptionsRequest, {"topic": "yoga"}) == "Mood/Tone is required"
  assert _message(CaptionsRequest, {"topic": "yoga", "tone": "calm"}) == "Audience is required"
  assert _message(CaptionsRequest, {"topic": "yoga", "tone": "calm", "audience": "creators"}) == "Language is required"


def test_null_required_fields_read_as_missing() -> None:
  assert _message(CaptionsRequest, {"topic": None, "tone": "calm"}) == "Topic is required"
  assert _message(CaptionsRequest, {"topic": "yoga", "mood": None}) == "Mood/Tone is required"
  assert _message(MediaCaptionRequest, {"imageBase64": None}) == "Image is required"

  request = CaptionsRequest.model_validate({"topic": None, "userInput": "yoga", "tone": "calm", "audience": "creators", "language": "English"})
  assert request.topic == "yoga"


def test_captions_job_request_is_trimmed() -> None:
  request = CaptionsRequest.model_validate({"userInput": " yoga ", "tone": "calm ", "audience": " creators", "language": "English", "regenerate": True})

  assert request.to_job_request() == {"topic": "yoga", "tone": "calm", "audience": "creators", "language": "English", "regenerate": True}


def test_calendar_days_default_and_bounds() -> None:
  assert CalendarRequest.model_validate({"topic": "yoga"}).days == 7
  assert CalendarRequest.model_validate({"topic": "yoga", "days": None}).days == 7
  assert CalendarRequest.model_validate({"topic": "yoga", "days": 31}).days == 31
  assert _message(CalendarRequest, {"topic": "yoga", "days": 0}) == "Days must be between 1 and 31"


@pytest.mark.parametrize(("duration", "expected"), [("30s", "30s"), (" 60S ", "60s"), ("45s", "15s"), (None, "15s"), (30, "15s")])
def test_reel_script_duration_is_normalized(duration: object, expected: str) -> None:
  assert ReelScriptRequest.model_validate({"topic": "yoga", "duration": duration}).duration == expected


def test_reel_script_blank_optionals_take_defaults() -> None:
  request = ReelScriptRequest.model_validate({"topic": "yoga", "tone": " ", "audience": None})

  assert request.tone == "Motivational"
  assert request.audience == "Creator"
  assert request.language == "English"


def test_media_request_accepts_data_urls() -> None:
  encoded = base64.b64encode(b"image-bytes").decode()

  request = MediaCaptionRequest.model_validate({"imageBase64": f"data:image/png;base64,{encoded}", "imageMimeType": ""})

  assert request.to_job_request() == {"image_base64": encoded, "image_mime_type": "image/jpeg", "regenerate": False}


def test_media_request_enforces_size_limit_from_context() -> None:
  encoded = base64.b64encode(b"x" * 30).decode()

  assert _message(MediaCaptionRequest, {"imageBase64": encoded}, max_image_base64_bytes=10).startswith("Image too large")
  assert MediaCaptionRequest.model_validate({"imageBase64": encoded}, context={"max_image_base64_bytes": 1024}).image_base64 == encoded
