"""Result schemas for each generation task plus shared normalizers."""

from __future__ import annotations

import re
from typing import Annotated, Any

import msgspec

CAPTION_STYLES: tuple[str, ...] = ("story", "question", "bold", "emotional", "action", "aesthetic", "punchline")
MAX_CAPTIONS = 7

SCRIPT_HASHTAG_COUNT = 10
DEFAULT_SCRIPT_HASHTAGS: tuple[str, ...] = ("#reels", "#viral", "#instagram", "#growth", "#success", "#motivation", "#trending", "#fyp", "#explore", "#content")
SCRIPT_DURATIONS: dict[str, int] = {"15s": 15, "30s": 30, "60s": 60}
DEFAULT_SCRIPT_DURATION = "15s"

MEDIA_ANALYSIS_DEFAULTS: dict[str, str] = {"scene": "indoor", "setting": "casual", "mood": "happy", "time": "day", "occasion": "casual"}

WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

NonBlank = Annotated[str, msgspec.Meta(min_length=1)]

_TAG_SPLIT_RE = re.compile(r"[\s,]+")
_TAG_STRIP_RE = re.compile(r"[^\w\u0900-\u097F]+")


class Caption(msgspec.Struct):
  text: NonBlank
  style: str = "story"
  hashtags: list[str] = []


class CalendarDay(msgspec.Struct):
  day: int
  day_of_week: str
  content_type: NonBlank
  hook: NonBlank
  caption: NonBlank
  hashtag_set: list[str] = []
  best_post_time: str = ""
  content_brief: str = ""
  viral_angle: str = ""
  cta: str = ""


class ViralIdea(msgspec.Struct):
  hook: NonBlank
  angle: str = ""
  why_it_works: str = ""


class GrowthStrategy(msgspec.Struct):
  audience_profile: dict[str, Any]
  growth_plan: dict[str, Any]
  viral_content_ideas: Annotated[list[ViralIdea], msgspec.Meta(min_length=1)]
  hashtag_strategy: dict[str, Any]
  analytics: dict[str, Any] = {}
  cta_strategy: Any = ""


class NicheAnalysis(msgspec.Struct):
  top_5_viral_patterns: Annotated[list[Any], msgspec.Meta(min_length=1)]
  hashtag_clusters: dict[str, Any] | list[Any]
  trend_forecast_30_days: Any = ""
  best_3_reel_formats: list[Any] = []
  untapped_content_ideas: list[Any] = []
  psychological_triggers: list[Any] = []
  common_mistakes: list[Any] = []


class Scene(msgspec.Struct):
  dialogue: NonBlank
  time: str = ""
  visual: str = ""


class ReelScript(msgspec.Struct):
  hook: NonBlank
  scene_by_scene: Annotated[list[Scene], msgspec.Meta(min_length=1)]
  cta: str = ""
  caption: str = ""
  hashtags: list[str] = []


class MediaAnalysis(msgspec.Struct):
  scene: str = "indoor"
  setting: str = "casual"
  mood: str = "happy"
  time: str = "day"
  occasion: str = "casual"


class MediaCaptions(msgspec.Struct):
  analysis: MediaAnalysis
  captions: Annotated[list[Caption], msgspec.Meta(min_length=1)]


def normalize_hashtags(value: Any) -> list[str]:
  """Coerce a list or whitespace/comma separated string into unique #tags."""
  if isinstance(value, str):
    raw_tags: list[Any] = _TAG_SPLIT_RE.split(value)
  elif isinstance(value, list | tuple):
    raw_tags = list(value)
  else:
    return []

  tags: list[str] = []
  seen: set[str] = set()
  for raw in raw_tags:
    if not isinstance(raw, str):
      continue
    body = _TAG_STRIP_RE.sub("", raw)
    if not body or body.lower() in seen:
      continue
    seen.add(body.lower())
    tags.append(f"#{body}")

  return tags


def topic_hashtag(topic: Any) -> str | None:
  """Turn a topic like 'sunset yoga' into '#sunsetyoga'."""
  if not isinstance(topic, str):
    return None

  body = _TAG_STRIP_RE.sub("", topic.lower())
  return f"#{body}" if body else None


def pad_script_hashtags(tags: list[str], topic: Any) -> list[str]:
  """Return exactly SCRIPT_HASHTAG_COUNT tags: given tags, then the topic tag, then defaults."""
  extra = [tag for tag in (topic_hashtag(topic),) if tag]
  merged = normalize_hashtags([*tags, *extra, *DEFAULT_SCRIPT_HASHTAGS])
  return merged[:SCRIPT_HASHTAG_COUNT]


def duration_seconds(duration: Any) -> int:
  """Resolve a duration label to seconds; unknown labels fall back to 15s."""
  if isinstance(duration, str):
    return SCRIPT_DURATIONS.get(duration.strip().lower(), SCRIPT_DURATIONS[DEFAULT_SCRIPT_DURATION])
  return SCRIPT_DURATIONS[DEFAULT_SCRIPT_DURATION]


def scene_count_for(seconds: int) -> int:
  if seconds <= 15:
    return 4
  if seconds <= 30:
    return 6
  return 8
