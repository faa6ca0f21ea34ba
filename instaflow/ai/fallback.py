"""Offline content used whenever generation or extraction fails.

Every generator is deterministic for a given request and never raises: any
missing or malformed field is replaced with a neutral default, and results
always satisfy the same minimum shape the extractors enforce.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from instaflow.ai.schemas import MEDIA_ANALYSIS_DEFAULTS, WEEKDAYS, duration_seconds, pad_script_hashtags, scene_count_for, topic_hashtag
from instaflow.jobs.models import TaskType

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "instagram growth"
DEFAULT_CALENDAR_DAYS = 7
MAX_CALENDAR_DAYS = 31

_CAPTIONS_BY_LANGUAGE: dict[str, tuple[tuple[str, str, tuple[str, ...]], ...]] = {
  "english": (
    ("motivational", "Progress over perfection.", ("#motivation", "#progress", "#growth")),
    ("fitness", "Fitness is a lifestyle, not a phase.", ("#fitness", "#lifestyle", "#health")),
    ("mindset", "Strong body, stronger mindset.", ("#mindset", "#strength", "#discipline")),
    ("aesthetic", "Beauty is in the details.", ("#aesthetic", "#details", "#vibes")),
    ("inspirational", "Every day is a fresh start.", ("#inspiration", "#freshstart", "#positivity")),
  ),
  "hindi": (
    ("motivational", "हर दिन एक नई शुरुआत है।", ("#motivation", "#hindi", "#growth")),
    ("fitness", "मजबूत शरीर, मजबूत मन।", ("#fitness", "#hindi", "#health")),
    ("mindset", "मेहनत कभी बेकार नहीं जाती।", ("#mindset", "#hindi", "#hardwork")),
    ("aesthetic", "छोटी खुशियाँ, बड़ी मुस्कान।", ("#aesthetic", "#hindi", "#vibes")),
    ("inspirational", "सपने देखो, फिर उन्हें पूरा करो।", ("#inspiration", "#hindi", "#dreams")),
  ),
  "hinglish": (
    ("motivational", "Progress chhota ho ya bada, progress hai.", ("#motivation", "#hinglish", "#growth")),
    ("fitness", "Aaj ka effort, kal ka result.", ("#fitness", "#hinglish", "#results")),
    ("mindset", "Mindset strong hai toh sab possible hai.", ("#mindset", "#hinglish", "#strong")),
    ("aesthetic", "Apni vibe khud banao.", ("#aesthetic", "#hinglish", "#vibes")),
    ("inspirational", "Sapne bade rakho, hustle usse bhi bada.", ("#inspiration", "#hinglish", "#hustle")),
  ),
}

# (content_type, hook, caption, best_post_time, viral_angle, cta)
_CALENDAR_ROTATION: tuple[tuple[str, str, str, str, str, str], ...] = (
  ("Reel", "Stop scrolling if you care about {topic}", "The one {topic} habit that changed everything for me.", "7:00 PM", "Relatable transformation", "Save this for later"),
  ("Carousel", "5 {topic} mistakes nobody talks about", "Swipe through before you make mistake number 3.", "12:30 PM", "Myth busting", "Share with a friend who needs this"),
  ("Story", "Quick poll: how do you approach {topic}?", "Tell me your answer in the poll.", "9:00 AM", "Audience participation", "Vote in the poll"),
  ("Reel", "I tried {topic} every day for a week", "Here is what actually happened.", "8:00 PM", "Personal experiment", "Follow for part two"),
  ("Carousel", "The beginner's guide to {topic}", "Everything I wish I knew when I started.", "1:00 PM", "Evergreen education", "Save this guide"),
  ("Reel", "{topic}: expectation vs reality", "Be honest, which one are you?", "6:30 PM", "Humor and relatability", "Comment your answer"),
  ("Post", "One week of {topic}, one lesson", "Consistency beats intensity every single time.", "10:00 AM", "Reflection and recap", "Tell me your biggest win this week"),
)

_SCRIPT_BEATS: tuple[tuple[str, str], ...] = (
  ("Close-up on face, direct to camera", "Did you know this about {topic}?"),
  ("Medium shot, quick cut", "Most people get {topic} wrong from day one."),
  ("B-roll of the process", "Here is the simple shift that actually works."),
  ("Over-the-shoulder shot", "Try it for just seven days."),
  ("Split screen before and after", "The difference shows up faster than you think."),
  ("Text overlay on a steady shot", "Small steps, repeated daily, win."),
  ("Walking shot toward camera", "Nobody talks about this part of {topic}."),
  ("Close-up, slow zoom out", "Save this so you do not forget it."),
)


def _text(request: Any, key: str, default: str) -> str:
  if not isinstance(request, dict):
    return default
  value = request.get(key)
  if isinstance(value, str) and value.strip():
    return value.strip()
  return default


def _language_key(language: str) -> str:
  normalized = language.strip().lower()
  return normalized if normalized in _CAPTIONS_BY_LANGUAGE else "english"


def _with_topic_tag(hashtags: tuple[str, ...], topic: str | None) -> list[str]:
  tag = topic_hashtag(topic)
  tags = list(hashtags)
  if tag and tag.lower() not in {existing.lower() for existing in tags}:
    tags.append(tag)
  return tags


def fallback_captions(request: Any) -> list[dict[str, Any]]:
  """Return the stock caption set for the request language, tagged with the topic."""
  language = _language_key(_text(request, "language", "English"))
  topic = _text(request, "topic", "")
  return [{"style": style, "text": text, "hashtags": _with_topic_tag(hashtags, topic or None)} for style, text, hashtags in _CAPTIONS_BY_LANGUAGE[language]]


def calendar_days(request: Any) -> int:
  """Requested day count clamped to 1..31, defaulting to a week."""
  raw = request.get("days") if isinstance(request, dict) else None
  if isinstance(raw, bool) or not isinstance(raw, int):
    return DEFAULT_CALENDAR_DAYS
  return min(max(raw, 1), MAX_CALENDAR_DAYS)


def fallback_calendar(request: Any) -> list[dict[str, Any]]:
  topic = _text(request, "topic", DEFAULT_TOPIC)
  tag = topic_hashtag(topic)
  days: list[dict[str, Any]] = []
  for index in range(calendar_days(request)):
    content_type, hook, caption, post_time, angle, cta = _CALENDAR_ROTATION[index % len(_CALENDAR_ROTATION)]
    days.append(
      {
        "day": index + 1,
        "day_of_week": WEEKDAYS[index % len(WEEKDAYS)],
        "content_type": content_type,
        "hook": hook.format(topic=topic),
        "caption": caption.format(topic=topic),
        "hashtag_set": [tag_value for tag_value in (tag, "#contentcreator", "#instagramgrowth", "#reels") if tag_value],
        "best_post_time": post_time,
        "content_brief": f"{content_type} about {topic} built around: {angle.lower()}.",
        "viral_angle": angle,
        "cta": cta,
      }
    )
  return days


def fallback_strategy(request: Any) -> dict[str, Any]:
  niche = _text(request, "niche", DEFAULT_TOPIC)
  tag = topic_hashtag(niche) or "#growth"
  return {
    "audience_profile": {
      "age_groups": ["18-24", "25-34"],
      "psychology": f"People interested in {niche} want quick, practical wins they can apply today.",
      "pain_points": ["Not enough time", "Information overload", "Inconsistent results"],
      "motivations": ["Visible progress", "Belonging to a community", "Learning from someone relatable"],
    },
    "growth_plan": {
      "reel_strategy": f"Post short, hook-first reels that teach one {niche} idea at a time.",
      "posting_frequency": "4-5 reels and 2 carousels per week",
      "content_style": "Educational with a personal, behind-the-scenes tone",
      "what_to_avoid": ["Long intros", "Trending audio with no relevance", "Posting without a call to action"],
    },
    "viral_content_ideas": [
      {"hook": f"The {niche} mistake I made for years", "angle": "Vulnerable storytelling", "why_it_works": "Mistakes are relatable and drive comments."},
      {"hook": f"3 {niche} tips in 30 seconds", "angle": "Fast value", "why_it_works": "High retention and saves."},
      {"hook": f"What nobody tells you about {niche}", "angle": "Contrarian insight", "why_it_works": "Curiosity gap boosts watch time."},
    ],
    "analytics": {
      "best_times_IST": ["9:00 AM", "1:00 PM", "7:30 PM"],
      "competition_strength": "medium",
      "content_gap_opportunities": [f"Beginner-friendly {niche} explainers", f"Honest {niche} progress diaries"],
    },
    "hashtag_strategy": {
      "low_comp": [f"{tag}tips", f"{tag}daily"],
      "mid_comp": [tag, "#contentcreator"],
      "high_comp": ["#instagram", "#reels"],
    },
    "cta_strategy": "End every post with one clear action: save, share, or comment a keyword.",
  }


def fallback_analysis(request: Any) -> dict[str, Any]:
  topic = _text(request, "topic", DEFAULT_TOPIC)
  tag = topic_hashtag(topic) or "#growth"
  return {
    "trend_forecast_30_days": f"Steady interest in {topic}; short educational reels and honest progress content are rising.",
    "top_5_viral_patterns": [
      "Hook in the first second with a bold claim",
      "Before and after transformations",
      "Myth versus fact breakdowns",
      "Day-in-the-life storytelling",
      "Quick tip lists under 30 seconds",
    ],
    "best_3_reel_formats": ["Talking head with captions", "Tutorial with text overlays", "Trend remix with a niche twist"],
    "hashtag_clusters": {"niche": [tag, f"{tag}community"], "broad": ["#reels", "#explore"], "community": ["#contentcreator", "#creatorsofinstagram"]},
    "untapped_content_ideas": [f"{topic} on a budget", f"{topic} for absolute beginners", f"Common {topic} myths debunked"],
    "psychological_triggers": ["Curiosity", "Social proof", "Fear of missing out"],
    "common_mistakes": ["Weak first second", "No clear call to action", "Inconsistent posting"],
  }


def fallback_reel_script(request: Any) -> dict[str, Any]:
  topic = _text(request, "topic", DEFAULT_TOPIC)
  seconds = duration_seconds(_text(request, "duration", "15s"))
  count = scene_count_for(seconds)
  step = seconds // count
  scenes = []
  for index in range(count):
    visual, dialogue = _SCRIPT_BEATS[index % len(_SCRIPT_BEATS)]
    scenes.append({"time": f"{index * step}-{(index + 1) * step}s", "visual": visual, "dialogue": dialogue.format(topic=topic)})

  return {
    "hook": f"Did you know this about {topic}?",
    "scene_by_scene": scenes,
    "cta": "Save this post and follow for more",
    "caption": f"This {topic} change will transform your routine.",
    "hashtags": pad_script_hashtags([], topic),
  }


def fallback_media_captions(request: Any) -> dict[str, Any]:
  return {"analysis": dict(MEDIA_ANALYSIS_DEFAULTS), "captions": fallback_captions(request)}


_GENERATORS: dict[TaskType, Callable[[Any], Any]] = {
  TaskType.CAPTIONS: fallback_captions,
  TaskType.CALENDAR: fallback_calendar,
  TaskType.STRATEGY: fallback_strategy,
  TaskType.ANALYZE: fallback_analysis,
  TaskType.REELS_SCRIPT: fallback_reel_script,
  TaskType.IMAGE_CAPTIONS: fallback_media_captions,
}


def empty_result_for(task_type: TaskType) -> Any:
  """Shape-correct empty payload, used only when even fallback content cannot be produced."""
  return [] if task_type.returns_list else {}


def fallback_for(task_type: TaskType, request: Any) -> Any:
  """Deterministic fallback payload for a task; never raises."""
  generator = _GENERATORS.get(task_type)
  if generator is None:
    logger.error("No fallback generator registered for task %s", task_type)
    return []

  try:
    return generator(request if isinstance(request, dict) else {})
  except Exception:  # noqa: BLE001
    logger.error("Fallback generator failed for task %s; using defaults", task_type.value, exc_info=True)
    return generator({})
