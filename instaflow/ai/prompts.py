"""Prompt builders for each generation task."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from instaflow.ai.fallback import DEFAULT_TOPIC, calendar_days
from instaflow.ai.schemas import CAPTION_STYLES, MAX_CAPTIONS, SCRIPT_HASHTAG_COUNT, duration_seconds, scene_count_for

_SYSTEM_INSTRUCTION = "You are an expert Instagram content strategist. Follow the requested output format exactly and return only that output, with no explanations."

_REGENERATE_HINT = "This is a regeneration request: produce ideas, wording and angles that are completely different from any typical or previous answer."


@dataclass(frozen=True)
class Prompt:
  text: str
  system_instruction: str = _SYSTEM_INSTRUCTION


def _field(request: dict[str, Any], key: str, default: str) -> str:
  value = request.get(key)
  if isinstance(value, str) and value.strip():
    return value.strip()
  return default


def _finish(lines: list[str], request: dict[str, Any]) -> Prompt:
  if request.get("regenerate"):
    lines.append(_REGENERATE_HINT)
  return Prompt(text="\n".join(lines))


def captions_prompt(request: dict[str, Any]) -> Prompt:
  styles = ", ".join(CAPTION_STYLES)
  return _finish(
    [
      f"Write {MAX_CAPTIONS} Instagram captions about: {_field(request, 'topic', DEFAULT_TOPIC)}.",
      f"Tone: {_field(request, 'tone', 'engaging')}. Audience: {_field(request, 'audience', 'creators')}. Language: {_field(request, 'language', 'English')}.",
      f"Use one caption per style, in this order: {styles}.",
      "Each caption is 1-2 sentences, under 200 characters, with 3-5 relevant hashtags.",
      'Return a JSON array: [{"style": "...", "text": "...", "hashtags": ["#..."]}]',
    ],
    request,
  )


def calendar_prompt(request: dict[str, Any]) -> Prompt:
  days = calendar_days(request)
  return _finish(
    [
      f"Create a {days}-day Instagram content calendar for the topic: {_field(request, 'topic', DEFAULT_TOPIC)}.",
      f"Return a JSON array with exactly {days} objects, one per day, each with the keys:",
      "day, day_of_week, content_type, hook, caption, hashtag_set (array), best_post_time, content_brief, viral_angle, cta.",
    ],
    request,
  )


def strategy_prompt(request: dict[str, Any]) -> Prompt:
  return _finish(
    [
      f"Build an Instagram growth strategy for the niche: {_field(request, 'niche', DEFAULT_TOPIC)}.",
      "Return one JSON object with the keys:",
      "audience_profile {age_groups, psychology, pain_points, motivations},",
      "growth_plan {reel_strategy, posting_frequency, content_style, what_to_avoid},",
      "viral_content_ideas [{hook, angle, why_it_works}],",
      "analytics {best_times_IST, competition_strength, content_gap_opportunities},",
      "hashtag_strategy {low_comp, mid_comp, high_comp}, cta_strategy.",
    ],
    request,
  )


def analysis_prompt(request: dict[str, Any]) -> Prompt:
  return _finish(
    [
      f"Analyze the Instagram niche: {_field(request, 'topic', DEFAULT_TOPIC)}.",
      "Return one JSON object with the keys: trend_forecast_30_days, top_5_viral_patterns, best_3_reel_formats,",
      "hashtag_clusters, untapped_content_ideas, psychological_triggers, common_mistakes.",
    ],
    request,
  )


def reel_script_prompt(request: dict[str, Any]) -> Prompt:
  seconds = duration_seconds(request.get("duration"))
  scenes = scene_count_for(seconds)
  return _finish(
    [
      f"Write a {seconds}-second Instagram reel script about: {_field(request, 'topic', DEFAULT_TOPIC)}.",
      f"Tone: {_field(request, 'tone', 'Motivational')}. Audience: {_field(request, 'audience', 'Creator')}. Language: {_field(request, 'language', 'English')}.",
      f"Use exactly {scenes} scenes with time ranges that add up to {seconds} seconds.",
      f'Return JSON: {{"hook": "...", "scene_by_scene": [{{"time": "0-3s", "visual": "...", "dialogue": "..."}}], "cta": "...", "caption": "...", "hashtags": [{SCRIPT_HASHTAG_COUNT} hashtags]}}',
    ],
    request,
  )


def media_captions_prompt(request: dict[str, Any]) -> Prompt:
  context = _field(request, "topic", "")
  lines = [
    "Look at the attached image and describe it briefly, then write Instagram captions for it.",
    'Return JSON: {"analysis": {"scene": "...", "setting": "...", "mood": "...", "time": "...", "occasion": "..."},',
    f'"captions": [{{"style": "...", "text": "...", "hashtags": ["#..."]}}]}} with {MAX_CAPTIONS} captions in the styles: {", ".join(CAPTION_STYLES)}.',
  ]
  if context:
    lines.append(f"Extra context from the creator: {context}.")
  return _finish(lines, request)
