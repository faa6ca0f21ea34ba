"""Recover structured task results from raw model text.

Every extractor is pure and returns either Extracted(value), holding a
schema-validated msgspec struct, or ExtractionFailed(reason). Structured JSON
recovery always runs first; tasks whose results can be read from prose
(captions, reel scripts) then fall back to heuristic segmentation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import msgspec

from instaflow.ai.json_parser import extract_json_payload, strip_code_fences
from instaflow.ai.schemas import (
  CAPTION_STYLES,
  MAX_CAPTIONS,
  MEDIA_ANALYSIS_DEFAULTS,
  WEEKDAYS,
  CalendarDay,
  Caption,
  GrowthStrategy,
  MediaAnalysis,
  MediaCaptions,
  NicheAnalysis,
  ReelScript,
  normalize_hashtags,
  pad_script_hashtags,
)

MIN_ITEM_CHARS = 10
MAX_ITEM_CHARS = 200
MIN_HEURISTIC_SCENES = 3

_BLANK_LINE_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")
_MARKER_RE = re.compile(r"^\s*(?:\(?\d{1,2}\s*[.)\]]|[-*+](?=\s)|[•●▪◦·‣➤➢✓✔→])\s*")
_INLINE_SPLIT_RE = re.compile(r"\s+(?=(?:\d{1,2}[.)]|[•●▪◦➤✓✔])\s)")
_LABEL_RE = re.compile(r"^(?:caption|text|option)\s*\d*\s*:\s*", re.IGNORECASE)
_EMPHASIS_RE = re.compile(r"\*\*|__|`")
_HASHTAG_RE = re.compile(r"#[\w\u0900-\u097F]+")
_NOISE_RE = re.compile(r"^[\s\[\]{}(),;:.\"'`-]*$")
_QUOTED_KEY_RE = re.compile(r'^\s*"[^"\n]{1,40}"\s*:')
_DANGLING_KEY_RE = re.compile(r"^\s*[A-Za-z_][\w ]{0,40}:\s*[\[{]?\s*$")
_SCHEMA_FRAGMENT_RE = re.compile(r'"(?:captions?|text|style|hashtags)"', re.IGNORECASE)
_NUMBERED_LINE_RE = re.compile(r"^\s*\d{1,2}\s*[.)]\s+(.+?)\s*$", re.MULTILINE)
_WRAPPING_QUOTES = "\"'“”‘’"

_SCENE_LINE_RE = re.compile(r"^[ \t*#]*scene\s*(\d+)\b(.*)$", re.IGNORECASE | re.MULTILINE)
_SCENE_TIME_RE = re.compile(r"[(\[]?\s*(\d+\s*[-–]\s*\d+\s*s)(?:ec(?:onds)?)?\s*[)\]]?", re.IGNORECASE)
_VISUAL_RE = re.compile(r"visual\s*:\s*(.+?)(?=\s*[|;,]?\s*dialogue\s*:|$)", re.IGNORECASE)
_DIALOGUE_RE = re.compile(r"dialogue\s*:\s*(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class Extracted[T]:
  value: T


@dataclass(frozen=True)
class ExtractionFailed:
  reason: str


type ExtractionResult[T] = Extracted[T] | ExtractionFailed


@dataclass
class Segment:
  """One candidate item recovered from free text."""

  text: str
  hashtags: list[str] = field(default_factory=list)


# Heuristic segmentation


def segment_text(text: str) -> list[Segment]:
  """Split free text into caption-like items with hashtags pulled out of the body."""
  segments: list[Segment] = []
  previous_kept = False
  for block in _candidate_blocks(text):
    segment = _clean_block(block)
    if segment is None:
      previous_kept = False
      continue

    if not segment.text:
      # A hashtag-only line belongs to the item right above it.
      if previous_kept and segment.hashtags:
        segments[-1].hashtags = normalize_hashtags([*segments[-1].hashtags, *segment.hashtags])
      continue

    previous_kept = MIN_ITEM_CHARS <= len(segment.text) <= MAX_ITEM_CHARS
    if previous_kept:
      segments.append(segment)

  return segments


def rescan_numbered(text: str) -> list[Segment]:
  """Second pass that only trusts `N. item` / `N) item` lines."""
  segments: list[Segment] = []
  for match in _NUMBERED_LINE_RE.finditer(strip_code_fences(text)):
    segment = _clean_block(match.group(1))
    if segment is not None and MIN_ITEM_CHARS <= len(segment.text) <= MAX_ITEM_CHARS:
      segments.append(segment)

  return segments


def _recover_segments(text: str, minimum: int) -> list[Segment]:
  segments = segment_text(text)
  if len(segments) >= minimum:
    return segments

  rescanned = rescan_numbered(text)
  return rescanned if len(rescanned) > len(segments) else segments


def _candidate_blocks(text: str) -> list[str]:
  """Prefer blank-line blocks, then lines, then inline list markers."""
  normalized = strip_code_fences(text).replace("\r\n", "\n").strip()
  if not normalized:
    return []

  blocks = [block.strip() for block in _BLANK_LINE_RE.split(normalized) if block.strip()]
  if len(blocks) > 1:
    return [piece for block in blocks for piece in _expand_block(block)]

  lines = [line.strip() for line in normalized.split("\n") if line.strip()]
  if len(lines) > 1:
    return lines

  return [piece.strip() for piece in _INLINE_SPLIT_RE.split(normalized) if piece.strip()]


def _expand_block(block: str) -> list[str]:
  """Keep a paragraph whole unless it is itself a marked list."""
  lines = [line.strip() for line in block.split("\n") if line.strip()]
  marked = sum(1 for line in lines if _MARKER_RE.match(line))
  if marked > 1:
    return lines

  return [" ".join(lines)]


def _clean_block(block: str) -> Segment | None:
  """Normalize one candidate, or None when it is structural noise."""
  if _NOISE_RE.match(block) or _QUOTED_KEY_RE.match(block) or _DANGLING_KEY_RE.match(block) or _SCHEMA_FRAGMENT_RE.search(block):
    return None

  body = _EMPHASIS_RE.sub("", block)
  body = _MARKER_RE.sub("", body, count=1)
  body = _LABEL_RE.sub("", body)
  hashtags = normalize_hashtags(_HASHTAG_RE.findall(body))
  body = _HASHTAG_RE.sub("", body)
  body = _WHITESPACE_RE.sub(" ", body).strip().strip(_WRAPPING_QUOTES).strip()

  if _NOISE_RE.match(body):
    return Segment(text="", hashtags=hashtags)

  # Lead-in lines such as "Here are your captions:" are not items.
  if body.endswith(":"):
    return None

  return Segment(text=body, hashtags=hashtags)


# Shared helpers


def _text(value: Any) -> str:
  """Flatten a JSON scalar or list into a trimmed string."""
  if isinstance(value, str):
    return value.strip()
  if isinstance(value, bool) or value is None:
    return ""
  if isinstance(value, int | float):
    return str(value)
  if isinstance(value, list):
    return ", ".join(part for part in (_text(item) for item in value) if part)
  return ""


def _unwrap(payload: Any, keys: tuple[str, ...]) -> Any:
  """Descend into a single wrapper object such as {"strategy": {...}}."""
  if isinstance(payload, dict):
    for key in keys:
      inner = payload.get(key)
      if isinstance(inner, dict | list):
        return inner

  return payload


def _first_list(payload: Any, keys: tuple[str, ...]) -> list[Any] | None:
  if isinstance(payload, list):
    return payload

  if isinstance(payload, dict):
    for key in keys:
      value = payload.get(key)
      if isinstance(value, list):
        return value

  return None


def _convert[T](value: Any, schema: type[T]) -> ExtractionResult[T]:
  try:
    return Extracted(msgspec.convert(value, type=schema))
  except msgspec.ValidationError as exc:
    return ExtractionFailed(f"{getattr(schema, '__name__', schema)} schema mismatch: {exc}")


# Captions


def _normalize_caption_items(items: list[Any]) -> list[dict[str, Any]]:
  normalized: list[dict[str, Any]] = []
  for item in items:
    if isinstance(item, str):
      segment = _clean_block(item)
      if segment is None or not segment.text:
        continue
      item = {"text": segment.text, "hashtags": segment.hashtags}

    if not isinstance(item, dict):
      continue

    text = _text(item.get("text") or item.get("caption"))
    if not text:
      continue

    style = _text(item.get("style")) or CAPTION_STYLES[len(normalized) % len(CAPTION_STYLES)]
    normalized.append({"text": text, "style": style, "hashtags": normalize_hashtags(item.get("hashtags"))})

  return normalized


def extract_captions(text: str, *, minimum: int = 1, limit: int = MAX_CAPTIONS) -> ExtractionResult[list[Caption]]:
  """Recover 1..limit captions from JSON or from a free-text list."""
  if not text or not text.strip():
    return ExtractionFailed("empty response")

  payload = extract_json_payload(text)
  items = _first_list(payload, ("captions", "data", "items", "results"))
  if items is not None:
    result = _convert(_normalize_caption_items(items), list[Caption])
    if isinstance(result, Extracted) and len(result.value) >= minimum:
      return Extracted(result.value[:limit])

  segments = _recover_segments(text, minimum)
  if len(segments) < minimum:
    return ExtractionFailed(f"recovered {len(segments)} captions, need at least {minimum}")

  captions = [Caption(text=segment.text, style=CAPTION_STYLES[index % len(CAPTION_STYLES)], hashtags=segment.hashtags) for index, segment in enumerate(segments[:limit])]
  return Extracted(captions)


# Calendar


def _normalize_calendar_entry(entry: dict[str, Any], index: int) -> dict[str, Any]:
  day = entry.get("day")
  return {
    "day": day if isinstance(day, int) and not isinstance(day, bool) else index + 1,
    "day_of_week": _text(entry.get("day_of_week")) or WEEKDAYS[index % len(WEEKDAYS)],
    "content_type": _text(entry.get("content_type") or entry.get("format")),
    "hook": _text(entry.get("hook")),
    "caption": _text(entry.get("caption")),
    "hashtag_set": normalize_hashtags(entry.get("hashtag_set", entry.get("hashtags"))),
    "best_post_time": _text(entry.get("best_post_time")),
    "content_brief": _text(entry.get("content_brief")),
    "viral_angle": _text(entry.get("viral_angle")),
    "cta": _text(entry.get("cta")),
  }


def extract_calendar(text: str, *, days: int) -> ExtractionResult[list[CalendarDay]]:
  """Recover a calendar with at least `days` entries; extra days are dropped."""
  entries = _first_list(extract_json_payload(text), ("calendar", "content_calendar", "days", "posts", "data"))
  if entries is None:
    return ExtractionFailed("no structured calendar found")

  normalized = [_normalize_calendar_entry(entry, index) for index, entry in enumerate(entries) if isinstance(entry, dict)]
  result = _convert(normalized, list[CalendarDay])
  if isinstance(result, ExtractionFailed):
    return result

  if len(result.value) < days:
    return ExtractionFailed(f"calendar has {len(result.value)} of {days} days")

  return Extracted(result.value[:days])


# Strategy and niche analysis


def _normalize_idea(idea: Any) -> Any:
  if isinstance(idea, str):
    return {"hook": idea.strip()}
  if isinstance(idea, dict):
    return {"hook": _text(idea.get("hook") or idea.get("idea")), "angle": _text(idea.get("angle")), "why_it_works": _text(idea.get("why_it_works"))}
  return idea


def extract_strategy(text: str) -> ExtractionResult[GrowthStrategy]:
  payload = _unwrap(extract_json_payload(text), ("strategy", "growth_strategy", "data"))
  if not isinstance(payload, dict):
    return ExtractionFailed("no structured strategy found")

  normalized = dict(payload)
  ideas = payload.get("viral_content_ideas")
  if isinstance(ideas, list):
    normalized["viral_content_ideas"] = [_normalize_idea(idea) for idea in ideas]

  return _convert(normalized, GrowthStrategy)


def extract_analysis(text: str) -> ExtractionResult[NicheAnalysis]:
  payload = _unwrap(extract_json_payload(text), ("analysis", "niche_analysis", "data"))
  if not isinstance(payload, dict):
    return ExtractionFailed("no structured analysis found")

  result = _convert(payload, NicheAnalysis)
  if isinstance(result, Extracted) and not result.value.hashtag_clusters:
    return ExtractionFailed("analysis has no hashtag clusters")

  return result


# Reel scripts


def _validate_script(payload: dict[str, Any], topic: Any) -> ExtractionResult[ReelScript]:
  scenes_raw = payload.get("scene_by_scene") or payload.get("scenes")
  if not isinstance(scenes_raw, list):
    return ExtractionFailed("script has no scene_by_scene list")

  scenes = [{"time": _text(scene.get("time")), "visual": _text(scene.get("visual")), "dialogue": _text(scene.get("dialogue") or scene.get("voiceover"))} for scene in scenes_raw if isinstance(scene, dict)]
  normalized = {
    "hook": _text(payload.get("hook")),
    "scene_by_scene": scenes,
    "cta": _text(payload.get("cta")),
    "caption": _text(payload.get("caption")),
    "hashtags": pad_script_hashtags(normalize_hashtags(payload.get("hashtags")), topic),
  }
  return _convert(normalized, ReelScript)


def _labelled_line(text: str, label: str) -> str:
  match = re.search(rf"^[ \t*#]*(?:{label})\s*\**\s*:\s*(.+?)\s*$", text, re.IGNORECASE | re.MULTILINE)
  if match is None:
    return ""

  return _EMPHASIS_RE.sub("", match.group(1)).strip().strip(_WRAPPING_QUOTES)


def _parse_scene_line(body: str) -> dict[str, str]:
  body = _EMPHASIS_RE.sub("", body).lstrip(" \t*:.)-–|").rstrip()
  time = ""
  time_match = _SCENE_TIME_RE.search(body)
  if time_match is not None:
    time = _WHITESPACE_RE.sub("", time_match.group(1)).replace("–", "-")
    body = (body[: time_match.start()] + body[time_match.end() :]).strip(" -–:|")

  visual_match = _VISUAL_RE.search(body)
  dialogue_match = _DIALOGUE_RE.search(body)
  visual = visual_match.group(1).strip() if visual_match else ""
  if dialogue_match is not None:
    dialogue = dialogue_match.group(1).strip()
  else:
    dialogue = visual or body.strip()

  return {"time": time, "visual": visual, "dialogue": dialogue.strip(_WRAPPING_QUOTES)}


def _scan_script(text: str, topic: Any) -> ExtractionResult[ReelScript]:
  parsed = (_parse_scene_line(match.group(2)) for match in _SCENE_LINE_RE.finditer(text))
  scenes = [scene for scene in parsed if scene["dialogue"]]
  if len(scenes) < MIN_HEURISTIC_SCENES:
    return ExtractionFailed(f"recovered {len(scenes)} scenes, need at least {MIN_HEURISTIC_SCENES}")

  normalized = {
    "hook": _labelled_line(text, "hook") or scenes[0]["dialogue"],
    "scene_by_scene": scenes,
    "cta": _labelled_line(text, "cta|call to action"),
    "caption": _HASHTAG_RE.sub("", _labelled_line(text, "caption")).strip(),
    "hashtags": pad_script_hashtags(normalize_hashtags(_HASHTAG_RE.findall(text)), topic),
  }
  return _convert(normalized, ReelScript)


def extract_reel_script(text: str, *, topic: Any = None) -> ExtractionResult[ReelScript]:
  """Recover a reel script from JSON, else from `Scene N:` lines."""
  if not text or not text.strip():
    return ExtractionFailed("empty response")

  payload = _unwrap(extract_json_payload(text), ("script", "reel_script"))
  if isinstance(payload, dict):
    result = _validate_script(payload, topic)
    if isinstance(result, Extracted):
      return result

  return _scan_script(text, topic)


# Captions for an uploaded image


def _normalize_media_analysis(raw: Any) -> dict[str, str]:
  source = raw if isinstance(raw, dict) else {}
  return {key: _text(source.get(key)) or default for key, default in MEDIA_ANALYSIS_DEFAULTS.items()}


def extract_media_captions(text: str) -> ExtractionResult[MediaCaptions]:
  """Recover {analysis, captions} for an image; analysis gaps take neutral defaults."""
  payload = extract_json_payload(text)
  analysis_raw: Any = None
  if isinstance(payload, dict):
    analysis_raw = payload.get("analysis") if isinstance(payload.get("analysis"), dict) else payload

  captions_result = extract_captions(text)
  if isinstance(captions_result, ExtractionFailed):
    return captions_result

  analysis = msgspec.convert(_normalize_media_analysis(analysis_raw), type=MediaAnalysis)
  return _convert({"analysis": msgspec.to_builtins(analysis), "captions": msgspec.to_builtins(captions_result.value)}, MediaCaptions)
