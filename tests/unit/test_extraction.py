from __future__ import annotations

import json

import msgspec
import pytest

from instaflow.ai.extraction import (
  Extracted,
  ExtractionFailed,
  extract_analysis,
  extract_calendar,
  extract_captions,
  extract_media_captions,
  extract_reel_script,
  extract_strategy,
  rescan_numbered,
  segment_text,
)
from instaflow.ai.fallback import fallback_analysis, fallback_calendar, fallback_strategy
from instaflow.ai.schemas import CAPTION_STYLES, SCRIPT_HASHTAG_COUNT

CAPTIONS = [
  {"style": "story", "text": "Golden hour flows hit different on the beach.", "hashtags": ["#sunsetyoga", "#yoga"]},
  {"style": "question", "text": "Who else stretches best when the sky turns orange?", "hashtags": ["#yogalife"]},
]


def _wrap(payload: object) -> str:
  return f"Absolutely! Here is what you asked for:\n\n```json\n{json.dumps(payload, indent=2)}\n```\n\nLet me know if you want changes."


def _wrap_after_bracketed_prose(payload: object) -> str:
  return f"Here are your results [English], swap {{niche}} for yours:\n```json\n{json.dumps(payload)}\n```"


@pytest.mark.parametrize(
  ("extract", "payload"),
  [
    (extract_captions, CAPTIONS),
    (extract_strategy, fallback_strategy({"niche": "home baking"})),
    (extract_analysis, fallback_analysis({"topic": "street food"})),
    (lambda text: extract_calendar(text, days=3), fallback_calendar({"topic": "yoga", "days": 3})),
  ],
  ids=["captions", "strategy", "analysis", "calendar"],
)
def test_wrapped_payload_extracts_like_bare_payload(extract, payload: object) -> None:
  bare = extract(json.dumps(payload))
  wrapped = extract(_wrap(payload))
  bracketed = extract(_wrap_after_bracketed_prose(payload))

  assert isinstance(bare, Extracted)
  assert wrapped == bare
  assert bracketed == bare


def test_segment_text_splits_bullets_and_pulls_hashtags() -> None:
  text = "- Sunrise stretches make every morning feel lighter #yoga #morning\n- Breathe in the calm, breathe out the rush #mindfulness\n- Five minutes on the mat changes the whole day"

  segments = segment_text(text)

  assert [segment.text for segment in segments] == [
    "Sunrise stretches make every morning feel lighter",
    "Breathe in the calm, breathe out the rush",
    "Five minutes on the mat changes the whole day",
  ]
  assert [segment.hashtags for segment in segments] == [["#yoga", "#morning"], ["#mindfulness"], []]


def test_segment_text_keeps_clock_times_intact() -> None:
  text = "7:30 sunrise flows before the beach gets busy\n6:45 breathwork to set the tone for the day"

  segments = segment_text(text)

  assert [segment.text for segment in segments] == ["7:30 sunrise flows before the beach gets busy", "6:45 breathwork to set the tone for the day"]


def test_segment_text_attaches_hashtag_only_lines_to_previous_item() -> None:
  text = "Golden light, slow breath, open heart\n#sunsetyoga #calm\nRoll out the mat where the sky is widest\n#beachyoga"

  segments = segment_text(text)

  assert len(segments) == 2
  assert segments[0].hashtags == ["#sunsetyoga", "#calm"]
  assert segments[1].hashtags == ["#beachyoga"]


def test_segment_text_drops_noise_and_out_of_bounds_items() -> None:
  text = "\n\n".join(
    [
      "Here are your captions:",
      "1. **Chase the light on every single mat session**",
      "2. Too short",
      '"caption": {',
      "3. " + "word " * 60,
      "4. Caption: Stillness is a skill worth practicing daily",
      "}",
    ]
  )

  segments = segment_text(text)

  assert [segment.text for segment in segments] == ["Chase the light on every single mat session", "Stillness is a skill worth practicing daily"]


def test_numbered_rescan_recovers_items_hidden_in_long_paragraphs() -> None:
  text = f"{'Caption ideas for you ' * 10}\n1. Chase the light on every single mat session\n\n{'More notes to read here ' * 10}\n2) Stillness is a skill worth practicing daily"

  assert segment_text(text) == []
  assert [segment.text for segment in rescan_numbered(text)] == ["Chase the light on every single mat session", "Stillness is a skill worth practicing daily"]

  result = extract_captions(text)
  assert isinstance(result, Extracted)
  assert [caption.text for caption in result.value] == ["Chase the light on every single mat session", "Stillness is a skill worth practicing daily"]


def test_captions_from_free_text_get_rotating_styles() -> None:
  text = "1. Sunrise stretches make every morning feel lighter\n2. Breathe in the calm, breathe out the rush\n3. Five minutes on the mat changes the whole day"

  result = extract_captions(text)

  assert isinstance(result, Extracted)
  assert [caption.style for caption in result.value] == list(CAPTION_STYLES[:3])


def test_captions_accept_wrapped_list_and_cap_at_seven() -> None:
  items = [{"text": f"Caption number {index} about sunset yoga", "hashtags": "#yoga, sunset"} for index in range(10)]

  result = extract_captions(json.dumps({"captions": items}))

  assert isinstance(result, Extracted)
  assert len(result.value) == 7
  assert result.value[0].hashtags == ["#yoga", "#sunset"]


@pytest.mark.parametrize("text", ["", "   ", "ok", "{}"])
def test_captions_fail_without_usable_items(text: str) -> None:
  assert isinstance(extract_captions(text), ExtractionFailed)


def test_calendar_requires_requested_day_count_and_trims_extras() -> None:
  week = fallback_calendar({"topic": "yoga", "days": 7})

  short = extract_calendar(json.dumps(week[:3]), days=5)
  trimmed = extract_calendar(json.dumps({"calendar": week}), days=4)

  assert isinstance(short, ExtractionFailed)
  assert isinstance(trimmed, Extracted)
  assert [day.day for day in trimmed.value] == [1, 2, 3, 4]


def test_calendar_rejects_free_text() -> None:
  assert isinstance(extract_calendar("Day 1: post a reel\nDay 2: post a carousel", days=2), ExtractionFailed)


def test_strategy_missing_sections_fails() -> None:
  strategy = fallback_strategy({"niche": "baking"})
  del strategy["growth_plan"]

  assert isinstance(extract_strategy(json.dumps(strategy)), ExtractionFailed)


def test_strategy_accepts_string_ideas() -> None:
  strategy = fallback_strategy({"niche": "baking"})
  strategy["viral_content_ideas"] = ["Bake along in real time", "Fix a failed loaf"]

  result = extract_strategy(json.dumps({"strategy": strategy}))

  assert isinstance(result, Extracted)
  assert [idea.hook for idea in result.value.viral_content_ideas] == ["Bake along in real time", "Fix a failed loaf"]


def test_analysis_requires_hashtag_clusters() -> None:
  analysis = fallback_analysis({"topic": "street food"})
  analysis["hashtag_clusters"] = {}

  assert isinstance(extract_analysis(json.dumps(analysis)), ExtractionFailed)


def test_reel_script_from_json_pads_hashtags() -> None:
  script = {
    "hook": "Stop scrolling if you love sunsets",
    "scene_by_scene": [{"time": "0-3s", "visual": "Wide beach shot", "dialogue": "This is your sign to slow down."}],
    "cta": "Follow for daily flows",
    "caption": "Sunset yoga hits different",
    "hashtags": ["#beach"],
  }

  result = extract_reel_script(_wrap(script), topic="sunset yoga")

  assert isinstance(result, Extracted)
  assert result.value.scene_by_scene[0].dialogue == "This is your sign to slow down."
  assert len(result.value.hashtags) == SCRIPT_HASHTAG_COUNT
  assert result.value.hashtags[:2] == ["#beach", "#sunsetyoga"]


def test_reel_script_from_scene_lines() -> None:
  text = "\n".join(
    [
      "Hook: Stop scrolling if you love sunsets",
      "Scene 1 (0-3s): Visual: wide beach shot | Dialogue: This is your sign to slow down.",
      "Scene 2 (3-7s): Visual: close-up of hands | Dialogue: Breathe with the waves.",
      "**Scene 3** (7-12s): Visual: pose at golden hour | Dialogue: Ten minutes is enough.",
      "CTA: Follow for daily flows",
      "Caption: Sunset yoga hits different #sunsetyoga #yoga",
    ]
  )

  result = extract_reel_script(text, topic="sunset yoga")

  assert isinstance(result, Extracted)
  script = result.value
  assert script.hook == "Stop scrolling if you love sunsets"
  assert [scene.time for scene in script.scene_by_scene] == ["0-3s", "3-7s", "7-12s"]
  assert script.scene_by_scene[0].visual == "wide beach shot"
  assert script.scene_by_scene[1].dialogue == "Breathe with the waves."
  assert script.cta == "Follow for daily flows"
  assert script.caption == "Sunset yoga hits different"
  assert script.hashtags[:2] == ["#sunsetyoga", "#yoga"]
  assert len(script.hashtags) == SCRIPT_HASHTAG_COUNT


def test_reel_script_needs_three_scenes_in_free_text() -> None:
  text = "Scene 1: Dialogue: Hello there.\nScene 2: Dialogue: Bye now."

  assert isinstance(extract_reel_script(text), ExtractionFailed)


def test_media_captions_fill_missing_analysis_fields() -> None:
  text = "1. Salt air and slow mornings by the sea #beach\n2. Sandy toes, clear mind, open sky"

  result = extract_media_captions(text)

  assert isinstance(result, Extracted)
  assert msgspec.to_builtins(result.value.analysis) == {"scene": "indoor", "setting": "casual", "mood": "happy", "time": "day", "occasion": "casual"}
  assert [caption.text for caption in result.value.captions] == ["Salt air and slow mornings by the sea", "Sandy toes, clear mind, open sky"]
