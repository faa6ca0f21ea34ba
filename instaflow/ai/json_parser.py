"""Lenient JSON recovery for LLM outputs."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\n?")
_FENCED_BLOCK_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][\w-]*)(\s*:)")


def strip_code_fences(raw: str) -> str:
  """Remove markdown code fence markers, keeping the fenced content."""
  return _FENCE_RE.sub("", raw).strip()


def extract_json_payload(raw: str) -> dict[str, Any] | list[Any] | None:
  """Recover a JSON object or array from model text, or None when nothing parses.

  Tries, in order: the content of each fenced block, the whole fence-stripped
  text, the span between the first and last delimiter pair (the opener that appears first is tried first so a
  top-level array keeps all of its elements), and the first balanced block.
  Each candidate is retried after removing trailing commas and quoting bare
  keys.
  """
  if not raw or not raw.strip():
    return None

  # Prose around a fence may hold stray brackets, so fenced content goes first.
  for block in _FENCED_BLOCK_RE.findall(raw):
    parsed = _loads_repaired(block.strip())
    if parsed is not None:
      return parsed

  cleaned = strip_code_fences(raw)
  # Prefer strict parsing so valid JSON is preserved without mutation.
  parsed = _loads_container(cleaned)
  if parsed is not None:
    return parsed

  for candidate in _candidates(cleaned):
    parsed = _loads_repaired(candidate)
    if parsed is not None:
      return parsed

  return None


def _candidates(text: str) -> list[str]:
  """Collect substrings that may hold the JSON payload, most likely first."""
  spans: list[tuple[int, str]] = []
  for opener, closer in (("{", "}"), ("[", "]")):
    start = text.find(opener)
    end = text.rfind(closer)
    if start != -1 and end > start:
      spans.append((start, text[start : end + 1]))

  spans.sort(key=lambda item: item[0])
  candidates = [span for _, span in spans]

  block = _extract_balanced_block(text)
  if block is not None and block not in candidates:
    candidates.append(block)

  return candidates


def _loads_container(text: str) -> dict[str, Any] | list[Any] | None:
  try:
    value = json.loads(text)
  except json.JSONDecodeError:
    return None

  # Scalars are not payloads; let the caller fall through to other strategies.
  if isinstance(value, dict | list):
    return value
  return None


def _loads_repaired(candidate: str) -> dict[str, Any] | list[Any] | None:
  parsed = _loads_container(candidate)
  if parsed is not None:
    return parsed

  without_commas = _TRAILING_COMMA_RE.sub(r"\1", candidate)
  parsed = _loads_container(without_commas)
  if parsed is not None:
    return parsed

  # JS-style output: {hook: "..."}.
  return _loads_container(_BARE_KEY_RE.sub(r'\1"\2"\3', without_commas))


def _extract_balanced_block(raw: str) -> str | None:
  """Locate the first balanced JSON object/array, honoring string escapes."""
  start_index: int | None = None
  depth = 0
  in_string = False
  escape = False

  for index, char in enumerate(raw):
    if start_index is None:
      if char in "{[":
        start_index = index
        depth = 1
      continue

    if in_string:
      if escape:
        escape = False
      elif char == "\\":
        escape = True
      elif char == '"':
        in_string = False
      continue

    if char == '"':
      in_string = True
    elif char in "{[":
      depth += 1
    elif char in "}]":
      depth -= 1
      if depth == 0:
        return raw[start_index : index + 1]

  return None
