"""Minimal .env support for local development."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the .env path at the project root."""

  return Path(__file__).resolve().parents[2] / ".env"


def _parse_line(raw_line: str) -> tuple[str, str] | None:
  """Split one .env line into a key/value pair, skipping comments and junk."""
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None

  line = line.removeprefix("export ").lstrip()
  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not key:
    return None

  value = value.strip()
  # Drop one layer of matching quotes.
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    value = value[1:-1]

  return key, value


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Load key=value pairs into os.environ; real environment variables win unless override is set."""

  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None:
      continue

    key, value = parsed
    if not override and key in os.environ:
      continue

    os.environ[key] = value
