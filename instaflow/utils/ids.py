"""Identifier utilities."""

from __future__ import annotations

import uuid


def generate_job_id(prefix: str) -> str:
  """Return a new job identifier tagged with the task prefix (e.g. CAPTIONS-3f2a...)."""
  return f"{prefix.strip().upper()}-{uuid.uuid4().hex}"
