"""Retry logic for rate-limited model calls."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


def is_rate_limited(exc: BaseException) -> bool:
  """Detect 429 / quota responses from the SDK error or its message."""
  if getattr(exc, "code", None) == 429:
    return True

  message = str(exc)
  return "429" in message or "RESOURCE_EXHAUSTED" in message or "Too Many Requests" in message


async def retry_with_backoff[T](func: Callable[..., Awaitable[T]], *args, retries: int = 3, base_delay: float = 1.0, **kwargs) -> T:
  """Call func, retrying rate-limit errors with jittered exponential delays.

  Non rate-limit errors and the final failed attempt propagate unchanged.
  """
  for attempt in range(retries):
    try:
      return await func(*args, **kwargs)
    except Exception as exc:
      if not is_rate_limited(exc) or attempt == retries - 1:
        raise

      delay = base_delay * (2**attempt) + random.uniform(0, 1)
      logger.warning("Rate limited (attempt %d/%d); retrying in %.1fs: %s", attempt + 1, retries, delay, exc)
      await asyncio.sleep(delay)

  raise RuntimeError("retry_with_backoff requires retries >= 1")
