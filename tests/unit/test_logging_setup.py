from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from dataclasses import replace

import pytest

from instaflow.core.logging import TruncatedFormatter, _rotated_name, setup_logging


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
  loggers = [logging.getLogger(name) for name in ("", "uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")]
  saved = [(log, list(log.handlers), log.level, log.propagate) for log in loggers]
  yield
  original = {handler for _, handlers, _, _ in saved for handler in handlers}
  added = {handler for log in loggers for handler in log.handlers if handler not in original}
  for log, handlers, level, propagate in saved:
    log.handlers = handlers
    log.setLevel(level)
    log.propagate = propagate
  for handler in added:
    handler.close()


def test_rotated_backups_use_dash_suffix() -> None:
  assert _rotated_name("/var/log/instaflow.log.1") == "/var/log/instaflow.log-1"
  assert _rotated_name("/var/log/instaflow.log") == "/var/log/instaflow.log"


def test_truncated_formatter_keeps_head_and_tail() -> None:
  def recurse(depth: int) -> None:
    if depth == 0:
      raise RuntimeError("deep failure")
    recurse(depth - 1)

  try:
    recurse(10)
  except RuntimeError:
    formatted = TruncatedFormatter().formatException(sys.exc_info())

  assert formatted.startswith("Traceback")
  assert "    ...\n" in formatted
  assert formatted.rstrip().endswith("RuntimeError: deep failure")


def test_setup_logging_writes_to_log_dir(settings, tmp_path, restore_root_logging) -> None:
  log_path = setup_logging(replace(settings, log_dir=str(tmp_path / "logs")))

  logging.getLogger("instaflow.test").info("hello from the test")
  for handler in logging.getLogger().handlers:
    handler.flush()

  assert log_path.parent == (tmp_path / "logs").resolve()
  assert "hello from the test" in log_path.read_text(encoding="utf-8")
  assert logging.getLogger("uvicorn.access").propagate is False
