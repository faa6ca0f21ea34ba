from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from instaflow.config import get_settings
from instaflow.utils.env import load_env_file

_ENV_KEYS = (
  "INSTAFLOW_ENV",
  "INSTAFLOW_DEBUG",
  "INSTAFLOW_ALLOWED_ORIGINS",
  "CORS_ORIGINS",
  "INSTAFLOW_LOG_DIR",
  "INSTAFLOW_LOG_MAX_BYTES",
  "INSTAFLOW_LOG_BACKUP_COUNT",
  "GEMINI_API_KEY",
  "INSTAFLOW_GEMINI_MODEL",
  "INSTAFLOW_GEMINI_VISION_MODEL",
  "INSTAFLOW_GEMINI_TIMEOUT_SECONDS",
  "INSTAFLOW_GEMINI_MAX_RETRIES",
  "INSTAFLOW_JOB_RETENTION_SECONDS",
  "INSTAFLOW_JOB_SWEEP_INTERVAL_SECONDS",
  "INSTAFLOW_SCRIPT_DEADLINE_SECONDS",
  "INSTAFLOW_MAX_IMAGE_BASE64_BYTES",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
  for key in _ENV_KEYS:
    monkeypatch.delenv(key, raising=False)
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults() -> None:
  settings = get_settings()

  assert settings.environment == "development"
  assert settings.allowed_origins == ("*",)
  assert settings.gemini_api_key is None
  assert settings.mock_mode is True
  assert settings.gemini_model == "gemini-2.0-flash"
  assert settings.job_retention_seconds == 3600
  assert settings.job_sweep_interval_seconds == 1800
  assert settings.script_deadline_seconds == 25.0
  assert settings.max_image_base64_bytes == 10 * 1024 * 1024


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("GEMINI_API_KEY", "  secret  ")
  monkeypatch.setenv("INSTAFLOW_ALLOWED_ORIGINS", "https://a.example, https://b.example,")
  monkeypatch.setenv("INSTAFLOW_DEBUG", "yes")
  monkeypatch.setenv("INSTAFLOW_SCRIPT_DEADLINE_SECONDS", "12.5")

  settings = get_settings()

  assert settings.gemini_api_key == "secret"
  assert settings.mock_mode is False
  assert settings.allowed_origins == ("https://a.example", "https://b.example")
  assert settings.debug is True
  assert settings.script_deadline_seconds == 12.5


def test_cors_origins_fallback_key(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("CORS_ORIGINS", "https://app.example")

  assert get_settings().allowed_origins == ("https://app.example",)


@pytest.mark.parametrize(
  ("key", "value"),
  [
    ("INSTAFLOW_JOB_RETENTION_SECONDS", "0"),
    ("INSTAFLOW_GEMINI_TIMEOUT_SECONDS", "-1"),
    ("INSTAFLOW_GEMINI_MAX_RETRIES", "0"),
    ("INSTAFLOW_LOG_BACKUP_COUNT", "-2"),
    ("INSTAFLOW_MAX_IMAGE_BASE64_BYTES", "lots"),
  ],
)
def test_invalid_values_raise(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
  monkeypatch.setenv(key, value)

  with pytest.raises(ValueError):
    get_settings()


def test_env_file_never_overrides_real_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  env_file = tmp_path / ".env"
  env_file.write_text('# local settings\nexport INSTAFLOW_ENV="staging"\nINSTAFLOW_GEMINI_MODEL=gemini-test\nnot a pair\n', encoding="utf-8")
  fake_environ = {"INSTAFLOW_GEMINI_MODEL": "from-shell"}
  monkeypatch.setattr(os, "environ", fake_environ)

  load_env_file(env_file)

  assert fake_environ == {"INSTAFLOW_ENV": "staging", "INSTAFLOW_GEMINI_MODEL": "from-shell"}
