"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from instaflow.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the InstaFlow gateway."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  gemini_api_key: str | None
  gemini_model: str
  gemini_vision_model: str
  gemini_timeout_seconds: float
  gemini_max_retries: int
  job_retention_seconds: int
  job_sweep_interval_seconds: int
  script_deadline_seconds: float
  max_image_base64_bytes: int

  @property
  def mock_mode(self) -> bool:
    """True when no Gemini key is configured and every job resolves to fallback content."""
    return self.gemini_api_key is None


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  """Parse a comma-separated origin list; an empty value allows every origin."""
  if not raw:
    return ("*",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
  return tuple(origins) or ("*",)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None

  value = raw.strip()
  return value or None


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")

  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")

  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("INSTAFLOW_ENV", "development").lower()
  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("INSTAFLOW_DEBUG"))

  log_max_bytes = _positive_int("INSTAFLOW_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("INSTAFLOW_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("INSTAFLOW_LOG_BACKUP_COUNT must be zero or a positive integer.")

  gemini_max_retries = int(os.getenv("INSTAFLOW_GEMINI_MAX_RETRIES", "3"))
  if gemini_max_retries < 1:
    raise ValueError("INSTAFLOW_GEMINI_MAX_RETRIES must be at least 1.")

  # Jobs live for an hour and are swept every 30 minutes unless overridden.
  job_retention_seconds = _positive_int("INSTAFLOW_JOB_RETENTION_SECONDS", "3600")
  job_sweep_interval_seconds = _positive_int("INSTAFLOW_JOB_SWEEP_INTERVAL_SECONDS", "1800")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("INSTAFLOW_ALLOWED_ORIGINS") or os.getenv("CORS_ORIGINS")),
    log_dir=(os.getenv("INSTAFLOW_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=(os.getenv("INSTAFLOW_GEMINI_MODEL") or "gemini-2.0-flash").strip(),
    gemini_vision_model=(os.getenv("INSTAFLOW_GEMINI_VISION_MODEL") or "gemini-2.0-flash").strip(),
    gemini_timeout_seconds=_positive_float("INSTAFLOW_GEMINI_TIMEOUT_SECONDS", "20"),
    gemini_max_retries=gemini_max_retries,
    job_retention_seconds=job_retention_seconds,
    job_sweep_interval_seconds=job_sweep_interval_seconds,
    script_deadline_seconds=_positive_float("INSTAFLOW_SCRIPT_DEADLINE_SECONDS", "25"),
    max_image_base64_bytes=_positive_int("INSTAFLOW_MAX_IMAGE_BASE64_BYTES", str(10 * 1024 * 1024)),
  )
