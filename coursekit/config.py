"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from coursekit.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

NOTION_API_VERSION = "2025-09-03"
NOTION_MAX_BATCH_SIZE = 100


@dataclass(frozen=True)
class Settings:
  """Typed settings for the course compiler service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  notion_token: str | None
  notion_base_url: str
  notion_version: str
  notion_timeout_seconds: float
  append_batch_size: int
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost:3000",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("COURSEKIT_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("COURSEKIT_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


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


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("COURSEKIT_ENV", "development").lower()
  # The original service used a bare DEBUG flag; keep honouring it.
  debug = _parse_bool(os.getenv("COURSEKIT_DEBUG")) or _parse_bool(os.getenv("DEBUG"))

  notion_timeout_seconds = float(os.getenv("COURSEKIT_NOTION_TIMEOUT_SECONDS", "30"))
  if notion_timeout_seconds <= 0:
    raise ValueError("COURSEKIT_NOTION_TIMEOUT_SECONDS must be positive.")

  append_batch_size = int(os.getenv("COURSEKIT_APPEND_BATCH_SIZE", str(NOTION_MAX_BATCH_SIZE)))
  if not 1 <= append_batch_size <= NOTION_MAX_BATCH_SIZE:
    raise ValueError(f"COURSEKIT_APPEND_BATCH_SIZE must be between 1 and {NOTION_MAX_BATCH_SIZE}.")

  log_max_bytes = int(os.getenv("COURSEKIT_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("COURSEKIT_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("COURSEKIT_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("COURSEKIT_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("COURSEKIT_ALLOWED_ORIGINS")),
    notion_token=_optional_str(os.getenv("NOTION_TOKEN")),
    notion_base_url=os.getenv("COURSEKIT_NOTION_BASE_URL", "https://api.notion.com/v1").rstrip("/"),
    notion_version=os.getenv("COURSEKIT_NOTION_VERSION", NOTION_API_VERSION),
    notion_timeout_seconds=notion_timeout_seconds,
    append_batch_size=append_batch_size,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("COURSEKIT_LOG_HTTP_4XX")),
  )
