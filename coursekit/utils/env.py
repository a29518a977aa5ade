"""Minimal .env reader so local runs pick up NOTION_TOKEN without exporting it."""

from __future__ import annotations

import os
from pathlib import Path


def default_env_path() -> Path:
  """Return the .env path next to the project root."""

  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str) -> str:
  """Strip matching quotes, or a trailing ` # comment` from unquoted values."""
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    return value[1:-1]
  comment_at = value.find(" #")
  if comment_at != -1:
    return value[:comment_at].rstrip()
  return value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Copy key=value pairs from a .env file into os.environ and return the keys that were set."""

  if not path.is_file():
    return []

  loaded: list[str] = []
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
      continue
    if line.startswith("export "):
      line = line[len("export ") :].lstrip()
    key, _, value = line.partition("=")
    key = key.strip()
    if not key:
      continue
    # Real environment wins unless the caller explicitly asks otherwise.
    if not override and key in os.environ:
      continue
    os.environ[key] = _unquote(value.strip())
    loaded.append(key)
  return loaded
