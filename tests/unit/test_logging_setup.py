"""Log file rotation naming, traceback trimming and handler wiring."""

from __future__ import annotations

import logging
import sys

import pytest

from coursekit.config import get_settings
from coursekit.core.logging import TruncatedFormatter, _rotated_name, setup_logging


@pytest.fixture
def restore_logging():
  root = logging.getLogger()
  saved = (root.handlers[:], root.level)
  uvicorn_saved = {name: (logging.getLogger(name).handlers[:], logging.getLogger(name).propagate) for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")}
  yield
  for handler in root.handlers:
    if handler not in saved[0]:
      handler.close()
  root.handlers, root.level = saved
  for name, (handlers, propagate) in uvicorn_saved.items():
    logging.getLogger(name).handlers = handlers
    logging.getLogger(name).propagate = propagate


def test_rotated_name() -> None:
  assert _rotated_name("/logs/coursekit.log.3") == "/logs/coursekit.log-3"
  assert _rotated_name("/logs/coursekit.log") == "/logs/coursekit.log"


def test_truncated_formatter_keeps_head_and_tail() -> None:
  def _deep(depth: int) -> None:
    if depth == 0:
      raise ValueError("bottom")
    _deep(depth - 1)

  try:
    _deep(10)
  except ValueError:
    text = TruncatedFormatter().formatException(sys.exc_info())
  assert text.startswith("Traceback")
  assert "    ...\n" in text
  assert text.rstrip().endswith("ValueError: bottom")


def test_setup_logging_writes_to_rotating_file(tmp_path, restore_logging) -> None:
  log_path = setup_logging(get_settings(), log_dir=tmp_path)
  assert log_path.exists()
  logging.getLogger("coursekit.test").info("compiled 3 blocks")
  for handler in logging.getLogger().handlers:
    handler.flush()
  assert log_path.parent == tmp_path
  assert "compiled 3 blocks" in log_path.read_text(encoding="utf-8")
  assert logging.getLogger("uvicorn.access").propagate is False
  assert logging.getLogger("httpx").level == logging.WARNING
