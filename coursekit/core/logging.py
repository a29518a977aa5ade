import logging
import logging.handlers
import sys
import time
from pathlib import Path
from types import TracebackType

from coursekit.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Process-wide logging state; handlers are installed once.
_LOG_FILE_PATH: Path | None = None
_LOGGING_INITIALIZED = False


class TruncatedFormatter(logging.Formatter):
  """Formatter that keeps console tracebacks short."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    import traceback

    lines = traceback.format_exception(*ei)
    # Keep header + last 5 lines of traceback
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _rotated_name(default_name: str) -> str:
  """Name backups `coursekit.log-1` instead of `coursekit.log.1`."""
  # default_name looks like `/path/to/coursekit_<stamp>.log.1`.
  base, _, num = default_name.rpartition(".")
  if num.isdigit() and base:
    return f"{base}-{num}"
  # Not a numbered backup; keep whatever the handler proposed.
  return default_name


def _build_handlers(settings: Settings, log_dir: Path) -> tuple[logging.Handler, logging.Handler, Path]:
  """Create a console handler and a rotating file handler."""
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

  log_path = log_dir / f"coursekit_{time.strftime('%Y%m%d_%H%M%S')}.log"
  try:
    # Touch early so the file exists even if handlers have not flushed yet.
    log_path.touch(exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log file at {log_path}: {exc}") from exc

  stream = logging.StreamHandler(sys.stdout)
  stream.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

  file_handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  file_handler.namer = _rotated_name
  file_handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return stream, file_handler, log_path


def setup_logging(settings: Settings, log_dir: Path | None = None) -> Path:
  """Route root and uvicorn loggers through the same handlers."""
  resolved_dir = log_dir or Path(__file__).resolve().parents[2] / "logs"
  stream_handler, file_handler, log_path = _build_handlers(settings, resolved_dir)
  level = logging.DEBUG if settings.debug else logging.INFO
  # Server and framework loggers write through our handlers only, never twice via root.
  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = [stream_handler, file_handler]
    log.propagate = False

  # force=True replaces handlers a test runner or an earlier call may have installed.
  logging.basicConfig(level=level, handlers=[stream_handler, file_handler], force=True)
  # httpx logs every request at INFO; the Notion client logs its own summaries.
  logging.getLogger("httpx").setLevel(logging.WARNING)
  return log_path


def initialize_logging(settings: Settings) -> None:
  """Initialize logging once per process and log where the file lives."""
  global _LOG_FILE_PATH, _LOGGING_INITIALIZED
  logger = logging.getLogger("coursekit.core.logging")
  if _LOGGING_INITIALIZED:
    return
  _LOG_FILE_PATH = setup_logging(settings)
  _LOGGING_INITIALIZED = True
  logger.info("Logging initialized. Writing to %s (debug=%s)", _LOG_FILE_PATH, settings.debug)
