"""Structured collector for soft failures found while compiling or validating a course."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Literal

Severity = Literal["warning", "error"]


@dataclass(frozen=True)
class Diagnostic:
  """One degraded item: what happened and where in the course it happened."""

  code: str
  message: str
  path: str | None = None
  severity: Severity = "warning"

  def __str__(self) -> str:
    if self.path:
      return f"{self.path}: {self.message}"
    return self.message

  def to_dict(self) -> dict[str, str | None]:
    return {"code": self.code, "message": self.message, "path": self.path, "severity": self.severity}


@dataclass
class Diagnostics:
  """Request-scoped list of diagnostics with a dotted location stack."""

  entries: list[Diagnostic] = field(default_factory=list)
  _path: list[str] = field(default_factory=list, repr=False)

  @property
  def current_path(self) -> str | None:
    return ".".join(self._path) or None

  @contextmanager
  def scope(self, *segments: str | int) -> Iterator[None]:
    """Push location segments (e.g. `"sections", 0`) for diagnostics recorded inside the block."""
    self._path.extend(str(segment) for segment in segments)
    try:
      yield
    finally:
      del self._path[len(self._path) - len(segments) :]

  def add(self, code: str, message: str, *, severity: Severity = "warning") -> Diagnostic:
    diagnostic = Diagnostic(code=code, message=message, path=self.current_path, severity=severity)
    self.entries.append(diagnostic)
    return diagnostic

  def warnings(self) -> list[Diagnostic]:
    return [entry for entry in self.entries if entry.severity == "warning"]

  def errors(self) -> list[Diagnostic]:
    return [entry for entry in self.entries if entry.severity == "error"]

  def __len__(self) -> int:
    return len(self.entries)


def report_degraded(diagnostics: Diagnostics | None, logger: logging.Logger, code: str, message: str, *, severity: Severity = "warning") -> None:
  """Log a degraded item and, when a collector is threaded through, record it."""
  logger.warning("%s: %s", code, message)
  if diagnostics is not None:
    diagnostics.add(code, message, severity=severity)
