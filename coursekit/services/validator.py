"""Course validation, stats and authoring recommendations.

Everything here reads the raw request body rather than the parsed model: the checks
must hold for arbitrary JSON, so absent or mistyped fields simply read as empty and
none of these functions raise.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from coursekit.schema.blocks import is_valid_url
from coursekit.schema.course import MalformedItem, parse_content_item, resolve_item_type
from coursekit.services.diagnostics import Diagnostics
from coursekit.services.rich_text import MAX_RUN_CHARS

MEDIA_URL_TYPES = frozenset({"image", "video", "audio", "pdf"})
PARAGRAPH_RUN_LIMIT = 3
PARAGRAPH_RATIO_LIMIT = 0.5
BLOCKS_PER_SECTION_LIMIT = 15
ALL_GOOD_MESSAGE = "✅ The course structure looks well balanced."


@dataclass(frozen=True)
class ValidationResult:
  valid: bool
  errors: list[str]
  warnings: list[str]

  def to_dict(self) -> dict[str, Any]:
    return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass(frozen=True)
class CourseStats:
  """Item counts derived from a course description; recomputed on every call."""

  total_sections: int = 0
  total_blocks: int = 0
  block_types: dict[str, int] = field(default_factory=dict)
  blocks_per_section: list[int] = field(default_factory=list)

  def count(self, *types: str) -> int:
    return sum(self.block_types.get(block_type, 0) for block_type in types)

  def to_dict(self) -> dict[str, Any]:
    return {
      "totalSections": self.total_sections,
      "totalBlocks": self.total_blocks,
      "blockTypes": dict(self.block_types),
      "blocksPerSection": list(self.blocks_per_section),
    }


def _sections(course: Any) -> list[Any]:
  if not isinstance(course, Mapping):
    return []
  sections = course.get("sections")
  return sections if isinstance(sections, list) else []


def _content(section: Any) -> list[Any]:
  if not isinstance(section, Mapping):
    return []
  content = section.get("content")
  return content if isinstance(content, list) else []


def _has_text(value: Any) -> bool:
  return isinstance(value, str) and bool(value.strip())


def _item_type(item: Any) -> str:
  if isinstance(item, Mapping):
    raw_type = item.get("type")
    return raw_type if isinstance(raw_type, str) else "unknown"
  return "paragraph" if isinstance(item, str) else "unknown"


def _quiz_index(item: Mapping[str, Any]) -> int | None:
  value = item.get("correctIndex")
  if value is None or value is False:
    return 0
  if isinstance(value, bool):
    return None
  if isinstance(value, int):
    return value
  if isinstance(value, float):
    # NaN and the infinities have no index.
    return int(value) if math.isfinite(value) and value.is_integer() else None
  if isinstance(value, str):
    try:
      return int(value.strip())
    except ValueError:
      return None
  return None


def _check_item(item: Any, label: str, diagnostics: Diagnostics) -> None:
  """Per-item checks, applied to section content and to nested children alike."""
  if isinstance(item, str):
    return
  if not isinstance(item, Mapping):
    diagnostics.add("malformed_item", f"{label}: content item must be an object or a string", severity="error")
    return

  errors_before = len(diagnostics.errors())
  canonical = resolve_item_type(item.get("type"))
  if canonical == "quiz":
    options = item.get("options")
    option_count = len(options) if isinstance(options, list) else 0
    if option_count < 2:
      diagnostics.add("quiz_too_few_options", f"{label}: quiz needs at least 2 options (got {option_count})", severity="error")
    else:
      index = _quiz_index(item)
      if index is None or not 0 <= index < option_count:
        diagnostics.add("quiz_index_out_of_range", f"{label}: quiz correctIndex {item.get('correctIndex')!r} is out of range", severity="error")

  if canonical in MEDIA_URL_TYPES and not is_valid_url(item.get("url")):
    diagnostics.add("invalid_url", f"{label}: invalid URL for {canonical}: {item.get('url')!r}", severity="error")

  text = item.get("text")
  if isinstance(text, str) and len(text) > MAX_RUN_CHARS:
    diagnostics.add("text_too_long", f"{label}: text is {len(text)} characters; it will be truncated to {MAX_RUN_CHARS}")

  # Anything else the compiler cannot convert would only become a placeholder.
  if canonical is not None and len(diagnostics.errors()) == errors_before:
    parsed = parse_content_item(item)
    if isinstance(parsed, MalformedItem):
      diagnostics.add("malformed_item", f"{label}: invalid {canonical} item: {parsed.error}", severity="error")

  _check_children(item, label, diagnostics)
  # Comparison sides carry their own nested items.
  for side in ("left", "right"):
    if isinstance(item.get(side), Mapping):
      with diagnostics.scope(side):
        _check_children(item[side], label, diagnostics)


def _check_children(parent: Mapping[str, Any], label: str, diagnostics: Diagnostics) -> None:
  """Run `_check_item` over `parent["children"]` when it is a list."""
  children = parent.get("children")
  if isinstance(children, list):
    for index, child in enumerate(children):
      with diagnostics.scope("children", index):
        _check_item(child, label, diagnostics)


def _check_section(section: Any, number: int, diagnostics: Diagnostics) -> None:
  label = f"Section {number}"
  if not isinstance(section, Mapping) or not _has_text(section.get("title")):
    diagnostics.add("section_missing_title", f"{label}: missing title", severity="error")

  content = _content(section)
  if not content:
    diagnostics.add("section_missing_content", f"{label}: missing content", severity="error")
    return

  paragraph_run = 0
  for index, item in enumerate(content):
    with diagnostics.scope("content", index):
      if _item_type(item) == "paragraph":
        paragraph_run += 1
        if paragraph_run == PARAGRAPH_RUN_LIMIT:
          diagnostics.add("consecutive_paragraphs", f"{label}: {PARAGRAPH_RUN_LIMIT} or more consecutive paragraphs; vary the block types")
      else:
        paragraph_run = 0
      _check_item(item, label, diagnostics)


def validate_course(course: Any, *, diagnostics: Diagnostics | None = None) -> ValidationResult:
  """Check a raw course description; blocking problems are errors, style issues warnings."""
  if diagnostics is None:
    diagnostics = Diagnostics()
  start = len(diagnostics)

  title = course.get("title") if isinstance(course, Mapping) else None
  if not _has_text(title):
    diagnostics.add("course_missing_title", "Missing course title", severity="error")

  sections = _sections(course)
  if not sections:
    diagnostics.add("course_missing_sections", "At least one section is required", severity="error")

  for index, section in enumerate(sections):
    with diagnostics.scope("sections", index):
      _check_section(section, index + 1, diagnostics)

  found = diagnostics.entries[start:]
  errors = [entry.message for entry in found if entry.severity == "error"]
  warnings = [entry.message for entry in found if entry.severity == "warning"]
  return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def collect_course_stats(course: Any) -> CourseStats:
  """Count raw items per section and per type tag (as written by the author)."""
  block_types: Counter[str] = Counter()
  per_section: list[int] = []
  for section in _sections(course):
    content = _content(section)
    per_section.append(len(content))
    block_types.update(_item_type(item) for item in content)

  return CourseStats(total_sections=len(per_section), total_blocks=sum(per_section), block_types=dict(block_types), blocks_per_section=per_section)


def generate_recommendations(stats: CourseStats) -> list[str]:
  """Human-readable authoring hints; a single affirmative message when nothing triggers."""
  recommendations: list[str] = []

  paragraphs = stats.count("paragraph")
  if stats.total_blocks and paragraphs / stats.total_blocks > PARAGRAPH_RATIO_LIMIT:
    recommendations.append("📝 More than half of the blocks are paragraphs. Break the text up with callouts, lists or examples.")

  if not stats.count("exercice", "exercise"):
    recommendations.append("✏️ Add practical exercises to reinforce learning.")

  if not stats.count("quiz", "quickQuiz"):
    recommendations.append("🧠 Add quizzes so learners can check their understanding.")

  if stats.total_sections and stats.total_blocks / stats.total_sections > BLOCKS_PER_SECTION_LIMIT:
    recommendations.append(f"📚 Sections average more than {BLOCKS_PER_SECTION_LIMIT} blocks. Consider splitting them into smaller sections.")

  return recommendations or [ALL_GOOD_MESSAGE]
