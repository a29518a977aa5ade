"""Course description model: course, sections and the closed set of content items.

Request bodies are user-authored and loosely typed, so nothing here raises on bad
input. Course and section fields are read leniently; each content item is resolved
through `ITEM_TYPES` to one struct and converted with msgspec. An unrecognised tag
becomes `UnknownItem`, and a recognised tag whose fields do not convert becomes
`MalformedItem`; the compiler turns both into visible placeholders.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

import msgspec

from coursekit.schema.blocks import TextSegment

# Plain string or caller-formatted segments.
ItemText = str | list[TextSegment]


class ItemBase(msgspec.Struct, kw_only=True, rename="camel"):
  """Fields shared by every content item; `type` holds the canonical tag after parsing."""

  type: str = ""
  color: str | None = None


class TextItem(ItemBase):
  """paragraph, heading1-3, quote, callout."""

  text: ItemText = ""
  icon: str | None = None
  toggleable: bool = False
  children: list[Any] = []


class NoteItem(ItemBase):
  """info, warning, tip, danger."""

  text: str = ""


class CodeItem(ItemBase):
  code: str = ""
  text: str = ""
  language: str = "javascript"
  caption: str | None = None


class EquationItem(ItemBase):
  expression: str = ""
  text: str = ""


class ExplanationEntry(msgspec.Struct, kw_only=True):
  line: str = ""
  explanation: str = ""


class CodeExplanationItem(ItemBase):
  code: str = ""
  text: str = ""
  language: str = "javascript"
  explanations: list[ExplanationEntry] = []


class ListEntryItem(ItemBase):
  """bullet, numbered, todo: one list entry, optionally with nested items."""

  text: ItemText = ""
  checked: bool = False
  children: list[Any] = []


class ListGroupItem(ItemBase):
  """bullets, numberedList, todoList: one entry per string in `items`."""

  items: list[str] = []


class ToggleItem(ItemBase):
  text: ItemText = ""
  children: list[Any] = []


class MediaItem(ItemBase):
  """image, video, audio, pdf, file, embed, bookmark, linkPreview."""

  url: str = ""
  caption: str | None = None
  name: str | None = None


class LayoutItem(ItemBase):
  """divider, tableOfContents, breadcrumb."""


class TableItem(ItemBase):
  rows: list[list[str]] = []
  headers: list[str] | None = None
  has_column_header: bool = True
  has_row_header: bool = False


class ComparisonSideItem(msgspec.Struct, kw_only=True):
  title: str = ""
  items: list[str] = []
  children: list[Any] = []


class ComparisonItem(ItemBase):
  """columns, comparison."""

  left: ComparisonSideItem | None = None
  right: ComparisonSideItem | None = None


class DefinitionItem(ItemBase):
  term: str = ""
  definition: str = ""
  text: str = ""


class StepItem(ItemBase):
  step_number: int = 1
  text: str = ""
  title: str = ""
  description: str | None = None
  caption: str | None = None
  children: list[Any] = []


class ExerciseItem(ItemBase):
  """exercise / exercice."""

  text: str = ""
  title: str = ""
  instructions: list[str] = []
  items: list[str] = []
  solution: str | None = None
  language: str = "plain text"


class QuizItem(ItemBase):
  """quiz / quickQuiz."""

  question: str = ""
  text: str = ""
  options: list[str] = []
  correct_index: int = 0


class SummaryItem(ItemBase):
  items: list[str] = []


class ObjectivesItem(ItemBase):
  objectives: list[str] = []
  items: list[str] = []


class PrerequisitesItem(ItemBase):
  items: list[str] = []


class EstimatedTimeItem(ItemBase):
  minutes: int = 30


class SyncedBlockItem(ItemBase):
  children: list[Any] = []


class SyncedReferenceItem(ItemBase):
  block_id: str = ""


class UnknownItem(ItemBase):
  """Tag not in `ITEM_TYPES`; `type` keeps the author's raw tag."""

  text: str = ""


class MalformedItem(ItemBase):
  """Known tag whose fields could not be converted."""

  error: str = ""


ContentItem = (
  TextItem
  | NoteItem
  | CodeItem
  | EquationItem
  | CodeExplanationItem
  | ListEntryItem
  | ListGroupItem
  | ToggleItem
  | MediaItem
  | LayoutItem
  | TableItem
  | ComparisonItem
  | DefinitionItem
  | StepItem
  | ExerciseItem
  | QuizItem
  | SummaryItem
  | ObjectivesItem
  | PrerequisitesItem
  | EstimatedTimeItem
  | SyncedBlockItem
  | SyncedReferenceItem
  | UnknownItem
  | MalformedItem
)

# canonical tag -> struct
ITEM_TYPES: dict[str, type[ItemBase]] = {
  "paragraph": TextItem,
  "heading1": TextItem,
  "heading2": TextItem,
  "heading3": TextItem,
  "quote": TextItem,
  "callout": TextItem,
  "info": NoteItem,
  "warning": NoteItem,
  "tip": NoteItem,
  "danger": NoteItem,
  "code": CodeItem,
  "equation": EquationItem,
  "codeWithExplanation": CodeExplanationItem,
  "bullet": ListEntryItem,
  "numbered": ListEntryItem,
  "todo": ListEntryItem,
  "bullets": ListGroupItem,
  "numberedList": ListGroupItem,
  "todoList": ListGroupItem,
  "toggle": ToggleItem,
  "image": MediaItem,
  "video": MediaItem,
  "audio": MediaItem,
  "pdf": MediaItem,
  "file": MediaItem,
  "embed": MediaItem,
  "bookmark": MediaItem,
  "linkPreview": MediaItem,
  "divider": LayoutItem,
  "tableOfContents": LayoutItem,
  "breadcrumb": LayoutItem,
  "table": TableItem,
  "comparison": ComparisonItem,
  "definition": DefinitionItem,
  "step": StepItem,
  "exercise": ExerciseItem,
  "quiz": QuizItem,
  "summary": SummaryItem,
  "objectives": ObjectivesItem,
  "prerequisites": PrerequisitesItem,
  "estimatedTime": EstimatedTimeItem,
  "syncedBlock": SyncedBlockItem,
  "syncedBlockReference": SyncedReferenceItem,
}

# synonym -> canonical tag
ITEM_TYPE_ALIASES: dict[str, str] = {
  "bulletedListItem": "bullet",
  "numberedListItem": "numbered",
  "columns": "comparison",
  "exercice": "exercise",
  "quickQuiz": "quiz",
  "chapterSummary": "summary",
  "learningObjectives": "objectives",
}

# Groups advertised by the block-types catalogue.
ITEM_TYPE_GROUPS: dict[str, list[str]] = {
  "text": ["paragraph", "heading1", "heading2", "heading3", "quote", "callout"],
  "notes": ["info", "warning", "tip", "danger"],
  "lists": ["bullet", "bullets", "numbered", "numberedList", "todo", "todoList", "toggle"],
  "media": ["image", "video", "audio", "pdf", "file", "embed", "bookmark", "linkPreview"],
  "code": ["code", "equation", "codeWithExplanation"],
  "layout": ["divider", "table", "columns", "comparison", "tableOfContents", "breadcrumb", "syncedBlock", "syncedBlockReference"],
  "courseTemplates": ["definition", "step", "exercice", "exercise", "quiz", "quickQuiz", "summary", "objectives", "prerequisites", "estimatedTime"],
}


def resolve_item_type(tag: Any) -> str | None:
  """Return the canonical tag for `tag` (synonyms included), or None when unknown."""
  if not isinstance(tag, str):
    return None
  tag = tag.strip()
  if tag in ITEM_TYPES:
    return tag
  return ITEM_TYPE_ALIASES.get(tag)


def _without_nulls(raw: Mapping[str, Any]) -> dict[str, Any]:
  # JSON null means "not provided" for every optional field.
  return {key: value for key, value in raw.items() if value is not None}


# Fields whose entries are plain text; authors routinely write options like `[1, 2, 4]`.
TEXT_LIST_FIELDS = ("options", "items", "instructions", "objectives", "headers")


def _scalar_text(value: Any) -> Any:
  # bool is an int, but `True` is never a list entry the author meant as text.
  if isinstance(value, (int, float)) and not isinstance(value, bool):
    return str(value)
  return value


def _with_text_entries(data: dict[str, Any]) -> dict[str, Any]:
  """Stringify numeric entries of text lists and table rows; other values pass through."""
  for key in TEXT_LIST_FIELDS:
    if isinstance(data.get(key), list):
      data[key] = [_scalar_text(entry) for entry in data[key]]
  if isinstance(data.get("rows"), list):
    data["rows"] = [[_scalar_text(cell) for cell in row] if isinstance(row, list) else row for row in data["rows"]]
  for side in ("left", "right"):
    if isinstance(data.get(side), Mapping):
      data[side] = _with_text_entries(_without_nulls(data[side]))
  return data


def parse_content_item(raw: Any) -> ContentItem:
  """Resolve one raw content item; never raises."""
  if isinstance(raw, str):
    return TextItem(type="paragraph", text=raw)
  if not isinstance(raw, Mapping):
    return MalformedItem(type=type(raw).__name__, error="content item must be an object")

  raw_type = raw.get("type")
  canonical = resolve_item_type(raw_type)
  if canonical is None:
    text = raw.get("text")
    return UnknownItem(type=str(raw_type) if raw_type is not None else "", text=text if isinstance(text, str) else "")

  data = _with_text_entries(_without_nulls(raw))
  data["type"] = canonical
  try:
    return msgspec.convert(data, type=ITEM_TYPES[canonical], strict=False)  # type: ignore[return-value]
  except msgspec.ValidationError as exc:
    return MalformedItem(type=canonical, error=str(exc))


class SectionSpec(msgspec.Struct, kw_only=True):
  title: str = ""
  description: str | None = None
  color: str | None = None
  toggleable: bool = False
  content: list[Any] = []


class CourseSpec(msgspec.Struct, kw_only=True):
  parent_id: str = ""
  title: str = ""
  icon: str | None = None
  cover: str | None = None
  description: str | None = None
  estimated_time: int | None = None
  prerequisites: list[str] = []
  objectives: list[str] = []
  sections: list[SectionSpec] = []


def _text(value: Any) -> str:
  return value.strip() if isinstance(value, str) else ""


def _optional_text(value: Any) -> str | None:
  return _text(value) or None


def _text_list(value: Any) -> list[str]:
  if not isinstance(value, list):
    return []
  return [entry for entry in value if isinstance(entry, str)]


def _positive_int(value: Any) -> int | None:
  if isinstance(value, bool):
    return None
  if isinstance(value, float) and not math.isfinite(value):
    return None
  if isinstance(value, (int, float)):
    return (int(value) or None) if value > 0 else None
  if isinstance(value, str) and value.strip().isdigit():
    return int(value.strip()) or None
  return None


def parse_section(raw: Any) -> SectionSpec:
  """Read a section leniently; missing fields come back empty."""
  if not isinstance(raw, Mapping):
    return SectionSpec()
  content = raw.get("content")
  return SectionSpec(
    title=_text(raw.get("title")),
    description=_optional_text(raw.get("description")),
    color=_optional_text(raw.get("color")),
    toggleable=raw.get("toggleable") is True,
    content=list(content) if isinstance(content, list) else [],
  )


def parse_course(raw: Any) -> CourseSpec:
  """Read a course description leniently; never raises."""
  if not isinstance(raw, Mapping):
    return CourseSpec()
  sections = raw.get("sections")
  return CourseSpec(
    parent_id=_text(raw.get("parentId")),
    title=_text(raw.get("title")),
    icon=_optional_text(raw.get("icon")),
    cover=_optional_text(raw.get("cover")),
    description=_optional_text(raw.get("description")),
    estimated_time=_positive_int(raw.get("estimatedTime")),
    prerequisites=_text_list(raw.get("prerequisites")),
    objectives=_text_list(raw.get("objectives")),
    sections=[parse_section(section) for section in sections] if isinstance(sections, list) else [],
  )
