"""Course compiler: course description to an ordered list of Notion blocks.

Each content item is parsed into one variant of `coursekit.schema.course` and sent to
the handler registered for its canonical tag in `ITEM_HANDLERS`. Unknown and
malformed items have their own handlers, so every item yields a visible result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from coursekit.schema.blocks import Block
from coursekit.schema.course import (
  CodeExplanationItem,
  CodeItem,
  ComparisonItem,
  ComparisonSideItem,
  ContentItem,
  CourseSpec,
  DefinitionItem,
  EquationItem,
  EstimatedTimeItem,
  ExerciseItem,
  LayoutItem,
  ListEntryItem,
  ListGroupItem,
  MalformedItem,
  MediaItem,
  NoteItem,
  ObjectivesItem,
  PrerequisitesItem,
  QuizItem,
  SectionSpec,
  StepItem,
  SummaryItem,
  SyncedBlockItem,
  SyncedReferenceItem,
  TableItem,
  TextItem,
  ToggleItem,
  UnknownItem,
  parse_content_item,
  parse_course,
)
from coursekit.services import blocks, templates
from coursekit.services.diagnostics import Diagnostic, Diagnostics, report_degraded
from coursekit.services.validator import CourseStats, collect_course_stats, validate_course

logger = logging.getLogger(__name__)

HandlerResult = Block | Sequence[Block | None] | None
Handler = Callable[["CourseCompiler", Any], HandlerResult]


class CourseCompiler:
  """Compiles one course; holds nothing but the request's diagnostics collector.

  With `isolate_failures=True` an unexpected exception inside one item handler is
  recorded and replaced by a placeholder instead of aborting the whole course.
  """

  def __init__(self, diagnostics: Diagnostics | None = None, *, isolate_failures: bool = False) -> None:
    self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    self.isolate_failures = isolate_failures

  def compile_course(self, course: CourseSpec) -> list[Block]:
    """Full page body: navigation, metadata, sections, closing callout."""
    children: list[Block | None] = [blocks.breadcrumb(), blocks.table_of_contents("gray"), blocks.divider()]

    if course.description:
      children.append(blocks.callout(course.description, icon="📖", color="blue_background", diagnostics=self.diagnostics))

    children.extend(self._metadata(course))

    for index, section in enumerate(course.sections):
      with self.diagnostics.scope("sections", index):
        children.extend(self.compile_section(section))

    children.append(blocks.divider())
    children.append(templates.course_complete())
    return blocks.filter_blocks(children)

  def _metadata(self, course: CourseSpec) -> list[Block]:
    """Estimated time, prerequisites and objectives, side by side when more than one is set."""
    columns: list[list[Block]] = []
    if course.estimated_time:
      columns.append([templates.estimated_time(course.estimated_time)])
    if course.prerequisites:
      columns.append([templates.prerequisites(course.prerequisites)])
    if course.objectives:
      columns.append([templates.learning_objectives(course.objectives)])

    if not columns:
      return []
    if len(columns) == 1:
      return [*columns[0], blocks.divider()]
    return [blocks.column_list(columns), blocks.divider()]

  def compile_section(self, section: SectionSpec) -> list[Block]:
    """Divider, section heading, optional description, then the compiled content."""
    section_blocks: list[Block | None] = [
      blocks.divider(),
      blocks.heading_1(section.title, color=section.color or "blue", toggleable=section.toggleable, diagnostics=self.diagnostics),
    ]
    if section.description:
      section_blocks.append(blocks.paragraph(section.description, color="gray", diagnostics=self.diagnostics))

    with self.diagnostics.scope("content"):
      section_blocks.extend(self.compile_items(section.content))
    return blocks.filter_blocks(section_blocks)

  def compile_items(self, raw_items: Sequence[Any]) -> list[Block]:
    """Compile a list of raw items, scoping diagnostics by index."""
    compiled: list[Block] = []
    for index, raw in enumerate(raw_items):
      with self.diagnostics.scope(index):
        compiled.extend(self.build_item(raw))
    return compiled

  def _children(self, raw_children: Sequence[Any]) -> list[Block]:
    """Compile nested items under a `children` scope."""
    with self.diagnostics.scope("children"):
      return self.compile_items(raw_children)

  def build_item(self, raw: Any) -> list[Block]:
    """Compile one raw content item into zero or more blocks."""
    item = parse_content_item(raw)
    handler = ITEM_HANDLERS.get(item.type) if not isinstance(item, (UnknownItem, MalformedItem)) else None
    if handler is None:
      handler = _malformed if isinstance(item, MalformedItem) else _unknown

    if not self.isolate_failures:
      return _as_blocks(handler(self, item))

    try:
      return _as_blocks(handler(self, item))
    except Exception as exc:  # noqa: BLE001
      logger.exception("Failed to build %s item", item.type)
      self.diagnostics.add("item_build_failed", f"Failed to build {item.type} item: {exc}", severity="error")
      return [blocks.notice(f"[Failed to build {item.type} item]")]


def _as_blocks(result: HandlerResult) -> list[Block]:
  """Normalize a handler result (block, list or None) to a list of blocks."""
  if result is None:
    return []
  if isinstance(result, dict):
    return [result]
  return blocks.filter_blocks(result)


# Handlers


def _text(compiler: CourseCompiler, item: TextItem) -> HandlerResult:
  """paragraph, heading1-3, quote, callout; only toggleable headings keep children."""
  color = item.color or "default"
  diagnostics = compiler.diagnostics
  if item.type == "paragraph":
    return blocks.paragraph(item.text, color=color, diagnostics=diagnostics)
  if item.type in ("heading1", "heading2", "heading3"):
    children = compiler._children(item.children) if item.toggleable else None
    return blocks.heading(int(item.type[-1]), item.text, color=color, toggleable=item.toggleable, children=children, diagnostics=diagnostics)
  if item.type == "quote":
    return blocks.quote(item.text, color=color, diagnostics=diagnostics)
  return blocks.callout(item.text, icon=item.icon, color=color, children=compiler._children(item.children), diagnostics=diagnostics)


def _note(compiler: CourseCompiler, item: NoteItem) -> HandlerResult:
  """Colored callout for info, warning, tip and danger notes."""
  return templates.important_note(item.text, item.type)


def _code(compiler: CourseCompiler, item: CodeItem) -> HandlerResult:
  """Code block from `code`, falling back to `text`."""
  return blocks.code(item.code or item.text, item.language, item.caption, diagnostics=compiler.diagnostics)


def _equation(compiler: CourseCompiler, item: EquationItem) -> HandlerResult:
  """Block equation from `expression`, falling back to `text`."""
  return blocks.equation(item.expression or item.text)


def _code_with_explanation(compiler: CourseCompiler, item: CodeExplanationItem) -> HandlerResult:
  """Code block followed by its line-by-line explanations."""
  explanations = [templates.LineExplanation(line=entry.line, explanation=entry.explanation) for entry in item.explanations]
  return templates.code_with_explanation(item.code or item.text, item.language, explanations)


def _list_entry(compiler: CourseCompiler, item: ListEntryItem) -> HandlerResult:
  """One bullet, numbered or to-do entry with its nested children."""
  color = item.color or "default"
  diagnostics = compiler.diagnostics
  children = compiler._children(item.children)
  if item.type == "numbered":
    return blocks.numbered_list_item(item.text, color=color, children=children, diagnostics=diagnostics)
  if item.type == "todo":
    return blocks.to_do(item.text, item.checked, color=color, children=children, diagnostics=diagnostics)
  return blocks.bulleted_list_item(item.text, color=color, children=children, diagnostics=diagnostics)


def _list_group(compiler: CourseCompiler, item: ListGroupItem) -> HandlerResult:
  """One list item per non-blank entry of `items`."""
  builder = {"bullets": blocks.bulleted_list_item, "numberedList": blocks.numbered_list_item, "todoList": blocks.to_do}[item.type]
  return [builder(entry, diagnostics=compiler.diagnostics) for entry in item.items if entry.strip()]


def _toggle(compiler: CourseCompiler, item: ToggleItem) -> HandlerResult:
  """Toggle wrapping the compiled children."""
  return blocks.toggle(item.text, compiler._children(item.children), color=item.color or "default", diagnostics=compiler.diagnostics)


def _media(compiler: CourseCompiler, item: MediaItem) -> HandlerResult:
  """URL-backed blocks; bad URLs degrade inside the builders."""
  diagnostics = compiler.diagnostics
  if item.type == "file":
    return blocks.file(item.url, item.name, item.caption, diagnostics=diagnostics)
  if item.type == "embed":
    return blocks.embed(item.url, diagnostics=diagnostics)
  if item.type == "bookmark":
    return blocks.bookmark(item.url, item.caption, diagnostics=diagnostics)
  if item.type == "linkPreview":
    return blocks.link_preview(item.url, item.caption, diagnostics=diagnostics)
  builder = {"image": blocks.image, "video": blocks.video, "audio": blocks.audio, "pdf": blocks.pdf}[item.type]
  return builder(item.url, item.caption, diagnostics=diagnostics)


def _layout(compiler: CourseCompiler, item: LayoutItem) -> HandlerResult:
  """Divider, table of contents or breadcrumb."""
  if item.type == "tableOfContents":
    return blocks.table_of_contents(item.color or "default")
  if item.type == "breadcrumb":
    return blocks.breadcrumb()
  return blocks.divider()


def _table(compiler: CourseCompiler, item: TableItem) -> HandlerResult:
  """Table with `headers`, when given, as its first row."""
  rows: list[list[str]] = [list(item.headers)] if item.headers else []
  rows.extend(item.rows)
  if not rows or not rows[0]:
    report_degraded(compiler.diagnostics, logger, "empty_table", "Table has no rows; skipped")
    return None
  return blocks.table(rows, has_column_header=item.has_column_header, has_row_header=item.has_row_header)


def _comparison_side(compiler: CourseCompiler, side: ComparisonSideItem) -> templates.ComparisonSide:
  """Bullets for `items`, then the compiled children."""
  content = [blocks.bulleted_list_item(entry, diagnostics=compiler.diagnostics) for entry in side.items if entry.strip()]
  content.extend(compiler._children(side.children))
  return templates.ComparisonSide(title=side.title, content=content)


def _comparison(compiler: CourseCompiler, item: ComparisonItem) -> HandlerResult:
  """Two-column comparison; a missing side degrades to a divider."""
  if item.left is None or item.right is None:
    report_degraded(compiler.diagnostics, logger, "comparison_incomplete", "Comparison needs both left and right sides; emitting a divider")
    return blocks.divider()
  with compiler.diagnostics.scope("left"):
    left = _comparison_side(compiler, item.left)
  with compiler.diagnostics.scope("right"):
    right = _comparison_side(compiler, item.right)
  return templates.comparison(left, right)


def _definition(compiler: CourseCompiler, item: DefinitionItem) -> HandlerResult:
  """Definition callout from `definition`, falling back to `text`."""
  return templates.definition(item.term, item.definition or item.text)


def _step(compiler: CourseCompiler, item: StepItem) -> HandlerResult:
  """Numbered step callout with its children."""
  return templates.step(item.step_number or 1, item.text or item.title, item.description or item.caption, compiler._children(item.children))


def _exercise(compiler: CourseCompiler, item: ExerciseItem) -> HandlerResult:
  """Exercise callout with the solution in a toggle."""
  return templates.exercise(item.text or item.title or "Exercise", item.instructions or item.items, item.solution, language=item.language)


def _quiz(compiler: CourseCompiler, item: QuizItem) -> HandlerResult:
  """Quiz callout with the answer in a toggle."""
  return templates.quick_quiz(item.question or item.text, item.options, item.correct_index, diagnostics=compiler.diagnostics)


def _summary(compiler: CourseCompiler, item: SummaryItem) -> HandlerResult:
  """Key-takeaways callout."""
  return templates.chapter_summary(item.items)


def _objectives(compiler: CourseCompiler, item: ObjectivesItem) -> HandlerResult:
  """Objectives as to-dos, from `objectives` or `items`."""
  return templates.learning_objectives(item.objectives or item.items)


def _prerequisites(compiler: CourseCompiler, item: PrerequisitesItem) -> HandlerResult:
  """Prerequisites callout."""
  return templates.prerequisites(item.items)


def _estimated_time(compiler: CourseCompiler, item: EstimatedTimeItem) -> HandlerResult:
  """Estimated-time callout; 30 minutes when unset."""
  return templates.estimated_time(item.minutes or 30)


def _synced_block(compiler: CourseCompiler, item: SyncedBlockItem) -> HandlerResult:
  """Original synced block around the compiled children."""
  return blocks.synced_block_original(compiler._children(item.children))


def _synced_reference(compiler: CourseCompiler, item: SyncedReferenceItem) -> HandlerResult:
  """Reference to an existing synced block; skipped without a block id."""
  if not item.block_id.strip():
    report_degraded(compiler.diagnostics, logger, "synced_reference_missing_id", "syncedBlockReference needs a blockId; skipped")
    return None
  return blocks.synced_block_reference(item.block_id.strip())


def _unknown(compiler: CourseCompiler, item: UnknownItem) -> HandlerResult:
  """Visible placeholder naming the unrecognised tag."""
  report_degraded(compiler.diagnostics, logger, "unknown_item_type", f"Unknown content item type {item.type!r}")
  label = f"[Unknown block type: {item.type or '(missing)'}]"
  return blocks.notice(f"{label} {item.text.strip()}" if item.text.strip() else label)


def _malformed(compiler: CourseCompiler, item: MalformedItem) -> HandlerResult:
  """Visible placeholder carrying the conversion error."""
  report_degraded(compiler.diagnostics, logger, "malformed_item", f"Invalid {item.type} item: {item.error}", severity="error")
  return blocks.notice(f"[Invalid {item.type} item: {item.error}]")


ITEM_HANDLERS: dict[str, Handler] = {
  "paragraph": _text,
  "heading1": _text,
  "heading2": _text,
  "heading3": _text,
  "quote": _text,
  "callout": _text,
  "info": _note,
  "warning": _note,
  "tip": _note,
  "danger": _note,
  "code": _code,
  "equation": _equation,
  "codeWithExplanation": _code_with_explanation,
  "bullet": _list_entry,
  "numbered": _list_entry,
  "todo": _list_entry,
  "bullets": _list_group,
  "numberedList": _list_group,
  "todoList": _list_group,
  "toggle": _toggle,
  "image": _media,
  "video": _media,
  "audio": _media,
  "pdf": _media,
  "file": _media,
  "embed": _media,
  "bookmark": _media,
  "linkPreview": _media,
  "divider": _layout,
  "tableOfContents": _layout,
  "breadcrumb": _layout,
  "table": _table,
  "comparison": _comparison,
  "definition": _definition,
  "step": _step,
  "exercise": _exercise,
  "quiz": _quiz,
  "summary": _summary,
  "objectives": _objectives,
  "prerequisites": _prerequisites,
  "estimatedTime": _estimated_time,
  "syncedBlock": _synced_block,
  "syncedBlockReference": _synced_reference,
}


# Error codes `validate_course` also raises for the same item.
VALIDATED_CODES = frozenset({"malformed_item"})

# Entry points


def compile_course(course: Any, *, diagnostics: Diagnostics | None = None) -> list[Block]:
  """Compile a raw or parsed course description into the page's top-level blocks."""
  spec = course if isinstance(course, CourseSpec) else parse_course(course)
  return CourseCompiler(diagnostics).compile_course(spec)


def compile_content(items: Sequence[Any], *, diagnostics: Diagnostics | None = None) -> list[Block]:
  """Compile a bare content list, as appended to an existing page."""
  return CourseCompiler(diagnostics).compile_items(items)


@dataclass
class AnalysisResult:
  valid: bool
  errors: list[str]
  warnings: list[str]
  stats: CourseStats
  generated_blocks: int
  diagnostics: list[Diagnostic] = field(default_factory=list)

  def to_dict(self) -> dict[str, Any]:
    return {
      "valid": self.valid,
      "errors": list(self.errors),
      "warnings": list(self.warnings),
      "stats": self.stats.to_dict(),
      "generatedBlocks": self.generated_blocks,
      "diagnostics": [entry.to_dict() for entry in self.diagnostics],
    }


def dry_run(course: Any) -> AnalysisResult:
  """Validate and compile without submitting anything.

  Items that fail to build are reported as errors and replaced by placeholders; the
  rest of the course is still compiled and counted.
  """
  validation = validate_course(course)
  diagnostics = Diagnostics()
  compiled = CourseCompiler(diagnostics, isolate_failures=True).compile_course(parse_course(course))

  # Soft failures the validator already reports (quiz, URL, malformed items) stay in `diagnostics` only.
  errors = [*validation.errors, *(str(entry) for entry in diagnostics.errors() if entry.code not in VALIDATED_CODES)]
  warnings = list(validation.warnings)
  logger.debug("Dry run compiled %s blocks with %s diagnostics", len(compiled), len(diagnostics))
  return AnalysisResult(
    valid=not errors,
    errors=errors,
    warnings=warnings,
    stats=collect_course_stats(course),
    generated_blocks=len(compiled),
    diagnostics=list(diagnostics.entries),
  )
