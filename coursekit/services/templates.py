"""Course templates built on the leaf builders.

Templates own their icon. Authors often paste the same emoji or label into the text
("💡 Tip", "Step 2: ...", "Exercise: ..."), so the leading duplicate is stripped
before the template adds its own.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from coursekit.schema.blocks import Block
from coursekit.services import blocks
from coursekit.services.diagnostics import Diagnostics, report_degraded
from coursekit.services.rich_text import rich_text

logger = logging.getLogger(__name__)

NoteKind = Literal["info", "warning", "tip", "danger"]

TEMPLATE_ICONS: tuple[str, ...] = ("ℹ️", "⚠️", "💡", "🚨", "📖", "✏️", "🧠", "📝", "🎯", "📋", "⏱️")

NOTE_STYLES: dict[str, tuple[str, str]] = {
  "info": ("ℹ️", "blue_background"),
  "warning": ("⚠️", "yellow_background"),
  "tip": ("💡", "green_background"),
  "danger": ("🚨", "red_background"),
}

STEP_ICONS: tuple[str, ...] = ("1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣", "🔟")
STEP_FALLBACK_ICON = "⏺️"

_STEP_PREFIX = re.compile(r"^(?:step|étape)\s+\d+\s*:\s*", re.IGNORECASE)
_EXERCISE_PREFIX = re.compile(r"^(?:exercise|exercice)\s*:\s*", re.IGNORECASE)
_QUIZ_PREFIX = re.compile(r"^quiz\s*:\s*", re.IGNORECASE)

QUIZ_INVALID_MESSAGE = "Invalid quiz: at least two options are required."
COURSE_COMPLETE_MESSAGE = "Congratulations! You have completed this course."


def strip_leading_icon(text: str) -> str:
  """Remove template icons from the start of `text` (one pass over the known set)."""
  cleaned = (text or "").strip()
  for icon in TEMPLATE_ICONS:
    if cleaned.startswith(icon):
      cleaned = cleaned[len(icon) :].strip()
  return cleaned


def _clean_items(items: Sequence[str]) -> list[str]:
  """Stripped non-blank string entries."""
  return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def important_note(content: str, kind: NoteKind | str = "info") -> Block:
  """Colored callout for info / warning / tip / danger notes."""
  icon, color = NOTE_STYLES.get(kind, NOTE_STYLES["info"])
  return blocks.callout(strip_leading_icon(content), icon=icon, color=color)


def definition(term: str, definition_text: str, *, color: str = "purple_background") -> Block:
  """`**term**: definition` inside a 📖 callout."""
  return blocks.callout([rich_text(term, bold=True), rich_text(": "), rich_text(strip_leading_icon(definition_text))], icon="📖", color=color)


def step(number: int, title: str, description: str | None = None, children: Sequence[Block | None] | None = None) -> Block:
  """Numbered step callout; numbers 1-10 get keycap emoji."""
  icon = STEP_ICONS[number - 1] if 1 <= number <= len(STEP_ICONS) else STEP_FALLBACK_ICON
  clean_title = _STEP_PREFIX.sub("", (title or "").strip()).strip()

  step_children: list[Block | None] = []
  if description:
    step_children.append(blocks.paragraph(description))
  if children:
    step_children.extend(children)

  return blocks.callout([rich_text(f"Step {number}: ", bold=True), rich_text(clean_title)], icon=icon, color="gray_background", children=blocks.filter_blocks(step_children) or None)


def exercise(title: str, instructions: Sequence[str], solution: str | None = None, *, language: str = "plain text") -> Block:
  """Exercise callout: bulleted instructions plus an optional collapsed solution."""
  clean_title = _EXERCISE_PREFIX.sub("", strip_leading_icon(title)).strip()

  children: list[Block] = [blocks.bulleted_list_item(instruction) for instruction in _clean_items(instructions)]
  if solution and solution.strip():
    children.append(blocks.toggle("💡 Show solution", [blocks.code(solution.strip(), language)], color="green_background"))

  return blocks.callout([rich_text("Exercise: ", bold=True), rich_text(clean_title)], icon="✏️", color="orange_background", children=children)


def _option_letter(index: int) -> str:
  """0 -> "A", 1 -> "B", ..."""
  return chr(ord("A") + index)


def quick_quiz(question: str, options: Sequence[str], correct_index: int, *, diagnostics: Diagnostics | None = None) -> Block:
  """Multiple-choice quiz whose answer hides in a toggle.

  Fewer than two options degrades to a plain error paragraph; an out-of-range
  correct index is clamped to the first option.
  """
  if not options or len(options) < 2:
    report_degraded(diagnostics, logger, "quiz_too_few_options", f"Quiz needs at least 2 options, got {len(options or [])}")
    return blocks.notice(QUIZ_INVALID_MESSAGE)

  if not 0 <= correct_index < len(options):
    report_degraded(diagnostics, logger, "quiz_index_clamped", f"Quiz correctIndex {correct_index} out of range for {len(options)} options; using 0")
    correct_index = 0

  clean_question = _QUIZ_PREFIX.sub("", strip_leading_icon(question)).strip()
  clean_options = [str(option).strip() for option in options]
  answer = f"{_option_letter(correct_index)}) {clean_options[correct_index]}"

  children: list[Block] = [blocks.bulleted_list_item(f"{_option_letter(index)}) {option}", diagnostics=diagnostics) for index, option in enumerate(clean_options)]
  children.append(blocks.toggle("Show answer", [blocks.callout(f"The correct answer is {answer}", icon="✅", color="green_background")]))

  return blocks.callout([rich_text("Quiz: ", bold=True), rich_text(clean_question)], icon="🧠", color="purple_background", children=children)


def chapter_summary(points: Sequence[str]) -> Block:
  """Key takeaways as blue bullets."""
  return blocks.callout("Key takeaways", icon="📝", color="blue_background", children=[blocks.bulleted_list_item(point, color="blue") for point in _clean_items(points)])


def learning_objectives(objectives: Sequence[str]) -> Block:
  """Objectives as unchecked to-dos the learner can tick off."""
  return blocks.callout("By the end of this section, you will be able to:", icon="🎯", color="green_background", children=[blocks.to_do(objective) for objective in _clean_items(objectives)])


def prerequisites(items: Sequence[str]) -> Block:
  """Prerequisites as a gray callout of bullets."""
  return blocks.callout("Prerequisites", icon="📋", color="gray_background", children=[blocks.bulleted_list_item(item) for item in _clean_items(items)])


def estimated_time(minutes: int) -> Block:
  """Single-line time estimate callout."""
  return blocks.callout(f"Estimated time: {minutes} minutes", icon="⏱️", color="purple_background")


@dataclass
class ComparisonSide:
  """Title and already-built blocks for one side of a comparison."""

  title: str
  content: list[Block] = field(default_factory=list)


def comparison(left: ComparisonSide, right: ComparisonSide) -> Block:
  """Two columns: green heading on the left, red heading on the right."""
  return blocks.column_list(
    [
      [blocks.heading_3(left.title, color="green"), *left.content],
      [blocks.heading_3(right.title, color="red"), *right.content],
    ]
  )


@dataclass(frozen=True)
class LineExplanation:
  line: str
  explanation: str


def code_with_explanation(code_text: str, language: str, explanations: Sequence[LineExplanation]) -> list[Block]:
  """Code block followed by a callout explaining it line by line."""
  items = [blocks.bulleted_list_item([rich_text(entry.line, code=True), rich_text(" → "), rich_text(entry.explanation)]) for entry in explanations]
  return [blocks.code(code_text, language), blocks.callout("Line-by-line explanation:", icon="📖", color="gray_background", children=items)]


def course_complete() -> Block:
  """Closing congratulations callout."""
  return blocks.callout(COURSE_COMPLETE_MESSAGE, icon="🎉", color="green_background")
