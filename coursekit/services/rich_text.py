"""Inline text formatting: strings and styled segments to Notion rich text runs.

Supported inline syntax: `**bold**`, `*italic*`, `` `code` ``,
`~~strikethrough~~` and `[label](url)`. Each pattern is searched independently over
the whole string; tokens are ordered by start offset and a token overlapping an
earlier one is dropped, never merged. Nested markup such as `**_x_**` is not
interpreted further.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import msgspec

from coursekit.schema.blocks import RichText, TextSegment, is_valid_url, normalize_color
from coursekit.services.diagnostics import Diagnostics, report_degraded

MAX_RUN_CHARS = 2000
ELLIPSIS = "..."

logger = logging.getLogger(__name__)

# String, already-built runs, or caller-formatted segments.
TextInput = str | Sequence[RichText] | Sequence[TextSegment | Mapping[str, Any]]


@dataclass(frozen=True)
class _InlinePattern:
  regex: re.Pattern[str]
  style: str | None


# Order matters: on equal start offsets the earlier pattern claims the span.
INLINE_PATTERNS: tuple[_InlinePattern, ...] = (
  _InlinePattern(re.compile(r"\*\*(.+?)\*\*"), "bold"),
  # A single star never pairs with half of a `**` delimiter.
  _InlinePattern(re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)"), "italic"),
  _InlinePattern(re.compile(r"`(.+?)`"), "code"),
  _InlinePattern(re.compile(r"~~(.+?)~~"), "strikethrough"),
  # URLs may carry one level of balanced parentheses, e.g. `wiki/Foo_(bar)`.
  _InlinePattern(re.compile(r"\[(.+?)\]\(((?:[^()\s]|\([^()\s]*\))+)\)"), None),
)


@dataclass(frozen=True)
class _Token:
  start: int
  end: int
  text: str
  style: str | None
  link: str | None = None


def rich_text(content: str, *, bold: bool = False, italic: bool = False, strikethrough: bool = False, underline: bool = False, code: bool = False, color: str = "default", link: str | None = None, diagnostics: Diagnostics | None = None) -> RichText:
  """Build one run, enforcing the 2000-char cap and the non-empty-content rule.

  Notion refuses a run whose link is not an absolute URL, so such a link is dropped
  and the label kept as plain text.
  """
  if link and not is_valid_url(link):
    report_degraded(diagnostics, logger, "invalid_link", f"Link {link!r} is not an absolute http(s) URL; keeping the label as plain text")
    link = None

  if not content or not content.strip():
    # Notion rejects empty runs; a single unstyled space keeps the parent block valid.
    return {"type": "text", "text": {"content": " ", "link": None}, "annotations": _annotations()}

  if len(content) > MAX_RUN_CHARS:
    content = content[: MAX_RUN_CHARS - len(ELLIPSIS)] + ELLIPSIS

  return {
    "type": "text",
    "text": {"content": content, "link": {"url": link} if link else None},
    "annotations": _annotations(bold=bold, italic=italic, strikethrough=strikethrough, underline=underline, code=code, color=normalize_color(color)),
  }


def _annotations(*, bold: bool = False, italic: bool = False, strikethrough: bool = False, underline: bool = False, code: bool = False, color: str = "default") -> dict[str, Any]:
  """Notion annotation object; every flag is sent explicitly."""
  return {"bold": bold, "italic": italic, "strikethrough": strikethrough, "underline": underline, "code": code, "color": color}


def _find_tokens(text: str) -> list[_Token]:
  """Every match of every inline pattern, ordered by start offset."""
  tokens: list[_Token] = []
  for pattern in INLINE_PATTERNS:
    for match in pattern.regex.finditer(text):
      if pattern.style is None:
        tokens.append(_Token(start=match.start(), end=match.end(), text=match.group(1), style=None, link=match.group(2)))
      else:
        tokens.append(_Token(start=match.start(), end=match.end(), text=match.group(1), style=pattern.style))
  # sorted() is stable, so equal starts keep pattern order.
  return sorted(tokens, key=lambda token: token.start)


def parse_formatted_text(text: str, *, diagnostics: Diagnostics | None = None) -> list[RichText]:
  """Split `text` into styled runs according to the inline syntax."""
  tokens = _find_tokens(text)
  if not tokens:
    return [rich_text(text)]

  runs: list[RichText] = []
  last_end = 0
  for token in tokens:
    if token.start < last_end:
      continue

    if token.start > last_end:
      runs.append(rich_text(text[last_end : token.start]))

    styles = {token.style: True} if token.style else {}
    runs.append(rich_text(token.text, link=token.link, diagnostics=diagnostics, **styles))
    last_end = token.end

  if last_end < len(text):
    runs.append(rich_text(text[last_end:]))

  return runs


def segments_to_rich_text(segments: Sequence[TextSegment | Mapping[str, Any]], *, diagnostics: Diagnostics | None = None) -> list[RichText]:
  """Convert caller-formatted segments to runs without inline parsing; blank segments are dropped."""
  runs: list[RichText] = []
  for raw in segments:
    segment = raw if isinstance(raw, TextSegment) else _coerce_segment(raw)
    if segment is None or not segment.text.strip():
      continue
    runs.append(rich_text(segment.text, bold=segment.bold, italic=segment.italic, strikethrough=segment.strikethrough, underline=segment.underline, code=segment.code, color=segment.color, link=segment.link, diagnostics=diagnostics))
  return runs


def _coerce_segment(raw: Any) -> TextSegment | None:
  """Convert a segment mapping; None when it does not fit `TextSegment`."""
  if not isinstance(raw, Mapping):
    return None
  try:
    return msgspec.convert({key: value for key, value in raw.items() if value is not None}, type=TextSegment, strict=False)
  except msgspec.ValidationError as exc:
    logger.warning("Dropping malformed text segment: %s", exc)
    return None


def _is_run(value: Any) -> bool:
  """True for an already-built Notion text run."""
  return isinstance(value, Mapping) and value.get("type") == "text" and isinstance(value.get("text"), Mapping)


def _run_content(run: Mapping[str, Any]) -> str:
  """Text content of a run, or an empty string."""
  content = run["text"].get("content")
  return content if isinstance(content, str) else ""


def to_rich_text(content: TextInput | None, *, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> list[RichText] | None:
  """Resolve any accepted text input into runs; None means there is nothing to show."""
  if content is None:
    return None

  if isinstance(content, str):
    trimmed = content.strip()
    if not trimmed:
      return None
    return parse_formatted_text(trimmed, diagnostics=diagnostics) if parse_markdown else [rich_text(trimmed)]

  if not isinstance(content, Sequence) or not content:
    return None

  # The first element decides the shape of the whole list.
  if _is_run(content[0]):
    runs = [dict(run) for run in content if _is_run(run) and _run_content(run).strip()]
  else:
    runs = segments_to_rich_text(content, diagnostics=diagnostics)  # type: ignore[arg-type]
  return runs or None


def plain_text(runs: Sequence[RichText]) -> str:
  """Concatenate run contents, e.g. for logs and tests."""
  return "".join(_run_content(run) for run in runs if _is_run(run))
