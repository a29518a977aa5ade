"""Leaf builders: one function per Notion block type.

Text builders accept a string, a list of runs, or a list of styled segments. A
paragraph with nothing to show returns None and the caller drops it; structural
blocks (headings, callouts, quotes, list items, to-dos, toggles) fall back to a
single placeholder run instead so layouts keep their shape. URL builders never
raise: a non-http(s) URL degrades to a paragraph naming the bad URL.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from coursekit.schema.blocks import Block, Column, RichText, is_valid_url, normalize_color, normalize_language
from coursekit.services.diagnostics import Diagnostics, report_degraded
from coursekit.services.rich_text import MAX_RUN_CHARS, TextInput, rich_text, to_rich_text

MAX_CODE_CHARS = 50_000
CODE_TRUNCATION_MARKER = "\n\n// ... code truncated"
DEFAULT_CALLOUT_ICON = "💡"

logger = logging.getLogger(__name__)


def filter_blocks(blocks: Iterable[Block | None]) -> list[Block]:
  """Drop the None results that builders return for empty content."""
  return [block for block in blocks if block is not None]


def _block(block_type: str, payload: dict[str, Any]) -> Block:
  """Wrap a type payload in the block envelope."""
  return {"object": "block", "type": block_type, block_type: payload}


def _runs_or_placeholder(content: TextInput | None, parse_markdown: bool, diagnostics: Diagnostics | None = None) -> list[RichText]:
  """Runs for a structural block, which must never carry an empty rich_text list."""
  return to_rich_text(content, parse_markdown=parse_markdown, diagnostics=diagnostics) or [rich_text("")]


def _caption(caption: str | None) -> list[RichText]:
  """Caption runs; blank captions become an empty list."""
  return [rich_text(caption)] if caption and caption.strip() else []


def _attach_children(payload: dict[str, Any], children: Sequence[Block | None] | None) -> None:
  """Set `children` on the payload when any child survives filtering."""
  if children:
    kept = filter_blocks(children)
    if kept:
      payload["children"] = kept


# Text blocks


def paragraph(content: TextInput | None, *, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block | None:
  """Paragraph block, or None when the content is empty."""
  runs = to_rich_text(content, parse_markdown=parse_markdown, diagnostics=diagnostics)
  if not runs:
    return None

  payload: dict[str, Any] = {"rich_text": runs, "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("paragraph", payload)


def heading(level: int, content: TextInput | None, *, color: str = "default", toggleable: bool = False, children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Heading of level 1-3; children are only kept on toggleable headings."""
  if level not in (1, 2, 3):
    raise ValueError(f"heading level must be 1, 2 or 3, got {level}")

  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "color": normalize_color(color), "is_toggleable": bool(toggleable)}
  if toggleable:
    _attach_children(payload, children)
  return _block(f"heading_{level}", payload)


def heading_1(content: TextInput | None, **options: Any) -> Block:
  """Shorthand for `heading(1, ...)`."""
  return heading(1, content, **options)


def heading_2(content: TextInput | None, **options: Any) -> Block:
  """Shorthand for `heading(2, ...)`."""
  return heading(2, content, **options)


def heading_3(content: TextInput | None, **options: Any) -> Block:
  """Shorthand for `heading(3, ...)`."""
  return heading(3, content, **options)


def callout(content: TextInput | None, *, icon: str | None = None, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Callout with an emoji icon (💡 when none is given)."""
  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "icon": {"type": "emoji", "emoji": icon or DEFAULT_CALLOUT_ICON}, "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("callout", payload)


def quote(content: TextInput | None, *, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Block quote."""
  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("quote", payload)


# Code and equations


def _chunk(text: str, size: int) -> list[str]:
  """Split text into consecutive pieces of at most `size` chars."""
  return [text[index : index + size] for index in range(0, len(text), size)] or [""]


def code(content: str, language: str = "javascript", caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """Code block; content over 50,000 chars is cut and marked, never rejected.

  Notion caps each run at 2000 chars, so the code is spread across consecutive runs.
  """
  code_text = (content or "").strip()
  if len(code_text) > MAX_CODE_CHARS:
    report_degraded(diagnostics, logger, "code_truncated", f"Code block truncated from {len(code_text)} to {MAX_CODE_CHARS} chars")
    code_text = code_text[: MAX_CODE_CHARS - len(CODE_TRUNCATION_MARKER)] + CODE_TRUNCATION_MARKER

  runs = [rich_text(piece) for piece in _chunk(code_text, MAX_RUN_CHARS)]
  return _block("code", {"rich_text": runs, "language": normalize_language(language), "caption": _caption(caption)})


def equation(expression: str) -> Block:
  """Block-level LaTeX equation."""
  return _block("equation", {"expression": (expression or "").strip()})


# Lists


def bulleted_list_item(content: TextInput | None, *, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Bullet point; nested items go in `children`."""
  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("bulleted_list_item", payload)


def numbered_list_item(content: TextInput | None, *, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Numbered item; Notion numbers consecutive siblings itself."""
  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("numbered_list_item", payload)


def to_do(content: TextInput | None, checked: bool = False, *, color: str = "default", children: Sequence[Block | None] | None = None, parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Checkbox item."""
  payload: dict[str, Any] = {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "checked": bool(checked), "color": normalize_color(color)}
  _attach_children(payload, children)
  return _block("to_do", payload)


def toggle(content: TextInput | None, children: Sequence[Block | None] | None = None, *, color: str = "default", parse_markdown: bool = True, diagnostics: Diagnostics | None = None) -> Block:
  """Collapsed toggle; always carries a children list, possibly empty."""
  return _block("toggle", {"rich_text": _runs_or_placeholder(content, parse_markdown, diagnostics), "color": normalize_color(color), "children": filter_blocks(children or [])})


# Media


def notice(text: str) -> Block:
  """Paragraph holding one unparsed run; used for visible diagnostic placeholders."""
  return _block("paragraph", {"rich_text": [rich_text(text)], "color": "default"})


def _invalid_url_block(kind: str, url: Any, diagnostics: Diagnostics | None) -> Block:
  report_degraded(diagnostics, logger, "invalid_url", f"{kind}: invalid URL {url!r}")
  # Unparsed: URLs routinely contain `*`, `_` and brackets.
  return notice(f"[Invalid {kind} URL: {url}]")


def _external_media(kind: str, url: str, caption: str | None, diagnostics: Diagnostics | None, **extra: Any) -> Block:
  """Externally hosted media block, or an invalid-URL notice."""
  if not is_valid_url(url):
    return _invalid_url_block(kind, url, diagnostics)
  return _block(kind, {"type": "external", "external": {"url": url.strip()}, "caption": _caption(caption), **extra})


def image(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """External image."""
  return _external_media("image", url, caption, diagnostics)


def video(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """External video (YouTube, Vimeo, ...)."""
  return _external_media("video", url, caption, diagnostics)


def audio(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """External audio file."""
  return _external_media("audio", url, caption, diagnostics)


def pdf(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """External PDF viewer."""
  return _external_media("pdf", url, caption, diagnostics)


def file(url: str, name: str | None = None, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """Downloadable external file; `name` defaults to "file"."""
  return _external_media("file", url, caption, diagnostics, name=(name or "").strip() or "file")


def embed(url: str, *, diagnostics: Diagnostics | None = None) -> Block:
  """Iframe embed (Figma, Google Maps, ...)."""
  if not is_valid_url(url):
    return _invalid_url_block("embed", url, diagnostics)
  return _block("embed", {"url": url.strip()})


def bookmark(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """Bookmark card for a web page."""
  if not is_valid_url(url):
    return _invalid_url_block("bookmark", url, diagnostics)
  return _block("bookmark", {"url": url.strip(), "caption": _caption(caption)})


def link_preview(url: str, caption: str | None = None, *, diagnostics: Diagnostics | None = None) -> Block:
  """The API cannot create link_preview blocks; emit a bookmark instead."""
  report_degraded(diagnostics, logger, "link_preview_downgraded", f"link_preview cannot be created through the API; emitting a bookmark for {url!r}")
  return bookmark(url, caption, diagnostics=diagnostics)


# Layout


def divider() -> Block:
  """Horizontal rule."""
  return _block("divider", {})


def table_of_contents(color: str = "default") -> Block:
  """Table of contents built by Notion from the page headings."""
  return _block("table_of_contents", {"color": normalize_color(color)})


def breadcrumb() -> Block:
  """Breadcrumb trail of the parent pages."""
  return _block("breadcrumb", {})


def column_list(columns: Sequence[Column | Sequence[Block | None]]) -> Block:
  """Side-by-side layout; each column is a block list or a `Column` with a width ratio."""
  children: list[Block] = []
  for raw in columns:
    column = raw if isinstance(raw, Column) else Column(blocks=filter_blocks(raw))
    payload: dict[str, Any] = {"children": filter_blocks(column.blocks)}
    if column.width_ratio is not None:
      payload["width_ratio"] = column.width_ratio
    children.append(_block("column", payload))
  return _block("column_list", {"children": children})


def _table_cell(cell: Any) -> list[RichText]:
  """Runs for one table cell; non-text cells are stringified."""
  if isinstance(cell, str):
    return [rich_text(cell)]
  if isinstance(cell, Sequence):
    return to_rich_text(cell) or [rich_text("")]
  return [rich_text("" if cell is None else str(cell))]


def table(rows: Sequence[Sequence[Any]], *, has_column_header: bool = True, has_row_header: bool = False) -> Block:
  """Table whose width is the length of the first row.

  Shorter rows are padded with empty cells and longer rows are cut, since the API
  rejects rows whose cell count differs from `table_width`.
  """
  width = len(rows[0]) if rows else 0
  table_rows: list[Block] = []
  for index, row in enumerate(rows):
    cells = [_table_cell(cell) for cell in row[:width]]
    if len(row) != width:
      logger.warning("table row %s has %s cells, expected %s", index, len(row), width)
      cells.extend([rich_text("")] for _ in range(width - len(cells)))
    table_rows.append(_block("table_row", {"cells": cells}))

  return _block("table", {"table_width": width, "has_column_header": has_column_header, "has_row_header": has_row_header, "children": table_rows})


# Synced blocks


def synced_block_original(children: Sequence[Block | None]) -> Block:
  """Original synced block whose children can be referenced elsewhere."""
  return _block("synced_block", {"synced_from": None, "children": filter_blocks(children)})


def synced_block_reference(block_id: str) -> Block:
  """Reference to an existing synced block by id."""
  return _block("synced_block", {"synced_from": {"block_id": block_id}})
