"""Leaf block builders."""

from __future__ import annotations

import pytest

from coursekit.schema.blocks import Column
from coursekit.services import blocks
from coursekit.services.diagnostics import Diagnostics
from coursekit.services.rich_text import plain_text


def test_paragraph_shape_and_empty_paragraph() -> None:
  block = blocks.paragraph("Hello **world**", color="gray")
  assert block["object"] == "block"
  assert block["type"] == "paragraph"
  assert block["paragraph"]["color"] == "gray"
  assert plain_text(block["paragraph"]["rich_text"]) == "Hello world"
  assert blocks.paragraph("   ") is None
  assert blocks.paragraph(None) is None


def test_filter_blocks_drops_none() -> None:
  kept = blocks.filter_blocks([blocks.paragraph(""), blocks.divider(), None])
  assert [block["type"] for block in kept] == ["divider"]


def test_heading_children_only_when_toggleable() -> None:
  child = blocks.paragraph("inside")
  flat = blocks.heading_2("Title", children=[child])
  assert "children" not in flat["heading_2"]
  assert flat["heading_2"]["is_toggleable"] is False

  toggle = blocks.heading_2("Title", toggleable=True, children=[child])
  assert toggle["heading_2"]["children"] == [child]


def test_heading_rejects_bad_level() -> None:
  with pytest.raises(ValueError):
    blocks.heading(4, "Nope")


def test_structural_blocks_keep_placeholder_run() -> None:
  for block in (blocks.callout(""), blocks.quote(None), blocks.bulleted_list_item(""), blocks.to_do(" ")):
    runs = block[block["type"]]["rich_text"]
    assert [run["text"]["content"] for run in runs] == [" "]


def test_callout_default_icon_and_color_fallback() -> None:
  block = blocks.callout("Note", color="not-a-color")
  assert block["callout"]["icon"] == {"type": "emoji", "emoji": "💡"}
  assert block["callout"]["color"] == "default"


def test_toggle_always_has_children_list() -> None:
  assert blocks.toggle("More")["toggle"]["children"] == []


def test_code_splits_runs_and_normalizes_language() -> None:
  block = blocks.code("a" * 4500, "py", caption="Example")
  runs = block["code"]["rich_text"]
  assert [len(run["text"]["content"]) for run in runs] == [2000, 2000, 500]
  assert block["code"]["language"] == "python"
  assert plain_text(block["code"]["caption"]) == "Example"


def test_code_keeps_markdown_markers_verbatim() -> None:
  block = blocks.code("x = a**2 * b**2")
  assert plain_text(block["code"]["rich_text"]) == "x = a**2 * b**2"


def test_oversized_code_is_truncated_with_marker() -> None:
  diagnostics = Diagnostics()
  block = blocks.code("z" * 60_000, "python", diagnostics=diagnostics)
  text = plain_text(block["code"]["rich_text"])
  assert len(text) == blocks.MAX_CODE_CHARS
  assert text.endswith(blocks.CODE_TRUNCATION_MARKER)
  assert [entry.code for entry in diagnostics.entries] == ["code_truncated"]


def test_unknown_language_becomes_plain_text() -> None:
  assert blocks.code("x", "brainfuck")["code"]["language"] == "plain text"


@pytest.mark.parametrize("builder", [blocks.image, blocks.video, blocks.audio, blocks.pdf])
def test_media_external_url(builder) -> None:
  block = builder("https://cdn.example.com/asset", "Caption")
  payload = block[block["type"]]
  assert payload["type"] == "external"
  assert payload["external"] == {"url": "https://cdn.example.com/asset"}


@pytest.mark.parametrize("url", ["ftp://x", "not a url", "", "javascript:alert(1)"])
def test_invalid_media_url_degrades_to_notice(url: str) -> None:
  diagnostics = Diagnostics()
  block = blocks.image(url, diagnostics=diagnostics)
  assert block["type"] == "paragraph"
  assert plain_text(block["paragraph"]["rich_text"]) == f"[Invalid image URL: {url}]"
  assert diagnostics.entries[0].code == "invalid_url"


def test_file_embed_bookmark() -> None:
  assert blocks.file("https://x.io/a.zip")["file"]["name"] == "file"
  assert blocks.file("https://x.io/a.zip", name="a.zip")["file"]["name"] == "a.zip"
  assert blocks.embed("https://figma.com/f/1")["embed"] == {"url": "https://figma.com/f/1"}
  assert blocks.bookmark("https://x.io")["bookmark"]["url"] == "https://x.io"
  assert blocks.embed("mailto:a@b.c")["type"] == "paragraph"


def test_link_preview_is_emitted_as_bookmark() -> None:
  block = blocks.link_preview("https://github.com/org/repo")
  assert block["type"] == "bookmark"


def test_column_list_with_ratio() -> None:
  block = blocks.column_list([[blocks.divider(), None], Column(blocks=[blocks.breadcrumb()], width_ratio=0.25)])
  columns = block["column_list"]["children"]
  assert [column["type"] for column in columns] == ["column", "column"]
  assert len(columns[0]["column"]["children"]) == 1
  assert columns[1]["column"]["width_ratio"] == 0.25
  assert "width_ratio" not in columns[0]["column"]


def test_table_pads_and_cuts_rows_to_first_row_width() -> None:
  block = blocks.table([["A", "B", "C"], ["1"], ["x", "y", "z", "extra"]])
  payload = block["table"]
  assert payload["table_width"] == 3
  assert payload["has_column_header"] is True
  widths = [len(row["table_row"]["cells"]) for row in payload["children"]]
  assert widths == [3, 3, 3]


def test_synced_blocks() -> None:
  original = blocks.synced_block_original([blocks.paragraph("shared"), None])
  assert original["synced_block"]["synced_from"] is None
  assert len(original["synced_block"]["children"]) == 1
  reference = blocks.synced_block_reference("abc")
  assert reference["synced_block"]["synced_from"] == {"block_id": "abc"}


def test_table_of_contents_and_equation() -> None:
  assert blocks.table_of_contents("gray")["table_of_contents"] == {"color": "gray"}
  assert blocks.equation("  e=mc^2 ")["equation"] == {"expression": "e=mc^2"}


@pytest.mark.parametrize("builder", [blocks.paragraph, blocks.quote, blocks.callout, blocks.bulleted_list_item, blocks.to_do, blocks.toggle])
def test_text_builders_drop_invalid_links(builder) -> None:
  diagnostics = Diagnostics()
  block = builder("read [the guide](javascript:void(0))", diagnostics=diagnostics)
  runs = block[block["type"]]["rich_text"]
  assert plain_text(runs) == "read the guide"
  assert runs[-1]["text"]["link"] is None
  assert [entry.code for entry in diagnostics.entries] == ["invalid_link"]
