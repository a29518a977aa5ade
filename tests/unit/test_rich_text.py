"""Inline formatting and run construction."""

from __future__ import annotations

import logging

import pytest

from coursekit.schema.blocks import TextSegment
from coursekit.services.diagnostics import Diagnostics
from coursekit.services.rich_text import MAX_RUN_CHARS, parse_formatted_text, plain_text, rich_text, to_rich_text


def _styles(run: dict) -> set[str]:
  return {name for name, value in run["annotations"].items() if value is True}


@pytest.mark.parametrize("content", ["", " ", "\n\t  "])
def test_blank_content_becomes_single_space_run(content: str) -> None:
  run = rich_text(content)
  assert run["text"]["content"] == " "
  assert _styles(run) == set()
  assert run["annotations"]["color"] == "default"


def test_long_content_is_capped_with_ellipsis() -> None:
  run = rich_text("x" * 2500)
  content = run["text"]["content"]
  assert len(content) == MAX_RUN_CHARS
  assert content.endswith("...")


def test_content_at_limit_is_untouched() -> None:
  assert rich_text("y" * MAX_RUN_CHARS)["text"]["content"] == "y" * MAX_RUN_CHARS


def test_link_and_unknown_color() -> None:
  run = rich_text("docs", link="https://example.com", color="neon")
  assert run["text"]["link"] == {"url": "https://example.com"}
  assert run["annotations"]["color"] == "default"


def test_bold_then_italic_yields_three_runs() -> None:
  runs = parse_formatted_text("**a** and *b*")
  assert [run["text"]["content"] for run in runs] == ["a", " and ", "b"]
  assert [_styles(run) for run in runs] == [{"bold"}, set(), {"italic"}]


def test_code_strikethrough_and_link() -> None:
  runs = parse_formatted_text("Run `pip` not ~~easy_install~~, see [docs](https://pip.pypa.io)")
  contents = [run["text"]["content"] for run in runs]
  assert contents == ["Run ", "pip", " not ", "easy_install", ", see ", "docs"]
  assert _styles(runs[1]) == {"code"}
  assert _styles(runs[3]) == {"strikethrough"}
  assert runs[5]["text"]["link"] == {"url": "https://pip.pypa.io"}


def test_overlapping_token_is_dropped_not_nested() -> None:
  runs = parse_formatted_text("**bold `code` inside**")
  assert len(runs) == 1
  assert runs[0]["text"]["content"] == "bold `code` inside"
  assert _styles(runs[0]) == {"bold"}


def test_text_without_markup_is_one_plain_run() -> None:
  runs = parse_formatted_text("just words")
  assert len(runs) == 1
  assert _styles(runs[0]) == set()


def test_no_run_is_ever_empty() -> None:
  for text in ["**x**", "a **b** c", "*", "**", "``", "[a](b) c", "   *i*   "]:
    for run in parse_formatted_text(text):
      assert run["text"]["content"] != ""


def test_to_rich_text_blank_and_none_mean_nothing() -> None:
  assert to_rich_text(None) is None
  assert to_rich_text("   ") is None
  assert to_rich_text([]) is None


def test_to_rich_text_without_markdown_keeps_markers() -> None:
  runs = to_rich_text("**not bold**", parse_markdown=False)
  assert plain_text(runs) == "**not bold**"
  assert _styles(runs[0]) == set()


def test_segments_bypass_parsing_and_drop_blank_entries() -> None:
  runs = to_rich_text([{"text": "Hi ", "bold": True}, {"text": "   "}, TextSegment(text="*there*", color="red")])
  assert [run["text"]["content"] for run in runs] == ["Hi ", "*there*"]
  assert _styles(runs[0]) == {"bold"}
  assert runs[1]["annotations"]["color"] == "red"


def test_prebuilt_runs_are_kept() -> None:
  prebuilt = [rich_text("one", italic=True), rich_text("two")]
  assert to_rich_text(prebuilt) == prebuilt


@pytest.mark.parametrize("url", ["javascript:alert(1)", "/relative/path", "ftp://files.example.com", "mailto:someone@example.com"])
def test_inline_link_to_non_http_url_keeps_only_the_label(url: str) -> None:
  diagnostics = Diagnostics()
  runs = parse_formatted_text(f"click [here]({url}) now", diagnostics=diagnostics)
  assert plain_text(runs) == "click here now"
  assert all(run["text"]["link"] is None for run in runs)
  assert [entry.code for entry in diagnostics.entries] == ["invalid_link"]


def test_link_url_with_balanced_parentheses() -> None:
  runs = parse_formatted_text("see [Foo](https://en.wikipedia.org/wiki/Foo_(bar)) too")
  assert [run["text"]["content"] for run in runs] == ["see ", "Foo", " too"]
  assert runs[1]["text"]["link"] == {"url": "https://en.wikipedia.org/wiki/Foo_(bar)"}


def test_segment_link_is_validated() -> None:
  diagnostics = Diagnostics()
  runs = to_rich_text([{"text": "bad", "link": "javascript:alert(1)"}, {"text": " good", "link": "https://example.com"}], diagnostics=diagnostics)
  assert runs[0]["text"]["link"] is None
  assert runs[1]["text"]["link"] == {"url": "https://example.com"}
  assert len(diagnostics.warnings()) == 1


def test_invalid_link_without_collector_only_logs(caplog) -> None:
  with caplog.at_level(logging.WARNING, logger="coursekit.services.rich_text"):
    run = rich_text("label", link="not a url")
  assert run["text"]["content"] == "label"
  assert run["text"]["link"] is None
  assert "not an absolute http(s) URL" in caplog.text
