"""Wire-level shapes for Notion blocks and rich text runs.

Blocks and runs are plain dicts because they are sent to the Notion API as-is;
only the caller-facing inputs (text segments, columns) are msgspec structs.
"""

from __future__ import annotations

from typing import Any, Literal, get_args
from urllib.parse import urlparse

import msgspec

Block = dict[str, Any]
RichText = dict[str, Any]

Color = Literal[
  "default",
  "gray",
  "brown",
  "orange",
  "yellow",
  "green",
  "blue",
  "purple",
  "pink",
  "red",
  "gray_background",
  "brown_background",
  "orange_background",
  "yellow_background",
  "green_background",
  "blue_background",
  "purple_background",
  "pink_background",
  "red_background",
]

COLORS: frozenset[str] = frozenset(get_args(Color))

CODE_LANGUAGES: frozenset[str] = frozenset(
  {
    "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript", "c++", "c#", "css", "dart", "diff", "docker", "elixir", "elm", "erlang", "flow", "fortran", "f#", "gherkin", "glsl", "go", "graphql", "groovy", "haskell", "html", "java",
    "javascript", "json", "julia", "kotlin", "latex", "less", "lisp", "livescript", "lua", "makefile", "markdown", "markup", "matlab", "mermaid", "nix", "objective-c", "ocaml", "pascal", "perl", "php", "plain text", "powershell", "prolog",
    "protobuf", "python", "r", "reason", "ruby", "rust", "sass", "scala", "scheme", "scss", "shell", "sql", "swift", "typescript", "vb.net", "verilog", "vhdl", "visual basic", "webassembly", "xml", "yaml", "java/c/c++/c#",
  }
)


def normalize_color(value: Any, default: str = "default") -> str:
  """Return `value` when it is a known Notion color, else `default`."""
  if isinstance(value, str) and value in COLORS:
    return value
  return default


def is_valid_url(url: Any) -> bool:
  """Accept only absolute http/https URLs."""
  if not isinstance(url, str) or not url.strip():
    return False
  try:
    parsed = urlparse(url.strip())
  except ValueError:
    return False
  return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def normalize_language(value: Any, default: str = "javascript") -> str:
  """Map a user-supplied language onto the Notion code-language vocabulary."""
  if not isinstance(value, str) or not value.strip():
    return default
  language = value.strip().lower()
  if language in CODE_LANGUAGES:
    return language
  # Common shorthands authors type instead of Notion's names.
  aliases = {"js": "javascript", "ts": "typescript", "py": "python", "sh": "shell", "zsh": "shell", "yml": "yaml", "text": "plain text", "txt": "plain text", "plaintext": "plain text", "cpp": "c++", "csharp": "c#", "md": "markdown"}
  return aliases.get(language, "plain text")


class TextSegment(msgspec.Struct, kw_only=True):
  """One caller-formatted piece of text; bypasses inline markdown parsing."""

  text: str = ""
  bold: bool = False
  italic: bool = False
  strikethrough: bool = False
  underline: bool = False
  code: bool = False
  color: str = "default"
  link: str | None = None


class Column(msgspec.Struct):
  """One column of a column layout."""

  blocks: list[Block]
  width_ratio: float | None = None
