"""Course templates composed from leaf builders."""

from __future__ import annotations

from coursekit.services import templates
from coursekit.services.diagnostics import Diagnostics
from coursekit.services.rich_text import plain_text


def _text(block: dict) -> str:
  return plain_text(block[block["type"]]["rich_text"])


def _children(block: dict) -> list[dict]:
  return block[block["type"]].get("children", [])


def test_important_note_styles_and_strips_duplicate_icon() -> None:
  block = templates.important_note("⚠️ Careful with rm -rf", "warning")
  assert block["callout"]["icon"]["emoji"] == "⚠️"
  assert block["callout"]["color"] == "yellow_background"
  assert _text(block) == "Careful with rm -rf"


def test_unknown_note_kind_falls_back_to_info() -> None:
  assert templates.important_note("x", "shout")["callout"]["color"] == "blue_background"


def test_definition_bolds_the_term() -> None:
  block = templates.definition("API", "📖 Application Programming Interface")
  runs = block["callout"]["rich_text"]
  assert runs[0]["text"]["content"] == "API"
  assert runs[0]["annotations"]["bold"] is True
  assert _text(block) == "API: Application Programming Interface"


def test_step_icon_prefix_and_children() -> None:
  block = templates.step(2, "Step 2: Install", "pip install coursekit")
  assert block["callout"]["icon"]["emoji"] == "2️⃣"
  assert _text(block) == "Step 2: Install"
  assert [child["type"] for child in _children(block)] == ["paragraph"]

  assert templates.step(11, "Later")["callout"]["icon"]["emoji"] == templates.STEP_FALLBACK_ICON
  assert "children" not in templates.step(1, "Bare")["callout"]


def test_exercise_strips_prefix_and_hides_solution() -> None:
  block = templates.exercise("Exercise: Add", ["Write add", "Return the sum"], "function add(a,b){ return a + b; }")
  assert _text(block) == "Exercise: Add"
  children = _children(block)
  assert [child["type"] for child in children] == ["bulleted_list_item", "bulleted_list_item", "toggle"]
  solution = children[-1]
  assert solution["toggle"]["color"] == "green_background"
  code_block = solution["toggle"]["children"][0]
  assert code_block["type"] == "code"
  assert plain_text(code_block["code"]["rich_text"]) == "function add(a,b){ return a + b; }"


def test_exercise_title_has_no_duplicated_prefix() -> None:
  runs = templates.exercise("Exercise: Add", [])["callout"]["rich_text"]
  assert [run["text"]["content"] for run in runs] == ["Exercise: ", "Add"]


def test_quiz_with_one_option_is_plain_error_block() -> None:
  diagnostics = Diagnostics()
  block = templates.quick_quiz("Q", ["x"], 0, diagnostics=diagnostics)
  assert block["type"] == "paragraph"
  assert _text(block) == templates.QUIZ_INVALID_MESSAGE
  assert diagnostics.entries[0].code == "quiz_too_few_options"


def test_quiz_out_of_range_index_is_clamped() -> None:
  diagnostics = Diagnostics()
  block = templates.quick_quiz("Q", ["a", "b", "c"], 5, diagnostics=diagnostics)
  assert block["type"] == "callout"
  options = [_text(child) for child in _children(block)[:-1]]
  assert options == ["A) a", "B) b", "C) c"]
  answer_toggle = _children(block)[-1]
  answer = answer_toggle["toggle"]["children"][0]
  assert "A) a" in _text(answer)
  assert [entry.code for entry in diagnostics.entries] == ["quiz_index_clamped"]


def test_quiz_reveals_correct_option() -> None:
  block = templates.quick_quiz("Quiz: Which is typed?", ["JavaScript", "TypeScript"], 1)
  assert _text(block) == "Quiz: Which is typed?"
  answer = _children(block)[-1]["toggle"]["children"][0]
  assert _text(answer) == "The correct answer is B) TypeScript"


def test_list_templates() -> None:
  summary = templates.chapter_summary(["One", "  ", "Two"])
  assert [_text(child) for child in _children(summary)] == ["One", "Two"]

  objectives = templates.learning_objectives(["Read", "Write"])
  assert {child["type"] for child in _children(objectives)} == {"to_do"}
  assert all(child["to_do"]["checked"] is False for child in _children(objectives))

  assert [_text(child) for child in _children(templates.prerequisites(["Python"]))] == ["Python"]
  assert _text(templates.estimated_time(45)) == "Estimated time: 45 minutes"


def test_comparison_columns() -> None:
  block = templates.comparison(templates.ComparisonSide("Pros"), templates.ComparisonSide("Cons"))
  left, right = block["column_list"]["children"]
  assert left["column"]["children"][0]["heading_3"]["color"] == "green"
  assert right["column"]["children"][0]["heading_3"]["color"] == "red"


def test_code_with_explanation_returns_two_blocks() -> None:
  result = templates.code_with_explanation("x = 1", "python", [templates.LineExplanation("x = 1", "assign")])
  assert [block["type"] for block in result] == ["code", "callout"]
  item = _children(result[1])[0]
  runs = item["bulleted_list_item"]["rich_text"]
  assert runs[0]["annotations"]["code"] is True
  assert plain_text(runs) == "x = 1 → assign"
