from __future__ import annotations

import pytest

from coursekit.schema.course import CourseSpec, SectionSpec
from coursekit.services.materializer import append_content, materialize_course, page_cover, page_icon, resolve_parent
from coursekit.services.notion_client import NotionAPIError


def test_resolve_parent() -> None:
  database = resolve_parent("0123456789abcdef0123456789abcdef")
  assert database.parent == {"database_id": "0123456789abcdef0123456789abcdef"}
  assert database.title_property == "Name"

  page = resolve_parent("01234567-89ab-cdef-0123-456789abcdef")
  assert page.parent == {"page_id": "01234567-89ab-cdef-0123-456789abcdef"}
  assert page.title_property == "title"


def test_icon_and_cover() -> None:
  assert page_icon("📘") == {"type": "emoji", "emoji": "📘"}
  assert page_icon("https://x.io/i.png")["type"] == "external"
  assert page_icon(None) is None
  assert page_cover("https://x.io/c.png") == {"type": "external", "external": {"url": "https://x.io/c.png"}}
  assert page_cover("not a url") is None


def _course() -> CourseSpec:
  return CourseSpec(parent_id="parent-page", title="Intro", icon="📘", sections=[SectionSpec(title="One"), SectionSpec(title="Two")])


@pytest.mark.anyio
async def test_first_batch_with_create_rest_appended_in_order(notion_client, fake_notion) -> None:
  fake_notion.add("POST", "/pages", {"object": "page", "id": "new-page", "properties": {}})
  fake_notion.add("PATCH", "/blocks/new-page/children", {"results": []})
  blocks = [{"type": "paragraph", "n": index} for index in range(250)]

  result = await materialize_course(notion_client, _course(), blocks)

  created = fake_notion.calls("POST", "/pages")[0]
  assert created["parent"] == {"page_id": "parent-page"}
  assert created["properties"]["title"]["title"][0]["text"]["content"] == "Intro"
  assert created["icon"] == {"type": "emoji", "emoji": "📘"}
  assert "cover" not in created
  assert [block["n"] for block in created["children"]] == list(range(100))

  appended = fake_notion.calls("PATCH", "/blocks/new-page/children")
  assert [call["children"][0]["n"] for call in appended] == [100, 200]
  assert result.batches == 3
  assert result.stats() == {"sectionsCreated": 2, "blocksCreated": 250}


@pytest.mark.anyio
async def test_small_course_needs_a_single_call(notion_client, fake_notion) -> None:
  fake_notion.add("POST", "/pages", {"object": "page", "id": "new-page", "properties": {}})
  result = await materialize_course(notion_client, _course(), [{"type": "divider"}])
  assert result.batches == 1
  assert fake_notion.calls("PATCH", "/blocks/new-page/children") == []


@pytest.mark.anyio
async def test_failed_batch_stops_the_run(notion_client, fake_notion) -> None:
  fake_notion.add("POST", "/pages", {"object": "page", "id": "new-page", "properties": {}})
  fake_notion.add("PATCH", "/blocks/new-page/children", {"code": "rate_limited", "message": "Slow down"}, status_code=429)
  with pytest.raises(NotionAPIError) as excinfo:
    await materialize_course(notion_client, _course(), [{"type": "divider"}] * 300)
  assert excinfo.value.code == "rate_limited"
  assert len(fake_notion.calls("PATCH", "/blocks/new-page/children")) == 1


@pytest.mark.anyio
async def test_append_content(notion_client, fake_notion) -> None:
  fake_notion.add("PATCH", "/blocks/p1/children", {"results": []})
  assert await append_content(notion_client, "p1", [{"type": "divider"}] * 3) == 3
