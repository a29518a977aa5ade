"""Turns compiled blocks into a Notion page.

The page is created with the first batch of children and the remaining batches are
appended one by one, in order. A failing batch aborts the run; batches already sent
stay on the page.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from coursekit.schema.blocks import Block, is_valid_url
from coursekit.schema.course import CourseSpec
from coursekit.services.notion_client import NotionClient

logger = logging.getLogger(__name__)

_DATABASE_ID = re.compile(r"^[0-9a-fA-F]{32}$")


@dataclass(frozen=True)
class ParentRef:
  parent: dict[str, str]
  title_property: str


@dataclass(frozen=True)
class MaterializedCourse:
  page: dict[str, Any]
  sections_created: int
  blocks_created: int
  batches: int

  def stats(self) -> dict[str, int]:
    return {"sectionsCreated": self.sections_created, "blocksCreated": self.blocks_created}


def resolve_parent(parent_id: str) -> ParentRef:
  """A bare 32-char id is treated as a database, anything else (dashed UUIDs) as a page."""
  parent_id = parent_id.strip()
  if _DATABASE_ID.match(parent_id):
    return ParentRef(parent={"database_id": parent_id}, title_property="Name")
  return ParentRef(parent={"page_id": parent_id}, title_property="title")


def title_properties(title: str, title_property: str) -> dict[str, Any]:
  return {title_property: {"title": [{"type": "text", "text": {"content": title}}]}}


def page_icon(icon: str | None) -> dict[str, Any] | None:
  if not icon:
    return None
  if is_valid_url(icon):
    return {"type": "external", "external": {"url": icon}}
  return {"type": "emoji", "emoji": icon}


def page_cover(cover: str | None) -> dict[str, Any] | None:
  if not cover:
    return None
  if not is_valid_url(cover):
    logger.warning("Ignoring cover with invalid URL %r", cover)
    return None
  return {"type": "external", "external": {"url": cover}}


async def materialize_course(client: NotionClient, course: CourseSpec, blocks: Sequence[Block]) -> MaterializedCourse:
  """Create the course page under its parent and fill it with `blocks`."""
  ref = resolve_parent(course.parent_id)
  first_batch, remaining = list(blocks[: client.batch_size]), list(blocks[client.batch_size :])

  logger.info("Creating course page %r with %s blocks under %s", course.title, len(blocks), ref.parent)
  page = await client.create_page(ref.parent, title_properties(course.title, ref.title_property), first_batch, icon=page_icon(course.icon), cover=page_cover(course.cover))

  batches = 1
  if remaining:
    batches += await client.append_blocks(page["id"], remaining)

  logger.info("Course page %s created in %s batch(es)", page.get("id"), batches)
  return MaterializedCourse(page=page, sections_created=len(course.sections), blocks_created=len(blocks), batches=batches)


async def append_content(client: NotionClient, page_id: str, blocks: Sequence[Block]) -> int:
  """Append compiled content to an existing page; returns the number of blocks sent."""
  await client.append_blocks(page_id, blocks)
  return len(blocks)
