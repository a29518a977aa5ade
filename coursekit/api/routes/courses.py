"""Course routes: validate, dry-run, compile-and-create, append compiled content."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from coursekit import __version__
from coursekit.api.deps import get_notion_client
from coursekit.api.models import AppendContentRequest, AppendResponse, CourseCreationStats, CreateCourseResponse, DryRunResponse, ValidateCourseResponse
from coursekit.config import NOTION_API_VERSION
from coursekit.schema.course import ITEM_TYPE_GROUPS, parse_course
from coursekit.services.compiler import compile_content, compile_course, dry_run
from coursekit.services.diagnostics import Diagnostics
from coursekit.services.materializer import append_content, materialize_course
from coursekit.services.notion_client import NotionClient
from coursekit.services.validator import collect_course_stats, generate_recommendations, validate_course

logger = logging.getLogger(__name__)

router = APIRouter()

FEATURES = ["validation", "emoji-cleanup", "url-validation", "dry-run", "diagnostics"]

NotionDep = Annotated[NotionClient, Depends(get_notion_client)]
CourseBody = Annotated[Any, Body()]


def _summary(course: Any) -> str:
  if not isinstance(course, Mapping):
    return f"<{type(course).__name__}>"
  sections = course.get("sections")
  return f"title={course.get('title')!r} sections={len(sections) if isinstance(sections, list) else 0}"


@router.post("/validate-course", response_model=ValidateCourseResponse)
async def validate_course_route(course: CourseBody = None) -> ValidateCourseResponse:
  logger.debug("Validate request %s", _summary(course))
  result = validate_course(course)
  stats = collect_course_stats(course)
  return ValidateCourseResponse(valid=result.valid, errors=result.errors, warnings=result.warnings, stats=stats.to_dict(), recommendations=generate_recommendations(stats))


@router.post("/dry-run", response_model=DryRunResponse)
async def dry_run_route(course: CourseBody = None) -> DryRunResponse:
  """Compile without touching Notion and report everything that would degrade."""
  logger.debug("Dry run request %s", _summary(course))
  analysis = dry_run(course)
  return DryRunResponse(
    valid=analysis.valid,
    errors=analysis.errors,
    warnings=analysis.warnings,
    stats=analysis.stats.to_dict(),
    generated_blocks=analysis.generated_blocks,
    diagnostics=[entry.to_dict() for entry in analysis.diagnostics],
  )


@router.post("/create-course", response_model=CreateCourseResponse)
async def create_course(client: NotionDep, course: CourseBody = None) -> CreateCourseResponse:
  """Validate, compile and create the course page; nothing is sent when validation fails."""
  logger.debug("Create course request %s", _summary(course))
  spec = parse_course(course)
  if not spec.parent_id or not spec.title or not spec.sections:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: parentId, title, sections")

  validation = validate_course(course)
  if not validation.valid:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"error": "Course validation failed", "details": validation.errors, "warnings": validation.warnings})
  for warning in validation.warnings:
    logger.warning("Course %r: %s", spec.title, warning)

  diagnostics = Diagnostics()
  blocks = compile_course(spec, diagnostics=diagnostics)
  logger.info("Compiled course %r into %s blocks (%s diagnostics)", spec.title, len(blocks), len(diagnostics))

  result = await materialize_course(client, spec, blocks)
  return CreateCourseResponse(page=result.page, stats=CourseCreationStats(sections_created=result.sections_created, blocks_created=result.blocks_created))


@router.post("/page/{page_id}/append-content", response_model=AppendResponse, response_model_exclude_none=True)
async def append_content_route(page_id: str, payload: AppendContentRequest, client: NotionDep) -> AppendResponse:
  """Compile a bare content list (same item format as sections) and append it."""
  if not isinstance(payload.content, list) or not payload.content:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing or invalid content array")

  blocks = compile_content(payload.content)
  if not blocks:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid blocks generated from content")

  added = await append_content(client, page_id, blocks)
  return AppendResponse(message="Content appended successfully", blocks_added=added)


BLOCK_TYPE_EXAMPLES: dict[str, dict[str, Any]] = {
  "paragraph": {"type": "paragraph", "text": "Paragraph with **bold**, *italic* and `code`"},
  "heading1": {"type": "heading1", "text": "Main title", "color": "blue"},
  "callout": {"type": "callout", "text": "Important note", "icon": "💡", "color": "yellow_background"},
  "info": {"type": "info", "text": "Useful information (ℹ️ added automatically)"},
  "code": {"type": "code", "code": 'print("Hello")', "language": "python", "caption": "Example"},
  "codeWithExplanation": {
    "type": "codeWithExplanation",
    "code": "x = 5\nprint(x)",
    "language": "python",
    "explanations": [{"line": "x = 5", "explanation": "Declares a variable"}, {"line": "print(x)", "explanation": "Prints it"}],
  },
  "bullets": {"type": "bullets", "items": ["Point 1", "Point 2", "Point 3"]},
  "toggle": {"type": "toggle", "text": "Click to see more", "children": [{"type": "paragraph", "text": "Hidden content"}]},
  "image": {"type": "image", "url": "https://example.com/image.jpg", "caption": "Description"},
  "file": {"type": "file", "url": "https://example.com/handout.zip", "name": "handout.zip"},
  "table": {"type": "table", "headers": ["Header 1", "Header 2"], "rows": [["Cell 1", "Cell 2"]]},
  "comparison": {"type": "comparison", "left": {"title": "Pros", "items": ["Fast", "Simple"]}, "right": {"title": "Cons", "items": ["Costly", "Complex"]}},
  "definition": {"type": "definition", "term": "API", "definition": "Application Programming Interface"},
  "step": {"type": "step", "stepNumber": 1, "text": "Install the dependencies", "caption": "pip install -e ."},
  "exercise": {"type": "exercise", "text": "Write a function", "instructions": ["Name it add", "It takes 2 parameters", "It returns their sum"], "solution": "def add(a, b):\n    return a + b", "language": "python"},
  "quiz": {"type": "quiz", "question": "Which language is statically typed?", "options": ["JavaScript", "TypeScript", "Python"], "correctIndex": 1},
  "summary": {"type": "summary", "items": ["Key point 1", "Key point 2"]},
  "objectives": {"type": "objectives", "items": ["Understand X", "Apply Y"]},
  "estimatedTime": {"type": "estimatedTime", "minutes": 45},
  "syncedBlockReference": {"type": "syncedBlockReference", "blockId": "<existing synced block id>"},
}

IMPORTANT_NOTES = {
  "emojis": "info, warning, tip, danger, definition, exercise, quiz and step add their own emoji; do not put one in the text.",
  "validation": "Call /api/validate-course or /api/dry-run before creating a course.",
  "urls": "URLs are checked for image, video, audio, pdf, file, embed and bookmark items; invalid ones become a visible notice.",
}


@router.get("/block-types")
async def block_types() -> dict[str, Any]:
  """Catalogue of recognised content item types, with examples."""
  return {
    "success": True,
    "version": __version__,
    "notionApiVersion": NOTION_API_VERSION,
    "features": FEATURES,
    "blockTypes": ITEM_TYPE_GROUPS,
    "importantNotes": IMPORTANT_NOTES,
    "examples": BLOCK_TYPE_EXAMPLES,
  }
