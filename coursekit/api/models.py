from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
  status: str = "ok"
  version: str
  notion_api_version: str = Field(serialization_alias="notionApiVersion")
  features: list[str]
  timestamp: str


class SearchRequest(BaseModel):
  """Optional free-text query; an empty body searches everything shared with the integration."""

  query: str | None = Field(default=None, max_length=500)
  model_config = ConfigDict(extra="ignore")


class SearchResponse(BaseModel):
  success: bool = True
  results: list[dict[str, Any]]


class PagesResponse(BaseModel):
  success: bool = True
  pages: list[dict[str, Any]]


class DatabasesResponse(BaseModel):
  success: bool = True
  databases: list[dict[str, Any]]


class PageResponse(BaseModel):
  success: bool = True
  page: dict[str, Any]


class DatabaseResponse(BaseModel):
  success: bool = True
  database: dict[str, Any]


class BlocksResponse(BaseModel):
  success: bool = True
  blocks: list[dict[str, Any]]


class CreatePageRequest(BaseModel):
  """Raw page creation; `parent` and `properties` are passed to Notion as given."""

  parent: dict[str, Any] | None = None
  properties: dict[str, Any] | None = None
  children: list[dict[str, Any]] | None = None
  icon: dict[str, Any] | None = None
  cover: dict[str, Any] | None = None
  model_config = ConfigDict(extra="ignore")


class UpdatePageRequest(BaseModel):
  properties: dict[str, Any] | None = None
  model_config = ConfigDict(extra="ignore")


class AppendBlocksRequest(BaseModel):
  # Any, so a non-list value gets the route's 400 instead of a 422.
  blocks: Any = None
  model_config = ConfigDict(extra="ignore")


class AppendContentRequest(BaseModel):
  content: Any = None
  model_config = ConfigDict(extra="ignore")


class AppendResponse(BaseModel):
  success: bool = True
  message: str
  blocks_added: int | None = Field(default=None, serialization_alias="blocksAdded")
  batches: int | None = None


class ValidateCourseResponse(BaseModel):
  success: bool = True
  valid: bool
  errors: list[str]
  warnings: list[str]
  stats: dict[str, Any]
  recommendations: list[str]


class DryRunResponse(BaseModel):
  valid: bool
  errors: list[str]
  warnings: list[str]
  stats: dict[str, Any]
  generated_blocks: int = Field(serialization_alias="generatedBlocks")
  diagnostics: list[dict[str, Any]]


class CourseCreationStats(BaseModel):
  sections_created: int = Field(serialization_alias="sectionsCreated")
  blocks_created: int = Field(serialization_alias="blocksCreated")


class CreateCourseResponse(BaseModel):
  success: bool = True
  page: dict[str, Any]
  stats: CourseCreationStats
