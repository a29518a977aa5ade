"""Async client for the Notion REST API.

Thin wrapper over one long-lived `httpx.AsyncClient`. Remote failures surface as a
single `NotionAPIError`; nothing here retries.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from coursekit.config import NOTION_API_VERSION, NOTION_MAX_BATCH_SIZE, Settings
from coursekit.schema.blocks import Block

logger = logging.getLogger(__name__)

TOKEN_PREFIXES = ("ntn_", "secret_")
DEFAULT_BASE_URL = "https://api.notion.com/v1"
PAGE_SIZE = 100


class NotionAPIError(Exception):
  """A Notion call failed; `status_code` is the remote status, or 502 for transport errors."""

  def __init__(self, message: str, *, status_code: int = 502, code: str = "notion_error") -> None:
    super().__init__(message)
    self.message = message
    self.status_code = status_code
    self.code = code


class NotionClientNotConfiguredError(RuntimeError):
  """Raised when a Notion call is needed but no token is configured."""


class InvalidTokenError(ValueError):
  """Raised when a token does not look like a Notion integration token."""


def validate_token(token: str | None) -> str:
  """Return the stripped token or raise `InvalidTokenError`."""
  if not token or not token.strip():
    raise InvalidTokenError("Token cannot be empty")
  token = token.strip()
  if not token.startswith(TOKEN_PREFIXES):
    raise InvalidTokenError('Invalid token. Notion tokens start with "ntn_" or "secret_"')
  return token


def _plain_text(items: Any) -> str:
  if not isinstance(items, list):
    return ""
  return "".join(str(item.get("plain_text", "")) for item in items if isinstance(item, Mapping))


def extract_title(source: Any) -> str:
  """Title from a database title array or from the title property of a page."""
  if isinstance(source, list):
    return _plain_text(source) or "Untitled"
  if isinstance(source, Mapping):
    for prop in source.values():
      if isinstance(prop, Mapping) and prop.get("type") == "title":
        return _plain_text(prop.get("title")) or "Untitled"
  return "Untitled"


def format_page(page: Mapping[str, Any]) -> dict[str, Any]:
  return {
    "object": "page",
    "id": page.get("id"),
    "title": extract_title(page.get("properties") or {}),
    "url": page.get("url"),
    "icon": page.get("icon"),
    "cover": page.get("cover"),
    "parent": page.get("parent"),
    "properties": page.get("properties") or {},
    "created_time": page.get("created_time"),
    "last_edited_time": page.get("last_edited_time"),
    "archived": bool(page.get("archived")),
    "in_trash": bool(page.get("in_trash")),
  }


def format_database(database: Mapping[str, Any]) -> dict[str, Any]:
  """Summary of a database; API 2025-09-03 exposes its data sources as well."""
  formatted: dict[str, Any] = {
    "object": "database",
    "id": database.get("id"),
    "title": extract_title(database.get("title") or []),
    "description": _plain_text(database.get("description")),
    "url": database.get("url"),
    "icon": database.get("icon"),
    "cover": database.get("cover"),
    "parent": database.get("parent"),
    "properties": database.get("properties") or {},
    "created_time": database.get("created_time"),
    "last_edited_time": database.get("last_edited_time"),
    "archived": bool(database.get("archived")),
    "in_trash": bool(database.get("in_trash")),
  }
  data_sources = database.get("data_sources")
  if isinstance(data_sources, list) and data_sources:
    formatted["data_sources"] = data_sources
    formatted["default_data_source_id"] = data_sources[0].get("id") if isinstance(data_sources[0], Mapping) else None
  return formatted


def format_search_result(item: Mapping[str, Any]) -> dict[str, Any]:
  if item.get("object") == "database":
    return format_database(item)
  return format_page(item)


def chunk_blocks(blocks: Sequence[Block], size: int) -> list[list[Block]]:
  """Split `blocks` into consecutive batches of at most `size` (capped at the API limit)."""
  size = max(1, min(size, NOTION_MAX_BATCH_SIZE))
  return [list(blocks[index : index + size]) for index in range(0, len(blocks), size)]


class NotionClient:
  """Notion REST client; one instance per process, closed on shutdown."""

  def __init__(self, token: str, *, base_url: str = DEFAULT_BASE_URL, notion_version: str = NOTION_API_VERSION, timeout: float = 30.0, batch_size: int = NOTION_MAX_BATCH_SIZE, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self.batch_size = batch_size
    self._client = httpx.AsyncClient(
      base_url=base_url.rstrip("/"),
      headers={"Authorization": f"Bearer {validate_token(token)}", "Notion-Version": notion_version, "Content-Type": "application/json"},
      timeout=timeout,
      transport=transport,
      trust_env=False,
    )

  @classmethod
  def from_settings(cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> NotionClient:
    if not settings.notion_token:
      raise NotionClientNotConfiguredError("NOTION_TOKEN is not configured.")
    return cls(
      settings.notion_token,
      base_url=settings.notion_base_url,
      notion_version=settings.notion_version,
      timeout=settings.notion_timeout_seconds,
      batch_size=settings.append_batch_size,
      transport=transport,
    )

  async def aclose(self) -> None:
    await self._client.aclose()

  async def __aenter__(self) -> NotionClient:
    return self

  async def __aexit__(self, *exc_info: Any) -> None:
    await self.aclose()

  async def _request(self, method: str, path: str, *, json: Any = None, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
    logger.debug("Notion %s %s", method, path)
    try:
      response = await self._client.request(method, path, json=json, params=params)
      response.raise_for_status()
    except httpx.HTTPStatusError as e:
      error = _error_from_response(e.response)
      logger.error("Notion %s %s returned %s (%s): %s", method, path, error.status_code, error.code, error.message)
      raise error from e
    except httpx.RequestError as e:
      logger.error("Notion %s %s failed: %s", method, path, e)
      raise NotionAPIError(f"Network error while calling Notion: {e}", status_code=502, code="network_error") from e
    return response.json()

  async def test_connection(self) -> bool:
    """True when the token is accepted by `users/me`."""
    try:
      await self._request("GET", "/users/me")
    except NotionAPIError as exc:
      logger.warning("Notion connection test failed: %s", exc.message)
      return False
    return True

  async def search(self, query: str | None = None, *, object_type: str | None = None) -> list[dict[str, Any]]:
    """Search shared pages and databases, most recently edited first."""
    body: dict[str, Any] = {"sort": {"direction": "descending", "timestamp": "last_edited_time"}}
    if query:
      body["query"] = query
    if object_type:
      body["filter"] = {"property": "object", "value": object_type}

    response = await self._request("POST", "/search", json=body)
    results = [item for item in response.get("results", []) if isinstance(item, Mapping)]
    if object_type:
      results = [item for item in results if item.get("object") == object_type]
    return [format_search_result(item) for item in results]

  async def search_pages(self, query: str | None = None) -> list[dict[str, Any]]:
    return await self.search(query, object_type="page")

  async def search_databases(self, query: str | None = None) -> list[dict[str, Any]]:
    return await self.search(query, object_type="database")

  async def get_page(self, page_id: str) -> dict[str, Any]:
    return format_page(await self._request("GET", f"/pages/{page_id}"))

  async def get_database(self, database_id: str) -> dict[str, Any]:
    return format_database(await self._request("GET", f"/databases/{database_id}"))

  async def get_data_source(self, data_source_id: str) -> dict[str, Any]:
    return await self._request("GET", f"/data_sources/{data_source_id}")

  async def list_data_sources(self, database_id: str) -> list[dict[str, Any]]:
    database = await self.get_database(database_id)
    return list(database.get("data_sources") or [])

  async def get_page_blocks(self, block_id: str) -> list[dict[str, Any]]:
    """All direct children of a block, following the cursor."""
    blocks: list[dict[str, Any]] = []
    cursor: str | None = None
    while True:
      params: dict[str, Any] = {"page_size": PAGE_SIZE}
      if cursor:
        params["start_cursor"] = cursor
      response = await self._request("GET", f"/blocks/{block_id}/children", params=params)
      blocks.extend(response.get("results", []))
      cursor = response.get("next_cursor") if response.get("has_more") else None
      if not cursor:
        return blocks

  async def create_page(self, parent: Mapping[str, Any], properties: Mapping[str, Any], children: Sequence[Block] | None = None, *, icon: Mapping[str, Any] | None = None, cover: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Create a page; at most one batch of children may be sent with it."""
    if "data_source_id" in parent:
      logger.info("Creating page under data source %s", parent["data_source_id"])
    body: dict[str, Any] = {"parent": dict(parent), "properties": dict(properties), "children": list(children or [])}
    if icon:
      body["icon"] = dict(icon)
    if cover:
      body["cover"] = dict(cover)
    return format_page(await self._request("POST", "/pages", json=body))

  async def update_page(self, page_id: str, properties: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return format_page(await self._request("PATCH", f"/pages/{page_id}", json={"properties": dict(properties or {})}))

  async def append_blocks(self, block_id: str, blocks: Sequence[Block]) -> int:
    """Append in batches, strictly one after another; returns the number of batches sent."""
    batches = chunk_blocks(blocks, self.batch_size)
    for index, batch in enumerate(batches, start=1):
      logger.info("Appending batch %s/%s (%s blocks) to %s", index, len(batches), len(batch), block_id)
      await self._request("PATCH", f"/blocks/{block_id}/children", json={"children": batch})
    return len(batches)


def _error_from_response(response: httpx.Response) -> NotionAPIError:
  """Map a Notion error body (`{"code", "message"}`) to `NotionAPIError`."""
  code = "notion_error"
  message = f"Notion API returned HTTP {response.status_code}"
  try:
    payload = response.json()
  except ValueError:
    payload = None
  if isinstance(payload, Mapping):
    code = str(payload.get("code") or code)
    message = str(payload.get("message") or message)
  return NotionAPIError(message, status_code=response.status_code, code=code)
