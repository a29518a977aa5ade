"""Shared fixtures: test environment defaults and a fake Notion backend."""

from __future__ import annotations

import json
import os

os.environ.setdefault("NOTION_TOKEN", "secret_test_token")
os.environ.setdefault("COURSEKIT_ENV", "test")

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from coursekit.api.deps import get_notion_client  # noqa: E402
from coursekit.main import app  # noqa: E402
from coursekit.services.notion_client import NotionClient  # noqa: E402


class FakeNotion:
  """Answers Notion calls from a table of (method, path) -> queued responses and records every request."""

  def __init__(self) -> None:
    self.requests: list[httpx.Request] = []
    self._routes: dict[tuple[str, str], list[httpx.Response]] = {}

  def add(self, method: str, path: str, payload: dict | None = None, *, status_code: int = 200) -> None:
    self._routes.setdefault((method, path), []).append(httpx.Response(status_code, json=payload or {}))

  def calls(self, method: str, path: str) -> list[dict]:
    return [json.loads(request.content or b"{}") for request in self.requests if request.method == method and _api_path(request) == path]

  def handler(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    queue = self._routes.get((request.method, _api_path(request)))
    if not queue:
      return httpx.Response(404, json={"object": "error", "code": "object_not_found", "message": f"No fake route for {request.method} {request.url.path}"})
    # The last queued response keeps answering.
    return queue.pop(0) if len(queue) > 1 else queue[0]


def _api_path(request: httpx.Request) -> str:
  return request.url.path.removeprefix("/v1")


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def fake_notion():
  return FakeNotion()


@pytest.fixture
async def notion_client(fake_notion):
  client = NotionClient("secret_test_token", transport=httpx.MockTransport(fake_notion.handler))
  yield client
  await client.aclose()


@pytest.fixture
async def async_client(notion_client):
  app.dependency_overrides[get_notion_client] = lambda: notion_client
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
