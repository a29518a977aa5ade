from __future__ import annotations

import pytest


@pytest.mark.anyio
async def test_search_without_body(async_client, fake_notion) -> None:
  fake_notion.add("POST", "/search", {"results": [{"object": "page", "id": "p1", "properties": {"title": {"type": "title", "title": [{"plain_text": "Notes"}]}}}]})
  response = await async_client.post("/api/search")
  assert response.status_code == 200
  assert response.json()["results"][0]["title"] == "Notes"
  assert "query" not in fake_notion.calls("POST", "/search")[0]


@pytest.mark.anyio
async def test_search_databases_with_query(async_client, fake_notion) -> None:
  fake_notion.add("POST", "/search", {"results": [{"object": "database", "id": "d1", "title": [{"plain_text": "Courses"}]}]})
  response = await async_client.post("/api/search-databases", json={"query": "Cour"})
  assert response.json()["databases"][0]["title"] == "Courses"
  body = fake_notion.calls("POST", "/search")[0]
  assert body["query"] == "Cour"
  assert body["filter"]["value"] == "database"


@pytest.mark.anyio
async def test_get_page_and_blocks(async_client, fake_notion) -> None:
  fake_notion.add("GET", "/pages/p1", {"object": "page", "id": "p1", "properties": {}})
  fake_notion.add("GET", "/blocks/p1/children", {"results": [{"id": "b1"}], "has_more": False})
  assert (await async_client.get("/api/page/p1")).json()["page"]["id"] == "p1"
  assert (await async_client.get("/api/page/p1/blocks")).json()["blocks"] == [{"id": "b1"}]


@pytest.mark.anyio
async def test_missing_page_returns_remote_status(async_client) -> None:
  response = await async_client.get("/api/page/unknown")
  assert response.status_code == 404
  assert response.json()["code"] == "object_not_found"


@pytest.mark.anyio
async def test_create_page_requires_parent_and_properties(async_client, fake_notion) -> None:
  response = await async_client.post("/api/create-page", json={"parent": {"page_id": "p"}})
  assert response.status_code == 400
  assert response.json()["detail"] == "Missing required fields: parent, properties"
  assert fake_notion.requests == []


@pytest.mark.anyio
async def test_create_and_update_page(async_client, fake_notion) -> None:
  fake_notion.add("POST", "/pages", {"object": "page", "id": "new"})
  fake_notion.add("PATCH", "/pages/new", {"object": "page", "id": "new"})
  properties = {"title": {"title": [{"text": {"content": "Draft"}}]}}
  created = await async_client.post("/api/create-page", json={"parent": {"page_id": "p"}, "properties": properties})
  assert created.json()["page"]["id"] == "new"
  updated = await async_client.patch("/api/page/new", json={"properties": properties})
  assert updated.status_code == 200
  assert fake_notion.calls("PATCH", "/pages/new")[0] == {"properties": properties}


@pytest.mark.anyio
async def test_append_raw_blocks(async_client, fake_notion) -> None:
  fake_notion.add("PATCH", "/blocks/p1/children", {"results": []})
  response = await async_client.post("/api/page/p1/append", json={"blocks": [{"object": "block", "type": "divider", "divider": {}}] * 150})
  assert response.status_code == 200
  assert response.json() == {"success": True, "message": "Blocks appended successfully", "blocksAdded": 150, "batches": 2}


@pytest.mark.anyio
async def test_append_requires_a_list(async_client, fake_notion) -> None:
  response = await async_client.post("/api/page/p1/append", json={"blocks": {"type": "divider"}})
  assert response.status_code == 400
  assert response.json()["detail"] == "blocks must be an array"
