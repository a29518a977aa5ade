"""Pass-through routes over the Notion API: search, read, create and update pages."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, status

from coursekit.api.deps import get_notion_client
from coursekit.api.models import (
  AppendBlocksRequest,
  AppendResponse,
  BlocksResponse,
  CreatePageRequest,
  DatabaseResponse,
  DatabasesResponse,
  PageResponse,
  PagesResponse,
  SearchRequest,
  SearchResponse,
  UpdatePageRequest,
)
from coursekit.services.notion_client import NotionClient

logger = logging.getLogger(__name__)

router = APIRouter()

NotionDep = Annotated[NotionClient, Depends(get_notion_client)]


def _search_request(payload: SearchRequest | None) -> str | None:
  return payload.query if payload is not None else None


@router.post("/search", response_model=SearchResponse)
async def search(client: NotionDep, payload: Annotated[SearchRequest | None, Body()] = None) -> SearchResponse:
  return SearchResponse(results=await client.search(_search_request(payload)))


@router.post("/search-pages", response_model=PagesResponse)
async def search_pages(client: NotionDep, payload: Annotated[SearchRequest | None, Body()] = None) -> PagesResponse:
  return PagesResponse(pages=await client.search_pages(_search_request(payload)))


@router.post("/search-databases", response_model=DatabasesResponse)
async def search_databases(client: NotionDep, payload: Annotated[SearchRequest | None, Body()] = None) -> DatabasesResponse:
  return DatabasesResponse(databases=await client.search_databases(_search_request(payload)))


@router.get("/page/{page_id}", response_model=PageResponse)
async def get_page(page_id: str, client: NotionDep) -> PageResponse:
  return PageResponse(page=await client.get_page(page_id))


@router.get("/page/{page_id}/blocks", response_model=BlocksResponse)
async def get_page_blocks(page_id: str, client: NotionDep) -> BlocksResponse:
  return BlocksResponse(blocks=await client.get_page_blocks(page_id))


@router.get("/database/{database_id}", response_model=DatabaseResponse)
async def get_database(database_id: str, client: NotionDep) -> DatabaseResponse:
  return DatabaseResponse(database=await client.get_database(database_id))


@router.post("/create-page", response_model=PageResponse)
async def create_page(payload: CreatePageRequest, client: NotionDep) -> PageResponse:
  if not payload.parent or not payload.properties:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: parent, properties")
  page = await client.create_page(payload.parent, payload.properties, payload.children, icon=payload.icon, cover=payload.cover)
  return PageResponse(page=page)


@router.patch("/page/{page_id}", response_model=PageResponse)
async def update_page(page_id: str, payload: UpdatePageRequest, client: NotionDep) -> PageResponse:
  return PageResponse(page=await client.update_page(page_id, payload.properties))


@router.post("/page/{page_id}/append", response_model=AppendResponse, response_model_exclude_none=True)
async def append_blocks(page_id: str, payload: AppendBlocksRequest, client: NotionDep) -> AppendResponse:
  """Append already-built Notion blocks, batched at the API limit."""
  if not isinstance(payload.blocks, list):
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="blocks must be an array")
  batches = await client.append_blocks(page_id, payload.blocks)
  logger.info("Appended %s raw blocks to %s", len(payload.blocks), page_id)
  return AppendResponse(message="Blocks appended successfully", blocks_added=len(payload.blocks), batches=batches)
