"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Request

from coursekit.services.notion_client import NotionClient, NotionClientNotConfiguredError


def get_notion_client(request: Request) -> NotionClient:
  """Return the process-wide client opened in the lifespan hook."""
  client = getattr(request.app.state, "notion_client", None)
  if client is None:
    raise NotionClientNotConfiguredError("NOTION_TOKEN is not configured.")
  return client
