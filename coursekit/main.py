from __future__ import annotations

from datetime import UTC, datetime

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from coursekit import __version__
from coursekit.api.models import HealthResponse
from coursekit.api.routes import courses, pages
from coursekit.config import get_settings
from coursekit.core.exceptions import (
  global_exception_handler,
  http_exception_handler,
  notion_api_exception_handler,
  notion_not_configured_exception_handler,
  request_validation_exception_handler,
)
from coursekit.core.json import MsgspecJSONResponse
from coursekit.core.lifespan import lifespan
from coursekit.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from coursekit.services.notion_client import NotionAPIError, NotionClientNotConfiguredError

settings = get_settings()

app = FastAPI(title="coursekit", version=__version__, default_response_class=MsgspecJSONResponse, lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "PATCH", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(NotionAPIError, notion_api_exception_handler)
app.add_exception_handler(NotionClientNotConfiguredError, notion_not_configured_exception_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
  return HealthResponse(version=__version__, notion_api_version=settings.notion_version, features=courses.FEATURES, timestamp=datetime.now(UTC).isoformat())


app.include_router(pages.router, prefix="/api", tags=["notion"])
app.include_router(courses.router, prefix="/api", tags=["courses"])
