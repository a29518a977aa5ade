import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("coursekit.core.middleware")


def _build_request_url(scope: Scope) -> str:
  """Path plus query string, read from the scope so the body stream is left alone."""
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"
  return path


def _header(scope: Scope, name: bytes) -> str | None:
  for key, value in scope.get("headers", []):
    if key.lower() == name:
      return value.decode("latin-1")
  return None


class RequestLoggingMiddleware:
  """Assign a request id and log method, path, status and latency. Bodies are never logged."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.time()
    method = scope.get("method", "UNKNOWN")
    logger.info("Incoming request request_id=%s %s %s", request_id, method, _build_request_url(scope))
    content_length = _header(scope, b"content-length")
    if content_length:
      logger.debug("Request metadata request_id=%s content-length=%s", request_id, content_length)

    status_code: int | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id
      await send(message)

    await self.app(scope, receive, send_wrapper)

    process_time = (time.time() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, process_time)


class SecurityHeadersMiddleware:
  """Strip server-identifying headers and forbid MIME sniffing."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_wrapper(message: dict[str, Any]) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        for name in ("x-powered-by", "server"):
          if name in headers:
            del headers[name]
        headers["x-content-type-options"] = "nosniff"
      await send(message)

    await self.app(scope, receive, send_wrapper)
