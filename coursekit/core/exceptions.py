import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from coursekit.core.json import MsgspecJSONResponse
from coursekit.services.notion_client import NotionAPIError, NotionClientNotConfiguredError

# Keys whose values are author content; logs keep the structure around them.
_REDACTED_DETAIL_KEYS = frozenset({"content", "blocks", "children", "sections"})


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for error responses."""
  # Keep native JSON primitives unchanged.
  if value is None or isinstance(value, bool | int | float | str):
    return value
  # Recursively sanitize mappings; JSON object keys must be strings.
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  # Normalize iterable containers to lists for deterministic JSON encoding.
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  # Pydantic puts exception instances in `ctx`; render them as "Type: message".
  if isinstance(value, BaseException):
    error_message = str(value)
    return f"{type(value).__name__}: {error_message}" if error_message else type(value).__name__
  # Fallback to string coercion for arbitrary objects.
  return str(value)


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  """Build the `{success, detail, requestId?}` error body shared by every handler."""
  payload: dict[str, Any] = {"success": False, "detail": detail}
  # Attach the request id so a client report can be matched to the server log line.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  # Strip submitted values; a rejected course body can be large and private.
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    # Context payloads can repeat the input as well.
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx
    sanitized.append(_coerce_json_safe(scrubbed))
  return sanitized


def _sanitize_http_detail(detail: Any) -> Any:
  """Drop course bodies (content, blocks, children) from details before logging."""
  # Walk nested mappings so redaction applies at every depth.
  if isinstance(detail, dict):
    return {key: _sanitize_http_detail(value) for key, value in detail.items() if key not in _REDACTED_DETAIL_KEYS}
  # Normalize lists of detail entries.
  if isinstance(detail, list):
    return [_sanitize_http_detail(item) for item in detail]
  return detail


async def global_exception_handler(request: Request, exc: Exception) -> MsgspecJSONResponse:
  """Catch-all for unhandled errors; the response never carries the exception text."""
  logger = logging.getLogger("uvicorn.error")
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return MsgspecJSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> MsgspecJSONResponse:
  """Log request validation errors without echoing the submitted body."""
  request_id = getattr(request.state, "request_id", None)
  sanitized_errors = _sanitize_validation_errors(exc.errors())
  # 422s are client-correctable, so a single warning line is enough.
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return MsgspecJSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_error_payload(sanitized_errors, request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> MsgspecJSONResponse:
  """4xx details reach the caller; 5xx details are logged and masked."""
  from coursekit.config import get_settings

  settings = get_settings()
  request_id = getattr(request.state, "request_id", None)
  # Log 5xx with a traceback; `exc.detail` stays out of the response.
  if exc.status_code >= 500:
    logger = logging.getLogger("uvicorn.error")
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
    return MsgspecJSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  # Log 4xx only when explicitly enabled for debugging.
  if settings.log_http_4xx:
    logger = logging.getLogger("uvicorn.error")
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, _sanitize_http_detail(exc.detail))

  # Preserve 4xx details (validation messages, missing fields) for the caller.
  return MsgspecJSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail, request_id=request_id), headers=getattr(exc, "headers", None))


async def notion_api_exception_handler(request: Request, exc: NotionAPIError) -> MsgspecJSONResponse:
  """Single error payload for a failed remote call, carrying the remote message."""
  request_id = getattr(request.state, "request_id", None)
  logger = logging.getLogger("uvicorn.error")
  logger.error("Notion API failure request_id=%s path=%s status_code=%s code=%s message=%s", request_id, request.url.path, exc.status_code, exc.code, exc.message)
  # Remote 4xx (bad id, missing permission) are caller-correctable; anything else is a bad gateway.
  status_code = exc.status_code if 400 <= exc.status_code < 500 else status.HTTP_502_BAD_GATEWAY
  payload: dict[str, Any] = {"success": False, "error": exc.message, "code": exc.code}
  if request_id:
    payload["requestId"] = request_id
  return MsgspecJSONResponse(status_code=status_code, content=payload)


async def notion_not_configured_exception_handler(request: Request, exc: NotionClientNotConfiguredError) -> MsgspecJSONResponse:
  """503 while the service runs without a Notion token."""
  request_id = getattr(request.state, "request_id", None)
  logging.getLogger("uvicorn.error").error("Notion client not configured request_id=%s path=%s", request_id, request.url.path)
  return MsgspecJSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_error_payload("Notion integration is not configured", request_id=request_id))
