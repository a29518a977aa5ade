"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from coursekit.core.exceptions import _coerce_json_safe, _error_payload, _sanitize_http_detail, _sanitize_validation_errors


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  """Validation errors stay JSON-serializable and never echo the submitted course."""
  errors = [{"type": "value_error", "loc": ("body", "sections"), "msg": "Value error, sections must be a list.", "input": {"sections": "nope"}, "ctx": {"error": ValueError("sections must be a list."), "input": {"sections": "nope"}}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "sections"]
  assert sanitized[0]["ctx"]["error"] == "ValueError: sections must be a list."
  assert "input" not in sanitized[0]["ctx"]


def test_sanitize_http_detail_drops_course_bodies() -> None:
  detail = {"error": "Course validation failed", "details": ["Missing course title"], "sections": [{"title": "x"}], "nested": [{"content": ["secret"], "keep": 1}]}
  assert _sanitize_http_detail(detail) == {"error": "Course validation failed", "details": ["Missing course title"], "nested": [{"keep": 1}]}
  assert _sanitize_http_detail("plain") == "plain"


def test_coerce_json_safe() -> None:
  assert _coerce_json_safe({1: {"a", }, "b": RuntimeError()}) == {"1": ["a"], "b": "RuntimeError"}
  assert _coerce_json_safe(object.__new__(object)).startswith("<object")


def test_error_payload_request_id_is_optional() -> None:
  assert _error_payload("boom") == {"success": False, "detail": "boom"}
  assert _error_payload("boom", request_id="r1")["requestId"] == "r1"
