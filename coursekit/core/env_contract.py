"""Startup environment contract for the course compiler service.

How/Why:
- The service is useless without a Notion integration token, so a missing or malformed
  token must stop startup instead of failing on the first create-course call.
- Secret values are never echoed; only their presence is logged.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlparse

EnvValidator = Callable[[str, dict[str, str]], str | None]

NOTION_TOKEN_PREFIXES = ("ntn_", "secret_")


@dataclass(frozen=True)
class EnvVarDefinition:
  """Describe how an environment variable must be validated."""

  name: str
  required: bool
  secret: bool
  validator: EnvValidator | None = None


class EnvContractError(RuntimeError):
  """Raised when required runtime environment keys are missing or invalid."""


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse boolean-ish environment values consistently for contract checks."""
  if raw is None:
    return default

  return raw.strip().lower() in {"1", "true", "yes", "on"}


def _validate_notion_token(value: str, _: dict[str, str]) -> str | None:
  """Notion integration tokens start with `ntn_` (current) or `secret_` (legacy)."""
  if not value.strip().startswith(NOTION_TOKEN_PREFIXES):
    return "must start with 'ntn_' or 'secret_'."

  return None


def _validate_environment_name(value: str, _: dict[str, str]) -> str | None:
  """Keep environment names predictable for startup controls."""
  if value.strip().lower() in {"dev", "development", "stage", "staging", "prod", "production", "test", "testing"}:
    return None

  return "must be one of: development, stage, production, test (or aliases)."


def _validate_allowed_origins(value: str, _: dict[str, str]) -> str | None:
  """Reject wildcard CORS origins."""
  origins = [origin.strip() for origin in value.split(",") if origin.strip()]
  if not origins:
    return "must include at least one origin."

  if "*" in origins:
    return "must not include wildcard origins."

  return None


def _validate_http_url(value: str, _: dict[str, str]) -> str | None:
  parsed = urlparse(value.strip())
  if parsed.scheme in {"http", "https"} and parsed.netloc:
    return None

  return "must be an absolute http(s) URL."


REQUIRED_ENV_REGISTRY: tuple[EnvVarDefinition, ...] = (
  EnvVarDefinition(name="NOTION_TOKEN", required=True, secret=True, validator=_validate_notion_token),
  EnvVarDefinition(name="COURSEKIT_ENV", required=False, secret=False, validator=_validate_environment_name),
  EnvVarDefinition(name="COURSEKIT_ALLOWED_ORIGINS", required=False, secret=False, validator=_validate_allowed_origins),
  EnvVarDefinition(name="COURSEKIT_NOTION_BASE_URL", required=False, secret=False, validator=_validate_http_url),
)


def list_required_env_names() -> tuple[str, ...]:
  """Expose required key names for deploy scripts."""
  return tuple(definition.name for definition in REQUIRED_ENV_REGISTRY if definition.required)


def validate_env_values(env_map: dict[str, str]) -> list[str]:
  """Validate a provided env map against the contract rules."""
  errors: list[str] = []
  for definition in REQUIRED_ENV_REGISTRY:
    value = env_map.get(definition.name, "")
    if definition.required and value.strip() == "":
      errors.append(f"{definition.name}: required variable is missing.")
      continue

    if definition.validator and value.strip() != "":
      validation_error = definition.validator(value, env_map)
      if validation_error:
        errors.append(f"{definition.name}: {validation_error}")

  return errors


def validate_runtime_env_or_raise(*, logger: logging.Logger) -> None:
  """Validate and log runtime env values; raise when enforcement is on."""
  # Enforced unless explicitly disabled, e.g. for local smoke tests without a token.
  env_contract_enabled = _parse_bool(os.getenv("COURSEKIT_ENV_CONTRACT_ENFORCE"), default=True)
  resolved_values: dict[str, str] = {}
  for definition in REQUIRED_ENV_REGISTRY:
    value = os.getenv(definition.name, "")
    resolved_values[definition.name] = value
    if definition.secret:
      logger.info("ENV_CHECK key=%s value=%s", definition.name, "<redacted>" if value else "<missing>")
    elif value == "":
      logger.info("ENV_CHECK key=%s value=<default>", definition.name)
    else:
      logger.info("ENV_CHECK key=%s value=%s", definition.name, value)

  errors = validate_env_values(resolved_values)

  if not errors:
    logger.info("ENV_CHECK status=ok checked=%d", len(REQUIRED_ENV_REGISTRY))
    return

  message = "ENV_CHECK status=failed violations:\n- {errors}".format(errors="\n- ".join(errors))
  if env_contract_enabled:
    logger.error(message)
    raise EnvContractError(message)

  logger.warning("ENV_CHECK enforcement disabled by COURSEKIT_ENV_CONTRACT_ENFORCE=0")
  logger.warning(message)
