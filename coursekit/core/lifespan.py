import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from coursekit.core.env_contract import EnvContractError, validate_runtime_env_or_raise
from coursekit.core.logging import initialize_logging
from coursekit.services.notion_client import InvalidTokenError, NotionClient


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, enforce the env contract and open the shared Notion client."""
  from coursekit.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("coursekit.core.lifespan")
  app.state.notion_client = None

  try:
    initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
    validate_runtime_env_or_raise(logger=logger)
  except EnvContractError:
    logger.error("Environment contract failed; refusing to start the service.", exc_info=True)
    raise

  if settings.notion_token:
    try:
      app.state.notion_client = NotionClient.from_settings(settings)
      logger.info("Notion client ready base_url=%s version=%s batch_size=%s", settings.notion_base_url, settings.notion_version, settings.append_batch_size)
    except InvalidTokenError as exc:
      # Reachable only with the env contract disabled.
      logger.warning("Notion client not created: %s", exc)
  else:
    logger.warning("NOTION_TOKEN not set; Notion-backed routes will answer 503.")

  try:
    yield
  finally:
    if app.state.notion_client is not None:
      await app.state.notion_client.aclose()
      logger.info("Notion client closed.")
