import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the API under uvicorn on $PORT (3000 by default)."""
  port = os.getenv("PORT", "3000")
  logger.info("Starting coursekit on port %s", port)
  # Replace the process so uvicorn receives SIGTERM directly.
  os.execvp("uvicorn", ["uvicorn", "coursekit.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"])


if __name__ == "__main__":
  main()
