import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from instaflow.core.logging import initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the job sweeper; cancel in-flight jobs on shutdown."""
  settings = app.state.settings
  logger = logging.getLogger("instaflow.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # Keep serving with the default handlers when the log directory is unwritable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  app.state.job_sweeper.start()
  logger.info("Startup complete (environment=%s, model=%s)", settings.environment, settings.gemini_model)

  try:
    yield
  finally:
    await app.state.job_sweeper.stop()
    await app.state.job_runner.shutdown()
    logger.info("Shutdown complete")
