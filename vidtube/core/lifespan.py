import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .. import models  # noqa: F401  registers every table on Base.metadata
from ..config.settings import settings # Use centralized settings
from ..config.settings_loader import initialize_db_with_default_settings, load_settings_from_db
from ..db.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)


def _reload_settings() -> None:
    db_session = SessionLocal()
    try:
        load_settings_from_db(db_session)
    finally:
        db_session.close()


def _initialize_settings() -> None:
    db_session = SessionLocal()
    try:
        initialize_db_with_default_settings(db_session)
        load_settings_from_db(db_session)
    finally:
        db_session.close()


async def periodic_settings_reload():
    """Periodically reloads runtime settings from the database."""
    while True:
        await asyncio.sleep(settings.SETTINGS_RELOAD_INTERVAL_SECONDS)
        logger.info("Attempting to reload settings from database...")
        try:
            await asyncio.to_thread(_reload_settings)
            logger.info("Settings reloaded from database successfully.")
        except Exception as e: # keep the task alive, the next tick retries
            logger.error(f"Error reloading settings from database: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan manager for FastAPI application to handle startup and shutdown events."""
    logger.info("Application startup sequence initiated...")

    settings.MEDIA_DIR.mkdir(parents=True, exist_ok=True)
    settings.TEMP_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    logger.info("Creating database tables if they don't exist...")
    await asyncio.to_thread(Base.metadata.create_all, bind=engine)
    logger.info("Database tables checked/created.")

    logger.info("Initializing/loading settings from database...")
    await asyncio.to_thread(_initialize_settings)
    logger.info("Settings initialized/loaded from database.")

    if settings.SETTINGS_RELOAD_INTERVAL_SECONDS > 0:
        logger.info(f"Starting periodic settings reload task (interval: {settings.SETTINGS_RELOAD_INTERVAL_SECONDS}s).")
        app.state.settings_reload_task = asyncio.create_task(periodic_settings_reload())
    else:
        logger.info("Periodic settings reload task is disabled.")
        app.state.settings_reload_task = None

    yield

    logger.info("Application shutdown sequence initiated...")
    task = app.state.settings_reload_task
    if task and not task.done():
        logger.info("Cancelling periodic settings reload task...")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("Periodic settings reload task cancelled successfully.")

    logger.info("Application shutdown complete.")
