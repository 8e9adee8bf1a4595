"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import dashboard
from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.db.connection import Database

# Set up logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown."""
    logger.info("application_starting", app_name=settings.app_name)

    db = Database()
    await db.connect()
    await db.init_schema()
    app.state.db = db

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    await db.disconnect()
    logger.info("application_stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Dashboard API over collected video metadata, transcripts and analyses",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(dashboard.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
