"""
Application startup and shutdown event handlers.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from kanban.core.broadcast import close_broadcaster, get_broadcaster
from kanban.core.config import settings
from kanban.core.database import close_db, db_manager, init_db
from kanban.core.logger import get_logger

logger = get_logger("events")


async def startup_tasks() -> None:
    """Tasks to run on application startup."""
    logger.info("Starting application startup tasks")

    await init_db()
    broadcaster = get_broadcaster()

    logger.info(
        "Application started successfully",
        environment=settings.environment,
        debug=settings.debug,
        database_url=settings.database_url.split("@")[-1],
        broadcast_backend=type(broadcaster.backend).__name__,
    )


async def shutdown_tasks() -> None:
    """Tasks to run on application shutdown."""
    logger.info("Starting application shutdown tasks")

    # Flush in-flight board events before the transport goes away
    await close_broadcaster()
    await close_db()

    logger.info("Application shutdown completed successfully")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.
    Handles startup and shutdown events.
    """
    await startup_tasks()

    try:
        yield
    finally:
        await shutdown_tasks()


async def check_database_health() -> tuple[bool, str]:
    """Check database connection health."""
    if await db_manager.health_check():
        return True, "Database connection successful"
    return False, "Database connection failed"


async def check_broadcast_health() -> tuple[bool, str]:
    """Check the broadcast backend (Redis ping when configured)."""
    broadcaster = get_broadcaster()
    if await broadcaster.backend.health_check():
        return True, f"{type(broadcaster.backend).__name__} reachable"
    return False, f"{type(broadcaster.backend).__name__} unreachable"
