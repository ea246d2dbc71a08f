"""
Database configuration and session management.

This module provides:
- Async SQLAlchemy engine setup
- Database session management (one session, one transaction per request)
- Database dependency injection
"""

from typing import AsyncGenerator, Optional

from kanban.core.config import get_settings
from kanban.core.exceptions import ConflictException
from kanban.core.models import Base
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm.exc import StaleDataError
from structlog import get_logger

logger = get_logger(__name__)
settings = get_settings()


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self._database_url = database_url or settings.database_url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the database engine, creating it if necessary."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get the session factory, creating it if necessary."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    def _create_engine(self) -> AsyncEngine:
        """Create and configure the async database engine."""
        database_url = self._database_url

        engine_kwargs = {
            "url": database_url,
            "echo": settings.debug,
            "pool_pre_ping": True,
        }
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_timeout=30,
                pool_recycle=3600,
            )

        engine = create_async_engine(**engine_kwargs)

        @event.listens_for(engine.sync_engine, "checkout")
        def receive_checkout(dbapi_connection, connection_record, connection_proxy):
            """Log database connection checkout in development."""
            if settings.is_development:
                logger.debug("Database connection checked out")

        @event.listens_for(engine.sync_engine, "checkin")
        def receive_checkin(dbapi_connection, connection_record):
            """Log database connection checkin in development."""
            if settings.is_development:
                logger.debug("Database connection checked in")

        logger.info(
            "Database engine created",
            database_url=database_url.split("@")[-1],  # Hide credentials
            pool_size=engine_kwargs.get("pool_size"),
        )

        return engine

    async def create_tables(self) -> None:
        """Create all database tables."""
        # Models must be imported so their tables are registered on Base.metadata
        import kanban.modules  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def close(self) -> None:
        """Close the database engine and all connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine closed")

    async def health_check(self) -> bool:
        """Check if the database is accessible."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


# Global database manager instance
db_manager = DatabaseManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get a database session.

    The session spans the whole request, so authorization checks and the
    mutation they guard read the same transactional snapshot. Services
    commit explicitly before publishing events; anything left pending is
    committed here, and any exception rolls the transaction back.

    Yields:
        AsyncSession: Database session for the request
    """
    async with db_manager.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Database session rolled back", error=str(e))
            raise


async def commit_or_conflict(session: AsyncSession) -> None:
    """
    Commit the session, turning a lost optimistic-lock race into a 409.

    Raises:
        ConflictException: If a versioned row was changed by another transaction
    """
    try:
        await session.commit()
    except StaleDataError as e:
        await session.rollback()
        logger.warning("Stale row version on commit", error=str(e))
        raise ConflictException("The item was modified by another request, reload and retry")


async def init_db() -> None:
    """Initialize the database connection and create tables if configured."""
    if settings.database_auto_create:
        await db_manager.create_tables()

    health_ok = await db_manager.health_check()
    if not health_ok:
        raise RuntimeError("Database health check failed")

    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Close database connections."""
    await db_manager.close()
