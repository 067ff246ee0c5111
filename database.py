"""MIC Service — Database Connection Manager.

Async database connection management using SQLAlchemy 2.0 (Async).
PostgreSQL via asyncpg in deployments; SQLite via aiosqlite for local
runs and the test suite.

Notes:
    - Connection strings use SecretStr and are never logged
    - Pre-ping validates pooled connections before use
    - Shutdown disposes all connections

Usage:
    from database import get_db, init_database, shutdown_database

    # In FastAPI lifespan
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_database()
        yield
        await shutdown_database()

    # In routes
    @router.get("/machines")
    async def list_machines(db: AsyncSession = Depends(get_db)):
        ...
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from config import get_settings
from logger import get_logger

# =============================================================================
# Module State
# =============================================================================

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None

logger = get_logger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500
_QUERY_START_KEY = "_query_start_time"


# =============================================================================
# Engine Factory
# =============================================================================

def _engine_kwargs() -> dict[str, Any]:
    """Pool and driver arguments for the configured backend."""
    settings = get_settings()
    db_settings = settings.database

    if db_settings.is_sqlite:
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
            "echo": settings.debug,
        }

    return {
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": db_settings.pool_size,
        "max_overflow": db_settings.max_overflow,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {"application_name": "mic-service"},
            "command_timeout": 60,
        },
        "echo": settings.debug,
        "hide_parameters": True,
    }


def _create_engine() -> AsyncEngine:
    """Create the async database engine.

    Returns:
        Configured AsyncEngine with slow-query logging attached.
    """
    db_settings = get_settings().database

    logger.info(
        "Creating database engine",
        database=db_settings.dsn_safe,
        sqlite=db_settings.is_sqlite,
    )

    engine = create_async_engine(db_settings.async_dsn, **_engine_kwargs())
    _register_engine_events(engine)
    return engine


def _create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # no lazy loads after commit under asyncio
        autoflush=False,
    )


def _register_engine_events(engine: AsyncEngine) -> None:
    """Register connection monitoring and slow query logging."""

    @event.listens_for(engine.sync_engine, "invalidate")
    def on_invalidate(
        dbapi_connection: Any,
        connection_record: Any,
        exception: BaseException | None,
    ) -> None:
        logger.warning(
            "Connection invalidated",
            error=str(exception) if exception else None,
        )

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def before_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        conn.info[_QUERY_START_KEY] = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def after_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        start_time = conn.info.pop(_QUERY_START_KEY, None)
        if start_time is None:
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if elapsed_ms > SLOW_QUERY_THRESHOLD_MS:
            truncated = statement[:500] + "..." if len(statement) > 500 else statement
            logger.warning(
                "slow_query",
                query=truncated,
                latency_ms=round(elapsed_ms, 2),
                threshold_ms=SLOW_QUERY_THRESHOLD_MS,
            )


# =============================================================================
# Lifecycle Management
# =============================================================================

async def init_database(create_tables: bool = False) -> None:
    """Initialize the database engine and session maker.

    Call this during application startup. Validates connectivity by
    executing a test query.

    Args:
        create_tables: Create missing tables from the ORM metadata
            (local development; deployments use Alembic).

    Raises:
        RuntimeError: If the database connection fails.
    """
    global _engine, _session_maker

    if _engine is not None:
        logger.warning("Database already initialized, skipping")
        return

    try:
        _engine = _create_engine()
        _session_maker = _create_session_maker(_engine)

        async with _engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()

        if create_tables:
            await create_all(_engine)

        logger.info("Database initialized successfully")

    except Exception as exc:
        logger.error(
            "Database initialization failed",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        if _engine is not None:
            await _engine.dispose()
            _engine = None
        _session_maker = None
        raise RuntimeError(f"Failed to initialize database: {exc}") from exc


async def shutdown_database() -> None:
    """Dispose the engine and release all pooled connections."""
    global _engine, _session_maker

    if _engine is None:
        logger.warning("Database not initialized, nothing to shutdown")
        return

    logger.info("Shutting down database connections")

    try:
        await _engine.dispose()
        logger.info("Database connections disposed successfully")
    except Exception as exc:
        logger.error(
            "Error disposing database connections",
            error_type=type(exc).__name__,
            error=str(exc),
        )
    finally:
        _engine = None
        _session_maker = None


def get_engine() -> AsyncEngine:
    """Get the current database engine.

    Raises:
        RuntimeError: If the database is not initialized.
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


async def create_all(engine: AsyncEngine | None = None) -> None:
    """Create every ORM table that does not exist yet."""
    from db.base import Base
    import db.models  # noqa: F401  (registers tables)

    target = engine or get_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# =============================================================================
# FastAPI Dependency
# =============================================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database session injection.

    The session is committed if the request handler returns normally and
    rolled back otherwise.

    Yields:
        AsyncSession: Database session for the request.

    Raises:
        RuntimeError: If the database is not initialized.
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            if isinstance(exc, DBAPIError):
                logger.error(
                    "Database error, transaction rolled back",
                    error_type=type(exc).__name__,
                    connection_invalidated=exc.connection_invalidated,
                )
            raise


# =============================================================================
# Health Check
# =============================================================================

async def check_database_health() -> dict[str, Any]:
    """Check database connectivity for the health endpoint."""
    if _engine is None:
        return {"status": "unhealthy", "error": "Database not initialized"}

    try:
        async with _engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()

        health: dict[str, Any] = {"status": "healthy"}
        pool = _engine.pool
        if isinstance(pool, AsyncAdaptedQueuePool):
            health["pool"] = {
                "size": pool.size(),
                "checked_in": pool.checkedin(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
            }
        return health

    except Exception as exc:
        logger.error(
            "Database health check failed",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return {"status": "unhealthy", "error": str(exc)}
