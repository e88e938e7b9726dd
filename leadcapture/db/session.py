# leadcapture/db/session.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from leadcapture.core.config import settings
from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Global engine instance
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def create_database_engine() -> AsyncEngine:
    """Create and configure the async database engine."""
    global engine, AsyncSessionLocal

    if engine is not None:
        return engine

    if settings.is_testing or settings.is_sqlite:
        # No pooling for tests and local sqlite files
        engine = create_async_engine(
            settings.database_url,
            poolclass=NullPool,
            echo=settings.debug,
        )
    else:
        engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            pool_pre_ping=True,
            echo=settings.debug,
            connect_args={
                "command_timeout": 60,
                "server_settings": {"application_name": settings.service_name},
            },
        )

    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info(
        "database.engine.created",
        pool_size=settings.database_pool_size,
        testing=settings.is_testing,
    )

    return engine


async def dispose_engine() -> None:
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    if AsyncSessionLocal is None:
        create_database_engine()

    session = AsyncSessionLocal()

    try:
        yield session
    except SQLAlchemyError as e:
        logger.error("database.session_error", error=str(e))
        await session.rollback()
        raise
    finally:
        await session.close()


async def create_all() -> None:
    """Create tables and indexes for every registered model."""
    from leadcapture.db.base import Base
    import leadcapture.models  # noqa: F401  register mappers

    create_database_engine()
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("database.schema_created", tables=sorted(Base.metadata.tables))


async def health_check(session: AsyncSession) -> Dict[str, Any]:
    """Check database health."""
    started = datetime.now(timezone.utc)
    try:
        result = await session.execute(text("SELECT 1"))
        row = result.fetchone()
        elapsed = (datetime.now(timezone.utc) - started).total_seconds() * 1000
        return {
            "status": "healthy" if row and row[0] == 1 else "unhealthy",
            "response_time_ms": f"{elapsed:.2f}",
            "dialect": session.bind.dialect.name if session.bind else "unknown",
        }
    except SQLAlchemyError as e:
        logger.error("database.health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
        }
