"""Async SQLAlchemy engine, session management and the unit-of-work scope."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wastewise.errors import PersistenceError

logger = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

_UOW_DEPTH_KEY = "uow_depth"


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options per backend; SQLite has no connection pool to size."""
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "echo": False,
        "connect_args": {"statement_cache_size": 0},
    }


async def init_db(url: str) -> None:
    """Initialize the database engine and session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(url, **_engine_options(url))
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the database engine."""
    global _engine  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None


def get_engine() -> AsyncEngine:
    """Get the async engine instance."""
    if _engine is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    async with _session_factory() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block of writes as one transaction.

    Commits when the outermost scope exits cleanly and rolls back on any
    exception. Nested scopes join the outer one and never commit on their
    own. Store failures surface as ``PersistenceError``.
    """
    depth = db.info.get(_UOW_DEPTH_KEY, 0)
    if depth:
        db.info[_UOW_DEPTH_KEY] = depth + 1
        try:
            yield db
        finally:
            db.info[_UOW_DEPTH_KEY] = depth
        return

    db.info[_UOW_DEPTH_KEY] = 1
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("unit_of_work_failed", error=str(exc))
        msg = "Database operation failed, nothing was saved"
        raise PersistenceError(msg) from exc
    except Exception:
        await db.rollback()
        raise
    finally:
        db.info[_UOW_DEPTH_KEY] = 0
