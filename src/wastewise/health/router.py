"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.config import get_settings
from wastewise.database import get_session
from wastewise.db.models import Reward

router = APIRouter()


async def _catalog_check(db: AsyncSession) -> tuple[str, str]:
    """Return (database, reward_catalog) states from one catalog query."""
    try:
        available = (
            await db.execute(select(func.count()).select_from(Reward).where(Reward.is_available.is_(True)))
        ).scalar_one()
    except SQLAlchemyError as exc:
        return f"error: {exc}", "unknown"
    return "ok", "ok" if available else "empty"


@router.get("/health")
async def health() -> dict[str, str]:
    """The process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Ready once the database answers. An empty catalog is reported but does not fail the probe."""
    database, catalog = await _catalog_check(db)
    return {
        "status": "ready" if database == "ok" else "degraded",
        "checks": {"database": database, "reward_catalog": catalog},
    }


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "service": "wastewise",
        "version": settings.app_version,
        "environment": settings.environment,
    }
