"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from wastewise.config import get_settings
from wastewise.database import close_db, get_session, init_db
from wastewise.health.router import router as health_router
from wastewise.ledger.router import router as ledger_router
from wastewise.middleware import setup_middleware
from wastewise.notifications.router import router as notifications_router
from wastewise.reports.router import router as reports_router
from wastewise.rewards.router import router as rewards_router
from wastewise.rewards.seed import seed_rewards
from wastewise.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    # Seed the reward catalog (idempotent)
    if settings.seed_rewards_on_startup:
        try:
            async for db in get_session():
                await seed_rewards(db)
                break
        except Exception:
            logger.warning("reward_seeding_failed", exc_info=True)

    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="WasteWise API",
        description="Waste reporting rewards: report waste, collect it, earn and redeem points",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(ledger_router)
    app.include_router(notifications_router)
    app.include_router(reports_router)
    app.include_router(rewards_router)

    return app


app = create_app()
