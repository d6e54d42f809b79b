"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wordflow.achievements.router import router as achievements_router
from wordflow.achievements.seed import seed_achievements
from wordflow.analytics.router import router as analytics_router
from wordflow.articles.router import router as articles_router
from wordflow.config import get_settings
from wordflow.dashboard.router import router as dashboard_router
from wordflow.database import close_db, init_db, session_scope
from wordflow.engagement.router import router as engagement_router
from wordflow.health.router import router as health_router
from wordflow.middleware import setup_middleware
from wordflow.redis_client import close_redis, init_redis
from wordflow.search.router import router as search_router
from wordflow.social.notification_router import router as notification_router
from wordflow.social.router import router as social_router
from wordflow.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Install the default achievement catalog (idempotent)
    if settings.seed_achievements:
        try:
            async with session_scope() as db:
                await seed_achievements(db)
        except Exception:
            logger.warning("Achievement seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="WordFlow API",
        description="Backend API for WordFlow: articles, engagement, notifications, achievements and analytics",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(articles_router)
    app.include_router(engagement_router)
    app.include_router(analytics_router)
    app.include_router(social_router)
    app.include_router(notification_router)
    app.include_router(achievements_router)
    app.include_router(dashboard_router)
    app.include_router(search_router)
    app.include_router(users_router)

    return app


app = create_app()
