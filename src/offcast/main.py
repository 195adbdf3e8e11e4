"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from offcast.auth.router import router as auth_router
from offcast.blocks.router import router as blocks_router
from offcast.channels.router import router as channels_router
from offcast.channels.seed import seed_default_channels
from offcast.comments.router import router as comments_router
from offcast.config import get_settings
from offcast.database import close_db, get_session, init_db
from offcast.hashtags.router import router as hashtags_router
from offcast.health.router import app_router as app_versions_router
from offcast.health.router import router as health_router
from offcast.middleware import setup_middleware
from offcast.posts.router import router as posts_router
from offcast.redis_client import close_redis, init_redis
from offcast.reports.router import router as reports_router
from offcast.social.router import router as social_router
from offcast.support.router import router as support_router
from offcast.upload.router import router as upload_router
from offcast.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Default channels (idempotent)
    if settings.seed_on_startup:
        try:
            async for db in get_session():
                created = await seed_default_channels(db)
                await db.commit()
                logger.info("channels_seeded", created=created)
                break
        except SQLAlchemyError:
            logger.warning("channel_seeding_failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Offcast API",
        description="Backend API for Offcast: creator community lounges gated by subscriber count",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(channels_router)
    app.include_router(posts_router)
    app.include_router(comments_router)
    app.include_router(hashtags_router)
    app.include_router(reports_router)
    app.include_router(blocks_router)
    app.include_router(support_router)
    app.include_router(upload_router)
    app.include_router(social_router)
    app.include_router(app_versions_router)

    return app


app = create_app()
