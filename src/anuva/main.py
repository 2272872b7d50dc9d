"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from anuva.clinical.router import router as clinical_router
from anuva.config import get_settings
from anuva.database import close_db, init_db
from anuva.gamification.router import router as gamification_router
from anuva.health.router import router as health_router
from anuva.intake.router import router as intake_router
from anuva.middleware import setup_middleware
from anuva.redis_client import close_redis, init_redis
from anuva.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database engine and Redis pool for the app's lifetime."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        health_check_interval=settings.redis_health_check_interval,
    )
    logger.info("startup", version=settings.app_version, environment=settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Anuva API",
        description="Patient engagement backend: intake forms, clinical records and recovery progress",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(intake_router)
    app.include_router(clinical_router)
    app.include_router(gamification_router)

    return app


app = create_app()
