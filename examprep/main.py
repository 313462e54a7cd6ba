from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from examprep.api.errors import register_exception_handlers
from examprep.api.routes.analytics import router as analytics_router
from examprep.api.routes.health import router as health_router
from examprep.api.routes.mock_exams import router as mock_exams_router
from examprep.api.routes.payment_verifications import router as payment_verifications_router
from examprep.api.routes.payments_webhook import router as payments_webhook_router
from examprep.api.routes.practice import router as practice_router
from examprep.api.routes.season_pass_codes import router as season_pass_codes_router
from examprep.api.routes.streak import router as streak_router
from examprep.api.routes.subscriptions import router as subscriptions_router
from examprep.core.config import get_settings
from examprep.core.logging import configure_logging
from examprep.services.explanation_cache import ExplanationCache


def create_app(
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    redis_client: Redis | None = None,
) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    if session_factory is None:
        from examprep.db.session import SessionLocal

        session_factory = SessionLocal
    if redis_client is None:
        redis_client = Redis.from_url(settings.redis_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await redis_client.aclose()

    app = FastAPI(
        title="Exam Prep API",
        version="0.1.0",
        docs_url="/docs" if settings.enable_openapi_docs else None,
        redoc_url="/redoc" if settings.enable_openapi_docs else None,
        openapi_url="/openapi.json" if settings.enable_openapi_docs else None,
        lifespan=lifespan,
    )
    app.state.session_factory = session_factory
    app.state.redis = redis_client
    app.state.explanation_cache = ExplanationCache(
        redis_client,
        ttl_seconds=settings.explanation_cache_ttl_seconds,
    )

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(practice_router)
    app.include_router(mock_exams_router)
    app.include_router(streak_router)
    app.include_router(analytics_router)
    app.include_router(season_pass_codes_router)
    app.include_router(payments_webhook_router)
    app.include_router(payment_verifications_router)
    app.include_router(subscriptions_router)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "examprep.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
