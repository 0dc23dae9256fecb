# main.py

"""FastAPI application for the cafe order and payment pipeline."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from config import Settings, get_settings

from . import error_handlers
from .db.tenant import TenantEngineRegistry
from .events import EventBus
from .hooks.order_events import OrderEventPublisher
from .middlewares import (
    LanguageMiddleware,
    LoggingMiddleware,
    PrometheusMiddleware,
    RequestIdMiddleware,
)
from .obs import init_sentry
from .obs.logging import configure_logging
from .routes_kds import router as kds_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .routes_owner import router as owner_router
from .routes_payments import router as payments_router
from .routes_promo import router as promo_router
from .routes_ratings import router as ratings_router
from .storage import StorageBackend, build_storage
from .utils.responses import ok

logger = logging.getLogger("api")


def create_app(
    settings: Settings | None = None,
    *,
    tenant_engines: TenantEngineRegistry | None = None,
    redis_client=None,
    storage: StorageBackend | None = None,
) -> FastAPI:
    """Build the application.

    Collaborators not passed in are created by the lifespan at startup and
    released at shutdown.
    """

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        init_sentry(env=settings.env.value)
        engines = tenant_engines or TenantEngineRegistry(
            settings.postgres_tenant_dsn_template,
            create_schema=not settings.is_production,
        )
        client = redis_client or redis.from_url(
            settings.redis_url, decode_responses=True
        )
        app.state.tenant_engines = engines
        app.state.redis = client
        app.state.event_bus = EventBus()
        app.state.publisher = OrderEventPublisher(client, app.state.event_bus)
        app.state.storage = storage or build_storage(settings)
        logger.info("startup complete")
        try:
            yield
        finally:
            await engines.dispose()
            if redis_client is None:
                await client.aclose()

    app = FastAPI(title="Cafe API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(LanguageMiddleware, default=settings.default_language)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    error_handlers.install(app)

    app.include_router(orders_router)
    app.include_router(promo_router)
    app.include_router(payments_router)
    app.include_router(ratings_router)
    app.include_router(kds_router)
    app.include_router(owner_router)
    app.include_router(metrics_router)

    if settings.storage_backend.lower() == "local":
        app.mount(
            "/media",
            StaticFiles(directory=settings.media_dir, check_dir=False),
            name="media",
        )

    @app.get("/health")
    async def health() -> dict:
        return ok({"status": "ok"})

    return app


app = create_app()
