"""
FastAPI application factory.

* Registers routes for rides, drivers, location and admin.
* Builds and tears down process-wide handles (HTTP client, Redis, DB
  engine) via lifespan events, and warms the geo index from storage.
* Renders every ``DispatchError`` with its own status code.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dispatch_engine.api.dependencies import build_services
from dispatch_engine.api.middleware import limiter
from dispatch_engine.api.routes import admin, drivers, location, rides
from dispatch_engine.config import settings
from dispatch_engine.domain.errors import DispatchError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open collaborator handles on startup; close them on shutdown."""
    http_client = httpx.AsyncClient(timeout=settings.routing_timeout_seconds)

    redis = None
    if settings.geo_index_backend == "redis":
        from dispatch_engine.infrastructure.redis_client import get_redis

        redis = await get_redis()

    engine = None
    if settings.storage_backend == "sql":
        from dispatch_engine.infrastructure.database import (
            make_engine,
            make_session_factory,
        )
        from dispatch_engine.infrastructure.repositories import SqlStorage

        engine = make_engine(settings.database_url)
        storage = SqlStorage(make_session_factory(engine))
    else:
        from dispatch_engine.infrastructure.memory_store import InMemoryStorage

        storage = InMemoryStorage()

    services = build_services(settings, storage, http_client=http_client, redis=redis)
    app.state.services = services
    if settings.geo_index_backend != "redis":
        await services.drivers.warm_up()
    logger.info(
        "Dispatch engine ready (storage=%s, geo_index=%s, routing=%s)",
        settings.storage_backend,
        settings.geo_index_backend,
        "mapbox" if services.route_resolver.provider else "fallback-only",
    )

    yield

    await http_client.aclose()
    if redis is not None:
        from dispatch_engine.infrastructure.redis_client import close_redis

        await close_redis()
    if engine is not None:
        await engine.dispose()
    logger.info("Dispatch engine stopped")


async def _dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride Dispatch API",
        description=(
            "Matches ride requests to the nearest driver, resolves trip "
            "distance and duration with a straight-line fallback when the "
            "routing provider is unavailable, prices trips by vehicle class "
            "and tracks each ride through its lifecycle."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(DispatchError, _dispatch_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(location.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
