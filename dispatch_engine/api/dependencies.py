"""FastAPI dependency injection helpers.

The lifespan builds one ``Services`` bundle per process and parks it on
``app.state``; routes receive it through ``get_services``.  Tests swap it
with ``app.dependency_overrides[get_services]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
import redis.asyncio as aioredis
from fastapi import Request

from dispatch_engine.config import Settings
from dispatch_engine.domain.dispatcher import Dispatcher
from dispatch_engine.domain.drivers import DriverService
from dispatch_engine.domain.geo_index import GeoIndex, H3GeoIndex
from dispatch_engine.domain.pricing import PricingEngine
from dispatch_engine.domain.rides import RideService
from dispatch_engine.domain.routing import RouteResolver, RoutingProvider
from dispatch_engine.domain.storage import DispatchStorage


@dataclass
class Services:
    geo_index: GeoIndex
    storage: DispatchStorage
    route_resolver: RouteResolver
    pricing: PricingEngine
    dispatcher: Dispatcher
    rides: RideService
    drivers: DriverService


def build_services(
    settings: Settings,
    storage: DispatchStorage,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    redis: Optional[aioredis.Redis] = None,
    provider: Optional[RoutingProvider] = None,
) -> Services:
    """Wire the core components from *settings*.

    ``provider`` wins over building a Mapbox client from ``http_client``;
    with neither (or no API key) the resolver runs on its fallback only.
    """
    if settings.geo_index_backend == "redis":
        if redis is None:
            raise ValueError("geo_index_backend=redis needs a Redis client")
        from dispatch_engine.infrastructure.redis_geo import RedisGeoIndex

        geo_index: GeoIndex = RedisGeoIndex(redis)
    else:
        geo_index = H3GeoIndex(settings.h3_resolution, settings.geo_max_rings)

    if provider is None and http_client is not None and settings.mapbox_api_key:
        from dispatch_engine.infrastructure.routing_client import (
            MapboxDirectionsClient,
        )

        provider = MapboxDirectionsClient(
            http_client, settings.mapbox_api_key, settings.routing_base_url
        )

    resolver = RouteResolver(
        provider,
        timeout_seconds=settings.routing_timeout_seconds,
        seconds_per_km=settings.fallback_seconds_per_km,
        default_distance_meters=settings.default_distance_meters,
        default_duration_seconds=settings.default_duration_seconds,
    )
    pricing = PricingEngine(settings.currency)
    dispatcher = Dispatcher(geo_index, settings.dispatch_radius_meters)

    return Services(
        geo_index=geo_index,
        storage=storage,
        route_resolver=resolver,
        pricing=pricing,
        dispatcher=dispatcher,
        rides=RideService(dispatcher, resolver, pricing, storage),
        drivers=DriverService(geo_index, storage, settings.dispatch_radius_meters),
    )


async def get_services(request: Request) -> Services:
    return request.app.state.services
