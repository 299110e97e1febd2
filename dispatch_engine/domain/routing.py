"""
Route Resolver
==============

Turns an (origin, destination, profile) triple into ``RouteMetrics``.

Paths, in order
---------------
1. **Default** -- either coordinate is NaN or out of range: return the
   fixed default metrics (1 km / 5 min, no geometry).  The resolver is
   "always available", so callers that need strict validation must
   validate coordinates themselves.
2. **Provider** -- a single call to the routing provider, bounded by
   ``timeout_seconds``.  A usable route is returned verbatim.
3. **Fallback** -- the provider failed, timed out, answered with
   malformed data or zero routes, or none is configured: haversine
   distance and a synthetic duration of ``seconds_per_km`` per km.

There are no retries.  The fallback only raises
``RouteResolutionFailed`` if the arithmetic itself blows up, which cannot
happen for finite input.
"""

from __future__ import annotations

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from .distance import haversine_km
from .entities import Coordinate, Directions, RouteMetrics
from .enums import RouteSource, TravelProfile
from .errors import ProviderUnavailable, RouteResolutionFailed

logger = logging.getLogger(__name__)

FALLBACK_SECONDS_PER_KM = 180.0
DEFAULT_DISTANCE_METERS = 1000.0
DEFAULT_DURATION_SECONDS = 300.0


class RoutingProvider(ABC):
    """External routing service.  Must raise ``ProviderUnavailable`` on any
    failure, including a response without routes."""

    @abstractmethod
    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile,
    ) -> RouteMetrics: ...

    @abstractmethod
    async def directions(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile,
        *,
        alternatives: bool = False,
        steps: bool = True,
        geometries: str = "geojson",
        language: str = "en",
    ) -> Directions: ...


class RouteResolver:
    def __init__(
        self,
        provider: Optional[RoutingProvider] = None,
        timeout_seconds: float = 5.0,
        seconds_per_km: float = FALLBACK_SECONDS_PER_KM,
        default_distance_meters: float = DEFAULT_DISTANCE_METERS,
        default_duration_seconds: float = DEFAULT_DURATION_SECONDS,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.seconds_per_km = seconds_per_km
        self.default_metrics = RouteMetrics(
            distance_meters=default_distance_meters,
            duration_seconds=default_duration_seconds,
            geometry=None,
            source=RouteSource.DEFAULT,
        )

    async def resolve(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
    ) -> RouteMetrics:
        if not (origin.is_valid() and destination.is_valid()):
            logger.error(
                "Invalid coordinates %s -> %s, returning default route metrics",
                origin, destination,
            )
            return self.default_metrics

        if self.provider is None:
            logger.debug("No routing provider configured, using fallback")
            return self.fallback(origin, destination)

        try:
            metrics = await asyncio.wait_for(
                self.provider.route(origin, destination, profile),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Routing provider timed out after %.1fs, using fallback",
                self.timeout_seconds,
            )
            return self.fallback(origin, destination)
        except ProviderUnavailable as exc:
            logger.warning("Routing provider failed (%s), using fallback", exc)
            return self.fallback(origin, destination)

        if not _usable(metrics):
            logger.warning("Routing provider returned %r, using fallback", metrics)
            return self.fallback(origin, destination)
        return metrics

    def fallback(self, origin: Coordinate, destination: Coordinate) -> RouteMetrics:
        """Straight-line estimate.  Symmetric in its arguments."""
        try:
            km = haversine_km(
                origin.latitude, origin.longitude,
                destination.latitude, destination.longitude,
            )
        except (ArithmeticError, ValueError) as exc:
            raise RouteResolutionFailed(
                f"Fallback distance failed for {origin} -> {destination}: {exc}"
            ) from exc
        return RouteMetrics(
            distance_meters=km * 1000.0,
            duration_seconds=km * self.seconds_per_km,
            geometry=None,
            source=RouteSource.FALLBACK,
        )

    async def directions(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
        **options,
    ) -> Directions:
        """Full provider directions (steps, alternatives).  No fallback."""
        origin.validate()
        destination.validate()
        if self.provider is None:
            raise ProviderUnavailable("No routing provider configured")
        try:
            return await asyncio.wait_for(
                self.provider.directions(origin, destination, profile, **options),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderUnavailable(
                f"Routing provider timed out after {self.timeout_seconds}s"
            ) from exc


def _usable(metrics: object) -> bool:
    return isinstance(metrics, RouteMetrics) and all(
        isinstance(value, (int, float)) and math.isfinite(value) and value >= 0
        for value in (metrics.distance_meters, metrics.duration_seconds)
    )
