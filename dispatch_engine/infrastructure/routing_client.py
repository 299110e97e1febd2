"""
Mapbox Directions adapter.

Sole responsibility: talk to the Directions API over HTTP and return
normalised ``RouteMetrics`` / ``Directions``.

* coordinates are sent as ``lng,lat;lng,lat``
* ``routes[0]`` is the primary route, further routes are alternatives
* every failure (transport error, non-2xx, undecodable JSON, missing or
  negative fields, zero routes) is raised as ``ProviderUnavailable``

The shared ``httpx.AsyncClient`` is owned by the application lifespan.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from dispatch_engine.domain.entities import Coordinate, Directions, RouteMetrics
from dispatch_engine.domain.enums import RouteSource, TravelProfile
from dispatch_engine.domain.errors import ProviderUnavailable
from dispatch_engine.domain.routing import RoutingProvider

logger = logging.getLogger(__name__)


class MapboxDirectionsClient(RoutingProvider):
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        access_token: str,
        base_url: str = "https://api.mapbox.com",
    ):
        if not access_token:
            raise ValueError("Mapbox access token is required")
        self.http = http_client
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def format_coordinates(*points: Coordinate) -> str:
        return ";".join(f"{p.longitude},{p.latitude}" for p in points)

    def _url(self, origin: Coordinate, destination: Coordinate, profile: TravelProfile) -> str:
        coords = self.format_coordinates(origin, destination)
        return f"{self.base_url}/directions/v5/mapbox/{TravelProfile(profile).value}/{coords}"

    async def _fetch_routes(self, url: str, params: dict[str, str]) -> list[dict[str, Any]]:
        logger.debug("GET %s", url)
        try:
            response = await self.http.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(f"Directions request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderUnavailable("Directions response is not JSON") from exc

        routes = data.get("routes") if isinstance(data, dict) else None
        if not isinstance(routes, list) or not routes:
            raise ProviderUnavailable("Directions response contains no routes")
        return routes

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
    ) -> RouteMetrics:
        routes = await self._fetch_routes(
            self._url(origin, destination, profile),
            {"access_token": self.access_token, "geometries": "geojson"},
        )
        return _metrics(routes[0])

    async def directions(
        self,
        origin: Coordinate,
        destination: Coordinate,
        profile: TravelProfile = TravelProfile.DRIVING,
        *,
        alternatives: bool = False,
        steps: bool = True,
        geometries: str = "geojson",
        language: str = "en",
    ) -> Directions:
        params = {
            "access_token": self.access_token,
            "steps": str(steps).lower(),
            "geometries": geometries,
            "overview": "full",
            "alternatives": str(alternatives).lower(),
            "language": language,
            "annotations": "duration,distance,speed",
        }
        routes = await self._fetch_routes(self._url(origin, destination, profile), params)

        primary = _metrics(routes[0])
        return Directions(
            distance_meters=primary.distance_meters,
            duration_seconds=primary.duration_seconds,
            geometry=primary.geometry,
            steps=_steps(routes[0]),
            alternatives=[_metrics(r) for r in routes[1:]],
        )


def _metrics(route: Any) -> RouteMetrics:
    try:
        distance = float(route["distance"])
        duration = float(route["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderUnavailable(f"Malformed route in directions response: {exc}") from exc
    if not (_finite_non_negative(distance) and _finite_non_negative(duration)):
        raise ProviderUnavailable(
            f"Directions route has invalid metrics ({distance}, {duration})"
        )
    return RouteMetrics(
        distance_meters=distance,
        duration_seconds=duration,
        geometry=route.get("geometry"),
        source=RouteSource.PROVIDER,
    )


def _finite_non_negative(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def _steps(route: dict[str, Any]) -> list[Any]:
    legs = route.get("legs")
    if not legs:
        return []
    if not isinstance(legs, list) or not isinstance(legs[0], dict):
        raise ProviderUnavailable("Malformed legs in directions response")
    steps = legs[0].get("steps") or []
    if not isinstance(steps, list):
        raise ProviderUnavailable("Malformed steps in directions response")
    return steps
