"""
Location endpoints
==================

GET /api/v1/location/distance   -- distance and duration between two points
GET /api/v1/location/directions -- full provider directions (503 if down)
"""

from fastapi import APIRouter, Depends, Query, Request

from dispatch_engine.api.dependencies import Services, get_services
from dispatch_engine.api.middleware import limiter
from dispatch_engine.api.schemas import (
    DirectionsResponse,
    DistanceResponse,
    ErrorResponse,
)
from dispatch_engine.config import settings
from dispatch_engine.domain.entities import Coordinate
from dispatch_engine.domain.enums import TravelProfile

router = APIRouter(prefix="/location", tags=["location"])


@router.get(
    "/distance",
    response_model=DistanceResponse,
    summary="Get distance between two points",
)
@limiter.limit(settings.rate_limit)
async def get_distance(
    request: Request,
    origin_lat: float = Query(...),
    origin_lng: float = Query(...),
    destination_lat: float = Query(...),
    destination_lng: float = Query(...),
    profile: TravelProfile = Query(TravelProfile.DRIVING),
    services: Services = Depends(get_services),
):
    metrics = await services.route_resolver.resolve(
        Coordinate(origin_lat, origin_lng),
        Coordinate(destination_lat, destination_lng),
        profile,
    )
    return DistanceResponse.from_metrics(metrics)


@router.get(
    "/directions",
    response_model=DirectionsResponse,
    summary="Get directions between two points",
    responses={503: {"model": ErrorResponse, "description": "Provider unavailable."}},
)
@limiter.limit(settings.rate_limit)
async def get_directions(
    request: Request,
    origin_lat: float = Query(..., ge=-90, le=90),
    origin_lng: float = Query(..., ge=-180, le=180),
    destination_lat: float = Query(..., ge=-90, le=90),
    destination_lng: float = Query(..., ge=-180, le=180),
    profile: TravelProfile = Query(TravelProfile.DRIVING),
    alternatives: bool = Query(False),
    steps: bool = Query(True),
    geometries: str = Query("geojson", pattern="^(geojson|polyline)$"),
    language: str = Query("en", max_length=10),
    services: Services = Depends(get_services),
):
    directions = await services.route_resolver.directions(
        Coordinate(origin_lat, origin_lng),
        Coordinate(destination_lat, destination_lng),
        profile,
        alternatives=alternatives,
        steps=steps,
        geometries=geometries,
        language=language,
    )
    return DirectionsResponse.from_entity(directions)
