"""
Driver endpoints
================

GET /api/v1/drivers/nearby   -- drivers around a point, closest first
PUT /api/v1/drivers/location -- report a driver's current position
GET /api/v1/drivers/{driver_id} -- a driver and their live location
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from dispatch_engine.api.dependencies import Services, get_services
from dispatch_engine.api.middleware import limiter
from dispatch_engine.api.schemas import (
    DriverLocationUpdateRequest,
    DriverResponse,
    ErrorResponse,
    LocationUpdateResponse,
    NearbyDriverResponse,
)
from dispatch_engine.config import settings
from dispatch_engine.domain.entities import Coordinate

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "/nearby",
    response_model=list[NearbyDriverResponse],
    summary="Find nearby drivers",
    description="Empty list when nobody is in range.",
)
@limiter.limit(settings.rate_limit)
async def find_nearby_drivers(
    request: Request,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: Optional[float] = Query(
        None, ge=0, allow_inf_nan=False, description="Metres, default 5000"
    ),
    limit: Optional[int] = Query(None, ge=1, le=500),
    services: Services = Depends(get_services),
):
    nearby = await services.drivers.find_nearby_drivers(
        Coordinate(latitude, longitude), radius, limit
    )
    return [NearbyDriverResponse.from_entity(n) for n in nearby]


@router.put(
    "/location",
    response_model=LocationUpdateResponse,
    summary="Update driver location",
    responses={404: {"model": ErrorResponse, "description": "Unknown driver."}},
)
@limiter.limit(settings.rate_limit)
async def update_driver_location(
    request: Request,
    body: DriverLocationUpdateRequest,
    services: Services = Depends(get_services),
):
    applied = await services.drivers.update_driver_location(
        body.driver_id, Coordinate(body.latitude, body.longitude), body.status
    )
    return LocationUpdateResponse(
        applied=applied,
        message=None if applied else "A newer location is already stored",
    )


@router.get(
    "/{driver_id}",
    response_model=DriverResponse,
    summary="Get a driver and their live location",
    description="Location fields are null until the driver's first update.",
    responses={404: {"model": ErrorResponse, "description": "Unknown driver."}},
)
@limiter.limit(settings.rate_limit)
async def get_driver(
    request: Request,
    driver_id: str,
    services: Services = Depends(get_services),
):
    location = await services.drivers.get_driver(driver_id)
    return DriverResponse.from_location(driver_id, location)
