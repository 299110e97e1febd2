"""
Ride endpoints
==============

POST  /api/v1/rides                        -- dispatch, price and create a ride
GET   /api/v1/rides/price                  -- quote a trip (never fails on routing)
GET   /api/v1/rides/customer/{customer_id} -- rides of a customer, newest first
GET   /api/v1/rides/driver/{driver_id}     -- rides of a driver, newest first
GET   /api/v1/rides/{ride_id}              -- ride status and fare
PATCH /api/v1/rides/{ride_id}/status       -- move the ride along its lifecycle
PATCH /api/v1/rides/{ride_id}/cancel       -- shortcut for status=CANCELLED
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from dispatch_engine.api.dependencies import Services, get_services
from dispatch_engine.api.middleware import limiter
from dispatch_engine.api.schemas import (
    ErrorResponse,
    PriceResponse,
    RideCreateRequest,
    RideResponse,
    RideStatusUpdateRequest,
)
from dispatch_engine.config import settings
from dispatch_engine.domain.entities import Coordinate
from dispatch_engine.domain.enums import RideStatus

router = APIRouter(prefix="/rides", tags=["rides"])


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Create a ride",
    responses={
        409: {"model": ErrorResponse, "description": "No drivers in the area."},
        422: {"model": ErrorResponse, "description": "Unsupported vehicle class."},
    },
)
@limiter.limit(settings.rate_limit)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    services: Services = Depends(get_services),
):
    ride = await services.rides.create_ride(
        customer_id=body.customer_id,
        pickup=Coordinate(body.pickup_lat, body.pickup_lng),
        dropoff=Coordinate(body.dropoff_lat, body.dropoff_lng),
        vehicle_class=body.vehicle_class,
    )
    return RideResponse.from_entity(ride)


@router.get(
    "/price",
    response_model=PriceResponse,
    summary="Calculate ride price",
    description=(
        "Always returns a price: when the routing provider fails the "
        "straight-line distance is used, and malformed coordinates yield "
        "the default 1 km trip."
    ),
)
@limiter.limit(settings.rate_limit)
async def calculate_price(
    request: Request,
    pickup_lat: float = Query(...),
    pickup_lng: float = Query(...),
    dropoff_lat: float = Query(...),
    dropoff_lng: float = Query(...),
    vehicle_class: Optional[str] = Query(None, description="BIKE, CAR or LUXURY"),
    services: Services = Depends(get_services),
):
    quote = await services.rides.calculate_price(
        Coordinate(pickup_lat, pickup_lng),
        Coordinate(dropoff_lat, dropoff_lng),
        vehicle_class,
    )
    return PriceResponse.from_quote(quote)


@router.get(
    "/customer/{customer_id}",
    response_model=list[RideResponse],
    summary="Get rides for a customer",
)
@limiter.limit(settings.rate_limit)
async def get_customer_rides(
    request: Request,
    customer_id: str,
    services: Services = Depends(get_services),
):
    rides = await services.rides.list_customer_rides(customer_id)
    return [RideResponse.from_entity(r) for r in rides]


@router.get(
    "/driver/{driver_id}",
    response_model=list[RideResponse],
    summary="Get rides for a driver",
)
@limiter.limit(settings.rate_limit)
async def get_driver_rides(
    request: Request,
    driver_id: str,
    services: Services = Depends(get_services),
):
    rides = await services.rides.list_driver_rides(driver_id)
    return [RideResponse.from_entity(r) for r in rides]


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get ride status and fare",
)
@limiter.limit(settings.rate_limit)
async def get_ride(
    request: Request,
    ride_id: str,
    services: Services = Depends(get_services),
):
    return RideResponse.from_entity(await services.rides.get_ride(ride_id))


@router.patch(
    "/{ride_id}/status",
    response_model=RideResponse,
    summary="Update ride status",
    responses={409: {"model": ErrorResponse, "description": "Illegal transition."}},
)
@limiter.limit(settings.rate_limit)
async def update_ride_status(
    request: Request,
    ride_id: str,
    body: RideStatusUpdateRequest,
    services: Services = Depends(get_services),
):
    ride = await services.rides.transition(ride_id, body.status)
    return RideResponse.from_entity(ride)


@router.patch(
    "/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride",
    description="Transitions a PENDING or ACCEPTED ride to CANCELLED.",
)
@limiter.limit(settings.rate_limit)
async def cancel_ride(
    request: Request,
    ride_id: str,
    services: Services = Depends(get_services),
):
    ride = await services.rides.transition(ride_id, RideStatus.CANCELLED)
    return RideResponse.from_entity(ride)
