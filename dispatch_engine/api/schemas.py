"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from dispatch_engine.domain.entities import (
    Directions,
    DriverLocation,
    NearbyDriver,
    PriceQuote,
    Ride,
    RouteMetrics,
)
from dispatch_engine.domain.enums import RideStatus


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=36)
    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)
    dropoff_lat: float = Field(..., ge=-90, le=90)
    dropoff_lng: float = Field(..., ge=-180, le=180)
    # Plain string: unknown classes are rejected by the pricing engine
    vehicle_class: str = Field(..., description="BIKE, CAR or LUXURY")


class RideStatusUpdateRequest(BaseModel):
    status: RideStatus


class DriverLocationUpdateRequest(BaseModel):
    driver_id: str = Field(..., min_length=1, max_length=36)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    status: Optional[str] = Field(None, max_length=40)


# ── Responses ─────────────────────────────────────────────────────────


class RideResponse(BaseModel):
    id: str
    customer_id: str
    driver_id: str
    vehicle_class: str
    status: str
    fare: float
    pickup_lat: float
    pickup_lng: float
    dropoff_lat: float
    dropoff_lng: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, ride: Ride) -> "RideResponse":
        return cls(
            id=ride.id,
            customer_id=ride.customer_id,
            driver_id=ride.driver_id,
            vehicle_class=ride.vehicle_class.value,
            status=ride.status.value,
            fare=float(ride.fare),
            pickup_lat=ride.pickup.latitude,
            pickup_lng=ride.pickup.longitude,
            dropoff_lat=ride.dropoff.latitude,
            dropoff_lng=ride.dropoff.longitude,
            created_at=ride.created_at,
            updated_at=ride.updated_at,
        )


class PriceResponse(BaseModel):
    distance_km: float
    duration_min: float
    fare: float
    currency: str

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "PriceResponse":
        return cls(
            distance_km=quote.distance_km,
            duration_min=quote.duration_min,
            fare=float(quote.fare),
            currency=quote.currency,
        )


class NearbyDriverResponse(BaseModel):
    driver_id: str
    latitude: float
    longitude: float
    distance_meters: float

    @classmethod
    def from_entity(cls, nearby: NearbyDriver) -> "NearbyDriverResponse":
        return cls(
            driver_id=nearby.driver_id,
            latitude=nearby.coordinate.latitude,
            longitude=nearby.coordinate.longitude,
            distance_meters=nearby.distance_meters,
        )


class DriverResponse(BaseModel):
    driver_id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[str] = None
    last_updated: Optional[datetime] = None

    @classmethod
    def from_location(
        cls, driver_id: str, location: Optional[DriverLocation]
    ) -> "DriverResponse":
        if location is None:
            return cls(driver_id=driver_id)
        return cls(
            driver_id=driver_id,
            latitude=location.coordinate.latitude,
            longitude=location.coordinate.longitude,
            status=location.status,
            last_updated=location.last_updated,
        )


class LocationUpdateResponse(BaseModel):
    success: bool = True
    applied: bool
    message: Optional[str] = None


class DistanceResponse(BaseModel):
    distance_meters: float
    distance_km: float
    duration_seconds: float
    duration_min: float
    geometry: Any = None
    source: str

    @classmethod
    def from_metrics(cls, metrics: RouteMetrics) -> "DistanceResponse":
        return cls(
            distance_meters=metrics.distance_meters,
            distance_km=metrics.distance_km,
            duration_seconds=metrics.duration_seconds,
            duration_min=metrics.duration_min,
            geometry=metrics.geometry,
            source=metrics.source.value,
        )


class DirectionsResponse(BaseModel):
    distance: float
    duration: float
    geometry: Any = None
    steps: list[Any] = []
    alternatives: list[DistanceResponse] = []

    @classmethod
    def from_entity(cls, directions: Directions) -> "DirectionsResponse":
        return cls(
            distance=directions.distance_meters,
            duration=directions.duration_seconds,
            geometry=directions.geometry,
            steps=directions.steps,
            alternatives=[
                DistanceResponse.from_metrics(m) for m in directions.alternatives
            ],
        )


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
