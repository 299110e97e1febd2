"""
Domain entities with business logic.

Patterns used
-------------
- **Value Objects**: ``Coordinate``, ``DriverLocation``, ``RouteMetrics``
  and ``PriceQuote`` are immutable snapshots.
- **State Pattern** on ``Ride``: enforces valid lifecycle transitions
  (PENDING -> ACCEPTED -> [ONGOING] -> COMPLETED, CANCELLED from PENDING
  or ACCEPTED).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from .enums import RIDE_TRANSITIONS, RideStatus, RouteSource, VehicleClass
from .errors import IllegalTransition, InvalidCoordinate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    """WGS-84 point in degrees.

    Construction never fails, so the route resolver can still receive
    malformed input and degrade gracefully.  Callers that need strict
    input call :meth:`validate`.
    """

    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        lat, lng = self.latitude, self.longitude
        return (
            math.isfinite(lat)
            and math.isfinite(lng)
            and -90.0 <= lat <= 90.0
            and -180.0 <= lng <= 180.0
        )

    def validate(self) -> "Coordinate":
        if not self.is_valid():
            raise InvalidCoordinate(
                f"Invalid coordinate ({self.latitude}, {self.longitude})"
            )
        return self


@dataclass(frozen=True)
class DriverLocation:
    driver_id: str
    coordinate: Coordinate
    status: Optional[str] = None
    last_updated: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class NearbyDriver:
    driver_id: str
    coordinate: Coordinate
    distance_meters: float


@dataclass(frozen=True)
class RouteMetrics:
    distance_meters: float
    duration_seconds: float
    geometry: Any = None
    source: RouteSource = RouteSource.PROVIDER

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @property
    def duration_min(self) -> float:
        return self.duration_seconds / 60.0


@dataclass(frozen=True)
class Directions:
    distance_meters: float
    duration_seconds: float
    geometry: Any = None
    steps: list = field(default_factory=list)
    alternatives: list[RouteMetrics] = field(default_factory=list)


@dataclass(frozen=True)
class PriceQuote:
    distance_km: float
    duration_min: float
    fare: Decimal
    currency: str = "USD"


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Ride:
    id: str
    customer_id: str
    driver_id: str
    vehicle_class: VehicleClass
    fare: Decimal
    pickup: Coordinate
    dropoff: Coordinate
    status: RideStatus = RideStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def can_transition_to(self, new_status: RideStatus) -> bool:
        return new_status in RIDE_TRANSITIONS.get(self.status, set())

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise.

        Only ``status`` and ``updated_at`` change; the fare is fixed at
        creation time.
        """
        if not self.can_transition_to(new_status):
            raise IllegalTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self.updated_at = max(utcnow(), self.updated_at)
