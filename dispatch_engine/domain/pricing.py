"""
Fare Pricing Engine
===================

Formula
-------
Fare = round_half_up(Distance_km x Rate_Per_KM[vehicle_class], 2)

Rate table (currency units / km)
--------------------------------
* BIKE    0.5
* CAR     1.0
* LUXURY  2.5

The table is closed: an unknown vehicle class is rejected, never priced
at a default rate.  Amounts are ``Decimal`` so that half-up rounding is
exact (``round()`` on floats rounds half-to-even on binary fractions).

Pure: no I/O, no shared mutable state.  Complexity: O(1).
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from .entities import PriceQuote, RouteMetrics
from .enums import VehicleClass
from .errors import UnsupportedVehicleClass

RATE_PER_KM: dict[VehicleClass, Decimal] = {
    VehicleClass.BIKE: Decimal("0.5"),
    VehicleClass.CAR: Decimal("1.0"),
    VehicleClass.LUXURY: Decimal("2.5"),
}

CENTS = Decimal("0.01")


def parse_vehicle_class(value: Union[VehicleClass, str]) -> VehicleClass:
    """Accept a ``VehicleClass`` or its exact string value."""
    try:
        vehicle_class = VehicleClass(value)
    except ValueError:
        raise UnsupportedVehicleClass(f"Unsupported vehicle class: {value!r}") from None
    if vehicle_class not in RATE_PER_KM:
        raise UnsupportedVehicleClass(f"No rate for vehicle class {vehicle_class.value}")
    return vehicle_class


class PricingEngine:
    """High-level API used by the ride service and the price endpoint."""

    def __init__(self, currency: str = "USD"):
        self.currency = currency

    @staticmethod
    def rate_per_km(vehicle_class: Union[VehicleClass, str]) -> Decimal:
        return RATE_PER_KM[parse_vehicle_class(vehicle_class)]

    def price(
        self, distance_km: float, vehicle_class: Union[VehicleClass, str]
    ) -> Decimal:
        rate = self.rate_per_km(vehicle_class)
        if not math.isfinite(distance_km) or distance_km < 0:
            raise ValueError(f"distance_km must be finite and >= 0, got {distance_km}")
        # str() first so 0.1 km is 0.1, not 0.1000000000000000055...
        raw = Decimal(str(distance_km)) * rate
        return raw.quantize(CENTS, rounding=ROUND_HALF_UP)

    def quote(
        self,
        metrics: RouteMetrics,
        vehicle_class: Optional[Union[VehicleClass, str]] = None,
    ) -> PriceQuote:
        """Price a resolved route.  ``None`` prices as CAR."""
        if vehicle_class is None:
            vehicle_class = VehicleClass.CAR
        fare = self.price(metrics.distance_km, vehicle_class)
        return PriceQuote(
            distance_km=metrics.distance_km,
            duration_min=metrics.duration_min,
            fare=fare,
            currency=self.currency,
        )
