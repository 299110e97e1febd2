"""
Ride lifecycle service.

``create_ride`` runs every sub-computation (dispatch, route, fare) before
it touches storage, and writes exactly once at the end.  A failure at any
step therefore leaves no ride behind: callers either get a fully formed
PENDING ride or an exception.

``transition`` only moves the status along ``RIDE_TRANSITIONS``; it never
re-dispatches and never re-prices.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Union

from .dispatcher import Dispatcher
from .entities import Coordinate, PriceQuote, Ride
from .enums import RideStatus, TravelProfile, VehicleClass
from .errors import IllegalTransition, RideNotFound
from .pricing import PricingEngine, parse_vehicle_class
from .routing import RouteResolver
from .storage import DispatchStorage

logger = logging.getLogger(__name__)


class RideService:
    def __init__(
        self,
        dispatcher: Dispatcher,
        route_resolver: RouteResolver,
        pricing: PricingEngine,
        storage: DispatchStorage,
        profile: TravelProfile = TravelProfile.DRIVING,
    ):
        self.dispatcher = dispatcher
        self.route_resolver = route_resolver
        self.pricing = pricing
        self.storage = storage
        self.profile = profile

    async def create_ride(
        self,
        customer_id: str,
        pickup: Coordinate,
        dropoff: Coordinate,
        vehicle_class: Union[VehicleClass, str],
    ) -> Ride:
        vehicle_class = parse_vehicle_class(vehicle_class)
        pickup.validate()
        dropoff.validate()

        driver_id = await self.dispatcher.select_driver(pickup)
        metrics = await self.route_resolver.resolve(pickup, dropoff, self.profile)
        fare = self.pricing.price(metrics.distance_km, vehicle_class)

        ride = Ride(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            driver_id=driver_id,
            vehicle_class=vehicle_class,
            fare=fare,
            pickup=pickup,
            dropoff=dropoff,
            status=RideStatus.PENDING,
        )
        await self.storage.save_ride(ride)
        logger.info(
            "Ride %s created: customer=%s driver=%s %.2fkm (%s) fare=%s",
            ride.id, customer_id, driver_id, metrics.distance_km,
            metrics.source.value, fare,
        )
        return ride

    async def transition(
        self, ride_id: str, target_status: Union[RideStatus, str]
    ) -> Ride:
        try:
            target = RideStatus(target_status)
        except ValueError:
            raise IllegalTransition(f"Unknown ride status: {target_status!r}") from None

        ride = await self.get_ride(ride_id)
        previous = ride.status
        ride.transition_to(target)
        await self.storage.save_ride(ride)
        logger.info("Ride %s: %s -> %s", ride.id, previous.value, target.value)
        return ride

    async def get_ride(self, ride_id: str) -> Ride:
        ride = await self.storage.get_ride(ride_id)
        if ride is None:
            raise RideNotFound(f"Ride {ride_id} not found")
        return ride

    async def list_customer_rides(self, customer_id: str) -> list[Ride]:
        return await self.storage.list_rides_by_customer(customer_id)

    async def list_driver_rides(self, driver_id: str) -> list[Ride]:
        return await self.storage.list_rides_by_driver(driver_id)

    async def calculate_price(
        self,
        pickup: Coordinate,
        dropoff: Coordinate,
        vehicle_class: Optional[Union[VehicleClass, str]] = None,
    ) -> PriceQuote:
        """Quote a trip.  Always resolves a number: route failures degrade
        to the fallback or default metrics."""
        if vehicle_class is not None:
            vehicle_class = parse_vehicle_class(vehicle_class)
        metrics = await self.route_resolver.resolve(pickup, dropoff, self.profile)
        return self.pricing.quote(metrics, vehicle_class)
