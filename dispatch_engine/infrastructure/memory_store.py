"""
In-process implementation of the storage port.

Used with ``STORAGE_BACKEND=memory`` for local runs and in tests.  Rides
are copied on the way in and out, so a caller holding a ``Ride`` cannot
change what is stored without calling ``save_ride``.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Optional

from dispatch_engine.domain.entities import DriverLocation, Ride
from dispatch_engine.domain.storage import DispatchStorage


class InMemoryStorage(DispatchStorage):
    def __init__(self, driver_ids: Iterable[str] = ()):
        self.drivers: set[str] = set(driver_ids)
        self.rides: dict[str, Ride] = {}
        self.driver_locations: dict[str, DriverLocation] = {}

    def register_driver(self, driver_id: str) -> None:
        self.drivers.add(driver_id)

    async def save_ride(self, ride: Ride) -> None:
        self.rides[ride.id] = dataclasses.replace(ride)

    async def get_ride(self, ride_id: str) -> Optional[Ride]:
        ride = self.rides.get(ride_id)
        return dataclasses.replace(ride) if ride is not None else None

    async def list_rides_by_customer(self, customer_id: str) -> list[Ride]:
        return self._newest_first(
            r for r in self.rides.values() if r.customer_id == customer_id
        )

    async def list_rides_by_driver(self, driver_id: str) -> list[Ride]:
        return self._newest_first(
            r for r in self.rides.values() if r.driver_id == driver_id
        )

    async def driver_exists(self, driver_id: str) -> bool:
        return driver_id in self.drivers

    async def save_driver_location(self, location: DriverLocation) -> None:
        current = self.driver_locations.get(location.driver_id)
        if current is not None and current.last_updated > location.last_updated:
            return
        self.driver_locations[location.driver_id] = location

    async def list_driver_locations(self) -> list[DriverLocation]:
        return list(self.driver_locations.values())

    @staticmethod
    def _newest_first(rides: Iterable[Ride]) -> list[Ride]:
        return [
            dataclasses.replace(r)
            for r in sorted(rides, key=lambda r: r.created_at, reverse=True)
        ]
