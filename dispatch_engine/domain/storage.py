"""
Storage port.

The core calls these but does not define their durability guarantees.
Implementations live in ``dispatch_engine.infrastructure``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import DriverLocation, Ride


class DispatchStorage(ABC):
    @abstractmethod
    async def save_ride(self, ride: Ride) -> None:
        """Insert or replace the ride snapshot."""

    @abstractmethod
    async def get_ride(self, ride_id: str) -> Optional[Ride]: ...

    @abstractmethod
    async def list_rides_by_customer(self, customer_id: str) -> list[Ride]:
        """Newest first."""

    @abstractmethod
    async def list_rides_by_driver(self, driver_id: str) -> list[Ride]:
        """Newest first."""

    @abstractmethod
    async def driver_exists(self, driver_id: str) -> bool: ...

    @abstractmethod
    async def save_driver_location(self, location: DriverLocation) -> None:
        """Replace the driver's live location unless the stored one is newer.

        No history is kept.
        """

    @abstractmethod
    async def list_driver_locations(self) -> list[DriverLocation]: ...
