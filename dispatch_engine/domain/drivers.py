"""Driver position updates and nearby-driver lookups."""

from __future__ import annotations

import logging
from typing import Optional

from .entities import Coordinate, DriverLocation, NearbyDriver
from .errors import DriverNotFound
from .geo_index import DEFAULT_RADIUS_METERS, GeoIndex
from .storage import DispatchStorage

logger = logging.getLogger(__name__)


class DriverService:
    def __init__(
        self,
        geo_index: GeoIndex,
        storage: DispatchStorage,
        default_radius_meters: float = DEFAULT_RADIUS_METERS,
    ):
        self.geo_index = geo_index
        self.storage = storage
        self.default_radius_meters = default_radius_meters

    async def update_driver_location(
        self,
        driver_id: str,
        coordinate: Coordinate,
        status: Optional[str] = None,
    ) -> bool:
        """Returns False when the update was older than the stored one."""
        coordinate.validate()
        if not await self.storage.driver_exists(driver_id):
            raise DriverNotFound(f"Driver {driver_id} not found")

        applied = await self.geo_index.upsert_location(driver_id, coordinate, status)
        if applied:
            location = await self.geo_index.get_location(driver_id)
            if location is not None:
                await self.storage.save_driver_location(location)
        return applied

    async def get_driver(self, driver_id: str) -> Optional[DriverLocation]:
        """Live location of a known driver; None before their first update."""
        if not await self.storage.driver_exists(driver_id):
            raise DriverNotFound(f"Driver {driver_id} not found")
        return await self.geo_index.get_location(driver_id)

    async def find_nearby_drivers(
        self,
        center: Coordinate,
        radius_meters: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[NearbyDriver]:
        radius = self.default_radius_meters if radius_meters is None else radius_meters
        return await self.geo_index.find_nearby(center, radius, limit)

    async def warm_up(self) -> int:
        """Load persisted live locations into the geo index."""
        loaded = 0
        for location in await self.storage.list_driver_locations():
            if not location.coordinate.is_valid():
                logger.warning(
                    "Skipping invalid stored location for driver %s",
                    location.driver_id,
                )
                continue
            if await self.geo_index.upsert_location(
                location.driver_id,
                location.coordinate,
                location.status,
                location.last_updated,
            ):
                loaded += 1
        logger.info("Geo index warmed up with %d driver locations", loaded)
        return loaded
