"""
Driver selection: the closest driver to the pickup point wins.

The dispatcher is a pure selection over the current geo index snapshot.
It does not reserve or lock the chosen driver.
"""

from __future__ import annotations

import logging
from typing import Optional

from .entities import Coordinate
from .errors import NoDriversAvailable
from .geo_index import DEFAULT_RADIUS_METERS, GeoIndex

logger = logging.getLogger(__name__)


class Dispatcher:
    def __init__(
        self, geo_index: GeoIndex, default_radius_meters: float = DEFAULT_RADIUS_METERS
    ):
        self.geo_index = geo_index
        self.default_radius_meters = default_radius_meters

    async def select_driver(
        self, pickup: Coordinate, radius_meters: Optional[float] = None
    ) -> str:
        radius = self.default_radius_meters if radius_meters is None else radius_meters
        nearest = await self.geo_index.find_nearby(pickup, radius, limit=1)
        if not nearest:
            logger.info(
                "No drivers within %.0fm of (%.5f, %.5f)",
                radius, pickup.latitude, pickup.longitude,
            )
            raise NoDriversAvailable(f"No drivers available within {radius:.0f}m")

        chosen = nearest[0]
        logger.info(
            "Selected driver %s at %.0fm", chosen.driver_id, chosen.distance_meters
        )
        return chosen.driver_id
