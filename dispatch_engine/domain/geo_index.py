"""
Driver Geo Index
================

Answers two questions: "where is driver X now" (upsert) and "which drivers
are within R metres of point P" (nearest-neighbour query).

Spatial Binning
---------------
``H3GeoIndex`` buckets drivers into H3 hexagons (default resolution 8,
~0.46 km edge).  A query looks at the ``grid_disk`` of rings around the
center cell that is guaranteed to contain every point within the radius:

    k = ceil((R + 2e) / 1.5e) + 1

where *e* is the edge length of the center cell.  Ring *k* cells are at
least ``1.5 * k * e`` away, and a driver's own cell center is at most *e*
from the driver (likewise for the query point), hence the ``2e`` term.
The extra ring absorbs H3's cell-size variation between neighbours.

Ranking
-------
Candidates are filtered by exact haversine distance, then ordered by
``(distance, driver_id)`` so ties are deterministic.

Complexity
----------
* upsert:       O(1)
* find_nearby:  O(k² + m log l) where m = drivers in the disk, l = limit;
                falls back to a full O(N) scan when the disk has more
                cells than there are drivers, needs more than
                ``max_rings`` rings, or the radius is infinite.

Consistency
-----------
Updates are last-write-wins on ``last_updated``; an older update for the
same driver is ignored.  No method awaits, so on the event loop every
upsert and every query is atomic with respect to the others.
"""

from __future__ import annotations

import heapq
import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

import h3

from .distance import haversine_m
from .entities import Coordinate, DriverLocation, NearbyDriver, utcnow

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 5000.0


def ensure_aware(ts: Optional[datetime]) -> datetime:
    """Default to *now*; naive timestamps are taken to be UTC."""
    if ts is None:
        return utcnow()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def check_query(
    center: Coordinate, radius_meters: float, limit: Optional[int]
) -> None:
    center.validate()
    if not radius_meters >= 0:
        raise ValueError(f"radius_meters must be >= 0, got {radius_meters}")
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")


def rank_nearby(
    center: Coordinate,
    candidates: Iterable[tuple[str, Coordinate]],
    radius_meters: float,
    limit: Optional[int] = None,
) -> list[NearbyDriver]:
    """Filter *candidates* by radius, then order by (distance, driver_id)."""
    within: list[NearbyDriver] = []
    for driver_id, coord in candidates:
        d = haversine_m(
            center.latitude, center.longitude, coord.latitude, coord.longitude
        )
        if d <= radius_meters:
            within.append(NearbyDriver(driver_id, coord, d))

    key = lambda n: (n.distance_meters, n.driver_id)  # noqa: E731
    if limit is not None:
        return heapq.nsmallest(limit, within, key=key)
    return sorted(within, key=key)


class GeoIndex(ABC):
    """Live driver positions with nearest-neighbour lookup."""

    @abstractmethod
    async def upsert_location(
        self,
        driver_id: str,
        coordinate: Coordinate,
        status: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        """Store the driver's position.  Returns False for a stale update."""

    @abstractmethod
    async def find_nearby(
        self,
        center: Coordinate,
        radius_meters: float = DEFAULT_RADIUS_METERS,
        limit: Optional[int] = None,
    ) -> list[NearbyDriver]: ...

    @abstractmethod
    async def get_location(self, driver_id: str) -> Optional[DriverLocation]: ...

    @abstractmethod
    async def remove(self, driver_id: str) -> bool: ...


class H3GeoIndex(GeoIndex):
    """In-process index bucketing drivers by H3 cell."""

    def __init__(self, resolution: int = 8, max_rings: int = 60):
        self.resolution = resolution
        self.max_rings = max_rings
        self._locations: dict[str, DriverLocation] = {}
        self._driver_cell: dict[str, str] = {}
        self._cells: dict[str, set[str]] = defaultdict(set)

    def __len__(self) -> int:
        return len(self._locations)

    async def upsert_location(
        self,
        driver_id: str,
        coordinate: Coordinate,
        status: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        coordinate.validate()
        ts = ensure_aware(updated_at)

        current = self._locations.get(driver_id)
        if current is not None and current.last_updated > ts:
            logger.info(
                "Ignoring stale location for driver %s (%s < %s)",
                driver_id, ts.isoformat(), current.last_updated.isoformat(),
            )
            return False

        cell = h3.latlng_to_cell(
            coordinate.latitude, coordinate.longitude, self.resolution
        )
        old_cell = self._driver_cell.get(driver_id)
        if old_cell != cell:
            if old_cell is not None:
                self._discard(old_cell, driver_id)
            self._cells[cell].add(driver_id)
            self._driver_cell[driver_id] = cell

        self._locations[driver_id] = DriverLocation(
            driver_id=driver_id,
            coordinate=coordinate,
            status=status,
            last_updated=ts,
        )
        return True

    async def find_nearby(
        self,
        center: Coordinate,
        radius_meters: float = DEFAULT_RADIUS_METERS,
        limit: Optional[int] = None,
    ) -> list[NearbyDriver]:
        check_query(center, radius_meters, limit)
        if not self._locations:
            return []

        driver_ids = self._ring_candidates(center, radius_meters)
        if driver_ids is None:
            driver_ids = list(self._locations)

        candidates = []
        for driver_id in driver_ids:
            loc = self._locations.get(driver_id)
            if loc is not None:
                candidates.append((driver_id, loc.coordinate))
        return rank_nearby(center, candidates, radius_meters, limit)

    async def get_location(self, driver_id: str) -> Optional[DriverLocation]:
        return self._locations.get(driver_id)

    async def remove(self, driver_id: str) -> bool:
        loc = self._locations.pop(driver_id, None)
        cell = self._driver_cell.pop(driver_id, None)
        if cell is not None:
            self._discard(cell, driver_id)
        return loc is not None

    # ── Internals ─────────────────────────────────────────────────────

    def _discard(self, cell: str, driver_id: str) -> None:
        bucket = self._cells.get(cell)
        if bucket is None:
            return
        bucket.discard(driver_id)
        if not bucket:
            del self._cells[cell]

    def _ring_candidates(
        self, center: Coordinate, radius_meters: float
    ) -> Optional[list[str]]:
        """Drivers in the covering disk, or None when a full scan is cheaper."""
        # An unbounded radius covers the whole globe
        if not math.isfinite(radius_meters):
            return None

        origin = h3.latlng_to_cell(
            center.latitude, center.longitude, self.resolution
        )
        rings = self._rings_for(origin, radius_meters)
        disk_cells = 3 * rings * (rings + 1) + 1
        if rings > self.max_rings or disk_cells > len(self._locations):
            return None
        return [
            driver_id
            for cell in h3.grid_disk(origin, rings)
            for driver_id in self._cells.get(cell, ())
        ]

    @staticmethod
    def _rings_for(origin: str, radius_meters: float) -> int:
        area = h3.cell_area(origin, unit="m^2")
        edge = math.sqrt(2 * area / (3 * math.sqrt(3)))
        return math.ceil((radius_meters + 2 * edge) / (1.5 * edge)) + 1
