"""
Redis-backed geo index.

Layout
------
* ``drivers:geo``          -- GEO set (sorted set) of driver ids
* ``drivers:loc:<id>``     -- hash with ``ts`` (epoch seconds), ``lat``,
                              ``lng`` and ``status``

The last-write-wins check and both writes run inside one Lua script, so
updates for the same driver are linearizable while different drivers
never wait on each other.

Queries use ``GEOSEARCH`` to narrow candidates with a slightly inflated
radius (Redis uses a larger Earth radius than we do), then re-rank with
our haversine so results match ``H3GeoIndex`` exactly.

Redis GEO only accepts latitudes within +/-85.05112878 degrees; points
beyond that are rejected as ``InvalidCoordinate``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as aioredis

from dispatch_engine.domain.entities import Coordinate, DriverLocation, NearbyDriver
from dispatch_engine.domain.errors import InvalidCoordinate
from dispatch_engine.domain.geo_index import (
    DEFAULT_RADIUS_METERS,
    GeoIndex,
    check_query,
    ensure_aware,
    rank_nearby,
)

logger = logging.getLogger(__name__)

REDIS_MAX_LATITUDE = 85.05112878
RADIUS_SLACK = 1.001
# Farther than any two points on Earth (half the circumference is ~20 038 km)
MAX_SEARCH_METERS = 21_000_000.0

_UPSERT_LUA = """
local prev = redis.call("HGET", KEYS[2], "ts")
if prev and tonumber(prev) > tonumber(ARGV[1]) then
    return 0
end
redis.call("GEOADD", KEYS[1], ARGV[3], ARGV[2], ARGV[5])
redis.call("HSET", KEYS[2], "ts", ARGV[1], "lat", ARGV[2], "lng", ARGV[3], "status", ARGV[4])
return 1
"""


class RedisGeoIndex(GeoIndex):
    def __init__(self, client: aioredis.Redis, namespace: str = "drivers"):
        self.redis = client
        self.geo_key = f"{namespace}:geo"
        self.loc_prefix = f"{namespace}:loc:"

    def _loc_key(self, driver_id: str) -> str:
        return f"{self.loc_prefix}{driver_id}"

    async def upsert_location(
        self,
        driver_id: str,
        coordinate: Coordinate,
        status: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        _check_redis_range(coordinate.validate())
        ts = ensure_aware(updated_at)

        applied = await self.redis.eval(
            _UPSERT_LUA,
            2,
            self.geo_key,
            self._loc_key(driver_id),
            repr(ts.timestamp()),
            repr(coordinate.latitude),
            repr(coordinate.longitude),
            status or "",
            driver_id,
        )
        if not int(applied):
            logger.info("Ignoring stale location for driver %s", driver_id)
            return False
        return True

    async def find_nearby(
        self,
        center: Coordinate,
        radius_meters: float = DEFAULT_RADIUS_METERS,
        limit: Optional[int] = None,
    ) -> list[NearbyDriver]:
        check_query(center, radius_meters, limit)
        _check_redis_range(center)

        raw = await self.redis.geosearch(
            self.geo_key,
            longitude=center.longitude,
            latitude=center.latitude,
            radius=min(radius_meters * RADIUS_SLACK + 1, MAX_SEARCH_METERS),
            unit="m",
            withdist=True,
            withcoord=True,
            sort="ASC",
        )
        # each item: [member, distance, (longitude, latitude)]
        candidates = [
            (str(member), Coordinate(float(lat), float(lng)))
            for member, _dist, (lng, lat) in raw
        ]
        return rank_nearby(center, candidates, radius_meters, limit)

    async def get_location(self, driver_id: str) -> Optional[DriverLocation]:
        data = await self.redis.hgetall(self._loc_key(driver_id))
        if not data:
            return None
        return DriverLocation(
            driver_id=driver_id,
            coordinate=Coordinate(float(data["lat"]), float(data["lng"])),
            status=data.get("status") or None,
            last_updated=datetime.fromtimestamp(float(data["ts"]), tz=timezone.utc),
        )

    async def remove(self, driver_id: str) -> bool:
        removed = await self.redis.zrem(self.geo_key, driver_id)
        await self.redis.delete(self._loc_key(driver_id))
        return bool(removed)


def _check_redis_range(coordinate: Coordinate) -> Coordinate:
    if abs(coordinate.latitude) > REDIS_MAX_LATITUDE:
        raise InvalidCoordinate(
            f"Latitude {coordinate.latitude} is outside the Redis GEO range"
        )
    return coordinate
