"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only, translating between ORM rows and domain
entities.  ``SqlStorage`` implements the storage port on top of them,
one committed unit-of-work per call.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import DriverLocationModel, DriverModel, RideModel
from dispatch_engine.domain.entities import Coordinate, DriverLocation, Ride
from dispatch_engine.domain.enums import RideStatus, VehicleClass
from dispatch_engine.domain.storage import DispatchStorage


def _aware(ts: datetime) -> datetime:
    # SQLite drops tzinfo; values are always written in UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def ride_to_entity(row: RideModel) -> Ride:
    return Ride(
        id=row.id,
        customer_id=row.customer_id,
        driver_id=row.driver_id,
        vehicle_class=VehicleClass(row.vehicle_class),
        fare=row.fare,
        pickup=Coordinate(row.pickup_lat, row.pickup_lng),
        dropoff=Coordinate(row.dropoff_lat, row.dropoff_lng),
        status=RideStatus(row.status),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, ride: Ride) -> None:
        row = await self.session.get(RideModel, ride.id)
        if row is None:
            row = RideModel(id=ride.id)
            self.session.add(row)
        row.customer_id = ride.customer_id
        row.driver_id = ride.driver_id
        row.vehicle_class = ride.vehicle_class
        row.status = ride.status
        row.fare = ride.fare
        row.pickup_lat = ride.pickup.latitude
        row.pickup_lng = ride.pickup.longitude
        row.dropoff_lat = ride.dropoff.latitude
        row.dropoff_lng = ride.dropoff.longitude
        row.created_at = ride.created_at
        row.updated_at = ride.updated_at
        await self.session.flush()

    async def get_by_id(self, ride_id: str) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def list_by_customer(self, customer_id: str) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.customer_id == customer_id)
            .order_by(RideModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_by_driver(self, driver_id: str) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .order_by(RideModel.created_at.desc())
        )
        return list(result.scalars().all())


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: str) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def upsert_location(self, location: DriverLocation) -> bool:
        """Last-write-wins: returns False and keeps the row when it is newer."""
        row = await self.session.get(
            DriverLocationModel, location.driver_id, with_for_update=True
        )
        if row is None:
            row = DriverLocationModel(driver_id=location.driver_id)
            self.session.add(row)
        elif _aware(row.updated_at) > _aware(location.last_updated):
            return False
        row.latitude = location.coordinate.latitude
        row.longitude = location.coordinate.longitude
        row.status = location.status
        row.updated_at = location.last_updated
        await self.session.flush()
        return True

    async def get_locations(self) -> list[DriverLocationModel]:
        result = await self.session.execute(select(DriverLocationModel))
        return list(result.scalars().all())


class SqlStorage(DispatchStorage):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def save_ride(self, ride: Ride) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await RideRepository(session).upsert(ride)

    async def get_ride(self, ride_id: str) -> Optional[Ride]:
        async with self.session_factory() as session:
            row = await RideRepository(session).get_by_id(ride_id)
            return ride_to_entity(row) if row is not None else None

    async def list_rides_by_customer(self, customer_id: str) -> list[Ride]:
        async with self.session_factory() as session:
            rows = await RideRepository(session).list_by_customer(customer_id)
            return [ride_to_entity(r) for r in rows]

    async def list_rides_by_driver(self, driver_id: str) -> list[Ride]:
        async with self.session_factory() as session:
            rows = await RideRepository(session).list_by_driver(driver_id)
            return [ride_to_entity(r) for r in rows]

    async def driver_exists(self, driver_id: str) -> bool:
        async with self.session_factory() as session:
            return await DriverRepository(session).get_by_id(driver_id) is not None

    async def save_driver_location(self, location: DriverLocation) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await DriverRepository(session).upsert_location(location)

    async def list_driver_locations(self) -> list[DriverLocation]:
        async with self.session_factory() as session:
            rows = await DriverRepository(session).get_locations()
            return [
                DriverLocation(
                    driver_id=r.driver_id,
                    coordinate=Coordinate(r.latitude, r.longitude),
                    status=r.status,
                    last_updated=_aware(r.updated_at),
                )
                for r in rows
            ]
