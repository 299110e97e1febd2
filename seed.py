"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 5 sample customers
  - 8 sample drivers with live locations around District 1, Ho Chi Minh City
  - 4 sample rides dispatched and priced through the ride service
    (straight-line routing, so no Mapbox key is needed), one of them
    moved along to COMPLETED and one CANCELLED
"""

import asyncio

from sqlalchemy import text

from dispatch_engine.config import settings
from dispatch_engine.domain.dispatcher import Dispatcher
from dispatch_engine.domain.drivers import DriverService
from dispatch_engine.domain.entities import Coordinate
from dispatch_engine.domain.enums import RideStatus, VehicleClass
from dispatch_engine.domain.geo_index import H3GeoIndex
from dispatch_engine.domain.pricing import PricingEngine
from dispatch_engine.domain.rides import RideService
from dispatch_engine.domain.routing import RouteResolver
from dispatch_engine.infrastructure.database import make_engine, make_session_factory
from dispatch_engine.infrastructure.models import CustomerModel, DriverModel
from dispatch_engine.infrastructure.repositories import SqlStorage

CUSTOMERS = [
    {"id": "c0000000-0000-4000-8000-000000000001", "name": "Linh Nguyen"},
    {"id": "c0000000-0000-4000-8000-000000000002", "name": "Minh Tran"},
    {"id": "c0000000-0000-4000-8000-000000000003", "name": "Thao Le"},
    {"id": "c0000000-0000-4000-8000-000000000004", "name": "Huy Pham"},
    {"id": "c0000000-0000-4000-8000-000000000005", "name": "Anh Vo"},
]

DRIVERS = [
    {"id": "d0000000-0000-4000-8000-000000000001", "name": "Bao Dang", "lat": 10.7700, "lng": 106.7000},
    {"id": "d0000000-0000-4000-8000-000000000002", "name": "Khoa Bui", "lat": 10.7755, "lng": 106.7019},
    {"id": "d0000000-0000-4000-8000-000000000003", "name": "Nam Do", "lat": 10.7626, "lng": 106.6822},
    {"id": "d0000000-0000-4000-8000-000000000004", "name": "Quan Ho", "lat": 10.7880, "lng": 106.7050},
    {"id": "d0000000-0000-4000-8000-000000000005", "name": "Son Ngo", "lat": 10.7980, "lng": 106.7180},
    {"id": "d0000000-0000-4000-8000-000000000006", "name": "Tam Duong", "lat": 10.8010, "lng": 106.6650},
    {"id": "d0000000-0000-4000-8000-000000000007", "name": "Vy Ly", "lat": 10.7560, "lng": 106.6670},
    {"id": "d0000000-0000-4000-8000-000000000008", "name": "Long Mai", "lat": 10.8200, "lng": 106.7500},
]

RIDES = [
    # (customer index, pickup, dropoff, vehicle class, final status)
    (0, (10.7712, 106.7010), (10.8180, 106.6590), VehicleClass.CAR, RideStatus.PENDING),
    (1, (10.7800, 106.6990), (10.7290, 106.7210), VehicleClass.BIKE, RideStatus.ACCEPTED),
    (2, (10.8000, 106.7100), (10.8200, 106.7500), VehicleClass.LUXURY, RideStatus.COMPLETED),
    (3, (10.7600, 106.6800), (10.7700, 106.7000), VehicleClass.CAR, RideStatus.CANCELLED),
]

PATH_TO = {
    RideStatus.PENDING: [],
    RideStatus.ACCEPTED: [RideStatus.ACCEPTED],
    RideStatus.COMPLETED: [RideStatus.ACCEPTED, RideStatus.ONGOING, RideStatus.COMPLETED],
    RideStatus.CANCELLED: [RideStatus.CANCELLED],
}


async def seed(session_factory):
    async with session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM drivers"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        session.add_all(CustomerModel(id=c["id"], name=c["name"]) for c in CUSTOMERS)
        session.add_all(DriverModel(id=d["id"], name=d["name"]) for d in DRIVERS)
        await session.commit()
        print(f"  Created {len(CUSTOMERS)} customers, {len(DRIVERS)} drivers")

    storage = SqlStorage(session_factory)
    geo_index = H3GeoIndex(settings.h3_resolution, settings.geo_max_rings)
    drivers = DriverService(geo_index, storage)

    # ── Live locations ────────────────────────────────────────────────
    for d in DRIVERS:
        await drivers.update_driver_location(
            d["id"], Coordinate(d["lat"], d["lng"]), status="AVAILABLE"
        )
    print(f"  Stored {len(DRIVERS)} driver locations")

    # ── Rides ─────────────────────────────────────────────────────────
    rides = RideService(
        Dispatcher(geo_index, settings.dispatch_radius_meters),
        RouteResolver(provider=None),
        PricingEngine(settings.currency),
        storage,
    )
    for customer_idx, pickup, dropoff, vehicle_class, final_status in RIDES:
        ride = await rides.create_ride(
            CUSTOMERS[customer_idx]["id"],
            Coordinate(*pickup),
            Coordinate(*dropoff),
            vehicle_class,
        )
        for status in PATH_TO[final_status]:
            ride = await rides.transition(ride.id, status)
        print(f"  Ride {ride.id}: {ride.vehicle_class.value} {ride.fare} {ride.status.value}")

    print("\nSeed complete!")


async def main():
    print("Seeding database...")
    engine = make_engine(settings.database_url)
    try:
        await seed(make_session_factory(engine))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
