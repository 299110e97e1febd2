"""
Shared test fixtures.

Everything runs in-process: the H3 geo index, in-memory storage and a
stub routing provider, plus an in-memory SQLite database (via aiosqlite)
for the SQL storage tests.  No Docker / PostgreSQL / Redis / Mapbox.
"""

import asyncio
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from dispatch_engine.domain.dispatcher import Dispatcher
from dispatch_engine.domain.drivers import DriverService
from dispatch_engine.domain.entities import Coordinate, Directions, RouteMetrics
from dispatch_engine.domain.enums import TravelProfile
from dispatch_engine.domain.geo_index import H3GeoIndex
from dispatch_engine.domain.pricing import PricingEngine
from dispatch_engine.domain.rides import RideService
from dispatch_engine.domain.routing import RouteResolver, RoutingProvider
from dispatch_engine.infrastructure.database import Base, make_session_factory
from dispatch_engine.infrastructure.memory_store import InMemoryStorage
from dispatch_engine.infrastructure.models import CustomerModel, DriverModel
from dispatch_engine.infrastructure.repositories import SqlStorage

# District 1, Ho Chi Minh City
BEN_THANH = Coordinate(10.7725, 106.6980)
NOTRE_DAME = Coordinate(10.7798, 106.6990)
TAN_SON_NHAT = Coordinate(10.8185, 106.6588)

DRIVER_IDS = ["driver1", "driver2", "driver3"]
CUSTOMER_IDS = ["customer1", "customer2"]


class StubProvider(RoutingProvider):
    """Routing provider returning canned results, failures or delays."""

    def __init__(
        self,
        metrics: Optional[RouteMetrics] = None,
        exc: Optional[Exception] = None,
        delay: float = 0.0,
        directions_result: Optional[Directions] = None,
    ):
        self.metrics = metrics
        self.exc = exc
        self.delay = delay
        self.directions_result = directions_result
        self.calls = 0

    async def _answer(self, result):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return result

    async def route(self, origin, destination, profile=TravelProfile.DRIVING):
        return await self._answer(self.metrics)

    async def directions(self, origin, destination, profile=TravelProfile.DRIVING, **options):
        return await self._answer(self.directions_result)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def geo_index() -> H3GeoIndex:
    return H3GeoIndex(resolution=8)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage(driver_ids=DRIVER_IDS)


@pytest.fixture
def resolver() -> RouteResolver:
    """Fallback-only resolver: deterministic straight-line metrics."""
    return RouteResolver(provider=None)


@pytest.fixture
def ride_service(geo_index, storage, resolver) -> RideService:
    return RideService(Dispatcher(geo_index), resolver, PricingEngine(), storage)


@pytest.fixture
def driver_service(geo_index, storage) -> DriverService:
    return DriverService(geo_index, storage)


@pytest_asyncio.fixture
async def sql_storage() -> AsyncGenerator[SqlStorage, None]:
    """Create tables on a fresh SQLite DB, seed ids, yield, then drop."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", poolclass=StaticPool, echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = make_session_factory(engine)
    async with factory() as session:
        session.add_all(DriverModel(id=d, name=d.title()) for d in DRIVER_IDS)
        session.add_all(CustomerModel(id=c, name=c.title()) for c in CUSTOMER_IDS)
        await session.commit()

    yield SqlStorage(factory)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
