"""Tests for driver location updates, nearby lookups and index warm-up."""

from datetime import datetime, timedelta, timezone

import pytest

from dispatch_engine.domain.drivers import DriverService
from dispatch_engine.domain.entities import Coordinate, DriverLocation
from dispatch_engine.domain.errors import DriverNotFound, InvalidCoordinate
from dispatch_engine.domain.geo_index import H3GeoIndex
from tests.conftest import BEN_THANH, NOTRE_DAME, TAN_SON_NHAT


@pytest.mark.asyncio
async def test_update_is_indexed_and_persisted(driver_service, geo_index, storage):
    applied = await driver_service.update_driver_location(
        "driver1", NOTRE_DAME, status="AVAILABLE"
    )

    assert applied is True
    indexed = await geo_index.get_location("driver1")
    assert indexed.coordinate == NOTRE_DAME
    assert storage.driver_locations["driver1"] == indexed


@pytest.mark.asyncio
async def test_unknown_driver_rejected(driver_service, geo_index, storage):
    with pytest.raises(DriverNotFound):
        await driver_service.update_driver_location("ghost", NOTRE_DAME)
    assert len(geo_index) == 0
    assert storage.driver_locations == {}


@pytest.mark.asyncio
async def test_invalid_coordinate_rejected(driver_service, storage):
    with pytest.raises(InvalidCoordinate):
        await driver_service.update_driver_location("driver1", Coordinate(91.0, 0.0))
    assert storage.driver_locations == {}


@pytest.mark.asyncio
async def test_move_replaces_previous_position(driver_service):
    await driver_service.update_driver_location("driver1", TAN_SON_NHAT)
    await driver_service.update_driver_location("driver1", NOTRE_DAME)

    nearby = await driver_service.find_nearby_drivers(BEN_THANH)

    assert [n.driver_id for n in nearby] == ["driver1"]
    assert nearby[0].coordinate == NOTRE_DAME


@pytest.mark.asyncio
async def test_find_nearby_default_radius_and_limit(driver_service):
    await driver_service.update_driver_location("driver1", NOTRE_DAME)
    await driver_service.update_driver_location("driver2", Coordinate(10.7730, 106.6985))
    await driver_service.update_driver_location("driver3", TAN_SON_NHAT)

    nearby = await driver_service.find_nearby_drivers(BEN_THANH)
    assert [n.driver_id for n in nearby] == ["driver2", "driver1"]

    wide = await driver_service.find_nearby_drivers(BEN_THANH, radius_meters=10_000, limit=2)
    assert [n.driver_id for n in wide] == ["driver2", "driver1"]


@pytest.mark.asyncio
async def test_warm_up_loads_stored_locations(storage):
    now = datetime.now(timezone.utc)
    await storage.save_driver_location(
        DriverLocation("driver1", NOTRE_DAME, "AVAILABLE", now)
    )
    await storage.save_driver_location(
        DriverLocation("driver2", Coordinate(float("nan"), 106.7), None, now)
    )
    index = H3GeoIndex()
    service = DriverService(index, storage)

    assert await service.warm_up() == 1

    location = await index.get_location("driver1")
    assert location.last_updated == now
    assert location.status == "AVAILABLE"
    assert await index.get_location("driver2") is None


@pytest.mark.asyncio
async def test_warm_up_does_not_override_newer_live_position(storage):
    index = H3GeoIndex()
    service = DriverService(index, storage)
    await service.update_driver_location("driver1", NOTRE_DAME)
    old = datetime.now(timezone.utc) - timedelta(hours=1)
    storage.driver_locations["driver1"] = DriverLocation("driver1", TAN_SON_NHAT, None, old)

    assert await service.warm_up() == 0
    assert (await index.get_location("driver1")).coordinate == NOTRE_DAME


@pytest.mark.asyncio
async def test_get_driver_returns_live_location(driver_service):
    await driver_service.update_driver_location("driver1", NOTRE_DAME, status="AVAILABLE")

    location = await driver_service.get_driver("driver1")

    assert location.coordinate == NOTRE_DAME
    assert location.status == "AVAILABLE"


@pytest.mark.asyncio
async def test_get_driver_before_first_update(driver_service):
    assert await driver_service.get_driver("driver2") is None


@pytest.mark.asyncio
async def test_get_unknown_driver(driver_service):
    with pytest.raises(DriverNotFound):
        await driver_service.get_driver("ghost")


@pytest.mark.asyncio
async def test_stored_location_keeps_newest(storage):
    now = datetime.now(timezone.utc)
    await storage.save_driver_location(DriverLocation("driver1", NOTRE_DAME, None, now))
    await storage.save_driver_location(
        DriverLocation("driver1", TAN_SON_NHAT, None, now - timedelta(minutes=5))
    )

    assert storage.driver_locations["driver1"].coordinate == NOTRE_DAME
