"""
Integration tests for the REST API endpoints.

The app runs on in-memory storage, the H3 geo index and a stub routing
provider.  The ``Services`` bundle is injected through
``dependency_overrides`` so no lifespan handles are opened.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dispatch_engine.api.app import create_app
from dispatch_engine.api.dependencies import build_services, get_services
from dispatch_engine.api.middleware import limiter
from dispatch_engine.config import Settings
from dispatch_engine.domain.entities import Directions, RouteMetrics
from dispatch_engine.domain.errors import ProviderUnavailable
from dispatch_engine.infrastructure.memory_store import InMemoryStorage
from tests.conftest import DRIVER_IDS, StubProvider

TEST_SETTINGS = Settings(
    storage_backend="memory",
    geo_index_backend="memory",
    mapbox_api_key="",
)

RIDE_BODY = {
    "customer_id": "customer1",
    "pickup_lat": 10.7725,
    "pickup_lng": 106.6980,
    "dropoff_lat": 10.8185,
    "dropoff_lng": 106.6588,
    "vehicle_class": "CAR",
}


def _make_client(provider=None, settings: Settings = TEST_SETTINGS):
    services = build_services(
        settings, InMemoryStorage(DRIVER_IDS), provider=provider
    )
    app = create_app()

    async def _services():
        return services

    app.dependency_overrides[get_services] = _services
    limiter.reset()
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client():
    """AsyncClient on a fallback-only app (no routing provider)."""
    async with _make_client() as ac:
        yield ac


async def _put_driver(client: AsyncClient, driver_id: str, lat: float, lng: float):
    resp = await client.put(
        "/api/v1/drivers/location",
        json={"driver_id": driver_id, "latitude": lat, "longitude": lng},
    )
    assert resp.status_code == 200
    return resp


async def _create_ride(client: AsyncClient, **overrides):
    await _put_driver(client, "driver1", 10.7730, 106.6985)
    return await client.post("/api/v1/rides", json={**RIDE_BODY, **overrides})


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_ride_returns_201(client: AsyncClient):
    resp = await _create_ride(client)
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["driver_id"] == "driver1"
    assert data["vehicle_class"] == "CAR"
    assert data["fare"] > 6.0
    assert data["id"]


@pytest.mark.asyncio
async def test_create_ride_without_drivers_is_409(client: AsyncClient):
    resp = await client.post("/api/v1/rides", json=RIDE_BODY)
    assert resp.status_code == 409
    assert "No drivers" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_create_ride_unknown_vehicle_class_is_422(client: AsyncClient):
    resp = await _create_ride(client, vehicle_class="SCOOTER")
    assert resp.status_code == 422
    assert "SCOOTER" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_create_ride_out_of_range_coordinate_is_422(client: AsyncClient):
    resp = await _create_ride(client, pickup_lat=91.0)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_ride(client: AsyncClient):
    ride_id = (await _create_ride(client)).json()["id"]
    resp = await client.get(f"/api/v1/rides/{ride_id}")
    assert resp.status_code == 200
    assert resp.json()["id"] == ride_id


@pytest.mark.asyncio
async def test_get_ride_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/rides/9999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_status_lifecycle(client: AsyncClient):
    ride_id = (await _create_ride(client)).json()["id"]

    for status in ("ACCEPTED", "ONGOING", "COMPLETED"):
        resp = await client.patch(
            f"/api/v1/rides/{ride_id}/status", json={"status": status}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == status


@pytest.mark.asyncio
async def test_illegal_status_change_is_409(client: AsyncClient):
    ride_id = (await _create_ride(client)).json()["id"]
    resp = await client.patch(
        f"/api/v1/rides/{ride_id}/status", json={"status": "COMPLETED"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_cancel_pending_ride(client: AsyncClient):
    ride_id = (await _create_ride(client)).json()["id"]
    resp = await client.patch(f"/api/v1/rides/{ride_id}/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"


@pytest.mark.asyncio
async def test_cancel_already_cancelled_ride_fails(client: AsyncClient):
    ride_id = (await _create_ride(client)).json()["id"]
    await client.patch(f"/api/v1/rides/{ride_id}/cancel")
    resp = await client.patch(f"/api/v1/rides/{ride_id}/cancel")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_customer_and_driver_listings(client: AsyncClient):
    first = (await _create_ride(client)).json()["id"]
    second = (await _create_ride(client, vehicle_class="BIKE")).json()["id"]

    by_customer = await client.get("/api/v1/rides/customer/customer1")
    by_driver = await client.get("/api/v1/rides/driver/driver1")

    assert {r["id"] for r in by_customer.json()} == {first, second}
    assert {r["id"] for r in by_driver.json()} == {first, second}
    assert (await client.get("/api/v1/rides/customer/nobody")).json() == []


@pytest.mark.asyncio
async def test_price_quote(client: AsyncClient):
    resp = await client.get(
        "/api/v1/rides/price",
        params={
            "pickup_lat": 10.80, "pickup_lng": 106.70,
            "dropoff_lat": 10.82, "dropoff_lng": 106.75,
            "vehicle_class": "LUXURY",
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["fare"] == pytest.approx(round(data["distance_km"] * 2.5, 2), abs=0.006)
    assert data["duration_min"] == pytest.approx(data["distance_km"] * 3)
    assert data["currency"] == "USD"


@pytest.mark.asyncio
async def test_price_with_out_of_range_coordinates_uses_default_trip(client: AsyncClient):
    resp = await client.get(
        "/api/v1/rides/price",
        params={
            "pickup_lat": 95.0, "pickup_lng": 106.70,
            "dropoff_lat": 10.82, "dropoff_lng": 106.75,
        },
    )
    assert resp.status_code == 200
    assert resp.json()["distance_km"] == 1.0
    assert resp.json()["fare"] == 1.0


@pytest.mark.asyncio
async def test_price_unknown_vehicle_class_is_422(client: AsyncClient):
    resp = await client.get(
        "/api/v1/rides/price",
        params={
            "pickup_lat": 10.80, "pickup_lng": 106.70,
            "dropoff_lat": 10.82, "dropoff_lng": 106.75,
            "vehicle_class": "SCOOTER",
        },
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_nearby_drivers(client: AsyncClient):
    await _put_driver(client, "driver1", 10.7798, 106.6990)
    await _put_driver(client, "driver2", 10.7730, 106.6985)
    await _put_driver(client, "driver3", 10.8185, 106.6588)

    resp = await client.get(
        "/api/v1/drivers/nearby", params={"latitude": 10.7725, "longitude": 106.6980}
    )

    assert resp.status_code == 200
    assert [d["driver_id"] for d in resp.json()] == ["driver2", "driver1"]


@pytest.mark.asyncio
async def test_nearby_drivers_empty(client: AsyncClient):
    resp = await client.get(
        "/api/v1/drivers/nearby",
        params={"latitude": 10.7725, "longitude": 106.6980, "radius": 100},
    )
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_unknown_driver_location_is_404(client: AsyncClient):
    resp = await client.put(
        "/api/v1/drivers/location",
        json={"driver_id": "ghost", "latitude": 10.77, "longitude": 106.70},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_location_update_reports_applied(client: AsyncClient):
    resp = await _put_driver(client, "driver1", 10.77, 106.70)
    assert resp.json() == {"success": True, "applied": True, "message": None}


@pytest.mark.asyncio
async def test_distance_fallback_when_provider_times_out():
    provider = StubProvider(metrics=RouteMetrics(1.0, 1.0), delay=10.0)
    fast_timeout = TEST_SETTINGS.model_copy(update={"routing_timeout_seconds": 0.05})
    async with _make_client(provider, fast_timeout) as ac:
        resp = await ac.get(
            "/api/v1/location/distance",
            params={
                "origin_lat": 10.80, "origin_lng": 106.70,
                "destination_lat": 10.82, "destination_lng": 106.75,
            },
        )

    assert resp.status_code == 200
    data = resp.json()
    assert data["source"] == "FALLBACK"
    assert data["geometry"] is None
    assert data["duration_seconds"] == pytest.approx(data["distance_km"] * 180)


@pytest.mark.asyncio
async def test_distance_uses_provider_route():
    route = RouteMetrics(7342.5, 912.0, geometry={"type": "LineString", "coordinates": []})
    async with _make_client(StubProvider(metrics=route)) as ac:
        resp = await ac.get(
            "/api/v1/location/distance",
            params={
                "origin_lat": 10.80, "origin_lng": 106.70,
                "destination_lat": 10.82, "destination_lng": 106.75,
                "profile": "walking",
            },
        )

    assert resp.status_code == 200
    assert resp.json()["distance_meters"] == 7342.5
    assert resp.json()["source"] == "PROVIDER"


@pytest.mark.asyncio
async def test_directions():
    directions = Directions(
        distance_meters=7342.5,
        duration_seconds=912.0,
        steps=[{"maneuver": {"instruction": "Head east"}}],
        alternatives=[RouteMetrics(8100.0, 1003.0)],
    )
    async with _make_client(StubProvider(directions_result=directions)) as ac:
        resp = await ac.get(
            "/api/v1/location/directions",
            params={
                "origin_lat": 10.80, "origin_lng": 106.70,
                "destination_lat": 10.82, "destination_lng": 106.75,
                "alternatives": "true",
            },
        )

    assert resp.status_code == 200
    data = resp.json()
    assert data["distance"] == 7342.5
    assert len(data["steps"]) == 1
    assert data["alternatives"][0]["distance_meters"] == 8100.0


@pytest.mark.asyncio
async def test_directions_without_provider_is_503(client: AsyncClient):
    resp = await client.get(
        "/api/v1/location/directions",
        params={
            "origin_lat": 10.80, "origin_lng": 106.70,
            "destination_lat": 10.82, "destination_lng": 106.75,
        },
    )
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_directions_provider_failure_is_503():
    async with _make_client(StubProvider(exc=ProviderUnavailable("HTTP 500"))) as ac:
        resp = await ac.get(
            "/api/v1/location/directions",
            params={
                "origin_lat": 10.80, "origin_lng": 106.70,
                "destination_lat": 10.82, "destination_lng": 106.75,
            },
        )
    assert resp.status_code == 503


@pytest.mark.asyncio
@pytest.mark.parametrize("radius", ["inf", "nan", "-1"])
async def test_nearby_drivers_rejects_bad_radius(client: AsyncClient, radius):
    await _put_driver(client, "driver1", 10.7798, 106.6990)

    resp = await client.get(
        "/api/v1/drivers/nearby",
        params={"latitude": 10.7725, "longitude": 106.6980, "radius": radius},
    )

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_driver(client: AsyncClient):
    await _put_driver(client, "driver1", 10.7798, 106.6990)

    resp = await client.get("/api/v1/drivers/driver1")

    assert resp.status_code == 200
    data = resp.json()
    assert data["driver_id"] == "driver1"
    assert (data["latitude"], data["longitude"]) == (10.7798, 106.6990)
    assert data["last_updated"] is not None


@pytest.mark.asyncio
async def test_get_driver_without_location(client: AsyncClient):
    resp = await client.get("/api/v1/drivers/driver2")

    assert resp.status_code == 200
    assert resp.json() == {
        "driver_id": "driver2",
        "latitude": None,
        "longitude": None,
        "status": None,
        "last_updated": None,
    }


@pytest.mark.asyncio
async def test_get_unknown_driver_is_404(client: AsyncClient):
    resp = await client.get("/api/v1/drivers/ghost")
    assert resp.status_code == 404
    assert "ghost" in resp.json()["detail"]
