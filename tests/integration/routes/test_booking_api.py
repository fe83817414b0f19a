"""
Integration tests for the HTTP API against the in-memory backend.

The bearer token sent by each test client is the user id; identity lookups
are patched to resolve it to that user.
"""

from __future__ import annotations

from typing import Any, Dict, Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from paddle_booking.dependencies import get_backend_client
from paddle_booking.main import app


def _identity(client: Any) -> Dict[str, Any]:
    token = client.access_token
    return {"id": token, "email": f"{token}@example.com"}


@pytest.fixture
def api(backend: Any, world: Any) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_backend_client] = lambda: backend
    with patch("paddle_booking.services.session.get_user", side_effect=_identity), patch(
        "paddle_booking.services.session.sign_out"
    ):
        yield TestClient(app)
    app.dependency_overrides.clear()


def _as(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {user_id}"}


def _book(api: TestClient, world: Any) -> str:
    response = api.post(
        "/reservations",
        json={"start_zone_id": world.harbor_id, "end_zone_id": world.point_id},
        headers=_as(world.customer_id),
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.mark.integration
def test_responses_carry_request_id(api: TestClient) -> None:
    response = api.get("/health", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.integration
def test_me_requires_sign_in(api: TestClient) -> None:
    """Test that missing or malformed credentials map to 401 with an error code."""
    response = api.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["error"] == "auth_error"

    assert api.get("/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401


@pytest.mark.integration
def test_me_returns_profile(api: TestClient, world: Any) -> None:
    response = api.get("/auth/me", headers=_as(world.admin_id))

    assert response.status_code == 200
    assert response.json()["role"] == "admin"


@pytest.mark.integration
def test_login_returns_token_and_profile(api: TestClient, world: Any) -> None:
    with patch("paddle_booking.services.session.sign_in_with_password") as mock_sign_in:
        mock_sign_in.return_value = {
            "access_token": world.customer_id,
            "user": {"id": world.customer_id, "email": "rider@example.com"},
        }
        response = api.post("/auth/login", json={"email": "rider@example.com", "password": "pw"})

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == world.customer_id
    assert body["user"]["email"] == "rider@example.com"


@pytest.mark.integration
def test_logout(api: TestClient, world: Any) -> None:
    response = api.post("/auth/logout", headers=_as(world.customer_id))

    assert response.status_code == 200


@pytest.mark.integration
def test_oauth_start_returns_authorize_url(api: TestClient) -> None:
    response = api.get("/auth/oauth/google", params={"redirect_to": "app://callback"})

    assert response.status_code == 200
    assert response.json()["url"].startswith("http://backend.test/auth/v1/authorize?provider=google")


@pytest.mark.integration
def test_catalog_endpoints(api: TestClient, world: Any) -> None:
    zones = api.get("/zones").json()
    assert [z["zone_name"] for z in zones] == ["Lighthouse Point", "North Harbor"]
    assert zones[0]["center"] == {"lat": 47.631, "lng": -122.362}

    boats = api.get("/boats", params={"status": "available"}).json()
    assert {b["boat_name"] for b in boats} == {"Blue Heron", "Sea Otter"}

    assert api.get("/waivers/latest").json()["version_label"] == "v1.0"


@pytest.mark.integration
def test_price_estimate(api: TestClient, world: Any) -> None:
    response = api.post(
        "/pricing/estimate",
        json={"start_zone_id": world.harbor_id, "end_zone_id": world.harbor_id, "minutes": 40},
    )

    assert response.status_code == 200
    assert response.json() == {
        "distance_km": 0.0,
        "minutes": 40,
        "is_premium": False,
        "estimated_cost": 20,
    }


@pytest.mark.integration
def test_booking_requires_waiver(api: TestClient, world: Any) -> None:
    """Test that booking without the latest waiver is a 422, and accepting it fixes that."""
    payload = {"start_zone_id": world.harbor_id, "end_zone_id": world.point_id}

    response = api.post("/reservations", json=payload, headers=_as(world.other_id))
    assert response.status_code == 422
    assert response.json()["error"] == "waiver_not_accepted"

    accepted = api.post(f"/waivers/{world.waiver_id}/accept", headers=_as(world.other_id))
    assert accepted.status_code == 201

    response = api.post("/reservations", json=payload, headers=_as(world.other_id))
    assert response.status_code == 201
    assert response.json()["status"] == "pending"


@pytest.mark.integration
def test_booking_without_zone_is_422(api: TestClient, world: Any) -> None:
    response = api.post(
        "/reservations", json={"start_zone_id": world.harbor_id}, headers=_as(world.customer_id)
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


@pytest.mark.integration
def test_admin_only_endpoints_reject_customers(api: TestClient, world: Any) -> None:
    reservation_id = _book(api, world)

    assert api.get("/reservations", headers=_as(world.customer_id)).status_code == 403
    response = api.post(
        f"/reservations/{reservation_id}/assign-boat",
        json={"boat_id": world.heron_id},
        headers=_as(world.customer_id),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


@pytest.mark.integration
def test_customer_sees_only_own_reservations(api: TestClient, world: Any) -> None:
    reservation_id = _book(api, world)

    mine = api.get("/reservations/mine", headers=_as(world.customer_id)).json()
    assert [r["id"] for r in mine] == [reservation_id]

    assert api.get("/reservations/mine", headers=_as(world.other_id)).json() == []
    assert api.get(f"/reservations/{reservation_id}", headers=_as(world.other_id)).status_code == 403
    assert api.get("/reservations/no-such-id", headers=_as(world.customer_id)).status_code == 404


@pytest.mark.integration
def test_assigning_taken_boat_is_409(api: TestClient, world: Any) -> None:
    first = _book(api, world)
    second = _book(api, world)
    admin = _as(world.admin_id)

    ok = api.post(f"/reservations/{first}/assign-boat", json={"boat_id": world.heron_id}, headers=admin)
    assert ok.status_code == 200
    assert ok.json()["status"] == "confirmed"

    taken = api.post(f"/reservations/{second}/assign-boat", json={"boat_id": world.heron_id}, headers=admin)
    assert taken.status_code == 409
    assert taken.json()["error"] == "boat_unavailable"

    again = api.post(f"/reservations/{first}/assign-boat", json={"boat_id": world.otter_id}, headers=admin)
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_transition"

    pending = api.get("/reservations", params={"status": "pending"}, headers=admin).json()
    assert [r["id"] for r in pending] == [second]


@pytest.mark.integration
def test_full_booking_and_delivery_flow(api: TestClient, backend: Any, world: Any) -> None:
    """Test booking, delivery, ride, pickup and completion through the API."""
    liaison = _as("user-liaison-a")
    reservation_id = _book(api, world)
    api.post(
        f"/reservations/{reservation_id}/assign-boat",
        json={"boat_id": world.heron_id},
        headers=_as(world.admin_id),
    )

    available = api.get("/jobs/available", headers=liaison).json()
    assert [(j["job_type"], j["reservation_id"]) for j in available] == [("delivery", reservation_id)]
    delivery_id = available[0]["id"]

    accepted = api.post(f"/jobs/{delivery_id}/accept", headers=liaison)
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "assigned"
    assert api.post(f"/jobs/{delivery_id}/start", headers=liaison).json()["status"] == "in_progress"
    assert api.post(f"/jobs/{delivery_id}/complete", headers=liaison).json()["status"] == "completed"

    ride = api.get(f"/reservations/{reservation_id}", headers=_as(world.customer_id)).json()
    assert ride["status"] == "in_progress"

    ended = api.post(f"/reservations/{reservation_id}/end-ride", headers=_as(world.customer_id))
    assert ended.json()["status"] == "awaiting_pickup"
    repeat = api.post(f"/reservations/{reservation_id}/end-ride", headers=_as(world.customer_id))
    assert repeat.status_code == 409

    pickups = api.get("/jobs/available", headers=liaison).json()
    assert [j["job_type"] for j in pickups] == ["pickup"]
    pickup_id = pickups[0]["id"]
    api.post(f"/jobs/{pickup_id}/accept", headers=liaison)
    assert [j["id"] for j in api.get("/jobs/assigned", headers=liaison).json()] == [pickup_id]
    api.post(f"/jobs/{pickup_id}/start", headers=liaison)
    api.post(f"/jobs/{pickup_id}/complete", headers=liaison)

    final = api.get(f"/reservations/{reservation_id}", headers=_as(world.customer_id)).json()
    assert final["status"] == "completed"
    assert backend.row("boats", world.heron_id)["status"] == "available"


@pytest.mark.integration
def test_job_conflicts_map_to_http_errors(api: TestClient, world: Any) -> None:
    reservation_id = _book(api, world)
    api.post(
        f"/reservations/{reservation_id}/assign-boat",
        json={"boat_id": world.heron_id},
        headers=_as(world.admin_id),
    )
    job_id = api.get("/jobs/available", headers=_as("user-liaison-a")).json()[0]["id"]
    api.post(f"/jobs/{job_id}/accept", headers=_as("user-liaison-a"))

    taken = api.post(f"/jobs/{job_id}/accept", headers=_as("user-liaison-b"))
    assert taken.status_code == 409
    assert taken.json()["error"] == "job_already_assigned"

    stolen = api.post(f"/jobs/{job_id}/resign", headers=_as("user-liaison-b"))
    assert stolen.status_code == 403
    assert stolen.json()["error"] == "not_job_owner"

    assert api.get("/jobs/available", headers=_as(world.customer_id)).status_code == 403


@pytest.mark.integration
def test_customer_cancels_own_reservation(api: TestClient, world: Any) -> None:
    reservation_id = _book(api, world)

    assert api.post(f"/reservations/{reservation_id}/cancel", headers=_as(world.other_id)).status_code == 403

    response = api.post(f"/reservations/{reservation_id}/cancel", headers=_as(world.customer_id))
    assert response.status_code == 200
    assert response.json()["status"] == "canceled"


@pytest.mark.integration
def test_liaison_registration_and_location(api: TestClient, world: Any) -> None:
    headers = _as(world.other_id)
    assert api.get("/liaisons/me", headers=headers).status_code == 404

    created = api.post("/liaisons", json={"max_concurrent_jobs": 2}, headers=headers)
    assert created.status_code == 201
    assert created.json()["max_concurrent_jobs"] == 2
    assert api.get("/auth/me", headers=headers).json()["role"] == "liaison"

    moved = api.patch("/liaisons/me/location", json={"lat": 47.62, "lng": -122.35}, headers=headers)
    assert moved.status_code == 200
    assert moved.json()["current_location"] == {"lat": 47.62, "lng": -122.35}


@pytest.mark.integration
def test_admin_creates_and_deletes_zone(api: TestClient, world: Any) -> None:
    """Test zone management: create with a radius, list it, delete it."""
    admin = _as(world.admin_id)
    payload = {
        "zone_name": "South Beach",
        "lat": 47.61,
        "lng": -122.34,
        "is_premium": True,
        "radius_m": 250,
    }

    created = api.post("/zones", json=payload, headers=admin)
    assert created.status_code == 201
    zone = created.json()
    assert zone["center"] == {"lat": 47.61, "lng": -122.34}
    assert zone["radius_m"] == 250
    assert "South Beach" in [z["zone_name"] for z in api.get("/zones").json()]

    deleted = api.delete(f"/zones/{zone['id']}", headers=admin)
    assert deleted.status_code == 200
    assert "South Beach" not in [z["zone_name"] for z in api.get("/zones").json()]
    assert api.delete(f"/zones/{zone['id']}", headers=admin).status_code == 404


@pytest.mark.integration
def test_zone_management_is_admin_only(api: TestClient, world: Any) -> None:
    customer = _as(world.customer_id)

    created = api.post("/zones", json={"zone_name": "Cove", "lat": 1, "lng": 2}, headers=customer)
    assert created.status_code == 403
    assert api.delete(f"/zones/{world.harbor_id}", headers=customer).status_code == 403


@pytest.mark.integration
def test_zone_used_by_reservation_cannot_be_deleted(api: TestClient, backend: Any, world: Any) -> None:
    _book(api, world)

    response = api.delete(f"/zones/{world.point_id}", headers=_as(world.admin_id))

    assert response.status_code == 409
    assert response.json()["error"] == "zone_in_use"
    assert backend.row("zones", world.point_id)["zone_name"] == "Lighthouse Point"


@pytest.mark.integration
def test_reservation_payments_visible_to_owner_and_admin(
    api: TestClient, backend: Any, world: Any
) -> None:
    """Test that payments are listed for the owner and admins only."""
    reservation_id = _book(api, world)
    backend.insert(
        "payments",
        [
            {
                "reservation_id": reservation_id,
                "payment_amount": 28,
                "currency": "USD",
                "payment_status": "succeeded",
            }
        ],
    )

    mine = api.get(f"/reservations/{reservation_id}/payments", headers=_as(world.customer_id))
    assert mine.status_code == 200
    assert [(p["payment_amount"], p["payment_status"]) for p in mine.json()] == [(28.0, "succeeded")]

    admin_view = api.get(f"/reservations/{reservation_id}/payments", headers=_as(world.admin_id))
    assert len(admin_view.json()) == 1

    other = api.get(f"/reservations/{reservation_id}/payments", headers=_as(world.other_id))
    assert other.status_code == 403
    liaison = api.get(f"/reservations/{reservation_id}/payments", headers=_as("user-liaison-a"))
    assert liaison.status_code == 403


@pytest.mark.integration
def test_client_config_exposes_maps_key(api: TestClient) -> None:
    with patch("paddle_booking.routes.catalog.MAPS_API_KEY", "maps-key-123"):
        response = api.get("/config")

    assert response.status_code == 200
    assert response.json() == {"maps_api_key": "maps-key-123"}
