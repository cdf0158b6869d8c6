"""
Integration tests for the guest-facing reservation endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient


def _payload(room_id: str, **overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "room_id": room_id,
        "check_in": "2030-10-01",
        "check_out": "2030-10-03",
        "guest_count": 2,
        "guest_name": "Ada Guest",
        "guest_email": "ada@example.com",
    }
    body.update(overrides)
    return body


@pytest.mark.integration
def test_booking_requires_identity(app_client: TestClient, make_room: Callable[..., Any]) -> None:
    room = make_room()

    response = app_client.post("/reservations", json=_payload(room["id"]))

    assert response.status_code == 401


@pytest.mark.integration
def test_booking_creates_pending_reservation(
    app_client: TestClient, make_room: Callable[..., Any], guest_headers: dict[str, str]
) -> None:
    room = make_room()

    response = app_client.post("/reservations", json=_payload(room["id"]), headers=guest_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["payment_status"] == "pending"
    assert body["user_id"] == "user-1"
    assert body["total_amount"] == 300
    assert len(body["confirmation_code"]) == 6

    fetched = app_client.get(f"/reservations/{body['id']}", headers=guest_headers)
    assert fetched.status_code == 200
    assert fetched.json()["confirmation_code"] == body["confirmation_code"]


@pytest.mark.integration
def test_booking_taken_dates_returns_conflict_details(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
    guest_headers: dict[str, str],
) -> None:
    room = make_room()
    make_reservation(room["id"], date(2030, 10, 2), date(2030, 10, 5), status="confirmed")

    response = app_client.post("/reservations", json=_payload(room["id"]), headers=guest_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "room_not_available"
    assert [b["date"] for b in body["details"]["blocked_dates"]] == ["2030-10-02"]


@pytest.mark.integration
def test_booking_validates_input(
    app_client: TestClient, make_room: Callable[..., Any], guest_headers: dict[str, str]
) -> None:
    room = make_room()

    too_many = app_client.post(
        "/reservations", json=_payload(room["id"], guest_count=99), headers=guest_headers
    )
    reversed_range = app_client.post(
        "/reservations",
        json=_payload(room["id"], check_in="2030-10-03", check_out="2030-10-01"),
        headers=guest_headers,
    )

    assert too_many.status_code == 422
    assert reversed_range.status_code == 422
    assert reversed_range.json()["error"] == "invalid_range"


@pytest.mark.integration
def test_guests_cannot_read_other_guests_reservations(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
    admin_headers: dict[str, str],
) -> None:
    room = make_room()
    reservation = make_reservation(room["id"], date(2030, 10, 1), date(2030, 10, 3))
    stranger = {"X-User-Id": "user-2", "X-User-Role": "guest"}

    hidden = app_client.get(f"/reservations/{reservation['id']}", headers=stranger)
    visible = app_client.get(f"/reservations/{reservation['id']}", headers=admin_headers)
    listing = app_client.get("/reservations", headers=stranger)

    assert hidden.status_code == 404
    assert visible.status_code == 200
    assert listing.json()["reservations"] == []


@pytest.mark.integration
def test_checkout_without_payment_provider(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
    guest_headers: dict[str, str],
) -> None:
    room = make_room()
    reservation = make_reservation(room["id"], date(2030, 10, 1), date(2030, 10, 3))

    response = app_client.post(
        f"/reservations/{reservation['id']}/checkout",
        json={"success_url": "https://example.com/ok", "cancel_url": "https://example.com/no"},
        headers=guest_headers,
    )

    assert response.status_code == 502
    assert response.json()["error"] == "payment_provider_failure"


@pytest.mark.integration
def test_cancel_pending_reservation(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
    guest_headers: dict[str, str],
) -> None:
    room = make_room()
    reservation = make_reservation(room["id"], date(2030, 10, 1), date(2030, 10, 3))

    response = app_client.post(
        f"/reservations/{reservation['id']}/cancel",
        json={"reason": "Plans changed"},
        headers=guest_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "Plans changed"


@pytest.mark.integration
def test_cancel_confirmed_reservation_is_rejected(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
    guest_headers: dict[str, str],
) -> None:
    room = make_room()
    reservation = make_reservation(
        room["id"], date(2030, 10, 1), date(2030, 10, 3), status="confirmed"
    )

    response = app_client.post(f"/reservations/{reservation['id']}/cancel", headers=guest_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "invalid_transition"
