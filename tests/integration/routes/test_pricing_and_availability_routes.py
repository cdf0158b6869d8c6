"""
Integration tests for the public quote and availability endpoints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def taxed_room(make_room: Callable[..., Any]) -> dict[str, Any]:
    return make_room(
        slug="garden-suite",
        service_fee_rate=Decimal("0.12"),
        state_tax_rate=Decimal("0.06"),
        local_tax_rate=Decimal("0.07"),
    )


@pytest.mark.integration
def test_quote_returns_breakdown(app_client: TestClient, taxed_room: dict[str, Any]) -> None:
    response = app_client.post(
        "/pricing/quote",
        json={
            "room_id": taxed_room["id"],
            "check_in": "2030-04-01",
            "check_out": "2030-04-04",
            "guest_count": 2,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["room_id"] == taxed_room["id"]
    assert body["nights"] == 3
    assert body["base_amount"] == 450
    assert body["fees_amount"] == 54
    assert body["tax_amount"] == 58.5
    assert body["total_amount"] == 562.5
    assert body["applied_rules"] == []


@pytest.mark.integration
def test_quote_rejects_reversed_range(app_client: TestClient, taxed_room: dict[str, Any]) -> None:
    response = app_client.post(
        "/pricing/quote",
        json={"room_id": taxed_room["id"], "check_in": "2030-04-04", "check_out": "2030-04-01"},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_range"


@pytest.mark.integration
def test_quote_unknown_room(app_client: TestClient) -> None:
    response = app_client.post(
        "/pricing/quote",
        json={"room_id": "room-404", "check_in": "2030-04-01", "check_out": "2030-04-02"},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "room_not_found"


@pytest.mark.integration
def test_room_availability_reports_conflicts(
    app_client: TestClient, taxed_room: dict[str, Any], make_reservation: Callable[..., Any]
) -> None:
    make_reservation(taxed_room["id"], date(2030, 4, 2), date(2030, 4, 3), status="confirmed")

    busy = app_client.get(
        f"/availability/{taxed_room['id']}", params={"start": "2030-04-01", "end": "2030-04-04"}
    )
    free = app_client.get(
        f"/availability/{taxed_room['id']}", params={"start": "2030-04-03", "end": "2030-04-05"}
    )

    assert busy.status_code == 200
    assert busy.json()["available"] is False
    blocked = busy.json()["blocked_dates"]
    assert [b["date"] for b in blocked] == ["2030-04-02"]
    assert free.json()["available"] is True


@pytest.mark.integration
def test_bulk_availability_lists_active_rooms(
    app_client: TestClient, make_room: Callable[..., Any]
) -> None:
    first = make_room()
    second = make_room()
    make_room(status="inactive")

    response = app_client.get("/availability", params={"start": "2030-04-01", "end": "2030-04-03"})

    assert response.status_code == 200
    assert {room["room_id"] for room in response.json()["rooms"]} == {first["id"], second["id"]}


@pytest.mark.integration
def test_room_calendar_view_by_slug(app_client: TestClient, taxed_room: dict[str, Any]) -> None:
    response = app_client.get(
        "/availability/rooms/garden-suite/calendar",
        params={"start": "2030-04-01", "end": "2030-04-03"},
    )

    assert response.status_code == 200
    days = response.json()["days"]
    assert [day["date"] for day in days] == ["2030-04-01", "2030-04-02"]
    assert all(day["available"] for day in days)
