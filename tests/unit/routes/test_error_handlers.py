"""
Unit tests for domain error to HTTP response translation.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bnb_booking.errors import (
    BookingError,
    PaymentProviderError,
    RoomNotFoundError,
)
from bnb_booking.routes.errors import register_exception_handlers


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    def missing() -> None:
        raise RoomNotFoundError("room-x")

    @app.get("/upstream")
    def upstream() -> None:
        raise PaymentProviderError("Stripe down", {"reservation_id": "res-1"})

    @app.get("/generic")
    def generic() -> None:
        raise BookingError("Storage exploded")

    return TestClient(app)


@pytest.mark.unit
def test_not_found_maps_to_404(client: TestClient) -> None:
    response = client.get("/missing")

    assert response.status_code == 404
    assert response.json() == {
        "error": "room_not_found",
        "message": "Room room-x not found",
        "details": {"room_id": "room-x"},
    }


@pytest.mark.unit
def test_upstream_maps_to_502(client: TestClient) -> None:
    response = client.get("/upstream")

    assert response.status_code == 502
    assert response.json()["details"] == {"reservation_id": "res-1"}


@pytest.mark.unit
def test_unclassified_booking_error_maps_to_500(client: TestClient) -> None:
    response = client.get("/generic")

    assert response.status_code == 500
    assert response.json()["error"] == "booking_error"
