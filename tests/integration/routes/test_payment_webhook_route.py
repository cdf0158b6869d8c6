"""
Integration tests for the Stripe webhook endpoint.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import date
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from bnb_booking.db.readers.reservations import get_reservation

SECRET = "whsec_route_test"


@pytest.fixture(autouse=True)
def webhook_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("bnb_booking.routes.payments.STRIPE_WEBHOOK_SECRET", SECRET)


def _post_event(
    client: TestClient, event_type: str, obj: dict[str, Any], secret: str = SECRET
) -> Any:
    payload = json.dumps(
        {"id": "evt_route_1", "object": "event", "type": event_type, "data": {"object": obj}}
    ).encode()
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload.decode()}".encode(), hashlib.sha256
    ).hexdigest()
    return client.post(
        "/payments/webhook",
        content=payload,
        headers={
            "Stripe-Signature": f"t={timestamp},v1={digest}",
            "Content-Type": "application/json",
        },
    )


def _session(reservation_id: str) -> dict[str, Any]:
    return {
        "id": "cs_route_1",
        "object": "checkout.session",
        "metadata": {"reservation_id": reservation_id},
        "payment_intent": "pi_route_1",
        "customer": "cus_route_1",
    }


@pytest.mark.integration
def test_rejects_bad_signature(app_client: TestClient) -> None:
    response = _post_event(app_client, "checkout.session.completed", {}, secret="whsec_wrong")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid signature"}


@pytest.mark.integration
def test_rejects_missing_signature(app_client: TestClient) -> None:
    response = app_client.post("/payments/webhook", content=b"{}")

    assert response.status_code == 400


@pytest.mark.integration
def test_unconfigured_secret_returns_503(
    app_client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("bnb_booking.routes.payments.STRIPE_WEBHOOK_SECRET", "")

    response = _post_event(app_client, "checkout.session.completed", {})

    assert response.status_code == 503


@pytest.mark.integration
def test_unknown_event_types_are_acknowledged(app_client: TestClient) -> None:
    response = _post_event(app_client, "customer.created", {"id": "cus_1"})

    assert response.status_code == 200
    assert response.json() == {"status": "accepted"}


@pytest.mark.integration
def test_completed_session_confirms_reservation(
    app_client: TestClient,
    db_engine: Engine,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
) -> None:
    room = make_room()
    reservation = make_reservation(room["id"], date(2030, 11, 1), date(2030, 11, 3))

    first = _post_event(app_client, "checkout.session.completed", _session(reservation["id"]))
    replay = _post_event(app_client, "checkout.session.completed", _session(reservation["id"]))

    assert first.status_code == 200
    assert first.json() == {"status": "confirmed"}
    assert replay.json() == {"status": "already_confirmed"}
    with db_engine.connect() as conn:
        stored = get_reservation(conn, reservation["id"])
    assert stored is not None
    assert stored["status"] == "confirmed"
    assert stored["payment_status"] == "paid"
    assert stored["stripe_payment_intent_id"] == "pi_route_1"


@pytest.mark.integration
def test_completed_session_for_taken_dates_reports_refund(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
) -> None:
    room = make_room()
    pending = make_reservation(room["id"], date(2030, 11, 1), date(2030, 11, 3))
    make_reservation(
        room["id"], date(2030, 11, 2), date(2030, 11, 4), status="confirmed", user_id="user-7"
    )

    response = _post_event(app_client, "checkout.session.completed", _session(pending["id"]))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "refund_required"
    assert body["reservation_id"] == pending["id"]
    # No payment gateway in tests, so the refund is left for an operator
    assert body["refunded"] is False


@pytest.mark.integration
def test_expired_session_releases_reservation(
    app_client: TestClient,
    make_room: Callable[..., Any],
    make_reservation: Callable[..., Any],
) -> None:
    room = make_room()
    reservation = make_reservation(room["id"], date(2030, 11, 1), date(2030, 11, 3))

    response = _post_event(app_client, "checkout.session.expired", _session(reservation["id"]))

    assert response.json() == {"status": "cancelled"}


@pytest.mark.integration
def test_session_for_unknown_reservation_is_ignored(app_client: TestClient) -> None:
    response = _post_event(app_client, "checkout.session.completed", _session("missing"))

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}


@pytest.mark.integration
def test_payment_intent_events_are_logged_only(app_client: TestClient) -> None:
    response = _post_event(app_client, "payment_intent.succeeded", {"id": "pi_route_1"})

    assert response.json() == {"status": "logged"}
