"""
Unit tests for the Stripe checkout and refund wrapper.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import stripe

from bnb_booking.errors import PaymentProviderError
from bnb_booking.payments.stripe_client import StripeGateway, checkout_line_items, to_cents


def _reservation(**overrides: Any) -> dict[str, Any]:
    reservation = {
        "id": "res-1",
        "confirmation_code": "ABC234",
        "guest_email": "ada@example.com",
        "number_of_nights": 3,
        "base_amount": Decimal("450.00"),
        "fees_amount": Decimal("54.00"),
        "state_tax_amount": Decimal("27.00"),
        "local_tax_amount": Decimal("31.50"),
    }
    reservation.update(overrides)
    return reservation


@pytest.mark.unit
def test_to_cents() -> None:
    assert to_cents(Decimal("31.50")) == 3150
    assert to_cents(Decimal("0.01")) == 1


@pytest.mark.unit
def test_checkout_line_items_itemizes_each_component() -> None:
    items = checkout_line_items(_reservation(), "usd")

    names = [item["price_data"]["product_data"]["name"] for item in items]
    amounts = [item["price_data"]["unit_amount"] for item in items]
    assert names == [
        "Room charge (3 nights)",
        "Service fee",
        "State occupancy tax",
        "Local occupancy tax",
    ]
    assert amounts == [45000, 5400, 2700, 3150]
    assert sum(amounts) == 56250


@pytest.mark.unit
def test_checkout_line_items_omits_zero_lines() -> None:
    items = checkout_line_items(
        _reservation(
            number_of_nights=1,
            fees_amount=Decimal("0.00"),
            local_tax_amount=Decimal("0.00"),
        ),
        "usd",
    )

    names = [item["price_data"]["product_data"]["name"] for item in items]
    assert names == ["Room charge (1 night)", "State occupancy tax"]


@pytest.mark.unit
def test_gateway_requires_api_key() -> None:
    with patch("bnb_booking.payments.stripe_client.STRIPE_SECRET_KEY", None):
        with pytest.raises(RuntimeError):
            StripeGateway(api_key=None)


@pytest.mark.unit
@patch("bnb_booking.payments.stripe_client.stripe.StripeClient")
def test_create_checkout_session_sends_reservation_metadata(mock_client_cls: MagicMock) -> None:
    sessions = mock_client_cls.return_value.v1.checkout.sessions
    sessions.create.return_value = MagicMock(
        id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1", status="open"
    )
    gateway = StripeGateway(api_key="sk_test_123")

    result = gateway.create_checkout_session(
        _reservation(), "https://example.com/ok", "https://example.com/cancel"
    )

    assert result == {
        "session_id": "cs_test_1",
        "url": "https://checkout.stripe.com/c/cs_test_1",
        "status": "open",
    }
    _, kwargs = sessions.create.call_args
    params = kwargs["params"]
    assert params["metadata"] == {"reservation_id": "res-1", "confirmation_code": "ABC234"}
    assert params["client_reference_id"] == "res-1"
    assert params["mode"] == "payment"
    assert len(params["line_items"]) == 4
    assert kwargs["options"] == {"idempotency_key": "reservation:res-1:checkout"}


@pytest.mark.unit
@patch("bnb_booking.payments.stripe_client.stripe.StripeClient")
def test_create_checkout_session_wraps_stripe_errors(mock_client_cls: MagicMock) -> None:
    sessions = mock_client_cls.return_value.v1.checkout.sessions
    sessions.create.side_effect = stripe.APIConnectionError("connection reset")
    gateway = StripeGateway(api_key="sk_test_123")

    with pytest.raises(PaymentProviderError) as exc_info:
        gateway.create_checkout_session(_reservation(), "https://a.test", "https://b.test")

    assert exc_info.value.details == {"reservation_id": "res-1"}


@pytest.mark.unit
@patch("bnb_booking.payments.stripe_client.stripe.StripeClient")
def test_refund_uses_reservation_idempotency_key(mock_client_cls: MagicMock) -> None:
    refunds = mock_client_cls.return_value.v1.refunds
    refunds.create.return_value = MagicMock(id="re_123")

    refund_id = StripeGateway(api_key="sk_test_123").refund("pi_123", "res-1")

    assert refund_id == "re_123"
    _, kwargs = refunds.create.call_args
    assert kwargs["params"]["payment_intent"] == "pi_123"
    assert kwargs["options"] == {"idempotency_key": "reservation:res-1:refund"}


@pytest.mark.unit
@pytest.mark.parametrize("ttl_minutes, expected_minutes", [(30, 31), (10, 31), (45, 45)])
@patch("bnb_booking.payments.stripe_client.stripe.StripeClient")
def test_checkout_session_expiry_stays_above_stripe_minimum(
    mock_client_cls: MagicMock, ttl_minutes: int, expected_minutes: int
) -> None:
    now = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
    sessions = mock_client_cls.return_value.v1.checkout.sessions
    sessions.create.return_value = MagicMock(id="cs_test_1", url="https://x.test", status="open")
    gateway = StripeGateway(api_key="sk_test_123", session_ttl_minutes=ttl_minutes)

    with patch("bnb_booking.payments.stripe_client.utc_now", return_value=now):
        gateway.create_checkout_session(_reservation(), "https://a.test", "https://b.test")

    _, kwargs = sessions.create.call_args
    assert kwargs["params"]["expires_at"] == int(
        (now + timedelta(minutes=expected_minutes)).timestamp()
    )
