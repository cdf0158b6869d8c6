"""
Thin wrapper around the Stripe SDK.

Purpose:
- Keep stripe.* calls out of the reservation service.
- Send an idempotency key with every write so retries are safe.
- Bound every call with a request timeout.
- Log only ids (session, payment intent, reservation), never payloads.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

import stripe
import structlog

from bnb_booking.config import (
    CHECKOUT_SESSION_TTL_MINUTES,
    PAYMENT_TIMEOUT,
    STRIPE_CURRENCY,
    STRIPE_SECRET_KEY,
)
from bnb_booking.errors import PaymentProviderError
from bnb_booking.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Stripe rejects checkout sessions expiring less than 30 minutes after creation.
MIN_SESSION_TTL_MINUTES = 31


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


def checkout_line_items(reservation: dict[str, Any], currency: str) -> list[dict[str, Any]]:
    """
    Itemize a reservation for the checkout page.

    Room charge, service fee and each tax jurisdiction are separate lines so the
    guest sees exactly what makes up the total. Zero-amount lines are omitted.
    """
    nights = reservation["number_of_nights"]
    lines = [
        (
            f"Room charge ({nights} night{'s' if nights != 1 else ''})",
            reservation["base_amount"],
        ),
        ("Service fee", reservation["fees_amount"]),
        ("State occupancy tax", reservation["state_tax_amount"]),
        ("Local occupancy tax", reservation["local_tax_amount"]),
    ]
    return [
        {
            "price_data": {
                "currency": currency,
                "unit_amount": to_cents(amount),
                "product_data": {"name": name},
            },
            "quantity": 1,
        }
        for name, amount in lines
        if amount and amount > 0
    ]


class StripeGateway:
    """
    Wrapper for Stripe Checkout and refund operations.

    Usage:
        gateway = StripeGateway()  # reads STRIPE_SECRET_KEY from config
        session = gateway.create_checkout_session(
            reservation,
            success_url="https://example.com/booking/success",
            cancel_url="https://example.com/booking",
        )
        print(session["session_id"], session["url"])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        currency: str = STRIPE_CURRENCY,
        session_ttl_minutes: int = CHECKOUT_SESSION_TTL_MINUTES,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            api_key: Stripe secret key. Defaults to STRIPE_SECRET_KEY.
            currency: ISO currency code for checkout sessions.
            session_ttl_minutes: Checkout session lifetime, raised to
                MIN_SESSION_TTL_MINUTES when shorter.

        Raises:
            RuntimeError: If no API key is provided or configured.
        """
        self._api_key = api_key or STRIPE_SECRET_KEY
        if not self._api_key:
            raise RuntimeError(
                "Stripe API key not provided. Set STRIPE_SECRET_KEY or pass api_key parameter."
            )
        self.currency = currency
        self.session_ttl_minutes = max(session_ttl_minutes, MIN_SESSION_TTL_MINUTES)

    def _client(self) -> stripe.StripeClient:
        return stripe.StripeClient(
            self._api_key,
            http_client=stripe.RequestsClient(timeout=PAYMENT_TIMEOUT),
        )

    def create_checkout_session(
        self,
        reservation: dict[str, Any],
        success_url: str,
        cancel_url: str,
    ) -> dict[str, Any]:
        """
        Create a Checkout Session for a pending reservation.

        The reservation id travels in the session metadata and comes back in the
        webhook event, which is how the payment outcome finds its reservation.

        Args:
            reservation: Reservation row (amounts, ids, guest email)
            success_url: Redirect URL on success
            cancel_url: Redirect URL on cancel

        Returns:
            Dict with session_id, url and status.

        Raises:
            PaymentProviderError: Stripe rejected the request or timed out.
        """
        metadata = {
            "reservation_id": reservation["id"],
            "confirmation_code": reservation["confirmation_code"],
        }
        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": checkout_line_items(reservation, self.currency),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": reservation["id"],
            "customer_email": reservation["guest_email"],
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
            "expires_at": int(
                (utc_now() + timedelta(minutes=self.session_ttl_minutes)).timestamp()
            ),
        }

        try:
            session = self._client().v1.checkout.sessions.create(
                params=params,
                options={"idempotency_key": f"reservation:{reservation['id']}:checkout"},
            )
        except stripe.StripeError as e:
            logger.error(
                "stripe_checkout_session_failed",
                reservation_id=reservation["id"],
                error=str(e),
            )
            raise PaymentProviderError(
                "Could not create checkout session", {"reservation_id": reservation["id"]}
            ) from e

        logger.info(
            "stripe_checkout_session_created",
            session_id=session.id,
            reservation_id=reservation["id"],
        )
        return {"session_id": session.id, "url": session.url, "status": session.status}

    def refund(self, payment_intent_id: str, reservation_id: str) -> str:
        """
        Refund a payment in full.

        Args:
            payment_intent_id: Payment intent to refund
            reservation_id: Reservation the refund belongs to (idempotency and logs)

        Returns:
            str: Refund id

        Raises:
            PaymentProviderError: Stripe rejected the refund or timed out.
        """
        try:
            refund = self._client().v1.refunds.create(
                params={
                    "payment_intent": payment_intent_id,
                    "metadata": {"reservation_id": reservation_id},
                },
                options={"idempotency_key": f"reservation:{reservation_id}:refund"},
            )
        except stripe.StripeError as e:
            logger.error(
                "stripe_refund_failed",
                reservation_id=reservation_id,
                payment_intent_id=payment_intent_id,
                error=str(e),
            )
            raise PaymentProviderError(
                "Refund failed", {"reservation_id": reservation_id}
            ) from e

        logger.info(
            "stripe_refund_created",
            refund_id=refund.id,
            reservation_id=reservation_id,
            payment_intent_id=payment_intent_id,
        )
        return str(refund.id)
