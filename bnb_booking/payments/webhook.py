"""
Stripe webhook signature validation and event parsing.

Purpose:
- Validate the Stripe-Signature header against the endpoint secret.
- Reduce the event to the fields the reservation lifecycle needs.
- Never log the payload or the signature.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

import stripe
import structlog

logger = structlog.get_logger(__name__)


class InvalidSignatureError(Exception):
    """Webhook signature validation failed."""


class InvalidPayloadError(Exception):
    """Payload structure is invalid or missing required fields."""


@dataclass
class PaymentSession:
    """Checkout session data carried by a payment outcome event."""

    session_id: str
    reservation_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    customer_id: Optional[str] = None


@dataclass
class StripeWebhookEvent:
    event_id: str
    event_type: str
    data_object: dict[str, Any]


def verify_event(
    payload_bytes: bytes,
    signature_header: Optional[str],
    webhook_secret: str,
) -> StripeWebhookEvent:
    """
    Validate a Stripe webhook signature and extract the event.

    Args:
        payload_bytes: Raw request body bytes.
        signature_header: Value of the Stripe-Signature header.
        webhook_secret: Webhook endpoint secret from Stripe.

    Returns:
        StripeWebhookEvent with id, type and the event's data object.

    Raises:
        InvalidSignatureError: If the header is missing or the signature does not match.
        InvalidPayloadError: If the event structure is invalid.
    """
    if not signature_header:
        raise InvalidSignatureError("Missing signature header")

    try:
        stripe.Webhook.construct_event(payload_bytes, signature_header, webhook_secret)
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe_webhook_signature_invalid")
        raise InvalidSignatureError("Invalid signature") from e
    except ValueError as e:
        logger.warning("stripe_webhook_payload_invalid")
        raise InvalidPayloadError("Invalid payload") from e

    # StripeObject is not a dict on current stripe releases; read the verified body instead.
    try:
        event = json.loads(payload_bytes)
    except ValueError as e:
        raise InvalidPayloadError("Invalid payload") from e
    if not isinstance(event, dict):
        raise InvalidPayloadError("Event is not an object")

    event_id = event.get("id")
    event_type = event.get("type")
    if not event_id or not event_type:
        raise InvalidPayloadError("Missing event id or type")

    data = event.get("data")
    data_object = data.get("object") if isinstance(data, dict) else None
    return StripeWebhookEvent(
        event_id=event_id,
        event_type=event_type,
        data_object=data_object if isinstance(data_object, dict) else {},
    )


def _object_id(value: Any) -> Optional[str]:
    """Expanded Stripe references arrive as objects, unexpanded ones as id strings."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.get("id") if isinstance(value, dict) else None


def session_from_event(event: StripeWebhookEvent) -> PaymentSession:
    """
    Build a PaymentSession from a checkout.session.* event.

    Raises:
        InvalidPayloadError: The event carries no session id.
    """
    obj = event.data_object
    session_id = obj.get("id")
    if not session_id:
        raise InvalidPayloadError("Checkout session id missing")

    metadata = obj.get("metadata") or {}
    return PaymentSession(
        session_id=session_id,
        reservation_id=metadata.get("reservation_id") or obj.get("client_reference_id"),
        payment_intent_id=_object_id(obj.get("payment_intent")),
        customer_id=_object_id(obj.get("customer")),
    )
