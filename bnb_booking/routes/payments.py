"""Stripe webhook receiver route."""

from typing import Any, Callable, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from bnb_booking.config import STRIPE_WEBHOOK_SECRET
from bnb_booking.dependencies import get_db_engine, get_payment_gateway
from bnb_booking.errors import ConfirmationConflictError, NotFoundError
from bnb_booking.metrics import webhook_events
from bnb_booking.payments.stripe_client import StripeGateway
from bnb_booking.payments.webhook import (
    InvalidPayloadError,
    InvalidSignatureError,
    StripeWebhookEvent,
    session_from_event,
    verify_event,
)
from bnb_booking.services.reservations import confirm_reservation, fail_reservation

router = APIRouter()
logger = structlog.get_logger(__name__)

EventHandler = Callable[[Engine, Optional[StripeGateway], StripeWebhookEvent], str]


def handle_session_completed(
    engine: Engine, gateway: Optional[StripeGateway], event: StripeWebhookEvent
) -> str:
    """
    Handle checkout.session.completed: confirm the reservation.

    Returns:
        str: Outcome status ("confirmed", "already_confirmed" or "ignored")
    """
    outcome = confirm_reservation(engine, session_from_event(event), gateway=gateway)
    return outcome.status


def handle_session_expired(
    engine: Engine, gateway: Optional[StripeGateway], event: StripeWebhookEvent
) -> str:
    """Handle checkout.session.expired: release the pending reservation."""
    return fail_reservation(engine, session_from_event(event))


def handle_payment_intent(
    engine: Engine, gateway: Optional[StripeGateway], event: StripeWebhookEvent
) -> str:
    # Reservation state follows the checkout session events; intents are only logged
    logger.info(
        "payment_intent_event",
        event_id=event.event_id,
        event_type=event.event_type,
        payment_intent_id=event.data_object.get("id"),
    )
    return "logged"


EVENT_HANDLERS: dict[str, EventHandler] = {
    "checkout.session.completed": handle_session_completed,
    "checkout.session.expired": handle_session_expired,
    "payment_intent.succeeded": handle_payment_intent,
    "payment_intent.payment_failed": handle_payment_intent,
}


@router.post("/payments/webhook")
async def stripe_webhook(
    request: Request,
    engine: Engine = Depends(get_db_engine),
    gateway: Optional[StripeGateway] = Depends(get_payment_gateway),
) -> JSONResponse:
    """
    Receive Stripe events.

    Signature failures are rejected with 400. Events the engine does not act on
    are acknowledged with 200 so Stripe stops retrying them. A reservation that
    lost its dates before payment completed is answered with 200 and status
    "refund_required"; the refund has already been requested at that point.

    Args:
        request: FastAPI request; the raw body is needed for signature checks

    Returns:
        JSONResponse: Acknowledgment response
    """
    if not STRIPE_WEBHOOK_SECRET:
        logger.error("stripe_webhook_secret_missing")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Webhook endpoint not configured"},
        )

    payload = await request.body()
    try:
        event = verify_event(
            payload, request.headers.get("Stripe-Signature"), STRIPE_WEBHOOK_SECRET
        )
    except InvalidSignatureError:
        webhook_events.labels(event_type="unknown", outcome="rejected").inc()
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid signature"},
        )
    except InvalidPayloadError:
        webhook_events.labels(event_type="unknown", outcome="rejected").inc()
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload"},
        )

    logger.info("webhook_received", event_id=event.event_id, event_type=event.event_type)

    handler = EVENT_HANDLERS.get(event.event_type)
    if handler is None:
        logger.info("webhook_unsupported_event_type", event_type=event.event_type)
        webhook_events.labels(event_type=event.event_type, outcome="unhandled").inc()
        # Return 200 anyway - don't fail on unknown events
        return JSONResponse(content={"status": "accepted"})

    body: dict[str, Any]
    try:
        outcome = await run_in_threadpool(handler, engine, gateway, event)
        body = {"status": outcome}
    except ConfirmationConflictError as e:
        body = {"status": "refund_required", **e.details}
    except NotFoundError as e:
        logger.warning(
            "webhook_reservation_not_found", event_id=event.event_id, error=e.message
        )
        body = {"status": "ignored"}
    except InvalidPayloadError as e:
        logger.warning("webhook_payload_invalid", event_id=event.event_id, error=str(e))
        webhook_events.labels(event_type=event.event_type, outcome="rejected").inc()
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload"},
        )
    except Exception as e:
        logger.exception(
            "webhook_processing_failed",
            event_id=event.event_id,
            event_type=event.event_type,
            error=str(e),
        )
        webhook_events.labels(event_type=event.event_type, outcome="error").inc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    webhook_events.labels(event_type=event.event_type, outcome=body["status"]).inc()
    return JSONResponse(content=body)
