"""
Reservation lifecycle.

    create   availability + pricing, persisted as pending/pending
    checkout payment session carrying the reservation id as metadata
    confirm  pending -> confirmed/paid on a verified checkout-completed event
    fail     pending -> cancelled/failed on an expired checkout
    cancel   pending -> cancelled on guest request

confirmed and cancelled are terminal. Payment events can arrive more than once,
so confirm and fail re-read the current status and do nothing when the
transition already happened.

confirm re-checks availability in the same transaction as the status write,
because the range may have been taken between booking and payment. A failed
re-check cancels the reservation and refunds the payment. After a successful
confirmation the booked nights are written to the ledger and the guest is
notified; both steps are best effort and never undo the confirmation.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from bnb_booking.config import LEGACY_ROOM_ID_ALIASES
from bnb_booking.db.readers.reservations import (
    confirmation_code_exists,
    count_by_status,
    get_reservation,
    get_reservation_by_session,
    list_reservations,
    list_user_reservations,
    total_amount_by_payment_status,
)
from bnb_booking.db.writers.availability import commit_booked_nights
from bnb_booking.db.writers.reservations import insert_reservation, update_reservation
from bnb_booking.errors import (
    ConfirmationConflictError,
    InternalError,
    InvalidTransitionError,
    NotificationFailedError,
    PaymentProviderError,
    ReservationNotFoundError,
    RoomNotAvailableError,
    RoomUnavailableError,
)
from bnb_booking.metrics import ledger_commit_failures, refund_obligations, reservation_transitions
from bnb_booking.models.reservations import RESERVATION_STATUSES
from bnb_booking.payments.stripe_client import StripeGateway
from bnb_booking.payments.webhook import PaymentSession
from bnb_booking.pricing.evaluator import quote_stay, validate_guest_count
from bnb_booking.pricing.rules import round_cents
from bnb_booking.services.availability import AvailabilityResult, check_availability
from bnb_booking.services.notifications import send_confirmation
from bnb_booking.utils.datetime import nights_between, utc_now

logger = structlog.get_logger(__name__)

# Unambiguous uppercase alphabet: no I, L, O, 0 or 1
CONFIRMATION_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 10

RECHECK_CANCELLATION_REASON = "Dates no longer available at payment confirmation"


@dataclass
class BookingRequest:
    room_id: str
    check_in: date
    check_out: date
    guest_count: int
    guest_name: str
    guest_email: str
    guest_phone: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass
class ConfirmationOutcome:
    """
    Result of handling a payment-success signal.

    status is "confirmed" for a fresh confirmation, "already_confirmed" for a
    duplicate delivery and "ignored" when the reservation was no longer pending.
    """

    reservation_id: str
    status: str
    ledger_committed: bool = False
    notified: bool = False


def generate_confirmation_code(length: int = CONFIRMATION_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(length))


def _unique_confirmation_code(conn: Connection) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_confirmation_code()
        if not confirmation_code_exists(conn, code):
            return code
    raise InternalError("Could not allocate a unique confirmation code")


def resolve_legacy_room_id(
    room_id: str, aliases: Optional[dict[str, str]] = None
) -> Optional[str]:
    """
    Map a pre-migration room reference to its canonical id.

    Returns None when the reference has no known alias.
    """
    table = LEGACY_ROOM_ID_ALIASES if aliases is None else aliases
    canonical = table.get(room_id)
    if canonical and canonical != room_id:
        return canonical
    return None


def _check_with_remap(
    conn: Connection,
    booking: BookingRequest,
    aliases: Optional[dict[str, str]],
) -> AvailabilityResult:
    try:
        return check_availability(conn, booking.room_id, booking.check_in, booking.check_out)
    except RoomUnavailableError:
        canonical = resolve_legacy_room_id(booking.room_id, aliases)
        if canonical is None:
            raise
        # TODO: drop the alias table once clients stop sending pre-migration room ids
        logger.warning(
            "legacy_room_id_remapped",
            requested_room_id=booking.room_id,
            room_id=canonical,
        )
        return check_availability(conn, canonical, booking.check_in, booking.check_out)


def create_reservation(
    engine: Engine,
    booking: BookingRequest,
    user_id: str,
    aliases: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """
    Create a pending reservation for an available range.

    Args:
        engine: SQLAlchemy Engine
        booking: Requested room, dates, party size and guest contact
        user_id: Owner id supplied by the identity provider
        aliases: Legacy room id table (defaults to LEGACY_ROOM_ID_ALIASES)

    Returns:
        dict: The stored reservation row

    Raises:
        InvalidRangeError: check_in is not before check_out
        InvalidInputError: guest count out of range
        RoomUnavailableError: room unknown (after legacy remap) or inactive
        RoomNotAvailableError: blocked nights or confirmed stays overlap the range
    """
    validate_guest_count(booking.guest_count)
    reservation_id = str(uuid.uuid4())

    with engine.begin() as conn:
        availability = _check_with_remap(conn, booking, aliases)
        if not availability.available:
            logger.info(
                "reservation_dates_unavailable",
                room_id=availability.room_id,
                check_in=booking.check_in.isoformat(),
                check_out=booking.check_out.isoformat(),
                blocked_nights=len(availability.blocked_dates),
                conflicting_reservations=len(availability.conflicting_reservations),
            )
            raise RoomNotAvailableError(
                availability.room_id,
                availability.blocked_dates,
                availability.conflicting_reservations,
            )

        quote = quote_stay(
            conn, availability.room_id, booking.check_in, booking.check_out, booking.guest_count
        )
        code = _unique_confirmation_code(conn)

        insert_reservation(
            conn,
            {
                "id": reservation_id,
                "confirmation_code": code,
                "room_id": availability.room_id,
                "user_id": user_id,
                "check_in": booking.check_in,
                "check_out": booking.check_out,
                "number_of_nights": quote.nights,
                "number_of_guests": booking.guest_count,
                "base_amount": quote.base_amount,
                "fees_amount": quote.fees_amount,
                "state_tax_amount": quote.state_tax_amount,
                "local_tax_amount": quote.local_tax_amount,
                "tax_amount": quote.tax_amount,
                "total_amount": quote.total_amount,
                "status": "pending",
                "payment_status": "pending",
                "guest_name": booking.guest_name,
                "guest_email": booking.guest_email,
                "guest_phone": booking.guest_phone,
                "special_requests": booking.special_requests,
            },
        )
        reservation = get_reservation(conn, reservation_id)

    reservation_transitions.labels(transition="created").inc()
    logger.info(
        "reservation_created",
        reservation_id=reservation_id,
        confirmation_code=code,
        room_id=availability.room_id,
        user_id=user_id,
        nights=quote.nights,
        total_amount=str(quote.total_amount),
    )
    if reservation is None:
        raise InternalError("Reservation vanished after insert", {"reservation_id": reservation_id})
    return reservation


def get_user_reservation(
    engine: Engine, reservation_id: str, user_id: str, is_admin: bool = False
) -> dict[str, Any]:
    """
    Fetch a reservation visible to the caller.

    Guests only see their own reservations; a foreign id reads as not found.

    Raises:
        ReservationNotFoundError: Unknown id, or owned by another user
    """
    with engine.connect() as conn:
        reservation = get_reservation(conn, reservation_id)
    if reservation is None or (not is_admin and reservation["user_id"] != user_id):
        raise ReservationNotFoundError(reservation_id)
    return reservation


def list_reservations_for_user(
    engine: Engine,
    user_id: str,
    status: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        return list_user_reservations(conn, user_id, status=status, limit=limit, offset=offset)


def list_all_reservations(engine: Engine, **filters: Any) -> list[dict[str, Any]]:
    """Back-office listing; filters are passed through to list_reservations."""
    with engine.connect() as conn:
        return list_reservations(conn, **filters)


def reservation_stats(engine: Engine) -> dict[str, Any]:
    """
    Summarize bookings for the back office.

    Returns:
        dict: total count, count per status, revenue from paid reservations and
        the amount still awaiting payment
    """
    with engine.connect() as conn:
        by_status = count_by_status(conn)
        amounts = total_amount_by_payment_status(conn)

    def _amount(payment_status: str) -> Decimal:
        value = amounts.get(payment_status)
        return round_cents(Decimal(str(value))) if value is not None else Decimal("0.00")

    return {
        "total": sum(by_status.values()),
        "by_status": {status: by_status.get(status, 0) for status in RESERVATION_STATUSES},
        "total_revenue": _amount("paid"),
        "pending_payments": _amount("pending"),
    }


def resend_confirmation(
    engine: Engine,
    reservation_id: str,
    notify: Callable[[dict[str, Any]], bool] = send_confirmation,
) -> dict[str, Any]:
    """
    Send the confirmation notice for a confirmed reservation again.

    Raises:
        ReservationNotFoundError: Unknown id
        InvalidTransitionError: Reservation is not confirmed
        NotificationFailedError: The notification service did not accept the notice
    """
    with engine.connect() as conn:
        reservation = get_reservation(conn, reservation_id)
    if reservation is None:
        raise ReservationNotFoundError(reservation_id)
    if reservation["status"] != "confirmed":
        raise InvalidTransitionError(reservation_id, reservation["status"], "notified")

    if not notify(reservation):
        raise NotificationFailedError(reservation_id)

    logger.info("confirmation_resent", reservation_id=reservation_id)
    return {"reservation_id": reservation_id, "sent": True}


def start_checkout(
    engine: Engine,
    reservation_id: str,
    user_id: str,
    success_url: str,
    cancel_url: str,
    gateway: StripeGateway,
) -> dict[str, Any]:
    """
    Open a payment session for the caller's pending reservation.

    Args:
        engine: SQLAlchemy Engine
        reservation_id: Reservation to pay for
        user_id: Caller id; must own the reservation
        success_url: Redirect after payment
        cancel_url: Redirect when the guest abandons checkout
        gateway: Payment processor wrapper

    Returns:
        dict: session_id, url and status of the checkout session

    Raises:
        ReservationNotFoundError: Unknown id, or owned by another user
        InvalidTransitionError: Reservation is no longer pending
        PaymentProviderError: The processor call failed
    """
    reservation = get_user_reservation(engine, reservation_id, user_id)
    if reservation["status"] != "pending":
        raise InvalidTransitionError(reservation_id, reservation["status"], "checkout")

    session = gateway.create_checkout_session(reservation, success_url, cancel_url)

    with engine.begin() as conn:
        update_reservation(
            conn,
            reservation_id,
            {"stripe_session_id": session["session_id"]},
            expected_status="pending",
        )

    logger.info(
        "checkout_started",
        reservation_id=reservation_id,
        session_id=session["session_id"],
    )
    return session


def _find_for_session(
    conn: Connection, session: PaymentSession, for_update: bool = True
) -> Optional[dict[str, Any]]:
    reservation = None
    if session.reservation_id:
        reservation = get_reservation(conn, session.reservation_id, for_update=for_update)
    if reservation is None:
        reservation = get_reservation_by_session(conn, session.session_id, for_update=for_update)
    return reservation


def _payment_ids(session: PaymentSession) -> dict[str, Any]:
    ids: dict[str, Any] = {"stripe_session_id": session.session_id}
    if session.payment_intent_id:
        ids["stripe_payment_intent_id"] = session.payment_intent_id
    if session.customer_id:
        ids["stripe_customer_id"] = session.customer_id
    return ids


def _refund(
    engine: Engine,
    reservation_id: str,
    payment_intent_id: Optional[str],
    gateway: Optional[StripeGateway],
) -> bool:
    """Refund a payment that cannot be honoured. Returns True if the refund went through."""
    if gateway is None or not payment_intent_id:
        logger.error(
            "refund_required",
            reservation_id=reservation_id,
            payment_intent_id=payment_intent_id,
            reason="no_gateway_or_payment_intent",
        )
        refund_obligations.labels(refund_status="pending").inc()
        return False

    try:
        gateway.refund(payment_intent_id, reservation_id)
    except PaymentProviderError:
        logger.exception(
            "refund_required",
            reservation_id=reservation_id,
            payment_intent_id=payment_intent_id,
            reason="refund_call_failed",
        )
        refund_obligations.labels(refund_status="pending").inc()
        return False

    with engine.begin() as conn:
        update_reservation(conn, reservation_id, {"payment_status": "refunded"})
    refund_obligations.labels(refund_status="refunded").inc()
    logger.info("reservation_refunded", reservation_id=reservation_id)
    return True


def confirm_reservation(
    engine: Engine,
    session: PaymentSession,
    gateway: Optional[StripeGateway] = None,
    notify: Callable[[dict[str, Any]], bool] = send_confirmation,
) -> ConfirmationOutcome:
    """
    Confirm the reservation behind a completed checkout session.

    Args:
        engine: SQLAlchemy Engine
        session: Verified checkout session data
        gateway: Payment processor wrapper, used to refund a failed re-check
        notify: Confirmation notification sender

    Returns:
        ConfirmationOutcome

    Raises:
        ReservationNotFoundError: No reservation matches the session
        ConfirmationConflictError: The range was taken before payment completed;
            the reservation is cancelled and a refund was attempted
    """
    with engine.begin() as conn:
        reservation = _find_for_session(conn, session)
        if reservation is None:
            raise ReservationNotFoundError(session.reservation_id or session.session_id)

        reservation_id = reservation["id"]
        status = reservation["status"]

        if status == "confirmed":
            reservation_transitions.labels(transition="duplicate_confirm").inc()
            logger.info("reservation_already_confirmed", reservation_id=reservation_id)
            return ConfirmationOutcome(reservation_id=reservation_id, status="already_confirmed")

        if status != "pending":
            refund_owed = status == "cancelled" and reservation["payment_status"] not in (
                "refunded",
                "failed",
            )
            if not refund_owed:
                logger.info(
                    "reservation_confirm_ignored",
                    reservation_id=reservation_id,
                    status=status,
                    payment_status=reservation["payment_status"],
                )
                return ConfirmationOutcome(reservation_id=reservation_id, status="ignored")
            # Paid after it was cancelled
            update_reservation(
                conn, reservation_id, {"payment_status": "paid", **_payment_ids(session)}
            )
            conflict = True
        else:
            try:
                recheck = check_availability(
                    conn,
                    reservation["room_id"],
                    reservation["check_in"],
                    reservation["check_out"],
                    exclude_reservation_id=reservation_id,
                )
                conflict = not recheck.available
            except RoomUnavailableError:
                conflict = True

            now = utc_now()
            if conflict:
                update_reservation(
                    conn,
                    reservation_id,
                    {
                        "status": "cancelled",
                        "payment_status": "paid",
                        "cancelled_at": now,
                        "cancellation_reason": RECHECK_CANCELLATION_REASON,
                        **_payment_ids(session),
                    },
                    expected_status="pending",
                )
                reservation_transitions.labels(transition="recheck_conflict").inc()
                logger.warning(
                    "reservation_recheck_conflict",
                    reservation_id=reservation_id,
                    room_id=reservation["room_id"],
                    check_in=reservation["check_in"].isoformat(),
                    check_out=reservation["check_out"].isoformat(),
                )
            else:
                updated = update_reservation(
                    conn,
                    reservation_id,
                    {
                        "status": "confirmed",
                        "payment_status": "paid",
                        "confirmed_at": now,
                        **_payment_ids(session),
                    },
                    expected_status="pending",
                )
                if not updated:
                    logger.info("reservation_confirm_raced", reservation_id=reservation_id)
                    return ConfirmationOutcome(reservation_id=reservation_id, status="ignored")

    if conflict:
        refunded = _refund(engine, reservation_id, session.payment_intent_id, gateway)
        raise ConfirmationConflictError(reservation_id, refunded)

    reservation_transitions.labels(transition="confirmed").inc()
    logger.info(
        "reservation_confirmed",
        reservation_id=reservation_id,
        confirmation_code=reservation["confirmation_code"],
        session_id=session.session_id,
    )

    outcome = ConfirmationOutcome(reservation_id=reservation_id, status="confirmed")

    try:
        with engine.begin() as conn:
            nights = commit_booked_nights(
                conn,
                reservation["room_id"],
                nights_between(reservation["check_in"], reservation["check_out"]),
                reservation_id,
            )
        outcome.ledger_committed = True
        logger.info("ledger_committed", reservation_id=reservation_id, nights=nights)
    except Exception as e:
        ledger_commit_failures.inc()
        logger.exception(
            "ledger_commit_failed",
            reservation_id=reservation_id,
            room_id=reservation["room_id"],
            error=str(e),
        )

    try:
        with engine.connect() as conn:
            confirmed = get_reservation(conn, reservation_id)
        outcome.notified = bool(confirmed and notify(confirmed))
    except Exception as e:
        logger.exception(
            "confirmation_notification_error", reservation_id=reservation_id, error=str(e)
        )

    return outcome


def fail_reservation(engine: Engine, session: PaymentSession) -> str:
    """
    Cancel the reservation behind an expired or failed checkout session.

    Returns:
        str: "cancelled", or "ignored" when the reservation was not pending

    Raises:
        ReservationNotFoundError: No reservation matches the session
    """
    with engine.begin() as conn:
        reservation = _find_for_session(conn, session)
        if reservation is None:
            raise ReservationNotFoundError(session.reservation_id or session.session_id)

        reservation_id = reservation["id"]
        if reservation["status"] != "pending":
            logger.info(
                "reservation_fail_ignored",
                reservation_id=reservation_id,
                status=reservation["status"],
            )
            return "ignored"

        update_reservation(
            conn,
            reservation_id,
            {
                "status": "cancelled",
                "payment_status": "failed",
                "cancelled_at": utc_now(),
                "cancellation_reason": "Payment session expired or failed",
                "stripe_session_id": session.session_id,
            },
            expected_status="pending",
        )

    reservation_transitions.labels(transition="failed").inc()
    logger.info("reservation_payment_failed", reservation_id=reservation_id)
    return "cancelled"


def cancel_reservation(
    engine: Engine,
    reservation_id: str,
    user_id: str,
    reason: Optional[str] = None,
    is_admin: bool = False,
) -> dict[str, Any]:
    """
    Cancel a pending reservation on request.

    Confirmed reservations are terminal here; refunds for paid stays go through
    the payment processor's own tooling. Cancelling twice is a no-op.

    Raises:
        ReservationNotFoundError: Unknown id, or owned by another user
        InvalidTransitionError: Reservation is confirmed or completed
    """
    with engine.begin() as conn:
        reservation = get_reservation(conn, reservation_id, for_update=True)
        if reservation is None or (not is_admin and reservation["user_id"] != user_id):
            raise ReservationNotFoundError(reservation_id)

        if reservation["status"] == "cancelled":
            return reservation
        if reservation["status"] != "pending":
            raise InvalidTransitionError(reservation_id, reservation["status"], "cancelled")

        update_reservation(
            conn,
            reservation_id,
            {
                "status": "cancelled",
                "cancelled_at": utc_now(),
                "cancellation_reason": reason or "Cancelled by guest",
            },
            expected_status="pending",
        )
        cancelled = get_reservation(conn, reservation_id)

    reservation_transitions.labels(transition="cancelled").inc()
    logger.info("reservation_cancelled", reservation_id=reservation_id, user_id=user_id)
    return cancelled or reservation
