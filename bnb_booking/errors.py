"""
Domain exceptions for the booking engine.

Every failure the engine raises on purpose derives from BookingError and falls
into one of five families. The HTTP layer maps each family to a status code
(see bnb_booking.routes.errors), so callers can tell "dates unavailable" from
"invalid input" from "system error":

    NotFoundError     -> 404  room, reservation, rule or block absent
    InvalidInputError -> 422  malformed dates, guest count, rule values
    ConflictError     -> 409  range unavailable, confirmation re-check failure
    UpstreamError     -> 502  calendar feed or payment processor failure
    InternalError     -> 500  storage failure unrelated to business rules
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional


class BookingError(Exception):
    """Base class for all engine errors."""

    code = "booking_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(BookingError):
    code = "not_found"


class RoomNotFoundError(NotFoundError):
    code = "room_not_found"

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room {room_id} not found", {"room_id": room_id})
        self.room_id = room_id


class RoomUnavailableError(NotFoundError):
    """Room is missing or not in the active lifecycle state."""

    code = "room_unavailable"

    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room {room_id} not found or inactive", {"room_id": room_id})
        self.room_id = room_id


class ReservationNotFoundError(NotFoundError):
    code = "reservation_not_found"

    def __init__(self, reference: str) -> None:
        super().__init__(f"Reservation {reference} not found", {"reservation": reference})


class PricingRuleNotFoundError(NotFoundError):
    code = "pricing_rule_not_found"

    def __init__(self, rule_id: str) -> None:
        super().__init__(f"Pricing rule {rule_id} not found", {"rule_id": rule_id})


class BlockedPeriodNotFoundError(NotFoundError):
    code = "blocked_period_not_found"

    def __init__(self, period_id: str) -> None:
        super().__init__(f"Blocked period {period_id} not found", {"period_id": period_id})


# =============================================================================
# InvalidInput
# =============================================================================


class InvalidInputError(BookingError):
    code = "invalid_input"


class InvalidRangeError(InvalidInputError):
    code = "invalid_range"

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            f"Start date {start.isoformat()} must be before end date {end.isoformat()}",
            {"start": start.isoformat(), "end": end.isoformat()},
        )


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(BookingError):
    code = "conflict"


class RoomNotAvailableError(ConflictError):
    """Requested range collides with blocked nights or confirmed stays."""

    code = "room_not_available"

    def __init__(
        self,
        room_id: str,
        blocked_dates: list[dict[str, Any]],
        conflicting_reservations: list[dict[str, Any]],
    ) -> None:
        super().__init__(
            f"Room {room_id} is not available for the requested dates",
            {
                "room_id": room_id,
                "blocked_dates": blocked_dates,
                "conflicting_reservations": conflicting_reservations,
            },
        )


class ConfirmationConflictError(ConflictError):
    """Payment succeeded but the range was taken in the meantime; a refund is owed."""

    code = "refund_required"

    def __init__(self, reservation_id: str, refunded: bool) -> None:
        super().__init__(
            f"Reservation {reservation_id} could not be confirmed; dates no longer available",
            {"reservation_id": reservation_id, "refunded": refunded},
        )
        self.reservation_id = reservation_id
        self.refunded = refunded


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"

    def __init__(self, reservation_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Reservation {reservation_id} cannot move from {current} to {target}",
            {"reservation_id": reservation_id, "status": current, "target": target},
        )


# =============================================================================
# Upstream
# =============================================================================


class UpstreamError(BookingError):
    code = "upstream_failure"


class NoCalendarConfiguredError(UpstreamError):
    code = "no_calendar_configured"

    def __init__(self, room_id: str, platform: str) -> None:
        super().__init__(
            f"No {platform} calendar URL configured for room {room_id}",
            {"room_id": room_id, "platform": platform},
        )


class FetchFailedError(UpstreamError):
    code = "fetch_failed"


class FeedParseError(UpstreamError):
    code = "feed_parse_failed"


class PaymentProviderError(UpstreamError):
    code = "payment_provider_failure"


class NotificationFailedError(UpstreamError):
    code = "notification_failed"

    def __init__(self, reservation_id: str) -> None:
        super().__init__(
            f"Confirmation notice for reservation {reservation_id} was not delivered",
            {"reservation_id": reservation_id},
        )


# =============================================================================
# Internal
# =============================================================================


class InternalError(BookingError):
    code = "internal_error"
