"""
Booking confirmation notifications.

The message templates and delivery channels live in a separate notification
service. The engine hands it the confirmed reservation and its price breakdown
over HTTP. When no endpoint is configured the notification is only logged.
"""

from __future__ import annotations

from typing import Any, Optional

import requests
import structlog

from bnb_booking.config import NOTIFICATION_TIMEOUT, NOTIFICATION_WEBHOOK_URL

logger = structlog.get_logger(__name__)


def confirmation_payload(reservation: dict[str, Any]) -> dict[str, Any]:
    """Serialize a reservation into the notification event body."""
    return {
        "event": "reservation.confirmed",
        "reservation": {
            "id": reservation["id"],
            "confirmation_code": reservation["confirmation_code"],
            "room_id": reservation["room_id"],
            "user_id": reservation["user_id"],
            "check_in": reservation["check_in"].isoformat(),
            "check_out": reservation["check_out"].isoformat(),
            "number_of_nights": reservation["number_of_nights"],
            "number_of_guests": reservation["number_of_guests"],
            "guest_name": reservation["guest_name"],
            "guest_email": reservation["guest_email"],
            "guest_phone": reservation.get("guest_phone"),
            "special_requests": reservation.get("special_requests"),
        },
        "pricing": {
            key: str(reservation[key])
            for key in (
                "base_amount",
                "fees_amount",
                "state_tax_amount",
                "local_tax_amount",
                "tax_amount",
                "total_amount",
            )
        },
    }


def send_confirmation(
    reservation: dict[str, Any], webhook_url: Optional[str] = NOTIFICATION_WEBHOOK_URL
) -> bool:
    """
    Ask the notification service to send confirmation messages.

    Failures are logged and reported through the return value; they never raise,
    since a confirmed reservation must not be undone by a notification problem.

    Args:
        reservation: Confirmed reservation row
        webhook_url: Notification service endpoint (defaults to NOTIFICATION_WEBHOOK_URL)

    Returns:
        bool: True if the notification was accepted (or only logged), False on failure
    """
    payload = confirmation_payload(reservation)

    if not webhook_url:
        logger.info(
            "confirmation_notification_logged",
            reservation_id=reservation["id"],
            confirmation_code=reservation["confirmation_code"],
        )
        return True

    try:
        response = requests.post(webhook_url, json=payload, timeout=NOTIFICATION_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(
            "confirmation_notification_failed",
            reservation_id=reservation["id"],
            error=str(e),
        )
        return False

    logger.info(
        "confirmation_notification_sent",
        reservation_id=reservation["id"],
        status_code=response.status_code,
    )
    return True
