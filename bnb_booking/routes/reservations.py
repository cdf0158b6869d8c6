from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from bnb_booking.dependencies import (
    Principal,
    get_current_user,
    get_db_engine,
    get_payment_gateway,
)
from bnb_booking.errors import BookingError, PaymentProviderError
from bnb_booking.payments.stripe_client import StripeGateway
from bnb_booking.schemas.reservations import (
    CancelPayload,
    CheckoutPayload,
    ReservationCreatePayload,
)
from bnb_booking.services.reservations import (
    BookingRequest,
    cancel_reservation,
    create_reservation,
    get_user_reservation,
    list_reservations_for_user,
    start_checkout,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
def book_room(
    payload: ReservationCreatePayload,
    principal: Principal = Depends(get_current_user),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a pending reservation for the caller.

    Args:
        payload: Room, dates, party size and guest contact
        principal: Caller identity from the gateway headers
        engine: Database engine

    Returns:
        dict: The pending reservation, including its confirmation code and amounts
    """
    try:
        return create_reservation(
            engine,
            BookingRequest(**payload.model_dump()),
            user_id=principal.user_id,
        )

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("reservation_creation_failed", room_id=payload.room_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations")
def list_my_reservations(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_user),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    reservations = list_reservations_for_user(
        engine, principal.user_id, status=status_filter, limit=limit, offset=offset
    )
    return {"reservations": reservations, "limit": limit, "offset": offset}


@router.get("/reservations/{reservation_id}")
def get_my_reservation(
    reservation_id: str,
    principal: Principal = Depends(get_current_user),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return get_user_reservation(
        engine, reservation_id, principal.user_id, is_admin=principal.is_admin
    )


@router.post("/reservations/{reservation_id}/checkout")
def checkout_reservation(
    reservation_id: str,
    payload: CheckoutPayload,
    principal: Principal = Depends(get_current_user),
    engine: Engine = Depends(get_db_engine),
    gateway: Optional[StripeGateway] = Depends(get_payment_gateway),
) -> dict[str, Any]:
    """
    Open a hosted checkout session for a pending reservation.

    Returns:
        dict: session_id and the URL to redirect the guest to
    """
    if gateway is None:
        raise PaymentProviderError("Payments are not configured")

    try:
        return start_checkout(
            engine,
            reservation_id,
            principal.user_id,
            success_url=str(payload.success_url),
            cancel_url=str(payload.cancel_url),
            gateway=gateway,
        )

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("checkout_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/reservations/{reservation_id}/cancel")
def cancel_my_reservation(
    reservation_id: str,
    payload: Optional[CancelPayload] = None,
    principal: Principal = Depends(get_current_user),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Cancel a reservation that has not been paid for yet.
    """
    return cancel_reservation(
        engine,
        reservation_id,
        principal.user_id,
        reason=payload.reason if payload else None,
        is_admin=principal.is_admin,
    )
