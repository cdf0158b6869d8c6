from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from bnb_booking.dependencies import get_db_engine
from bnb_booking.errors import BookingError
from bnb_booking.pricing.evaluator import quote_stay
from bnb_booking.schemas.reservations import QuotePayload

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/quote")
def create_quote(
    payload: QuotePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Price a stay without booking it.

    Args:
        payload: Room, dates and party size
        engine: Database engine

    Returns:
        dict: Amount breakdown, tax breakdown and the pricing rules that fired
    """
    try:
        with engine.connect() as conn:
            quote = quote_stay(
                conn, payload.room_id, payload.check_in, payload.check_out, payload.guest_count
            )
        return {"room_id": payload.room_id, **quote.to_dict()}

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("quote_failed", room_id=payload.room_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
