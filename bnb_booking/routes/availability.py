from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from bnb_booking.dependencies import get_db_engine
from bnb_booking.errors import BookingError
from bnb_booking.services.availability import check_availability, check_bulk, room_calendar

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/availability")
def bulk_availability(
    start: date = Query(..., description="First night"),
    end: date = Query(..., description="Checkout day"),
    room_ids: Optional[list[str]] = Query(None, description="Restrict to these rooms"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check every active room for one date range.

    Returns:
        dict: The range and one entry per room with its availability and conflict counts
    """
    try:
        with engine.connect() as conn:
            rooms = check_bulk(conn, start, end, room_ids)
        return {"start": start, "end": end, "rooms": rooms}

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("bulk_availability_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/availability/{room_id}")
def room_availability(
    room_id: str,
    start: date = Query(..., description="First night"),
    end: date = Query(..., description="Checkout day"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check one room for [start, end).

    Returns:
        dict: available flag plus the blocked nights and confirmed reservations in the way
    """
    try:
        with engine.connect() as conn:
            result = check_availability(conn, room_id, start, end)
        return result.to_dict()

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("availability_check_failed", room_id=room_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/availability/rooms/{room_ref}/calendar")
def room_availability_calendar(
    room_ref: str,
    start: date = Query(..., description="First day shown"),
    end: date = Query(..., description="Day after the last day shown"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Day-by-day availability and price for a room, by id or slug.
    """
    try:
        with engine.connect() as conn:
            return room_calendar(conn, room_ref, start, end)

    except (HTTPException, BookingError):
        raise
    except Exception as e:
        logger.exception("room_calendar_failed", room_ref=room_ref, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
