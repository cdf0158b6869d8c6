"""
Public iCal feed of a room's own bookings, for Airbnb and Expedia to import.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.engine import Engine

from bnb_booking.config import OUTBOUND_CALENDAR_CACHE_SECONDS
from bnb_booking.dependencies import get_db_engine
from bnb_booking.services.calendar_sync import generate_outbound_calendar

logger = structlog.get_logger(__name__)
router = APIRouter()

CALENDAR_MEDIA_TYPE = "text/calendar; charset=utf-8"


def _calendar_response(engine: Engine, room_ref: str) -> Response:
    body = generate_outbound_calendar(engine, room_ref)
    return Response(
        content=body,
        media_type=CALENDAR_MEDIA_TYPE,
        headers={
            "Cache-Control": f"public, max-age={OUTBOUND_CALENDAR_CACHE_SECONDS}",
            "Content-Disposition": f'attachment; filename="room-{room_ref}.ics"',
        },
    )


@router.get("/calendars/{room_ref}.ics", response_class=Response)
def room_feed_ics(room_ref: str, engine: Engine = Depends(get_db_engine)) -> Response:
    """
    Serve the room's feed (id or slug) as an .ics download.

    Example:
        >>> GET /calendars/garden-suite.ics
        BEGIN:VCALENDAR
        ...
    """
    return _calendar_response(engine, room_ref)


@router.get("/calendars/{room_ref}", response_class=Response)
def room_feed(room_ref: str, engine: Engine = Depends(get_db_engine)) -> Response:
    return _calendar_response(engine, room_ref)
