"""
Two-way calendar reconciliation with Airbnb and Expedia.

Inbound: each platform's feed replaces that platform's rows in the ledger
(delete, then insert one blocked night per booked night). Full replacement on
every run picks up upstream edits and cancellations without diffing. Callers
may briefly see the room as free while the replacement transaction runs.

Outbound: the room's own feed is rebuilt on every request from confirmed
reservations and manual blocked periods. Nothing is persisted.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional

import structlog
from sqlalchemy.engine import Engine

from bnb_booking.calendars.ical import OutboundEvent, build_calendar, parse_calendar
from bnb_booking.config import CALENDAR_PRODID, CALENDAR_UID_DOMAIN
from bnb_booking.db.readers.blocked_periods import list_blocked_periods
from bnb_booking.db.readers.reservations import list_confirmed_for_room
from bnb_booking.db.readers.rooms import get_room, get_room_by_ref
from bnb_booking.db.writers.availability import replace_source_nights
from bnb_booking.db.writers.rooms import update_last_sync
from bnb_booking.db.writers.sync_log import insert_sync_log
from bnb_booking.errors import (
    BookingError,
    InvalidInputError,
    NoCalendarConfiguredError,
    RoomNotFoundError,
)
from bnb_booking.metrics import calendar_syncs, nights_blocked, sync_duration
from bnb_booking.network.client import fetch_calendar
from bnb_booking.utils.datetime import nights_between, utc_now

logger = structlog.get_logger(__name__)

PLATFORMS = ("airbnb", "expedia")

CALENDAR_URL_COLUMNS = {
    "airbnb": "airbnb_ical_url",
    "expedia": "expedia_ical_url",
}


@dataclass
class SyncResult:
    room_id: str
    platform: str
    status: str = "error"
    bookings_processed: int = 0
    nights_blocked: int = 0
    events_skipped: int = 0
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.status != "error"

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "platform": self.platform,
            "success": self.success,
            "status": self.status,
            "bookings_processed": self.bookings_processed,
            "nights_blocked": self.nights_blocked,
            "events_skipped": self.events_skipped,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "duration_ms": self.duration_ms,
        }


def sync_external_calendar(
    engine: Engine,
    room_id: str,
    platform: str,
    dry_run: bool = False,
    fetch: Callable[[str], str] = fetch_calendar,
) -> SyncResult:
    """
    Replace a room's ledger rows for one platform with the platform's current feed.

    Failures are captured in the returned result rather than raised. A sync log
    row is written for every attempt, including failed ones.

    Args:
        engine: SQLAlchemy Engine
        room_id: Room id
        platform: 'airbnb' or 'expedia'
        dry_run: If True, fetch and parse but skip all DB writes
        fetch: Feed fetcher (URL -> body)

    Returns:
        SyncResult: status 'success', 'partial' (some events unusable) or 'error'
    """
    result = SyncResult(room_id=room_id, platform=platform)
    started = time.monotonic()
    logger.info("calendar_sync_started", room_id=room_id, platform=platform, dry_run=dry_run)

    try:
        if platform not in PLATFORMS:
            raise InvalidInputError(f"Unknown platform {platform}", {"platform": platform})

        with engine.connect() as conn:
            room = get_room(conn, room_id)
        if room is None:
            raise RoomNotFoundError(room_id)

        url = room[CALENDAR_URL_COLUMNS[platform]]
        if not url:
            raise NoCalendarConfiguredError(room_id, platform)

        feed = parse_calendar(fetch(url))

        nights: list[tuple[Any, str]] = []
        for event in feed.events:
            event_nights = list(nights_between(event.start, event.end))
            if not event_nights:
                result.events_skipped += 1
                continue
            result.bookings_processed += 1
            nights.extend((night, event.uid) for night in event_nights)
        result.events_skipped += feed.dropped

        if dry_run:
            result.nights_blocked = len({night for night, _ in nights})
            logger.info(
                "[DRY RUN] Would replace ledger nights",
                room_id=room_id,
                platform=platform,
                nights=result.nights_blocked,
            )
        else:
            with engine.begin() as conn:
                result.nights_blocked = replace_source_nights(conn, room_id, platform, nights)
                update_last_sync(conn, room_id, platform, utc_now())

        result.status = "partial" if result.events_skipped else "success"

    except BookingError as e:
        result.status = "error"
        result.error_message = e.message
        result.error_code = e.code
        logger.warning(
            "calendar_sync_failed",
            room_id=room_id,
            platform=platform,
            error_code=e.code,
            error=e.message,
        )
    except Exception as e:
        result.status = "error"
        result.error_message = str(e)
        result.error_code = "internal_error"
        logger.exception("calendar_sync_failed", room_id=room_id, platform=platform, error=str(e))
    finally:
        elapsed = time.monotonic() - started
        result.duration_ms = int(elapsed * 1000)
        sync_duration.labels(platform=platform).observe(elapsed)
        calendar_syncs.labels(platform=platform, status=result.status).inc()

        if not dry_run:
            try:
                with engine.begin() as conn:
                    insert_sync_log(
                        conn,
                        room_id=room_id,
                        platform=platform,
                        status=result.status,
                        bookings_processed=result.bookings_processed,
                        duration_ms=result.duration_ms,
                        error_message=result.error_message,
                    )
            except Exception as e:
                logger.exception(
                    "sync_log_write_failed", room_id=room_id, platform=platform, error=str(e)
                )

    if result.success:
        nights_blocked.labels(platform=platform).inc(result.nights_blocked)
        logger.info(
            "calendar_sync_completed",
            room_id=room_id,
            platform=platform,
            status=result.status,
            bookings_processed=result.bookings_processed,
            nights_blocked=result.nights_blocked,
            events_skipped=result.events_skipped,
            duration_ms=result.duration_ms,
        )
    return result


FEED_PREVIEW_CHARS = 300


def check_calendar_url(
    engine: Engine,
    room_id: str,
    url: str,
    fetch: Callable[[str], str] = fetch_calendar,
) -> dict[str, Any]:
    """
    Fetch and parse a candidate feed for a room without touching the ledger.

    Lets an operator confirm a platform URL works before saving it on the room.
    Fetch and parse failures are reported in the result, not raised.

    Args:
        engine: SQLAlchemy Engine
        room_id: Room the feed is meant for
        url: Candidate feed URL
        fetch: Feed fetcher (URL -> body)

    Returns:
        dict: valid flag, event and night counts, dropped events, a short preview
        of the body, or the error code and message

    Raises:
        RoomNotFoundError: Unknown room
    """
    with engine.connect() as conn:
        if get_room(conn, room_id) is None:
            raise RoomNotFoundError(room_id)

    result: dict[str, Any] = {"room_id": room_id, "url": url, "checked_at": utc_now()}
    try:
        content = fetch(url)
        feed = parse_calendar(content)
    except BookingError as e:
        logger.info("calendar_url_check_failed", room_id=room_id, error_code=e.code)
        result.update(valid=False, error_code=e.code, error_message=e.message)
        return result

    nights = {
        night for event in feed.events for night in nights_between(event.start, event.end)
    }
    result.update(
        valid=True,
        content_length=len(content),
        event_count=len(feed.events),
        events_dropped=feed.dropped,
        nights=len(nights),
        preview=content[:FEED_PREVIEW_CHARS],
    )
    logger.info(
        "calendar_url_checked", room_id=room_id, events=len(feed.events), dropped=feed.dropped
    )
    return result


def generate_outbound_calendar(engine: Engine, room_ref: str) -> str:
    """
    Build the room's iCal feed from confirmed reservations and manual blocks.

    The output depends only on stored data: each event's DTSTAMP comes from
    the row it describes, so two calls with no change in between return
    identical documents.

    Args:
        engine: SQLAlchemy Engine
        room_ref: Room id or slug

    Returns:
        str: iCal document

    Raises:
        RoomNotFoundError: No room with this id or slug
    """
    with engine.connect() as conn:
        room = get_room_by_ref(conn, room_ref)
        if room is None:
            raise RoomNotFoundError(room_ref)
        reservations = list_confirmed_for_room(conn, room["id"])
        blocked = list_blocked_periods(conn, room["id"])

    events = [
        OutboundEvent(
            uid=f"reservation-{reservation['id']}@{CALENDAR_UID_DOMAIN}",
            start=reservation["check_in"],
            end=reservation["check_out"],
            stamp=reservation["confirmed_at"] or reservation["created_at"],
            summary=f"Reserved: {reservation['guest_name']}",
            description=f"Confirmation code: {reservation['confirmation_code']}",
        )
        for reservation in reservations
    ]
    events.extend(
        OutboundEvent(
            uid=f"blocked-{period['id']}@{CALENDAR_UID_DOMAIN}",
            start=period["start_date"],
            end=period["end_date"] + timedelta(days=1),
            stamp=period["created_at"],
            summary=f"Blocked: {period['reason']}",
            description=period["notes"] or "This property is not available",
        )
        for period in blocked
    )

    logger.debug(
        "outbound_calendar_generated",
        room_id=room["id"],
        reservations=len(reservations),
        blocked_periods=len(blocked),
    )
    return build_calendar(events, prodid=CALENDAR_PRODID, name=room["name"])
