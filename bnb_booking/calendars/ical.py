"""
iCalendar parsing and generation.

Inbound feeds are reduced to (uid, start, end) at date granularity; events
missing any of the three are dropped and counted so the caller can report a
partial sync. Outbound feeds are built from explicit inputs only (including the
DTSTAMP of each event), so the same inputs always produce the same bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

import structlog
from icalendar import Calendar, Event

from bnb_booking.errors import FeedParseError
from bnb_booking.utils.datetime import as_utc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CalendarEvent:
    uid: str
    start: date
    end: date
    summary: Optional[str] = None


@dataclass
class ParsedFeed:
    events: list[CalendarEvent] = field(default_factory=list)
    dropped: int = 0


@dataclass(frozen=True)
class OutboundEvent:
    uid: str
    start: date
    end: date
    stamp: datetime
    summary: str
    description: str


def _as_date(prop: Any) -> Optional[date]:
    if prop is None:
        return None
    value = getattr(prop, "dt", None)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def parse_calendar(content: str) -> ParsedFeed:
    """
    Parse VEVENT blocks out of an iCal document.

    Args:
        content: Feed body

    Returns:
        ParsedFeed: Usable events plus the number of malformed events dropped

    Raises:
        FeedParseError: The document is not iCalendar at all
    """
    try:
        calendar = Calendar.from_ical(content)
    except ValueError as e:
        raise FeedParseError(f"Calendar feed could not be parsed: {e}") from e
    if calendar.name != "VCALENDAR":
        raise FeedParseError(f"Expected a VCALENDAR document, got {calendar.name}")

    feed = ParsedFeed()
    for component in calendar.walk("VEVENT"):
        uid = component.get("uid")
        start = _as_date(component.get("dtstart"))
        end = _as_date(component.get("dtend"))
        if not uid or start is None or end is None:
            feed.dropped += 1
            continue
        summary = component.get("summary")
        feed.events.append(
            CalendarEvent(
                uid=str(uid),
                start=start,
                end=end,
                summary=str(summary) if summary is not None else None,
            )
        )

    logger.debug("calendar_parsed", events=len(feed.events), dropped=feed.dropped)
    return feed


def build_calendar(events: Iterable[OutboundEvent], prodid: str, name: str) -> str:
    """
    Render an iCal document.

    Events are written in (start, uid) order. Dates are all-day values and DTEND
    is exclusive, as the iCalendar format requires.

    Args:
        events: Events to publish
        prodid: PRODID of the generating product
        name: Calendar display name

    Returns:
        str: The document, CRLF line endings
    """
    calendar = Calendar()
    calendar.add("prodid", prodid)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")
    calendar.add("x-wr-calname", name)

    for item in sorted(events, key=lambda e: (e.start, e.uid)):
        event = Event()
        event.add("uid", item.uid)
        event.add("dtstart", item.start)
        event.add("dtend", item.end)
        event.add("dtstamp", as_utc(item.stamp))
        event.add("summary", item.summary)
        event.add("description", item.description)
        event.add("status", "CONFIRMED")
        event.add("transp", "OPAQUE")
        calendar.add_component(event)

    return calendar.to_ical().decode("utf-8")
