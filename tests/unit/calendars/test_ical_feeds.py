"""
Unit tests for iCal feed parsing and generation.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from icalendar import Calendar

from bnb_booking.calendars.ical import OutboundEvent, build_calendar, parse_calendar
from bnb_booking.errors import FeedParseError

FEED_WITH_BAD_EVENT = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Expedia//Partner Calendar//EN
BEGIN:VEVENT
UID:exp-100
DTSTART:20300801T150000Z
DTEND:20300803T110000Z
SUMMARY:Booked
END:VEVENT
BEGIN:VEVENT
UID:exp-101
DTSTART;VALUE=DATE:20300810
SUMMARY:Missing end
END:VEVENT
BEGIN:VEVENT
DTSTART;VALUE=DATE:20300815
DTEND;VALUE=DATE:20300816
SUMMARY:Missing uid
END:VEVENT
END:VCALENDAR
"""


@pytest.mark.unit
def test_parse_calendar_reads_all_day_events(airbnb_feed: str) -> None:
    feed = parse_calendar(airbnb_feed)

    assert feed.dropped == 0
    assert [(e.start, e.end) for e in feed.events] == [
        (date(2030, 6, 10), date(2030, 6, 13)),
        (date(2030, 6, 20), date(2030, 6, 22)),
        (date(2030, 7, 1), date(2030, 7, 2)),
    ]
    assert feed.events[0].uid.endswith("@airbnb.com")
    assert feed.events[2].summary == "Airbnb (Not available)"


@pytest.mark.unit
def test_parse_calendar_reduces_datetimes_and_counts_dropped_events() -> None:
    feed = parse_calendar(FEED_WITH_BAD_EVENT)

    assert len(feed.events) == 1
    assert feed.events[0].uid == "exp-100"
    assert feed.events[0].start == date(2030, 8, 1)
    assert feed.events[0].end == date(2030, 8, 3)
    assert feed.dropped == 2


@pytest.mark.unit
def test_parse_calendar_rejects_non_calendar_content() -> None:
    with pytest.raises(FeedParseError):
        parse_calendar("<html><body>Service unavailable</body></html>")


def _events() -> list[OutboundEvent]:
    stamp = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)
    return [
        OutboundEvent(
            uid="reservation-2@bnb-booking.local",
            start=date(2030, 6, 20),
            end=date(2030, 6, 22),
            stamp=stamp,
            summary="Reserved: Grace",
            description="Confirmation code: ABC234",
        ),
        OutboundEvent(
            uid="reservation-1@bnb-booking.local",
            start=date(2030, 6, 10),
            end=date(2030, 6, 13),
            stamp=stamp,
            summary="Reserved: Ada",
            description="Confirmation code: XYZ789",
        ),
    ]


@pytest.mark.unit
def test_build_calendar_orders_events_by_start_date() -> None:
    body = build_calendar(_events(), prodid="-//Test//EN", name="Garden Suite")

    calendar = Calendar.from_ical(body)
    events = list(calendar.walk("VEVENT"))
    assert [str(e.get("uid")) for e in events] == [
        "reservation-1@bnb-booking.local",
        "reservation-2@bnb-booking.local",
    ]
    assert str(calendar.get("x-wr-calname")) == "Garden Suite"
    assert str(events[0].get("status")) == "CONFIRMED"
    assert events[0].decoded("dtstart") == date(2030, 6, 10)
    assert events[0].decoded("dtend") == date(2030, 6, 13)


@pytest.mark.unit
def test_build_calendar_is_deterministic() -> None:
    first = build_calendar(_events(), prodid="-//Test//EN", name="Garden Suite")
    second = build_calendar(list(reversed(_events())), prodid="-//Test//EN", name="Garden Suite")

    assert first == second
    assert first.startswith("BEGIN:VCALENDAR\r\n")


@pytest.mark.unit
def test_build_calendar_round_trips_through_parser() -> None:
    feed = parse_calendar(build_calendar(_events(), prodid="-//Test//EN", name="Garden Suite"))

    assert {e.uid for e in feed.events} == {
        "reservation-1@bnb-booking.local",
        "reservation-2@bnb-booking.local",
    }
    assert feed.dropped == 0


@pytest.mark.unit
def test_parse_calendar_rejects_bare_event_document() -> None:
    bare_event = (
        "BEGIN:VEVENT\r\nUID:lone@example.com\r\n"
        "DTSTART;VALUE=DATE:20300610\r\nDTEND;VALUE=DATE:20300612\r\nEND:VEVENT\r\n"
    )

    with pytest.raises(FeedParseError):
        parse_calendar(bare_event)
