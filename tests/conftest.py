"""
Shared fixtures for the test suite.

Every test gets its own SQLite database file with the full schema, so tests can
commit freely and never see each other's rows. The environment is configured
before any bnb_booking module is imported.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("SYNC_INTER_CALL_DELAY", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from bnb_booking.cache import sync_summary_cache
from bnb_booking.db.engine import build_engine
from bnb_booking.db.writers.availability import commit_booked_nights
from bnb_booking.db.writers.reservations import insert_reservation
from bnb_booking.db.writers.rooms import insert_room
from bnb_booking.dependencies import get_db_engine, get_payment_gateway
from bnb_booking.models.availability import RoomAvailability  # noqa: F401
from bnb_booking.models.base import Base
from bnb_booking.models.blocked_periods import RoomBlockedPeriod  # noqa: F401
from bnb_booking.models.pricing_rules import RoomPricingRule  # noqa: F401
from bnb_booking.models.reservations import Reservation  # noqa: F401
from bnb_booking.models.rooms import Room  # noqa: F401
from bnb_booking.models.sync_log import ICalSyncLog  # noqa: F401
from bnb_booking.utils.datetime import nights_between, utc_now

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Fresh SQLite database with every table created."""
    engine = build_engine(f"sqlite:///{tmp_path / 'bnb_test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def clear_sync_summaries() -> Generator[None, None, None]:
    sync_summary_cache.clear()
    yield
    sync_summary_cache.clear()


@pytest.fixture
def make_room(db_engine: Engine) -> Callable[..., dict[str, Any]]:
    """
    Factory inserting a room. Defaults: $150/night, no fee, no taxes, active.
    """

    def _make(**overrides: Any) -> dict[str, Any]:
        room_id = overrides.pop("id", None) or f"room-{uuid.uuid4().hex[:8]}"
        values: dict[str, Any] = {
            "id": room_id,
            "slug": room_id,
            "name": "Garden Suite",
            "base_price": Decimal("150.00"),
            "service_fee_rate": Decimal("0"),
            "state_tax_rate": Decimal("0"),
            "local_tax_rate": Decimal("0"),
            "status": "active",
            "airbnb_ical_url": None,
            "expedia_ical_url": None,
        }
        values.update(overrides)
        with db_engine.begin() as conn:
            insert_room(conn, values)
        return values

    return _make


@pytest.fixture
def make_reservation(db_engine: Engine) -> Callable[..., dict[str, Any]]:
    """
    Factory inserting a reservation directly, bypassing availability checks.

    A confirmed reservation also gets its nights committed to the ledger unless
    commit_ledger=False.
    """

    def _make(room_id: str, check_in: date, check_out: date, **overrides: Any) -> dict[str, Any]:
        commit_ledger = overrides.pop("commit_ledger", True)
        reservation_id = overrides.pop("id", None) or str(uuid.uuid4())
        values: dict[str, Any] = {
            "id": reservation_id,
            "confirmation_code": uuid.uuid4().hex[:6].upper(),
            "room_id": room_id,
            "user_id": "user-1",
            "check_in": check_in,
            "check_out": check_out,
            "number_of_nights": (check_out - check_in).days,
            "number_of_guests": 2,
            "base_amount": Decimal("300.00"),
            "fees_amount": Decimal("0.00"),
            "state_tax_amount": Decimal("0.00"),
            "local_tax_amount": Decimal("0.00"),
            "tax_amount": Decimal("0.00"),
            "total_amount": Decimal("300.00"),
            "status": "pending",
            "payment_status": "pending",
            "guest_name": "Ada Guest",
            "guest_email": "ada@example.com",
        }
        values.update(overrides)
        if values["status"] == "confirmed":
            values.setdefault("confirmed_at", utc_now())
        with db_engine.begin() as conn:
            insert_reservation(conn, values)
            if values["status"] == "confirmed" and commit_ledger:
                commit_booked_nights(
                    conn, room_id, nights_between(check_in, check_out), reservation_id
                )
        return values

    return _make


@pytest.fixture
def stay() -> tuple[date, date]:
    """A two-night stay well in the future."""
    check_in = date.today() + timedelta(days=30)
    return check_in, check_in + timedelta(days=2)


@pytest.fixture
def app_client(db_engine: Engine) -> Generator[TestClient, None, None]:
    """TestClient for the full application, bound to the per-test database."""
    from bnb_booking.main import app

    app.dependency_overrides[get_db_engine] = lambda: db_engine
    app.dependency_overrides[get_payment_gateway] = lambda: None
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


GUEST_HEADERS = {"X-User-Id": "user-1", "X-User-Role": "guest"}
ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


@pytest.fixture
def guest_headers() -> dict[str, str]:
    return dict(GUEST_HEADERS)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return dict(ADMIN_HEADERS)


@pytest.fixture
def airbnb_feed() -> str:
    return (FIXTURES_DIR / "airbnb_calendar.ics").read_text()
