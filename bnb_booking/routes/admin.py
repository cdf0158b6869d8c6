"""
Back-office endpoints for rooms, pricing rules, blocked periods, reservations
and calendar sync.

Every route requires the admin role.
"""

from datetime import date
from typing import Any, Literal, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from bnb_booking.cache import sync_summary_cache
from bnb_booking.config import DRY_RUN
from bnb_booking.db.readers.sync_log import list_sync_logs
from bnb_booking.dependencies import get_db_engine, require_admin
from bnb_booking.errors import InvalidInputError, RoomNotFoundError
from bnb_booking.schemas.rooms import (
    BlockedPeriodCreatePayload,
    CalendarUrlCheckPayload,
    PricingRuleCreatePayload,
    PricingRuleUpdatePayload,
    RoomCreatePayload,
    RoomUpdatePayload,
)
from bnb_booking.services.calendar_sync import (
    PLATFORMS,
    check_calendar_url,
    sync_external_calendar,
)
from bnb_booking.services.catalog import (
    create_blocked_period,
    create_pricing_rule,
    create_room,
    get_room_or_404,
    list_all_rooms,
    remove_blocked_period,
    remove_pricing_rule,
    room_blocked_periods,
    room_pricing_rules,
    update_pricing_rule_fields,
    update_room_fields,
)
from bnb_booking.services.reservations import (
    list_all_reservations,
    reservation_stats,
    resend_confirmation,
)
from bnb_booking.services.sync import sync_all_rooms

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


# =============================================================================
# Rooms
# =============================================================================


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
def add_room(payload: RoomCreatePayload, engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    room = create_room(engine, payload.model_dump())
    logger.info("room_created", room_id=room["id"], slug=room["slug"])
    return room


@router.get("/rooms")
def get_rooms(
    status_filter: Optional[str] = Query(None, alias="status"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"rooms": list_all_rooms(engine, status=status_filter)}


@router.get("/rooms/{room_ref}")
def get_room_detail(room_ref: str, engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    return get_room_or_404(engine, room_ref)


@router.patch("/rooms/{room_id}")
def patch_room(
    room_id: str,
    payload: RoomUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Update room fields. Only fields present in the request body are written.
    """
    return update_room_fields(engine, room_id, payload.model_dump(exclude_unset=True))


# =============================================================================
# Pricing rules
# =============================================================================


@router.get("/rooms/{room_id}/pricing-rules")
def get_pricing_rules(room_id: str, engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    return {"room_id": room_id, "rules": room_pricing_rules(engine, room_id)}


@router.post("/rooms/{room_id}/pricing-rules", status_code=status.HTTP_201_CREATED)
def add_pricing_rule(
    room_id: str,
    payload: PricingRuleCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return create_pricing_rule(engine, room_id, payload.model_dump())


@router.patch("/pricing-rules/{rule_id}")
def patch_pricing_rule(
    rule_id: str,
    payload: PricingRuleUpdatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return update_pricing_rule_fields(engine, rule_id, payload.model_dump(exclude_unset=True))


@router.delete("/pricing-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pricing_rule(rule_id: str, engine: Engine = Depends(get_db_engine)) -> Response:
    remove_pricing_rule(engine, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Blocked periods
# =============================================================================


@router.get("/rooms/{room_id}/blocked-periods")
def get_blocked_periods(room_id: str, engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    return {"room_id": room_id, "blocked_periods": room_blocked_periods(engine, room_id)}


@router.post("/rooms/{room_id}/blocked-periods", status_code=status.HTTP_201_CREATED)
def add_blocked_period(
    room_id: str,
    payload: BlockedPeriodCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return create_blocked_period(engine, room_id, payload.model_dump())


@router.delete("/blocked-periods/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_period(period_id: str, engine: Engine = Depends(get_db_engine)) -> Response:
    remove_blocked_period(engine, period_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Reservations
# =============================================================================


@router.get("/reservations")
def get_reservations(
    status_filter: Optional[Literal["pending", "confirmed", "cancelled", "completed"]] = Query(
        None, alias="status"
    ),
    payment_status: Optional[Literal["pending", "paid", "failed", "refunded"]] = None,
    room_id: Optional[str] = None,
    check_in_from: Optional[date] = None,
    check_in_to: Optional[date] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    List reservations across all guests, newest first.

    check_in_from and check_in_to bound the check-in date, both inclusive.
    """
    reservations = list_all_reservations(
        engine,
        status=status_filter,
        payment_status=payment_status,
        room_id=room_id,
        check_in_from=check_in_from,
        check_in_to=check_in_to,
        limit=limit,
        offset=offset,
    )
    return {"reservations": reservations, "limit": limit, "offset": offset}


@router.get("/reservations/stats")
def get_reservation_stats(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    return reservation_stats(engine)


@router.post("/reservations/{reservation_id}/resend-confirmation")
def post_resend_confirmation(
    reservation_id: str, engine: Engine = Depends(get_db_engine)
) -> dict[str, Any]:
    return resend_confirmation(engine, reservation_id)


# =============================================================================
# Calendar sync
# =============================================================================


@router.post("/sync")
def trigger_sync_all(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    """
    Run the full calendar sync now and return its summary.

    The call blocks until every room has been synced, pausing between calls
    like the scheduled run does.
    """
    summary = sync_all_rooms(engine, dry_run=DRY_RUN)
    return summary.to_dict()


@router.post("/rooms/{room_id}/sync/{platform}")
def trigger_room_sync(
    room_id: str,
    platform: str,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Sync one room against one platform.

    Returns:
        JSONResponse: 200 with the sync result, or 502 when the platform feed
        could not be fetched or parsed
    """
    if platform not in PLATFORMS:
        raise InvalidInputError(f"Unknown platform {platform}", {"platform": platform})

    result = sync_external_calendar(engine, room_id, platform, dry_run=DRY_RUN)
    if result.error_code == RoomNotFoundError.code:
        raise RoomNotFoundError(room_id)

    status_code = status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=status_code, content=result.to_dict())


@router.post("/rooms/{room_id}/ical/test")
def post_calendar_url_check(
    room_id: str,
    payload: CalendarUrlCheckPayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Fetch and parse a candidate feed URL before it is saved on the room.

    Always 200 for a known room; the result says whether the feed is usable.
    """
    return check_calendar_url(engine, room_id, str(payload.url))


@router.get("/sync/summaries")
def get_sync_summaries(limit: int = Query(10, ge=1, le=100)) -> dict[str, Any]:
    return {"summaries": sync_summary_cache.recent(limit)}


@router.get("/sync/logs")
def get_sync_logs(
    room_id: Optional[str] = None,
    platform: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with engine.connect() as conn:
        logs = list_sync_logs(conn, room_id=room_id, platform=platform, limit=limit)
    return {"logs": logs}
