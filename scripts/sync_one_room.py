import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse

import structlog

from bnb_booking.db.engine import engine
from bnb_booking.logging_config import setup_logging
from bnb_booking.services.calendar_sync import PLATFORMS, sync_external_calendar

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Sync a single room against one or both booking platforms.
    """
    parser = argparse.ArgumentParser(description="Sync one room's external calendars")
    parser.add_argument("room_id", help="Room id")
    parser.add_argument("--platform", choices=PLATFORMS, help="Only sync this platform")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and parse only")
    args = parser.parse_args()

    platforms = [args.platform] if args.platform else list(PLATFORMS)
    failed = False
    for platform in platforms:
        result = sync_external_calendar(engine, args.room_id, platform, dry_run=args.dry_run)
        logger.info("room_sync_result", **result.to_dict())
        failed = failed or not result.success

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
