import structlog

from bnb_booking.config import DRY_RUN
from bnb_booking.db.engine import engine
from bnb_booking.logging_config import setup_logging
from bnb_booking.services.sync import sync_all_rooms

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    # Run one hourly pass across all active rooms
    summary = sync_all_rooms(engine, dry_run=DRY_RUN)
    logger.info("manual_sync_finished", successful=summary.successful, failed=summary.failed)


if __name__ == "__main__":
    main()
