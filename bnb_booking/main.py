# bnb_booking/main.py

from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bnb_booking.config import ALLOWED_ORIGINS, ENABLE_SCHEDULER
from bnb_booking.logging_config import setup_logging
from bnb_booking.middleware import RequestIDMiddleware
from bnb_booking.routes.admin import router as admin_router
from bnb_booking.routes.availability import router as availability_router
from bnb_booking.routes.calendars import router as calendars_router
from bnb_booking.routes.errors import register_exception_handlers
from bnb_booking.routes.health import router as health_router
from bnb_booking.routes.metrics import router as metrics_router
from bnb_booking.routes.payments import router as payments_router
from bnb_booking.routes.pricing import router as pricing_router
from bnb_booking.routes.reservations import router as reservations_router
from bnb_booking.workers.manager import WorkerManager

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="B&B Booking API",
    description="Availability, dynamic pricing, reservations and calendar sync for a small B&B",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(pricing_router, prefix="/pricing", tags=["Pricing"])
app.include_router(availability_router, tags=["Availability"])
app.include_router(reservations_router, tags=["Reservations"])
app.include_router(calendars_router, tags=["Calendars"])
app.include_router(payments_router, tags=["Payments"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])

worker_manager: Optional[WorkerManager] = None


@app.on_event("startup")
async def startup_event() -> None:
    """Initialize application on startup."""
    global worker_manager
    from bnb_booking.db.engine import engine

    logger.info("FastAPI application starting up...")

    if ENABLE_SCHEDULER:
        worker_manager = WorkerManager(engine)
        await worker_manager.start_all()
    else:
        logger.info("scheduler_disabled")

    logger.info("FastAPI application initialized")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Stop background workers."""
    if worker_manager is not None:
        await worker_manager.stop_all()
    logger.info("FastAPI application stopped")
