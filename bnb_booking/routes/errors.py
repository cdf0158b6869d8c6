"""
Translation of domain errors into HTTP responses.

Response body: {"error": <code>, "message": <text>, "details": {...}}
"""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from bnb_booking.errors import (
    BookingError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UpstreamError,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR: list[tuple[type[BookingError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(exc: BookingError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def booking_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Registered for BookingError only.
    error = cast(BookingError, exc)
    status_code = status_for(error)
    if status_code >= 500:
        logger.error(
            "request_failed", path=request.url.path, error_code=error.code, error=error.message
        )
    else:
        logger.info("request_rejected", path=request.url.path, error_code=error.code)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(error.to_dict()))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
