from datetime import date
from typing import Optional

from pydantic import AnyHttpUrl, BaseModel, Field

from bnb_booking.config import MAX_GUESTS


class QuotePayload(BaseModel):
    """
    Schema for pricing a prospective stay.
    """

    room_id: str = Field(..., min_length=1, description="Room id")
    check_in: date = Field(..., description="First night of the stay")
    check_out: date = Field(..., description="Checkout day (not a night of the stay)")
    guest_count: int = Field(1, ge=1, le=MAX_GUESTS, description="Party size")


class ReservationCreatePayload(BaseModel):
    """
    Schema for booking a room. The owner comes from the identity headers, not the body.
    """

    room_id: str = Field(..., min_length=1, description="Room id (legacy ids are remapped)")
    check_in: date = Field(..., description="First night of the stay")
    check_out: date = Field(..., description="Checkout day (not a night of the stay)")
    guest_count: int = Field(..., ge=1, le=MAX_GUESTS, description="Party size")
    guest_name: str = Field(..., min_length=1, max_length=255)
    guest_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    guest_phone: Optional[str] = Field(None, max_length=64)
    special_requests: Optional[str] = Field(None, max_length=2000)


class CheckoutPayload(BaseModel):
    success_url: AnyHttpUrl = Field(..., description="Redirect after successful payment")
    cancel_url: AnyHttpUrl = Field(..., description="Redirect when checkout is abandoned")


class CancelPayload(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)
