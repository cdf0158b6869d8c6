from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, Field

RoomStatus = Literal["active", "inactive", "archived"]
RuleType = Literal["surcharge_rate", "fixed_amount", "absolute_price"]


class RoomCreatePayload(BaseModel):
    """
    Schema for creating a room. Rates are fractions (0.06 for 6%).
    """

    id: Optional[str] = Field(None, description="Room id (generated when omitted)")
    slug: str = Field(..., min_length=1, max_length=128, pattern=r"^[a-z0-9-]+$")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Decimal = Field(..., gt=0, description="Nightly base price")
    service_fee_rate: Decimal = Field(Decimal("0"), ge=0, le=1)
    state_tax_rate: Decimal = Field(Decimal("0"), ge=0, le=1)
    local_tax_rate: Decimal = Field(Decimal("0"), ge=0, le=1)
    status: RoomStatus = "active"
    airbnb_ical_url: Optional[AnyHttpUrl] = None
    expedia_ical_url: Optional[AnyHttpUrl] = None


class RoomUpdatePayload(BaseModel):
    """
    Schema for updating a room. All fields are optional.
    Note: last sync timestamps are managed by the calendar sync.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, gt=0)
    service_fee_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    state_tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    local_tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    status: Optional[RoomStatus] = None
    airbnb_ical_url: Optional[AnyHttpUrl] = None
    expedia_ical_url: Optional[AnyHttpUrl] = None


class PricingRuleCreatePayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    rule_type: RuleType
    value: Decimal = Field(..., ge=0, description="Rate, per-night amount or nightly price")
    start_date: date = Field(..., description="First day the rule covers (inclusive)")
    end_date: date = Field(..., description="Last day the rule covers (inclusive)")
    is_active: bool = True
    days_of_week: Optional[list[str]] = Field(
        None, description="Lowercase weekday names; omit to apply every day"
    )


class PricingRuleUpdatePayload(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    rule_type: Optional[RuleType] = None
    value: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    days_of_week: Optional[list[str]] = None


class BlockedPeriodCreatePayload(BaseModel):
    start_date: date = Field(..., description="First blocked day (inclusive)")
    end_date: date = Field(..., description="Last blocked day (inclusive)")
    reason: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None


class CalendarUrlCheckPayload(BaseModel):
    url: AnyHttpUrl = Field(..., description="Candidate platform feed URL")
