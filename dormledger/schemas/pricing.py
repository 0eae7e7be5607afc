"""Pricing quote schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class PricingBreakdownResponse(BaseModel):
    months: int
    extra_days: int


class PricingQuoteResponse(BaseModel):
    """Schema for a room pricing quote."""

    room_id: UUID
    total: Decimal
    days: int
    policy: str
    monthly_rate: Decimal | None
    daily_rate: Decimal | None
    breakdown: PricingBreakdownResponse
