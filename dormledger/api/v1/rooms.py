"""Room endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.api.deps import get_db
from dormledger.domain.pricing import StayRange
from dormledger.schemas.pricing import PricingBreakdownResponse, PricingQuoteResponse
from dormledger.services.pricing_service import pricing_service

router = APIRouter()


@router.get("/{room_id}/pricing-quote", response_model=PricingQuoteResponse)
async def get_pricing_quote(
    room_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    start: date = Query(..., description="First night of the stay"),
    end: date = Query(..., description="Move-out date (exclusive)"),
) -> PricingQuoteResponse:
    """Price a stay for a room without creating a booking."""
    result = await pricing_service.quote(db, room_id, StayRange(start=start, end=end))

    return PricingQuoteResponse(
        room_id=room_id,
        total=result.total,
        days=result.days,
        policy=result.policy.value,
        monthly_rate=result.monthly_rate,
        daily_rate=result.daily_rate,
        breakdown=PricingBreakdownResponse(
            months=result.breakdown.months,
            extra_days=result.breakdown.extra_days,
        ),
    )
