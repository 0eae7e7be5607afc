"""Pydantic schemas for API validation."""

from dormledger.schemas.booking import (
    AuditLogResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatsResponse,
    BookingStatusUpdate,
    BookingView,
)
from dormledger.schemas.payment import (
    InvoiceResponse,
    PaymentRecordResponse,
    PaymentStatusUpdate,
    RefundRequest,
)
from dormledger.schemas.pricing import PricingBreakdownResponse, PricingQuoteResponse

__all__ = [
    # Booking
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingResponse",
    "BookingView",
    "BookingListResponse",
    "BookingStatsResponse",
    "AuditLogResponse",
    # Payment
    "PaymentStatusUpdate",
    "RefundRequest",
    "PaymentRecordResponse",
    "InvoiceResponse",
    # Pricing
    "PricingQuoteResponse",
    "PricingBreakdownResponse",
]
