"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dormledger.domain.booking_state import BookingStatus
from dormledger.schemas.payment import InvoiceResponse, PaymentRecordResponse


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    room_id: UUID
    guest_name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    notes: str | None = Field(None, max_length=1000)

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: date, info) -> date:
        start_date = info.data.get("start_date")
        if start_date and v <= start_date:
            raise ValueError("end_date must be after start_date")
        return v


class BookingStatusUpdate(BaseModel):
    """Schema for changing a booking's status."""

    status: BookingStatus
    cancellation_reason: str | None = Field(None, max_length=1000)
    refund_amount: Decimal | None = None
    should_refund: bool = False
    # Complete a booking that still has an outstanding balance
    accept_partial_payment: bool = False


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    room_id: UUID
    property_id: UUID
    guest_name: str

    # Stay
    start_date: date
    end_date: date
    days: int

    # Pricing
    billing_policy: str
    total_months: int
    extra_days: int
    amount: Decimal

    # Status
    status: str
    cancellation_reason: str | None
    notes: str | None
    version: int

    # Timestamps
    confirmed_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingView(BaseModel):
    """Booking together with its payment record and invoices."""

    booking: BookingResponse
    payment: PaymentRecordResponse
    invoices: list[InvoiceResponse] = []
    # Cancelled while money is still held
    refund_owed: bool = False
    # The request matched the current state; nothing was changed
    already_applied: bool = False


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    total: int
    page: int
    page_size: int


class BookingStatsResponse(BaseModel):
    """Booking counts per status."""

    pending: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    rejected: int = 0
    total: int = 0
    refund_owed: int = 0


class AuditLogResponse(BaseModel):
    """One entry of a booking's history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    action: str
    actor: str | None
    old_values: dict | None
    new_values: dict | None
    created_at: datetime
