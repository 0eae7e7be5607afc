"""Payment-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dormledger.domain.payment_state import PaymentStatus


class PaymentStatusUpdate(BaseModel):
    """Schema for recording a payment step."""

    payment_status: PaymentStatus
    amount_collected_delta: Decimal | None = Field(
        None, description="Money received in this step. Required for partial payments."
    )


class RefundRequest(BaseModel):
    """Schema for settling the refund owed on a cancelled booking."""

    refund_amount: Decimal


class PaymentRecordResponse(BaseModel):
    """Schema for payment record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    payment_status: str
    amount_collected: Decimal
    refund_amount: Decimal | None
    net_collected: Decimal = Field(description="Amount collected less any refund")
    refunded_at: datetime | None
    created_at: datetime
    updated_at: datetime


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    booking_id: UUID
    description: str | None
    amount: Decimal
    currency: str
    status: str
    issued_at: datetime
    due_date: date | None
    paid_at: datetime | None
