"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.api.deps import get_actor, get_db
from dormledger.domain.booking_state import BookingStatus
from dormledger.domain.pricing import StayRange
from dormledger.models.audit import BookingAuditLog
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
from dormledger.services.audit_service import audit_service
from dormledger.services.booking_ledger import booking_ledger
from dormledger.services.payment_ledger import payment_ledger
from dormledger.services.refund_processor import refund_processor
from dormledger.services.transition_coordinator import TransitionResult, transition_coordinator

router = APIRouter()


async def build_booking_view(db: AsyncSession, result: TransitionResult) -> BookingView:
    """Assemble the booking view returned by every booking endpoint."""
    invoices = await payment_ledger.list_invoices(db, result.booking.id)
    return BookingView(
        booking=BookingResponse.model_validate(result.booking),
        payment=PaymentRecordResponse.model_validate(result.payment),
        invoices=[InvoiceResponse.model_validate(i) for i in invoices],
        refund_owed=refund_processor.refund_owed(result.booking, result.payment),
        already_applied=result.already_applied,
    )


@router.post("/", response_model=BookingView, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str | None, Depends(get_actor)],
) -> BookingView:
    """Create a pending booking charged at the room's quoted price."""
    result = await transition_coordinator.create_booking(
        db,
        room_id=booking_data.room_id,
        guest_name=booking_data.guest_name,
        stay=StayRange(start=booking_data.start_date, end=booking_data.end_date),
        notes=booking_data.notes,
        actor=actor,
    )
    return await build_booking_view(db, result)


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: BookingStatus | None = Query(None, alias="status"),
    property_id: UUID | None = None,
    room_id: UUID | None = None,
    refund_owed: bool | None = Query(None, description="Cancelled bookings still holding money"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> BookingListResponse:
    """List bookings, newest first."""
    bookings, total = await booking_ledger.list_bookings(
        db,
        status=status_filter,
        property_id=property_id,
        room_id=room_id,
        refund_owed=refund_owed,
        page=page,
        page_size=page_size,
    )

    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/stats", response_model=BookingStatsResponse)
async def get_booking_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    property_id: UUID | None = None,
) -> BookingStatsResponse:
    """Booking counts per status."""
    stats = await booking_ledger.stats(db, property_id=property_id)
    return BookingStatsResponse(**stats)


@router.get("/{booking_id}", response_model=BookingView)
async def get_booking(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingView:
    """Get booking details."""
    booking = await booking_ledger.get(db, booking_id)
    payment = await payment_ledger.get(db, booking_id)
    return await build_booking_view(db, TransitionResult(booking=booking, payment=payment))


@router.get("/{booking_id}/history", response_model=list[AuditLogResponse])
async def get_booking_history(
    booking_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[BookingAuditLog]:
    """Audit trail of a booking, oldest first."""
    await booking_ledger.get(db, booking_id)
    return await audit_service.get_booking_history(db, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingView)
async def update_booking_status(
    booking_id: UUID,
    update: BookingStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str | None, Depends(get_actor)],
) -> BookingView:
    """Confirm, reject, complete or cancel a booking.

    A cancellation may refund collected money in the same request
    (``should_refund`` with ``refund_amount``).
    """
    result = await transition_coordinator.change_booking_status(
        db,
        booking_id,
        update.status,
        cancellation_reason=update.cancellation_reason,
        refund_amount=update.refund_amount,
        should_refund=update.should_refund,
        accept_partial_payment=update.accept_partial_payment,
        actor=actor,
    )
    return await build_booking_view(db, result)


@router.patch("/{booking_id}/payment-status", response_model=BookingView)
async def update_payment_status(
    booking_id: UUID,
    update: PaymentStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str | None, Depends(get_actor)],
) -> BookingView:
    """Record a payment step, or refund everything collected on a cancelled booking."""
    result = await transition_coordinator.change_payment_status(
        db,
        booking_id,
        update.payment_status,
        amount_collected_delta=update.amount_collected_delta,
        actor=actor,
    )
    return await build_booking_view(db, result)


@router.post("/{booking_id}/refund", response_model=BookingView)
async def refund_booking(
    booking_id: UUID,
    refund: RefundRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str | None, Depends(get_actor)],
) -> BookingView:
    """Settle the refund owed on a booking that was cancelled without one."""
    result = await transition_coordinator.settle_refund(
        db, booking_id, refund.refund_amount, actor=actor
    )
    return await build_booking_view(db, result)
