"""Booking ledger: persistence and state changes for Booking records.

Guards that depend on the payment record are evaluated by the transition
coordinator; this ledger only applies transitions that were already allowed.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.core.exceptions import NotFoundError
from dormledger.domain.booking_state import BookingStatus, assert_booking_transition
from dormledger.domain.payment_state import COLLECTED
from dormledger.domain.pricing import PricingQuote, StayRange
from dormledger.models.booking import Booking
from dormledger.models.payment import PaymentRecord
from dormledger.models.room import Room
from dormledger.utils.booking_number import generate_booking_reference

logger = logging.getLogger(__name__)


def refund_owed_clause():
    """SQL condition: cancelled, with money still held (refund not processed)."""
    return and_(
        Booking.status == BookingStatus.CANCELLED.value,
        PaymentRecord.payment_status.in_([s.value for s in COLLECTED]),
    )


class BookingLedger:
    """Holds Booking records and applies booking-status transitions."""

    async def create(
        self,
        db: AsyncSession,
        room: Room,
        guest_name: str,
        stay: StayRange,
        pricing: PricingQuote,
        notes: str | None = None,
    ) -> Booking:
        """Create a pending booking charged at the quoted total."""
        booking = Booking(
            reference=await generate_booking_reference(db),
            room_id=room.id,
            property_id=room.property_id,
            guest_name=guest_name,
            start_date=stay.start,
            end_date=stay.end,
            billing_policy=pricing.policy.value,
            total_months=pricing.breakdown.months,
            extra_days=pricing.breakdown.extra_days,
            amount=pricing.total,
            status=BookingStatus.PENDING.value,
            notes=notes,
        )
        db.add(booking)
        await db.flush()

        logger.info(
            f"Booking created: booking_id={booking.id} reference={booking.reference} "
            f"room_id={room.id} amount={booking.amount}"
        )
        return booking

    async def get(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def get_for_update(self, db: AsyncSession, booking_id: UUID) -> Booking:
        """Load a booking under a row lock, refreshing any cached copy."""
        result = await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def has_pending(self, db: AsyncSession, room_id: UUID) -> bool:
        """Whether the room already has a booking awaiting confirmation."""
        result = await db.execute(
            select(Booking.id)
            .where(Booking.room_id == room_id, Booking.status == BookingStatus.PENDING.value)
            .limit(1)
        )
        return result.first() is not None

    async def list_bookings(
        self,
        db: AsyncSession,
        status: BookingStatus | None = None,
        property_id: UUID | None = None,
        room_id: UUID | None = None,
        refund_owed: bool | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        """List bookings, newest first.

        Returns:
            (bookings on this page, total matching)
        """
        query = select(Booking).join(PaymentRecord, PaymentRecord.booking_id == Booking.id)

        if status:
            query = query.where(Booking.status == BookingStatus(status).value)
        if property_id:
            query = query.where(Booking.property_id == property_id)
        if room_id:
            query = query.where(Booking.room_id == room_id)
        if refund_owed is True:
            query = query.where(refund_owed_clause())
        elif refund_owed is False:
            query = query.where(~refund_owed_clause())

        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar() or 0

        offset = (page - 1) * page_size
        query = query.order_by(Booking.created_at.desc()).offset(offset).limit(page_size)

        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def stats(self, db: AsyncSession, property_id: UUID | None = None) -> dict:
        """Booking counts per status, plus cancelled bookings with a refund owed."""
        query = select(Booking.status, func.count()).group_by(Booking.status)
        if property_id:
            query = query.where(Booking.property_id == property_id)

        result = await db.execute(query)
        counts = {row[0]: row[1] for row in result.all()}

        owed_query = (
            select(func.count())
            .select_from(Booking)
            .join(PaymentRecord, PaymentRecord.booking_id == Booking.id)
            .where(refund_owed_clause())
        )
        if property_id:
            owed_query = owed_query.where(Booking.property_id == property_id)
        owed = (await db.execute(owed_query)).scalar() or 0

        stats = {status.value: counts.get(status.value, 0) for status in BookingStatus}
        stats["total"] = sum(counts.values())
        stats["refund_owed"] = owed
        return stats

    def apply_transition(
        self,
        booking: Booking,
        target: BookingStatus,
        cancellation_reason: str | None = None,
    ) -> None:
        """Move a booking to ``target`` and stamp the matching timestamps."""
        assert_booking_transition(booking.status, target)

        now = datetime.now(UTC)
        booking.status = target.value
        if target == BookingStatus.CONFIRMED:
            booking.confirmed_at = now
        elif target == BookingStatus.COMPLETED:
            booking.completed_at = now
        elif target in (BookingStatus.CANCELLED, BookingStatus.REJECTED):
            booking.cancelled_at = now
            booking.cancellation_reason = cancellation_reason
        booking.updated_at = now


# Singleton instance
booking_ledger = BookingLedger()
