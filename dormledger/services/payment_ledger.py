"""Payment ledger: per-booking payment state and invoice bookkeeping."""

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.config import settings
from dormledger.core.exceptions import NotFoundError, ValidationError
from dormledger.domain.payment_state import PaymentStatus, assert_payment_transition
from dormledger.domain.pricing import round_money
from dormledger.models.booking import Booking
from dormledger.models.payment import Invoice, PaymentRecord
from dormledger.utils.booking_number import generate_invoice_reference

logger = logging.getLogger(__name__)

# Invoice status mirrors payment status
INVOICE_STATUS = {
    PaymentStatus.UNPAID: "pending",
    PaymentStatus.PARTIAL: "partial",
    PaymentStatus.PAID: "paid",
    PaymentStatus.REFUNDED: "refunded",
}


class PaymentLedger:
    """Holds PaymentRecords and records money collected against a booking."""

    async def open_record(self, db: AsyncSession, booking: Booking) -> PaymentRecord:
        """Create the booking's payment record in ``unpaid`` state."""
        payment = PaymentRecord(
            booking_id=booking.id,
            payment_status=PaymentStatus.UNPAID.value,
            amount_collected=Decimal("0.00"),
        )
        db.add(payment)
        await db.flush()
        return payment

    async def get(self, db: AsyncSession, booking_id: UUID) -> PaymentRecord:
        result = await db.execute(
            select(PaymentRecord).where(PaymentRecord.booking_id == booking_id)
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment record for booking", str(booking_id))
        return payment

    async def get_for_update(self, db: AsyncSession, booking_id: UUID) -> PaymentRecord:
        result = await db.execute(
            select(PaymentRecord)
            .where(PaymentRecord.booking_id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment record for booking", str(booking_id))
        return payment

    def record_collection(
        self,
        booking: Booking,
        payment: PaymentRecord,
        new_status: PaymentStatus,
        amount_collected_delta: Decimal | None = None,
    ) -> None:
        """Apply a forward payment progression (partial or paid).

        Args:
            booking: The booking being paid for
            payment: Its payment record
            new_status: PARTIAL or PAID
            amount_collected_delta: Money received in this step

        Raises:
            InvalidTransition: If the move is backward
            ValidationError: If the amounts don't add up
        """
        if new_status not in (PaymentStatus.PARTIAL, PaymentStatus.PAID):
            raise ValueError(f"record_collection cannot move a payment to {new_status.value}")
        assert_payment_transition(payment.payment_status, new_status)

        collected = round_money(payment.amount_collected or 0)
        amount = round_money(booking.amount)
        delta = round_money(amount_collected_delta) if amount_collected_delta is not None else None

        if delta is not None and delta <= 0:
            raise ValidationError("amount_collected_delta must be greater than 0")

        if new_status == PaymentStatus.PARTIAL:
            if delta is None:
                raise ValidationError("amount_collected_delta is required for a partial payment")
            new_total = collected + delta
            if new_total > amount:
                raise ValidationError(
                    f"Collected total {new_total} would exceed the booking amount {amount}"
                )
            if new_total == amount:
                raise ValidationError(
                    f"Collected total {new_total} settles the booking; record it as 'paid'"
                )
        else:
            new_total = amount
            if delta is not None and collected + delta != amount:
                raise ValidationError(
                    f"Payment of {delta} leaves collected total at {collected + delta}, "
                    f"booking amount is {amount}"
                )

        old_status = payment.payment_status
        payment.payment_status = new_status.value
        payment.amount_collected = new_total
        payment.updated_at = datetime.now(UTC)

        logger.info(
            f"Payment recorded: booking_id={booking.id} {old_status} → {new_status.value} "
            f"collected={new_total}/{amount}"
        )

    async def issue_invoice(
        self, db: AsyncSession, booking: Booking, payment: PaymentRecord
    ) -> Invoice:
        """Issue the booking's invoice unless one already exists.

        The new invoice starts in step with the payment record, which may
        already have collected money while the booking was pending.
        """
        result = await db.execute(select(Invoice).where(Invoice.booking_id == booking.id))
        existing = result.scalars().first()
        if existing:
            return existing

        status = PaymentStatus(payment.payment_status)
        invoice = Invoice(
            reference=await generate_invoice_reference(db),
            booking_id=booking.id,
            property_id=booking.property_id,
            description=f"Initial invoice for booking {booking.reference}",
            amount=booking.amount,
            currency=settings.currency,
            status=INVOICE_STATUS[status],
            paid_at=datetime.now(UTC) if status == PaymentStatus.PAID else None,
            due_date=booking.start_date + timedelta(days=settings.invoice_due_days),
        )
        db.add(invoice)

        logger.info(
            f"Auto-generated invoice for confirmed booking: booking_id={booking.id} "
            f"reference={invoice.reference}"
        )
        return invoice

    async def list_invoices(self, db: AsyncSession, booking_id: UUID) -> list[Invoice]:
        result = await db.execute(
            select(Invoice).where(Invoice.booking_id == booking_id).order_by(Invoice.issued_at)
        )
        return list(result.scalars().all())

    async def sync_invoices(
        self, db: AsyncSession, booking_id: UUID, payment_status: PaymentStatus
    ) -> None:
        """Mirror a payment status onto the booking's invoices."""
        now = datetime.now(UTC)
        for invoice in await self.list_invoices(db, booking_id):
            invoice.status = INVOICE_STATUS[payment_status]
            if payment_status == PaymentStatus.PAID:
                invoice.paid_at = now


# Singleton instance
payment_ledger = PaymentLedger()
