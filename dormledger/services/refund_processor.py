"""Refund processing for cancelled bookings."""

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from dormledger.core.exceptions import InvalidTransition, PreconditionFailed, ValidationError
from dormledger.domain.booking_state import BookingStatus
from dormledger.domain.payment_state import COLLECTED, PaymentStatus
from dormledger.domain.pricing import round_money
from dormledger.models.booking import Booking
from dormledger.models.payment import PaymentRecord

logger = logging.getLogger(__name__)


class RefundProcessor:
    """Validates and records refunds against a booking's payment record."""

    def validate(
        self,
        payment: PaymentRecord,
        refund_amount: Decimal | None,
    ) -> Decimal:
        """Check a refund request against what was actually collected.

        Does not look at the booking status, so it can run before the booking
        is moved to ``cancelled`` in the same operation.

        Returns:
            Decimal: The refund amount rounded to 2 places

        Raises:
            InvalidTransition: If the payment holds no refundable money
            ValidationError: If the amount is <= 0 or exceeds amount_collected
        """
        if refund_amount is None:
            raise ValidationError("refund_amount is required when should_refund is true")
        try:
            amount = round_money(refund_amount)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid refund amount: {refund_amount!r}")

        if amount <= 0:
            raise ValidationError("Refund amount must be greater than 0")
        collected = round_money(payment.amount_collected or 0)
        if amount > collected:
            raise ValidationError(
                f"Refund amount {amount} exceeds amount collected {collected}"
            )
        if PaymentStatus(payment.payment_status) not in COLLECTED:
            raise InvalidTransition(
                f"Cannot refund: payment status is {payment.payment_status}"
            )
        return amount

    def refund_owed(self, booking: Booking, payment: PaymentRecord) -> bool:
        """Cancelled while money is still held."""
        return (
            booking.status == BookingStatus.CANCELLED.value
            and PaymentStatus(payment.payment_status) in COLLECTED
        )

    def process_refund(
        self,
        booking: Booking,
        payment: PaymentRecord,
        refund_amount: Decimal | None,
        should_refund: bool,
    ) -> bool:
        """Record a refund on a cancelled booking's payment record.

        Args:
            booking: The booking (must already be cancelled)
            payment: Its payment record
            refund_amount: Amount to refund, at most amount_collected
            should_refund: False leaves the payment untouched (refund owed)

        Returns:
            bool: True if a refund was recorded
        """
        if not should_refund:
            if PaymentStatus(payment.payment_status) in COLLECTED:
                logger.warning(
                    f"Booking {booking.id} cancelled without refund; "
                    f"{payment.amount_collected} still held (refund owed)"
                )
            return False

        if booking.status != BookingStatus.CANCELLED.value:
            raise PreconditionFailed(
                f"Cannot refund: booking status is {booking.status}, refunds require a cancelled booking"
            )
        amount = self.validate(payment, refund_amount)

        now = datetime.now(UTC)
        payment.refund_amount = amount
        payment.payment_status = PaymentStatus.REFUNDED.value
        payment.refunded_at = now
        payment.updated_at = now

        logger.info(
            f"Refund processed for cancelled booking: booking_id={booking.id} "
            f"refund_amount={amount} collected={payment.amount_collected}"
        )
        return True


# Singleton instance
refund_processor = RefundProcessor()
