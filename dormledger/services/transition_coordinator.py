"""Transition coordinator.

Single entry point for every booking/payment status change. A booking and its
payment record form one consistency unit: each operation locks both rows
(booking first), evaluates the cross-entity guards against that snapshot,
applies the change and flushes. Both tables carry a version column, and every
accepted change touches the booking row, so a writer that was not serialised
by the row lock fails with ConflictError instead of overwriting state.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from dormledger.core.exceptions import (
    ConflictError,
    InvalidTransition,
    PreconditionFailed,
    ValidationError,
)
from dormledger.domain.booking_state import (
    REASON_REQUIRED,
    BookingStatus,
    assert_booking_transition,
)
from dormledger.domain.payment_state import COLLECTED, PaymentStatus, assert_payment_transition
from dormledger.domain.pricing import StayRange, round_money
from dormledger.models.booking import Booking
from dormledger.models.payment import PaymentRecord
from dormledger.services.audit_service import AuditService, audit_service
from dormledger.services.booking_ledger import BookingLedger, booking_ledger
from dormledger.services.payment_ledger import PaymentLedger, payment_ledger
from dormledger.services.pricing_service import PricingService, pricing_service
from dormledger.services.refund_processor import RefundProcessor, refund_processor

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Booking and payment state after an operation."""

    booking: Booking
    payment: PaymentRecord
    already_applied: bool = False


def _snapshot(booking: Booking, payment: PaymentRecord) -> dict:
    return {
        "status": booking.status,
        "payment_status": payment.payment_status,
        "amount_collected": str(payment.amount_collected),
        "refund_amount": str(payment.refund_amount) if payment.refund_amount is not None else None,
    }


@contextmanager
def _conflicts_as_errors(booking_id: UUID) -> Iterator[None]:
    try:
        yield
    except StaleDataError as exc:
        logger.warning(f"Concurrent modification detected for booking {booking_id}: {exc}")
        raise ConflictError(
            f"Booking {booking_id} was modified by another request. Reload and try again."
        ) from exc


class TransitionCoordinator:
    """Orchestrates booking-status and payment-status changes."""

    def __init__(
        self,
        bookings: BookingLedger = booking_ledger,
        payments: PaymentLedger = payment_ledger,
        refunds: RefundProcessor = refund_processor,
        pricing: PricingService = pricing_service,
        audit: AuditService = audit_service,
    ):
        self.bookings = bookings
        self.payments = payments
        self.refunds = refunds
        self.pricing = pricing
        self.audit = audit

    async def create_booking(
        self,
        db: AsyncSession,
        room_id: UUID,
        guest_name: str,
        stay: StayRange,
        notes: str | None = None,
        actor: str | None = None,
    ) -> TransitionResult:
        """Create a pending booking and its unpaid payment record.

        The charge comes from the same pricing quote used for previews. The
        room row is locked so two requests cannot both open a pending booking.

        Raises:
            NotFoundError: Unknown room
            PreconditionFailed: The room already has a pending booking
            ValidationError: Blank guest name, or stay shorter than the room's minimum
            ConfigurationError: The room's rates do not support its billing policy
        """
        if not guest_name or not guest_name.strip():
            raise ValidationError("Guest name is required")

        stay.validate()
        room = await self.pricing.get_room_for_update(db, room_id)
        if await self.bookings.has_pending(db, room.id):
            raise PreconditionFailed(
                f"Room {room.id} is currently pending confirmation for another booking"
            )
        if room.min_stay_days and stay.days < room.min_stay_days:
            raise ValidationError(f"Minimum stay is {room.min_stay_days} days")

        pricing = self.pricing.quote_for_room(room, stay)

        booking = await self.bookings.create(db, room, guest_name.strip(), stay, pricing, notes)
        payment = await self.payments.open_record(db, booking)

        await self.audit.log_booking_action(
            db,
            booking.id,
            "booking_create",
            actor=actor,
            new_values={**_snapshot(booking, payment), "amount": str(booking.amount)},
        )
        await db.flush()
        return TransitionResult(booking=booking, payment=payment)

    async def change_booking_status(
        self,
        db: AsyncSession,
        booking_id: UUID,
        status: BookingStatus | str,
        cancellation_reason: str | None = None,
        refund_amount: Decimal | None = None,
        should_refund: bool = False,
        accept_partial_payment: bool = False,
        actor: str | None = None,
    ) -> TransitionResult:
        """Apply a booking-status change with its guards and side effects.

        Raises:
            InvalidTransition: Not allowed from the current status
            ValidationError: Missing reason, refund amount out of bounds or
                given without should_refund
            PreconditionFailed: Blocked by the payment state
            ConflictError: Concurrent modification
        """
        target = BookingStatus(status)
        reason = (cancellation_reason or "").strip() or None

        if refund_amount is not None and not should_refund:
            raise ValidationError("refund_amount was given without should_refund")

        with _conflicts_as_errors(booking_id):
            booking = await self.bookings.get_for_update(db, booking_id)
            payment = await self.payments.get_for_update(db, booking_id)

            if booking.status == target.value:
                return self._replay(booking, payment, target, reason, refund_amount, should_refund)

            if should_refund and target != BookingStatus.CANCELLED:
                raise ValidationError("A refund can only be requested together with a cancellation")

            assert_booking_transition(booking.status, target)

            if target in REASON_REQUIRED and not reason:
                raise ValidationError(
                    f"A cancellation reason is required to mark a booking {target.value}"
                )
            if target == BookingStatus.REJECTED and PaymentStatus(payment.payment_status) in COLLECTED:
                raise PreconditionFailed(
                    f"Cannot reject: payment status is {payment.payment_status}; "
                    "cancel the booking instead so the collected amount can be refunded"
                )
            if target == BookingStatus.COMPLETED:
                self._check_completion(booking, payment, accept_partial_payment)

            refund = None
            if target == BookingStatus.CANCELLED and should_refund:
                refund = self.refunds.validate(payment, refund_amount)

            old_values = _snapshot(booking, payment)
            self.bookings.apply_transition(booking, target, reason)

            if target == BookingStatus.CONFIRMED:
                await self.payments.issue_invoice(db, booking, payment)
            elif target == BookingStatus.CANCELLED:
                if self.refunds.process_refund(booking, payment, refund, should_refund):
                    await self.payments.sync_invoices(db, booking.id, PaymentStatus.REFUNDED)
                    await self.audit.log_booking_action(
                        db,
                        booking.id,
                        "refund_processed",
                        actor=actor,
                        new_values={"refund_amount": str(refund)},
                    )

            await self.audit.log_booking_action(
                db,
                booking.id,
                "booking_status_change",
                actor=actor,
                old_values=old_values,
                new_values={**_snapshot(booking, payment), "cancellation_reason": reason},
            )
            await db.flush()

        logger.info(
            f"Booking status changed: booking_id={booking.id} "
            f"{old_values['status']} → {booking.status}"
        )
        return TransitionResult(booking=booking, payment=payment)

    async def change_payment_status(
        self,
        db: AsyncSession,
        booking_id: UUID,
        payment_status: PaymentStatus | str,
        amount_collected_delta: Decimal | None = None,
        actor: str | None = None,
    ) -> TransitionResult:
        """Apply a forward payment progression, or a full refund on a cancelled booking.

        Reaching ``paid`` never completes the booking; completion is always an
        explicit booking-status change.
        """
        target = PaymentStatus(payment_status)

        with _conflicts_as_errors(booking_id):
            booking = await self.bookings.get_for_update(db, booking_id)
            payment = await self.payments.get_for_update(db, booking_id)
            current = PaymentStatus(payment.payment_status)

            if (
                target == current
                and target in (PaymentStatus.UNPAID, PaymentStatus.PAID)
                and amount_collected_delta is None
            ):
                return TransitionResult(booking=booking, payment=payment, already_applied=True)

            assert_payment_transition(current, target)
            old_values = _snapshot(booking, payment)

            if target == PaymentStatus.REFUNDED:
                if booking.status != BookingStatus.CANCELLED.value:
                    raise PreconditionFailed(
                        f"Cannot refund: booking status is {booking.status}, "
                        "refunds require a cancelled booking"
                    )
                self.refunds.process_refund(booking, payment, payment.amount_collected, True)
            else:
                if booking.status in (BookingStatus.CANCELLED.value, BookingStatus.REJECTED.value):
                    raise PreconditionFailed(
                        f"Cannot record payment: booking status is {booking.status}"
                    )
                self.payments.record_collection(booking, payment, target, amount_collected_delta)

            booking.touch()
            await self.payments.sync_invoices(db, booking.id, target)
            await self.audit.log_booking_action(
                db,
                booking.id,
                "payment_status_change",
                actor=actor,
                old_values=old_values,
                new_values=_snapshot(booking, payment),
            )
            await db.flush()

        return TransitionResult(booking=booking, payment=payment)

    async def settle_refund(
        self,
        db: AsyncSession,
        booking_id: UUID,
        refund_amount: Decimal,
        actor: str | None = None,
    ) -> TransitionResult:
        """Process the refund owed on a booking cancelled without one."""
        with _conflicts_as_errors(booking_id):
            booking = await self.bookings.get_for_update(db, booking_id)
            payment = await self.payments.get_for_update(db, booking_id)

            if booking.status != BookingStatus.CANCELLED.value:
                raise PreconditionFailed(
                    f"Cannot refund: booking status is {booking.status}, "
                    "refunds require a cancelled booking"
                )
            if payment.payment_status == PaymentStatus.REFUNDED.value:
                raise InvalidTransition("Payment is already refunded")

            old_values = _snapshot(booking, payment)
            self.refunds.process_refund(booking, payment, refund_amount, True)
            booking.touch()

            await self.payments.sync_invoices(db, booking.id, PaymentStatus.REFUNDED)
            await self.audit.log_booking_action(
                db,
                booking.id,
                "refund_processed",
                actor=actor,
                old_values=old_values,
                new_values=_snapshot(booking, payment),
            )
            await db.flush()

        return TransitionResult(booking=booking, payment=payment)

    def _check_completion(
        self, booking: Booking, payment: PaymentRecord, accept_partial_payment: bool
    ) -> None:
        status = PaymentStatus(payment.payment_status)
        if status == PaymentStatus.PAID:
            return
        if status == PaymentStatus.PARTIAL:
            if accept_partial_payment:
                logger.info(
                    f"Completing booking {booking.id} with partial payment "
                    f"{payment.amount_collected}/{booking.amount} (accepted by caller)"
                )
                return
            raise PreconditionFailed(
                "Cannot complete: payment status is partial; "
                "set accept_partial_payment to complete with an outstanding balance"
            )
        raise PreconditionFailed(f"Cannot complete: payment status is {status.value}")

    def _replay(
        self,
        booking: Booking,
        payment: PaymentRecord,
        target: BookingStatus,
        reason: str | None,
        refund_amount: Decimal | None,
        should_refund: bool,
    ) -> TransitionResult:
        """Handle a request for the status the booking already has.

        An identical retry is a no-op reported as already applied; anything
        that would change the outcome is an invalid transition.
        """
        if target in REASON_REQUIRED and reason != booking.cancellation_reason:
            raise InvalidTransition(
                f"Booking is already {booking.status} with a different reason"
            )
        if should_refund:
            already_refunded = (
                payment.payment_status == PaymentStatus.REFUNDED.value
                and refund_amount is not None
                and payment.refund_amount == round_money(refund_amount)
            )
            if not already_refunded:
                raise InvalidTransition(
                    f"Booking is already {booking.status}; "
                    "use the refund endpoint to settle an outstanding refund"
                )

        logger.info(f"Booking {booking.id} already {booking.status}; request is a no-op")
        return TransitionResult(booking=booking, payment=payment, already_applied=True)


# Singleton instance
transition_coordinator = TransitionCoordinator()
