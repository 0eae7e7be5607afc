"""Payment ledger tests (collection rules and invoices)."""

from decimal import Decimal

import pytest

from dormledger.core.exceptions import InvalidTransition, ValidationError
from dormledger.domain.payment_state import PaymentStatus
from dormledger.models.booking import Booking
from dormledger.models.payment import PaymentRecord
from dormledger.services.payment_ledger import payment_ledger
from dormledger.services.transition_coordinator import transition_coordinator
from tests.conftest import stay_of


def make_pair(status: str = "unpaid", collected: str = "0.00") -> tuple[Booking, PaymentRecord]:
    booking = Booking(amount=Decimal("6500.00"), status="confirmed")
    payment = PaymentRecord(payment_status=status, amount_collected=Decimal(collected))
    return booking, payment


class TestRecordCollection:
    def test_partial_then_paid(self):
        booking, payment = make_pair()

        payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal("2000"))
        assert payment.payment_status == "partial"
        assert payment.amount_collected == Decimal("2000.00")

        payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal("1500"))
        assert payment.amount_collected == Decimal("3500.00")

        payment_ledger.record_collection(booking, payment, PaymentStatus.PAID)
        assert payment.payment_status == "paid"
        assert payment.amount_collected == Decimal("6500.00")

    def test_paid_with_matching_delta(self):
        booking, payment = make_pair("partial", "2000.00")

        payment_ledger.record_collection(booking, payment, PaymentStatus.PAID, Decimal("4500"))

        assert payment.amount_collected == Decimal("6500.00")

    def test_paid_with_wrong_delta(self):
        booking, payment = make_pair("partial", "2000.00")

        with pytest.raises(ValidationError):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PAID, Decimal("4000"))
        assert payment.payment_status == "partial"

    def test_partial_requires_delta(self):
        booking, payment = make_pair()

        with pytest.raises(ValidationError):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL)

    @pytest.mark.parametrize("delta", ["0", "-10"])
    def test_non_positive_delta(self, delta):
        booking, payment = make_pair()

        with pytest.raises(ValidationError):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal(delta))

    def test_partial_cannot_exceed_amount(self):
        booking, payment = make_pair("partial", "6000.00")

        with pytest.raises(ValidationError, match="exceed"):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal("600"))

    def test_partial_that_settles_must_be_recorded_as_paid(self):
        booking, payment = make_pair()

        with pytest.raises(ValidationError, match="paid"):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal("6500"))

    def test_backward_move_refused(self):
        booking, payment = make_pair("paid", "6500.00")

        with pytest.raises(InvalidTransition):
            payment_ledger.record_collection(booking, payment, PaymentStatus.PARTIAL, Decimal("1"))
        assert payment.amount_collected == Decimal("6500.00")

    def test_refund_is_not_a_collection(self):
        booking, payment = make_pair("paid", "6500.00")

        with pytest.raises(ValueError):
            payment_ledger.record_collection(booking, payment, PaymentStatus.REFUNDED)


class TestInvoices:
    async def test_confirmation_issues_one_invoice(self, db, make_room):
        room = await make_room()
        created = await transition_coordinator.create_booking(db, room.id, "Ana Reyes", stay_of(35))
        booking = created.booking

        await transition_coordinator.change_booking_status(db, booking.id, "confirmed")
        again = await payment_ledger.issue_invoice(db, booking, created.payment)
        invoices = await payment_ledger.list_invoices(db, booking.id)

        assert len(invoices) == 1
        assert again.id == invoices[0].id
        invoice = invoices[0]
        assert invoice.reference.startswith("INV-")
        assert invoice.amount == Decimal("6500.00")
        assert invoice.currency == "PHP"
        assert invoice.status == "pending"
        assert (invoice.due_date - booking.start_date).days == 3

    async def test_invoice_follows_payment_status(self, db, make_room):
        room = await make_room()
        booking = (await transition_coordinator.create_booking(db, room.id, "Ana Reyes", stay_of(35))).booking
        await transition_coordinator.change_booking_status(db, booking.id, "confirmed")

        await transition_coordinator.change_payment_status(db, booking.id, "partial", Decimal("1000"))
        assert [i.status for i in await payment_ledger.list_invoices(db, booking.id)] == ["partial"]

        await transition_coordinator.change_payment_status(db, booking.id, "paid")
        (invoice,) = await payment_ledger.list_invoices(db, booking.id)
        assert invoice.status == "paid"
        assert invoice.paid_at is not None

    async def test_invoice_for_booking_paid_before_confirmation(self, db, make_room):
        room = await make_room()
        booking = (await transition_coordinator.create_booking(db, room.id, "Ana Reyes", stay_of(35))).booking
        await transition_coordinator.change_payment_status(db, booking.id, "paid")

        await transition_coordinator.change_booking_status(db, booking.id, "confirmed")

        (invoice,) = await payment_ledger.list_invoices(db, booking.id)
        assert invoice.status == "paid"
        assert invoice.paid_at is not None

    async def test_invoice_for_booking_partially_paid_before_confirmation(self, db, make_room):
        room = await make_room()
        booking = (await transition_coordinator.create_booking(db, room.id, "Ana Reyes", stay_of(35))).booking
        await transition_coordinator.change_payment_status(db, booking.id, "partial", Decimal("1000"))

        await transition_coordinator.change_booking_status(db, booking.id, "confirmed")

        (invoice,) = await payment_ledger.list_invoices(db, booking.id)
        assert invoice.status == "partial"
        assert invoice.paid_at is None
