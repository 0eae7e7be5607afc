"""Booking and payment state machine tests."""

import pytest

from dormledger.core.exceptions import InvalidTransition
from dormledger.domain.booking_state import (
    BookingStatus,
    assert_booking_transition,
    is_terminal,
)
from dormledger.domain.payment_state import PaymentStatus, assert_payment_transition


class TestBookingTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "confirmed"),
            ("pending", "rejected"),
            ("pending", "cancelled"),
            ("confirmed", "completed"),
            ("confirmed", "cancelled"),
            ("completed", "cancelled"),
        ],
    )
    def test_allowed(self, current, target):
        assert_booking_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "completed"),
            ("confirmed", "pending"),
            ("confirmed", "rejected"),
            ("completed", "confirmed"),
            ("cancelled", "confirmed"),
            ("rejected", "pending"),
        ],
    )
    def test_refused(self, current, target):
        with pytest.raises(InvalidTransition) as exc:
            assert_booking_transition(current, target)
        assert exc.value.kind == "invalid_transition"

    def test_terminal_states_name_themselves(self):
        with pytest.raises(InvalidTransition, match="already cancelled"):
            assert_booking_transition(BookingStatus.CANCELLED, BookingStatus.CONFIRMED)

    def test_refused_from_live_state_does_not_claim_terminal(self):
        with pytest.raises(InvalidTransition) as exc:
            assert_booking_transition(BookingStatus.CONFIRMED, BookingStatus.PENDING)
        assert "already" not in exc.value.detail

    def test_terminal(self):
        assert is_terminal("cancelled")
        assert is_terminal("rejected")
        assert not is_terminal("completed")

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            assert_booking_transition("pending", "partial-completed")


class TestPaymentTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("unpaid", "partial"),
            ("unpaid", "paid"),
            ("partial", "partial"),
            ("partial", "paid"),
            ("partial", "refunded"),
            ("paid", "refunded"),
        ],
    )
    def test_forward(self, current, target):
        assert_payment_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("paid", "unpaid"),
            ("paid", "partial"),
            ("partial", "unpaid"),
            ("unpaid", "refunded"),
            ("refunded", "paid"),
        ],
    )
    def test_backward_refused(self, current, target):
        with pytest.raises(InvalidTransition):
            assert_payment_transition(PaymentStatus(current), PaymentStatus(target))
