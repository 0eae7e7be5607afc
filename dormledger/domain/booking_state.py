"""Booking state machine."""

from enum import Enum

from dormledger.core.exceptions import InvalidTransition


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    # Post-hoc cancellation (with refund) of a finished stay
    BookingStatus.COMPLETED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.REJECTED: set(),
}

# Transitions that must carry a cancellation reason
REASON_REQUIRED = frozenset({BookingStatus.CANCELLED, BookingStatus.REJECTED})


def is_terminal(status: str | BookingStatus) -> bool:
    return not BOOKING_TRANSITIONS[BookingStatus(status)]


def assert_booking_transition(current: str | BookingStatus, target: str | BookingStatus) -> None:
    current = BookingStatus(current)
    target = BookingStatus(target)
    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        if is_terminal(current):
            raise InvalidTransition(
                f"Invalid booking transition: {current.value} → {target.value} "
                f"(booking is already {current.value})"
            )
        raise InvalidTransition(f"Invalid booking transition: {current.value} → {target.value}")
