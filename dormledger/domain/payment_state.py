"""Payment state machine."""

from enum import Enum

from dormledger.core.exceptions import InvalidTransition


class PaymentStatus(str, Enum):
    """Collection state of a booking's payment record."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


# Forward-only progression. PARTIAL -> PARTIAL records a further instalment.
# REFUNDED additionally requires a cancelled booking (checked by the coordinator).
PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.UNPAID: {PaymentStatus.PARTIAL, PaymentStatus.PAID},
    PaymentStatus.PARTIAL: {PaymentStatus.PARTIAL, PaymentStatus.PAID, PaymentStatus.REFUNDED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

# Payment states that hold collected money (refundable)
COLLECTED = frozenset({PaymentStatus.PARTIAL, PaymentStatus.PAID})


def assert_payment_transition(current: str | PaymentStatus, target: str | PaymentStatus) -> None:
    current = PaymentStatus(current)
    target = PaymentStatus(target)
    allowed = PAYMENT_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidTransition(
            f"Invalid payment transition: {current.value} → {target.value}"
        )
