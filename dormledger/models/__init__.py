"""Database models."""

from dormledger.models.audit import BookingAuditLog
from dormledger.models.booking import Booking
from dormledger.models.payment import Invoice, PaymentRecord
from dormledger.models.room import Room

__all__ = [
    # Room
    "Room",
    # Booking
    "Booking",
    # Payment
    "PaymentRecord",
    "Invoice",
    # Audit
    "BookingAuditLog",
]
