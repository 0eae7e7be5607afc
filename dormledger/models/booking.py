"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dormledger.database import Base
from dormledger.domain.booking_state import BookingStatus
from dormledger.models.base import utcnow


class Booking(Base):
    """Booking model.

    Never deleted; a booking only ever moves to a terminal status.
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reference: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )  # BK-XXXXXXXX
    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rooms.id"), nullable=False, index=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Stay (end date exclusive)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Charge fixed from the pricing quote when the booking is created
    billing_policy: Mapped[str] = mapped_column(String(30), nullable=False)
    total_months: Mapped[int] = mapped_column(Integer, default=0)
    extra_days: Mapped[int] = mapped_column(Integer, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default=BookingStatus.PENDING.value, index=True
    )  # pending, confirmed, completed, cancelled, rejected
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    # Optimistic concurrency token
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def days(self) -> int:
        """Number of billed days in the stay."""
        return (self.end_date - self.start_date).days

    def touch(self) -> None:
        self.updated_at = utcnow()
