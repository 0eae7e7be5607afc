"""Booking audit trail service."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.models.audit import BookingAuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Service for append-only booking audit logging."""

    # Actions recorded against a booking
    BOOKING_ACTIONS = {
        "booking_create",
        "booking_status_change",
        "payment_status_change",
        "refund_processed",
    }

    async def log_booking_action(
        self,
        db: AsyncSession,
        booking_id: UUID,
        action: str,
        actor: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> BookingAuditLog:
        """Log an accepted change to a booking or its payment record.

        Args:
            db: Database session
            booking_id: Booking the change applies to
            action: Action name (e.g., "booking_status_change")
            actor: Staff member or client that requested the change
            old_values: Previous state
            new_values: New state

        Returns:
            Created audit log entry
        """
        if action not in self.BOOKING_ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")

        entry = BookingAuditLog(
            booking_id=booking_id,
            action=action,
            actor=actor,
            old_values=old_values,
            new_values=new_values,
        )
        db.add(entry)

        logger.info(
            f"AUDIT {action}: booking_id={booking_id} actor={actor or '-'} "
            f"old={old_values} new={new_values}"
        )
        return entry

    async def get_booking_history(
        self, db: AsyncSession, booking_id: UUID
    ) -> list[BookingAuditLog]:
        """Get a booking's audit entries, oldest first."""
        result = await db.execute(
            select(BookingAuditLog)
            .where(BookingAuditLog.booking_id == booking_id)
            .order_by(BookingAuditLog.created_at, BookingAuditLog.id)
        )
        return list(result.scalars().all())


# Singleton instance
audit_service = AuditService()
