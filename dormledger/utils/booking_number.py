"""Booking and invoice reference generation utilities."""

import random
import string
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

_ALPHABET = string.ascii_uppercase + string.digits


async def generate_booking_reference(db: AsyncSession) -> str:
    """Generate a unique booking reference in format BK-XXXXXXXX.

    Args:
        db: Database session for uniqueness check

    Returns:
        str: Unique booking reference like 'BK-A3B7K9Q2'
    """
    from dormledger.models.booking import Booking

    while True:
        reference = "BK-" + "".join(random.choices(_ALPHABET, k=8))

        result = await db.execute(select(Booking.id).where(Booking.reference == reference))
        if result.scalar_one_or_none() is None:
            return reference


async def generate_invoice_reference(db: AsyncSession) -> str:
    """Generate a unique invoice reference.

    Returns:
        str: Invoice reference like 'INV-20260115-A3B7K9'
    """
    from dormledger.models.payment import Invoice

    date_part = datetime.now().strftime("%Y%m%d")
    while True:
        reference = f"INV-{date_part}-" + "".join(random.choices(_ALPHABET, k=6))

        result = await db.execute(select(Invoice.id).where(Invoice.reference == reference))
        if result.scalar_one_or_none() is None:
            return reference
