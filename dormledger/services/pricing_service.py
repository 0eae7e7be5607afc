"""Room pricing quotes."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dormledger.core.exceptions import NotFoundError
from dormledger.domain.pricing import PricingQuote, StayRange, quote
from dormledger.models.room import Room


class PricingService:
    """Looks up a room's rate configuration and prices a stay with it."""

    async def get_room(self, db: AsyncSession, room_id: UUID) -> Room:
        result = await db.execute(select(Room).where(Room.id == room_id))
        room = result.scalar_one_or_none()
        if not room:
            raise NotFoundError("Room", str(room_id))
        return room

    async def get_room_for_update(self, db: AsyncSession, room_id: UUID) -> Room:
        """Load a room under a row lock so bookings against it are serialised."""
        result = await db.execute(
            select(Room)
            .where(Room.id == room_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        room = result.scalar_one_or_none()
        if not room:
            raise NotFoundError("Room", str(room_id))
        return room

    def quote_for_room(self, room: Room, stay: StayRange) -> PricingQuote:
        return quote(room.rate_config, stay)

    async def quote(self, db: AsyncSession, room_id: UUID, stay: StayRange) -> PricingQuote:
        """Price a stay for a room. Read-only; takes no locks."""
        room = await self.get_room(db, room_id)
        return self.quote_for_room(room, stay)


# Singleton instance
pricing_service = PricingService()
