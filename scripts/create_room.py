#!/usr/bin/env python3
"""Create a room with a rate configuration, for local runs of the flow scripts."""

import asyncio
from decimal import Decimal
from uuid import UUID, uuid4

from dormledger.database import async_session_maker, init_db
from dormledger.domain.pricing import BillingPolicy, RateConfig
from dormledger.models.room import Room


async def create_room(
    name: str,
    billing_policy: BillingPolicy,
    monthly_rate: Decimal | None,
    daily_rate: Decimal | None,
    property_id: UUID | None = None,
    min_stay_days: int | None = None,
) -> None:
    """Validate the rate configuration and store the room."""
    RateConfig(billing_policy, monthly_rate, daily_rate).validate()

    await init_db()
    async with async_session_maker() as session:
        room = Room(
            property_id=property_id or uuid4(),
            name=name,
            billing_policy=billing_policy.value,
            monthly_rate=monthly_rate,
            daily_rate=daily_rate,
            min_stay_days=min_stay_days,
        )
        session.add(room)
        await session.commit()

        print(f"Created room: {room.name}")
        print(f"Room ID:      {room.id}")
        print(f"Property ID:  {room.property_id}")
        print(f"Policy:       {room.billing_policy}")
        print(f"Rates:        monthly={monthly_rate} daily={daily_rate}")
        if min_stay_days:
            print(f"Min stay:     {min_stay_days} days")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create a room")
    parser.add_argument("--name", default="Room 101", help="Room name")
    parser.add_argument(
        "--policy",
        default=BillingPolicy.MONTHLY_WITH_DAILY.value,
        choices=[p.value for p in BillingPolicy],
        help="Billing policy",
    )
    parser.add_argument("--monthly-rate", type=Decimal, default=Decimal("5000"))
    parser.add_argument("--daily-rate", type=Decimal, default=Decimal("300"))
    parser.add_argument("--property-id", type=UUID, default=None)
    parser.add_argument("--min-stay-days", type=int, default=None)

    args = parser.parse_args()

    asyncio.run(
        create_room(
            name=args.name,
            billing_policy=BillingPolicy(args.policy),
            monthly_rate=args.monthly_rate,
            daily_rate=args.daily_rate,
            property_id=args.property_id,
            min_stay_days=args.min_stay_days,
        )
    )
