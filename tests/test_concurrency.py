"""Concurrent writers against one booking."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from dormledger.core.exceptions import AppException, ConflictError
from dormledger.services.booking_ledger import BookingLedger, booking_ledger
from dormledger.services.payment_ledger import PaymentLedger, payment_ledger
from dormledger.services.transition_coordinator import TransitionCoordinator, transition_coordinator
from tests.conftest import stay_of


class UnlockedBookingLedger(BookingLedger):
    """Reads without the row lock, so a stale copy in the session is reused."""

    async def get_for_update(self, db, booking_id):
        return await self.get(db, booking_id)


class UnlockedPaymentLedger(PaymentLedger):
    async def get_for_update(self, db, booking_id):
        return await self.get(db, booking_id)


@pytest.fixture
async def booking(db, make_room):
    room = await make_room()
    result = await transition_coordinator.create_booking(db, room.id, "Ana Reyes", stay_of(35))
    await db.commit()
    return result.booking


async def run_in_session(session_maker, operation):
    async with session_maker() as session:
        try:
            result = await operation(session)
            await session.commit()
            return result
        except Exception:
            await session.rollback()
            raise


async def test_confirm_and_reject_race_has_one_winner(session_maker, booking):
    confirm = run_in_session(
        session_maker,
        lambda s: transition_coordinator.change_booking_status(s, booking.id, "confirmed"),
    )
    reject = run_in_session(
        session_maker,
        lambda s: transition_coordinator.change_booking_status(
            s, booking.id, "rejected", cancellation_reason="Room double-booked"
        ),
    )

    outcomes = await asyncio.gather(confirm, reject, return_exceptions=True)

    winners = [o for o in outcomes if not isinstance(o, BaseException)]
    losers = [o for o in outcomes if isinstance(o, BaseException)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], AppException)
    assert losers[0].kind in ("invalid_transition", "conflict")

    async with session_maker() as session:
        stored = await booking_ledger.get(session, booking.id)
        assert stored.status == winners[0].booking.status


async def test_stale_copy_cannot_be_written(session_maker, booking):
    async with session_maker() as stale, session_maker() as fresh:
        stale_booking = await booking_ledger.get(stale, booking.id)

        await transition_coordinator.change_booking_status(fresh, booking.id, "confirmed")
        await fresh.commit()

        stale_booking.notes = "edited from an old copy"
        with pytest.raises(StaleDataError):
            await stale.flush()


async def test_unserialised_writer_gets_conflict(session_maker, booking):
    unlocked = TransitionCoordinator(
        bookings=UnlockedBookingLedger(), payments=UnlockedPaymentLedger()
    )

    async with session_maker() as stale, session_maker() as fresh:
        # Hold pending state in the stale session; the identity map is weak
        stale_booking = await booking_ledger.get(stale, booking.id)
        stale_payment = await payment_ledger.get(stale, booking.id)
        assert stale_booking.status == "pending"
        assert stale_payment.payment_status == "unpaid"

        await transition_coordinator.change_booking_status(fresh, booking.id, "confirmed")
        await fresh.commit()

        with pytest.raises(ConflictError) as exc:
            await unlocked.change_booking_status(
                stale, booking.id, "rejected", cancellation_reason="Room double-booked"
            )
        assert exc.value.kind == "conflict"
        await stale.rollback()

    async with session_maker() as session:
        assert (await booking_ledger.get(session, booking.id)).status == "confirmed"


async def test_payment_change_bumps_booking_version(db, booking):
    before = booking.version

    result = await transition_coordinator.change_payment_status(
        db, booking.id, "partial", Decimal("1000")
    )
    await db.commit()

    assert result.booking.version == before + 1
