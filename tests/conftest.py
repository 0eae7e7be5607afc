"""Shared fixtures: a throwaway SQLite database per test, an API client, rooms."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import dormledger.models  # noqa: F401
from dormledger.database import Base, get_db
from dormledger.domain.pricing import StayRange
from dormledger.main import create_application
from dormledger.models.room import Room

MOVE_IN = date(2026, 6, 1)


def stay_of(days: int, start: date = MOVE_IN) -> StayRange:
    return StayRange(start=start, end=start + timedelta(days=days))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dormledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_room(db):
    async def _make_room(
        billing_policy: str = "monthly_with_daily",
        monthly_rate: str | None = "5000",
        daily_rate: str | None = "300",
        min_stay_days: int | None = None,
    ) -> Room:
        room = Room(
            property_id=uuid4(),
            name="Room 101",
            billing_policy=billing_policy,
            monthly_rate=Decimal(monthly_rate) if monthly_rate is not None else None,
            daily_rate=Decimal(daily_rate) if daily_rate is not None else None,
            min_stay_days=min_stay_days,
        )
        db.add(room)
        await db.commit()
        return room

    return _make_room


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    app = create_application()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
