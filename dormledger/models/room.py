"""Room rate configuration model (read-only for the billing core)."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dormledger.database import Base
from dormledger.domain.pricing import BillingPolicy, RateConfig
from dormledger.models.base import utcnow


class Room(Base):
    """A bookable room and its billing policy."""

    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Rates
    billing_policy: Mapped[str] = mapped_column(
        String(30), nullable=False, default=BillingPolicy.MONTHLY.value
    )  # monthly, monthly_with_daily, daily
    monthly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    min_stay_days: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def rate_config(self) -> RateConfig:
        return RateConfig(
            billing_policy=self.billing_policy,
            monthly_rate=self.monthly_rate,
            daily_rate=self.daily_rate,
        )
