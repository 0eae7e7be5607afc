"""Pricing engine: billing policy + rates + stay range -> charge.

Policies:
- monthly: whole 30-day months, minimum one month; leftover days are not billed
- monthly_with_daily: whole months at the monthly rate, leftover days at the daily rate
- daily: every day at the daily rate

This module is the only place the pricing formula lives. Booking previews and
the charge fixed on a booking both go through ``quote``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from dormledger.core.exceptions import ConfigurationError, ValidationError

DAYS_PER_MONTH = 30
CENTS = Decimal("0.01")


class BillingPolicy(str, Enum):
    """How a stay's duration converts to a charge."""

    MONTHLY = "monthly"
    MONTHLY_WITH_DAILY = "monthly_with_daily"
    DAILY = "daily"


# Policies that bill leftover days and therefore need a daily rate
DAILY_RATE_POLICIES = frozenset({BillingPolicy.MONTHLY_WITH_DAILY, BillingPolicy.DAILY})


def round_money(value: Decimal | int | str) -> Decimal:
    """Round a monetary amount to 2 decimal places (half up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _optional_decimal(value: Decimal | int | str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _optional_money(value: Decimal | None) -> Decimal | None:
    return round_money(value) if value is not None else None


@dataclass(frozen=True)
class RateConfig:
    """A room's billing policy and rates."""

    billing_policy: BillingPolicy
    monthly_rate: Decimal | None
    daily_rate: Decimal | None = None

    def validate(self) -> None:
        """Raise ConfigurationError if the rates don't fit the policy."""
        if self.billing_policy != BillingPolicy.DAILY and self.monthly_rate is None:
            raise ConfigurationError(
                f"Billing policy '{self.billing_policy.value}' requires a monthly rate"
            )
        if self.monthly_rate is not None and Decimal(self.monthly_rate) < 0:
            raise ConfigurationError("Monthly rate must be zero or greater")
        if self.billing_policy in DAILY_RATE_POLICIES:
            if self.daily_rate is None or Decimal(self.daily_rate) <= 0:
                raise ConfigurationError(
                    f"Billing policy '{self.billing_policy.value}' requires a daily rate greater than 0"
                )
        elif self.daily_rate is not None and Decimal(self.daily_rate) < 0:
            raise ConfigurationError("Daily rate must be zero or greater")


@dataclass(frozen=True)
class StayRange:
    """A stay from ``start`` (move-in) to ``end`` (move-out), end exclusive."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def validate(self) -> None:
        if self.start is None or self.end is None:
            raise ValidationError("Stay start and end dates are required")
        if self.days < 1:
            raise ValidationError(
                f"Stay end date ({self.end.isoformat()}) must be after start date "
                f"({self.start.isoformat()})"
            )


@dataclass(frozen=True)
class PricingBreakdown:
    months: int
    extra_days: int


@dataclass(frozen=True)
class PricingQuote:
    """Charge for a stay. Derived on demand, never persisted."""

    days: int
    policy: BillingPolicy
    breakdown: PricingBreakdown
    total: Decimal
    monthly_rate: Decimal | None
    daily_rate: Decimal | None


def quote(rate_config: RateConfig, stay: StayRange) -> PricingQuote:
    """Price a stay under a room's rate configuration.

    Args:
        rate_config: The room's billing policy and rates
        stay: The requested date range

    Returns:
        PricingQuote: days, breakdown and total (rounded to 2 places)

    Raises:
        ValidationError: If the stay is shorter than one day
        ConfigurationError: If a required daily rate is missing
    """
    stay.validate()
    try:
        policy = BillingPolicy(rate_config.billing_policy)
    except ValueError:
        raise ConfigurationError(f"Unknown billing policy '{rate_config.billing_policy}'")
    rate_config = RateConfig(policy, rate_config.monthly_rate, rate_config.daily_rate)
    rate_config.validate()

    days = stay.days
    # Rates are used unrounded; only the total is rounded
    monthly_rate = _optional_decimal(rate_config.monthly_rate)
    daily_rate = _optional_decimal(rate_config.daily_rate)

    if policy == BillingPolicy.MONTHLY:
        # Coarse policy: at least one billing unit, leftover days unbilled
        months = max(days // DAYS_PER_MONTH, 1)
        extra_days = 0
        total = months * monthly_rate
    elif policy == BillingPolicy.MONTHLY_WITH_DAILY:
        months = days // DAYS_PER_MONTH
        extra_days = days - months * DAYS_PER_MONTH
        total = months * monthly_rate + extra_days * daily_rate
    else:
        months = 0
        extra_days = days
        total = days * daily_rate

    return PricingQuote(
        days=days,
        policy=policy,
        breakdown=PricingBreakdown(months=months, extra_days=extra_days),
        total=round_money(total),
        monthly_rate=_optional_money(monthly_rate),
        daily_rate=_optional_money(daily_rate),
    )
