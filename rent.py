"""
Rent affordability: safe rent range, 50/30/20 budget split and the cash
needed before the first paycheck.

The safe range is 28-35% of monthly take-home after debt payments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import config as cfg
from impact import investing_impact
from rounding import round_half_up, round_to_nearest


@dataclass(frozen=True)
class RentRange:
    low: float
    high: float

    @property
    def formatted(self) -> str:
        return f"${self.low:,.0f}–${self.high:,.0f}"


@dataclass(frozen=True)
class BudgetBreakdown:
    needs: float
    wants: float
    savings: float


@dataclass(frozen=True)
class UpfrontCash:
    gap_days: int
    deposit_low: float
    deposit_high: float
    first_month_low: float
    first_month_high: float
    gap_living_costs: float
    moving_setup: float
    total_low: float
    total_high: float


def rent_range(take_home_monthly: float, debt_monthly: float = 0.0) -> RentRange:
    """Safe rent range for a monthly take-home and optional debt payments.

    base = max(0, take-home - debt); low and high are 28% and 35% of the
    base, each rounded to the nearest $25.
    """
    base = max(0.0, take_home_monthly - (debt_monthly or 0.0))
    low = round_to_nearest(base * cfg.RENT_LOW_PCT, cfg.RENT_ROUND_TO)
    high = round_to_nearest(base * cfg.RENT_HIGH_PCT, cfg.RENT_ROUND_TO)
    return RentRange(low=low, high=high)


def budget_breakdown(take_home_monthly: float) -> BudgetBreakdown:
    """50/30/20 split. Savings absorbs the rounding so the parts add up."""
    needs = round_to_nearest(take_home_monthly * cfg.BUDGET_NEEDS_PCT, cfg.BUDGET_ROUND_TO)
    wants = round_to_nearest(take_home_monthly * cfg.BUDGET_WANTS_PCT, cfg.BUDGET_ROUND_TO)
    savings = take_home_monthly - needs - wants
    return BudgetBreakdown(needs=needs, wants=wants, savings=savings)


def upfront_cash(take_home_monthly: float, safe_range: RentRange) -> Optional[UpfrontCash]:
    """Cash needed before the first paycheck lands.

    Deposit and first month are one rent each; living costs cover a
    fixed 14-day gap at 35% of take-home per month; moving is flat.
    Returns ``None`` when there is no take-home to plan against.
    """
    if take_home_monthly <= 0:
        return None

    gap_days = cfg.PAYCHECK_GAP_DAYS
    gap_living = take_home_monthly * cfg.GAP_LIVING_PCT * (gap_days / 30)
    moving = cfg.MOVING_SETUP_COST
    total_low = 2 * safe_range.low + gap_living + moving
    total_high = 2 * safe_range.high + gap_living + moving

    return UpfrontCash(
        gap_days=gap_days,
        deposit_low=safe_range.low,
        deposit_high=safe_range.high,
        first_month_low=safe_range.low,
        first_month_high=safe_range.high,
        gap_living_costs=round_to_nearest(gap_living, cfg.UPFRONT_ROUND_TO),
        moving_setup=moving,
        total_low=round_to_nearest(total_low, cfg.UPFRONT_ROUND_TO),
        total_high=round_to_nearest(total_high, cfg.UPFRONT_ROUND_TO),
    )


def rent_net_worth_protection_30yr(take_home_monthly: float) -> float:
    """30-year value of not overspending 5% of take-home on rent."""
    if take_home_monthly <= 0:
        return 0.0
    avoided = take_home_monthly * cfg.RENT_OVERSPEND_PCT
    return round_half_up(investing_impact(avoided, cfg.REAL_RETURN_DEFAULT, 30))


def timing_message(days_until_start: Optional[int]) -> Optional[str]:
    """Copy for the start-date card, ``None`` without a start date."""
    if days_until_start is None or days_until_start < 0:
        return None
    if days_until_start == 0:
        return ("Even when you start soon, first paychecks often arrive 2–3 weeks "
                "after your start date. Early fixed costs can still feel tighter.")
    if days_until_start <= 30:
        unit = "day" if days_until_start == 1 else "days"
        return (f"Your job starts in {days_until_start} {unit}. First paychecks often "
                "arrive 2–3 weeks after your start date, which can make early rent "
                "decisions more sensitive.")
    return (f"Your job starts in {days_until_start} days. Security deposits, first "
            "month's rent, and a short gap before your first paycheck all require cash "
            "upfront. Choosing lower rent reduces that early cash burden.")
