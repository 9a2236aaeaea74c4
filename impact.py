"""
Net worth impact of one monthly change, projected over fixed horizons.

Three use cases:
  investing  future value of a monthly annuity at the real return
  cash       linear accumulation, no growth
  debt       simplified interest-saved estimate on extra payments
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import config as cfg


@dataclass(frozen=True)
class HorizonImpact:
    years: int
    impact: float   # dollars, negative for a monthly cut


def investing_impact(monthly: float, real_return: float, years: int) -> float:
    """FV of *monthly* contributions compounding at ``real_return / 12``.

    A zero return degrades to ``monthly * months``. The magnitude is
    computed on ``abs(monthly)`` and the sign follows *monthly*.
    """
    months = years * 12
    sign = 1.0 if monthly >= 0 else -1.0
    amount = abs(monthly)
    if real_return == 0:
        return sign * amount * months
    i = real_return / 12
    return sign * amount * ((1 + i) ** months - 1) / i


def cash_impact(monthly: float, years: int) -> float:
    return monthly * years * 12


def debt_impact(monthly: float, apr: float, years: int) -> float:
    """Interest avoided by paying *monthly* extra toward debt.

    Trapezoidal estimate ``(P * months) * (apr * years) / 2``; not an
    amortization schedule.
    """
    principal_extra = abs(monthly) * years * 12
    saved = principal_extra * (apr * years) / 2
    return saved if monthly >= 0 else -saved


def compute_impacts(
    monthly_delta: float,
    use_case: str,
    real_return: Optional[float] = None,
    debt_apr: Optional[float] = None,
) -> List[HorizonImpact]:
    """Impact at each of the 1, 10 and 30 year horizons.

    Raises
    ------
    ValueError
        If *use_case* is not one of ``investing``, ``cash``, ``debt``.
    """
    if use_case not in cfg.USE_CASES:
        raise ValueError(f"useCase must be one of: {', '.join(cfg.USE_CASES)}")

    r = cfg.REAL_RETURN_DEFAULT if real_return is None else real_return
    apr = cfg.DEBT_APR_DEFAULT if debt_apr is None else debt_apr

    impacts = []
    for years in cfg.IMPACT_HORIZONS:
        if use_case == "investing":
            value = investing_impact(monthly_delta, r, years)
        elif use_case == "cash":
            value = cash_impact(monthly_delta, years)
        else:
            value = debt_impact(monthly_delta, apr, years)
        impacts.append(HorizonImpact(years=years, impact=value))
    return impacts
