"""
Leap impact simulator: what one 401(k) change does to net worth.

Model: invested assets only (employee 401(k) + employer match), no debt.
Employee contributions are capped at the IRS limit; the match is computed
on the capped contribution. Growth compounds monthly at a real return.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import config as cfg
from rounding import round_half_up

MONTHS_PER_YEAR = 12


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass
class LeapInputs:
    """Inputs shared by the trajectory and cost-of-delay calculations."""

    gross_annual: float
    current_401k_pct: float
    optimized_401k_pct: float
    match_pct: float = cfg.DEFAULT_MATCH_PCT          # cap (Y): up to Y% of salary
    match_rate_pct: float = cfg.DEFAULT_MATCH_RATE_PCT  # rate (X): 100 = dollar-for-dollar
    has_employer_match: bool = True
    real_return: float = cfg.REAL_RETURN_DEFAULT
    years: int = cfg.TRAJECTORY_YEARS

    def __post_init__(self) -> None:
        if self.gross_annual < 0:
            raise ValueError("Salary must not be negative")
        for name in ("current_401k_pct", "optimized_401k_pct", "match_pct"):
            if not 0 <= getattr(self, name) <= 100:
                raise ValueError(f"{name} must be between 0 and 100")
        if self.years < 1:
            raise ValueError("Years must be at least 1")


@dataclass
class RecommendedLeap:
    label: str
    summary: str
    optimized_401k_pct: float
    type: str    # 'capture_match', 'increase_contribution' or 'at_cap'


@dataclass
class TrajectoryResult:
    baseline_by_year: List[float]
    optimized_by_year: List[float]
    year_labels: List[int]

    @property
    def baseline_end(self) -> float:
        return self.baseline_by_year[-1]

    @property
    def optimized_end(self) -> float:
        return self.optimized_by_year[-1]

    @property
    def delta(self) -> float:
        return self.optimized_end - self.baseline_end


# ─── 401(k) status & decision ────────────────────────────────────────

def compute_401k_status(
    salary_annual: float,
    current_401k_pct: float,
    has_employer_match: bool,
    match_cap_pct: float,
) -> Dict[str, float]:
    """Annual contribution, whether it hits the IRS cap, whether the match
    is captured. No tolerance at the cap: 23,499 is not maxed."""
    annual = salary_annual * current_401k_pct / 100 if salary_annual > 0 else 0.0
    return {
        "current_401k_annual": annual,
        "is_401k_maxed": salary_annual > 0 and annual >= cfg.K401_EMPLOYEE_CAP,
        "match_captured": (not has_employer_match) or current_401k_pct >= match_cap_pct,
    }


def _fmt_pct(value: float) -> str:
    return f"{round(value, 2):g}%"


def _at_cap(current_pct: float) -> RecommendedLeap:
    return RecommendedLeap(
        label="401(k) is maxed",
        summary="Nice — you're already hitting the annual 401(k) limit. Let's optimize the next lever.",
        optimized_401k_pct=current_pct,
        type="at_cap",
    )


def recommended_leap(
    has_employer_match: bool,
    match_pct: float,
    current_401k_pct: float,
    salary_annual: float = 0.0,
) -> RecommendedLeap:
    """Single highest-impact leap and the 401(k) % after applying it.

    1. Match on offer and not captured: capture it (never past the IRS cap).
    2. Already at the IRS cap, or no room left: ``at_cap``.
    3. Otherwise: raise contributions toward the IRS cap (15% if the
       salary is unknown).
    """
    cap_pct = cfg.K401_EMPLOYEE_CAP / salary_annual * 100 if salary_annual > 0 else None

    if has_employer_match and current_401k_pct < match_pct:
        target = match_pct if cap_pct is None else min(match_pct, cap_pct)
        return RecommendedLeap(
            label="Capture your full employer match",
            summary=f"Increase 401(k) from {_fmt_pct(current_401k_pct)} → {_fmt_pct(target)}",
            optimized_401k_pct=target,
            type="capture_match",
        )

    status = compute_401k_status(salary_annual, current_401k_pct, has_employer_match, match_pct)
    target = cfg.FALLBACK_TARGET_PCT if cap_pct is None else min(cap_pct, 100.0)
    if status["is_401k_maxed"] or target <= current_401k_pct:
        return _at_cap(current_401k_pct)

    return RecommendedLeap(
        label="Increase retirement contribution",
        summary=f"Increase 401(k) from {_fmt_pct(current_401k_pct)} → {_fmt_pct(target)}",
        optimized_401k_pct=target,
        type="increase_contribution",
    )


# ─── Trajectory ──────────────────────────────────────────────────────

def fv_monthly(contribution: float, monthly_rate: float, months: int) -> float:
    """Future value of *months* level contributions."""
    if monthly_rate == 0:
        return contribution * months
    return contribution * ((1 + monthly_rate) ** months - 1) / monthly_rate


def monthly_contribution(inputs: LeapInputs, pct: float) -> float:
    """Employee (capped) plus employer match, per month."""
    employee_annual = min(inputs.gross_annual * pct / 100, cfg.K401_EMPLOYEE_CAP)
    match_monthly = 0.0
    if inputs.has_employer_match and inputs.gross_annual > 0:
        effective_pct = employee_annual / inputs.gross_annual * 100
        employer_pct = min(effective_pct * inputs.match_rate_pct / 100, inputs.match_pct)
        match_monthly = inputs.gross_annual * employer_pct / 100 / MONTHS_PER_YEAR
    return employee_annual / MONTHS_PER_YEAR + match_monthly


def _path(inputs: LeapInputs, pct: float) -> List[float]:
    rate = inputs.real_return / MONTHS_PER_YEAR
    contribution = monthly_contribution(inputs, pct)
    year_growth = (1 + rate) ** MONTHS_PER_YEAR
    new_money = fv_monthly(contribution, rate, MONTHS_PER_YEAR)

    path = [0.0]
    balance = 0.0
    for _ in range(inputs.years):
        balance = balance * year_growth + new_money
        path.append(round_half_up(balance))
    return path


def run_trajectory(inputs: LeapInputs) -> TrajectoryResult:
    """Year-end balances for the current and the optimized 401(k) %."""
    return TrajectoryResult(
        baseline_by_year=_path(inputs, inputs.current_401k_pct),
        optimized_by_year=_path(inputs, inputs.optimized_401k_pct),
        year_labels=list(range(inputs.years + 1)),
    )


def cost_of_delay(inputs: LeapInputs, delay_months: int = cfg.DELAY_MONTHS,
                  trajectory: Optional[TrajectoryResult] = None) -> float:
    """Final-year shortfall from waiting *delay_months* before the leap.

    Baseline contributions run for the delay, optimized ones for the rest;
    the result is compared with optimized from the start.
    """
    rate = inputs.real_return / MONTHS_PER_YEAR
    total_months = inputs.years * MONTHS_PER_YEAR
    delay_months = min(delay_months, total_months)
    remaining = total_months - delay_months

    after_delay = fv_monthly(monthly_contribution(inputs, inputs.current_401k_pct), rate, delay_months)
    rest = fv_monthly(monthly_contribution(inputs, inputs.optimized_401k_pct), rate, remaining)
    delayed_end = after_delay * (1 + rate) ** remaining + rest

    if trajectory is None:
        trajectory = run_trajectory(inputs)
    return round_half_up(trajectory.optimized_end - delayed_end)


def simulate(
    salary_annual: float,
    current_401k_pct: float,
    has_employer_match: bool,
    match_pct: float = cfg.DEFAULT_MATCH_PCT,
    match_rate_pct: float = cfg.DEFAULT_MATCH_RATE_PCT,
    real_return: float = cfg.REAL_RETURN_DEFAULT,
) -> Dict[str, object]:
    """Recommendation, trajectory and cost of delay for one visitor."""
    rec = recommended_leap(has_employer_match, match_pct, current_401k_pct, salary_annual)
    inputs = LeapInputs(
        gross_annual=salary_annual,
        current_401k_pct=current_401k_pct,
        optimized_401k_pct=rec.optimized_401k_pct,
        match_pct=match_pct,
        match_rate_pct=match_rate_pct,
        has_employer_match=has_employer_match,
        real_return=real_return,
    )
    trajectory = run_trajectory(inputs)
    delay_cost = cost_of_delay(inputs, trajectory=trajectory) if rec.type != "at_cap" else 0.0
    return {
        "leap": rec,
        "status": compute_401k_status(salary_annual, current_401k_pct, has_employer_match, match_pct),
        "trajectory": trajectory,
        "cost_of_delay": delay_cost,
    }
