"""
US take-home pay estimator for the rent and leap calculators.

Every rate function accepts numpy arrays so it can be evaluated across a
salary grid for charts. Scalar inputs work too (promoted internally).

The model is deliberately coarse: one effective federal rate picked from a
step table, one flat state rate and flat FICA, all applied to taxable income
after pretax 401(k) and HSA deductions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

import config as cfg
from rounding import round_half_up


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SalaryProfile:
    """Inputs for a single take-home estimate."""

    salary_annual: float         # gross annual salary
    state_code: str              # two-letter state code
    employee_401k_pct: float = 0.0   # pretax 401(k) contribution, % of gross
    hsa_annual: float = 0.0      # pretax HSA contribution per year

    def __post_init__(self) -> None:
        if self.salary_annual < 0:
            raise ValueError("Salary must not be negative")
        if not 0 <= self.employee_401k_pct <= 100:
            raise ValueError("401(k) contribution must be between 0% and 100%")
        if self.hsa_annual < 0:
            raise ValueError("HSA contribution must not be negative")
        object.__setattr__(self, "state_code", (self.state_code or "").strip().upper())

    @property
    def pretax_401k_annual(self) -> float:
        return self.salary_annual * self.employee_401k_pct / 100

    @property
    def taxable_income(self) -> float:
        return self.salary_annual - self.pretax_401k_annual - self.hsa_annual


# ─── Rates ───────────────────────────────────────────────────────────

_FEDERAL_UPPERS = np.array([upper for upper, _ in cfg.FEDERAL_BRACKETS])
_FEDERAL_RATES = np.array([rate for _, rate in cfg.FEDERAL_BRACKETS])


def federal_rate(income):
    """Effective federal rate for each income value.

    Band limits are inclusive: income exactly at a limit stays in the
    lower band (95,350 is taxed at 22%, 95,351 at 24%).
    """
    income = np.asarray(income, dtype=float)
    idx = np.searchsorted(_FEDERAL_UPPERS, income, side="left")
    return _FEDERAL_RATES[idx]


def state_rate(state_code: str) -> float:
    """Flat state rate, falling back to the default for unknown codes."""
    return cfg.STATE_RATES.get((state_code or "").strip().upper(), cfg.DEFAULT_STATE_RATE)


# ─── Tax ─────────────────────────────────────────────────────────────

def _components(income, state_code: str):
    income = np.asarray(income, dtype=float)
    federal = income * federal_rate(income)
    state = income * state_rate(state_code)
    fica = income * cfg.FICA_RATE
    return income, federal, state, fica


def estimate_tax_annual(taxable_income, state_code: str):
    """Total annual tax on taxable income, rounded to whole dollars.

    Parameters
    ----------
    taxable_income : array_like
        Income after pretax 401(k) and HSA deductions.
    state_code : str
        Two-letter state code.

    Returns
    -------
    float or np.ndarray
        Zero wherever taxable income is not positive.
    """
    income, federal, state, fica = _components(taxable_income, state_code)
    total = np.where(income > 0, round_half_up(federal + state + fica), 0.0)
    return float(total) if total.ndim == 0 else total


def tax_breakdown(income: float, state_code: str) -> Dict[str, float]:
    """Rounded per-component breakdown for a single income.

    Keys: ``federal``, ``state``, ``fica``, ``total``, ``net``.
    """
    if income <= 0:
        return {"federal": 0.0, "state": 0.0, "fica": 0.0, "total": 0.0, "net": 0.0}
    income, federal, state, fica = _components(income, state_code)
    total = round_half_up(federal + state + fica)
    return {
        "federal": round_half_up(federal),
        "state": round_half_up(state),
        "fica": round_half_up(fica),
        "total": total,
        "net": round_half_up(income - total),
    }


# ─── Take-Home Pay ──────────────────────────────────────────────────

def take_home_annual(profile: SalaryProfile) -> float:
    """Net annual pay after pretax deductions and tax (never negative)."""
    taxable = profile.taxable_income
    if taxable <= 0:
        return 0.0
    return taxable - estimate_tax_annual(taxable, profile.state_code)


def take_home_monthly(profile: SalaryProfile) -> float:
    """Net monthly pay: ``take_home_annual / 12``."""
    return take_home_annual(profile) / 12


def net_pay_ratio(gross_income, state_code: str):
    """Net pay as a share of gross, with no pretax deductions."""
    gross = np.asarray(gross_income, dtype=float)
    tax = estimate_tax_annual(gross, state_code)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(gross > 0, (gross - tax) / np.where(gross > 0, gross, 1.0), 0.0)
    return float(ratio) if ratio.ndim == 0 else ratio


# ─── Reverse Solve ──────────────────────────────────────────────────

def solve_gross_from_take_home(take_home: float, state_code: str) -> Dict[str, float]:
    """Find the gross salary whose estimate nets *take_home* per year.

    Bisects between ``take_home`` and ``2 * take_home`` on whole dollars,
    stopping inside a $1 tolerance or after the iteration limit.

    Returns
    -------
    dict
        :func:`tax_breakdown` keys plus ``salary_annual``.
    """
    if take_home <= 0:
        raise ValueError("Take-home pay must be positive")

    low, high = take_home, take_home * 2
    result = None
    guess = take_home
    for _ in range(cfg.SOLVE_MAX_ITER):
        guess = round_half_up((low + high) / 2)
        result = tax_breakdown(guess, state_code)
        diff = result["net"] - take_home
        if abs(diff) <= cfg.SOLVE_TOLERANCE:
            break
        if diff < 0:
            low = guess
        else:
            high = guess
    else:
        guess = round_half_up((low + high) / 2)
        result = tax_breakdown(guess, state_code)

    result = dict(result)
    result["salary_annual"] = guess
    return result


# ─── Checks ──────────────────────────────────────────────────────────

if __name__ == "__main__":
    tests_passed = 0
    tests_failed = 0

    def check(name: str, actual: float, expected: float, tol: float = 0.01) -> None:
        global tests_passed, tests_failed
        passed = abs(actual - expected) <= tol
        status = "PASS" if passed else "FAIL"
        if passed:
            tests_passed += 1
        else:
            tests_failed += 1
        print(f"  [{status}] {name}: expected {expected}, got {actual:.2f}")

    print("=== Federal rate ===")
    check("rate at $95,000", float(federal_rate(95_000)), 0.22)
    check("rate at $95,350", float(federal_rate(95_350)), 0.22)
    check("rate at $95,351", float(federal_rate(95_351)), 0.24)

    print("\n=== Take-home ===")
    p = SalaryProfile(100_000, "TX", employee_401k_pct=5)
    check("taxable on $100k / 5%", p.taxable_income, 95_000)
    # 95,000 x (22% + 0% + 7.65%) = 28,167.50 -> 28,168
    check("annual tax", estimate_tax_annual(95_000, "TX"), 28_168)
    check("monthly take-home", take_home_monthly(p), (95_000 - 28_168) / 12)
    check("zero taxable", take_home_monthly(SalaryProfile(10_000, "CA", 100)), 0.0)

    print("\n=== Reverse solve ===")
    solved = solve_gross_from_take_home(40_000, "NY")
    check("net near target", solved["net"], 40_000, tol=1.0)

    print(f"\n{'='*50}")
    print(f"Results: {tests_passed} passed, {tests_failed} failed")
