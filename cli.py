"""
CLI interface and shared display-data computation for the rent tool.
"""

from __future__ import annotations

import math
import sys
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import analytics
import config as cfg
import impact
import market
import rent
import report
import tax


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val: float, decimals: int = 0) -> str:
    """Format number as $X,XXX (negatives as -$X,XXX)."""
    sign = "-" if val < 0 else ""
    return f"{sign}${abs(val):,.{decimals}f}"


def fmt_signed(val: float) -> str:
    """Format as +$1,234 or -$1,234."""
    return f"+{fmt(val)}" if val >= 0 else fmt(val)


def pct(val: float, decimals: int = 1) -> str:
    return f"{val:.{decimals}f}%"


# ═══════════════════════════════════════════════════════════════════
# Inputs
# ═══════════════════════════════════════════════════════════════════

@dataclass
class RentToolInputs:
    """Everything the rent tool asks for."""

    profile: tax.SalaryProfile
    debt_monthly: float = 0.0
    city: Optional[str] = None        # HUD preset city, e.g. "NYC"
    state_name: Optional[str] = None  # ZORI state, e.g. "TX"
    region: Optional[str] = None      # ZORI metro, e.g. "Austin, TX"
    start_date: Optional[str] = None  # ISO date of the first work day

    def __post_init__(self) -> None:
        if self.debt_monthly < 0:
            raise ValueError("Monthly debt must not be negative")


def _strip_currency(s: str) -> str:
    """Remove currency symbols, commas, spaces."""
    return s.replace("$", "").replace(",", "").replace(" ", "")


def parse_amount(raw: Any, default: float = 0.0) -> float:
    """Parse '$1,200' or 1200 into a float; blank means *default*."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    if isinstance(raw, bool):
        raise ValueError(f"Invalid number: {raw!r}")
    try:
        value = float(_strip_currency(str(raw)).replace("%", ""))
    except ValueError:
        raise ValueError(f"Invalid number: {raw!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"Invalid number: {raw!r}")
    return value


def _prompt_float(
    label: str,
    default: Any,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        try:
            val = parse_amount(raw or str(default))
        except ValueError:
            print("    Invalid number, try again.")
            continue
        if min_val is not None and val < min_val:
            print(f"    Must be at least {min_val}")
            continue
        if max_val is not None and val > max_val:
            print(f"    Must be at most {max_val}")
            continue
        return val


def _prompt_text(label: str, default: str = "") -> str:
    raw = input(f"  {label} [{default}]: ").strip()
    return raw or default


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip()
        if not raw:
            return default
        for option in options:
            if raw.lower() == option.lower():
                return option
        print(f"    Choose from: {opts}")


def collect_inputs() -> RentToolInputs:
    """Prompt the user for the rent tool inputs."""
    print("\n  Enter your details (press Enter for defaults):\n")

    salary = _prompt_float("Gross annual salary", "$85,000", 0)
    state = _prompt_text("State code (e.g. TX, CA)", "TX").upper()
    k401 = _prompt_float("Pretax 401(k) contribution %", 5, 0, 100)
    hsa = _prompt_float("Pretax HSA contribution per year", "$0", 0, cfg.HSA_LIMIT_SINGLE)
    debt = _prompt_float("Monthly debt payments", "$0", 0)
    region = _prompt_text("Metro (e.g. Austin, TX; blank to skip)")
    city = _prompt_choice("City", list(cfg.HUD_CITY_KEYS) + ["Other"], "Other")
    start = _prompt_text("Job start date (YYYY-MM-DD, blank to skip)")

    return RentToolInputs(
        profile=tax.SalaryProfile(salary, state, employee_401k_pct=k401, hsa_annual=hsa),
        debt_monthly=debt,
        city=None if city == "Other" else city,
        state_name=state,
        region=region or None,
        start_date=start or None,
    )


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI, web app and PDF)
# ═══════════════════════════════════════════════════════════════════

def _market_context(
    inputs: RentToolInputs,
    safe: rent.RentRange,
    store: Optional[market.ZoriStore],
) -> Optional[Dict[str, Any]]:
    """Market band for the chosen metro (ZORI) or preset city (HUD)."""
    if store is not None and inputs.state_name and inputs.region \
            and inputs.region != cfg.OTHER_METRO_VALUE:
        found = market.median_rent_for_region(store, inputs.region, inputs.state_name)
        if found["medianRent"] is not None:
            band = market.market_rent_range(found["medianRent"])
            return {
                "source": "zori",
                "label": found["matchedRegion"],
                "median": band.median_rent,
                "tier": band.tier,
                "low": band.market_low,
                "high": band.market_high,
                "comparison": market.compare_market_to_safe(
                    band.market_low, band.market_high, safe.low, safe.high),
            }

    if inputs.city:
        hud = market.hud_rent_range(inputs.city)
        if hud is not None:
            low, high = hud
            return {
                "source": "hud",
                "label": cfg.HUD_CITY_KEYS[inputs.city],
                "median": None,
                "tier": None,
                "low": low,
                "high": high,
                "comparison": market.compare_rent_ranges(safe.low, safe.high, low, high),
            }
    return None


def compute_display_data(
    inputs: RentToolInputs,
    store: Optional[market.ZoriStore] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Extract every metric needed for the output sections."""
    p = inputs.profile
    take_home_m = tax.take_home_monthly(p)
    safe = rent.rent_range(take_home_m, inputs.debt_monthly)
    budget = rent.budget_breakdown(take_home_m)
    upfront = rent.upfront_cash(take_home_m, safe)
    days = analytics.days_until(inputs.start_date, today)
    savings_impacts = impact.compute_impacts(budget.savings, "investing")

    return {
        "salary": p.salary_annual,
        "state_code": p.state_code,
        "k401_pct": p.employee_401k_pct,
        "k401_annual": p.pretax_401k_annual,
        "hsa": p.hsa_annual,
        "debt": inputs.debt_monthly,
        "taxable": max(p.taxable_income, 0.0),
        "tax": tax.tax_breakdown(p.taxable_income, p.state_code),
        "take_home_monthly": take_home_m,
        "take_home_annual": take_home_m * 12,
        "rent_low": safe.low,
        "rent_high": safe.high,
        "rent_formatted": safe.formatted,
        "budget": asdict(budget),
        "upfront": asdict(upfront) if upfront is not None else None,
        "protection_30yr": rent.rent_net_worth_protection_30yr(take_home_m),
        "days_until_start": days,
        "timing_message": rent.timing_message(days),
        "market": _market_context(inputs, safe, store),
        "savings_impacts": [asdict(h) for h in savings_impacts],
        "buckets": {
            "salary_bucket": analytics.bucket_salary(p.salary_annual),
            "rent_ratio_bucket": analytics.bucket_rent_ratio(safe.high, take_home_m),
            "days_until_start_bucket": analytics.bucket_days_until_start(inputs.start_date, today),
            "city_tier": analytics.map_city_to_tier(inputs.city or inputs.region),
        },
    }


_COMPARISON_TEXT = {
    "above": "Typical rents sit above your safe range.",
    "overlap": "Typical rents overlap your safe range.",
    "below": "Typical rents sit below your safe range.",
}


def market_verdict(d: Dict[str, Any]) -> str:
    m = d.get("market")
    if not m:
        return ""
    return f"{m['label']}: {fmt(m['low'])}–{fmt(m['high'])}. {_COMPARISON_TEXT[m['comparison']]}"


# ═══════════════════════════════════════════════════════════════════
# CLI Output Formatting
# ═══════════════════════════════════════════════════════════════════

W = 72  # box width (characters)
_H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{_H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{_H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 36) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{_H * (W - 2)}╝"


def _wrap(text: str) -> List[str]:
    rows, line = [], ""
    for word in text.split():
        if len(line) + len(word) + 1 <= W - 6:
            line = f"{line} {word}" if line else word
        else:
            rows.append(_box_line(line))
            line = word
    if line:
        rows.append(_box_line(line))
    return rows


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


def _print_take_home(d: Dict[str, Any]) -> None:
    t = d["tax"]
    rows = [
        _box_row("Gross salary", fmt(d["salary"])),
        _box_row("Pretax 401(k)", f"-{fmt(d['k401_annual'])}"),
        _box_row("Pretax HSA", f"-{fmt(d['hsa'])}"),
        _box_row("Taxable income", fmt(d["taxable"])),
        _box_line(),
        _box_row("Federal tax", f"-{fmt(t['federal'])}"),
        _box_row(f"State tax ({d['state_code']})", f"-{fmt(t['state'])}"),
        _box_row("FICA", f"-{fmt(t['fica'])}"),
        _box_line(),
        _box_row("Take-home (monthly)", fmt(d["take_home_monthly"])),
        _box_row("Take-home (annual)", fmt(d["take_home_annual"])),
    ]
    _print_section("YOUR REAL TAKE-HOME", rows)


def _print_rent(d: Dict[str, Any]) -> None:
    b = d["budget"]
    rows = [
        _box_row("Safe rent range", d["rent_formatted"]),
        _box_line("28–35% of take-home" + (f", after {fmt(d['debt'])}/mo debt" if d["debt"] else "")),
        _box_line(),
        _box_row("Needs (50%)", fmt(b["needs"])),
        _box_row("Wants (30%)", fmt(b["wants"])),
        _box_row("Savings (20%)", fmt(b["savings"])),
    ]
    verdict = market_verdict(d)
    if verdict:
        rows.append(_box_line())
        rows.extend(_wrap(verdict))
    _print_section("SAFE RENT RANGE", rows)


def _print_upfront(d: Dict[str, Any]) -> None:
    u = d["upfront"]
    if u is None:
        return
    rows = [
        _box_row("Security deposit", f"{fmt(u['deposit_low'])}–{fmt(u['deposit_high'])}"),
        _box_row("First month's rent", f"{fmt(u['first_month_low'])}–{fmt(u['first_month_high'])}"),
        _box_row(f"Living costs ({u['gap_days']} days)", fmt(u["gap_living_costs"])),
        _box_row("Moving & setup", fmt(u["moving_setup"])),
        _box_line(),
        _box_row("Total", f"{fmt(u['total_low'])}–{fmt(u['total_high'])}"),
    ]
    if d["timing_message"]:
        rows.append(_box_line())
        rows.extend(_wrap(d["timing_message"]))
    _print_section("CASH YOU NEED UPFRONT", rows)


def _print_impact(d: Dict[str, Any]) -> None:
    rows = [_box_row(f"Invest {fmt(d['budget']['savings'])}/mo for {h['years']} yr",
                     fmt_signed(h["impact"]))
            for h in d["savings_impacts"]]
    rows.append(_box_line())
    rows.append(_box_row("Staying in range protects (30 yr)", fmt(d["protection_30yr"])))
    rows.append(_box_line(f"Assumes a {pct(cfg.REAL_RETURN_DEFAULT * 100, 0)} real return."))
    _print_section("NET WORTH IMPACT", rows)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli() -> None:
    """Run the full CLI workflow."""
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  How Much Rent Can I Afford?")
    print("=" * W)

    inputs = collect_inputs()
    d = compute_display_data(inputs, market.load_zori_data())

    print()
    _print_take_home(d)
    _print_rent(d)
    _print_upfront(d)
    _print_impact(d)

    path = report.save_rent_plan_pdf(d, "rent_plan.pdf")
    _print_section("YOUR PLAN", [_box_line(f"PDF saved to: {path}")])


if __name__ == "__main__":
    run_cli()
