"""
Market rent context for the rent tool.

Two sources of reference data, both read-only at runtime:
  - HUD fair market rents for a handful of preset cities
  - ZORI (Zillow Observed Rent Index) metro medians from a CSV file,
    turned into a buffered market band by tier
"""

from __future__ import annotations

import csv
import logging
import math
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import config as cfg
from rounding import round_to_nearest

logger = logging.getLogger(__name__)


# ─── Tiering ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MarketRentRange:
    median_rent: float
    buffered: float
    market_low: float
    market_high: float
    tier: str
    buffer_pct: float
    width_pct: float


def rent_tier(median_rent: float) -> Tuple[str, float, float]:
    """Return ``(tier, buffer_pct, width_pct)`` for a median rent."""
    for floor, tier, buffer_pct, width_pct in cfg.MARKET_TIERS:
        if median_rent >= floor:
            return tier, buffer_pct, width_pct
    _, tier, buffer_pct, width_pct = cfg.MARKET_TIERS[-1]
    return tier, buffer_pct, width_pct


def market_rent_range(median_rent: float) -> MarketRentRange:
    """Buffered market band around a metro median.

    buffered = median * (1 + buffer); the band is buffered * (1 +/- width),
    each edge rounded to the nearest $25.
    """
    tier, buffer_pct, width_pct = rent_tier(median_rent)
    buffered = median_rent * (1 + buffer_pct)
    return MarketRentRange(
        median_rent=median_rent,
        buffered=buffered,
        market_low=round_to_nearest(buffered * (1 - width_pct), cfg.MARKET_ROUND_TO),
        market_high=round_to_nearest(buffered * (1 + width_pct), cfg.MARKET_ROUND_TO),
        tier=tier,
        buffer_pct=buffer_pct,
        width_pct=width_pct,
    )


def compare_market_to_safe(market_low: float, market_high: float,
                           safe_low: float, safe_high: float) -> str:
    """Where the market band sits relative to the safe band.

    ``above`` when the whole market band is over the safe maximum,
    ``below`` when it is entirely under the safe minimum, else ``overlap``.
    """
    if market_low > safe_high:
        return "above"
    if market_high < safe_low:
        return "below"
    return "overlap"


# ─── HUD preset cities ──────────────────────────────────────────────

def hud_rent_range(city: str) -> Optional[Tuple[float, float]]:
    """``(low, high)`` for a preset city name like ``"NYC"``."""
    key = cfg.HUD_CITY_KEYS.get(city)
    if key is None:
        return None
    return cfg.HUD_RENTS[key]


def compare_rent_ranges(user_low: float, user_high: float,
                        hud_low: float, hud_high: float) -> str:
    """Same three-way answer as :func:`compare_market_to_safe`, phrased
    from the user's band: market is ``above`` when the user's max is under
    HUD's min."""
    if user_high < hud_low:
        return "above"
    if user_low > hud_high:
        return "below"
    return "overlap"


# ─── ZORI metro data ────────────────────────────────────────────────

@dataclass
class ZoriStore:
    by_region_state: Dict[str, dict] = field(default_factory=dict)
    metros_by_state: Dict[str, List[dict]] = field(default_factory=dict)


_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")

_store_cache: Dict[str, ZoriStore] = {}


def normalize_key(s: str) -> str:
    """Lowercase, trim, drop punctuation and collapse whitespace."""
    s = _PUNCT.sub("", s.lower().strip())
    return _SPACES.sub(" ", s)


def _region_key(region: str, state: str) -> str:
    return f"{normalize_key(region)}|{state}"


def parse_zori_rows(rows) -> ZoriStore:
    """Build a store from CSV rows ``(region, state, median_rent, ...)``.

    The first row is the header. Rows with a missing, unparsable or
    non-positive median are skipped.
    """
    store = ZoriStore()
    for i, parts in enumerate(rows):
        if i == 0 or len(parts) < 3:
            continue
        region = parts[0].strip()
        state = parts[1].strip()
        raw = parts[2].strip()
        try:
            median = float(raw.replace("$", "").replace(",", ""))
        except ValueError:
            median = 0.0
        if not math.isfinite(median) or median <= 0:
            logger.warning("Skipping invalid median rent for %s, %s: %r", region, state, raw)
            continue

        metro = {"regionName": region, "stateName": state, "medianRent": median}
        store.by_region_state[_region_key(region, state)] = metro
        store.metros_by_state.setdefault(state, []).append(
            {"regionName": region, "medianRent": median}
        )

    for metros in store.metros_by_state.values():
        metros.sort(key=lambda m: m["medianRent"], reverse=True)
    return store


def load_zori_data(path: str = cfg.ZORI_CSV_PATH) -> ZoriStore:
    """Load (once per path) and cache the ZORI metro table."""
    if path in _store_cache:
        return _store_cache[path]

    if not os.path.exists(path):
        logger.warning("ZORI CSV file not found at %s. Using empty data store.", path)
        store = ZoriStore()
    else:
        with open(path, newline="", encoding="utf-8") as f:
            store = parse_zori_rows(csv.reader(f))
        logger.info("Loaded ZORI data: %d metros", len(store.by_region_state))

    _store_cache[path] = store
    return store


def metro_options_for_state(store: ZoriStore, state: str) -> List[dict]:
    """Dropdown options for *state*, priciest first, plus a catch-all."""
    options = [
        {"label": m["regionName"], "value": m["regionName"]}
        for m in store.metros_by_state.get(state, [])
    ]
    options.append({"label": cfg.OTHER_METRO_LABEL, "value": cfg.OTHER_METRO_VALUE})
    return options


def median_rent_for_region(store: ZoriStore, region: str, state: str) -> dict:
    """Median rent for a metro, exact match first, then substring match.

    Among several substring matches the highest median wins.
    """
    exact = store.by_region_state.get(_region_key(region, state))
    if exact is not None:
        return {"medianRent": exact["medianRent"], "matchedRegion": exact["regionName"]}

    wanted = normalize_key(region)
    matches = []
    for metro in store.by_region_state.values():
        if metro["stateName"] != state:
            continue
        candidate = normalize_key(metro["regionName"])
        if wanted and (wanted in candidate or candidate in wanted):
            matches.append(metro)

    if matches:
        best = max(matches, key=lambda m: m["medianRent"])
        return {"medianRent": best["medianRent"], "matchedRegion": best["regionName"]}
    return {"medianRent": None}
