"""
Privacy-safe analytics.

Raw values (salary, email, city, start date) never leave the server.
Callers bucket them first; :func:`track` also drops any parameter whose
name suggests identifying precision before sending to GA4 through the
Measurement Protocol.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional

import requests

import config as cfg

logger = logging.getLogger(__name__)

EVENTS = frozenset({
    "rent_tool_page_view",
    "hero_cta_click",
    "scrolled_past_how_it_works",
    "rent_form_start",
    "rent_form_submit",
    "playbook_generated",
    "playbook_pdf_downloaded",
    "rent_tool_feedback_submitted",
    "networth_tool_feedback_submitted",
    "waitlist_modal_opened",
    "waitlist_submitted",
    "newsletter_subscribed",
    "net_worth_impact_page_view",
    "net_worth_impact_tool_start",
    "net_worth_impact_calculated",
    "leap_impact_page_view",
    "leap_impact_calculated",
})

BLOCKED_PARAMS = frozenset({
    "email", "salary", "salary_annual", "gross", "take_home", "income",
    "city", "region", "address", "start_date", "name", "phone",
})


# ─── Bucketing ───────────────────────────────────────────────────────

def bucket_salary(gross_annual: float) -> str:
    if gross_annual < 60_000:
        return "<60k"
    if gross_annual < 80_000:
        return "60_80k"
    if gross_annual < 100_000:
        return "80_100k"
    if gross_annual < 150_000:
        return "100_150k"
    return "150k_plus"


def bucket_rent_ratio(rent: Optional[float], take_home_monthly: Optional[float]) -> str:
    """Rent as a share of take-home, in coarse percentage bands."""
    if not rent or not take_home_monthly:
        return "unknown"
    ratio = rent / take_home_monthly * 100
    if ratio < 25:
        return "<25"
    if ratio < 35:
        return "25_35"
    if ratio < 45:
        return "35_45"
    return "45_plus"


def days_until(start, today: Optional[date] = None) -> Optional[int]:
    """Whole days from *today* to *start*; ``None`` for missing or bad input."""
    if not start:
        return None
    if isinstance(start, str):
        try:
            start = date.fromisoformat(start[:10])
        except ValueError:
            return None
    elif isinstance(start, datetime):
        start = start.date()
    today = today or date.today()
    return (start - today).days


def bucket_days_until_start(start, today: Optional[date] = None) -> str:
    days = days_until(start, today)
    if days is None or days < 0:
        return "unknown"
    if days < 14:
        return "<14"
    if days < 30:
        return "14_30"
    if days < 60:
        return "30_60"
    return "60_plus"


_TIER_1 = ("sf bay area", "san francisco bay area", "nyc", "new york", "new york city",
           "boston", "seattle")
_TIER_2 = ("austin", "chicago")


def map_city_to_tier(city: Optional[str]) -> str:
    """Coarse city tier so the city itself is never sent."""
    if not city:
        return "unknown"
    city = city.lower()
    if any(t in city for t in _TIER_1):
        return "tier_1"
    if any(t in city for t in _TIER_2):
        return "tier_2"
    return "other"


# ─── Dispatch ────────────────────────────────────────────────────────

def scrub_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop identifying keys and non-scalar values."""
    clean = {}
    for key, value in (params or {}).items():
        if key.lower() in BLOCKED_PARAMS:
            logger.warning("[Analytics] Dropped identifying param %r", key)
            continue
        if isinstance(value, (str, int, float, bool)):
            clean[key] = value
    return clean


def new_client_id() -> str:
    return uuid.uuid4().hex


def track(
    event_name: str,
    params: Optional[Dict[str, Any]],
    client_id: str,
    settings: Dict[str, Any],
    session: Optional[requests.Session] = None,
) -> bool:
    """Send one event to GA4. Returns True if the collector accepted it.

    Unconfigured, unreachable or slow collectors are not errors: the call
    gives up after the analytics timeout and the page carries on.
    """
    if event_name not in EVENTS:
        raise ValueError(f"Unknown analytics event: {event_name}")

    clean = scrub_params(params)
    debug = settings.get("DEBUG_ANALYTICS", False)
    if debug:
        logger.info("[Analytics] %s %s", event_name, clean)

    measurement_id = settings.get("GA_MEASUREMENT_ID")
    api_secret = settings.get("GA_API_SECRET")
    if not measurement_id or not api_secret:
        if debug:
            logger.info("[Analytics] GA4 not configured, event not sent: %s", event_name)
        return False

    body = {"client_id": client_id, "events": [{"name": event_name, "params": clean}]}
    http = session or requests
    try:
        response = http.post(
            cfg.GA_COLLECT_URL,
            params={"measurement_id": measurement_id, "api_secret": api_secret},
            json=body,
            timeout=cfg.ANALYTICS_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.debug("[Analytics] GA4 unavailable, event not sent: %s (%s)", event_name, exc)
        return False

    if not response.ok:
        logger.debug("[Analytics] GA4 rejected %s: %s", event_name, response.status_code)
        return False
    return True
