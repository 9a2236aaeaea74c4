"""
Tax lookup for the /api/tax endpoint: API Ninjas when a key is
configured, the local estimator otherwise or whenever the remote call fails.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import requests

import config as cfg
import tax
from rounding import round_half_up

logger = logging.getLogger(__name__)


def fallback_tax(salary_annual: float, state_code: str) -> Dict[str, object]:
    result = dict(tax.tax_breakdown(salary_annual, state_code))
    result["source"] = "fallback"
    return result


def _from_remote(data: dict, salary_annual: float) -> Dict[str, object]:
    state = data.get("region_taxes_owed") or 0
    fica = data.get("fica_total") or (
        (data.get("fica_social_security") or 0) + (data.get("fica_medicare") or 0)
    )
    total = data.get("total_taxes_owed") or 0
    net = data.get("income_after_tax") or (salary_annual - total)
    return {
        "federal": round_half_up(total - state - fica),
        "state": round_half_up(state),
        "fica": round_half_up(fica),
        "total": round_half_up(total),
        "net": round_half_up(net),
        "source": "api_ninjas",
    }


def lookup_tax(
    salary_annual: float,
    state_code: str,
    api_key: Optional[str],
    session: Optional[requests.Session] = None,
) -> Dict[str, object]:
    """Annual tax breakdown for a gross salary.

    Returns
    -------
    dict
        ``federal``, ``state``, ``fica``, ``total``, ``net`` and
        ``source`` (``'api_ninjas'`` or ``'fallback'``).
    """
    if not api_key:
        logger.warning("[Tax API] API_NINJAS_KEY not configured, using fallback")
        return fallback_tax(salary_annual, state_code)

    http = session or requests
    try:
        response = http.get(
            cfg.TAX_API_URL,
            params={
                "country": "US",
                "region": state_code,
                "income": str(salary_annual),
                "filing_status": "single",
            },
            headers={"X-Api-Key": api_key},
            timeout=cfg.TAX_API_TIMEOUT,
        )
    except requests.Timeout:
        logger.warning("[Tax API] API Ninjas request timed out, falling back to estimate")
        return fallback_tax(salary_annual, state_code)
    except requests.RequestException as exc:
        logger.error("[Tax API] Error calling API Ninjas: %s", exc)
        return fallback_tax(salary_annual, state_code)

    if not response.ok:
        logger.warning("[Tax API] API Ninjas request failed: %s %s",
                       response.status_code, response.text)
        return fallback_tax(salary_annual, state_code)

    try:
        return _from_remote(response.json(), salary_annual)
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning("[Tax API] Unexpected API Ninjas reply, falling back: %s", exc)
        return fallback_tax(salary_annual, state_code)
