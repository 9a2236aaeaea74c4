"""
Lead capture: waitlist rows and newsletter signups forwarded to a
spreadsheet webhook (a Google Apps Script URL in production).

The webhook is best-effort. One attempt, bounded timeout; failures are
logged and never reach the visitor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import quote

import requests

import config as cfg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WaitlistPayload:
    email: str
    signup_type: str
    page: str

    def __post_init__(self) -> None:
        if not self.email or not self.signup_type or not self.page:
            raise ValueError("Missing required fields")
        object.__setattr__(self, "email", self.email.strip())

    def to_row(self, timestamp: Optional[str] = None) -> Dict[str, str]:
        return {
            "email": self.email,
            "signupType": self.signup_type,
            "page": self.page,
            "timestamp": timestamp or utc_timestamp(),
        }


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_valid_email(email) -> bool:
    return isinstance(email, str) and "@" in email


def submit_to_waitlist(
    payload: WaitlistPayload,
    webhook_url: Optional[str],
    session: Optional[requests.Session] = None,
    timeout: float = cfg.WEBHOOK_TIMEOUT,
) -> bool:
    """POST one row to the webhook. Returns True if it was accepted.

    Never raises for transport problems: network errors and non-2xx
    replies are logged. Without a URL the row is only logged.
    """
    row = payload.to_row()
    if not webhook_url:
        logger.warning("[Waitlist] GOOGLE_SCRIPT_URL not configured")
        logger.info("[Waitlist] Data (not saved): %s", row)
        return False

    http = session or requests
    try:
        response = http.post(webhook_url, json=row, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("[Waitlist] Error sending to Google Sheets: %s", exc)
        return False

    if not response.ok:
        logger.error("[Waitlist] Failed to write to Google Sheets (%s): %s",
                     response.status_code, response.text)
        return False

    logger.info("[Waitlist] Wrote %s signup from %s", payload.signup_type, payload.page)
    return True


def subscribe_newsletter(
    email: str,
    publication_url: Optional[str],
    webhook_url: Optional[str],
    session: Optional[requests.Session] = None,
) -> Dict[str, object]:
    """Record a newsletter signup and build the Substack redirect.

    Returns ``{success, message}`` plus ``redirectUrl`` when a publication
    URL is configured.
    """
    if not is_valid_email(email):
        raise ValueError("Valid email is required")
    email = email.strip()

    payload = WaitlistPayload(email, cfg.NEWSLETTER_SIGNUP_TYPE, cfg.NEWSLETTER_PAGE)
    if webhook_url:
        submit_to_waitlist(payload, webhook_url, session=session)

    if not publication_url:
        logger.info("[Subscribe] New subscription (Substack not configured) at %s", utc_timestamp())
        return {"success": True, "message": "Subscription received"}

    redirect_url = f"{publication_url.rstrip('/')}/subscribe?email={quote(email, safe='')}"
    logger.info("[Subscribe] Redirecting to Substack")
    return {
        "success": True,
        "message": "Redirecting to Substack",
        "redirectUrl": redirect_url,
    }
