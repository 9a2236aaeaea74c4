"""
Per-session flags: A/B variant assignment and cookie consent.

Both read and write a plain mutable mapping; the web app passes the Flask
session, tests pass a dict.
"""

from __future__ import annotations

import random
from typing import MutableMapping, Optional

import config as cfg

VARIANTS = ("A", "B")
CONSENT_CHOICES = ("accepted", "declined")


def assign_variant(
    store: MutableMapping,
    key: str = cfg.LEAP_VARIANT_KEY,
    force: Optional[str] = None,
    rng: random.Random = None,
) -> str:
    """Return the session's variant, drawing and persisting it on first read.

    A *force* of ``"A"``/``"B"`` (any case) wins without touching the store,
    for QA via ``?ab=B``.
    """
    forced = (force or "").strip().upper()
    if forced in VARIANTS:
        return forced

    stored = store.get(key)
    if stored in VARIANTS:
        return stored

    rng = rng or random
    variant = "A" if rng.random() < 0.5 else "B"
    store[key] = variant
    return variant


def consent_choice(store: MutableMapping) -> Optional[str]:
    choice = store.get(cfg.CONSENT_KEY)
    return choice if choice in CONSENT_CHOICES else None


def set_consent(store: MutableMapping, choice: str) -> str:
    choice = (choice or "").strip().lower()
    if choice not in CONSENT_CHOICES:
        raise ValueError("choice must be 'accepted' or 'declined'")
    store[cfg.CONSENT_KEY] = choice
    return choice


def analytics_allowed(store: MutableMapping) -> bool:
    return consent_choice(store) == "accepted"
