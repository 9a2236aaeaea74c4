"""
Tests for A/B variant assignment and cookie consent.
"""

import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

import config as cfg
from abtest import analytics_allowed, assign_variant, consent_choice, set_consent


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestVariant:

    def test_low_draw_is_a(self):
        store = {}
        assert assign_variant(store, rng=_FixedRng(0.1)) == "A"
        assert store[cfg.LEAP_VARIANT_KEY] == "A"

    def test_high_draw_is_b(self):
        assert assign_variant({}, rng=_FixedRng(0.5)) == "B"

    def test_sticky_once_assigned(self):
        store = {}
        first = assign_variant(store, rng=random.Random(7))
        for seed in range(20):
            assert assign_variant(store, rng=random.Random(seed)) == first

    def test_force_overrides_without_storing(self):
        store = {cfg.LEAP_VARIANT_KEY: "A"}
        assert assign_variant(store, force="b") == "B"
        assert store[cfg.LEAP_VARIANT_KEY] == "A"

    def test_bad_force_ignored(self):
        store = {cfg.LEAP_VARIANT_KEY: "B"}
        assert assign_variant(store, force="C") == "B"

    def test_garbage_in_store_is_redrawn(self):
        store = {cfg.LEAP_VARIANT_KEY: "Z"}
        assert assign_variant(store, rng=_FixedRng(0.9)) == "B"
        assert store[cfg.LEAP_VARIANT_KEY] == "B"


class TestConsent:

    def test_no_choice_yet(self):
        assert consent_choice({}) is None
        assert not analytics_allowed({})

    def test_accept(self):
        store = {}
        assert set_consent(store, " Accepted ") == "accepted"
        assert analytics_allowed(store)

    def test_decline_blocks_analytics(self):
        store = {}
        set_consent(store, "declined")
        assert consent_choice(store) == "declined"
        assert not analytics_allowed(store)

    def test_invalid_choice(self):
        with pytest.raises(ValueError):
            set_consent({}, "maybe")
