"""
Tests for analytics bucketing, scrubbing and GA4 dispatch.
"""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import requests

import config as cfg
from analytics import (
    bucket_days_until_start,
    bucket_rent_ratio,
    bucket_salary,
    days_until,
    map_city_to_tier,
    scrub_params,
    track,
)

SETTINGS = {"GA_MEASUREMENT_ID": "G-TEST", "GA_API_SECRET": "secret", "DEBUG_ANALYTICS": False}
TODAY = date(2025, 6, 1)


class _Response:
    def __init__(self, ok=True, status_code=204):
        self.ok = ok
        self.status_code = status_code
        self.text = ""


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or _Response()
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


class TestBuckets:

    @pytest.mark.parametrize("salary, bucket", [
        (59_999, "<60k"), (60_000, "60_80k"), (99_999, "80_100k"),
        (100_000, "100_150k"), (150_000, "150k_plus"),
    ])
    def test_salary(self, salary, bucket):
        assert bucket_salary(salary) == bucket

    def test_rent_ratio(self):
        assert bucket_rent_ratio(1_000, 5_000) == "<25"
        assert bucket_rent_ratio(1_500, 5_000) == "25_35"
        assert bucket_rent_ratio(2_000, 5_000) == "35_45"
        assert bucket_rent_ratio(3_000, 5_000) == "45_plus"
        assert bucket_rent_ratio(1_000, 0) == "unknown"

    def test_days_until(self):
        assert days_until("2025-06-15", TODAY) == 14
        assert days_until("2025-06-15T09:00:00Z", TODAY) == 14
        assert days_until("not a date", TODAY) is None
        assert days_until(None, TODAY) is None

    @pytest.mark.parametrize("start, bucket", [
        ("2025-06-05", "<14"), ("2025-06-20", "14_30"), ("2025-07-15", "30_60"),
        ("2025-09-01", "60_plus"), ("2025-05-01", "unknown"), (None, "unknown"),
    ])
    def test_days_until_start(self, start, bucket):
        assert bucket_days_until_start(start, TODAY) == bucket

    def test_city_tier(self):
        assert map_city_to_tier("NYC") == "tier_1"
        assert map_city_to_tier("SF Bay Area") == "tier_1"
        assert map_city_to_tier("Austin, TX") == "tier_2"
        assert map_city_to_tier("Boise") == "other"
        assert map_city_to_tier(None) == "unknown"


class TestScrub:

    def test_identifying_keys_dropped(self):
        clean = scrub_params({"email": "a@b.co", "salary": 90_000, "salary_bucket": "80_100k"})
        assert clean == {"salary_bucket": "80_100k"}

    def test_non_scalars_dropped(self):
        assert scrub_params({"nested": {"a": 1}, "ok": 1}) == {"ok": 1}


class TestTrack:

    def test_unknown_event(self):
        with pytest.raises(ValueError):
            track("made_up", {}, "cid", SETTINGS)

    def test_not_configured(self):
        session = _FakeSession()
        assert not track("rent_form_submit", {}, "cid", {}, session=session)
        assert session.calls == []

    def test_posts_measurement_protocol(self):
        session = _FakeSession()
        assert track("rent_form_submit", {"salary_bucket": "<60k", "city": "NYC"}, "cid",
                     SETTINGS, session=session)
        url, kwargs = session.calls[0]
        assert url == cfg.GA_COLLECT_URL
        assert kwargs["params"] == {"measurement_id": "G-TEST", "api_secret": "secret"}
        assert kwargs["json"] == {
            "client_id": "cid",
            "events": [{"name": "rent_form_submit", "params": {"salary_bucket": "<60k"}}],
        }
        assert kwargs["timeout"] == cfg.ANALYTICS_TIMEOUT

    def test_network_failure_is_quiet(self):
        session = _FakeSession(error=requests.ConnectionError("down"))
        assert not track("rent_form_submit", {}, "cid", SETTINGS, session=session)

    def test_rejected(self):
        session = _FakeSession(response=_Response(ok=False, status_code=400))
        assert not track("rent_form_submit", {}, "cid", SETTINGS, session=session)
