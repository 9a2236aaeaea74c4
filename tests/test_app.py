"""
Tests for the Flask pages and JSON API.
"""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

import analytics
import app as app_module
import config as cfg
import leads
import leap
from app import app


@pytest.fixture
def client(monkeypatch):
    for key in ("GOOGLE_SCRIPT_URL", "SUBSTACK_PUBLICATION_URL", "API_NINJAS_KEY",
                "GA_MEASUREMENT_ID", "GA_API_SECRET"):
        monkeypatch.setitem(app.config, key, None)
    monkeypatch.setitem(app.config, "ZORI_CSV_PATH", cfg.ZORI_CSV_PATH)
    monkeypatch.setitem(app.config, "TESTING", True)
    with app.test_client() as c:
        yield c


RENT_FORM = {"salaryAnnual": "100000", "stateCode": "TX", "employee401kPct": "5"}


# ═══════════════════════════════════════════════════════════════════════════════
# PAGES
# ═══════════════════════════════════════════════════════════════════════════════

class TestRentPage:

    def test_get(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"How much rent can I afford?" in resp.data
        assert b"Cookie Consent" in resp.data

    def test_post_shows_range(self, client):
        resp = client.post("/", data=RENT_FORM)
        assert resp.status_code == 200
        assert "$1,550–$1,950" in resp.get_data(as_text=True)

    def test_missing_salary(self, client):
        resp = client.post("/", data={"stateCode": "TX"})
        assert resp.status_code == 400
        assert b"salaryAnnual is required" in resp.data

    def test_nan_salary_is_a_form_error(self, client):
        resp = client.post("/", data={**RENT_FORM, "salaryAnnual": "nan"})
        assert resp.status_code == 400
        assert b"Invalid number" in resp.data

    def test_pdf_download(self, client):
        resp = client.get("/rent-plan.pdf", query_string=RENT_FORM)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert "rent_plan.pdf" in resp.headers["Content-Disposition"]
        assert resp.data.startswith(b"%PDF")

    def test_banner_hidden_after_consent(self, client):
        client.post("/api/consent", json={"choice": "declined"})
        assert b"Cookie Consent" not in client.get("/").data


class TestImpactPage:

    def test_cash_impacts(self, client):
        resp = client.post("/net-worth-impact", data={"monthlyDelta": "100", "useCase": "cash"})
        text = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "+$1,200" in text and "+$36,000" in text

    def test_bad_number(self, client):
        resp = client.post("/net-worth-impact", data={"monthlyDelta": "lots", "useCase": "cash"})
        assert resp.status_code == 400


class TestLeapPage:

    def test_forced_variant_not_stored(self, client):
        resp = client.get("/leap-impact-simulator?ab=B")
        assert b"What is waiting a year really costing you?" in resp.data
        with client.session_transaction() as sess:
            assert cfg.LEAP_VARIANT_KEY not in sess

    def test_variant_sticks(self, client):
        client.get("/leap-impact-simulator")
        with client.session_transaction() as sess:
            variant = sess[cfg.LEAP_VARIANT_KEY]
        for _ in range(5):
            client.get("/leap-impact-simulator")
            with client.session_transaction() as sess:
                assert sess[cfg.LEAP_VARIANT_KEY] == variant

    def test_simulate(self, client):
        resp = client.post("/leap-impact-simulator",
                           data={"salaryAnnual": "85000", "current401kPct": "3", "matchPct": "5"})
        assert resp.status_code == 200
        assert b"Capture your full employer match" in resp.data


# ═══════════════════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════════════════

class TestWaitlistApi:

    def test_missing_fields(self, client):
        resp = client.post("/api/waitlist", json={"email": "a@b.co"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing required fields"}

    def test_success_without_webhook(self, client):
        resp = client.post("/api/waitlist", json={"email": "a@b.co", "signupType": "early_access", "page": "/"})
        assert resp.get_json() == {"success": True, "message": "Successfully joined waitlist"}

    def test_webhook_failure_still_succeeds(self, client, monkeypatch):
        monkeypatch.setitem(app.config, "GOOGLE_SCRIPT_URL", "https://hook.example")

        class _Down:
            ok = False
            status_code = 500
            text = "down"

        monkeypatch.setattr(leads.requests, "post", lambda *a, **kw: _Down())
        resp = client.post("/api/waitlist", json={"email": "a@b.co", "signupType": "x", "page": "/"})
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True

    def test_check(self, client, monkeypatch):
        monkeypatch.setitem(app.config, "GOOGLE_SCRIPT_URL", "https://hook.example")
        body = client.get("/api/waitlist/check").get_json()
        assert body["configured"]["googleSheets"] is True
        assert body["configured"]["googleAnalytics"] is False
        assert body["googleSheetsUrlLength"] == len("https://hook.example")
        assert "https://hook.example" not in str(body)


class TestSubscribeApi:

    def test_invalid_email(self, client):
        resp = client.post("/api/subscribe", json={"email": "nope"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Valid email is required"}

    def test_redirect(self, client, monkeypatch):
        monkeypatch.setitem(app.config, "SUBSTACK_PUBLICATION_URL", "https://weleap.substack.com")
        body = client.post("/api/subscribe", json={"email": "a@b.co"}).get_json()
        assert body["redirectUrl"] == "https://weleap.substack.com/subscribe?email=a%40b.co"


class TestZoriApi:

    def test_options_for_state(self, client):
        options = client.get("/api/zori?state=TX").get_json()["options"]
        assert options[0]["value"] == "Dallas, TX"
        assert options[-1]["value"] == cfg.OTHER_METRO_VALUE

    def test_median_for_region(self, client):
        body = client.get("/api/zori", query_string={"state": "TX", "region": "Austin"}).get_json()
        assert body["medianRent"] == 1_620
        assert body["matchedRegion"] == "Austin, TX"
        assert body["market"]["tier"] == "T3"

    def test_unknown_region(self, client):
        body = client.get("/api/zori", query_string={"state": "TX", "region": "Nowhere"}).get_json()
        assert body == {"medianRent": None}

    def test_everything(self, client):
        assert "NY" in client.get("/api/zori").get_json()["metrosByState"]


class TestTaxApi:

    def test_missing_state(self, client):
        resp = client.post("/api/tax", json={"salaryAnnual": 80_000})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Missing required field: state is required"}

    def test_fallback(self, client):
        body = client.post("/api/tax", json={"salaryAnnual": 95_000, "state": "tx"}).get_json()
        assert body["totalTaxAnnual"] == 28_168
        assert body["stateTaxAnnual"] == 0
        assert body["taxSource"] == "fallback"

    def test_reverse(self, client):
        body = client.post("/api/tax", json={"takeHomeAnnual": 40_000, "state": "NY"}).get_json()
        assert abs(body["netIncomeAnnual"] - 40_000) <= 1
        assert body["salaryAnnual"] > 40_000


class TestCalculatorApis:

    def test_rent_range(self, client):
        body = client.post("/api/rent-range", json={**RENT_FORM, "debtMonthly": 0}).get_json()
        assert body["rentRange"]["low"] == 1_550
        assert body["rentRange"]["high"] == 1_950
        assert body["upfrontCash"]["gap_days"] == 14

    def test_rent_range_negative_debt(self, client):
        resp = client.post("/api/rent-range", json={**RENT_FORM, "debtMonthly": -5})
        assert resp.status_code == 400

    @pytest.mark.parametrize("salary", ["nan", "inf", "Infinity"])
    def test_rent_range_non_finite_salary(self, client, salary):
        resp = client.post("/api/rent-range", json={"salaryAnnual": salary, "stateCode": "TX"})
        assert resp.status_code == 400
        assert resp.get_json() == {"error": f"Invalid number: {salary!r}"}

    @pytest.mark.parametrize("field", ["monthlyDelta", "realReturn", "debtApr"])
    def test_net_worth_impact_non_finite(self, client, field):
        body = {"monthlyDelta": 100, "useCase": "investing", field: "inf"}
        resp = client.post("/api/net-worth-impact", json=body)
        assert resp.status_code == 400
        assert "Invalid number" in resp.get_json()["error"]

    def test_leap_impact_nan_salary(self, client):
        resp = client.post("/api/leap-impact", json={"salaryAnnual": "nan"})
        assert resp.status_code == 400

    def test_net_worth_impact(self, client):
        body = client.post("/api/net-worth-impact", json={"monthlyDelta": 100, "useCase": "cash"}).get_json()
        assert [h["impact"] for h in body["impacts"]] == [1_200, 12_000, 36_000]

    def test_net_worth_impact_bad_use_case(self, client):
        resp = client.post("/api/net-worth-impact", json={"monthlyDelta": 100, "useCase": "crypto"})
        assert resp.status_code == 400

    def test_leap_impact(self, client):
        body = client.post("/api/leap-impact", json={
            "salaryAnnual": 85_000, "current401kPct": 3, "hasEmployerMatch": True, "matchPct": 5,
        }).get_json()
        assert body["leap"]["type"] == "capture_match"
        assert len(body["trajectory"]["yearLabels"]) == 31
        assert body["costOfDelay"] > 0


class TestConsentAndTracking:

    def test_consent_stored(self, client):
        assert client.post("/api/consent", json={"choice": "accepted"}).get_json()["choice"] == "accepted"
        with client.session_transaction() as sess:
            assert sess[cfg.CONSENT_KEY] == "accepted"

    def test_bad_consent(self, client):
        assert client.post("/api/consent", json={"choice": "sure"}).status_code == 400

    def test_unknown_event(self, client):
        assert client.post("/api/track", json={"event": "nope"}).status_code == 400

    def test_events_gated_on_consent(self, client, monkeypatch):
        sent = []
        pool = ThreadPoolExecutor(max_workers=1)
        monkeypatch.setattr(app_module, "_analytics_pool", pool)
        monkeypatch.setattr(analytics, "track", lambda name, params, cid, settings: sent.append(name))

        client.post("/api/track", json={"event": "hero_cta_click"})
        client.post("/api/consent", json={"choice": "accepted"})
        client.post("/api/track", json={"event": "hero_cta_click"})
        client.post("/", data=RENT_FORM)

        pool.shutdown(wait=True)
        assert sent == ["hero_cta_click", "rent_form_submit"]

    def test_slow_collector_does_not_block_the_page(self, client, monkeypatch):
        release = threading.Event()
        done = threading.Event()
        pool = ThreadPoolExecutor(max_workers=1)
        monkeypatch.setattr(app_module, "_analytics_pool", pool)

        def slow_track(name, params, cid, settings):
            release.wait(timeout=5)
            done.set()

        monkeypatch.setattr(analytics, "track", slow_track)
        client.post("/api/consent", json={"choice": "accepted"})

        resp = client.get("/")
        assert resp.status_code == 200
        assert not done.is_set()

        release.set()
        pool.shutdown(wait=True)
        assert done.is_set()

    def test_collector_error_stays_off_the_request(self, client, monkeypatch):
        pool = ThreadPoolExecutor(max_workers=1)
        monkeypatch.setattr(app_module, "_analytics_pool", pool)

        def broken_track(name, params, cid, settings):
            raise RuntimeError("collector exploded")

        monkeypatch.setattr(analytics, "track", broken_track)
        client.post("/api/consent", json={"choice": "accepted"})
        assert client.get("/").status_code == 200
        pool.shutdown(wait=True)


class TestErrors:

    def test_unexpected_error_is_500(self, client, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(leap, "simulate", boom)
        resp = client.post("/api/leap-impact", json={"salaryAnnual": 85_000})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}

    def test_not_found_passes_through(self, client):
        assert client.get("/no-such-page").status_code == 404
