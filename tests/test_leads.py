"""
Tests for waitlist and newsletter lead capture.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import requests

import config as cfg
import leads
from leads import WaitlistPayload, subscribe_newsletter, submit_to_waitlist, utc_timestamp

HOOK = "https://script.google.com/macros/s/abc/exec"


class _Response:
    def __init__(self, ok=True, status_code=200, text="ok"):
        self.ok = ok
        self.status_code = status_code
        self.text = text


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


class TestPayload:

    @pytest.mark.parametrize("email, signup_type, page", [
        ("", "early_access", "/"),
        ("a@b.co", "", "/"),
        ("a@b.co", "early_access", ""),
    ])
    def test_all_fields_required(self, email, signup_type, page):
        with pytest.raises(ValueError, match="Missing required fields"):
            WaitlistPayload(email, signup_type, page)

    def test_row_shape(self):
        row = WaitlistPayload(" a@b.co ", "early_access", "/").to_row("2025-01-01T00:00:00Z")
        assert row == {
            "email": "a@b.co",
            "signupType": "early_access",
            "page": "/",
            "timestamp": "2025-01-01T00:00:00Z",
        }

    def test_timestamp_is_utc(self):
        assert utc_timestamp().endswith("Z")


class TestWaitlist:

    def test_posts_row_once(self):
        session = _FakeSession()
        ok = submit_to_waitlist(WaitlistPayload("a@b.co", "early_access", "/"), HOOK, session=session)
        assert ok
        assert len(session.calls) == 1
        url, kwargs = session.calls[0]
        assert url == HOOK
        assert kwargs["json"]["signupType"] == "early_access"
        assert kwargs["timeout"] == cfg.WEBHOOK_TIMEOUT

    def test_no_url_is_logged_only(self):
        session = _FakeSession()
        assert not submit_to_waitlist(WaitlistPayload("a@b.co", "x", "/"), None, session=session)
        assert session.calls == []

    def test_network_error_swallowed(self):
        session = _FakeSession(error=requests.Timeout("slow"))
        assert not submit_to_waitlist(WaitlistPayload("a@b.co", "x", "/"), HOOK, session=session)

    def test_non_2xx(self):
        session = _FakeSession(response=_Response(ok=False, status_code=500, text="boom"))
        assert not submit_to_waitlist(WaitlistPayload("a@b.co", "x", "/"), HOOK, session=session)

    def test_uses_requests_by_default(self, monkeypatch):
        calls = []

        def fake_post(url, **kwargs):
            calls.append(url)
            return _Response()

        monkeypatch.setattr(leads.requests, "post", fake_post)
        assert submit_to_waitlist(WaitlistPayload("a@b.co", "x", "/"), HOOK)
        assert calls == [HOOK]


class TestNewsletter:

    def test_invalid_email(self):
        with pytest.raises(ValueError, match="Valid email is required"):
            subscribe_newsletter("nope", None, None)

    def test_without_substack(self):
        assert subscribe_newsletter("a@b.co", None, None) == {
            "success": True, "message": "Subscription received",
        }

    def test_redirect_url_encodes_email(self):
        result = subscribe_newsletter("a+b@c.co", "https://weleap.substack.com", None)
        assert result["redirectUrl"] == "https://weleap.substack.com/subscribe?email=a%2Bb%40c.co"
        assert result["message"] == "Redirecting to Substack"

    def test_webhook_row_tagged_newsletter(self):
        session = _FakeSession()
        subscribe_newsletter("a@b.co", None, HOOK, session=session)
        row = session.calls[0][1]["json"]
        assert (row["signupType"], row["page"]) == ("newsletter", "resources")
