"""Tests for the interception store and responder."""

import base64

import pytest

from redom.errors import CDPConnectionError
from redom.models import HttpResponse
from redom.services.interception import InterceptionService, build_fulfill_params

from conftest import FakeCDP


@pytest.fixture
def interception(fake_cdp):
    service = InterceptionService()
    service.attach(fake_cdp)
    return service


def paused(url: str, request_id: str = "interception-7") -> dict:
    return {"method": "Fetch.requestPaused", "params": {"requestId": request_id, "request": {"url": url}}}


class TestEnableDisable:
    def test_enable_is_idempotent(self, interception, fake_cdp):
        interception.enable()
        interception.enable()

        assert fake_cdp.methods == ["Fetch.enable"]
        assert fake_cdp.commands[0][1] == {"patterns": [{"urlPattern": "*"}]}
        assert interception.enabled

    def test_disable_clears_overrides_when_never_enabled(self, interception, fake_cdp, html_response):
        interception.set_override("http://x/y", html_response)

        interception.disable()

        assert interception.override_count == 0
        assert fake_cdp.methods == []

    def test_disable_sends_fetch_disable_and_clears(self, interception, fake_cdp, html_response):
        interception.enable()
        interception.set_override("http://x/y", html_response)

        interception.disable()
        interception.disable()

        assert fake_cdp.methods == ["Fetch.enable", "Fetch.disable"]
        assert interception.override_count == 0
        assert not interception.enabled

    def test_disable_failure_still_clears_state(self, interception, fake_cdp, html_response):
        interception.enable()
        interception.set_override("http://x/y", html_response)
        fake_cdp.failures["Fetch.disable"] = CDPConnectionError("Connection closed")

        with pytest.raises(CDPConnectionError):
            interception.disable()

        assert interception.override_count == 0
        assert not interception.enabled

    def test_reset_sends_nothing(self, interception, fake_cdp, html_response):
        interception.enable()
        interception.set_override("http://x/y", html_response)

        interception.reset()

        assert fake_cdp.methods == ["Fetch.enable"]
        assert interception.override_count == 0
        assert not interception.enabled

    def test_enable_without_transport(self):
        with pytest.raises(RuntimeError):
            InterceptionService().enable()


class TestOverrides:
    def test_new_override_replaces_old(self, interception):
        first = HttpResponse(body=b"first")
        second = HttpResponse(body=b"second")

        interception.set_override("http://x/y", first)
        interception.set_override("http://x/y", second)

        assert interception.override_count == 1
        assert interception.get_override("http://x/y") is second

    @pytest.mark.parametrize("other", ["http://x/y/", "https://x/y", "http://x/y?a=1", "http://X/y"])
    def test_keys_are_exact_strings(self, interception, other):
        interception.set_override("http://x/y", HttpResponse())

        assert interception.get_override(other) is None


class TestRequestPaused:
    def test_unmatched_url_continues(self, interception, fake_cdp, html_response):
        interception.set_override("http://x/y", html_response)

        fake_cdp._handle_event(paused("http://x/other"))

        assert fake_cdp.commands == [("Fetch.continueRequest", {"requestId": "interception-7"})]

    def test_matched_url_is_fulfilled(self, interception, fake_cdp, html_response):
        interception.set_override("https://example.com/app?x=1", html_response)

        fake_cdp._handle_event(paused("https://example.com/app?x=1"))

        (method, params), = fake_cdp.commands
        assert method == "Fetch.fulfillRequest"
        assert params["requestId"] == "interception-7"
        assert params["responseCode"] == 200
        assert params["responsePhrase"] == "OK"
        assert base64.b64decode(params["body"]) == html_response.body

    def test_fulfill_strips_content_disposition_and_keeps_duplicates(self, html_response):
        params = build_fulfill_params("r1", html_response)

        assert params["responseHeaders"] == [
            {"name": "Content-Type", "value": "text/html; charset=utf-8"},
            {"name": "Set-Cookie", "value": "a=1"},
            {"name": "Set-Cookie", "value": "b=2"},
        ]

    def test_content_disposition_match_is_case_insensitive(self):
        response = HttpResponse(headers=(("CONTENT-DISPOSITION", "attachment"), ("X-Frame-Options", "DENY")))

        params = build_fulfill_params("r1", response)

        assert params["responseHeaders"] == [{"name": "X-Frame-Options", "value": "DENY"}]

    def test_binary_body_is_base64_encoded(self):
        body = bytes(range(256))

        params = build_fulfill_params("r1", HttpResponse(body=body))

        assert base64.b64decode(params["body"]) == body

    def test_empty_reason_phrase_is_omitted(self):
        params = build_fulfill_params("r1", HttpResponse(status_code=299, reason_phrase=""))

        assert "responsePhrase" not in params

    def test_override_served_for_every_retry(self, interception, fake_cdp, html_response):
        interception.set_override("http://x/y", html_response)

        fake_cdp._handle_event(paused("http://x/y", "r1"))
        fake_cdp._handle_event(paused("http://x/y", "r2"))

        assert fake_cdp.methods == ["Fetch.fulfillRequest", "Fetch.fulfillRequest"]

    def test_failed_fulfill_is_logged(self, interception, fake_cdp, html_response, caplog):
        interception.set_override("http://x/y", html_response)
        fake_cdp.failures["Fetch.fulfillRequest"] = CDPConnectionError("Connection closed")

        fake_cdp._handle_event(paused("http://x/y"))

        assert "Fetch.fulfillRequest failed for http://x/y" in caplog.text

    def test_event_without_request_id_is_ignored(self, interception, fake_cdp):
        fake_cdp._handle_event({"method": "Fetch.requestPaused", "params": {"request": {"url": "http://x/y"}}})

        assert fake_cdp.commands == []

    def test_disconnected_transport_does_not_raise(self, html_response):
        cdp = FakeCDP()
        service = InterceptionService()
        service.attach(cdp)
        cdp.failures["Fetch.continueRequest"] = CDPConnectionError("Not connected")

        cdp._handle_event(paused("http://x/y"))

        assert cdp.methods == ["Fetch.continueRequest"]
