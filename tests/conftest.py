"""Pytest configuration and fixtures for redom tests."""

import json
from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from redom.cdp import CDPSession
from redom.models import HttpRequest, HttpResponse


def attach_socket(session: CDPSession) -> MagicMock:
    """Make `session` look connected through a mocked WebSocketApp."""
    ws_app = MagicMock()
    ws_app.sock.connected = True
    session._ws_app = ws_app
    session._connected.set()
    return ws_app


def sent_frames(ws_app: MagicMock) -> list[dict]:
    """Frames written to the mocked WebSocketApp, decoded."""
    return [json.loads(call.args[0]) for call in ws_app.send.call_args_list]


class FakeCDP(CDPSession):
    """CDPSession that answers commands locally instead of over a socket.

    Page.navigate behaves like Chrome with Fetch enabled: the navigated URL is
    paused (Fetch.requestPaused) and, unless `fire_load` is False, the page
    load event follows.
    """

    def __init__(self, html: str = "<html><head></head><body></body></html>", fire_load: bool = True):
        super().__init__(timeout=0.5)
        self.connected = True
        self.html = html
        self.fire_load = fire_load
        self.commands: list[tuple[str, dict]] = []
        self.failures: dict[str, Exception] = {}

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def methods(self) -> list[str]:
        return [method for method, _ in self.commands]

    def send(self, method: str, params: dict | None = None) -> Future:
        params = params or {}
        self.commands.append((method, params))

        future: Future = Future()
        if method in self.failures:
            future.set_exception(self.failures[method])
        else:
            future.set_result(self._reply(method, params))
        return future

    def _reply(self, method: str, params: dict) -> dict:
        if method == "DOM.getDocument":
            return {"root": {"nodeId": 1, "nodeName": "#document"}}
        if method == "DOM.getOuterHTML":
            return {"outerHTML": self.html}
        if method == "Page.navigate":
            self._handle_event(
                {
                    "method": "Fetch.requestPaused",
                    "params": {"requestId": "interception-1", "request": {"url": params["url"], "method": "GET"}},
                }
            )
            if self.fire_load:
                self._handle_event({"method": "Page.loadEventFired", "params": {"timestamp": 1.0}})
            return {"frameId": "frame-1", "loaderId": "loader-1"}
        return {}


@pytest.fixture
def session():
    """CDPSession with a mocked, open socket."""
    cdp = CDPSession(timeout=0.5)
    attach_socket(cdp)
    return cdp


@pytest.fixture
def fake_cdp():
    return FakeCDP()


@pytest.fixture
def html_response():
    return HttpResponse(
        status_code=200,
        reason_phrase="OK",
        headers=(
            ("Content-Type", "text/html; charset=utf-8"),
            ("Set-Cookie", "a=1"),
            ("Set-Cookie", "b=2"),
            ("Content-Disposition", "attachment; filename=page.html"),
        ),
        body=b"<html><body><script>document.title = 'x'</script></body></html>",
        http_version="HTTP/2",
    )


@pytest.fixture
def request_for():
    def make(url: str = "https://example.com/app?x=1") -> HttpRequest:
        return HttpRequest(url=url)

    return make
