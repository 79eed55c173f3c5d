"""Fetch interception service that serves caller-supplied responses.

When enabled, every request pauses. Paused requests whose URL has an override
are fulfilled with it; everything else continues to the network.
"""

import base64
import logging
import threading
from concurrent.futures import Future
from typing import TYPE_CHECKING

from redom.models import HttpResponse

if TYPE_CHECKING:
    from redom.cdp import CDPSession

logger = logging.getLogger(__name__)

# Makes Chrome download the body instead of rendering it
_STRIPPED_HEADERS = {"content-disposition"}


def build_fulfill_params(request_id: str, response: HttpResponse) -> dict:
    """Fetch.fulfillRequest parameters for an override response.

    Args:
        request_id: Fetch requestId of the paused request
        response: Override to serve

    Returns:
        CDP params with headers filtered and body base64-encoded
    """
    headers = [
        {"name": name, "value": value} for name, value in response.headers if name.lower() not in _STRIPPED_HEADERS
    ]

    params = {
        "requestId": request_id,
        "responseCode": response.status_code,
        "responseHeaders": headers,
        "body": base64.b64encode(response.body).decode("ascii"),
    }
    if response.reason_phrase:
        params["responsePhrase"] = response.reason_phrase
    return params


class InterceptionService:
    """Override table plus the Fetch.requestPaused responder.

    Attributes:
        enabled: Whether the Fetch domain is armed.
        cdp: Transport, set by attach().
    """

    def __init__(self):
        """Initialize interception service."""
        self.enabled = False
        self.cdp: "CDPSession | None" = None
        self._overrides: dict[str, HttpResponse] = {}
        self._lock = threading.Lock()

    def attach(self, cdp: "CDPSession") -> None:
        """Bind to a transport and start answering Fetch.requestPaused."""
        self.cdp = cdp
        cdp.register_event_callback("Fetch.requestPaused", self.handle_request_paused)

    @property
    def override_count(self) -> int:
        with self._lock:
            return len(self._overrides)

    def enable(self) -> None:
        """Arm the Fetch domain. No-op when already enabled.

        Raises:
            RedomError: If Fetch.enable fails
        """
        if self.enabled:
            return

        if not self.cdp:
            raise RuntimeError("Interception not attached to a CDP session")

        self.cdp.execute("Fetch.enable", {"patterns": [{"urlPattern": "*"}]})
        self.enabled = True
        logger.info("Fetch interception enabled")

    def disable(self) -> None:
        """Clear all overrides and disarm the Fetch domain.

        The table is cleared and the flag dropped even when Fetch.disable fails.

        Raises:
            RedomError: If Fetch.disable fails
        """
        with self._lock:
            self._overrides.clear()

        if not self.enabled:
            return

        try:
            if self.cdp:
                self.cdp.execute("Fetch.disable")
        finally:
            self.enabled = False
            logger.info("Fetch interception disabled")

    def reset(self) -> None:
        """Forget all interception state without talking to Chrome (fresh tab)."""
        with self._lock:
            self._overrides.clear()
        self.enabled = False

    def set_override(self, url: str, response: HttpResponse) -> None:
        """Serve `response` for requests to exactly `url`. Replaces any previous override."""
        with self._lock:
            self._overrides[url] = response

    def get_override(self, url: str) -> HttpResponse | None:
        with self._lock:
            return self._overrides.get(url)

    def handle_request_paused(self, event: dict) -> None:
        """Fulfill or continue a paused request. Runs on the CDP dispatch thread.

        Args:
            event: Fetch.requestPaused event as received
        """
        params = event.get("params", {})
        request_id = params.get("requestId")
        url = params.get("request", {}).get("url", "")

        if not request_id or not self.cdp:
            return

        override = self.get_override(url)
        if override is not None:
            logger.debug(f"Fulfilling {url} with override ({override.status_code}, {len(override.body)} bytes)")
            future = self.cdp.send("Fetch.fulfillRequest", build_fulfill_params(request_id, override))
            method = "Fetch.fulfillRequest"
        else:
            future = self.cdp.send("Fetch.continueRequest", {"requestId": request_id})
            method = "Fetch.continueRequest"

        future.add_done_callback(lambda f: self._log_failure(f, method, url))

    @staticmethod
    def _log_failure(future: Future, method: str, url: str) -> None:
        if error := future.exception():
            logger.warning(f"{method} failed for {url}: {error}")
