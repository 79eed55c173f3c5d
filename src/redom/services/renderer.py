"""Render an HTTP response to its post-JavaScript DOM.

Chrome navigates to the request URL; the Fetch interception serves the
caller's response instead of the network. After load and a settle delay the
document's outer HTML is read back. Status, headers and version always come
from the caller's response, only the body is rendered.
"""

import logging
import time
from concurrent.futures import Future, TimeoutError

from redom.cdp import CDPSession
from redom.errors import NotConnectedError, RedomError, RenderError, RenderTimeoutError
from redom.models import HttpRequest, HttpResponse, RenderResult
from redom.services.interception import InterceptionService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LOAD_TIMEOUT = 30.0
DEFAULT_RENDER_DELAY_MS = 1000


def needs_render(response: HttpResponse) -> bool:
    """Whether a response goes through the browser.

    Redirects and bodies declared as something other than HTML are returned
    as they are. A missing Content-Type is rendered.
    """
    if response.is_redirect:
        return False

    content_type = response.header("Content-Type")
    return content_type is None or "html" in content_type.lower()


class PageRenderer:
    """Sequences interception, navigation, settle delay and DOM extraction.

    Not safe for overlapping renders: the override table and the load future
    are shared. RedomService serializes calls.

    Attributes:
        cdp: Transport to the managed target.
        interception: Override table and responder.
        page_load_timeout: Seconds to wait for Page.loadEventFired.
        render_delay_ms: Settle delay after load.
    """

    def __init__(
        self,
        cdp: CDPSession,
        interception: InterceptionService,
        page_load_timeout: float = DEFAULT_PAGE_LOAD_TIMEOUT,
        render_delay_ms: int = DEFAULT_RENDER_DELAY_MS,
    ):
        self.cdp = cdp
        self.interception = interception
        self.page_load_timeout = page_load_timeout
        self.render_delay_ms = render_delay_ms

    def render(self, request: HttpRequest, response: HttpResponse) -> RenderResult:
        """Render `response` as if Chrome had fetched it from `request.url`.

        Args:
            request: Request whose URL is navigated to
            response: Response served in place of the network fetch

        Returns:
            RenderResult with the rendered body and the original metadata

        Raises:
            NotConnectedError: If the transport is not connected
            RenderError: If navigation or DOM extraction fails
        """
        url = request.url

        if not needs_render(response):
            logger.debug(f"Skipping render for {url} ({response.status_code}, {response.header('Content-Type')})")
            return RenderResult.passthrough(url, response)

        if not self.cdp.is_connected:
            raise NotConnectedError()

        try:
            self.interception.enable()
            self.interception.set_override(url, response)

            load_future = self.cdp.navigate(url)
            loaded = self._wait_for_load(url, load_future)

            if self.render_delay_ms > 0:
                time.sleep(self.render_delay_ms / 1000)

            html = self.cdp.get_document_html()
        except RedomError as e:
            raise RenderError(f"Failed to render {url}: {e}") from e
        finally:
            self._disarm(url)

        html = html.lstrip("\r\n")
        logger.info(f"Rendered {url} ({len(html)} chars)")

        return RenderResult(
            body=html.encode("utf-8"),
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=response.headers,
            final_url=url,
            http_version=response.http_version,
            rendered=True,
            load_timed_out=not loaded,
        )

    def _wait_for_load(self, url: str, load_future: Future) -> bool:
        """Wait for the load event. A timeout is logged, not raised."""
        try:
            load_future.result(timeout=self.page_load_timeout)
            return True
        except TimeoutError:
            error = RenderTimeoutError(f"Page load timeout for {url} after {self.page_load_timeout}s")
            logger.warning(f"{error}, extracting DOM anyway")
            return False

    def _disarm(self, url: str) -> None:
        try:
            self.interception.disable()
        except RedomError as e:
            logger.warning(f"Failed to disable interception after rendering {url}: {e}")
