"""HTTP message and render result models.

PUBLIC API:
  - HttpRequest: Request the caller wants rendered
  - HttpResponse: Response whose body replaces the real network fetch
  - RenderResult: Rendered body plus the original response metadata
  - ConnectionState: Client connection state enum
"""

from dataclasses import dataclass
from enum import Enum

__all__ = ["HttpRequest", "HttpResponse", "RenderResult", "ConnectionState"]


class ConnectionState(str, Enum):
    """Client connection state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _freeze_headers(headers) -> tuple[tuple[str, str], ...]:
    """Own copy of the header pairs, whatever sequence the caller passed."""
    return tuple((name, value) for name, value in headers)


def _header_values(headers: tuple[tuple[str, str], ...], name: str) -> list[str]:
    lowered = name.lower()
    return [value for key, value in headers if key.lower() == lowered]


@dataclass(frozen=True)
class HttpRequest:
    """Request to render.

    Only the URL takes part in rendering; the rest is carried for callers that
    want to show what was sent.

    Attributes:
        url: Absolute URL, matched verbatim against the browser's fetch.
        method: HTTP method.
        headers: Ordered (name, value) pairs.
        body: Raw request body.
    """

    url: str
    method: str = "GET"
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze_headers(self.headers))


@dataclass(frozen=True)
class HttpResponse:
    """Response served to the browser in place of the real network fetch.

    Attributes:
        status_code: HTTP status code.
        reason_phrase: Status line reason phrase.
        headers: Ordered (name, value) pairs, duplicates preserved.
        body: Raw body bytes.
        http_version: Protocol version from the status line.
    """

    status_code: int = 200
    reason_phrase: str = "OK"
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""
    http_version: str = "HTTP/1.1"

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    def header(self, name: str) -> str | None:
        """First value of header `name` (case-insensitive), or None."""
        values = _header_values(self.headers, name)
        return values[0] if values else None

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400


@dataclass(frozen=True)
class RenderResult:
    """Rendered body combined with the caller's original response metadata.

    Attributes:
        body: Rendered markup (or the untouched original body when bypassed).
        status_code: Original status code.
        reason_phrase: Original reason phrase.
        headers: Original headers, verbatim.
        final_url: URL that was rendered.
        http_version: Original HTTP version.
        rendered: True when the body came from the browser.
        load_timed_out: True when extraction ran without a page load event.
    """

    body: bytes
    status_code: int
    reason_phrase: str
    headers: tuple[tuple[str, str], ...]
    final_url: str
    http_version: str = "HTTP/1.1"
    rendered: bool = False
    load_timed_out: bool = False

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze_headers(self.headers))

    @classmethod
    def passthrough(cls, url: str, response: HttpResponse) -> "RenderResult":
        """Result that returns the original response unchanged."""
        return cls(
            body=response.body,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=response.headers,
            final_url=url,
            http_version=response.http_version,
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
