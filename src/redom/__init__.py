"""redom - render HTTP responses to their post-JavaScript DOM.

Drives a dedicated Chrome window over the DevTools Protocol. The caller's
response body is served to the browser through Fetch interception, so the
origin server never sees a second request.

PUBLIC API:
  - RedomService: Client instance (connect, render, settings)
  - RedomConfig: Settings, load_config: Read redom.toml
  - HttpRequest, HttpResponse, RenderResult, ConnectionState: Models
  - RedomError and subclasses: Error taxonomy
  - main: Entry point function for CLI
  - __version__: Package version string
"""

from importlib.metadata import PackageNotFoundError, version

from redom.config import RedomConfig, load_config
from redom.errors import (
    CDPConnectionError,
    CommandTimeoutError,
    NotConnectedError,
    ProtocolError,
    RedomError,
    RenderError,
    RenderTimeoutError,
)
from redom.models import ConnectionState, HttpRequest, HttpResponse, RenderResult
from redom.services import RedomService

try:
    __version__ = version("redom")
except PackageNotFoundError:
    __version__ = "0.0.0"


def main():
    """Entry point for the redom REPL."""
    from redom.__main__ import main as run

    run()


__all__ = [
    "RedomService",
    "RedomConfig",
    "load_config",
    "HttpRequest",
    "HttpResponse",
    "RenderResult",
    "ConnectionState",
    "RedomError",
    "CDPConnectionError",
    "CommandTimeoutError",
    "ProtocolError",
    "NotConnectedError",
    "RenderTimeoutError",
    "RenderError",
    "main",
    "__version__",
]
