"""Chrome HTTP discovery endpoint client.

PUBLIC API:
  - DirectoryClient: List, inspect and close targets via /json/*
"""

import logging

import httpx

from redom.errors import CDPConnectionError

__all__ = ["DirectoryClient"]

logger = logging.getLogger(__name__)


class DirectoryClient:
    """HTTP client for Chrome's /json discovery endpoints.

    Attributes:
        host: Chrome debugging host.
        port: Chrome debugging port.
    """

    def __init__(
        self, host: str = "localhost", port: int = 9222, timeout: float = 10.0, client: httpx.Client | None = None
    ):
        """Initialize directory client.

        Args:
            host: Chrome debugging host
            port: Chrome debugging port
            timeout: HTTP request timeout in seconds
            client: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.host = host
        self.port = port
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def configure(self, host: str, port: int) -> None:
        """Point the client at another Chrome instance."""
        self.host = host
        self.port = port

    def _get_json(self, path: str):
        try:
            response = self._client.get(f"{self.base_url}{path}")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise CDPConnectionError(
                f"Chrome on {self.host}:{self.port} answered {path} with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise CDPConnectionError(
                f"Failed to connect to Chrome on {self.host}:{self.port}. "
                f"Make sure Chrome is running with --remote-debugging-port={self.port}"
            ) from e
        except ValueError as e:
            raise CDPConnectionError(f"Malformed response from {path}: {e}") from e

    def version(self) -> dict:
        """Browser version info from /json/version."""
        info = self._get_json("/json/version")
        if not isinstance(info, dict):
            raise CDPConnectionError("Malformed response from /json/version: expected an object")
        return info

    def browser_ws_url(self) -> str:
        """Browser-level WebSocket debugger URL.

        Raises:
            CDPConnectionError: If Chrome is unreachable or the field is missing.
        """
        ws_url = self.version().get("webSocketDebuggerUrl")
        if not ws_url:
            raise CDPConnectionError("No webSocketDebuggerUrl in /json/version")
        return ws_url

    def list_targets(self) -> list[dict]:
        """All targets from /json/list.

        Returns:
            List of target dicts with at least 'id' and usually 'webSocketDebuggerUrl'.
        """
        targets = self._get_json("/json/list")
        if not isinstance(targets, list) or not all(isinstance(t, dict) for t in targets):
            raise CDPConnectionError("Malformed response from /json/list: expected a list of objects")
        return targets

    def find_target(self, target_id: str) -> dict | None:
        """Listed target with the given id, or None."""
        for target in self.list_targets():
            if target.get("id") == target_id:
                return target
        return None

    def close_target(self, target_id: str) -> bool:
        """Ask Chrome to close a target.

        Returns:
            True if Chrome acknowledged the close.
        """
        try:
            response = self._client.get(f"{self.base_url}/json/close/{target_id}")
        except httpx.HTTPError as e:
            raise CDPConnectionError(f"Failed to close target {target_id}: {e}") from e
        return response.is_success

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()
