"""Dedicated browser window owned by one redom client.

PUBLIC API:
  - ManagedTarget: Target id and its WebSocket debugger URL
  - TargetManager: Acquire, reuse and release the managed target
"""

import json
import logging
import time
from dataclasses import dataclass
from importlib import resources

import websocket

from redom.cdp.directory import DirectoryClient
from redom.errors import CDPConnectionError, RedomError

__all__ = ["ManagedTarget", "TargetManager"]

logger = logging.getLogger(__name__)

_CREATE_TARGET_ID = 1


@dataclass(frozen=True)
class ManagedTarget:
    """Managed tab identity.

    Attributes:
        target_id: Chrome target id.
        ws_url: WebSocket debugger URL of the target.
    """

    target_id: str
    ws_url: str


def _load_tab_html() -> str:
    return (resources.files("redom") / "data" / "tab.html").read_text(encoding="utf-8")


class TargetManager:
    """Owns the lifecycle of the managed target.

    Attributes:
        directory: Discovery endpoint client.
        timeout: Seconds to wait for Target.createTarget.
    """

    def __init__(self, directory: DirectoryClient, timeout: float = 30.0):
        self.directory = directory
        self.timeout = timeout
        self._current: ManagedTarget | None = None

    @property
    def current(self) -> ManagedTarget | None:
        """Remembered target, or None."""
        return self._current

    def acquire(self) -> ManagedTarget:
        """Reuse the remembered target if Chrome still lists it, else create a new window.

        Returns:
            ManagedTarget to connect to

        Raises:
            CDPConnectionError: If Chrome is unreachable or window creation fails.
        """
        if self._current is not None:
            listed = self.directory.find_target(self._current.target_id)
            if listed and listed.get("webSocketDebuggerUrl"):
                logger.debug(f"Reusing managed target {self._current.target_id}")
                return self._current

            logger.info(f"Managed target {self._current.target_id} is gone, creating a new one")
            self._current = None

        browser_ws_url = self.directory.browser_ws_url()
        target_id = self._create_window(browser_ws_url)

        listed = self.directory.find_target(target_id)
        if not listed or not listed.get("webSocketDebuggerUrl"):
            raise CDPConnectionError(f"Failed to create new Chrome window: target {target_id} not listed")

        self._current = ManagedTarget(target_id=target_id, ws_url=listed["webSocketDebuggerUrl"])
        logger.info(f"Created managed target {target_id}")
        return self._current

    def _create_window(self, browser_ws_url: str) -> str:
        """Create an isolated window over a transient browser-level connection.

        Returns:
            New target id
        """
        deadline = time.monotonic() + self.timeout
        try:
            ws = websocket.create_connection(browser_ws_url, timeout=self.timeout, suppress_origin=True)
        except (websocket.WebSocketException, OSError) as e:
            raise CDPConnectionError(f"Failed to connect to browser endpoint {browser_ws_url}: {e}") from e

        try:
            message = {
                "id": _CREATE_TARGET_ID,
                "method": "Target.createTarget",
                "params": {"url": "about:blank", "newWindow": True},
            }
            ws.send(json.dumps(message))

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise CDPConnectionError("Timed out waiting for Target.createTarget")
                ws.settimeout(remaining)

                try:
                    data = json.loads(ws.recv())
                except ValueError:
                    continue

                if not isinstance(data, dict) or data.get("id") != _CREATE_TARGET_ID:
                    continue

                if "error" in data:
                    error = data["error"]
                    reason = error.get("message", error) if isinstance(error, dict) else error
                    raise CDPConnectionError(f"Failed to create window: {reason}")

                target_id = data.get("result", {}).get("targetId")
                if not target_id:
                    raise CDPConnectionError("Target.createTarget returned no targetId")
                return target_id

        except websocket.WebSocketTimeoutException as e:
            raise CDPConnectionError("Timed out waiting for Target.createTarget") from e
        except (websocket.WebSocketException, OSError) as e:
            raise CDPConnectionError(f"Browser connection closed before target created: {e}") from e
        finally:
            ws.close()

    def forget(self) -> None:
        """Drop the remembered target so the next acquire() creates a new one."""
        self._current = None

    def release(self) -> None:
        """Close the managed target. Best-effort."""
        target = self._current
        self._current = None
        if target is None:
            return

        try:
            if not self.directory.close_target(target.target_id):
                logger.warning(f"Chrome refused to close managed target {target.target_id}")
        except RedomError as e:
            logger.warning(f"Failed to close managed target {target.target_id}: {e}")

    def mark_identity(self, cdp) -> None:
        """Write the identifying page into the managed tab. Best-effort."""
        try:
            html = _load_tab_html()
            cdp.evaluate(f"document.open(); document.write({json.dumps(html)}); document.close();")
        except (RedomError, OSError) as e:
            logger.warning(f"Failed to set managed tab content: {e}")

    def minimize(self, cdp) -> None:
        """Minimize the window holding the managed target. Best-effort."""
        if self._current is None:
            return

        try:
            window = cdp.execute("Browser.getWindowForTarget", {"targetId": self._current.target_id})
            window_id = window.get("windowId")
            if window_id is None:
                logger.warning("Browser.getWindowForTarget returned no windowId")
                return

            cdp.execute("Browser.setWindowBounds", {"windowId": window_id, "bounds": {"windowState": "minimized"}})
        except RedomError as e:
            logger.warning(f"Failed to minimize managed window: {e}")
