"""Exception hierarchy for redom.

PUBLIC API:
  - RedomError: Base exception for all redom operations
  - CDPConnectionError: Discovery endpoint unreachable or handshake failure
  - CommandTimeoutError: No reply to a CDP command within the timeout
  - ProtocolError: Explicit error payload in a CDP reply
  - NotConnectedError: Command attempted while disconnected
  - RenderTimeoutError: Page load did not complete in time
  - RenderError: Render aborted
"""


class RedomError(Exception):
    """Base exception for all redom operations."""

    pass


class CDPConnectionError(RedomError):
    """Raised when Chrome cannot be reached or the WebSocket handshake fails."""

    pass


class CommandTimeoutError(RedomError, TimeoutError):
    """Raised when a CDP command gets no reply within the configured timeout."""

    def __init__(self, method: str, timeout: float):
        super().__init__(f"Command {method} timed out after {timeout}s")
        self.method = method
        self.timeout = timeout


class ProtocolError(RedomError):
    """Raised when Chrome answers a command with an error payload."""

    def __init__(self, method: str, message: str, code: int | None = None):
        super().__init__(f"CDP error in {method}: {message}")
        self.method = method
        self.code = code


class NotConnectedError(RedomError):
    """Raised when a command is attempted without a live connection."""

    def __init__(self, message: str = "Not connected to Chrome. Use connect() first."):
        super().__init__(message)


class RenderTimeoutError(RedomError, TimeoutError):
    """Page load event did not fire in time. Non-fatal for a render."""

    pass


class RenderError(RedomError):
    """Raised when a render is aborted, e.g. DOM extraction failed."""

    pass


__all__ = [
    "RedomError",
    "CDPConnectionError",
    "CommandTimeoutError",
    "ProtocolError",
    "NotConnectedError",
    "RenderTimeoutError",
    "RenderError",
]
