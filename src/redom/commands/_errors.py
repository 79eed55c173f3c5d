"""Unified error responses for redom commands.

PUBLIC API:
  - check_connection: Validate connection state
  - error_response: Build formatted error responses
"""

from typing import Optional

from replkit2.textkit import markdown

# Standard error message templates
_ERRORS = {
    "not_connected": {
        "message": "Not connected to Chrome",
        "details": "Use `connect()` to open the managed window",
        "help": [
            "Start Chrome with `--remote-debugging-port=9222`",
            "Use `config(host=..., port=...)` if Chrome runs elsewhere",
            "Then run `connect()`",
        ],
    },
    "connect_failed": {
        "message": "Could not connect to Chrome",
        "help": [
            "Check that Chrome is running with `--remote-debugging-port`",
            "Check host and port with `config()`",
        ],
    },
}


def check_connection(state) -> Optional[dict]:
    """Error response if not connected, None if connected."""
    if not state.service.is_connected:
        return error_response("not_connected")
    return None


def error_response(error_key: str, custom_message: str | None = None, **kwargs) -> dict:
    """Build consistent error response in markdown.

    Args:
        error_key: Key from error templates or custom identifier.
        custom_message: Override default message. Defaults to None.
        **kwargs: Additional context to add to error response.

    Returns:
        Markdown dict with error formatting.
    """
    error_info = _ERRORS.get(error_key, {})
    message = custom_message or error_info.get("message", "Error occurred")

    builder = markdown().element("alert", message=message, level="error")

    if details := error_info.get("details"):
        builder.text(details)

    if help_items := error_info.get("help"):
        builder.text("**How to fix:**")
        builder.list(help_items)

    for key, value in kwargs.items():
        if value:
            builder.text(f"_{key}: {value}_")

    return builder.build()
