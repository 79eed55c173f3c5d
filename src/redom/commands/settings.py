"""Settings command.

PUBLIC API:
  - config: Show or change connection and render settings
"""

from redom.app import app
from redom.commands._errors import error_response
from redom.commands._utils import build_info_response


@app.command(display="markdown")
def config(
    state,
    host: str | None = None,
    port: int | None = None,
    command_timeout: float | None = None,
    page_load_timeout: float | None = None,
    render_delay: int | None = None,
    minimize: bool | None = None,
    auto_reconnect: bool | None = None,
) -> dict:
    """Show or change settings. Changes apply between renders.

    Args:
        host: Chrome debugging host (next connect)
        port: Chrome debugging port (next connect)
        command_timeout: CDP command timeout in seconds
        page_load_timeout: Page load timeout in seconds
        render_delay: Settle delay after load in milliseconds
        minimize: Minimize the managed window on connect
        auto_reconnect: Reconnect once if Chrome drops the connection

    Examples:
        config()                       # Show settings
        config(render_delay=2500)      # Wait longer for client-side rendering
        config(host="10.0.0.5", port=9333)

    Returns:
        Current settings in markdown
    """
    changes = {
        "host": host,
        "port": port,
        "command_timeout": command_timeout,
        "page_load_timeout": page_load_timeout,
        "render_delay_ms": render_delay,
        "minimize_window": minimize,
        "auto_reconnect": auto_reconnect,
    }
    changes = {key: value for key, value in changes.items() if value is not None}

    if changes:
        try:
            state.service.configure(**changes)
        except ValueError as e:
            return error_response("invalid_setting", custom_message=f"Invalid setting: {e}")

    current = state.service.config
    return build_info_response(
        title="Settings",
        fields={
            "Chrome": f"{current.host}:{current.port}",
            "Command timeout": f"{current.command_timeout}s",
            "Page load timeout": f"{current.page_load_timeout}s",
            "Render delay": f"{current.render_delay_ms}ms",
            "Minimize window": "On" if current.minimize_window else "Off",
            "Auto-reconnect": "On" if current.auto_reconnect else "Off",
        },
    )
