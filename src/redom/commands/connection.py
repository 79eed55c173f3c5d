"""Chrome connection management commands.

PUBLIC API:
  - connect: Open the managed window and connect to it
  - disconnect: Disconnect and close the managed window
  - status: Get connection status
"""

from redom.app import app
from redom.commands._errors import error_response
from redom.commands._utils import build_info_response
from redom.errors import RedomError


@app.command(display="markdown")
def connect(state) -> dict:
    """Connect to Chrome through a dedicated, minimized window.

    Returns:
        Connection status in markdown
    """
    try:
        status = state.service.connect()
    except RedomError as e:
        return error_response("connect_failed", details=str(e))

    return build_info_response(
        title="Connection Established",
        fields={"Status": status["message"], "Target": status["target_id"]},
    )


@app.command(display="markdown")
def disconnect(state) -> dict:
    """Disconnect from Chrome and close the managed window."""
    result = state.service.disconnect()
    message = "Disconnected" if result["was_connected"] else "Not connected"

    return build_info_response(title="Disconnect Status", fields={"Status": message})


@app.command(display="markdown")
def status(state) -> dict:
    """Get connection status.

    Returns:
        Status information in markdown
    """
    status = state.service.get_status()

    return build_info_response(
        title="Connection Status",
        fields={
            "Status": status["message"],
            "Target": status["target_id"],
            "Interception": "Enabled" if status["interception"] else "Disabled",
            "Overrides": status["overrides"],
        },
    )
