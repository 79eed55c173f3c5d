"""Interactive REPL for redom.

Built on ReplKit2: each command in redom.commands is registered on `app` and
receives a RedomState holding one RedomService.
"""

from dataclasses import dataclass, field

from replkit2 import App

from redom.config import load_config
from redom.services import RedomService


@dataclass
class RedomState:
    """Application state for the redom REPL.

    Attributes:
        service: Client instance used by every command.
    """

    service: RedomService = field(default_factory=lambda: RedomService(load_config()))

    def cleanup(self) -> None:
        """Disconnect and close the managed tab."""
        self.service.close()


# Must be created before command imports for decorator registration
app = App("redom", RedomState)


# Command imports trigger @app.command decorator registration
from redom.commands import connection  # noqa: E402, F401
from redom.commands import settings  # noqa: E402, F401
from redom.commands import render  # noqa: E402, F401
