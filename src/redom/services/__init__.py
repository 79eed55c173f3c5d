"""Service layer for redom.

PUBLIC API:
  - RedomService: Caller-facing client (connect, render, settings)
  - InterceptionService: Override table and Fetch responder
  - PageRenderer: Render orchestrator
  - ReconnectSupervisor: Auto-reconnect thread
"""

from redom.services.interception import InterceptionService
from redom.services.main import RedomService
from redom.services.reconnect import ReconnectSupervisor
from redom.services.renderer import PageRenderer

__all__ = ["RedomService", "InterceptionService", "PageRenderer", "ReconnectSupervisor"]
