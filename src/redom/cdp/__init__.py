"""Chrome DevTools Protocol client.

Discovery over HTTP, one WebSocket per managed target.

PUBLIC API:
  - DirectoryClient: /json/* discovery endpoint client
  - CDPSession: Per-target CDP transport
  - ManagedTarget: Managed tab identity
  - TargetManager: Managed tab lifecycle
"""

from redom.cdp.directory import DirectoryClient
from redom.cdp.session import CDPSession
from redom.cdp.target import ManagedTarget, TargetManager

__all__ = ["DirectoryClient", "CDPSession", "ManagedTarget", "TargetManager"]
