"""Main service orchestrator for redom.

One RedomService per logical session: it owns the transport, the managed
target, the interception table and the renderer. Nothing here is global.
"""

import dataclasses
import logging
import threading

from redom.cdp import CDPSession, DirectoryClient, TargetManager
from redom.config import RedomConfig
from redom.errors import RedomError
from redom.models import ConnectionState, HttpRequest, HttpResponse, RenderResult
from redom.services.interception import InterceptionService
from redom.services.reconnect import ReconnectSupervisor
from redom.services.renderer import PageRenderer

logger = logging.getLogger(__name__)


class RedomService:
    """Caller-facing client: connection lifecycle, settings and render().

    Attributes:
        config: Current settings.
        directory: Discovery endpoint client.
        targets: Managed target lifecycle.
        cdp: Transport to the managed target.
        interception: Override table and Fetch responder.
        renderer: Render orchestrator.
        supervisor: Auto-reconnect supervisor.
    """

    def __init__(
        self,
        config: RedomConfig | None = None,
        directory: DirectoryClient | None = None,
        cdp: CDPSession | None = None,
    ):
        """Initialize service.

        Args:
            config: Settings, defaults when omitted
            directory: Discovery client override
            cdp: Transport override
        """
        self.config = dataclasses.replace(config or RedomConfig()).validate()

        self.directory = directory or DirectoryClient(self.config.host, self.config.port)
        self.targets = TargetManager(self.directory, timeout=self.config.command_timeout)
        self.cdp = cdp or CDPSession(timeout=self.config.command_timeout)

        self.interception = InterceptionService()
        self.interception.attach(self.cdp)

        self.renderer = PageRenderer(
            self.cdp,
            self.interception,
            page_load_timeout=self.config.page_load_timeout,
            render_delay_ms=self.config.render_delay_ms,
        )

        self.supervisor = ReconnectSupervisor(self._reconnect, delay=self.config.reconnect_delay)
        self.cdp.set_disconnect_callback(self._handle_unexpected_disconnect)

        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()  # state + target snapshot
        self._lifecycle_lock = threading.RLock()  # serializes connect/disconnect
        self._render_lock = threading.Lock()  # one render at a time, settings between renders

    # ==================== Lifecycle ====================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """Connected and the socket is actually open."""
        return self._state == ConnectionState.CONNECTED and self.cdp.is_connected

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self._state = state

    def connect(self) -> dict:
        """Acquire the managed tab and connect to it.

        Returns:
            Status dict (see get_status)

        Raises:
            CDPConnectionError: If Chrome is unreachable or the handshake fails
        """
        with self._lifecycle_lock:
            if self.is_connected:
                return self.get_status()

            self._set_state(ConnectionState.CONNECTING)
            # Clear leftovers from a connection that died without a clean close
            self.cdp.disconnect()
            self.directory.configure(self.config.host, self.config.port)

            try:
                target = self.targets.acquire()
                self.cdp.connect(target.ws_url)
            except RedomError:
                self._set_state(ConnectionState.DISCONNECTED)
                raise

            self.interception.reset()
            self.targets.mark_identity(self.cdp)
            if self.config.minimize_window:
                self.targets.minimize(self.cdp)

            self._set_state(ConnectionState.CONNECTED)

            if self.config.auto_reconnect:
                self.supervisor.start()
                self.supervisor.arm()

        logger.info(f"Connected to Chrome on {self.config.host}:{self.config.port} (target {target.target_id})")
        return self.get_status()

    def disconnect(self) -> dict:
        """Close the connection and the managed tab. Suppresses auto-reconnect. Idempotent.

        Returns:
            Dict with 'was_connected'
        """
        with self._lifecycle_lock:
            self.supervisor.disarm()
            was_connected = self.is_connected

            self.cdp.disconnect()
            self.interception.reset()
            self.targets.release()
            self._set_state(ConnectionState.DISCONNECTED)

        if was_connected:
            logger.info("Disconnected from Chrome")
        return {"was_connected": was_connected}

    def close(self) -> None:
        """Disconnect and stop background threads."""
        self.disconnect()
        self.supervisor.stop()
        self.directory.close()

    def _handle_unexpected_disconnect(self, code: int | None, reason: str | None) -> None:
        """Transport reports a remote close. Runs on the reader thread, must not block."""
        logger.warning(f"Chrome closed the connection: {code} {reason}")
        self._set_state(ConnectionState.DISCONNECTED)
        self.interception.reset()

        if self.supervisor.armed:
            self.supervisor.notify_closed(code, reason)

    def _reconnect(self) -> bool:
        with self._lifecycle_lock:
            # disconnect() may have won the lock after the supervisor's armed check
            if not self.supervisor.armed:
                logger.debug("Auto-reconnect cancelled, disconnected in the meantime")
                return False

            self.targets.forget()
            self.connect()
            return True

    def get_status(self) -> dict:
        """Connection and settings snapshot."""
        with self._state_lock:
            state = self._state
            target = self.targets.current

        connected = state == ConnectionState.CONNECTED and self.cdp.is_connected
        host, port = self.config.host, self.config.port

        return {
            "state": state.value,
            "connected": connected,
            "message": f"Connected to Chrome on {host}:{port}" if connected else "Not connected",
            "host": host,
            "port": port,
            "target_id": target.target_id if target else None,
            "interception": self.interception.enabled,
            "overrides": self.interception.override_count,
            "command_timeout": self.config.command_timeout,
            "page_load_timeout": self.config.page_load_timeout,
            "render_delay_ms": self.config.render_delay_ms,
            "minimize_window": self.config.minimize_window,
            "auto_reconnect": self.config.auto_reconnect,
        }

    # ==================== Rendering ====================

    def render(self, request: HttpRequest, response: HttpResponse) -> RenderResult:
        """Render one response. Concurrent calls wait their turn.

        Raises:
            NotConnectedError: If a browser render is needed and not connected
            RenderError: If the render fails
        """
        with self._render_lock:
            return self.renderer.render(request, response)

    # ==================== Settings ====================

    def configure(self, **changes) -> RedomConfig:
        """Apply setting changes between renders.

        Host and port take effect on the next connect().

        Raises:
            ValueError: If a value is out of range or the setting is unknown
        """
        try:
            config = dataclasses.replace(self.config, **changes).validate()
        except TypeError as e:
            raise ValueError(f"Unknown setting: {e}") from e

        with self._render_lock:
            self.config = config
            self.cdp.timeout = config.command_timeout
            self.targets.timeout = config.command_timeout
            self.renderer.page_load_timeout = config.page_load_timeout
            self.renderer.render_delay_ms = config.render_delay_ms
            self.supervisor.delay = config.reconnect_delay
            if not config.auto_reconnect:
                self.supervisor.disarm()
            elif self.is_connected:
                self.supervisor.start()
                self.supervisor.arm()

        logger.debug(f"Settings updated: {changes}")
        return config

    def set_host(self, host: str) -> None:
        self.configure(host=host)

    def set_port(self, port: int) -> None:
        self.configure(port=port)

    def set_command_timeout(self, seconds: float) -> None:
        self.configure(command_timeout=seconds)

    def set_page_load_timeout(self, seconds: float) -> None:
        self.configure(page_load_timeout=seconds)

    def set_render_delay(self, delay_ms: int) -> None:
        self.configure(render_delay_ms=delay_ms)

    def set_minimize_window(self, minimize: bool) -> None:
        self.configure(minimize_window=minimize)

    def set_auto_reconnect(self, enabled: bool) -> None:
        self.configure(auto_reconnect=enabled)
