"""CDP transport for a single target.

WebSocketApp owns the socket and its reader thread. Replies are correlated by
id on the reader thread; events go through a queue to one dispatch thread.

PUBLIC API:
  - CDPSession: Connect, send/execute commands, route events
"""

import json
import logging
import queue
import threading
from collections import defaultdict
from concurrent.futures import Future, TimeoutError
from typing import Any, Callable

import websocket

from redom.errors import CDPConnectionError, CommandTimeoutError, NotConnectedError, ProtocolError, RedomError

__all__ = ["CDPSession"]

logger = logging.getLogger(__name__)

_BASELINE_DOMAINS = ["Page", "DOM", "Network", "Runtime"]

_STOP = object()


class CDPSession:
    """CDP client bound to one target WebSocket.

    Attributes:
        timeout: Default timeout in seconds for execute() and the handshake.
        ws_url: WebSocket URL of the current (or last) connection.
    """

    def __init__(self, timeout: float = 30):
        """Initialize CDP session.

        Args:
            timeout: Command timeout in seconds
        """
        self.timeout = timeout
        self.ws_url: str | None = None

        # WebSocketApp instance
        self._ws_app: websocket.WebSocketApp | None = None
        self._ws_thread: threading.Thread | None = None

        # Connection state
        self._connected = threading.Event()
        self._handshake = threading.Event()
        self._handshake_error: Exception | None = None

        # CDP request/response tracking: id -> (method, future)
        self._next_id = 1
        self._pending: dict[int, tuple[str, Future]] = {}
        self._lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._load_future: Future | None = None
        # Events stamped at or below this predate the current navigation; None until its reply
        self._load_after: int | None = None

        # Event dispatch, items are (sequence, event)
        self._events: queue.Queue = queue.Queue()
        self._event_seq = 0
        self._event_thread: threading.Thread | None = None
        self._event_callbacks: dict[str, list[Callable[[dict], Any]]] = defaultdict(list)
        self._disconnect_callback: Callable[[int | None, str | None], Any] | None = None

    # ==================== Lifecycle ====================

    def connect(self, ws_url: str) -> None:
        """Open the WebSocket and enable baseline domains.

        Blocks until the handshake completes or fails. Domain enable failures
        are logged, not raised.

        Args:
            ws_url: Target webSocketDebuggerUrl

        Raises:
            RuntimeError: If already connected.
            CDPConnectionError: If the handshake fails or times out.
        """
        if self._ws_app:
            raise RuntimeError("Already connected")

        self.ws_url = ws_url
        self._handshake.clear()
        self._handshake_error = None

        self._ws_app = websocket.WebSocketApp(
            ws_url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )

        self._start_event_thread()

        self._ws_thread = threading.Thread(
            target=self._ws_app.run_forever,
            kwargs={
                "ping_interval": 30,
                "ping_timeout": 10,
                "skip_utf8_validation": True,
                "suppress_origin": True,
            },
            name="redom-cdp-reader",
        )
        self._ws_thread.daemon = True
        self._ws_thread.start()

        self._handshake.wait(timeout=self.timeout)
        if not self._connected.is_set():
            reason = self._handshake_error or "handshake timed out"
            self.disconnect()
            raise CDPConnectionError(f"Failed to connect to {ws_url}: {reason}")

        self._enable_domains()

    def _enable_domains(self) -> None:
        for domain in _BASELINE_DOMAINS:
            try:
                self.execute(f"{domain}.enable")
            except RedomError as e:
                logger.warning(f"Failed to enable {domain} domain: {e}")

    def disconnect(self) -> None:
        """Close the WebSocket without triggering the disconnect callback. Idempotent."""
        with self._lock:
            ws_app = self._ws_app
            self._ws_app = None

        if ws_app:
            ws_app.close()

        if self._ws_thread and self._ws_thread.is_alive() and self._ws_thread is not threading.current_thread():
            self._ws_thread.join(timeout=2)
        self._ws_thread = None

        self._connected.clear()
        self._stop_event_thread()
        self._fail_pending("Disconnected")

    @property
    def is_connected(self) -> bool:
        """True while our flag is set and the socket itself reports open."""
        return self._connected.is_set() and self._socket_open(self._ws_app)

    @staticmethod
    def _socket_open(ws_app) -> bool:
        sock = getattr(ws_app, "sock", None)
        return bool(sock is not None and sock.connected)

    @property
    def pending_count(self) -> int:
        """Number of commands still waiting for a reply."""
        with self._lock:
            return len(self._pending)

    def set_disconnect_callback(self, callback: Callable[[int | None, str | None], Any] | None) -> None:
        """Set callback for connections closed by the remote end.

        Called on the reader thread with (close_code, reason). It must not block.
        """
        self._disconnect_callback = callback

    def register_event_callback(self, method: str, callback: Callable[[dict], Any]) -> None:
        """Route CDP events of `method` to `callback` on the dispatch thread.

        The callback receives the full event dict ({"method", "params"}).
        """
        self._event_callbacks[method].append(callback)

    # ==================== Commands ====================

    def send(self, method: str, params: dict | None = None) -> Future:
        """Send CDP command asynchronously.

        Never raises. When not connected, the returned Future already holds
        NotConnectedError.

        Args:
            method: CDP method (e.g. "Page.navigate")
            params: Optional parameters

        Returns:
            Future resolving to the 'result' field of the reply
        """
        future: Future = Future()

        with self._send_lock:
            with self._lock:
                ws_app = self._ws_app
                if not (self._connected.is_set() and self._socket_open(ws_app)):
                    future.set_exception(NotConnectedError())
                    return future

                msg_id = self._next_id
                self._next_id += 1
                self._pending[msg_id] = (method, future)

            message = {"id": msg_id, "method": method, "params": params or {}}
            try:
                ws_app.send(json.dumps(message))
            except (websocket.WebSocketException, OSError) as e:
                with self._lock:
                    entry = self._pending.pop(msg_id, None)
                if entry:
                    future.set_exception(NotConnectedError(f"Failed to send {method}: {e}"))

        return future

    def execute(self, method: str, params: dict | None = None, timeout: float | None = None) -> Any:
        """Send CDP command synchronously.

        On timeout the command stays pending; a late reply or the connection
        closing settles it.

        Args:
            method: CDP method (e.g. "Page.navigate")
            params: Optional parameters
            timeout: Override default timeout

        Returns:
            The 'result' field from CDP response

        Raises:
            CommandTimeoutError: No reply in time
            ProtocolError: Chrome returned an error
            NotConnectedError: No live connection
        """
        future = self.send(method, params)
        timeout = timeout or self.timeout

        try:
            return future.result(timeout=timeout)
        except TimeoutError:
            raise CommandTimeoutError(method, timeout) from None

    def navigate(self, url: str) -> Future:
        """Navigate and return a Future that completes on Page.loadEventFired.

        Only a load event received after Chrome acknowledges Page.navigate
        counts; events already queued belong to the previous document.

        Args:
            url: URL to load

        Returns:
            Fresh load future for this navigation
        """
        load_future: Future = Future()
        with self._lock:
            self._load_future = load_future
            self._load_after = None

        result = self.execute("Page.navigate", {"url": url})
        if result.get("errorText"):
            logger.warning(f"Navigation to {url} reported {result['errorText']}")

        return load_future

    def evaluate(self, expression: str) -> Any:
        """Evaluate JavaScript in the page and return its value.

        Raises:
            ProtocolError: If the expression throws
        """
        result = self.execute("Runtime.evaluate", {"expression": expression, "returnByValue": True})
        if details := result.get("exceptionDetails"):
            text = details.get("exception", {}).get("description") or details.get("text", "Uncaught exception")
            raise ProtocolError("Runtime.evaluate", text)
        return result.get("result", {}).get("value")

    def get_document_html(self) -> str:
        """Outer HTML of the document root."""
        document = self.execute("DOM.getDocument")
        node_id = document.get("root", {}).get("nodeId")
        if node_id is None:
            raise ProtocolError("DOM.getDocument", "Response has no root node")

        return self.execute("DOM.getOuterHTML", {"nodeId": node_id}).get("outerHTML", "")

    # ==================== Dispatch ====================

    def _start_event_thread(self) -> None:
        # Left running after a remote close
        self._stop_event_thread()

        # Each dispatch thread owns its queue so a late stop marker cannot reach a newer thread
        self._events = queue.Queue()
        self._event_thread = threading.Thread(
            target=self._event_loop, args=(self._events,), name="redom-cdp-events", daemon=True
        )
        self._event_thread.start()

    def _stop_event_thread(self) -> None:
        thread = self._event_thread
        self._event_thread = None
        if thread is None:
            return

        self._events.put(_STOP)
        if thread is not threading.current_thread():
            thread.join(timeout=2)

    def _event_loop(self, events: queue.Queue) -> None:
        while True:
            item = events.get()
            if item is _STOP:
                break
            seq, data = item
            self._handle_event(data, seq)

    def _handle_event(self, data: dict, seq: int | None = None) -> None:
        """Process one CDP event. Runs on the dispatch thread.

        Args:
            data: Event dict
            seq: Reader sequence number, None for events injected directly
        """
        method = data.get("method")

        if method == "Page.loadEventFired":
            with self._lock:
                future = self._load_future
                if future is not None and not future.done():
                    if seq is None or (self._load_after is not None and seq > self._load_after):
                        future.set_result(data.get("params", {}))
                    else:
                        logger.debug("Ignoring load event from before the current navigation")

        for callback in list(self._event_callbacks.get(method, ())):
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in {method} callback: {e}")

    def _resolve(self, data: dict) -> None:
        with self._lock:
            entry = self._pending.pop(data["id"], None)
            if entry is not None and entry[0] == "Page.navigate":
                # Everything queued so far belongs to the previous document
                self._load_after = self._event_seq

        if entry is None:
            logger.debug(f"Reply for unknown command id {data['id']}")
            return

        method, future = entry
        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                future.set_exception(ProtocolError(method, error.get("message", "Unknown error"), error.get("code")))
            else:
                future.set_exception(ProtocolError(method, str(error)))
        else:
            future.set_result(data.get("result") or {})

    def _fail_pending(self, reason: str) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()

            if self._load_future is not None and not self._load_future.done():
                self._load_future.set_exception(CDPConnectionError(f"{reason} before page load"))
            self._load_future = None

        for method, future in pending:
            future.set_exception(CDPConnectionError(f"{reason} while waiting for {method}"))

    # ==================== WebSocketApp callbacks ====================

    def _on_open(self, ws):
        logger.info(f"WebSocket connected to {self.ws_url}")
        self._connected.set()
        self._handshake.set()

    def _on_message(self, ws, message):
        """Resolve replies inline, queue events for the dispatch thread."""
        try:
            data = json.loads(message)
            if not isinstance(data, dict):
                logger.debug("Ignoring non-object frame")
                return

            if "id" in data:
                self._resolve(data)
            elif "method" in data:
                self._event_seq += 1
                self._events.put((self._event_seq, data))
            else:
                logger.debug(f"Ignoring unrecognized frame: {message[:100]}")

        except Exception as e:
            logger.error(f"Error handling message: {e}")

    def _on_error(self, ws, error):
        logger.error(f"WebSocket error: {error}")
        if not self._connected.is_set():
            self._handshake_error = error

    def _on_close(self, ws, code, reason):
        """Handle closure. Only the current app counts; disconnect() detaches it first."""
        logger.info(f"WebSocket closed: {code} {reason}")

        with self._lock:
            current = ws is self._ws_app
            if current:
                self._ws_app = None

        self._handshake.set()
        if not current:
            return

        was_connected = self._connected.is_set()
        self._connected.clear()
        self._fail_pending(f"Connection closed ({reason or code or 'remote'})")

        if was_connected and self._disconnect_callback:
            try:
                self._disconnect_callback(code, reason)
            except Exception as e:
                logger.error(f"Error in disconnect callback: {e}")
