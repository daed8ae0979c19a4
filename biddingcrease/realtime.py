"""
biddingcrease/realtime.py - Socket.IO connection to the auction server.

One ``SocketConnection`` per process is enough: create it at startup, pass it
to whatever needs live events, disconnect at shutdown. Reconnection (bounded
attempts, growing delay up to a cap) is handled by python-socketio itself.

Handlers are kept in our own registry and fanned out from a single dispatch
function per event, so callers can detach with ``off()`` without reaching
into the socket library's internals.
"""

import logging
import threading
from typing import Any, Callable

import socketio

from .config import SocketConfig
from .errors import SocketConnectionError
from .events import JOIN_AUCTION, LEAVE_AUCTION

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]

DEFAULT_TRANSPORTS = ("websocket", "polling")


class SocketConnection:
    """Thin wrapper over ``socketio.Client`` with bounded reconnection."""

    def __init__(
        self,
        url: str,
        transports: tuple[str, ...] = DEFAULT_TRANSPORTS,
        reconnection: bool = True,
        reconnection_attempts: int = 5,
        reconnection_delay: float = 1.0,
        reconnection_delay_max: float = 5.0,
        wait_timeout: float = 5.0,
        client: Any = None,
    ):
        self.url = url
        self.transports = transports
        self.wait_timeout = wait_timeout
        self._client = client or socketio.Client(
            reconnection=reconnection,
            reconnection_attempts=reconnection_attempts,
            reconnection_delay=reconnection_delay,
            reconnection_delay_max=reconnection_delay_max,
        )
        self._handlers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

        self._client.on("connect", self._on_connect)
        self._client.on("disconnect", self._on_disconnect)
        self._client.on("connect_error", self._on_connect_error)

    @classmethod
    def from_config(cls, config: SocketConfig, **kwargs) -> "SocketConnection":
        return cls(
            config.url,
            reconnection_attempts=config.reconnection_attempts,
            reconnection_delay=config.reconnection_delay,
            reconnection_delay_max=config.reconnection_delay_max,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    def connect(self) -> None:
        """Open the connection. No-op when already connected."""
        if self.connected:
            return
        logger.info(f"Connecting to {self.url}")
        try:
            self._client.connect(
                self.url,
                transports=list(self.transports),
                wait_timeout=self.wait_timeout,
            )
        except socketio.exceptions.ConnectionError as e:
            raise SocketConnectionError(f"Cannot reach {self.url}: {e}") from e

    def disconnect(self) -> None:
        if self.connected:
            self._client.disconnect()

    def wait(self) -> None:
        """Block until the connection closes for good (or reconnection gives up)."""
        self._client.wait()

    def sleep(self, seconds: float) -> None:
        self._client.sleep(seconds)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Handler) -> None:
        """Attach a handler. Several handlers per event are allowed."""
        with self._lock:
            first = event not in self._handlers
            self._handlers.setdefault(event, []).append(handler)
        if first and event not in ("connect", "disconnect", "connect_error"):
            self._client.on(event, self._make_dispatch(event))

    def off(self, event: str, handler: Handler | None = None) -> None:
        """Detach one handler, or every handler for ``event``."""
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler is None:
                handlers.clear()
            elif handler in handlers:
                handlers.remove(handler)

    def emit(self, event: str, data: Any = None, connect: bool = True) -> None:
        """Send ``event``. Pass ``connect=False`` from inside a connect handler,
        where the namespace is live but ``connected`` is not yet True.
        """
        if connect:
            self.connect()
        logger.debug(f"emit {event} {data!r}")
        self._client.emit(event, data)

    def join_auction(self, tournament_id: str, connect: bool = True) -> None:
        self.emit(JOIN_AUCTION, tournament_id, connect=connect)

    def leave_auction(self, tournament_id: str) -> None:
        if not self.connected:
            logger.debug(f"Not connected; skipping {LEAVE_AUCTION} for {tournament_id}")
            return
        self._client.emit(LEAVE_AUCTION, tournament_id)

    def _handlers_for(self, event: str) -> list[Handler]:
        with self._lock:
            return list(self._handlers.get(event, []))

    def _make_dispatch(self, event: str) -> Handler:
        def dispatch(*args):
            for handler in self._handlers_for(event):
                handler(*args)
        return dispatch

    def _on_connect(self):
        logger.info(f"Socket connected: {self.url}")
        for handler in self._handlers_for("connect"):
            handler()

    def _on_disconnect(self, *args):
        logger.warning(f"Socket disconnected from {self.url}")
        for handler in self._handlers_for("disconnect"):
            handler()

    def _on_connect_error(self, data=None):
        logger.warning(f"Socket connection error: {data}")
        for handler in self._handlers_for("connect_error"):
            handler(data)
