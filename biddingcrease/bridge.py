"""
biddingcrease/bridge.py - Mirror a tournament's auction room into local state.

    conn = SocketConnection.from_config(config.socket)
    bridge = AuctionSocketBridge(conn, tournament_id, on_event=print, api=api)
    bridge.start()      # join:auction + listen
    ...
    bridge.stop()       # leave:auction, stop mirroring

Server broadcasts are the only thing that moves the mirror. Stopping the bridge
only stops listening; the auction carries on server-side.
"""

import logging
from typing import Any, Callable

from pydantic import ValidationError

from .events import INBOUND_EVENTS, parse_event
from .realtime import SocketConnection
from .state import AuctionState, apply_event, apply_snapshot

logger = logging.getLogger(__name__)

EventCallback = Callable[[dict[str, Any]], None]


class AuctionSocketBridge:
    """Subscribes to one tournament's auction room and keeps an AuctionState current."""

    def __init__(
        self,
        connection: SocketConnection,
        tournament_id: str,
        on_event: EventCallback | None = None,
        api: Any = None,
        state: AuctionState | None = None,
    ):
        self.connection = connection
        self.tournament_id = tournament_id
        self.on_event = on_event
        self.api = api
        self.state = state or AuctionState()
        self._handlers: dict[str, Callable] = {}
        self._started = False
        self._lost_connection = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return
        for event in INBOUND_EVENTS:
            handler = self._make_handler(event)
            self._handlers[event] = handler
            self.connection.on(event, handler)
        self.connection.on("connect", self._on_connect)
        self.connection.on("disconnect", self._on_disconnect)
        self._started = True

        self.connection.join_auction(self.tournament_id)
        logger.info(f"Joined auction room for tournament {self.tournament_id}")

    def stop(self) -> None:
        if not self._started:
            return
        self.connection.leave_auction(self.tournament_id)
        for event, handler in self._handlers.items():
            self.connection.off(event, handler)
        self.connection.off("connect", self._on_connect)
        self.connection.off("disconnect", self._on_disconnect)
        self._handlers.clear()
        self._started = False
        logger.info(f"Left auction room for tournament {self.tournament_id}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # REST snapshot
    # ------------------------------------------------------------------

    def fetch_current(self) -> bool:
        """Load ``/auction/current`` into the mirror. Returns True if applied.

        A snapshot that was in flight while a socket event arrived is
        dropped; the event is newer.
        """
        if self.api is None:
            return False
        since = self.state.version
        data = self.api.auction.get_current(self.tournament_id)
        return apply_snapshot(self.state, data, since_version=since)

    def set_teams(self, teams: list[dict[str, Any]]) -> None:
        with self.state.lock:
            self.state.teams = list(teams)

    # ------------------------------------------------------------------
    # Socket callbacks (run on the socket library's thread)
    # ------------------------------------------------------------------

    def handle(self, event: str, data: Any) -> dict | None:
        """Validate, apply and announce one inbound event."""
        try:
            payload = parse_event(event, data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {event} payload: {e.errors()}")
            return None

        notification = apply_event(self.state, payload)
        logger.debug(f"{event} applied (mirror v{self.state.version})")

        if notification is not None and self.on_event is not None:
            try:
                self.on_event(notification)
            except Exception as e:
                logger.warning(f"on_event callback failed for {event}: {e}")
        return notification

    def _make_handler(self, event: str) -> Callable:
        def handler(data=None):
            self.handle(event, data)
        return handler

    def _on_disconnect(self) -> None:
        self._lost_connection = True

    def _on_connect(self) -> None:
        # The server forgets room membership across a reconnect
        if not self._lost_connection or not self._started:
            return
        self._lost_connection = False
        logger.info(f"Reconnected; rejoining auction {self.tournament_id}")
        try:
            # Runs before the client reports connected; emitting via connect() would reconnect
            self.connection.join_auction(self.tournament_id, connect=False)
            self.fetch_current()
        except Exception as e:
            logger.warning(f"Failed to rejoin auction after reconnect: {e}")
