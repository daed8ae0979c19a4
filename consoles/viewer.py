"""
consoles/viewer.py - Public live view of a tournament's auction.

Read-only: never sends auction commands. Joins the auction room, mirrors
state through AuctionSocketBridge, and keeps the extras the public page
shows: which team made the last bid, a short-lived sold/unsold banner, and
the most recently auctioned players.

    viewer = LiveViewer(api, connection, tournament_id, on_update=render)
    viewer.open()
    viewer.run()      # blocks until Ctrl-C or the socket gives up
    viewer.close()
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from biddingcrease.bridge import AuctionSocketBridge
from biddingcrease.errors import APIError
from biddingcrease.realtime import SocketConnection
from biddingcrease.state import AuctionState

logger = logging.getLogger(__name__)

NOTIFICATION_SECONDS = 5.0
LAST_PLAYERS_LIMIT = 5
LAST_PLAYERS_STEP = 10


def pick_default_tournament(tournaments: list[dict[str, Any]]) -> dict[str, Any] | None:
    """First ongoing tournament, else the first one listed."""
    for tournament in tournaments:
        if tournament.get("status") == "ongoing":
            return tournament
    return tournaments[0] if tournaments else None


@dataclass
class Notification:
    """Sold/unsold banner."""

    type: str  # "sold" | "unsold"
    player_name: str
    team_name: str | None
    price: int | float | None
    expires_at: float


class LiveViewer:
    """Spectator view of one tournament's auction room."""

    def __init__(
        self,
        api,
        connection: SocketConnection,
        tournament_id: str,
        on_update: Callable[[dict[str, Any]], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.connection = connection
        self.tournament_id = tournament_id
        self.on_update = on_update
        self.clock = clock

        self.bridge = AuctionSocketBridge(
            connection, tournament_id, on_event=self._on_event, api=api,
        )
        self.current_bid_team: str | None = None
        self.max_bids: dict[str, int | float] = {}
        self.last_players: list[dict[str, Any]] = []
        self.last_players_limit = LAST_PLAYERS_LIMIT
        self.has_more_players = False
        self._notification: Notification | None = None

    @property
    def state(self) -> AuctionState:
        return self.bridge.state

    @property
    def notification(self) -> Notification | None:
        """Current banner, or None once it has expired."""
        if self._notification and self.clock() >= self._notification.expires_at:
            self._notification = None
        return self._notification

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Load the initial picture, then start mirroring the room."""
        teams = self.api.teams.list(tournamentId=self.tournament_id) or []
        self.bridge.set_teams(teams)
        self.bridge.start()
        self._safe(self.fetch_current)
        self._safe(self.fetch_last_players)
        self._safe(self.fetch_max_bids)

    def run(self) -> None:
        """Block until the socket closes for good. Ctrl-C propagates to the caller."""
        self.connection.wait()

    def close(self) -> None:
        self.bridge.stop()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def fetch_current(self) -> bool:
        return self.bridge.fetch_current()

    def fetch_max_bids(self) -> dict[str, int | float]:
        rows = self.api.auction.get_max_bids(self.tournament_id) or []
        self.max_bids = {row["teamId"]: row["maxBid"] for row in rows if "teamId" in row}
        return self.max_bids

    def fetch_last_players(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Most recently auctioned players (sold or unsold), newest first."""
        limit = limit or self.last_players_limit
        body = self.api.players.list(
            raw=True,
            tournamentId=self.tournament_id,
            wasAuctioned="true",
            limit=limit + 1,  # one extra tells us whether there are more
            sortBy="updatedAt",
            sortOrder="desc",
        ) or {}
        players = body.get("data") or []
        self.has_more_players = len(players) > limit or (body.get("total") or 0) > limit
        self.last_players = players[:limit]
        return self.last_players

    def see_more(self) -> list[dict[str, Any]]:
        self.last_players_limit += LAST_PLAYERS_STEP
        return self.fetch_last_players()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _on_event(self, data: dict[str, Any]) -> None:
        kind = data.get("type")
        if kind == "bid":
            self.current_bid_team = data.get("teamName")
        elif kind in ("sold", "unsold"):
            self._notification = Notification(
                type=kind,
                player_name=data.get("playerName"),
                team_name=data.get("teamName"),
                price=data.get("price"),
                expires_at=self.clock() + NOTIFICATION_SECONDS,
            )
            self._safe(self.fetch_last_players)
        elif kind == "playerSelected":
            self.current_bid_team = None
            self._safe(self.fetch_last_players)

        if self.on_update is not None:
            self.on_update(data)

    def _safe(self, fn: Callable) -> None:
        """Side fetches never take the viewer down."""
        try:
            fn()
        except APIError as e:
            logger.warning(f"{fn.__name__} failed: {e.message}")
