"""
biddingcrease/state.py - Client-side mirror of a tournament's live auction.

The server owns the auction. This module only reflects what it broadcasts:
each ``apply_*`` function folds one validated event payload into an
``AuctionState`` and returns the notification a UI would show for it (or
None). Reducers never reach the network.
"""

import copy
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .events import (
    AuctionStarted,
    BidPlaced,
    PlayerSelected,
    PlayerSold,
    PlayerUnsold,
    TeamUpdated,
)

logger = logging.getLogger(__name__)


class AuctionPhase(Enum):
    IDLE = "idle"
    PLAYER_SELECTED = "player_selected"
    BID_PLACED = "bid_placed"


@dataclass
class AuctionState:
    """Local mirror of the live auction. Rebuilt entirely from server data."""

    current_player: dict[str, Any] | None = None
    current_bid_price: int | float | None = None
    is_active: bool = False
    teams: list[dict[str, Any]] = field(default_factory=list)
    # Bumped on every applied socket event; lets REST snapshots detect staleness
    version: int = 0

    def __post_init__(self):
        self.lock = threading.RLock()

    @property
    def phase(self) -> AuctionPhase:
        if self.current_player is None:
            return AuctionPhase.IDLE
        base = self.current_player.get("basePrice")
        if self.current_bid_price is None or self.current_bid_price == base:
            return AuctionPhase.PLAYER_SELECTED
        return AuctionPhase.BID_PLACED

    @property
    def display_price(self) -> int | float | None:
        """Current bid, falling back to the player's base price."""
        if self.current_bid_price:
            return self.current_bid_price
        if self.current_player is not None:
            return self.current_player.get("basePrice")
        return None

    def clear_player(self) -> None:
        self.current_player = None
        self.current_bid_price = None
        self.is_active = False

    def find_team(self, team_id: str) -> dict[str, Any] | None:
        for team in self.teams:
            if team.get("_id") == team_id:
                return team
        return None

    def update_team(self, team_id: str, **fields: Any) -> bool:
        """Patch one team in place. None values are ignored. Returns True if found."""
        changes = {k: v for k, v in fields.items() if v is not None}
        for i, team in enumerate(self.teams):
            if team.get("_id") == team_id:
                self.teams[i] = {**team, **changes}
                return True
        logger.debug(f"Team {team_id} not in local mirror; update ignored")
        return False

    def snapshot(self) -> "AuctionState":
        """Deep copy safe to read from another thread."""
        with self.lock:
            return AuctionState(
                current_player=copy.deepcopy(self.current_player),
                current_bid_price=self.current_bid_price,
                is_active=self.is_active,
                teams=copy.deepcopy(self.teams),
                version=self.version,
            )


# ============================================================================
# Event reducers
# ============================================================================


def apply_auction_started(state: AuctionState, event: AuctionStarted) -> None:
    state.is_active = event.is_active


def apply_player_selected(state: AuctionState, event: PlayerSelected) -> dict:
    state.current_player = event.player
    state.current_bid_price = event.current_bid_price
    state.is_active = True
    return {"type": "playerSelected", "player": event.player}


def apply_bid_placed(state: AuctionState, event: BidPlaced) -> dict:
    state.current_bid_price = event.current_bid_price
    return {"type": "bid", "teamName": event.team_name, "bidAmount": event.bid_amount}


def apply_player_sold(state: AuctionState, event: PlayerSold) -> dict:
    # Sold always ends the lot, whatever we thought was on the block
    state.clear_player()
    state.update_team(
        event.team.id,
        remainingAmount=event.team.remaining_amount,
        playerCount=event.team.player_count,
    )
    return {
        "type": "sold",
        "playerName": event.player.name,
        "teamName": event.team.name,
        "price": event.player.sold_price,
    }


def apply_player_unsold(state: AuctionState, event: PlayerUnsold) -> dict:
    state.clear_player()
    return {
        "type": "unsold",
        "playerName": event.player.name,
        "teamName": None,
        "price": None,
    }


def apply_team_updated(state: AuctionState, event: TeamUpdated) -> None:
    state.update_team(
        event.team_id,
        remainingAmount=event.remaining_amount,
        playerCount=event.player_count,
    )


REDUCERS = {
    AuctionStarted: apply_auction_started,
    PlayerSelected: apply_player_selected,
    BidPlaced: apply_bid_placed,
    PlayerSold: apply_player_sold,
    PlayerUnsold: apply_player_unsold,
    TeamUpdated: apply_team_updated,
}


def apply_event(state: AuctionState, event) -> dict | None:
    """Fold a parsed event into ``state`` under its lock. Returns the notification."""
    reducer = REDUCERS[type(event)]
    with state.lock:
        notification = reducer(state, event)
        state.version += 1
    return notification


def apply_snapshot(
    state: AuctionState,
    data: dict[str, Any] | None,
    since_version: int | None = None,
) -> bool:
    """Apply a ``/auction/current`` response body.

    Only a snapshot that names a current player is applied, so an idle
    server reply never wipes a lot the socket already announced. Pass the
    ``state.version`` read before the request as ``since_version``: if a
    socket event landed while the request was in flight, the snapshot is
    older than the mirror and gets dropped.
    """
    if not data or not data.get("currentPlayer"):
        return False
    with state.lock:
        if since_version is not None and state.version != since_version:
            logger.debug(
                f"Dropping stale auction snapshot (v{since_version}, mirror at v{state.version})"
            )
            return False
        state.current_player = data["currentPlayer"]
        state.current_bid_price = data.get("currentBidPrice")
        state.is_active = bool(data.get("isActive"))
    return True
