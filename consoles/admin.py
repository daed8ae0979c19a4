"""
consoles/admin.py - Auctioneer's control panel for one tournament.

Wraps the auction endpoints with the checks an operator needs before a
request goes out (team chosen, player on the block, bid affordable) and
keeps a local AuctionState in step with each response. Share the state
with an AuctionSocketBridge to have broadcasts land in the same mirror.

    console = AuctionConsole(api, tournament_id)
    console.refresh()
    console.start()
    console.place_bid(team_id)            # suggested next bid
    console.place_bid(team_id, 2500, confirm=lambda check: True)
    console.sell(team_id)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from biddingcrease.errors import BiddingCreaseError
from biddingcrease.pricing import (
    calculate_bid_increment,
    format_currency,
    get_next_bid_amount,
)
from biddingcrease.state import AuctionState, apply_snapshot

logger = logging.getLogger(__name__)

# Increment shown when nothing is on the block
DEFAULT_INCREMENT = 100

# Matches the page size the web console asks for
PLAYER_FETCH_LIMIT = 1000


class ConsoleError(BiddingCreaseError):
    """A console action was refused before reaching the server."""


class BidRejected(ConsoleError):
    """Bid exceeds the team's max bid and the operator did not confirm it."""

    def __init__(self, check: "BidCheck"):
        super().__init__(check.warning())
        self.check = check


@dataclass
class BidCheck:
    """Affordability of a proposed bid for one team.

    ``max_bid`` is the server's figure for the most this team can spend on
    one player while still affording its minimum squad. None if unknown.
    """

    team_id: str
    team_name: str
    amount: int | float
    max_bid: int | float | None = None
    balance: int | float | None = None

    @property
    def exceeds_max_bid(self) -> bool:
        return self.max_bid is not None and self.amount > self.max_bid

    @property
    def balance_after(self) -> int | float | None:
        if self.balance is None:
            return None
        return self.balance - self.amount

    def warning(self) -> str:
        return (
            f"Bid {format_currency(self.amount)} exceeds the maximum available bid "
            f"({format_currency(self.max_bid)}) for {self.team_name}. "
            f"The team may not be able to afford minimum required players."
        )


def is_unsold(player: dict[str, Any]) -> bool:
    return not player.get("soldPrice") or not player.get("soldTo")


class AuctionConsole:
    """Admin-side driver for a tournament's live auction."""

    def __init__(self, api, tournament_id: str, state: AuctionState | None = None):
        if not tournament_id:
            raise ConsoleError("Please select a tournament")
        self.api = api
        self.tournament_id = tournament_id
        self.state = state or AuctionState()

        self.tournament: dict[str, Any] | None = None
        self.max_bids: dict[str, int | float] = {}
        self.players: list[dict[str, Any]] = []
        self.unsold_players: list[dict[str, Any]] = []
        self.selected_team: str | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Reload everything the panel shows."""
        self.fetch_tournament()
        self.fetch_teams()
        self.fetch_current()
        self.fetch_players()

    def fetch_tournament(self) -> dict[str, Any]:
        self.tournament = self.api.tournaments.get(self.tournament_id)
        return self.tournament

    def fetch_teams(self) -> list[dict[str, Any]]:
        teams = self.api.teams.list(tournamentId=self.tournament_id) or []
        with self.state.lock:
            self.state.teams = list(teams)
        self.fetch_max_bids()
        return teams

    def fetch_max_bids(self) -> dict[str, int | float]:
        rows = self.api.auction.get_max_bids(self.tournament_id) or []
        self.max_bids = {row["teamId"]: row["maxBid"] for row in rows if "teamId" in row}
        return self.max_bids

    def fetch_players(self) -> list[dict[str, Any]]:
        self.players = self.api.players.list(
            tournamentId=self.tournament_id, limit=PLAYER_FETCH_LIMIT,
        ) or []
        self.unsold_players = [p for p in self.players if is_unsold(p)]
        return self.players

    def fetch_current(self) -> bool:
        since = self.state.version
        data = self.api.auction.get_current(self.tournament_id)
        return apply_snapshot(self.state, data, since_version=since)

    # ------------------------------------------------------------------
    # Pricing helpers
    # ------------------------------------------------------------------

    def increment(self) -> int | float:
        """Band increment at the current display price."""
        price = self.state.display_price
        if price is None:
            return DEFAULT_INCREMENT
        return calculate_bid_increment(price, self.tournament)

    def suggested_bid(self) -> int | float | None:
        """Next bid after the current one (or after the base price)."""
        price = self.state.display_price
        if price is None:
            return None
        return get_next_bid_amount(price, self.tournament)

    def bump_bid(self, amount: int | float) -> int | float:
        """Current price plus a quick-bid step chosen by the operator."""
        return (self.state.display_price or 0) + amount

    def check_bid(self, team_id: str, amount: int | float) -> BidCheck:
        team = self.state.find_team(team_id) or {}
        return BidCheck(
            team_id=team_id,
            team_name=team.get("name", team_id),
            amount=amount,
            max_bid=self.max_bids.get(team_id),
            balance=team.get("remainingAmount"),
        )

    # ------------------------------------------------------------------
    # Auction actions
    # ------------------------------------------------------------------

    def _take_lot(self, data: dict[str, Any]) -> None:
        with self.state.lock:
            self.state.current_player = data.get("currentPlayer")
            self.state.current_bid_price = data.get("currentBidPrice")
            self.state.is_active = True
        self.selected_team = None

    def _end_lot(self) -> None:
        with self.state.lock:
            self.state.clear_player()
        self.selected_team = None

    def _require_player(self) -> dict[str, Any]:
        player = self.state.current_player
        if player is None:
            raise ConsoleError("No player selected")
        return player

    def start(self) -> dict[str, Any]:
        data = self.api.auction.start(self.tournament_id) or {}
        self._take_lot(data)
        logger.info(f"Auction started: {self._lot_name()}")
        self.fetch_teams()
        return data

    def shuffle(self) -> dict[str, Any]:
        data = self.api.auction.shuffle(self.tournament_id) or {}
        self._take_lot(data)
        logger.info(f"Shuffled to {self._lot_name()}")
        self.fetch_teams()
        return data

    def select_player(self, player_id: str) -> dict[str, Any]:
        data = self.api.auction.select_player(self.tournament_id, player_id) or {}
        self._take_lot(data)
        logger.info(f"Selected {self._lot_name()}")
        self.fetch_players()
        return data

    def place_bid(
        self,
        team_id: str | None,
        amount: int | float | None = None,
        confirm: Callable[[BidCheck], bool] | None = None,
    ) -> dict[str, Any]:
        """Bid for ``team_id``. Defaults to the suggested next bid.

        Bids above the team's max bid need ``confirm(check)`` to return True.
        """
        if amount is None:
            amount = self.suggested_bid()
        if not team_id or not amount:
            raise ConsoleError("Please select team and enter bid amount")
        self._require_player()

        check = self.check_bid(team_id, amount)
        if check.exceeds_max_bid:
            if confirm is None or not confirm(check):
                raise BidRejected(check)
            logger.warning(f"Over-max bid confirmed: {check.warning()}")

        self.selected_team = team_id
        data = self.api.auction.place_bid(self.tournament_id, team_id, amount) or {}

        team = data.get("team") or {}
        with self.state.lock:
            self.state.current_bid_price = data.get("currentBidPrice") or amount
            if team.get("remainingAmount") is not None:
                self.state.update_team(team_id, remainingAmount=team["remainingAmount"])
        logger.info(f"{check.team_name} bids {format_currency(self.state.current_bid_price)}")
        self.fetch_max_bids()
        return data

    def sell(self, team_id: str | None = None) -> dict[str, Any]:
        team_id = team_id or self.selected_team
        if not team_id:
            raise ConsoleError("Please select a team")
        player = self._require_player()

        data = self.api.auction.sell(self.tournament_id, team_id)
        team = self.state.find_team(team_id) or {}
        logger.info(f"{player.get('name')} sold to {team.get('name', team_id)}")
        self._end_lot()
        self.fetch_teams()
        return data

    def mark_unsold(self) -> dict[str, Any]:
        player = self._require_player()
        data = self.api.auction.mark_unsold(self.tournament_id)
        logger.info(f"{player.get('name')} marked unsold")
        self._end_lot()
        self.fetch_players()
        return data

    def cancel_player(self) -> dict[str, Any]:
        """Take the player off the block without recording a result."""
        player = self._require_player()
        data = self.api.auction.cancel_player(self.tournament_id)
        logger.info(f"{player.get('name')} returned to the pool")
        self._end_lot()
        self.fetch_players()
        return data

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def unsold_summary(self) -> dict[str, int]:
        never = sum(1 for p in self.unsold_players if not p.get("wasAuctioned"))
        return {
            "never_auctioned": never,
            "auctioned_unsold": len(self.unsold_players) - never,
            "sold": len(self.players) - len(self.unsold_players),
        }

    def _lot_name(self) -> str:
        player = self.state.current_player
        return player.get("name", "?") if player else "no player"
