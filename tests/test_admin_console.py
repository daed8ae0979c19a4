"""Tests for consoles.admin — AuctionConsole with a mocked AuctionAPI."""

from unittest.mock import MagicMock

import pytest

from consoles.admin import (
    AuctionConsole,
    BidCheck,
    BidRejected,
    ConsoleError,
    is_unsold,
)


PLAYER = {"_id": "p1", "name": "Virat", "basePrice": 1000}

TOURNAMENT = {
    "_id": "tour-1",
    "name": "Premier League",
    "bidIncrements": [
        {"minPrice": 1, "maxPrice": 2000, "increment": 100},
        {"minPrice": 2001, "maxPrice": None, "increment": 500},
    ],
}


def _teams():
    return [
        {"_id": "t1", "name": "Tigers", "remainingAmount": 50000},
        {"_id": "t2", "name": "Lions", "remainingAmount": 3000},
    ]


@pytest.fixture
def api():
    api = MagicMock()
    api.tournaments.get.return_value = TOURNAMENT
    api.teams.list.return_value = _teams()
    api.auction.get_max_bids.return_value = [
        {"teamId": "t1", "maxBid": 40000},
        {"teamId": "t2", "maxBid": 2000},
    ]
    api.auction.get_current.return_value = {"currentPlayer": None}
    api.players.list.return_value = [
        {"_id": "p1", "name": "Virat", "wasAuctioned": False},
        {"_id": "p2", "name": "Rohit", "wasAuctioned": True},
        {"_id": "p3", "name": "Dhoni", "soldPrice": 5000, "soldTo": "t1", "wasAuctioned": True},
    ]
    api.auction.start.return_value = {"currentPlayer": PLAYER, "currentBidPrice": 1000}
    api.auction.shuffle.return_value = {"currentPlayer": {**PLAYER, "_id": "p2", "name": "Rohit"}}
    api.auction.select_player.return_value = {"currentPlayer": PLAYER, "currentBidPrice": 1000}
    return api


@pytest.fixture
def console(api):
    console = AuctionConsole(api, "tour-1")
    console.refresh()
    return console


@pytest.fixture
def live(console):
    console.start()
    return console


# ============================================================================
# Loading
# ============================================================================


class TestLoading:
    def test_requires_tournament(self, api):
        with pytest.raises(ConsoleError, match="Please select a tournament"):
            AuctionConsole(api, "")

    def test_refresh(self, api, console):
        assert console.tournament == TOURNAMENT
        assert len(console.state.teams) == 2
        assert console.max_bids == {"t1": 40000, "t2": 2000}
        api.players.list.assert_called_with(tournamentId="tour-1", limit=1000)
        assert [p["_id"] for p in console.unsold_players] == ["p1", "p2"]

    def test_unsold_summary(self, console):
        assert console.unsold_summary() == {"never_auctioned": 1, "auctioned_unsold": 1, "sold": 1}

    def test_is_unsold(self):
        assert is_unsold({"soldPrice": 100})
        assert is_unsold({"soldTo": "t1"})
        assert not is_unsold({"soldPrice": 100, "soldTo": "t1"})

    def test_fetch_current_restores_lot(self, api, console):
        api.auction.get_current.return_value = {"currentPlayer": PLAYER, "currentBidPrice": 1400, "isActive": True}
        assert console.fetch_current() is True
        assert console.state.display_price == 1400


# ============================================================================
# Pricing
# ============================================================================


class TestPricing:
    def test_default_increment_when_idle(self, console):
        assert console.increment() == 100
        assert console.suggested_bid() is None

    def test_suggested_bid_uses_bands(self, live):
        assert live.suggested_bid() == 1100
        live.state.current_bid_price = 2500
        assert live.increment() == 500
        assert live.suggested_bid() == 3000

    def test_bump_bid(self, live):
        assert live.bump_bid(500) == 1500

    def test_check_bid(self, live):
        check = live.check_bid("t2", 2500)
        assert check.team_name == "Lions"
        assert check.exceeds_max_bid
        assert check.balance_after == 500
        assert "₹2,500" in check.warning()
        assert "₹2,000" in check.warning()

    def test_unknown_max_bid_never_exceeds(self):
        assert not BidCheck("t9", "t9", 10**9).exceeds_max_bid


# ============================================================================
# Actions
# ============================================================================


class TestActions:
    def test_start_takes_lot(self, api, live):
        api.auction.start.assert_called_once_with("tour-1")
        assert live.state.current_player == PLAYER
        assert live.state.is_active is True

    def test_shuffle(self, api, console):
        console.shuffle()
        assert console.state.current_player["name"] == "Rohit"
        assert console.state.display_price == 1000

    def test_select_player_reloads_players(self, api, console):
        api.players.list.reset_mock()
        console.select_player("p1")
        api.auction.select_player.assert_called_once_with("tour-1", "p1")
        api.players.list.assert_called_once()

    def test_bid_defaults_to_suggestion(self, api, live):
        api.auction.place_bid.return_value = {"currentBidPrice": 1100, "team": {"remainingAmount": 50000}}
        live.place_bid("t1")
        api.auction.place_bid.assert_called_once_with("tour-1", "t1", 1100)
        assert live.state.current_bid_price == 1100
        assert live.selected_team == "t1"

    def test_bid_updates_team_balance(self, api, live):
        api.auction.place_bid.return_value = {"currentBidPrice": 1500, "team": {"remainingAmount": 48500}}
        live.place_bid("t1", 1500)
        assert live.state.find_team("t1")["remainingAmount"] == 48500

    def test_bid_requires_team(self, live):
        with pytest.raises(ConsoleError, match="Please select team and enter bid amount"):
            live.place_bid(None, 1500)

    def test_bid_requires_player(self, api, console):
        with pytest.raises(ConsoleError, match="No player selected"):
            console.place_bid("t1", 1500)
        api.auction.place_bid.assert_not_called()

    def test_over_max_rejected_without_confirm(self, api, live):
        with pytest.raises(BidRejected) as exc:
            live.place_bid("t2", 2500)
        assert exc.value.check.team_id == "t2"
        api.auction.place_bid.assert_not_called()

    def test_over_max_declined(self, api, live):
        with pytest.raises(BidRejected):
            live.place_bid("t2", 2500, confirm=lambda check: False)
        api.auction.place_bid.assert_not_called()

    def test_over_max_confirmed(self, api, live):
        api.auction.place_bid.return_value = {"currentBidPrice": 2500, "team": {}}
        seen = []
        live.place_bid("t2", 2500, confirm=lambda check: seen.append(check) or True)
        assert seen[0].amount == 2500
        api.auction.place_bid.assert_called_once_with("tour-1", "t2", 2500)

    def test_sell_uses_selected_team(self, api, live):
        api.auction.place_bid.return_value = {"currentBidPrice": 1100}
        live.place_bid("t1")
        live.sell()
        api.auction.sell.assert_called_once_with("tour-1", "t1")
        assert live.state.current_player is None
        assert live.selected_team is None

    def test_sell_requires_team(self, live):
        with pytest.raises(ConsoleError, match="Please select a team"):
            live.sell()

    def test_mark_unsold(self, api, live):
        live.mark_unsold()
        api.auction.mark_unsold.assert_called_once_with("tour-1")
        assert live.state.current_player is None

    def test_cancel_requires_player(self, api, console):
        with pytest.raises(ConsoleError, match="No player selected"):
            console.cancel_player()
        api.auction.cancel_player.assert_not_called()

    def test_cancel(self, api, live):
        live.cancel_player()
        api.auction.cancel_player.assert_called_once_with("tour-1")
        assert live.state.phase.value == "idle"

    def test_null_start_data(self, api, console):
        api.auction.start.return_value = None
        console.start()
        assert console.state.current_player is None
        assert console.state.is_active is True

    def test_null_bid_data_keeps_amount(self, api, live):
        api.auction.place_bid.return_value = None
        live.place_bid("t1", 1500)
        assert live.state.current_bid_price == 1500
        assert live.state.find_team("t1")["remainingAmount"] == 50000
