"""
biddingcrease/events.py - Socket.IO event names and payload models.

Payloads are camelCase on the wire. Unknown fields are kept (``extra="allow"``)
because player and team records carry whatever the server decides to send.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Server -> client
AUCTION_STARTED = "auction:started"
PLAYER_SELECTED = "player:selected"
BID_PLACED = "bid:placed"
PLAYER_SOLD = "player:sold"
PLAYER_UNSOLD = "player:unsold"
TEAM_UPDATED = "team:updated"

INBOUND_EVENTS = (
    AUCTION_STARTED,
    PLAYER_SELECTED,
    BID_PLACED,
    PLAYER_SOLD,
    PLAYER_UNSOLD,
    TEAM_UPDATED,
)

# Client -> server
JOIN_AUCTION = "join:auction"
LEAVE_AUCTION = "leave:auction"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class AuctionStarted(_Payload):
    is_active: bool = Field(False, alias="isActive")


class PlayerSelected(_Payload):
    player: dict[str, Any]
    current_bid_price: int | float | None = Field(None, alias="currentBidPrice")


class BidPlaced(_Payload):
    current_bid_price: int | float = Field(alias="currentBidPrice")
    team_name: str | None = Field(None, alias="teamName")
    bid_amount: int | float | None = Field(None, alias="bidAmount")


class SoldPlayer(_Payload):
    name: str
    sold_price: int | float | None = Field(None, alias="soldPrice")


class SoldTeam(_Payload):
    id: str
    name: str
    remaining_amount: int | float | None = Field(None, alias="remainingAmount")
    player_count: int | None = Field(None, alias="playerCount")


class PlayerSold(_Payload):
    player: SoldPlayer
    team: SoldTeam


class UnsoldPlayer(_Payload):
    name: str


class PlayerUnsold(_Payload):
    player: UnsoldPlayer


class TeamUpdated(_Payload):
    team_id: str = Field(alias="teamId")
    remaining_amount: int | float | None = Field(None, alias="remainingAmount")
    player_count: int | None = Field(None, alias="playerCount")


PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    AUCTION_STARTED: AuctionStarted,
    PLAYER_SELECTED: PlayerSelected,
    BID_PLACED: BidPlaced,
    PLAYER_SOLD: PlayerSold,
    PLAYER_UNSOLD: PlayerUnsold,
    TEAM_UPDATED: TeamUpdated,
}


def parse_event(event: str, data: Any) -> BaseModel:
    """Validate an inbound payload. Raises pydantic.ValidationError or KeyError."""
    model = PAYLOAD_MODELS[event]
    return model.model_validate(data or {})
