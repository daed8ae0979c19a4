"""
BiddingCrease - client toolkit for live cricket-team auctions

Talks to a BiddingCrease auction server: REST for commands and records,
Socket.IO for the live auction room.
"""

__version__ = "0.1.0"

from .errors import (
    BiddingCreaseError,
    APIError,
    SocketConnectionError,
)

from .pricing import (
    BidIncrement,
    bands_from_tournament,
    validate_bands,
    default_bid_increment,
    calculate_bid_increment,
    get_next_bid_amount,
    format_currency,
)

from .state import (
    AuctionPhase,
    AuctionState,
)

from .api import AuctionAPI
from .realtime import SocketConnection
from .bridge import AuctionSocketBridge

__all__ = [
    # Version
    "__version__",
    # Errors
    "BiddingCreaseError",
    "APIError",
    "SocketConnectionError",
    # Pricing
    "BidIncrement",
    "bands_from_tournament",
    "validate_bands",
    "default_bid_increment",
    "calculate_bid_increment",
    "get_next_bid_amount",
    "format_currency",
    # Live state
    "AuctionPhase",
    "AuctionState",
    "AuctionSocketBridge",
    # Transport
    "AuctionAPI",
    "SocketConnection",
]
