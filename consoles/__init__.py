"""
consoles/ - Operator-facing building blocks for BiddingCrease

Compose these with the core client however you want.

    from consoles.admin import AuctionConsole
    from consoles.viewer import LiveViewer
"""

from consoles.admin import (
    AuctionConsole,
    BidCheck,
    BidRejected,
    ConsoleError,
    is_unsold,
)
from consoles.viewer import (
    LiveViewer,
    Notification,
    pick_default_tournament,
)

__all__ = [
    "AuctionConsole",
    "BidCheck",
    "BidRejected",
    "ConsoleError",
    "is_unsold",
    "LiveViewer",
    "Notification",
    "pick_default_tournament",
]
