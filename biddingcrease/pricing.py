"""
biddingcrease/pricing.py - Bid increment bands and price formatting.

Pure utility functions, no I/O. The server validates every bid; these only
decide what the console suggests as the next bid.

A tournament configures its step sizes as price bands:

    "bidIncrements": [
        {"minPrice": 1,    "maxPrice": 1000, "increment": 100},
        {"minPrice": 1001, "maxPrice": null, "increment": 500},
    ]

The last band usually has no upper bound. Tournaments without bands (or
prices that fall in a gap) use the fixed default schedule.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

logger = logging.getLogger(__name__)

Number = int | float


def _number(value: Any, name: str) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {value!r}")
    return value


# ============================================================================
# Data types
# ============================================================================


@dataclass(frozen=True)
class BidIncrement:
    """One configured price band. ``max_price=None`` means unbounded."""

    min_price: Number
    max_price: Number | None
    increment: Number

    def contains(self, price: Number) -> bool:
        if price < self.min_price:
            return False
        return self.max_price is None or price <= self.max_price

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BidIncrement":
        """Build from the server's camelCase band dict.

        Raises KeyError or TypeError when a bound or the increment is missing,
        null or not a number.
        """
        min_price = _number(data["minPrice"], "minPrice")
        increment = _number(data["increment"], "increment")
        max_price = data.get("maxPrice")
        if max_price is not None:
            max_price = _number(max_price, "maxPrice")
        return cls(min_price=min_price, max_price=max_price, increment=increment)

    def to_dict(self) -> dict[str, Any]:
        return {
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "increment": self.increment,
        }


# ============================================================================
# Band parsing
# ============================================================================


def bands_from_tournament(
    tournament: dict[str, Any] | Iterable[BidIncrement | dict] | None,
) -> list[BidIncrement]:
    """Extract price bands from a tournament record.

    Accepts a tournament dict (reads ``bidIncrements``), an iterable of bands
    (``BidIncrement`` or wire dicts), or None. Malformed entries are skipped.
    """
    if tournament is None:
        return []

    if isinstance(tournament, dict):
        raw = tournament.get("bidIncrements") or []
    else:
        raw = tournament

    bands = []
    for entry in raw:
        if isinstance(entry, BidIncrement):
            bands.append(entry)
            continue
        try:
            bands.append(BidIncrement.from_dict(entry))
        except (KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed bid band {entry!r}: {e}")
    return bands


def validate_bands(bands: Iterable[BidIncrement]) -> list[str]:
    """Describe gaps, overlaps and other oddities in a band list.

    Pricing never enforces any of these, so an empty list is advisory only.
    Prices are whole rupees, so bands ending at 1000 and starting at 1001
    are treated as contiguous.
    """
    ordered = sorted(bands, key=lambda b: b.min_price)
    problems = []

    for band in ordered:
        if band.increment <= 0:
            problems.append(
                f"Band starting at {band.min_price} has non-positive increment {band.increment}"
            )
        if band.max_price is not None and band.max_price < band.min_price:
            problems.append(
                f"Band {band.min_price}-{band.max_price} ends before it starts"
            )

    for prev, cur in zip(ordered, ordered[1:]):
        if prev.max_price is None:
            problems.append(
                f"Unbounded band starting at {prev.min_price} is followed by "
                f"band starting at {cur.min_price}"
            )
            continue
        if cur.min_price <= prev.max_price:
            problems.append(
                f"Bands {prev.min_price}-{prev.max_price} and "
                f"{cur.min_price}-{_fmt_max(cur.max_price)} overlap"
            )
        elif cur.min_price > prev.max_price + 1:
            problems.append(
                f"Gap between {prev.max_price} and {cur.min_price}"
            )

    if ordered and ordered[-1].max_price is not None:
        problems.append(
            f"No unbounded band: prices above {ordered[-1].max_price} use the default schedule"
        )

    return problems


def _fmt_max(max_price: Number | None) -> str:
    return "∞" if max_price is None else str(max_price)


# ============================================================================
# Increment calculation
# ============================================================================


def default_bid_increment(current_price: Number) -> int:
    """Fixed schedule used when a tournament has no matching band."""
    if 1 <= current_price <= 1000:
        return 100
    if 1000 < current_price <= 5000:
        return 200
    if current_price > 5000:
        return 500
    return 100


def calculate_bid_increment(current_price: Number, tournament=None) -> Number:
    """Step size for the next bid at ``current_price``.

    Bands are sorted by min price (stable, so ties keep config order) and the
    first one containing the price wins.
    """
    bands = sorted(bands_from_tournament(tournament), key=lambda b: b.min_price)
    for band in bands:
        if band.contains(current_price):
            return band.increment
    return default_bid_increment(current_price)


def get_next_bid_amount(current_price: Number, tournament=None) -> Number:
    """Current price plus the increment that applies at that price."""
    return current_price + calculate_bid_increment(current_price, tournament)


# ============================================================================
# Formatting
# ============================================================================


def _group_indian(digits: str) -> str:
    """1234567 -> 12,34,567 (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Number | None) -> str:
    """Render an amount as whole rupees with Indian digit grouping."""
    if amount is None:
        return "N/A"
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(int(rounded))))}"
