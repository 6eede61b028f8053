"""
Canonical data models for normalized price data.

This module defines immutable data structures that represent clean, validated
price data after normalization from provider-specific payloads, and the
derived calendar cells projected from it.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from ..errors import MalformedDataError


@dataclass(frozen=True)
class PricePoint:
    """One daily price observation."""
    timestamp: int      # epoch milliseconds
    price: Decimal


@dataclass(frozen=True)
class PriceSeries:
    """Chronologically ordered price points, one per calendar day."""
    points: tuple[PricePoint, ...] = ()

    def __post_init__(self):
        """Coerce to a tuple and reject out-of-order points."""
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))

        for prev, curr in zip(self.points, self.points[1:]):
            if curr.timestamp < prev.timestamp:
                raise MalformedDataError(
                    "Price series timestamps must be non-decreasing",
                    context={"previous": prev.timestamp, "current": curr.timestamp}
                )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    @property
    def prices(self) -> list[Decimal]:
        return [point.price for point in self.points]

    @property
    def first(self) -> Optional[PricePoint]:
        return self.points[0] if self.points else None

    @property
    def last(self) -> Optional[PricePoint]:
        return self.points[-1] if self.points else None

    def tail(self, count: int) -> "PriceSeries":
        """Trailing ``count`` points, or all of them when fewer exist."""
        if count <= 0:
            return PriceSeries()
        return PriceSeries(self.points[-count:])


@dataclass(frozen=True)
class CurrentPrice:
    """Point-in-time price snapshot.

    ``change_24h`` is None when the provider omitted it, which is not the
    same thing as a zero change.
    """
    price: Decimal
    change_24h: Optional[Decimal] = None

    @property
    def has_change(self) -> bool:
        return self.change_24h is not None


@dataclass(frozen=True)
class CacheEntry:
    """Cached long-window series with the wall-clock time it was fetched."""
    series: PriceSeries
    fetched_at: int     # epoch milliseconds


@dataclass(frozen=True)
class Instrument:
    """Static configuration for a tracked asset."""
    id: str
    trading_symbol: str
    display_name: str
    color_hint: str


class Direction(Enum):
    """Day-over-day price direction of a calendar cell."""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class CalendarCell:
    """One day of a calendar grid."""
    date: date
    price: Optional[Decimal]
    direction: Direction = Direction.NEUTRAL
    change_percent: Optional[Decimal] = None
    is_today: bool = False
    is_padding: bool = False
    timestamp: Optional[int] = None


@dataclass(frozen=True)
class CalendarProjection:
    """Projected calendar cells plus aggregate up/down tallies."""
    cells: tuple[CalendarCell, ...] = ()
    up_days: int = 0
    down_days: int = 0
    start_day_of_week: int = 0      # Sunday == 0

    @property
    def real_cells(self) -> list[CalendarCell]:
        return [cell for cell in self.cells if not cell.is_padding]

    @property
    def today_cell(self) -> Optional[CalendarCell]:
        return next((cell for cell in self.cells if cell.is_today), None)

