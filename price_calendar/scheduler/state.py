"""Explicit application state shared by the refresh scheduler."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..data.models import CalendarProjection, CurrentPrice, Instrument


@dataclass(frozen=True)
class RefreshSnapshot:
    """Everything a render target needs after one successful refresh cycle."""
    instrument: Instrument
    current_price: CurrentPrice
    week: CalendarProjection
    year: CalendarProjection
    last_updated: datetime


@dataclass
class AppState:
    """
    Mutable application state.

    ``generation`` increases on every instrument switch. A cycle records the
    generation it started under and drops its result if the value changed
    by the time it finishes.
    """
    selected_instrument: Instrument
    generation: int = 0
    cycles_in_flight: int = 0
    snapshot: Optional[RefreshSnapshot] = None
    error_message: Optional[str] = None
    last_error_kind: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return self.cycles_in_flight > 0

    def select(self, instrument: Instrument) -> int:
        """Switch instrument and return the new generation."""
        self.selected_instrument = instrument
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def publish(self, snapshot: RefreshSnapshot) -> None:
        self.snapshot = snapshot
        self.error_message = None
        self.last_error_kind = None

    def fail(self, message: str, error_kind: str) -> None:
        # An error replaces whatever was shown before; no partial rendering
        self.snapshot = None
        self.error_message = message
        self.last_error_kind = error_kind
