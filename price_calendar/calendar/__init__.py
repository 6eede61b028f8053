"""
Calendar projection module.

Converts canonical price series into week and year grids of calendar cells
and formats their labels.
"""
from .formatting import format_compact_price, format_percentage, format_price, format_tooltip
from .projector import CalendarProjector, classify_change

__all__ = [
    "CalendarProjector",
    "classify_change",
    "format_compact_price",
    "format_percentage",
    "format_price",
    "format_tooltip",
]
