"""Label formatting for calendar cells and the current price header."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from ..data.models import CalendarCell

Number = Union[int, float, Decimal]

_CENTS = Decimal("0.01")
_TENTHS = Decimal("0.1")
_UNITS = Decimal("1")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_price(price: Number) -> str:
    """US-dollar price with thousands separators, e.g. ``$42,000.00``."""
    value = _to_decimal(price).quantize(_CENTS, rounding=ROUND_HALF_UP)
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_percentage(change: Number) -> str:
    """Signed percentage with two decimals, e.g. ``+1.23%``; zero counts as positive."""
    value = _to_decimal(change).quantize(_CENTS, rounding=ROUND_HALF_UP)
    # Small negative changes round to -0.00 and keep their minus sign
    sign = "" if value.is_signed() else "+"
    return f"{sign}{value:.2f}%"


def format_compact_price(price: Number) -> str:
    """
    Short price label for year-calendar cells.

    - price >= 100000: thousands, no decimal, "K" suffix (150000 -> "150K")
    - price >= 1000: thousands, one decimal, "K" suffix (42500 -> "42.5K")
    - otherwise: whole number, no suffix (800 -> "800")
    """
    value = _to_decimal(price)
    if value >= 100000:
        return f"{(value / 1000).quantize(_UNITS, rounding=ROUND_HALF_UP)}K"
    if value >= 1000:
        return f"{(value / 1000).quantize(_TENTHS, rounding=ROUND_HALF_UP)}K"
    return f"{value.quantize(_UNITS, rounding=ROUND_HALF_UP)}"


def format_day_name(cell: CalendarCell) -> str:
    return cell.date.strftime("%a")


def format_tooltip(cell: CalendarCell) -> str:
    """Hover text, e.g. ``Mon, Jan 1, 2024: $42,000.00 (+1.23%)``."""
    day = cell.date
    date_str = f"{day:%a}, {day:%b} {day.day}, {day.year}"
    if cell.price is None:
        return date_str

    change_str = format_percentage(cell.change_percent) if cell.change_percent is not None else "N/A"
    return f"{date_str}: {format_price(cell.price)} ({change_str})"
