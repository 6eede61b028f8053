"""
Calendar projection of a canonical price series.

Turns the trailing window of a PriceSeries into dated calendar cells, each
classified against the previous in-window day, and tallies up/down days.
"""

from datetime import date, timedelta, tzinfo
from decimal import Decimal
from typing import Optional

import structlog

from ..config.defaults import WindowParams
from ..data.models import CalendarCell, CalendarProjection, Direction, PriceSeries
from ..utils.time import local_date, local_today, sunday_based_weekday

logger = structlog.get_logger(__name__)

_HUNDRED = Decimal(100)


def classify_change(price: Decimal, previous: Optional[Decimal]) -> tuple[Direction, Optional[Decimal]]:
    """
    Day-over-day direction and percentage change.

    Without a usable previous price the day is NEUTRAL with no change. This
    marks the window boundary, not a real zero-change day.
    """
    if previous is None or previous == 0:
        return Direction.NEUTRAL, None

    change_percent = (price - previous) / previous * _HUNDRED
    direction = Direction.UP if change_percent >= 0 else Direction.DOWN
    return direction, change_percent


class CalendarProjector:
    """Projects price series into week and year calendar grids."""

    def __init__(self, window: Optional[WindowParams] = None, tz: Optional[tzinfo] = None):
        """
        Args:
            window: Window sizes; defaults to 7 and 365 days
            tz: Timezone for calendar dates; None means the system local zone
        """
        self.window = window or WindowParams()
        self.tz = tz

    def project_week(self, series: PriceSeries, today: Optional[date] = None) -> CalendarProjection:
        """Cells for the trailing week, no padding."""
        return self._project(series, self.window.week_days, today, pad_to_weekday=False)

    def project_year(self, series: PriceSeries, today: Optional[date] = None) -> CalendarProjection:
        """Cells for the trailing year, padded so the first real cell sits in its weekday column."""
        return self._project(series, self.window.year_days, today, pad_to_weekday=True)

    def _project(
        self,
        series: PriceSeries,
        days: int,
        today: Optional[date],
        pad_to_weekday: bool
    ) -> CalendarProjection:
        window = series.tail(days)
        if not len(window):
            return CalendarProjection()

        if today is None:
            today = local_today(self.tz)

        cells = []
        up_days = 0
        down_days = 0
        previous_price = None

        for point in window:
            direction, change_percent = classify_change(point.price, previous_price)
            cell_date = local_date(point.timestamp, self.tz)

            cells.append(CalendarCell(
                date=cell_date,
                price=point.price,
                direction=direction,
                change_percent=change_percent,
                is_today=cell_date == today,
                timestamp=point.timestamp,
            ))

            if direction is Direction.UP:
                up_days += 1
            elif direction is Direction.DOWN:
                down_days += 1

            previous_price = point.price

        start_day_of_week = 0
        if pad_to_weekday:
            first_date = cells[0].date
            start_day_of_week = sunday_based_weekday(first_date)
            padding = [
                CalendarCell(
                    date=first_date - timedelta(days=offset),
                    price=None,
                    is_padding=True,
                )
                for offset in range(start_day_of_week, 0, -1)
            ]
            cells = padding + cells

        logger.debug(
            "Projected calendar",
            window_days=days,
            cells=len(cells),
            up_days=up_days,
            down_days=down_days,
            start_day_of_week=start_day_of_week
        )

        return CalendarProjection(
            cells=tuple(cells),
            up_days=up_days,
            down_days=down_days,
            start_day_of_week=start_day_of_week,
        )
