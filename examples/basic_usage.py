#!/usr/bin/env python3
"""
Basic Usage Example - Price Calendar

Runs the refresh scheduler against the live CoinGecko API and prints each
snapshot as text. It shows how to:
- Configure logging
- Build a scheduler with a persistent store
- Render week and year calendars through a render target

Run: python examples/basic_usage.py [instrument_id]
Stop with Ctrl+C.
"""

import asyncio
import sys
from pathlib import Path

from price_calendar.app import create_scheduler
from price_calendar.calendar import format_compact_price, format_percentage, format_price
from price_calendar.calendar.formatting import format_day_name
from price_calendar.data.models import Direction
from price_calendar.logging import configure_logging
from price_calendar.persistence.kv_store import SqliteKeyValueStore
from price_calendar.utils.time import format_last_updated

ARROWS = {Direction.UP: "▲", Direction.DOWN: "▼", Direction.NEUTRAL: "·"}


class ConsoleRenderTarget:
    """Prints snapshots to stdout."""

    def render(self, snapshot):
        current = snapshot.current_price
        change = format_percentage(current.change_24h) if current.has_change else "N/A"
        print(f"\n{snapshot.instrument.display_name}: {format_price(current.price)} ({change} 24h)")

        print("Last 7 days:")
        for cell in snapshot.week.cells:
            marker = " (today)" if cell.is_today else ""
            print(f"  {format_day_name(cell)} {cell.date}  {ARROWS[cell.direction]} "
                  f"{format_compact_price(cell.price)}{marker}")

        year = snapshot.year
        print(f"Last year: {year.up_days} up days, {year.down_days} down days")
        print(format_last_updated(snapshot.last_updated))

    def render_error(self, message):
        print(f"\n⚠️  {message}")


async def main():
    configure_logging(level="INFO")

    db_path = Path.home() / ".price_calendar.db"
    scheduler = create_scheduler(
        store=SqliteKeyValueStore(str(db_path)),
        render_target=ConsoleRenderTarget(),
    )

    if len(sys.argv) > 1:
        await scheduler.select_instrument(sys.argv[1])

    await scheduler.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nStopped")
