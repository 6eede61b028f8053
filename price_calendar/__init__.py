"""
Price Calendar - cryptocurrency price tracking core

Polls a public market-data API for current and historical prices, caches
the year-long daily series locally, and projects prices into week and year
calendar grids with day-over-day direction for an external renderer.
"""

__version__ = "0.1.0"
__author__ = "Price Calendar Team"
