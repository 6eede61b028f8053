"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Any, Callable, Dict

import httpx
import pytest

from price_calendar.config.defaults import RetryParams
from price_calendar.data.models import Instrument, PricePoint, PriceSeries
from price_calendar.transport.http_client import HttpRetryClient

DAY_MS = 86_400_000

# 2024-01-03 00:00:00 UTC, a Wednesday
WEDNESDAY_MS = 1704240000000


@pytest.fixture
def day_ms() -> int:
    return DAY_MS


@pytest.fixture
def wednesday_ms() -> int:
    return WEDNESDAY_MS


@pytest.fixture
def series_factory() -> Callable[..., PriceSeries]:
    """Build a daily PriceSeries from a list of prices."""
    def build(prices, start_ms: int = WEDNESDAY_MS) -> PriceSeries:
        return PriceSeries(tuple(
            PricePoint(timestamp=start_ms + i * DAY_MS, price=Decimal(str(price)))
            for i, price in enumerate(prices)
        ))
    return build


@pytest.fixture
def bitcoin() -> Instrument:
    return Instrument(
        id="bitcoin",
        trading_symbol="BTCUSDT",
        display_name="Bitcoin",
        color_hint="#f7931a",
    )


@pytest.fixture
def ethereum() -> Instrument:
    return Instrument(
        id="ethereum",
        trading_symbol="ETHUSDT",
        display_name="Ethereum",
        color_hint="#627eea",
    )


@pytest.fixture
def sample_market_chart() -> Dict[str, Any]:
    """Market-chart payload with three daily points."""
    return {
        "prices": [
            [WEDNESDAY_MS, 100],
            [WEDNESDAY_MS + DAY_MS, 110.0],
            [WEDNESDAY_MS + 2 * DAY_MS, "99"],
        ],
        "market_caps": [],
        "total_volumes": [],
    }


@pytest.fixture
def sample_klines() -> list:
    """Kline payload with two daily candles, oldest first."""
    return [
        [WEDNESDAY_MS, "42283.58", "44184.10", "42180.77", "44179.55", "27174.29",
         WEDNESDAY_MS + DAY_MS - 1, "1169995728.7", 1113953, "13859.1", "597068898.9", "0"],
        [WEDNESDAY_MS + DAY_MS, "44179.55", "44300.00", "43400.00", "44946.91", "30000.00",
         WEDNESDAY_MS + 2 * DAY_MS - 1, "1300000000.0", 1200000, "15000.0", "650000000.0", "0"],
    ]


@pytest.fixture
def sleep_recorder():
    """Async sleep replacement that records requested delays in seconds."""
    class SleepRecorder:
        def __init__(self):
            self.delays = []

        async def __call__(self, seconds: float) -> None:
            self.delays.append(seconds)

    return SleepRecorder()


@pytest.fixture
def client_factory(sleep_recorder):
    """Build an HttpRetryClient whose requests are answered by ``handler``."""
    def build(handler, retry: RetryParams = None) -> HttpRetryClient:
        transport = httpx.MockTransport(handler)
        return HttpRetryClient(
            retry=retry or RetryParams(),
            client_factory=lambda: httpx.AsyncClient(transport=transport),
            sleep=sleep_recorder,
        )
    return build
