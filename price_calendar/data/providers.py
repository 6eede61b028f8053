"""
Upstream market-data providers.

A provider knows its endpoint layout and which registered payload shapes its
responses use. Fetching goes through HttpRetryClient and normalization goes
through PriceSeriesNormalizer, so nothing past this module depends on which
provider is configured.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config.defaults import ApiParams
from .models import CurrentPrice, Instrument, PriceSeries
from .normalizer import PriceSeriesNormalizer


class MarketDataProvider(ABC):
    """Base class for market-data providers."""

    name: str = ""
    series_shape: str = ""
    current_shape: str = ""

    def __init__(self, base_url: str, vs_currency: str = "usd",
                 normalizer: Optional[PriceSeriesNormalizer] = None):
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.normalizer = normalizer or PriceSeriesNormalizer(vs_currency=vs_currency)

    @abstractmethod
    def series_request(self, instrument: Instrument, days: int) -> tuple[str, dict[str, Any]]:
        """URL and query parameters for a daily history of ``days`` days."""
        pass

    @abstractmethod
    def current_request(self, instrument: Instrument) -> tuple[str, dict[str, Any]]:
        """URL and query parameters for the current price snapshot."""
        pass

    async def fetch_series(self, client, instrument: Instrument, days: int) -> PriceSeries:
        """Fetch and normalize the trailing ``days`` of daily prices."""
        url, params = self.series_request(instrument, days)
        payload = await client.fetch_json(url, params=params)
        return self.normalizer.to_price_series(payload, self.series_shape)

    async def fetch_current(self, client, instrument: Instrument) -> CurrentPrice:
        """Fetch and normalize the current price and 24h change."""
        url, params = self.current_request(instrument)
        payload = await client.fetch_json(url, params=params)
        return self.normalizer.to_current_price(payload, self.current_shape, instrument)


class CoinGeckoProvider(MarketDataProvider):
    """CoinGecko public API, addressed by coin id."""

    name = "coingecko"
    series_shape = "market_chart"
    current_shape = "simple_price"

    def series_request(self, instrument: Instrument, days: int) -> tuple[str, dict[str, Any]]:
        return (
            f"{self.base_url}/coins/{instrument.id}/market_chart",
            {"vs_currency": self.vs_currency, "days": days, "interval": "daily"},
        )

    def current_request(self, instrument: Instrument) -> tuple[str, dict[str, Any]]:
        return (
            f"{self.base_url}/simple/price",
            {
                "ids": instrument.id,
                "vs_currencies": self.vs_currency,
                "include_24hr_change": "true",
            },
        )


class BinanceProvider(MarketDataProvider):
    """Binance spot REST API, addressed by trading symbol."""

    name = "binance"
    series_shape = "klines"
    current_shape = "ticker_24hr"

    def series_request(self, instrument: Instrument, days: int) -> tuple[str, dict[str, Any]]:
        return (
            f"{self.base_url}/api/v3/klines",
            {"symbol": instrument.trading_symbol.upper(), "interval": "1d", "limit": days},
        )

    def current_request(self, instrument: Instrument) -> tuple[str, dict[str, Any]]:
        return (
            f"{self.base_url}/api/v3/ticker/24hr",
            {"symbol": instrument.trading_symbol.upper()},
        )


PROVIDERS: dict[str, type[MarketDataProvider]] = {
    CoinGeckoProvider.name: CoinGeckoProvider,
    BinanceProvider.name: BinanceProvider,
}


def create_provider(api: ApiParams) -> MarketDataProvider:
    """Build the provider selected by configuration."""
    provider_cls = PROVIDERS.get(api.provider)
    if provider_cls is None:
        raise ValueError(
            f"Unknown provider '{api.provider}'. Available: {', '.join(sorted(PROVIDERS))}"
        )
    return provider_cls(base_url=api.base_url, vs_currency=api.vs_currency)
