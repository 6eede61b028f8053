"""Tests for provider request building and provider selection."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from price_calendar.config.defaults import ApiParams
from price_calendar.data.providers import BinanceProvider, CoinGeckoProvider, create_provider


class TestRequests:

    def test_coingecko_requests(self, bitcoin):
        provider = CoinGeckoProvider("https://api.coingecko.com/api/v3/")

        url, params = provider.series_request(bitcoin, 365)
        assert url == "https://api.coingecko.com/api/v3/coins/bitcoin/market_chart"
        assert params == {"vs_currency": "usd", "days": 365, "interval": "daily"}

        url, params = provider.current_request(bitcoin)
        assert url == "https://api.coingecko.com/api/v3/simple/price"
        assert params == {"ids": "bitcoin", "vs_currencies": "usd", "include_24hr_change": "true"}

    def test_binance_requests_use_trading_symbol(self, ethereum):
        provider = BinanceProvider("https://api.binance.com")

        url, params = provider.series_request(ethereum, 7)
        assert url == "https://api.binance.com/api/v3/klines"
        assert params == {"symbol": "ETHUSDT", "interval": "1d", "limit": 7}

        assert provider.current_request(ethereum) == (
            "https://api.binance.com/api/v3/ticker/24hr", {"symbol": "ETHUSDT"}
        )


class TestFetch:

    def test_fetch_series_normalizes(self, bitcoin, client_factory, sample_market_chart):
        client = client_factory(lambda request: httpx.Response(200, json=sample_market_chart))
        provider = CoinGeckoProvider("https://api.coingecko.test/api/v3")

        series = asyncio.run(provider.fetch_series(client, bitcoin, 3))

        assert series.prices == [Decimal("100"), Decimal("110.0"), Decimal("99")]

    def test_fetch_current_normalizes(self, bitcoin, client_factory):
        payload = {"bitcoin": {"usd": 67187.33}}
        client = client_factory(lambda request: httpx.Response(200, json=payload))
        provider = CoinGeckoProvider("https://api.coingecko.test/api/v3")

        current = asyncio.run(provider.fetch_current(client, bitcoin))

        assert current.price == Decimal("67187.33")
        assert not current.has_change


class TestCreateProvider:

    def test_selects_by_name(self):
        assert isinstance(create_provider(ApiParams()), CoinGeckoProvider)

        binance = create_provider(ApiParams(provider="binance", base_url="https://api.binance.com"))
        assert isinstance(binance, BinanceProvider)
        assert binance.normalizer.vs_currency == "usd"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider 'kraken'"):
            create_provider(ApiParams(provider="kraken"))
