"""
Tests for the refresh scheduler.

Covers successful cycles, year-series caching, the error state, the in-flight
guard for timer ticks, and discarding of cycles superseded by an instrument
switch.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from price_calendar.calendar.projector import CalendarProjector
from price_calendar.config.defaults import CacheParams, SchedulerParams
from price_calendar.data.models import CurrentPrice, Direction
from price_calendar.data.providers import CoinGeckoProvider, MarketDataProvider
from price_calendar.errors import USER_FACING_ERROR_MESSAGE, HttpError
from price_calendar.persistence.kv_store import MemoryKeyValueStore
from price_calendar.persistence.selection import SELECTED_INSTRUMENT_KEY, InstrumentSelectionRepository
from price_calendar.persistence.windowed_cache import WindowedCache
from price_calendar.scheduler.refresh import RefreshScheduler

FIXED_NOW = datetime(2024, 1, 12, 9, 30, tzinfo=timezone.utc)
CACHE_NOW_MS = 1_705_000_000_000


class RecordingRenderTarget:
    def __init__(self):
        self.snapshots = []
        self.errors = []

    def render(self, snapshot):
        self.snapshots.append(snapshot)

    def render_error(self, message):
        self.errors.append(message)


class FakeClock:
    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now


class CoinGeckoStub:
    """MockTransport handler serving market_chart and simple/price."""

    def __init__(self, series_prices, current=None, status_overrides=None):
        self.series_prices = series_prices
        self.current = current or {"usd": 67187.33, "usd_24h_change": 3.63}
        self.status_overrides = status_overrides or {}
        self.requests = []

    def days_requested(self):
        return [
            int(r.url.params["days"]) for r in self.requests if r.url.path.endswith("/market_chart")
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for fragment, status in self.status_overrides.items():
            if fragment in path:
                return httpx.Response(status)

        if path.endswith("/simple/price"):
            coin = request.url.params["ids"]
            return httpx.Response(200, json={coin: self.current})

        if path.endswith("/market_chart"):
            days = int(request.url.params["days"])
            start = 1704240000000
            prices = self.series_prices[-(days + 1):]
            rows = [[start + i * 86_400_000, p] for i, p in enumerate(prices)]
            return httpx.Response(200, json={"prices": rows})

        return httpx.Response(404)


@pytest.fixture
def render_target() -> RecordingRenderTarget:
    return RecordingRenderTarget()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cache_clock() -> FakeClock:
    return FakeClock(CACHE_NOW_MS)


@pytest.fixture
def instruments(bitcoin, ethereum):
    return {"bitcoin": bitcoin, "ethereum": ethereum}


@pytest.fixture
def scheduler_factory(client_factory, store, cache_clock, render_target, instruments):
    def build(handler=None, provider=None, params=None) -> RefreshScheduler:
        return RefreshScheduler(
            client=client_factory(handler or CoinGeckoStub([100])),
            provider=provider or CoinGeckoProvider("https://api.coingecko.test/api/v3"),
            cache=WindowedCache(store, params=CacheParams(), clock=cache_clock),
            projector=CalendarProjector(tz=timezone.utc),
            instruments=instruments,
            selection=InstrumentSelectionRepository(store, "bitcoin", known_instruments=instruments),
            render_target=render_target,
            params=params,
            now=lambda: FIXED_NOW,
        )
    return build


class TestRefreshCycle:

    def test_successful_cycle_publishes_snapshot(self, scheduler_factory, render_target):
        stub = CoinGeckoStub([100, 110, 99, 105, 104, 120, 121, 122, 123])
        scheduler = scheduler_factory(stub)

        snapshot = asyncio.run(scheduler.refresh_cycle("startup"))

        assert snapshot is not None
        assert render_target.snapshots == [snapshot]
        assert scheduler.state.snapshot is snapshot
        assert scheduler.state.error_message is None

        assert snapshot.instrument.id == "bitcoin"
        assert snapshot.current_price == CurrentPrice(Decimal("67187.33"), Decimal("3.63"))
        assert snapshot.last_updated == FIXED_NOW

        # Week: eight points served, last seven shown
        assert len(snapshot.week.cells) == 7
        assert snapshot.week.cells[0].direction is Direction.NEUTRAL
        assert not any(c.is_padding for c in snapshot.week.cells)

        # Year: all nine points, padded from Wednesday
        assert snapshot.year.start_day_of_week == 3
        assert len(snapshot.year.real_cells) == 9

    def test_year_series_served_from_cache(self, scheduler_factory, store):
        stub = CoinGeckoStub([1, 2, 3])
        scheduler = scheduler_factory(stub)

        asyncio.run(scheduler.refresh_cycle())
        asyncio.run(scheduler.refresh_cycle())

        # Week fetched every cycle, year only once
        assert sorted(stub.days_requested()) == [7, 7, 365]
        assert store.get("bitcoin:series_365d") is not None

    def test_stale_cache_refetched(self, scheduler_factory, cache_clock):
        stub = CoinGeckoStub([1, 2, 3])
        scheduler = scheduler_factory(stub)

        asyncio.run(scheduler.refresh_cycle())
        cache_clock.now += 3_600_000 + 1
        asyncio.run(scheduler.refresh_cycle())

        assert stub.days_requested().count(365) == 2

    def test_http_error_replaces_state_with_error(self, scheduler_factory, render_target):
        stub = CoinGeckoStub([1, 2, 3])
        scheduler = scheduler_factory(stub)
        asyncio.run(scheduler.refresh_cycle())
        assert scheduler.state.snapshot is not None

        stub.status_overrides = {"/simple/price": 500}
        result = asyncio.run(scheduler.refresh_cycle())

        assert result is None
        assert scheduler.state.snapshot is None
        assert scheduler.state.error_message == USER_FACING_ERROR_MESSAGE
        assert scheduler.state.last_error_kind == "HttpError"
        assert render_target.errors == [USER_FACING_ERROR_MESSAGE]
        assert len(render_target.snapshots) == 1

    def test_malformed_payload_is_error_state(self, scheduler_factory, render_target):
        stub = CoinGeckoStub([1, 2, 3], current={"eur": 1})
        scheduler = scheduler_factory(stub)

        asyncio.run(scheduler.refresh_cycle())

        assert scheduler.state.last_error_kind == "MissingDataError"
        assert render_target.errors == [USER_FACING_ERROR_MESSAGE]
        assert render_target.snapshots == []

    def test_out_of_range_timestamp_is_error_state(self, scheduler_factory, render_target):
        def handler(request):
            if request.url.path.endswith("/simple/price"):
                return httpx.Response(200, json={"bitcoin": {"usd": 1}})
            return httpx.Response(200, json={"prices": [[99999999999999999, 1]]})

        scheduler = scheduler_factory(handler)

        result = asyncio.run(scheduler.refresh_cycle("startup"))

        assert result is None
        assert scheduler.state.last_error_kind == "MalformedDataError"
        assert render_target.errors == [USER_FACING_ERROR_MESSAGE]

    def test_corrupt_cached_year_refetched(self, scheduler_factory, store, render_target):
        store.set(
            "bitcoin:series_365d",
            '{"series": [[99999999999999999, "1"]], "fetchedAt": 9999999999999}'
        )
        stub = CoinGeckoStub([1, 2, 3])
        scheduler = scheduler_factory(stub)

        snapshot = asyncio.run(scheduler.refresh_cycle("startup"))

        assert snapshot is not None
        assert stub.days_requested().count(365) == 1
        assert render_target.errors == []
        assert len(snapshot.year.real_cells) == 3

    def test_rate_limit_is_error_state(self, scheduler_factory, render_target, sleep_recorder):
        stub = CoinGeckoStub([1, 2, 3], status_overrides={"/market_chart": 429})
        scheduler = scheduler_factory(stub)

        asyncio.run(scheduler.refresh_cycle())

        assert scheduler.state.last_error_kind == "RateLimitedError"
        assert render_target.errors == [USER_FACING_ERROR_MESSAGE]

    def test_successful_cycle_clears_error(self, scheduler_factory):
        stub = CoinGeckoStub([1, 2, 3], status_overrides={"/simple/price": 503})
        scheduler = scheduler_factory(stub)
        asyncio.run(scheduler.refresh_cycle())
        assert scheduler.state.error_message is not None

        stub.status_overrides = {}
        asyncio.run(scheduler.refresh_cycle())

        assert scheduler.state.error_message is None
        assert scheduler.state.last_error_kind is None
        assert scheduler.state.snapshot is not None


class GatedProvider(MarketDataProvider):
    """Provider whose responses wait for a per-instrument gate."""

    name = "gated"

    def __init__(self, gates, series):
        super().__init__("https://unused.test")
        self.gates = gates
        self.series = series

    def series_request(self, instrument, days):
        return "", {}

    def current_request(self, instrument):
        return "", {}

    async def fetch_series(self, client, instrument, days):
        await self.gates[instrument.id].wait()
        return self.series

    async def fetch_current(self, client, instrument):
        await self.gates[instrument.id].wait()
        return CurrentPrice(price=Decimal("1"))


class TestConcurrencyGuards:

    def test_switch_supersedes_in_flight_cycle(self, scheduler_factory, render_target, store, series_factory):
        async def scenario():
            gates = {"bitcoin": asyncio.Event(), "ethereum": asyncio.Event()}
            scheduler = scheduler_factory(provider=GatedProvider(gates, series_factory([1, 2])))

            old = asyncio.ensure_future(scheduler.refresh_cycle("startup"))
            await asyncio.sleep(0)
            assert scheduler.state.in_flight

            new = asyncio.ensure_future(scheduler.select_instrument("ethereum"))
            await asyncio.sleep(0)
            gates["ethereum"].set()
            new_snapshot = await new

            gates["bitcoin"].set()
            old_snapshot = await old
            return scheduler, old_snapshot, new_snapshot

        scheduler, old_snapshot, new_snapshot = asyncio.run(scenario())

        assert old_snapshot is None
        assert new_snapshot.instrument.id == "ethereum"
        assert [s.instrument.id for s in render_target.snapshots] == ["ethereum"]
        assert scheduler.state.snapshot.instrument.id == "ethereum"
        assert scheduler.state.generation == 1
        assert not scheduler.state.in_flight
        assert store.get(SELECTED_INSTRUMENT_KEY) == "ethereum"

    def test_timer_tick_skipped_while_in_flight(self, scheduler_factory, render_target, series_factory):
        async def scenario():
            gates = {"bitcoin": asyncio.Event()}
            scheduler = scheduler_factory(provider=GatedProvider(gates, series_factory([1, 2])))

            running = asyncio.ensure_future(scheduler.refresh_cycle("startup"))
            await asyncio.sleep(0)
            skipped = await scheduler.tick()

            gates["bitcoin"].set()
            await running
            after = await scheduler.tick()
            return skipped, after

        skipped, after = asyncio.run(scenario())

        assert skipped is None
        assert after is not None
        assert len(render_target.snapshots) == 2

    def test_failure_of_superseded_cycle_not_rendered(self, scheduler_factory, render_target, series_factory):
        class FailingBitcoinProvider(GatedProvider):
            async def fetch_current(self, client, instrument):
                await self.gates[instrument.id].wait()
                if instrument.id == "bitcoin":
                    raise HttpError(502)
                return CurrentPrice(price=Decimal("1"))

        async def scenario():
            gates = {"bitcoin": asyncio.Event(), "ethereum": asyncio.Event()}
            scheduler = scheduler_factory(provider=FailingBitcoinProvider(gates, series_factory([1])))

            old = asyncio.ensure_future(scheduler.refresh_cycle())
            await asyncio.sleep(0)
            gates["ethereum"].set()
            await scheduler.select_instrument("ethereum")
            gates["bitcoin"].set()
            await old
            return scheduler

        scheduler = asyncio.run(scenario())

        assert render_target.errors == []
        assert scheduler.state.error_message is None
        assert scheduler.state.snapshot.instrument.id == "ethereum"

    def test_unknown_instrument_rejected(self, scheduler_factory):
        scheduler = scheduler_factory()

        with pytest.raises(ValueError, match="Unknown instrument 'monero'"):
            asyncio.run(scheduler.select_instrument("monero"))

        assert scheduler.state.generation == 0

    def test_initial_selection_loaded_from_store(self, scheduler_factory, store):
        store.set(SELECTED_INSTRUMENT_KEY, "ethereum")
        scheduler = scheduler_factory()
        assert scheduler.state.selected_instrument.id == "ethereum"


class TestRunLoop:

    def test_run_refreshes_at_startup_and_on_interval(self, scheduler_factory, render_target):
        stub = CoinGeckoStub([1, 2, 3])
        scheduler = scheduler_factory(stub, params=SchedulerParams(refresh_interval_seconds=0.01))

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.ensure_future(scheduler.run(stop))
            await asyncio.sleep(0.1)
            stop.set()
            await task

        asyncio.run(scenario())

        assert len(render_target.snapshots) >= 2
        assert stub.days_requested().count(365) == 1

    def test_run_stops_immediately_when_event_set(self, scheduler_factory, render_target):
        scheduler = scheduler_factory(CoinGeckoStub([1, 2]))

        async def scenario():
            stop = asyncio.Event()
            stop.set()
            await scheduler.run(stop)

        asyncio.run(scenario())

        assert len(render_target.snapshots) == 1
