"""
Periodic refresh of current price, week series and year series.

Coordinates the HTTP client, provider normalization, the windowed cache and
the calendar projector, and publishes the result to a render target.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, Protocol

from ..calendar.projector import CalendarProjector
from ..config.defaults import SchedulerParams, WindowParams
from ..data.models import Instrument, PriceSeries
from ..data.providers import MarketDataProvider
from ..errors import (
    USER_FACING_ERROR_MESSAGE,
    DataQualityError,
    FetchError,
    PersistenceError,
)
from ..logging.config import get_refresh_logger, log_refresh_outcome
from ..persistence.selection import InstrumentSelectionRepository
from ..persistence.windowed_cache import WindowedCache
from ..transport.http_client import HttpRetryClient
from .state import AppState, RefreshSnapshot

logger = get_refresh_logger(__name__)

REFRESH_ERRORS = (FetchError, DataQualityError, PersistenceError)


class RenderTarget(Protocol):
    """Consumer of refresh results. Presentation lives entirely behind this."""

    def render(self, snapshot: RefreshSnapshot) -> None:
        ...

    def render_error(self, message: str) -> None:
        ...


def _local_now() -> datetime:
    return datetime.now().astimezone()


class RefreshScheduler:
    """
    Drives refresh cycles at startup, on a fixed interval and on instrument switch.

    A timer tick is skipped while any cycle is in flight. An instrument
    switch always starts a cycle immediately and supersedes older cycles
    through the generation counter.
    """

    def __init__(
        self,
        client: HttpRetryClient,
        provider: MarketDataProvider,
        cache: WindowedCache,
        projector: CalendarProjector,
        instruments: dict[str, Instrument],
        selection: InstrumentSelectionRepository,
        render_target: Optional[RenderTarget] = None,
        params: Optional[SchedulerParams] = None,
        window: Optional[WindowParams] = None,
        now: Callable[[], datetime] = _local_now,
    ):
        if not instruments:
            raise ValueError("At least one instrument must be configured")

        self.client = client
        self.provider = provider
        self.cache = cache
        self.projector = projector
        self.instruments = instruments
        self.selection = selection
        self.render_target = render_target
        self.params = params or SchedulerParams()
        self.window = window or projector.window
        self.now = now
        self.logger = logger

        initial_id = selection.load()
        initial = instruments.get(initial_id) or next(iter(instruments.values()))
        self.state = AppState(selected_instrument=initial)

        self._tasks: set[asyncio.Task] = set()

    async def refresh_cycle(self, trigger: str = "manual") -> Optional[RefreshSnapshot]:
        """
        Fetch everything for the selected instrument and publish the result.

        Returns:
            The published snapshot, or None if the cycle failed or was superseded
        """
        state = self.state
        generation = state.generation
        instrument = state.selected_instrument

        state.cycles_in_flight += 1
        try:
            results = await asyncio.gather(
                self.provider.fetch_current(self.client, instrument),
                self.provider.fetch_series(self.client, instrument, self.window.week_days),
                self._load_year_series(instrument),
                return_exceptions=True,
            )
        finally:
            state.cycles_in_flight -= 1

        failure = next((r for r in results if isinstance(r, BaseException)), None)
        if failure is not None and not isinstance(failure, REFRESH_ERRORS):
            raise failure

        if not state.is_current(generation):
            log_refresh_outcome(self.logger, instrument.id, generation, trigger, "discarded",
                                context={"current_generation": state.generation})
            return None

        if failure is not None:
            return self._fail(instrument, generation, trigger, failure)

        current_price, week_series, year_series = results

        snapshot = RefreshSnapshot(
            instrument=instrument,
            current_price=current_price,
            week=self.projector.project_week(week_series),
            year=self.projector.project_year(year_series),
            last_updated=self.now(),
        )
        state.publish(snapshot)

        log_refresh_outcome(
            self.logger, instrument.id, generation, trigger, "rendered",
            context={
                "week_cells": len(snapshot.week.cells),
                "year_up_days": snapshot.year.up_days,
                "year_down_days": snapshot.year.down_days,
            }
        )

        if self.render_target is not None:
            self.render_target.render(snapshot)
        return snapshot

    def _fail(self, instrument: Instrument, generation: int, trigger: str,
              error: BaseException) -> None:
        self.state.fail(USER_FACING_ERROR_MESSAGE, type(error).__name__)

        log_refresh_outcome(
            self.logger, instrument.id, generation, trigger, "failed",
            context={
                "error_type": type(error).__name__,
                "error": str(error),
                "status": getattr(error, "status", None),
                "url": getattr(error, "url", None),
            }
        )

        if self.render_target is not None:
            self.render_target.render_error(USER_FACING_ERROR_MESSAGE)
        return None

    async def _load_year_series(self, instrument: Instrument) -> PriceSeries:
        entry = self.cache.get_fresh(instrument.id)
        if entry is not None:
            self.logger.debug("Year series cache hit", instrument_id=instrument.id,
                              fetched_at=entry.fetched_at)
            return entry.series

        self.logger.debug("Year series cache miss", instrument_id=instrument.id)
        series = await self.provider.fetch_series(self.client, instrument, self.window.year_days)
        self.cache.put(instrument.id, series)
        return series

    async def tick(self) -> Optional[RefreshSnapshot]:
        """Timer-driven cycle; skipped if a cycle is already running."""
        if self.state.in_flight:
            self.logger.info(
                "Skipping timer refresh, cycle already in flight",
                instrument_id=self.state.selected_instrument.id,
                cycles_in_flight=self.state.cycles_in_flight
            )
            return None
        return await self.refresh_cycle("timer")

    async def select_instrument(self, instrument_id: str) -> Optional[RefreshSnapshot]:
        """Switch the tracked instrument and refresh immediately."""
        instrument = self.instruments.get(instrument_id)
        if instrument is None:
            raise ValueError(
                f"Unknown instrument '{instrument_id}'. Available: {', '.join(sorted(self.instruments))}"
            )

        generation = self.state.select(instrument)
        self.logger.info("Instrument selected", instrument_id=instrument_id, generation=generation)

        try:
            self.selection.save(instrument_id)
        except PersistenceError as e:
            self.logger.warning("Could not persist instrument selection",
                                instrument_id=instrument_id, error=str(e))

        return await self.refresh_cycle("switch")

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Refresh once at startup, then on every interval until ``stop_event`` is set.

        Timer cycles run as background tasks so a slow cycle does not delay
        the schedule; the in-flight guard keeps them from overlapping.
        """
        stop_event = stop_event or asyncio.Event()
        interval = self.params.refresh_interval_seconds

        self.logger.info("Refresh scheduler started", interval_seconds=interval,
                         instrument_id=self.state.selected_instrument.id)

        await self.refresh_cycle("startup")

        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    self._spawn(self.tick())
        finally:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            self.logger.info("Refresh scheduler stopped")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error("Background refresh crashed", error=str(task.exception()),
                              error_type=type(task.exception()).__name__)
