"""
Time-boxed cache for the long-window price series.

Only the 365-day series is cached. The 7-day series is cheap and has to show
the latest partial day, so it is always fetched fresh. Entries are replaced
wholesale on refresh and expire purely by age; nothing evicts them in the
background.
"""

from typing import Any, Callable, Optional

import orjson
import structlog

from ..config.defaults import CacheParams
from ..data.models import CacheEntry, PricePoint, PriceSeries
from ..data.parsers import parse_decimal, parse_json_payload, parse_timestamp_ms
from ..errors import CacheReadError, MalformedDataError, PersistenceError
from ..utils.time import now_ms
from .kv_store import KeyValueStore

logger = structlog.get_logger(__name__)


class WindowedCache:
    """Per-instrument cache of the long-window series with a TTL."""

    def __init__(
        self,
        store: KeyValueStore,
        params: Optional[CacheParams] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.params = params or CacheParams()
        self.clock = clock
        self.logger = logger

    @property
    def ttl_ms(self) -> int:
        return self.params.ttl_ms

    def storage_key(self, instrument_id: str) -> str:
        """Store key for an instrument's long-window series."""
        return f"{instrument_id}:{self.params.key_suffix}"

    def get(self, instrument_id: str) -> Optional[CacheEntry]:
        """
        Read the cached entry for an instrument.

        A missing, unreadable or corrupt entry is reported as None. Freshness
        is not checked here; use ``is_fresh``.
        """
        key = self.storage_key(instrument_id)

        try:
            raw = self.store.get(key)
        except PersistenceError as e:
            self.logger.warning("Cache store read failed, treating as miss", key=key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return self._decode(raw, key)
        except CacheReadError as e:
            self.logger.warning(
                "Corrupt cache entry, treating as miss",
                key=key,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

    def put(self, instrument_id: str, series: PriceSeries,
            fetched_at: Optional[int] = None) -> CacheEntry:
        """Replace the cached entry for an instrument."""
        entry = CacheEntry(
            series=series,
            fetched_at=self.clock() if fetched_at is None else fetched_at,
        )
        key = self.storage_key(instrument_id)
        self.store.set(key, self._encode(entry))

        self.logger.debug("Cached price series", key=key, points=len(series), fetched_at=entry.fetched_at)
        return entry

    def is_fresh(self, entry: CacheEntry, now: Optional[int] = None) -> bool:
        """True iff the entry is younger than the TTL."""
        current = self.clock() if now is None else now
        return current - entry.fetched_at < self.params.ttl_ms

    def get_fresh(self, instrument_id: str) -> Optional[CacheEntry]:
        """Cached entry if it exists and is still within the TTL."""
        entry = self.get(instrument_id)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry

    def invalidate(self, instrument_id: str) -> None:
        """Drop the cached entry for an instrument."""
        self.store.delete(self.storage_key(instrument_id))

    def _encode(self, entry: CacheEntry) -> str:
        # Prices are stored as strings so Decimal values survive the round trip
        document = {
            "series": [[point.timestamp, str(point.price)] for point in entry.series],
            "fetchedAt": entry.fetched_at,
        }
        return orjson.dumps(document).decode("utf-8")

    def _decode(self, raw: str, key: str) -> CacheEntry:
        try:
            document: Any = parse_json_payload(raw)
            if not isinstance(document, dict):
                raise MalformedDataError("Cache entry must be an object")

            rows = document.get("series")
            if not isinstance(rows, list):
                raise MalformedDataError("Cache entry 'series' must be a list")

            points = []
            for row in rows:
                if not isinstance(row, list) or len(row) != 2:
                    raise MalformedDataError(f"Invalid cached point: {row!r}")
                points.append(PricePoint(
                    timestamp=parse_timestamp_ms(row[0]),
                    price=parse_decimal(row[1], "price"),
                ))

            fetched_at = parse_timestamp_ms(document.get("fetchedAt"), "fetchedAt")
            # A future fetch time would keep the entry fresh indefinitely
            if fetched_at > self.clock():
                raise MalformedDataError(f"Cache entry 'fetchedAt' is in the future: {fetched_at}")

            return CacheEntry(series=PriceSeries(tuple(points)), fetched_at=fetched_at)
        except MalformedDataError as e:
            raise CacheReadError(f"Cannot decode cache entry: {e}", key=key) from e
