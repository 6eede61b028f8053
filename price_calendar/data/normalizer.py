"""
Price series normalization for converting provider payloads to canonical objects.

Each provider payload shape is handled by one mapping function registered
under a name. The normalizer only dispatches on that name, so supporting a
new provider means registering a new mapping function; the cache, projector
and scheduler never see provider-specific structures.
"""

from typing import Any, Callable, Optional

import structlog

from ..errors import MalformedDataError
from .models import CurrentPrice, Instrument, PricePoint, PriceSeries
from .parsers import parse_decimal, parse_timestamp_ms, require_field, require_list

logger = structlog.get_logger(__name__)

SeriesMapper = Callable[[Any], list[PricePoint]]
CurrentMapper = Callable[[Any, Optional[Instrument], str], CurrentPrice]

_SERIES_SHAPES: dict[str, SeriesMapper] = {}
_CURRENT_SHAPES: dict[str, CurrentMapper] = {}


def register_series_shape(name: str) -> Callable[[SeriesMapper], SeriesMapper]:
    """Register a historical-series mapping function under ``name``."""
    def decorator(func: SeriesMapper) -> SeriesMapper:
        _SERIES_SHAPES[name] = func
        return func
    return decorator


def register_current_shape(name: str) -> Callable[[CurrentMapper], CurrentMapper]:
    """Register a current-price mapping function under ``name``."""
    def decorator(func: CurrentMapper) -> CurrentMapper:
        _CURRENT_SHAPES[name] = func
        return func
    return decorator


def available_series_shapes() -> list[str]:
    return sorted(_SERIES_SHAPES)


def available_current_shapes() -> list[str]:
    return sorted(_CURRENT_SHAPES)


@register_series_shape("market_chart")
def map_market_chart(payload: Any) -> list[PricePoint]:
    """
    Map a market-chart payload.

    Expected format:
    {
        "prices": [[1704067200000, 42265.19], [1704153600000, 44167.33]],
        "market_caps": [...],
        "total_volumes": [...]
    }
    """
    rows = require_list(require_field(payload, "prices"), "prices")

    points = []
    for index, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            raise MalformedDataError(
                f"Invalid price pair at index {index}",
                raw_data=repr(row)[:100],
                expected_format="[timestamp, price]"
            )
        points.append(PricePoint(
            timestamp=parse_timestamp_ms(row[0]),
            price=parse_decimal(row[1], "price"),
        ))
    return points


@register_series_shape("klines")
def map_klines(payload: Any) -> list[PricePoint]:
    """
    Map a kline payload, keeping open time and close price only.

    Expected format (oldest first):
    [
        [1704067200000, "42283.58", "44184.10", "42180.77", "44179.55", "27174.29", ...]
    ]
    """
    rows = require_list(payload, "klines")

    points = []
    for index, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            raise MalformedDataError(
                f"Invalid kline at index {index}",
                raw_data=repr(row)[:100],
                expected_format="[open_time, open, high, low, close, ...]"
            )
        points.append(PricePoint(
            timestamp=parse_timestamp_ms(row[0], "open_time"),
            price=parse_decimal(row[4], "close"),
        ))
    return points


@register_series_shape("okx_candles")
def map_okx_candles(payload: Any) -> list[PricePoint]:
    """
    Map an OKX candlestick payload.

    Expected format (newest first):
    {
        "code": "0",
        "msg": "",
        "data": [
            ["1597026383085", "3.721", "3.743", "3.677", "3.708", "8422410", ...]
        ]
    }
    """
    code = require_field(payload, "code")
    if str(code) != "0":
        raise MalformedDataError(
            f"Provider returned error code {code}: {payload.get('msg', '')}",
            raw_data=repr(payload)[:100]
        )

    rows = require_list(require_field(payload, "data"), "data")

    points = []
    for index, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            raise MalformedDataError(
                f"Invalid candle data at index {index}",
                raw_data=repr(row)[:100],
                expected_format="[ts, o, h, l, c, ...]"
            )
        points.append(PricePoint(
            timestamp=parse_timestamp_ms(row[0], "ts"),
            price=parse_decimal(row[4], "close"),
        ))

    points.reverse()
    return points


@register_current_shape("simple_price")
def map_simple_price(payload: Any, instrument: Optional[Instrument], vs_currency: str) -> CurrentPrice:
    """
    Map a simple-price payload.

    Expected format:
    {"bitcoin": {"usd": 67187.33, "usd_24h_change": 3.63}}
    """
    if instrument is not None:
        entry = require_field(payload, instrument.id)
    else:
        if not isinstance(payload, dict) or len(payload) != 1:
            raise MalformedDataError(
                "Cannot pick a coin entry without an instrument",
                raw_data=repr(payload)[:100]
            )
        entry = next(iter(payload.values()))

    price = parse_decimal(require_field(entry, vs_currency), vs_currency)

    change_key = f"{vs_currency}_24h_change"
    change_24h = None
    if isinstance(entry, dict) and entry.get(change_key) is not None:
        change_24h = parse_decimal(entry[change_key], change_key)

    return CurrentPrice(price=price, change_24h=change_24h)


@register_current_shape("ticker_24hr")
def map_ticker_24hr(payload: Any, instrument: Optional[Instrument], vs_currency: str) -> CurrentPrice:
    """
    Map a 24-hour ticker payload.

    Expected format:
    {"symbol": "BTCUSDT", "lastPrice": "67187.33", "priceChangePercent": "3.630", ...}
    """
    price = parse_decimal(require_field(payload, "lastPrice"), "lastPrice")

    change_24h = None
    if payload.get("priceChangePercent") is not None:
        change_24h = parse_decimal(payload["priceChangePercent"], "priceChangePercent")

    return CurrentPrice(price=price, change_24h=change_24h)


class PriceSeriesNormalizer:
    """
    Converts provider payloads into canonical price objects.

    Points are kept exactly as the provider sent them: no deduplication and
    no resampling. Downstream components rely on the provider's daily
    granularity.
    """

    def __init__(self, vs_currency: str = "usd"):
        self.vs_currency = vs_currency
        self.logger = logger

    def to_price_series(self, payload: Any, shape: str) -> PriceSeries:
        """
        Normalize a historical payload.

        Args:
            payload: Decoded JSON body
            shape: Registered series shape name

        Returns:
            Canonical PriceSeries

        Raises:
            ValueError: If ``shape`` is not registered
            MalformedDataError: If the payload does not match the shape
        """
        mapper = _SERIES_SHAPES.get(shape)
        if mapper is None:
            raise ValueError(
                f"Unknown series shape '{shape}'. Available: {', '.join(available_series_shapes())}"
            )

        try:
            series = PriceSeries(tuple(mapper(payload)))
        except MalformedDataError as e:
            self.logger.warning(
                "Price series normalization failed",
                shape=shape,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        self.logger.debug("Normalized price series", shape=shape, points=len(series))
        return series

    def to_current_price(
        self,
        payload: Any,
        shape: str,
        instrument: Optional[Instrument] = None
    ) -> CurrentPrice:
        """
        Normalize a current-price snapshot.

        Args:
            payload: Decoded JSON body
            shape: Registered current-price shape name
            instrument: Instrument the payload was requested for

        Returns:
            CurrentPrice with ``change_24h`` None when the provider omitted it
        """
        mapper = _CURRENT_SHAPES.get(shape)
        if mapper is None:
            raise ValueError(
                f"Unknown current-price shape '{shape}'. Available: {', '.join(available_current_shapes())}"
            )

        try:
            return mapper(payload, instrument, self.vs_currency)
        except MalformedDataError as e:
            self.logger.warning(
                "Current price normalization failed",
                shape=shape,
                instrument_id=instrument.id if instrument else None,
                error=str(e),
                error_type=type(e).__name__
            )
            raise
