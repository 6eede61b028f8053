"""
Field-level parsers shared by every provider shape.

Providers send prices as JSON numbers or as numeric-looking strings. These
helpers coerce both into ``Decimal`` without passing through binary floating
point where it can be avoided, and raise ``MalformedDataError`` for anything
that is missing or not numeric.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Union

import orjson

from ..errors import MalformedDataError, MissingDataError


def parse_json_payload(raw_data: Union[str, bytes]) -> Any:
    """Decode a raw JSON body."""
    try:
        return orjson.loads(raw_data)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid JSON payload: {e}",
            raw_data=str(raw_data)[:100],
            expected_format="json"
        ) from e


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """
    Convert a provider number or numeric string to Decimal.

    Args:
        value: Raw field value
        field_name: Name used in error messages

    Returns:
        Finite Decimal value

    Raises:
        MissingDataError: If the value is None
        MalformedDataError: If the value is not a finite number
    """
    if value is None:
        raise MissingDataError(f"Missing required field '{field_name}'", data_type=field_name)

    # bool is an int subclass; a true/false price is a provider bug
    if isinstance(value, bool):
        raise MalformedDataError(
            f"Field '{field_name}' must be numeric, got boolean",
            raw_data=repr(value)
        )

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as e:
            raise MalformedDataError(
                f"Field '{field_name}' is not numeric: {value!r}",
                raw_data=value[:100]
            ) from e
    else:
        raise MalformedDataError(
            f"Field '{field_name}' has unsupported type {type(value).__name__}",
            raw_data=repr(value)[:100]
        )

    if not result.is_finite():
        raise MalformedDataError(
            f"Field '{field_name}' must be finite, got {value!r}",
            raw_data=repr(value)[:100]
        )

    return result


def parse_timestamp_ms(value: Any, field_name: str = "timestamp") -> int:
    """Convert a provider epoch-millisecond timestamp to int."""
    number = parse_decimal(value, field_name)

    if number != number.to_integral_value():
        raise MalformedDataError(
            f"Field '{field_name}' must be an integer epoch-ms timestamp, got {value!r}",
            raw_data=repr(value)[:100]
        )

    if number < 0:
        raise MalformedDataError(
            f"Field '{field_name}' must not be negative, got {value!r}",
            raw_data=repr(value)[:100]
        )

    timestamp_ms = int(number)

    # Year 9999 is left out so conversion to any local timezone stays in range
    try:
        in_range = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).year < 9999
    except (OverflowError, ValueError, OSError):
        in_range = False

    if not in_range:
        raise MalformedDataError(
            f"Field '{field_name}' is outside the supported date range, got {value!r}",
            raw_data=repr(value)[:100]
        )

    return timestamp_ms


def require_list(payload: Any, field_name: str) -> list:
    """Return ``payload`` if it is a list, otherwise raise MalformedDataError."""
    if not isinstance(payload, list):
        raise MalformedDataError(
            f"'{field_name}' must be a list, got {type(payload).__name__}",
            raw_data=repr(payload)[:100],
            expected_format="list"
        )
    return payload


def require_field(payload: Any, key: str) -> Any:
    """Fetch ``key`` from a mapping payload."""
    if not isinstance(payload, dict):
        raise MalformedDataError(
            f"Expected an object containing '{key}', got {type(payload).__name__}",
            raw_data=repr(payload)[:100],
            expected_format="object"
        )
    if key not in payload:
        raise MissingDataError(f"Missing '{key}' field", data_type=key)
    return payload[key]
