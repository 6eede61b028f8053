"""
Error classification for the price calendar.

Fetch errors and data quality errors propagate out of a refresh cycle; the
scheduler turns every one of them into the same user-facing message while
logging the specific kind.
"""

from .data_quality import (
    DataQualityError,
    MissingDataError,
    MalformedDataError,
    CacheReadError,
)
from .system_failures import (
    FetchError,
    HttpError,
    RateLimitedError,
    NetworkError,
    SystemFailureError,
    PersistenceError,
)

USER_FACING_ERROR_MESSAGE = "Failed to load price data. Please try again later."

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MissingDataError",
    "MalformedDataError",
    "CacheReadError",
    # Fetch Errors
    "FetchError",
    "HttpError",
    "RateLimitedError",
    "NetworkError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "USER_FACING_ERROR_MESSAGE",
]
