"""
Data quality error classifications for market data processing.

These exceptions categorize problems with provider payloads and locally
stored cache entries. They are never retried: a payload that is malformed
once will be malformed on the next attempt too.
"""

from typing import Any, Dict, Optional


class DataQualityError(Exception):
    """Base class for data quality issues."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedDataError(DataQualityError):
    """Data exists but is in incorrect format."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format


class MissingDataError(MalformedDataError):
    """A required field is absent from an otherwise well-formed payload."""

    def __init__(self, message: str, data_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type


class CacheReadError(DataQualityError):
    """A stored cache entry could not be decoded.

    Raised internally by the cache layer and handled there; callers only
    ever observe a cache miss.
    """

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.key = key
