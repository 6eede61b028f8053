"""
Fetch and system failure error classifications.

Fetch errors describe how a request to the upstream market-data API ended.
System failures cover the local collaborators (the key-value store).
"""

from typing import Any, Dict, Optional


class FetchError(Exception):
    """Base class for upstream API failures."""

    def __init__(self, message: str, url: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.url = url
        self.context = context or {}
        self.recoverable = False


class HttpError(FetchError):
    """Non-2xx, non-429 response. Treated as definitive, never retried."""

    def __init__(self, status: int, url: Optional[str] = None, **kwargs):
        super().__init__(f"HTTP {status}", url=url, **kwargs)
        self.status = status


class RateLimitedError(FetchError):
    """HTTP 429 persisted through every retry."""

    def __init__(self, url: Optional[str] = None, attempts: int = 0, **kwargs):
        super().__init__("Rate limited, try again in a minute", url=url, **kwargs)
        self.attempts = attempts
        self.recoverable = True


class NetworkError(FetchError):
    """No response was received after every retry."""

    def __init__(self, message: str, url: Optional[str] = None,
                 attempts: int = 0, **kwargs):
        super().__init__(message, url=url, **kwargs)
        self.attempts = attempts
        self.recoverable = True


class SystemFailureError(Exception):
    """Base class for local system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class PersistenceError(SystemFailureError):
    """Key-value store read or write failure."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
