"""HTTP GET client with exponential-backoff retry for the market-data API."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from ..config.defaults import RetryParams
from ..data.parsers import parse_json_payload
from ..errors import HttpError, MalformedDataError, NetworkError, RateLimitedError

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]
Sleep = Callable[[float], Awaitable[None]]

RATE_LIMITED_STATUS = 429


class HttpRetryClient:
    """
    Fetches JSON documents, retrying rate limits and network failures.

    Retry policy:
    - HTTP 429 and request failures (no usable response) are retried up to
      ``max_retries`` times, waiting ``base_delay_ms * 2**attempt`` before each retry (no jitter).
    - Any other non-2xx status is final and raises HttpError immediately.
    """

    def __init__(
        self,
        retry: Optional[RetryParams] = None,
        timeout_seconds: float = 15.0,
        client_factory: Optional[ClientFactory] = None,
        sleep: Optional[Sleep] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.retry = retry or RetryParams()
        self.timeout_seconds = timeout_seconds
        self.headers = {"User-Agent": "price-calendar/0.1", "Accept": "application/json"}
        if headers:
            self.headers.update(headers)
        self._client_factory = client_factory or self._default_client
        self._sleep = sleep or asyncio.sleep
        self.logger = logger

        self._request_count = 0
        self._retry_count = 0
        self._success_count = 0
        self._failure_count = 0

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, headers=self.headers)

    def backoff_delay_ms(self, attempt: int) -> int:
        """Delay before retry number ``attempt + 1`` (attempt is zero-based)."""
        return self.retry.base_delay_ms * (2 ** attempt)

    async def fetch_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        GET ``url`` and decode the JSON body.

        Args:
            url: Absolute endpoint URL
            params: Query parameters

        Returns:
            Decoded JSON value

        Raises:
            HttpError: Non-2xx, non-429 response
            RateLimitedError: 429 on every attempt
            NetworkError: No response on every attempt
            MalformedDataError: 2xx response with an undecodable body
        """
        max_retries = self.retry.max_retries
        attempt = 0

        async with self._client_factory() as client:
            while True:
                self._request_count += 1
                try:
                    response = await client.get(url, params=params)
                except httpx.RequestError as e:
                    if attempt >= max_retries:
                        self._failure_count += 1
                        self.logger.error(
                            "Network failure after retries",
                            url=url,
                            attempts=attempt + 1,
                            error=str(e)
                        )
                        raise NetworkError(
                            f"Network error: {e}", url=url, attempts=attempt + 1
                        ) from e
                    await self._backoff(url, attempt, error=str(e))
                    attempt += 1
                    continue

                status = response.status_code

                if status == RATE_LIMITED_STATUS:
                    if attempt >= max_retries:
                        self._failure_count += 1
                        self.logger.error(
                            "Rate limited after retries",
                            url=url,
                            attempts=attempt + 1
                        )
                        raise RateLimitedError(url=url, attempts=attempt + 1)
                    await self._backoff(url, attempt, status=status)
                    attempt += 1
                    continue

                if not 200 <= status < 300:
                    self._failure_count += 1
                    self.logger.warning(
                        "HTTP error response",
                        url=url,
                        status=status,
                        body=response.text[:200]
                    )
                    raise HttpError(status, url=url)

                try:
                    payload = parse_json_payload(response.content)
                except MalformedDataError:
                    self._failure_count += 1
                    self.logger.warning("Undecodable response body", url=url, status=status)
                    raise

                self._success_count += 1
                return payload

    async def _backoff(
        self,
        url: str,
        attempt: int,
        status: Optional[int] = None,
        error: Optional[str] = None
    ) -> None:
        delay_ms = self.backoff_delay_ms(attempt)
        self._retry_count += 1
        self.logger.warning(
            "Request failed, retrying",
            url=url,
            attempt=attempt + 1,
            delay_ms=delay_ms,
            status=status,
            error=error
        )
        await self._sleep(delay_ms / 1000.0)

    def get_stats(self) -> dict[str, Any]:
        """Get request statistics."""
        completed = self._success_count + self._failure_count
        return {
            "request_count": self._request_count,
            "retry_count": self._retry_count,
            "success_count": self._success_count,
            "failure_count": self._failure_count,
            "success_rate": self._success_count / completed if completed > 0 else 0.0,
        }

    def reset_stats(self):
        """Reset request statistics."""
        self._request_count = 0
        self._retry_count = 0
        self._success_count = 0
        self._failure_count = 0
