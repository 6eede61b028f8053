"""Default configuration parameters for the price calendar."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ApiParams:
    """Upstream market-data API parameters."""
    provider: str = "coingecko"                           # coingecko | binance
    base_url: str = "https://api.coingecko.com/api/v3"
    vs_currency: str = "usd"
    timeout_seconds: float = 15.0


@dataclass(frozen=True)
class RetryParams:
    """HTTP retry policy. Delays double from the base with no jitter."""
    max_retries: int = 3              # 4 attempts total
    base_delay_ms: int = 1000


@dataclass(frozen=True)
class CacheParams:
    """Long-window series cache parameters."""
    ttl_ms: int = 3_600_000           # 1 hour
    key_suffix: str = "series_365d"


@dataclass(frozen=True)
class WindowParams:
    """Calendar window sizes in days."""
    week_days: int = 7
    year_days: int = 365


@dataclass(frozen=True)
class SchedulerParams:
    """Refresh scheduling parameters."""
    refresh_interval_seconds: float = 300.0    # 60.0 for the simple variant
    default_instrument: str = "bitcoin"


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    api: ApiParams
    retry: RetryParams
    cache: CacheParams
    window: WindowParams
    scheduler: SchedulerParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        api=ApiParams(),
        retry=RetryParams(),
        cache=CacheParams(),
        window=WindowParams(),
        scheduler=SchedulerParams(),
    )
