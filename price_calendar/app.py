"""
Application wiring.

Builds a RefreshScheduler from configuration: instrument catalogue, provider,
HTTP retry client, windowed cache, projector and selection repository.
"""

from pathlib import Path
from typing import Any, Optional

import structlog

from .calendar.projector import CalendarProjector
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .data.providers import create_provider
from .persistence.kv_store import KeyValueStore, MemoryKeyValueStore
from .persistence.selection import InstrumentSelectionRepository
from .persistence.windowed_cache import WindowedCache
from .scheduler.refresh import RefreshScheduler, RenderTarget
from .transport.http_client import HttpRetryClient

logger = structlog.get_logger(__name__)


class ConfigurationError(ValueError):
    """Merged configuration failed validation."""

    def __init__(self, errors: list):
        self.errors = errors
        details = "; ".join(f"{err.field}: {err.message} (got: {err.value})" for err in errors)
        super().__init__(f"Invalid configuration: {details}")


def create_scheduler(
    config_dir: Optional[Path] = None,
    store: Optional[KeyValueStore] = None,
    render_target: Optional[RenderTarget] = None,
    overrides: Optional[dict[str, Any]] = None,
    client: Optional[HttpRetryClient] = None,
    tz=None,
) -> RefreshScheduler:
    """
    Build a scheduler for the persisted (or default) instrument.

    Args:
        config_dir: Directory holding instruments.yaml
        store: Key-value store for the cache and selection; in-memory if omitted
        render_target: Consumer of snapshots and error messages
        overrides: Explicit configuration overrides (highest precedence)
        client: Pre-built HTTP client, mainly for tests
        tz: Timezone for calendar dates; system local if omitted

    Raises:
        ConfigurationError: If the merged configuration is invalid
    """
    loader = ConfigLoader.create(config_dir)
    store = store if store is not None else MemoryKeyValueStore()

    instruments = loader.load_instruments()
    default_id = loader.defaults.scheduler.default_instrument
    if overrides and "scheduler" in overrides:
        default_id = overrides["scheduler"].get("default_instrument", default_id)

    selection = InstrumentSelectionRepository(store, default_id, known_instruments=instruments)
    selected_id = selection.load()

    merged = loader.merge_config(selected_id, overrides)
    errors = ConfigValidator.validate_config(merged)
    if errors:
        raise ConfigurationError(errors)

    config = loader.load_config(selected_id, overrides)

    if client is None:
        client = HttpRetryClient(retry=config.retry, timeout_seconds=config.api.timeout_seconds)

    scheduler = RefreshScheduler(
        client=client,
        provider=create_provider(config.api),
        cache=WindowedCache(store, params=config.cache),
        projector=CalendarProjector(window=config.window, tz=tz),
        instruments=instruments,
        selection=selection,
        render_target=render_target,
        params=config.scheduler,
        window=config.window,
    )

    logger.info(
        "Price calendar initialized",
        provider=config.api.provider,
        instrument_id=scheduler.state.selected_instrument.id,
        instruments=sorted(instruments),
        refresh_interval_seconds=config.scheduler.refresh_interval_seconds
    )
    return scheduler
