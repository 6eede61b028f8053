"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..data.models import Instrument
from .defaults import (
    ApiParams,
    CacheParams,
    DefaultConfig,
    RetryParams,
    SchedulerParams,
    WindowParams,
    get_default_config,
)

BUILTIN_INSTRUMENTS = {
    "bitcoin": Instrument(
        id="bitcoin",
        trading_symbol="BTCUSDT",
        display_name="Bitcoin",
        color_hint="#f7931a",
    ),
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def _read_instruments_file(self) -> Optional[dict[str, Any]]:
        instruments_file = self.config_dir / "instruments.yaml"

        if not instruments_file.exists():
            return None

        with open(instruments_file) as f:
            instruments_config = yaml.safe_load(f) or {}

        return instruments_config.get("instruments", {}) or {}  # type: ignore[no-any-return]

    def load_instruments(self) -> dict[str, Instrument]:
        """Load the static instrument catalogue.

        Falls back to the built-in catalogue when no instruments file exists.
        """
        raw = self._read_instruments_file()
        if raw is None:
            return dict(BUILTIN_INSTRUMENTS)

        instruments = {}
        for instrument_id, entry in raw.items():
            entry = entry or {}
            instruments[instrument_id] = Instrument(
                id=instrument_id,
                trading_symbol=entry.get("trading_symbol", instrument_id.upper()),
                display_name=entry.get("display_name", instrument_id.title()),
                color_hint=entry.get("color_hint", "#888888"),
            )
        return instruments

    def load_instrument_config(self, instrument_id: str) -> dict[str, Any]:
        """Load instrument-specific configuration overrides."""
        raw = self._read_instruments_file()
        if not raw:
            return {}

        entry = raw.get(instrument_id) or {}
        return entry.get("overrides", {}) or {}  # type: ignore[no-any-return]

    def merge_config(
        self,
        instrument_id: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. Instrument-specific overrides
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        instrument_config = self.load_instrument_config(instrument_id)
        config = self._deep_merge(config, instrument_config)

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_config(
        self,
        instrument_id: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> DefaultConfig:
        """Merge configuration and rebuild the typed dataclass tree."""
        merged = self.merge_config(instrument_id, overrides)
        return DefaultConfig(
            api=ApiParams(**merged.get("api", {})),
            retry=RetryParams(**merged.get("retry", {})),
            cache=CacheParams(**merged.get("cache", {})),
            window=WindowParams(**merged.get("window", {})),
            scheduler=SchedulerParams(**merged.get("scheduler", {})),
        )

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
