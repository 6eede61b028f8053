"""Persistence of the user's selected instrument across sessions."""

from typing import Iterable, Optional

import structlog

from ..errors import PersistenceError
from .kv_store import KeyValueStore

logger = structlog.get_logger(__name__)

SELECTED_INSTRUMENT_KEY = "selected_instrument"


class InstrumentSelectionRepository:
    """Loads and saves the selected instrument id."""

    def __init__(
        self,
        store: KeyValueStore,
        default_instrument_id: str,
        known_instruments: Optional[Iterable[str]] = None,
    ):
        self.store = store
        self.default_instrument_id = default_instrument_id
        self.known_instruments = set(known_instruments) if known_instruments is not None else None

    def load(self) -> str:
        """Persisted selection, or the default if none is stored or it is unknown."""
        try:
            stored = self.store.get(SELECTED_INSTRUMENT_KEY)
        except PersistenceError as e:
            logger.warning("Selection read failed, using default", error=str(e))
            return self.default_instrument_id

        if not stored:
            return self.default_instrument_id

        if self.known_instruments is not None and stored not in self.known_instruments:
            logger.warning(
                "Persisted instrument is not configured, using default",
                stored=stored,
                default=self.default_instrument_id
            )
            return self.default_instrument_id

        return stored

    def save(self, instrument_id: str) -> None:
        self.store.set(SELECTED_INSTRUMENT_KEY, instrument_id)
