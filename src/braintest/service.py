"""Application service tying catalog, images, selection, grading and progress together."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import requests

from .assets import AssetRegistry
from .catalog import Catalog, load_catalog
from .config import Settings
from .grading import grade_session
from .history import ANIMAL_NAMING_TEST_ID, ResultsHistory
from .images import ImageReference, ImageResolver, ProgressFn
from .models import CatalogItem, SessionResult, TestConfiguration
from .progress import ProgressStats, ProgressStore
from .selection import SelectionPolicy
from .storage import KeyValueStore, SQLiteKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class PreparedItem:
    """An item ready to show: the animal and its current image."""

    item: CatalogItem
    image: ImageReference


class NamingTestService:
    """Coordinates one animal-naming session from selection to recorded progress."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: KeyValueStore | None = None,
        session: requests.Session | None = None,
        rng: random.Random | None = None,
        catalog: Catalog | None = None,
    ) -> None:
        """Initialize service; opens the configured SQLite store unless one is given."""
        self.settings = settings or Settings()
        self._owns_store = store is None
        self.store: KeyValueStore = store if store is not None else SQLiteKeyValueStore(Path(self.settings.db_path))
        self._owns_session = session is None
        self.http: requests.Session = session if session is not None else requests.Session()
        self._rng = rng or random.Random()
        registry = AssetRegistry()
        self.catalog = catalog or load_catalog(registry)
        self.resolver = ImageResolver.from_settings(
            self.settings, self.store, session=self.http, rng=self._rng, registry=registry
        )
        self.progress = ProgressStore(self.store)
        self.selection = SelectionPolicy(self.catalog, self.progress, rng=self._rng)
        self.history = ResultsHistory(self.store)

    def recommended_configuration(self) -> TestConfiguration:
        return self.selection.recommended_configuration()

    def stats(self) -> ProgressStats:
        return self.progress.get_stats()

    def start_session(self, config: TestConfiguration, on_progress: ProgressFn | None = None) -> list[PreparedItem]:
        """Select items for `config` and load their images in order."""
        items = self.selection.select(config)
        images = self.resolver.load_sequential(items, on_progress=on_progress)
        logger.info("Prepared %d items for %s session", len(items), config.mode.value)
        return [PreparedItem(item=item, image=images[item.id]) for item in items]

    def reload_image(self, prepared: PreparedItem) -> bool:
        """Fetch a different picture for an item; return whether it changed."""
        fresh = self.resolver.resolve(prepared.item, bypass_cache=True)
        if fresh == prepared.image:
            return False
        prepared.image = fresh
        return True

    def finish_session(
        self,
        items: Sequence[CatalogItem],
        answers: Sequence[str],
        config: TestConfiguration | None = None,
    ) -> SessionResult:
        """Grade answers, fold them into progress and archive the result."""
        result = grade_session(items, answers)
        self.progress.record_session(result.item_ids(), result.correct_ids())
        self.history.add_result(ANIMAL_NAMING_TEST_ID, result.to_dict(config))
        return result

    def reset_progress(self) -> None:
        self.progress.reset()

    def clear_image_cache(self) -> int:
        return self.resolver.clear_cache()

    def close(self) -> None:
        """Close resources."""
        if self._owns_store and isinstance(self.store, SQLiteKeyValueStore):
            self.store.close()
        if self._owns_session:
            self.http.close()
