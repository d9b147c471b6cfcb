"""Archive of finished test results, grouped by test id."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import cast

from .storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

RESULTS_KEY = "results"
ANIMAL_NAMING_TEST_ID = "animal"

ResultRows = dict[str, list[dict[str, object]]]


class ResultsHistory:
    """Stores result payloads under one JSON document keyed by test id."""

    def __init__(self, store: KeyValueStore, key: str = RESULTS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> ResultRows:
        """Return all archived results; empty when missing or unreadable."""
        try:
            text = self._store.get(self._key)
        except StorageError as exc:
            logger.error("Error loading results: %s", exc)
            return {}
        if text is None:
            return {}
        try:
            raw_obj: object = json.loads(text)
        except ValueError as exc:
            logger.error("Ignoring unreadable results history: %s", exc)
            return {}
        if not isinstance(raw_obj, dict):
            return {}
        raw = cast(dict[str, object], raw_obj)
        return {
            str(test_id): [cast(dict[str, object], row) for row in rows if isinstance(row, dict)]
            for test_id, rows in raw.items()
            if isinstance(rows, list)
        }

    def add_result(self, test_id: str, payload: dict[str, object]) -> ResultRows:
        """Append a result stamped with the current UTC time and return the updated history."""
        results = self.load()
        results.setdefault(test_id, []).append({"when": datetime.now(UTC).isoformat(), **payload})
        self._save(results)
        return results

    def clear_test(self, test_id: str) -> None:
        results = self.load()
        if results.pop(test_id, None) is not None:
            self._save(results)

    def clear_all(self) -> None:
        try:
            self._store.remove(self._key)
        except StorageError as exc:
            logger.error("Error clearing all results: %s", exc)

    def _save(self, results: ResultRows) -> None:
        try:
            self._store.set(self._key, json.dumps(results))
        except StorageError as exc:
            logger.error("Error saving results: %s", exc)
