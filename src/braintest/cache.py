"""Expiring cache of resolved image URLs on top of a key-value store."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

from .models import ImageSource
from .storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

CACHE_PREFIX = "cache:"
CACHEABLE_SOURCES = (ImageSource.STOCK, ImageSource.ENCYCLOPEDIA)
HOUR_SECONDS = 60 * 60


@dataclass(frozen=True)
class CachedImageEntry:
    """One resolved URL with the tier it came from and when it was stored."""

    url: str
    source: ImageSource
    timestamp: float

    def to_json(self) -> str:
        return json.dumps({"url": self.url, "source": self.source.value, "timestamp": self.timestamp})

    @classmethod
    def from_json(cls, text: str) -> CachedImageEntry:
        raw = json.loads(text)
        if not isinstance(raw, dict):
            raise ValueError("Cache entry must be a JSON object.")
        url = raw.get("url")
        if not isinstance(url, str) or not url:
            raise ValueError("Cache entry has no url.")
        return cls(url=url, source=ImageSource(raw.get("source")), timestamp=float(raw["timestamp"]))


def cache_key(source: ImageSource, search_phrase: str) -> str:
    """Return the storage key for a phrase in one source namespace.

    Phrases are used verbatim, so "Cat" and "cat" are distinct entries.
    """
    return f"{CACHE_PREFIX}{source.value}:{search_phrase}"


class ImageCache:
    """Per-source namespaces of cached image URLs with expiry windows."""

    def __init__(
        self,
        store: KeyValueStore,
        stock_hours: float = 24.0,
        encyclopedia_hours: float = 48.0,
    ) -> None:
        self._store = store
        self._ttl_seconds = {
            ImageSource.STOCK: stock_hours * HOUR_SECONDS,
            ImageSource.ENCYCLOPEDIA: encyclopedia_hours * HOUR_SECONDS,
        }

    def ttl_seconds(self, source: ImageSource) -> float:
        return self._ttl_seconds[source]

    def get(self, source: ImageSource, search_phrase: str, now: float | None = None) -> CachedImageEntry | None:
        """Return a non-expired entry or None. Stale entries stay in the store."""
        self._require_cacheable(source)
        key = cache_key(source, search_phrase)
        try:
            text = self._store.get(key)
        except StorageError as exc:
            logger.warning("Error reading image cache %s: %s", key, exc)
            return None
        if text is None:
            return None
        try:
            entry = CachedImageEntry.from_json(text)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring corrupt image cache entry %s: %s", key, exc)
            return None

        current = time.time() if now is None else now
        if current - entry.timestamp >= self._ttl_seconds[source]:
            logger.debug("Image cache entry %s expired", key)
            return None
        return entry

    def put(self, source: ImageSource, search_phrase: str, url: str, now: float | None = None) -> None:
        """Store or overwrite the entry for a phrase in one source namespace."""
        self._require_cacheable(source)
        entry = CachedImageEntry(url=url, source=source, timestamp=time.time() if now is None else now)
        key = cache_key(source, search_phrase)
        try:
            self._store.set(key, entry.to_json())
        except StorageError as exc:
            logger.warning("Error caching image %s: %s", key, exc)

    def clear(self) -> int:
        """Remove every cached image entry and return how many were removed."""
        try:
            keys = [key for key in self._store.list_keys() if key.startswith(CACHE_PREFIX)]
            self._store.remove_many(keys)
        except StorageError as exc:
            logger.warning("Error clearing image cache: %s", exc)
            return 0
        return len(keys)

    @staticmethod
    def _require_cacheable(source: ImageSource) -> None:
        if source not in CACHEABLE_SOURCES:
            raise ValueError(f"Images from {source.value!r} are not cached.")
