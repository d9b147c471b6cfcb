"""Load the animal catalog from bundled JSON and answer read-only queries."""

from __future__ import annotations

import json
from collections.abc import Iterable
from importlib import resources
from pathlib import Path
from typing import Any

from .assets import AssetRegistry
from .models import Category, CatalogItem, Difficulty

CONTENT_PACKAGE = "braintest.content"
CATALOG_RESOURCE = "animals.json"
POPULARITY_RANGE = (1, 10)


def _item_from_dict(raw: dict[str, Any]) -> CatalogItem:
    """Build a catalog item from raw JSON content."""
    item_id = str(raw.get("id", "")).strip()
    if not item_id:
        raise ValueError("Catalog item without an id.")

    name = str(raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"Catalog item '{item_id}' has no name.")

    try:
        difficulty = Difficulty(int(raw["difficulty"]))
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Catalog item '{item_id}' has invalid difficulty {raw.get('difficulty')!r}.") from None

    try:
        category = Category(str(raw.get("category", "")))
    except ValueError:
        raise ValueError(f"Catalog item '{item_id}' has unknown category {raw.get('category')!r}.") from None

    try:
        popularity = int(raw.get("popularity", 0))
    except (TypeError, ValueError):
        raise ValueError(f"Catalog item '{item_id}' has invalid popularity {raw.get('popularity')!r}.") from None
    low, high = POPULARITY_RANGE
    if not low <= popularity <= high:
        raise ValueError(f"Catalog item '{item_id}' popularity {popularity} outside {low}..{high}.")

    search_phrase = str(raw.get("search_phrase") or name.lower()).strip()
    asset = raw.get("bundled_asset")
    raw_synonyms = raw.get("synonyms") or []
    if not isinstance(raw_synonyms, list):
        raise ValueError(f"Catalog item '{item_id}' synonyms must be a list.")
    synonyms = tuple(str(value).strip() for value in raw_synonyms if str(value).strip())

    return CatalogItem(
        id=item_id,
        name=name,
        synonyms=synonyms,
        difficulty=difficulty,
        category=category,
        popularity=popularity,
        search_phrase=search_phrase,
        bundled_asset=str(asset) if asset else None,
    )


def _items_from_payload(raw: dict[str, Any]) -> list[CatalogItem]:
    items = [_item_from_dict(entry) for entry in raw.get("items", [])]
    _validate_unique_ids(items)
    return items


def _validate_unique_ids(items: list[CatalogItem]) -> None:
    """Validate that item ids are globally unique."""
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate catalog item id: {item.id}")
        seen.add(item.id)


def _validate_assets(items: list[CatalogItem], registry: AssetRegistry) -> None:
    """Validate that every bundled asset reference resolves."""
    for item in items:
        if item.bundled_asset is not None and item.bundled_asset not in registry:
            raise ValueError(f"Catalog item '{item.id}' references unknown asset '{item.bundled_asset}'.")


class Catalog:
    """Immutable, ordered collection of catalog items."""

    def __init__(self, items: Iterable[CatalogItem]) -> None:
        self._items = tuple(items)
        _validate_unique_ids(list(self._items))
        self._by_id = {item.id: item for item in self._items}

    def all(self) -> list[CatalogItem]:
        return list(self._items)

    def get(self, item_id: str) -> CatalogItem | None:
        return self._by_id.get(item_id)

    def by_ids(self, item_ids: Iterable[str]) -> list[CatalogItem]:
        """Return known items for `item_ids` in the given order, skipping unknown ids."""
        return [self._by_id[item_id] for item_id in item_ids if item_id in self._by_id]

    def by_difficulty(self, difficulty: Difficulty) -> list[CatalogItem]:
        return [item for item in self._items if item.difficulty == difficulty]

    def by_category(self, category: Category) -> list[CatalogItem]:
        return [item for item in self._items if item.category == category]

    def core(self) -> list[CatalogItem]:
        """Items with a bundled image."""
        return [item for item in self._items if item.is_core]

    def extended(self) -> list[CatalogItem]:
        """Items that rely on remote image sources."""
        return [item for item in self._items if not item.is_core]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id


def load_catalog(registry: AssetRegistry | None = None) -> Catalog:
    """Load the bundled catalog."""
    entry = resources.files(CONTENT_PACKAGE).joinpath(CATALOG_RESOURCE)
    raw = json.loads(entry.read_text(encoding="utf-8-sig"))
    items = _items_from_payload(raw)
    _validate_assets(items, registry or AssetRegistry())
    return Catalog(items)


def load_catalog_from_file(path: Path, registry: AssetRegistry | None = None) -> Catalog:
    """Load a catalog from a JSON file for tests/tools."""
    raw = json.loads(path.read_text(encoding="utf-8-sig"))
    items = _items_from_payload(raw)
    _validate_assets(items, registry or AssetRegistry())
    return Catalog(items)
