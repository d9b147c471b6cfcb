"""Registry of images bundled with the package."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

ASSET_DIR = "images/animals/core"

BUNDLED_ASSET_KEYS: tuple[str, ...] = (
    "bear.jpg",
    "bird.jpg",
    "butterfly.jpg",
    "cat.jpg",
    "chicken.jpg",
    "cow.jpg",
    "deer.jpg",
    "dog.jpg",
    "dolphin.jpg",
    "duck.jpg",
    "eagle.jpg",
    "elephant.jpg",
    "fish.jpg",
    "frog.jpg",
    "giraffe.jpg",
    "hippo.jpg",
    "horse.jpg",
    "lion.jpg",
    "monkey.jpg",
    "mouse.jpg",
    "owl.jpg",
    "penguin.jpg",
    "pig.jpg",
    "rabbit.jpg",
    "rhino.jpg",
    "shark.jpg",
    "sheep.jpg",
    "spider.jpg",
    "tiger.jpg",
    "whale.jpg",
    "wolf.jpg",
    "zebra.jpg",
)


@dataclass(frozen=True)
class BundledAsset:
    """Opaque handle for an image shipped with the application shell."""

    key: str
    resource: str


class AssetRegistry:
    """Static mapping from short asset keys to bundled image handles."""

    def __init__(self, keys: Iterable[str] = BUNDLED_ASSET_KEYS, base_dir: str = ASSET_DIR) -> None:
        self._assets = {key: BundledAsset(key=key, resource=f"{base_dir}/{key}") for key in keys}

    def lookup(self, key: str) -> BundledAsset | None:
        """Return the handle registered for `key`, if any."""
        return self._assets.get(key)

    def keys(self) -> list[str]:
        return sorted(self._assets)

    def __contains__(self, key: object) -> bool:
        return key in self._assets

    def __len__(self) -> int:
        return len(self._assets)
