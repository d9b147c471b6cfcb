"""Tiered image resolution for catalog items.

Resolution order, first success wins:

1. bundled asset (unless the caller bypasses caching),
2. cached URL, stock-photo namespace then encyclopedia namespace,
3. encyclopedia page images (MediaWiki API),
4. stock-photo search (Pexels API),
5. a deterministic placeholder URL.

Remote failures of any kind fall through to the next tier, so `resolve` always
returns a usable reference.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import requests

from .assets import AssetRegistry, BundledAsset
from .cache import ImageCache
from .config import Settings
from .models import CatalogItem, ImageSource
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")
MAX_IMAGE_CANDIDATES = 3
STOCK_BATCH_SIZE = 15
DEFAULT_PRELOAD_WORKERS = 4


class ReferenceKind(str, Enum):
    BUNDLED = "bundled"
    REMOTE = "remote"


@dataclass(frozen=True)
class ImageReference:
    """Displayable image: either a bundled asset handle or a remote URL."""

    kind: ReferenceKind
    source: ImageSource
    url: str | None = None
    asset: BundledAsset | None = None

    @classmethod
    def bundled(cls, asset: BundledAsset) -> ImageReference:
        return cls(kind=ReferenceKind.BUNDLED, source=ImageSource.BUNDLED, asset=asset)

    @classmethod
    def remote(cls, url: str, source: ImageSource) -> ImageReference:
        return cls(kind=ReferenceKind.REMOTE, source=source, url=url)

    @property
    def is_bundled(self) -> bool:
        return self.kind is ReferenceKind.BUNDLED


class ImageSourceError(Exception):
    """A remote source answered but produced no usable image."""


class EncyclopediaClient:
    """Looks up a representative page image through the MediaWiki action API."""

    def __init__(self, session: requests.Session, api_url: str, timeout: float, user_agent: str) -> None:
        self._session = session
        self._api_url = api_url
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}

    def find_image_url(self, search_phrase: str) -> str:
        """Return the URL of the first usable image on the page for `search_phrase`."""
        candidates = self.image_titles(search_phrase)
        if not candidates:
            raise ImageSourceError(f"No image files on page {search_phrase!r}.")
        info = self.image_info(candidates[0])
        url = info.get("url")
        if not isinstance(url, str) or not url:
            raise ImageSourceError(f"No URL in image metadata for {candidates[0]!r}.")
        logger.debug(
            "Encyclopedia image for %r: %s (%sx%s)", search_phrase, url, info.get("width"), info.get("height")
        )
        return url

    def image_titles(self, search_phrase: str) -> list[str]:
        """Return up to three image-file titles listed on the page."""
        payload = self._query({"prop": "images", "titles": search_phrase, "imlimit": "50", "redirects": "1"})
        titles: list[str] = []
        for page in _pages(payload):
            for image in page.get("images", []) or []:
                title = image.get("title") if isinstance(image, dict) else None
                if isinstance(title, str) and title.lower().endswith(IMAGE_EXTENSIONS):
                    titles.append(title)
                if len(titles) >= MAX_IMAGE_CANDIDATES:
                    return titles
        return titles

    def image_info(self, file_title: str) -> dict[str, Any]:
        """Return URL and dimensions for one file title."""
        payload = self._query({"prop": "imageinfo", "iiprop": "url|size", "titles": file_title})
        for page in _pages(payload):
            infos = page.get("imageinfo")
            if isinstance(infos, list) and infos and isinstance(infos[0], dict):
                return infos[0]
        raise ImageSourceError(f"No image metadata for {file_title!r}.")

    def _query(self, params: dict[str, str]) -> dict[str, Any]:
        response = self._session.get(
            self._api_url,
            params={"action": "query", "format": "json", **params},
            headers=self._headers,
            timeout=self._timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ImageSourceError("Encyclopedia response is not a JSON object.")
        return payload


def _pages(payload: dict[str, Any]) -> list[dict[str, Any]]:
    query = payload.get("query")
    if not isinstance(query, dict):
        return []
    pages = query.get("pages")
    if not isinstance(pages, dict):
        return []
    return [page for page in pages.values() if isinstance(page, dict)]


class StockPhotoClient:
    """Searches square photos on the Pexels API."""

    def __init__(self, session: requests.Session, base_url: str, api_key: str, timeout: float) -> None:
        self._session = session
        self._search_url = base_url.rstrip("/") + "/search"
        self._api_key = api_key
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def search(self, search_phrase: str, per_page: int = 1) -> list[str]:
        """Return medium-size photo URLs for `search_phrase`, best match first."""
        response = self._session.get(
            self._search_url,
            params={"query": search_phrase, "per_page": per_page, "orientation": "square"},
            headers={"Authorization": self._api_key},
            timeout=self._timeout,
        )
        response.raise_for_status()
        payload = response.json()
        photos = payload.get("photos") if isinstance(payload, dict) else None
        if not isinstance(photos, list):
            raise ImageSourceError("Stock photo response has no photo list.")
        urls: list[str] = []
        for photo in photos:
            src = photo.get("src") if isinstance(photo, dict) else None
            medium = src.get("medium") if isinstance(src, dict) else None
            if isinstance(medium, str) and medium:
                urls.append(medium)
        return urls


def placeholder_url(search_phrase: str, base_url: str = "https://robohash.org") -> str:
    """Deterministic placeholder image for a phrase."""
    return f"{base_url.rstrip('/')}/{quote(search_phrase, safe='')}?set=set4&size=400x400"


def classify_url(url: str) -> ImageSource:
    """Guess which remote tier a URL came from."""
    lowered = url.lower()
    if "robohash.org" in lowered:
        return ImageSource.PLACEHOLDER
    if "wikimedia" in lowered or "wikipedia" in lowered:
        return ImageSource.ENCYCLOPEDIA
    if "pexels" in lowered:
        return ImageSource.STOCK
    return ImageSource.UNKNOWN


class LoadState(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class LoadProgress:
    """Progress report emitted while loading a batch of images in order."""

    item: CatalogItem
    state: LoadState
    index: int
    total: int
    reference: ImageReference | None = None
    elapsed_ms: int = 0

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        done = self.index + (0 if self.state is LoadState.LOADING else 1)
        return done / self.total


ProgressFn = Callable[[LoadProgress], None]

_REMOTE_ERRORS = (requests.RequestException, ImageSourceError, ValueError)


class ImageResolver:
    """Produces a displayable image reference for any catalog item."""

    def __init__(
        self,
        cache: ImageCache,
        encyclopedia: EncyclopediaClient,
        stock: StockPhotoClient,
        registry: AssetRegistry | None = None,
        rng: random.Random | None = None,
        placeholder_base_url: str = "https://robohash.org",
    ) -> None:
        self.cache = cache
        self.encyclopedia = encyclopedia
        self.stock = stock
        self.registry = registry or AssetRegistry()
        self._rng = rng or random.Random()
        self._placeholder_base_url = placeholder_base_url

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: KeyValueStore,
        session: requests.Session | None = None,
        rng: random.Random | None = None,
        registry: AssetRegistry | None = None,
    ) -> ImageResolver:
        """Wire a resolver from configuration."""
        http = session or requests.Session()
        return cls(
            cache=ImageCache(
                store,
                stock_hours=settings.stock_cache_hours,
                encyclopedia_hours=settings.encyclopedia_cache_hours,
            ),
            encyclopedia=EncyclopediaClient(
                http, settings.wikipedia_api_url, settings.http_timeout, settings.user_agent
            ),
            stock=StockPhotoClient(http, settings.pexels_base_url, settings.pexels_api_key, settings.http_timeout),
            registry=registry,
            rng=rng,
            placeholder_base_url=settings.placeholder_base_url,
        )

    def resolve(self, item: CatalogItem, bypass_cache: bool = False) -> ImageReference:
        """Return a bundled or remote image for `item`; never raises."""
        try:
            return self._resolve_tiers(item, bypass_cache)
        except Exception:
            logger.exception("Unexpected error resolving image for %s", item.id)
            return self.placeholder(item)

    def placeholder(self, item: CatalogItem) -> ImageReference:
        return ImageReference.remote(
            placeholder_url(item.search_phrase, self._placeholder_base_url), ImageSource.PLACEHOLDER
        )

    def _resolve_tiers(self, item: CatalogItem, bypass_cache: bool) -> ImageReference:
        phrase = item.search_phrase
        if not bypass_cache:
            if item.bundled_asset is not None:
                asset = self.registry.lookup(item.bundled_asset)
                if asset is not None:
                    logger.debug("Using bundled asset %s for %s", asset.key, item.id)
                    return ImageReference.bundled(asset)
                logger.warning("Bundled asset %s for %s is not registered", item.bundled_asset, item.id)

            for source in (ImageSource.STOCK, ImageSource.ENCYCLOPEDIA):
                entry = self.cache.get(source, phrase)
                if entry is not None:
                    logger.debug("Using cached %s URL for %s", source.value, item.id)
                    return ImageReference.remote(entry.url, ImageSource.CACHE)

        url = self._from_encyclopedia(phrase)
        if url is not None:
            return ImageReference.remote(url, ImageSource.ENCYCLOPEDIA)

        url = self._from_stock(phrase, bypass_cache)
        if url is not None:
            return ImageReference.remote(url, ImageSource.STOCK)

        logger.info("Using placeholder image for %s", item.id)
        return self.placeholder(item)

    def _from_encyclopedia(self, phrase: str) -> str | None:
        try:
            url = self.encyclopedia.find_image_url(phrase)
        except _REMOTE_ERRORS as exc:
            logger.info("Encyclopedia lookup failed for %r: %s", phrase, exc)
            return None
        self.cache.put(ImageSource.ENCYCLOPEDIA, phrase, url)
        return url

    def _from_stock(self, phrase: str, bypass_cache: bool) -> str | None:
        if not self.stock.configured:
            logger.debug("Stock photo API key not configured; skipping %r", phrase)
            return None
        per_page = STOCK_BATCH_SIZE if bypass_cache else 1
        try:
            urls = self.stock.search(phrase, per_page=per_page)
        except _REMOTE_ERRORS as exc:
            logger.info("Stock photo search failed for %r: %s", phrase, exc)
            return None
        if not urls:
            logger.info("Stock photo search found nothing for %r", phrase)
            return None
        # A random pick gives "show me another picture" something new to show.
        url = self._rng.choice(urls) if bypass_cache else urls[0]
        if not bypass_cache:
            self.cache.put(ImageSource.STOCK, phrase, url)
        return url

    def preload(
        self, items: Iterable[CatalogItem], max_workers: int = DEFAULT_PRELOAD_WORKERS
    ) -> dict[str, ImageReference]:
        """Resolve items concurrently and return references keyed by item id."""
        batch = list(items)
        if not batch:
            return {}
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(batch)))) as executor:
            references = list(executor.map(self.resolve, batch))
        return {item.id: reference for item, reference in zip(batch, references)}

    def load_sequential(
        self, items: Iterable[CatalogItem], on_progress: ProgressFn | None = None
    ) -> dict[str, ImageReference]:
        """Resolve items one at a time, reporting each loading/loaded/error transition."""
        batch = list(items)
        references: dict[str, ImageReference] = {}
        for index, item in enumerate(batch):
            if on_progress is not None:
                on_progress(LoadProgress(item=item, state=LoadState.LOADING, index=index, total=len(batch)))
            started = time.monotonic()
            try:
                reference = self._resolve_tiers(item, bypass_cache=False)
                state = LoadState.LOADED
            except Exception:
                logger.exception("Failed to load image for %s", item.id)
                reference = self.placeholder(item)
                state = LoadState.ERROR
            references[item.id] = reference
            if on_progress is not None:
                elapsed_ms = int((time.monotonic() - started) * 1000)
                on_progress(
                    LoadProgress(
                        item=item,
                        state=state,
                        index=index,
                        total=len(batch),
                        reference=reference,
                        elapsed_ms=elapsed_ms,
                    )
                )
        return references

    def clear_cache(self) -> int:
        """Drop every cached remote URL."""
        return self.cache.clear()
