"""Test doubles for HTTP and storage collaborators."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import requests

from braintest.models import Category, CatalogItem, Difficulty
from braintest.storage import StorageError

WIKI_URL = "https://en.wikipedia.org/w/api.php"
PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, bad_json: bool = False) -> None:
        self.payload = payload
        self.status_code = status
        self.bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self) -> Any:
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


Handler = Callable[[str, dict[str, Any]], Any]


class FakeSession:
    """Records GET calls and answers them with `handler(url, params)`."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, params: dict[str, Any] | None = None, headers: dict[str, str] | None = None,
            timeout: float | None = None) -> FakeResponse:
        params = dict(params or {})
        self.calls.append({"url": url, "params": params, "headers": dict(headers or {}), "timeout": timeout})
        result = self.handler(url, params)
        if isinstance(result, BaseException):
            raise result
        return result

    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


def wiki_images_payload(titles: Iterable[str]) -> dict[str, Any]:
    return {"query": {"pages": {"101": {"title": "Page", "images": [{"ns": 6, "title": t} for t in titles]}}}}


def wiki_info_payload(url: str, width: int = 800, height: int = 600) -> dict[str, Any]:
    return {"query": {"pages": {"-1": {"imageinfo": [{"url": url, "width": width, "height": height}]}}}}


def pexels_payload(urls: Iterable[str]) -> dict[str, Any]:
    return {"photos": [{"id": index, "src": {"medium": url}} for index, url in enumerate(urls)]}


def wiki_then_pexels(
    wiki_image: str | None = "https://upload.wikimedia.org/a/Okapi.jpg",
    pexels_urls: Iterable[str] = ("https://images.pexels.com/photos/1/medium.jpg",),
) -> Handler:
    """Handler answering encyclopedia requests (unless `wiki_image` is None) and stock searches."""
    photo_urls = list(pexels_urls)

    def handler(url: str, params: dict[str, Any]) -> Any:
        if url == WIKI_URL:
            if wiki_image is None:
                return FakeResponse({"query": {"pages": {"-1": {"missing": ""}}}})
            if params.get("prop") == "images":
                return FakeResponse(wiki_images_payload(["File:Commons-logo.svg", "File:Animal photo.jpg"]))
            return FakeResponse(wiki_info_payload(wiki_image))
        if url == PEXELS_SEARCH_URL:
            per_page = int(params.get("per_page", 1))
            return FakeResponse(pexels_payload(photo_urls[:per_page]))
        raise AssertionError(f"unexpected url {url}")

    return handler


class FailingStore:
    """Key-value store whose every operation fails."""

    def get(self, key: str) -> str | None:
        raise StorageError("disk unavailable")

    def set(self, key: str, value: str) -> None:
        raise StorageError("disk unavailable")

    def remove(self, key: str) -> None:
        raise StorageError("disk unavailable")

    def list_keys(self) -> list[str]:
        raise StorageError("disk unavailable")

    def remove_many(self, keys: Iterable[str]) -> None:
        raise StorageError("disk unavailable")


def make_item(
    item_id: str,
    difficulty: Difficulty = Difficulty.MEDIUM,
    bundled_asset: str | None = None,
    synonyms: tuple[str, ...] = (),
) -> CatalogItem:
    return CatalogItem(
        id=item_id,
        name=item_id.title(),
        synonyms=synonyms,
        difficulty=difficulty,
        category=Category.MAMMAL,
        popularity=5,
        search_phrase=item_id,
        bundled_asset=bundled_asset,
    )
