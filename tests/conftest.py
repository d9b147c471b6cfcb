from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = ROOT / "tests"
for path in (SRC, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from braintest.catalog import Catalog, load_catalog  # noqa: E402
from braintest.config import Settings  # noqa: E402
from braintest.storage import MemoryKeyValueStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of settings built in tests."""
    for name in ("PEXELS_API_KEY", "BRAINTEST_PEXELS_API_KEY", "BRAINTEST_DB_PATH", "BRAINTEST_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, pexels_api_key="test-key", db_path=tmp_path / "braintest.db")


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture(scope="session")
def catalog() -> Catalog:
    return load_catalog()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
