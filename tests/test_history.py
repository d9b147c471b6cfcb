import json
import logging

import pytest

from braintest.history import ANIMAL_NAMING_TEST_ID, RESULTS_KEY, ResultsHistory
from braintest.storage import MemoryKeyValueStore
from helpers import FailingStore


def test_results_are_grouped_by_test_and_stamped(store: MemoryKeyValueStore) -> None:
    history = ResultsHistory(store)
    history.add_result(ANIMAL_NAMING_TEST_ID, {"score": 80})
    history.add_result(ANIMAL_NAMING_TEST_ID, {"score": 90})
    results = history.add_result("memory", {"score": 10})

    assert [row["score"] for row in results[ANIMAL_NAMING_TEST_ID]] == [80, 90]
    assert all("when" in row for row in results[ANIMAL_NAMING_TEST_ID])
    assert json.loads(store.get(RESULTS_KEY) or "{}")["memory"][0]["score"] == 10


def test_clear_one_test_keeps_others(store: MemoryKeyValueStore) -> None:
    history = ResultsHistory(store)
    history.add_result(ANIMAL_NAMING_TEST_ID, {"score": 80})
    history.add_result("memory", {"score": 10})
    history.clear_test(ANIMAL_NAMING_TEST_ID)
    history.clear_test("never-run")
    assert list(history.load()) == ["memory"]

    history.clear_all()
    assert history.load() == {}
    assert store.get(RESULTS_KEY) is None


@pytest.mark.parametrize("stored", ["{broken", "[1, 2]", '{"animal": "not a list"}'])
def test_malformed_history_reads_as_empty(store: MemoryKeyValueStore, stored: str) -> None:
    store.set(RESULTS_KEY, stored)
    assert ResultsHistory(store).load().get(ANIMAL_NAMING_TEST_ID) is None


def test_storage_failures_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    history = ResultsHistory(FailingStore())  # type: ignore[arg-type]
    with caplog.at_level(logging.ERROR, logger="braintest.history"):
        results = history.add_result(ANIMAL_NAMING_TEST_ID, {"score": 1})
        history.clear_all()
    assert results[ANIMAL_NAMING_TEST_ID][0]["score"] == 1
    assert "Error loading results" in caplog.text
    assert "Error saving results" in caplog.text
    assert "Error clearing all results" in caplog.text
