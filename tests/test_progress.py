import json
import logging

import pytest

from braintest.progress import PROGRESS_KEY, ProgressRecord, ProgressStore
from braintest.storage import MemoryKeyValueStore, SQLiteKeyValueStore
from helpers import FailingStore


def test_fresh_store_has_default_record(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    stats = progress.get_stats()
    assert stats.seen_count == 0
    assert stats.correct_count == 0
    assert stats.accuracy == 0.0
    assert stats.skill_estimate == 1.0
    assert stats.test_count == 0


def test_record_session_unions_seen_and_correct(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    stats = progress.record_session(["a", "b", "c"], ["a", "b"])
    assert stats.seen_count == 3
    assert stats.correct_count == 2
    assert stats.accuracy == pytest.approx(2 / 3)
    assert stats.test_count == 1

    stats = progress.record_session(["a", "b", "c"], ["a", "b"])
    assert stats.seen_count == 3
    assert stats.correct_count == 2
    assert stats.test_count == 2


def test_skill_rises_and_falls_with_accuracy(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    progress.record_session(["a", "b", "c", "d", "e"], ["a", "b", "c", "d"])
    assert progress.record.skill == 1.1

    # 0.6 accuracy leaves the estimate alone.
    progress.record_session(["f", "g", "h", "i", "j"], ["f", "g", "h"])
    assert progress.record.skill == 1.1

    progress.record_session(["k", "l"], [])
    assert progress.record.skill == 1.0


def test_skill_is_clamped_to_range(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    progress.record_session(["a"], [])
    assert progress.record.skill == 1.0

    for _ in range(30):
        progress.record_session(["a"], ["a"])
    assert progress.record.skill == 3.0


def test_empty_session_counts_but_keeps_skill(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    progress.record_session(["a"], ["a"])
    stats = progress.record_session([], [])
    assert stats.skill_estimate == 1.1
    assert stats.test_count == 2


def test_correct_ids_must_have_been_shown(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    with pytest.raises(ValueError, match="not shown"):
        progress.record_session(["a"], ["a", "zebra"])
    assert store.get(PROGRESS_KEY) is None
    assert progress.get_stats().test_count == 0


def test_record_is_persisted_and_reloaded(store: MemoryKeyValueStore) -> None:
    ProgressStore(store).record_session(["cat", "dog"], ["cat"])

    saved = json.loads(store.get(PROGRESS_KEY) or "{}")
    assert saved["seen"] == ["cat", "dog"]
    assert saved["correct"] == ["cat"]
    assert saved["tests_completed"] == 1

    reloaded = ProgressStore(store)
    assert reloaded.record.seen == {"cat", "dog"}
    assert reloaded.record.correct == {"cat"}


def test_sqlite_backed_progress_survives_reopen(tmp_path) -> None:
    db_path = tmp_path / "progress.db"
    first = SQLiteKeyValueStore(db_path)
    ProgressStore(first).record_session(["okapi"], ["okapi"])
    first.close()

    second = SQLiteKeyValueStore(db_path)
    assert ProgressStore(second).get_stats().correct_count == 1
    second.close()


def test_loaded_record_is_repaired(store: MemoryKeyValueStore) -> None:
    store.set(PROGRESS_KEY, json.dumps({"seen": ["a"], "correct": ["a", "b"], "skill": 7.5, "tests_completed": -2}))
    record = ProgressStore(store).record
    assert record.correct == {"a"}
    assert record.skill == 3.0
    assert record.tests_completed == 0


def test_unreadable_record_falls_back_to_defaults(
    store: MemoryKeyValueStore, caplog: pytest.LogCaptureFixture
) -> None:
    store.set(PROGRESS_KEY, "[1, 2")
    with caplog.at_level(logging.WARNING, logger="braintest.progress"):
        record = ProgressStore(store).record
    assert record == ProgressRecord()
    assert "unreadable progress record" in caplog.text


def test_storage_failures_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    progress = ProgressStore(FailingStore())  # type: ignore[arg-type]
    with caplog.at_level(logging.WARNING, logger="braintest.progress"):
        stats = progress.record_session(["a", "b"], ["a", "b"])
    # The in-memory record still reflects the session.
    assert stats.seen_count == 2
    assert stats.skill_estimate == 1.1
    assert "Error loading progress" in caplog.text
    assert "Error saving progress" in caplog.text


def test_reset_clears_record(store: MemoryKeyValueStore) -> None:
    progress = ProgressStore(store)
    progress.record_session(["a", "b"], ["a", "b"])
    progress.reset()
    assert progress.get_stats().seen_count == 0
    assert ProgressStore(store).get_stats().test_count == 0
