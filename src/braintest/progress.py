"""Persisted aggregate of which items the user has seen and named correctly."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

PROGRESS_KEY = "progress"
MIN_SKILL = 1.0
MAX_SKILL = 3.0
SKILL_STEP = 0.1
PROMOTE_ACCURACY = 0.8
DEMOTE_ACCURACY = 0.5


@dataclass
class ProgressRecord:
    """Single per-installation progress aggregate."""

    seen: set[str] = field(default_factory=set)
    correct: set[str] = field(default_factory=set)
    skill: float = MIN_SKILL
    tests_completed: int = 0

    def to_json(self) -> str:
        return json.dumps(
            {
                "seen": sorted(self.seen),
                "correct": sorted(self.correct),
                "skill": self.skill,
                "tests_completed": self.tests_completed,
            }
        )

    @classmethod
    def from_json(cls, text: str) -> ProgressRecord:
        raw = json.loads(text)
        if not isinstance(raw, dict):
            raise ValueError("Progress record must be a JSON object.")
        seen = {str(item) for item in raw.get("seen", [])}
        # Correct answers are always a subset of seen items.
        correct = {str(item) for item in raw.get("correct", [])} & seen
        skill = _clamp_skill(float(raw.get("skill", MIN_SKILL)))
        tests_completed = max(0, int(raw.get("tests_completed", 0)))
        return cls(seen=seen, correct=correct, skill=skill, tests_completed=tests_completed)


@dataclass(frozen=True)
class ProgressStats:
    """Summary of a progress record."""

    seen_count: int
    correct_count: int
    accuracy: float
    skill_estimate: float
    test_count: int


class ProgressStore:
    """Loads, updates and persists the progress record.

    The record is read from the store once and then kept in memory; every
    update is written back before the call returns.
    """

    def __init__(self, store: KeyValueStore, key: str = PROGRESS_KEY) -> None:
        self._store = store
        self._key = key
        self._record: ProgressRecord | None = None

    @property
    def record(self) -> ProgressRecord:
        """Cached record, loaded lazily with defaults when absent or unreadable."""
        if self._record is None:
            self._record = self._load()
        return self._record

    def _load(self) -> ProgressRecord:
        try:
            text = self._store.get(self._key)
        except StorageError as exc:
            logger.warning("Error loading progress: %s", exc)
            return ProgressRecord()
        if text is None:
            return ProgressRecord()
        try:
            return ProgressRecord.from_json(text)
        except (ValueError, TypeError) as exc:
            logger.warning("Ignoring unreadable progress record: %s", exc)
            return ProgressRecord()

    def _save(self) -> None:
        try:
            self._store.set(self._key, self.record.to_json())
        except StorageError as exc:
            logger.warning("Error saving progress: %s", exc)

    def record_session(self, item_ids: Iterable[str], correct_ids: Iterable[str]) -> ProgressStats:
        """Fold one finished session into the record and adjust the skill estimate.

        Accuracy at or above 0.8 raises the estimate by 0.1 and accuracy below
        0.5 lowers it by 0.1, always within [1, 3].
        """
        shown = set(item_ids)
        right = set(correct_ids)
        if not right.issubset(shown):
            unknown = ", ".join(sorted(right - shown))
            raise ValueError(f"Correct ids not shown in this session: {unknown}")

        record = self.record
        record.seen |= shown
        record.correct |= right
        record.tests_completed += 1

        if shown:
            accuracy = len(right) / len(shown)
            if accuracy >= PROMOTE_ACCURACY and record.skill < MAX_SKILL:
                record.skill = _clamp_skill(record.skill + SKILL_STEP)
            elif accuracy < DEMOTE_ACCURACY and record.skill > MIN_SKILL:
                record.skill = _clamp_skill(record.skill - SKILL_STEP)

        self._save()
        logger.debug("Recorded session: %d shown, %d correct, skill %.2f", len(shown), len(right), record.skill)
        return self.get_stats()

    def get_stats(self) -> ProgressStats:
        record = self.record
        seen_count = len(record.seen)
        correct_count = len(record.correct)
        return ProgressStats(
            seen_count=seen_count,
            correct_count=correct_count,
            accuracy=correct_count / seen_count if seen_count else 0.0,
            skill_estimate=record.skill,
            test_count=record.tests_completed,
        )

    def reset(self) -> None:
        """Forget all progress."""
        self._record = ProgressRecord()
        self._save()


def _clamp_skill(value: float) -> float:
    """Clamp to [1, 3], rounding away float drift from repeated 0.1 steps."""
    return round(min(MAX_SKILL, max(MIN_SKILL, value)), 2)
