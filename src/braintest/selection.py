"""Choose which catalog items a naming test presents."""

from __future__ import annotations

import logging
import math
import random

from .catalog import Catalog
from .models import MIXED, CatalogItem, Difficulty, DifficultySelector, TestConfiguration, TestMode
from .progress import ProgressStore

logger = logging.getLogger(__name__)

FIXED_ITEM_IDS = ("lion", "camel", "rhinoceros")
EXTENDED_CORE_SHARE = 0.4
NEW_USER_TESTS = 5


class SelectionPolicy:
    """Turns a test configuration into an ordered list of items."""

    def __init__(self, catalog: Catalog, progress: ProgressStore, rng: random.Random | None = None) -> None:
        self.catalog = catalog
        self.progress = progress
        self._rng = rng or random.Random()

    def select(self, config: TestConfiguration) -> list[CatalogItem]:
        """Return at most `config.item_count` items (always three in fixed mode)."""
        if config.mode is TestMode.FIXED:
            selected = self.fixed_items()
        elif config.mode is TestMode.RANDOM:
            selected = self.random_items(config.item_count, config.difficulty)
        elif config.mode is TestMode.EXTENDED:
            selected = self.extended_items(config.item_count, config.difficulty)
        elif config.mode is TestMode.ADAPTIVE:
            selected = self.adaptive_items(config.item_count, allow_repeats=config.allow_repeats)
        else:  # pragma: no cover
            raise ValueError(f"Unknown test mode: {config.mode!r}")
        logger.debug("Selected %s for %s", [item.id for item in selected], config)
        return selected

    def fixed_items(self) -> list[CatalogItem]:
        """Canonical three-animal set, in fixed order."""
        return self.catalog.by_ids(FIXED_ITEM_IDS)

    def random_items(self, count: int, difficulty: DifficultySelector) -> list[CatalogItem]:
        pool = self.catalog.all() if difficulty == MIXED else self.catalog.by_difficulty(Difficulty(difficulty))
        return self._shuffled(pool)[:count]

    def extended_items(self, count: int, difficulty: DifficultySelector) -> list[CatalogItem]:
        """Blend bundled-image items with remote-only ones."""
        core = self.catalog.core()
        extended = self.catalog.extended()
        if difficulty == MIXED:
            core_count = math.ceil(count * EXTENDED_CORE_SHARE)
            pool = self._shuffled(core)[:core_count] + self._shuffled(extended)[: count - core_count]
        else:
            tier = Difficulty(difficulty)
            pool = [item for item in core if item.difficulty == tier]
            pool += [item for item in extended if item.difficulty == tier]
        return self._shuffled(pool)[:count]

    def adaptive_items(self, count: int, allow_repeats: bool = False) -> list[CatalogItem]:
        """Pick items at the user's current tier with one easier and one harder item mixed in."""
        record = self.progress.record
        tier = skill_tier(record.skill)
        pool = self.catalog.by_difficulty(tier)

        if not allow_repeats and len(pool) > count and record.seen:
            unseen = [item for item in pool if item.id not in record.seen]
            if len(unseen) >= count:
                pool = unseen

        if len(pool) < count:
            return self.random_items(count, tier)

        selected = self._shuffled(pool)[:count]
        if count >= 3 and tier > Difficulty.EASY:
            easier = self.catalog.by_difficulty(Difficulty(tier - 1))
            if easier:
                selected[-1] = self._rng.choice(easier)
        if count >= 4 and tier < Difficulty.HARD:
            harder = self.catalog.by_difficulty(Difficulty(tier + 1))
            if harder:
                selected[-2] = self._rng.choice(harder)
        return selected

    def recommended_configuration(self) -> TestConfiguration:
        """Suggest a configuration from how many tests the user has completed."""
        record = self.progress.record
        if record.tests_completed == 0:
            return TestConfiguration(mode=TestMode.FIXED, item_count=3, difficulty=Difficulty.MEDIUM)
        if record.tests_completed < NEW_USER_TESTS:
            return TestConfiguration(mode=TestMode.EXTENDED, item_count=5, difficulty=MIXED)
        return TestConfiguration(mode=TestMode.ADAPTIVE, item_count=8, difficulty=skill_tier(record.skill))

    def _shuffled(self, items: list[CatalogItem]) -> list[CatalogItem]:
        copy = list(items)
        self._rng.shuffle(copy)
        return copy


def skill_tier(skill: float) -> Difficulty:
    """Round a skill estimate half-up to the nearest tier."""
    tier = math.floor(skill + 0.5)
    return Difficulty(min(int(Difficulty.HARD), max(int(Difficulty.EASY), tier)))
