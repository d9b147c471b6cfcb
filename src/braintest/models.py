"""Core domain models for the animal-naming test."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Literal

MIXED: Literal["mixed"] = "mixed"


class Difficulty(IntEnum):
    """Item difficulty tier."""

    EASY = 1
    MEDIUM = 2
    HARD = 3


DifficultySelector = Difficulty | Literal["mixed"]


class Category(str, Enum):
    """Coarse animal grouping."""

    MAMMAL = "mammal"
    BIRD = "bird"
    REPTILE = "reptile"
    AMPHIBIAN = "amphibian"
    FISH = "fish"
    INSECT = "insect"
    OTHER = "other"


class TestMode(str, Enum):
    """Selection strategy for one test session."""

    __test__ = False

    FIXED = "fixed"
    EXTENDED = "extended"
    ADAPTIVE = "adaptive"
    RANDOM = "random"


class ImageSource(str, Enum):
    """Where a displayable image came from, in resolution preference order."""

    BUNDLED = "bundled"
    CACHE = "cache"
    ENCYCLOPEDIA = "encyclopedia"
    STOCK = "stock"
    PLACEHOLDER = "placeholder"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CatalogItem:
    """One animal that can be shown in a naming test."""

    id: str
    name: str
    synonyms: tuple[str, ...]
    difficulty: Difficulty
    category: Category
    popularity: int
    search_phrase: str
    bundled_asset: str | None = None

    @property
    def accepted_names(self) -> list[str]:
        """Primary name followed by synonyms."""
        return [self.name, *self.synonyms]

    @property
    def is_core(self) -> bool:
        return self.bundled_asset is not None


@dataclass(frozen=True)
class TestConfiguration:
    """Caller-chosen parameters for one test session."""

    __test__ = False

    mode: TestMode
    item_count: int
    difficulty: DifficultySelector = MIXED
    allow_repeats: bool = False

    def __post_init__(self) -> None:
        if self.item_count < 0:
            raise ValueError(f"item_count must be non-negative, got {self.item_count}.")
        if self.difficulty == MIXED or isinstance(self.difficulty, Difficulty):
            return
        try:
            object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        except ValueError:
            raise ValueError(f"Unknown difficulty selector: {self.difficulty!r}") from None


@dataclass(frozen=True)
class GradedAnswer:
    """One (item, answer, correctness) triple."""

    item: CatalogItem
    answer: str
    correct: bool


@dataclass(frozen=True)
class SessionResult:
    """Graded answers of a finished session with aggregate scores."""

    answers: tuple[GradedAnswer, ...]
    raw_score: int
    max_score: int
    accuracy: float
    score: int

    def item_ids(self) -> list[str]:
        return [graded.item.id for graded in self.answers]

    def correct_ids(self) -> list[str]:
        return [graded.item.id for graded in self.answers if graded.correct]

    def to_dict(self, config: TestConfiguration | None = None) -> dict[str, object]:
        """Serialize for the results history."""
        payload: dict[str, object] = {
            "score": self.score,
            "raw_score": self.raw_score,
            "max_score": self.max_score,
            "accuracy": self.accuracy,
            "answers": [graded.answer for graded in self.answers],
            "correct_answers": [graded.correct for graded in self.answers],
            "items": [
                {"id": graded.item.id, "name": graded.item.name, "difficulty": int(graded.item.difficulty)}
                for graded in self.answers
            ],
        }
        if config is not None:
            payload["mode"] = config.mode.value
            payload["difficulty"] = config.difficulty if config.difficulty == MIXED else int(config.difficulty)
        return payload
