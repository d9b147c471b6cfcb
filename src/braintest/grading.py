"""Lenient free-text answer matching and session scoring."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .models import CatalogItem, GradedAnswer, SessionResult

_NON_LETTERS = re.compile(r"[^a-z]")


def normalize_answer(text: str) -> str:
    """Lowercase and keep only the letters a-z."""
    return _NON_LETTERS.sub("", text.lower().strip())


def is_match(user_input: str, accepted_names: Iterable[str]) -> bool:
    """Return whether input names one of the accepted names.

    Normalized forms match when equal or when either contains the other, so
    plurals and partial typing are accepted ("cat" also matches "catfish").
    Input with no letters at all never matches.
    """
    given = normalize_answer(user_input)
    if not given:
        return False
    for name in accepted_names:
        expected = normalize_answer(name)
        if not expected:
            continue
        if given == expected or given in expected or expected in given:
            return True
    return False


def grade_session(items: Sequence[CatalogItem], answers: Sequence[str]) -> SessionResult:
    """Grade answers against items in order.

    Missing trailing answers count as wrong. The headline `score` weights each
    item by its difficulty tier and is reported as a 0-100 percentage.
    """
    graded: list[GradedAnswer] = []
    for index, item in enumerate(items):
        answer = answers[index] if index < len(answers) else ""
        graded.append(GradedAnswer(item=item, answer=answer, correct=is_match(answer, item.accepted_names)))

    raw_score = sum(1 for entry in graded if entry.correct)
    weight_total = sum(int(entry.item.difficulty) for entry in graded)
    weight_correct = sum(int(entry.item.difficulty) for entry in graded if entry.correct)
    return SessionResult(
        answers=tuple(graded),
        raw_score=raw_score,
        max_score=len(graded),
        accuracy=raw_score / len(graded) if graded else 0.0,
        score=round(100 * weight_correct / weight_total) if weight_total else 0,
    )
