"""Column name classification into weighted categories."""

from enum import Enum
from typing import Iterable


class Category(str, Enum):
    EXERCISE = "exercise"
    EXAM = "exam"
    FINAL = "final"
    OTHER = "other"

    @property
    def weighted(self) -> bool:
        return self is not Category.OTHER


WEIGHTED_CATEGORIES = (Category.EXERCISE, Category.EXAM, Category.FINAL)

# Checked in order; the first pattern found in the name wins.
_PATTERNS = [
    ("final", Category.FINAL),
    ("exam", Category.EXAM),
    ("exercise", Category.EXERCISE),
]


def classify_column(name: str) -> Category:
    """
    Classify a column by its name.

    Matching is a case-insensitive substring search. "Final Exam" is a
    Final, not an Exam. Names matching nothing are Other.
    """
    lowered = str(name).lower()
    for pattern, category in _PATTERNS:
        if pattern in lowered:
            return category
    return Category.OTHER


def classify_columns(names: Iterable[str]) -> dict[str, Category]:
    """Classify every column of a header, preserving column order."""
    return {name: classify_column(name) for name in names}
