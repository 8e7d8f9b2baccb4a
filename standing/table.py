"""Score table with a cached column classification."""

from typing import Any, Sequence
import logging

import pandas as pd

from .classifier import Category, classify_columns
from .errors import MissingValueError
from .validators import validate_students

logger = logging.getLogger(__name__)


class ScoreTable:
    """
    A gradebook: one row per student, identifier first, then score columns.

    Columns are classified once when the table is built; the resulting
    column -> Category mapping is part of the table's schema. The wrapped
    DataFrame is copied on the way in and never modified.
    """

    def __init__(self, frame: pd.DataFrame):
        if frame.shape[1] < 1:
            raise ValueError("A score table needs at least the identifier column")

        columns = [str(c) for c in frame.columns]
        if len(set(columns)) != len(columns):
            raise ValueError(f"Duplicate column names: {columns}")

        raw_identifiers = list(frame.iloc[:, 0])
        errors = [i["message"] for i in validate_students(raw_identifiers) if i["type"] == "error"]
        if errors:
            raise ValueError("; ".join(errors))
        identifiers = [str(v) for v in raw_identifiers]
        if len(set(identifiers)) != len(identifiers):
            raise ValueError(f"Student identifiers are not unique as strings: {identifiers}")

        data = frame.iloc[:, 1:].copy()
        data.columns = columns[1:]
        data.index = pd.Index(identifiers, name=columns[0])

        self._frame = data
        self._identifier_name = columns[0]
        self._categories = classify_columns(data.columns)
        logger.debug("Classified columns: %s", {k: v.value for k, v in self._categories.items()})

    @classmethod
    def from_records(cls, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> "ScoreTable":
        """Build a table from a header and rows of ``[identifier, score, ...]``."""
        return cls(pd.DataFrame(list(rows), columns=list(columns)))

    @property
    def identifier_name(self) -> str:
        return self._identifier_name

    @property
    def columns(self) -> list[str]:
        """All column names, identifier first."""
        return [self._identifier_name] + list(self._frame.columns)

    @property
    def score_columns(self) -> list[str]:
        return list(self._frame.columns)

    @property
    def students(self) -> pd.Index:
        return self._frame.index

    @property
    def categories(self) -> dict[str, Category]:
        return dict(self._categories)

    def category(self, column: str) -> Category:
        return self._categories[column]

    @property
    def shape(self) -> tuple[int, int]:
        """(students, columns) including the identifier column."""
        return (len(self._frame.index), len(self._frame.columns) + 1)

    @property
    def raw_scores(self) -> pd.DataFrame:
        """Score cells as given, students x score columns."""
        return self._frame.copy()

    def numeric_scores(self, columns: Sequence[str] | None = None) -> pd.DataFrame:
        """
        Score cells as floats, students x the given score columns.

        Raises MissingValueError for the first absent or non-numeric cell
        (in column order, then row order).
        """
        selected = self._frame if columns is None else self._frame[list(columns)]
        return require_numeric(selected)

    def __len__(self) -> int:
        return len(self._frame.index)

    def __repr__(self) -> str:
        return f"ScoreTable(students={len(self)}, columns={self.columns})"


def _to_number(value: Any) -> float:
    if isinstance(value, (bool, str)):
        return float("nan")
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def require_numeric(values: pd.DataFrame) -> pd.DataFrame:
    """Convert a frame to floats, failing on the first missing cell."""
    numeric = pd.DataFrame(
        {column: values[column].map(_to_number) for column in values.columns},
        index=values.index,
        columns=values.columns,
        dtype=float,
    )
    missing = numeric.isna()
    if missing.to_numpy().any():
        for column in numeric.columns:
            rows = missing.index[missing[column].to_numpy()]
            if len(rows):
                student = rows[0]
                raise MissingValueError(
                    f"Missing or non-numeric score for '{student}' in column '{column}': "
                    f"{values.at[student, column]!r}",
                    student=student,
                    column=column,
                )
    return numeric
