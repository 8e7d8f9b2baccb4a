"""
Weighted running-average calculation.

Each assignment of a category is worth an equal share of that category's
weight: ``weight / capacity``. A student earns that share scaled by their
fractional score, and the points possible so far are the shares of every
weighted column seen. The running average is earned over possible, as a
percentage, so it stays within 0-100 whenever the scores do.
"""

from typing import Mapping
import logging
import math

import pandas as pd

from .classifier import Category, WEIGHTED_CATEGORIES
from .config_schema import WeightConfig
from .errors import InvalidColumnRangeError
from .table import ScoreTable

logger = logging.getLogger(__name__)


def as_score_table(table: ScoreTable | pd.DataFrame) -> ScoreTable:
    """Wrap a DataFrame as a ScoreTable; ScoreTables pass through."""
    if isinstance(table, ScoreTable):
        return table
    return ScoreTable(table)


def _check_upto(table: ScoreTable, upto_column_index: int) -> list[str]:
    """Return the score columns included through the given column position."""
    total = len(table.columns)
    if isinstance(upto_column_index, bool) or not isinstance(upto_column_index, int):
        raise InvalidColumnRangeError(
            f"Column index must be an integer, got {upto_column_index!r}"
        )
    if not 1 <= upto_column_index <= total - 1:
        raise InvalidColumnRangeError(
            f"Column index {upto_column_index} is outside 1..{total - 1} "
            f"(position 0 is the identifier '{table.identifier_name}')"
        )
    return table.score_columns[:upto_column_index]


def count_categories(categories: list[Category]) -> dict[Category, int]:
    """Count weighted categories in a sequence of column categories."""
    counts = {category: 0 for category in WEIGHTED_CATEGORIES}
    for category in categories:
        if category.weighted:
            counts[category] += 1
    return counts


def compute_possible_points(counts: Mapping[Category | str, int], config: WeightConfig) -> float:
    """
    Points available after ``counts`` assignments of each category.

    Each category contributes ``count / capacity * weight``. With every
    category at capacity this is the sum of the weights, 100.
    """
    parts = []
    for key, count in counts.items():
        try:
            category = Category(str(getattr(key, "value", key)).lower())
        except ValueError:
            raise ValueError(f"Unknown category '{key}'") from None
        if not category.weighted:
            raise ValueError("Category 'other' carries no weight and cannot be counted")
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Count for '{category.value}' must be a non-negative integer, got {count!r}")
        entry = config[category]
        parts.append(count / entry.capacity * entry.weight)
    return math.fsum(parts)


def _earned_contributions(table: ScoreTable, columns: list[str], config: WeightConfig) -> pd.DataFrame:
    """Per-cell earned points for the weighted columns among ``columns``."""
    weighted = [c for c in columns if table.category(c).weighted]
    scores = table.numeric_scores(weighted)
    shares = pd.Series({c: config.share(table.category(c)) for c in weighted}, dtype=float)
    return scores / 100 * shares


def compute_earned_points(
    table: ScoreTable | pd.DataFrame,
    upto_column_index: int,
    config: WeightConfig
) -> pd.Series:
    """
    Earned points per student through ``upto_column_index``.

    Args:
        table: Score table, identifier column first
        upto_column_index: Position of the last included column; position 0
            is the identifier, so valid values are 1..len(columns) - 1
        config: Category weights and capacities

    Returns:
        Series of earned points indexed by student identifier
    """
    table = as_score_table(table)
    columns = _check_upto(table, upto_column_index)
    earned = _earned_contributions(table, columns, config).sum(axis=1)
    earned.name = "earned_points"
    return earned


def compute_running_average(
    table: ScoreTable | pd.DataFrame,
    upto_column_index: int,
    config: WeightConfig
) -> pd.Series:
    """
    Running average per student through ``upto_column_index``.

    Raises InvalidColumnRangeError when no points are possible yet, i.e. no
    weighted column has been seen or every seen category weighs nothing.
    """
    table = as_score_table(table)
    columns = _check_upto(table, upto_column_index)
    counts = count_categories([table.category(c) for c in columns])
    possible = compute_possible_points(counts, config)
    if possible <= 0:
        raise InvalidColumnRangeError(
            f"No weighted points are possible through column {upto_column_index}"
        )

    earned = _earned_contributions(table, columns, config).sum(axis=1)
    average = earned / possible * 100
    average.name = "running_average"
    logger.debug("Running average through %s: possible=%s", columns[-1], possible)
    return average


def running_average_frame(table: ScoreTable | pd.DataFrame, config: WeightConfig) -> pd.DataFrame:
    """
    Running averages for every column prefix at once.

    Returns:
        DataFrame of students x score columns; cell (s, c) is student s's
        running average through column c, NaN where no points are possible
    """
    table = as_score_table(table)
    columns = table.score_columns

    contributions = _earned_contributions(table, columns, config)
    earned = contributions.reindex(columns=columns, fill_value=0.0).cumsum(axis=1)

    possible = pd.Series(
        [config.share(table.category(c)) for c in columns], index=columns, dtype=float
    ).cumsum()
    possible = possible.where(possible > 0)

    return earned / possible * 100


def final_running_average(table: ScoreTable | pd.DataFrame, config: WeightConfig) -> pd.Series:
    """Running average through the last column, per student."""
    table = as_score_table(table)
    return compute_running_average(table, len(table.columns) - 1, config)
