"""
Conditional formatting rules.

A Rule pairs a predicate with a Style. The predicate receives the
ScoreTable and returns a boolean mask whose shape depends on the rule's
target:

- ``Target.SCORES``: a DataFrame of students x score columns, with the
  table's student index and score column labels
- ``Target.IDENTIFIER``: a Series with one value per student, on the
  table's student index

A RuleSet applies its rules in order. For every cell a rule's mask selects,
the fields the rule's Style sets replace those of the cell's current style;
unset fields are left alone. The outcome does not depend on how many rules
overlap a cell, and applying the same set twice changes nothing.

The core stops at a style grid. Writing styles to an actual worksheet is the
job of a WorksheetRenderer supplied by the caller.
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Iterable, Protocol
import logging

import numpy as np
import pandas as pd
from pandas.api.types import is_bool_dtype

from .classifier import Category
from .config_schema import DEFAULT_THRESHOLDS, Thresholds, WeightConfig
from .errors import RuleApplicationCancelled, ShapeMismatchError
from .scoring import as_score_table, final_running_average
from .table import ScoreTable
from .thresholds import Band, BAND_PREDICATES

logger = logging.getLogger(__name__)

SOLID = "solid"

BORDER_NONE = "none"
BORDER_SINGLE = "single"
BORDER_DOUBLE = "double"

BAND_COLORS = {
    Band.SAFE: "C6EFCE",
    Band.WARNING: "FFEB9C",
    Band.CRITICAL: "FFC7CE",
}

CATEGORY_BORDERS = {
    Category.EXERCISE: BORDER_NONE,
    Category.EXAM: BORDER_SINGLE,
    Category.FINAL: BORDER_DOUBLE,
}


@dataclass(frozen=True)
class Style:
    """
    A partial cell style. ``None`` means "leave as is".

    Attributes:
        fill_pattern: Fill pattern name, e.g. "solid"
        foreground_color: Fill color as RRGGBB hex
        border_style: "none", "single" or "double"
        wrap_text: Whether the cell wraps its text
    """

    fill_pattern: str | None = None
    foreground_color: str | None = None
    border_style: str | None = None
    wrap_text: bool | None = None

    def merged_onto(self, base: "Style") -> "Style":
        """Return ``base`` with every field set here overriding it."""
        changes = {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
        return replace(base, **changes)


EMPTY_STYLE = Style()


class Target(str, Enum):
    SCORES = "scores"
    IDENTIFIER = "identifier"


def _check_labels(name: str, kind: str, actual: pd.Index, expected: pd.Index):
    if len(actual) != len(expected):
        raise ShapeMismatchError(
            f"Rule '{name}' returned {len(actual)} {kind}, expected {len(expected)}"
        )
    if not actual.equals(expected):
        raise ShapeMismatchError(f"Rule '{name}' returned {kind} labels that do not match the table")


@dataclass(frozen=True)
class Rule:
    name: str
    target: Target
    predicate: Callable[[ScoreTable], Any]
    style: Style

    def evaluate(self, table: ScoreTable) -> pd.DataFrame | pd.Series:
        """Evaluate the predicate and check the mask against the target shape."""
        mask = self.predicate(table)

        if self.target is Target.SCORES:
            if not isinstance(mask, pd.DataFrame):
                raise ShapeMismatchError(
                    f"Rule '{self.name}' targets score cells and must return a DataFrame, "
                    f"got {type(mask).__name__}"
                )
            _check_labels(self.name, "rows", mask.index, table.students)
            _check_labels(self.name, "columns", mask.columns, pd.Index(table.score_columns))
            non_bool = [c for c in mask.columns if not is_bool_dtype(mask[c])]
            if non_bool:
                raise TypeError(f"Rule '{self.name}' mask is not boolean in columns {non_bool}")
        else:
            if not isinstance(mask, pd.Series):
                raise ShapeMismatchError(
                    f"Rule '{self.name}' targets identifier cells and must return a Series, "
                    f"got {type(mask).__name__}"
                )
            _check_labels(self.name, "rows", mask.index, table.students)
            if not is_bool_dtype(mask):
                raise TypeError(f"Rule '{self.name}' mask is not boolean")

        return mask

    def full_mask(self, table: ScoreTable) -> pd.DataFrame:
        """The rule's mask laid over the whole table, identifier column included."""
        mask = self.evaluate(table)
        full = pd.DataFrame(False, index=table.students, columns=table.columns)
        if self.target is Target.SCORES:
            full[table.score_columns] = mask.to_numpy()
        else:
            full[table.identifier_name] = mask.to_numpy()
        return full


class WorksheetRenderer(Protocol):
    """Writes a table and its rule set to a worksheet. Supplied by the caller."""

    def render_worksheet(self, sheet: Any, table: ScoreTable, rule_set: "RuleSet") -> bool:
        ...


class RuleSet:
    """An ordered, immutable sequence of rules; later rules win per field."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules = tuple(rules)

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> Rule:
        return self._rules[index]

    def __repr__(self) -> str:
        return f"RuleSet({[rule.name for rule in self._rules]})"

    def extend(self, rules: Iterable[Rule]) -> "RuleSet":
        """Return a new RuleSet with ``rules`` appended (lowest priority first)."""
        return RuleSet(self._rules + tuple(rules))

    def evaluate(self, table: ScoreTable | pd.DataFrame) -> list[tuple[Rule, pd.DataFrame]]:
        """Evaluate every rule, returning (rule, full-table mask) pairs in order."""
        table = as_score_table(table)
        evaluated = []
        for rule in self._rules:
            mask = rule.full_mask(table)
            logger.debug("Rule '%s' selects %d cell(s)", rule.name, int(mask.to_numpy().sum()))
            evaluated.append((rule, mask))
        return evaluated

    def apply(
        self,
        table: ScoreTable | pd.DataFrame,
        base: pd.DataFrame | None = None,
        should_cancel: Callable[[], bool] | None = None
    ) -> pd.DataFrame:
        """
        Overlay every rule's style onto a grid of cell styles.

        Args:
            table: Table the rules are evaluated against
            base: Existing styles (students x all columns); empty styles if None
            should_cancel: Polled between rules; returning True stops the pass
                with RuleApplicationCancelled

        Returns:
            New DataFrame of Style objects, students x all columns
        """
        table = as_score_table(table)
        if base is None:
            grid = pd.DataFrame(
                np.full(table.shape, EMPTY_STYLE, dtype=object),
                index=table.students,
                columns=table.columns,
            )
        else:
            if base.shape != table.shape:
                raise ShapeMismatchError(
                    f"Base style grid has shape {base.shape}, table has shape {table.shape}"
                )
            if set(base.index) != set(table.students) or set(base.columns) != set(table.columns):
                raise ShapeMismatchError("Base style grid labels do not match the table's students and columns")
            # Cells are merged by position, so line the grid up with the table.
            grid = base.reindex(index=table.students, columns=table.columns)

        # Merge strictly in rule order: later rules override earlier fields.
        values = grid.to_numpy(dtype=object, copy=True)
        for position, rule in enumerate(self._rules):
            if should_cancel is not None and should_cancel():
                raise RuleApplicationCancelled(
                    f"Rule application cancelled after {position} of {len(self._rules)} rule(s)"
                )
            mask = rule.full_mask(table).to_numpy()
            for row, col in zip(*mask.nonzero()):
                values[row, col] = rule.style.merged_onto(values[row, col])

        return pd.DataFrame(values, index=grid.index, columns=grid.columns)


def render(renderer: WorksheetRenderer, sheet: Any, table: ScoreTable | pd.DataFrame, rule_set: RuleSet) -> bool:
    """
    Hand a complete rule set to a renderer.

    Every rule is evaluated first, so shape errors surface here rather than
    halfway through the renderer's write.
    """
    table = as_score_table(table)
    rule_set.evaluate(table)
    ok = bool(renderer.render_worksheet(sheet, table, rule_set))
    if ok:
        logger.info("Rendered %d rule(s) for %d student(s)", len(rule_set), len(table))
    else:
        logger.warning("Renderer reported failure for %d rule(s)", len(rule_set))
    return ok


def _category_columns(category: Category) -> Callable[[ScoreTable], pd.DataFrame]:
    def predicate(table: ScoreTable) -> pd.DataFrame:
        mask = pd.DataFrame(False, index=table.students, columns=table.score_columns)
        for column in table.score_columns:
            if table.category(column) is category:
                mask[column] = True
        return mask
    return predicate


def _score_band(band: Band, thresholds: Thresholds) -> Callable[[ScoreTable], pd.DataFrame]:
    def predicate(table: ScoreTable) -> pd.DataFrame:
        mask = pd.DataFrame(False, index=table.students, columns=table.score_columns)
        weighted = [c for c in table.score_columns if table.category(c).weighted]
        if weighted:
            mask[weighted] = BAND_PREDICATES[band](table.numeric_scores(weighted), thresholds).to_numpy()
        return mask
    return predicate


def _average_band(band: Band, config: WeightConfig, thresholds: Thresholds) -> Callable[[ScoreTable], pd.Series]:
    def predicate(table: ScoreTable) -> pd.Series:
        return BAND_PREDICATES[band](final_running_average(table, config), thresholds)
    return predicate


def build_default_rule_set(config: WeightConfig, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> RuleSet:
    """
    The standard standing rules, in priority order.

    1. Borders by column category: none for Exercise, single for Exam,
       double for Final.
    2. Fill of every weighted score cell by the band of its raw score;
       Other columns are left unfilled.
    3. Fill of each student's identifier cell by the band of their final
       running average.
    """
    rules = []

    for category, border in CATEGORY_BORDERS.items():
        rules.append(Rule(
            name=f"border:{category.value}",
            target=Target.SCORES,
            predicate=_category_columns(category),
            style=Style(border_style=border),
        ))

    for band, color in BAND_COLORS.items():
        rules.append(Rule(
            name=f"score:{band.value}",
            target=Target.SCORES,
            predicate=_score_band(band, thresholds),
            style=Style(fill_pattern=SOLID, foreground_color=color),
        ))

    for band, color in BAND_COLORS.items():
        rules.append(Rule(
            name=f"average:{band.value}",
            target=Target.IDENTIFIER,
            predicate=_average_band(band, config, thresholds),
            style=Style(fill_pattern=SOLID, foreground_color=color),
        ))

    return RuleSet(rules)
