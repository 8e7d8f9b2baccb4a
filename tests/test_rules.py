"""Tests for styles, rules, rule sets and the default rule set."""

import numpy as np
import pandas as pd
import pytest

from standing import (
    MissingValueError,
    Rule,
    RuleApplicationCancelled,
    RuleSet,
    ScoreTable,
    ShapeMismatchError,
    Style,
    Target,
    build_default_rule_set,
    render,
)
from standing.rules import BAND_COLORS, EMPTY_STYLE
from standing.thresholds import Band

GREEN = BAND_COLORS[Band.SAFE]
YELLOW = BAND_COLORS[Band.WARNING]
RED = BAND_COLORS[Band.CRITICAL]


def _grid(table, style):
    return pd.DataFrame(np.full(table.shape, style, dtype=object), index=table.students, columns=table.columns)


def _all_scores(table):
    return pd.DataFrame(True, index=table.students, columns=table.score_columns)


def _all_identifiers(table):
    return pd.Series(True, index=table.students)


def test_style_merge_is_per_field():
    base = Style(fill_pattern="solid", foreground_color="FFFFFF", wrap_text=True)
    merged = Style(foreground_color=RED, border_style="single").merged_onto(base)
    assert merged == Style(fill_pattern="solid", foreground_color=RED, border_style="single", wrap_text=True)


def test_later_rules_win_per_field(james_table):
    rules = RuleSet([
        Rule("fill", Target.SCORES, _all_scores, Style(fill_pattern="solid", foreground_color=RED)),
        Rule("border", Target.SCORES, _all_scores, Style(border_style="double")),
        Rule("recolor", Target.SCORES, _all_scores, Style(foreground_color=GREEN)),
    ])
    grid = rules.apply(james_table)
    assert grid.loc["James", "Exam_1"] == Style(fill_pattern="solid", foreground_color=GREEN, border_style="double")
    assert grid.loc["James", "Student"] == EMPTY_STYLE


def test_apply_is_idempotent(table, config):
    rule_set = build_default_rule_set(config)
    base = _grid(table, Style(wrap_text=True))
    once = rule_set.apply(table, base=base)
    twice = rule_set.apply(table, base=once)
    assert once.to_numpy().tolist() == twice.to_numpy().tolist()
    assert once.loc["James", "Exam_1"].wrap_text is True


def test_apply_does_not_modify_base(james_table):
    base = _grid(james_table, EMPTY_STYLE)
    RuleSet([Rule("wrap", Target.IDENTIFIER, _all_identifiers, Style(wrap_text=True))]).apply(james_table, base=base)
    assert base.loc["James", "Student"] == EMPTY_STYLE


def test_base_grid_shape_is_checked(james_table):
    base = pd.DataFrame([[EMPTY_STYLE]], index=["James"], columns=["Student"], dtype=object)
    with pytest.raises(ShapeMismatchError):
        RuleSet().apply(james_table, base=base)


def test_base_grid_is_aligned_by_student(table, config):
    """A base grid listing students in another order keeps each student's own styles."""
    students = list(reversed(table.students))
    base = pd.DataFrame(
        [[Style(wrap_text=(s == "Liam"))] * len(table.columns) for s in students],
        index=students,
        columns=table.columns,
        dtype=object,
    )
    grid = build_default_rule_set(config).apply(table, base=base)
    assert list(grid.index) == list(table.students)
    assert grid.loc["Liam", "Student"] == Style(fill_pattern="solid", foreground_color=RED, wrap_text=True)
    assert grid.loc["Olivia", "Student"].foreground_color == YELLOW
    assert grid.loc["Olivia", "Student"].wrap_text is False


def test_base_grid_labels_are_checked(james_table):
    base = _grid(james_table, EMPTY_STYLE)
    base.index = ["Someone"]
    with pytest.raises(ShapeMismatchError):
        RuleSet().apply(james_table, base=base)


@pytest.mark.parametrize("predicate", [
    lambda t: pd.DataFrame(True, index=t.students, columns=t.score_columns[:-1]),
    lambda t: pd.DataFrame(True, index=["Someone"], columns=t.score_columns),
    lambda t: pd.Series(True, index=t.students),
    lambda t: [[True] * 5],
])
def test_score_mask_shape_mismatch(james_table, predicate):
    rule = Rule("bad", Target.SCORES, predicate, Style(wrap_text=True))
    with pytest.raises(ShapeMismatchError):
        rule.evaluate(james_table)


@pytest.mark.parametrize("predicate", [
    lambda t: pd.Series(True, index=["James", "Extra"]),
    lambda t: pd.DataFrame(True, index=t.students, columns=t.score_columns),
])
def test_identifier_mask_shape_mismatch(james_table, predicate):
    rule = Rule("bad", Target.IDENTIFIER, predicate, Style(wrap_text=True))
    with pytest.raises(ShapeMismatchError):
        RuleSet([rule]).apply(james_table)


def test_non_boolean_mask_is_rejected(james_table):
    rule = Rule("numbers", Target.IDENTIFIER, lambda t: pd.Series(1, index=t.students), Style(wrap_text=True))
    with pytest.raises(TypeError):
        rule.evaluate(james_table)


def test_rule_set_is_ordered_and_immutable(james_table):
    first = Rule("a", Target.IDENTIFIER, _all_identifiers, Style(foreground_color=RED))
    second = Rule("b", Target.IDENTIFIER, _all_identifiers, Style(foreground_color=GREEN))
    rules = RuleSet([first])
    extended = rules.extend([second])
    assert len(rules) == 1
    assert [r.name for r in extended] == ["a", "b"]
    assert extended.apply(james_table).loc["James", "Student"].foreground_color == GREEN


def test_cancellation_between_rules(james_table):
    calls = []

    def should_cancel():
        calls.append(1)
        return len(calls) > 1

    rules = RuleSet([
        Rule("a", Target.IDENTIFIER, _all_identifiers, Style(wrap_text=True)),
        Rule("b", Target.IDENTIFIER, _all_identifiers, Style(wrap_text=False)),
    ])
    with pytest.raises(RuleApplicationCancelled):
        rules.apply(james_table, should_cancel=should_cancel)
    assert len(calls) == 2


def test_default_rule_set_order(config):
    names = [rule.name for rule in build_default_rule_set(config)]
    assert names == [
        "border:exercise", "border:exam", "border:final",
        "score:safe", "score:warning", "score:critical",
        "average:safe", "average:warning", "average:critical",
    ]


def test_default_borders_follow_categories(james_table, config):
    grid = build_default_rule_set(config).apply(james_table)
    borders = [grid.loc["James", c].border_style for c in james_table.score_columns]
    assert borders == ["single", "none", "none", "single", "double"]
    assert grid.loc["James", "Student"].border_style is None


def test_default_fills_follow_score_bands(table, config):
    grid = build_default_rule_set(config).apply(table)
    assert grid.loc["James", "Exam_1"].foreground_color == GREEN
    assert grid.loc["Olivia", "Exam_1"].foreground_color == YELLOW
    assert grid.loc["Olivia", "Exercise_1"].foreground_color == RED
    assert grid.loc["Liam", "Exercise_1"] == Style(fill_pattern="solid", foreground_color=RED, border_style="none")


def test_default_identifier_fill_uses_final_average(table, config):
    grid = build_default_rule_set(config).apply(table)
    colors = {s: grid.loc[s, "Student"].foreground_color for s in table.students}
    assert colors == {"James": GREEN, "Olivia": YELLOW, "Liam": RED, "Sofia": GREEN}


def test_default_rules_fail_on_missing_score(config):
    table = ScoreTable.from_records(["Student", "Exam_1"], [["James", None]])
    with pytest.raises(MissingValueError):
        build_default_rule_set(config).evaluate(table)


def test_evaluate_expands_masks_to_table_shape(table, config):
    for rule, mask in build_default_rule_set(config).evaluate(table):
        assert mask.shape == table.shape
        assert list(mask.columns) == table.columns


class RecordingRenderer:
    def __init__(self, result=True):
        self.result = result
        self.calls = []

    def render_worksheet(self, sheet, table, rule_set):
        self.calls.append((sheet, table, rule_set))
        return self.result


def test_render_hands_off_complete_rule_set(table, config):
    renderer = RecordingRenderer()
    rule_set = build_default_rule_set(config)
    assert render(renderer, "sheet-1", table, rule_set) is True
    assert renderer.calls == [("sheet-1", table, rule_set)]


def test_render_reports_renderer_failure(table, config):
    assert render(RecordingRenderer(result=False), None, table, build_default_rule_set(config)) is False


def test_render_does_not_call_renderer_on_invalid_rules(james_table):
    renderer = RecordingRenderer()
    bad = RuleSet([Rule("bad", Target.IDENTIFIER, lambda t: pd.Series([True, False]), Style(wrap_text=True))])
    with pytest.raises(ShapeMismatchError):
        render(renderer, None, james_table, bad)
    assert renderer.calls == []


def test_other_columns_are_not_filled(config):
    table = ScoreTable.from_records(
        ["Student", "Exam_1", "Notes", "Exercise_1"],
        [["James", 86, "late", 60]],
    )
    grid = build_default_rule_set(config).apply(table)
    assert grid.loc["James", "Notes"] == EMPTY_STYLE
    assert grid.loc["James", "Exam_1"].foreground_color == GREEN
    assert grid.loc["James", "Exercise_1"].foreground_color == RED


def test_text_score_cell_cannot_be_formatted(config):
    table = ScoreTable.from_records(["Student", "Exam_1"], [["James", "70"]])
    with pytest.raises(MissingValueError):
        build_default_rule_set(config).apply(table)
