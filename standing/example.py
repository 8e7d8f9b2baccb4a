"""The example gradebook used in the documentation and the summary CLI."""

from .config_schema import WeightConfig, get_default_config
from .table import ScoreTable

EXAMPLE_COLUMNS = ["Student", "Exam_1", "Exercise_1", "Exercise_2", "Exam_2", "Final_Exam"]

EXAMPLE_ROWS = [
    ["James", 86, 75, 100, 92, 84],
    ["Olivia", 71, 64, 80, 69, 74],
    ["Liam", 55, 42, 70, 61, 58],
    ["Sofia", 93, 98, 95, 88, 91],
]


def example_table() -> ScoreTable:
    """Return the example gradebook as a ScoreTable."""
    return ScoreTable.from_records(EXAMPLE_COLUMNS, EXAMPLE_ROWS)


def example_config() -> WeightConfig:
    """Return the example weights: exercises 30%, exams 40%, final 30%."""
    return WeightConfig.from_config(get_default_config())
