import pytest

from standing import ScoreTable, WeightConfig
from standing.example import EXAMPLE_COLUMNS, example_config, example_table


@pytest.fixture
def table() -> ScoreTable:
    return example_table()


@pytest.fixture
def config() -> WeightConfig:
    return example_config()


@pytest.fixture
def james_table() -> ScoreTable:
    """The single-student worked example."""
    return ScoreTable.from_records(EXAMPLE_COLUMNS, [["James", 86, 75, 100, 92, 84]])
