"""Core module for weighted standing and conditional formatting rules."""

from .classifier import Category, classify_column, classify_columns
from .config_schema import (
    DEFAULT_CONFIG,
    DEFAULT_THRESHOLDS,
    Thresholds,
    WeightConfig,
    get_default_config,
    merge_config,
)
from .errors import (
    ConfigError,
    InvalidColumnRangeError,
    MissingValueError,
    RuleApplicationCancelled,
    ShapeMismatchError,
    StandingError,
)
from .rules import Rule, RuleSet, Style, Target, build_default_rule_set, render
from .scoring import (
    compute_earned_points,
    compute_possible_points,
    compute_running_average,
    final_running_average,
    running_average_frame,
)
from .table import ScoreTable
from .thresholds import Band, band_of, bands, below_critical, safe_band, warning_band
from .validators import validate_config, validate_scores, validate_students

__all__ = [
    "Band",
    "Category",
    "ConfigError",
    "DEFAULT_CONFIG",
    "DEFAULT_THRESHOLDS",
    "InvalidColumnRangeError",
    "MissingValueError",
    "Rule",
    "RuleApplicationCancelled",
    "RuleSet",
    "ScoreTable",
    "ShapeMismatchError",
    "StandingError",
    "Style",
    "Target",
    "Thresholds",
    "WeightConfig",
    "band_of",
    "bands",
    "below_critical",
    "build_default_rule_set",
    "classify_column",
    "classify_columns",
    "compute_earned_points",
    "compute_possible_points",
    "compute_running_average",
    "final_running_average",
    "get_default_config",
    "merge_config",
    "render",
    "running_average_frame",
    "safe_band",
    "validate_config",
    "validate_scores",
    "validate_students",
    "warning_band",
]
