"""Validation utilities for scores, students and configuration."""

from typing import Any, TYPE_CHECKING
import logging
import math

import pandas as pd

from .classifier import WEIGHTED_CATEGORIES

if TYPE_CHECKING:
    from .table import ScoreTable

logger = logging.getLogger(__name__)

SCORE_MIN = 0
SCORE_MAX = 100


def validate_config(config: dict[str, Any]) -> list[dict[str, str]]:
    """
    Validate configuration and return list of issues.

    Unlike WeightConfig.from_config this never raises, so a caller can show
    every problem at once.

    Returns:
        List of dicts with 'type' (error/warning) and 'message'.
    """
    issues = []

    categories = {str(k).lower(): v for k, v in config.get("categories", {}).items()}

    # Check every weighted category is present
    for category in WEIGHTED_CATEGORIES:
        if category.value not in categories:
            issues.append({
                "type": "error",
                "message": f"Category '{category.value}' is not configured"
            })

    for name in categories:
        if name not in {c.value for c in WEIGHTED_CATEGORIES}:
            issues.append({
                "type": "error",
                "message": f"Unknown category '{name}'"
            })

    # Check capacities and weights
    total_weight = 0.0
    for name, entry in categories.items():
        capacity = entry.get("capacity")
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            issues.append({
                "type": "error",
                "message": f"Category '{name}' capacity must be a positive integer (got {capacity!r})"
            })

        weight = entry.get("weight", entry.get("weight_percent", 0))
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
            issues.append({
                "type": "error",
                "message": f"Category '{name}' weight must be a non-negative number (got {weight!r})"
            })
        else:
            total_weight += weight

    # Check weights sum to 100%
    if abs(total_weight - 100) > 0.001:
        issues.append({
            "type": "error",
            "message": f"Weights sum to {total_weight:g}% (should be 100%)"
        })

    thresholds = config.get("thresholds", {})
    critical = thresholds.get("critical", 65)
    safe = thresholds.get("safe", 75)
    if critical > safe:
        issues.append({
            "type": "error",
            "message": f"Critical threshold ({critical}) is above safe threshold ({safe})"
        })
    if critical < SCORE_MIN or safe > SCORE_MAX:
        issues.append({
            "type": "warning",
            "message": f"Thresholds ({critical}-{safe}) are outside the score scale ({SCORE_MIN}-{SCORE_MAX})"
        })

    return issues


def validate_scores(table: "ScoreTable") -> list[dict[str, Any]]:
    """
    Validate score cells against the 0-100 scale.

    Out-of-range scores are still used for scoring; this only reports them.

    Returns:
        List of dicts with 'row', 'column', 'value', and 'message'.
    """
    issues = []

    raw = table.raw_scores
    for col in raw.columns:
        for student, value in raw[col].items():
            if value is None or (isinstance(value, float) and math.isnan(value)):
                issues.append({
                    "row": student,
                    "column": col,
                    "value": value,
                    "message": "Missing score"
                })
                continue

            try:
                if isinstance(value, (bool, str)):
                    raise TypeError(value)
                num_value = float(value)
            except (ValueError, TypeError):
                issues.append({
                    "row": student,
                    "column": col,
                    "value": value,
                    "message": f"Invalid score value: {value}"
                })
                continue

            if num_value < SCORE_MIN or num_value > SCORE_MAX:
                issues.append({
                    "row": student,
                    "column": col,
                    "value": value,
                    "message": f"Score {value} is outside scale ({SCORE_MIN}-{SCORE_MAX})"
                })

    if issues:
        logger.warning("Found %d score issue(s) in %d column(s)", len(issues), len(raw.columns))

    return issues


def validate_students(students: list[str]) -> list[dict[str, str]]:
    """
    Validate student identifiers and return issues.

    Identifiers key every per-student result, so duplicates and empty
    identifiers are errors.

    Returns:
        List of dicts with 'type' and 'message'.
    """
    issues = []

    if not students:
        issues.append({
            "type": "warning",
            "message": "No students provided"
        })
        return issues

    # Check for duplicates
    seen = set()
    duplicates = []
    for student in students:
        if student in seen and student not in duplicates:
            duplicates.append(student)
        seen.add(student)

    if duplicates:
        issues.append({
            "type": "error",
            "message": f"Duplicate student identifiers: {', '.join(str(d) for d in duplicates)}"
        })

    # Check for empty identifiers
    empty_count = sum(1 for s in students if pd.isna(s) or not str(s).strip())
    if empty_count:
        issues.append({
            "type": "error",
            "message": f"{empty_count} empty student identifier(s) found"
        })

    return issues
