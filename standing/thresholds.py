"""
Threshold predicates over scores and running averages.

Every predicate accepts three shapes and returns the same shape:

- a scalar, giving a bool
- a Series (one column, or one row), giving a boolean Series on the same index
- a DataFrame (a full table), giving a boolean DataFrame on the same labels

Bands are half-open and cover the number line without overlap:
critical is ``x < critical``, warning is ``critical <= x < safe`` and safe is
``x >= safe``. Missing or non-numeric values raise MissingValueError.
"""

from enum import Enum
from typing import Any
import math

import pandas as pd

from .config_schema import DEFAULT_THRESHOLDS, Thresholds
from .errors import MissingValueError
from .table import require_numeric


class Band(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SAFE = "safe"


def _numeric(values: Any) -> Any:
    if isinstance(values, pd.DataFrame):
        return require_numeric(values)
    if isinstance(values, pd.Series):
        name = values.name if values.name is not None else "value"
        return require_numeric(values.to_frame(name))[name].rename(values.name)

    if values is None or isinstance(values, (bool, str)):
        raise MissingValueError(f"Missing or non-numeric value: {values!r}")
    try:
        number = float(values)
    except (TypeError, ValueError):
        raise MissingValueError(f"Missing or non-numeric value: {values!r}") from None
    if math.isnan(number):
        raise MissingValueError("Missing value: NaN")
    return number


def _result(mask: Any) -> Any:
    if isinstance(mask, (pd.DataFrame, pd.Series)):
        return mask.astype(bool)
    return bool(mask)


def below_critical(values: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> Any:
    """True where the value is below the critical threshold (65)."""
    x = _numeric(values)
    return _result(x < thresholds.critical)


def warning_band(values: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> Any:
    """True where ``critical <= value < safe`` (65 to 75, 75 excluded)."""
    x = _numeric(values)
    return _result((x >= thresholds.critical) & (x < thresholds.safe))


def safe_band(values: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> Any:
    """True where the value is at or above the safe threshold (75)."""
    x = _numeric(values)
    return _result(x >= thresholds.safe)


BAND_PREDICATES = {
    Band.CRITICAL: below_critical,
    Band.WARNING: warning_band,
    Band.SAFE: safe_band,
}


def band_of(value: Any, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> Band:
    """Band of a single value."""
    x = _numeric(value)
    if x < thresholds.critical:
        return Band.CRITICAL
    if x < thresholds.safe:
        return Band.WARNING
    return Band.SAFE


def bands(values: pd.DataFrame | pd.Series, thresholds: Thresholds = DEFAULT_THRESHOLDS):
    """Band label of every cell, same shape as ``values``."""
    x = _numeric(values)
    return x.map(lambda v: band_of(v, thresholds))
