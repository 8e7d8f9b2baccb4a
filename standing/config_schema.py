"""Configuration schema and defaults for category weights and thresholds."""

from dataclasses import dataclass
from typing import Any, Mapping
import copy
import math

from .classifier import Category, WEIGHTED_CATEGORIES
from .errors import ConfigError

WEIGHT_TOLERANCE = 1e-6

DEFAULT_CONFIG: dict[str, Any] = {
    "categories": {
        "exercise": {"capacity": 10, "weight": 30},
        "exam": {"capacity": 4, "weight": 40},
        "final": {"capacity": 1, "weight": 30}
    },
    "thresholds": {
        "critical": 65,
        "safe": 75
    }
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(user_config: dict[str, Any]) -> dict[str, Any]:
    """
    Merge user configuration with defaults.

    User config values override defaults. Missing keys use default values.
    Categories are merged one level deep, so a user config may change only
    the weight of a single category.
    """
    result = get_default_config()

    if "categories" in user_config:
        for name, entry in user_config["categories"].items():
            key = str(name).lower()
            if key in result["categories"]:
                result["categories"][key].update(entry)
            else:
                result["categories"][key] = dict(entry)

    if "thresholds" in user_config:
        result["thresholds"].update(user_config["thresholds"])

    return result


@dataclass(frozen=True)
class CategoryWeight:
    capacity: int
    weight: float

    @property
    def share(self) -> float:
        """Weight contributed by a single assignment of the category."""
        return self.weight / self.capacity


def _parse_category_weight(category: Category, entry: Mapping[str, Any]) -> CategoryWeight:
    if not isinstance(entry, Mapping):
        raise ConfigError(f"Category '{category.value}' must be a mapping, got {entry!r}")

    capacity = entry.get("capacity")
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ConfigError(
            f"Category '{category.value}' capacity must be a positive integer, got {capacity!r}"
        )

    weight = entry.get("weight", entry.get("weight_percent"))
    if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not math.isfinite(weight):
        raise ConfigError(f"Category '{category.value}' weight must be a number, got {weight!r}")
    if weight < 0:
        raise ConfigError(f"Category '{category.value}' weight must be non-negative, got {weight}")

    return CategoryWeight(capacity=capacity, weight=float(weight))


@dataclass(frozen=True)
class WeightConfig:
    """Validated capacity and weight of each weighted category."""

    exercise: CategoryWeight
    exam: CategoryWeight
    final: CategoryWeight

    def __post_init__(self):
        total = self.total_weight
        if abs(total - 100.0) > WEIGHT_TOLERANCE:
            raise ConfigError(f"Weights sum to {total:g}% (must be 100%)")

    @property
    def total_weight(self) -> float:
        return math.fsum(self[c].weight for c in WEIGHTED_CATEGORIES)

    def __getitem__(self, category: Category) -> CategoryWeight:
        category = Category(category)
        if not category.weighted:
            raise KeyError(category)
        return getattr(self, category.name.lower())

    def share(self, category: Category) -> float:
        """Per-assignment weight of a category; Other carries none."""
        if not Category(category).weighted:
            return 0.0
        return self[category].share

    @classmethod
    def from_mapping(cls, categories: Mapping[Any, Mapping[str, Any]]) -> "WeightConfig":
        """
        Build a WeightConfig from ``{category: {"capacity", "weight"}}``.

        Keys may be Category members or names in any case. Every weighted
        category must be present and nothing else may be.
        """
        entries: dict[Category, CategoryWeight] = {}
        for key, entry in categories.items():
            try:
                category = Category(str(getattr(key, "value", key)).lower())
            except ValueError:
                raise ConfigError(f"Unknown category '{key}'") from None
            if not category.weighted:
                raise ConfigError("Category 'other' carries no weight and cannot be configured")
            if category in entries:
                raise ConfigError(f"Category '{category.value}' configured more than once")
            entries[category] = _parse_category_weight(category, entry)

        missing = [c.value for c in WEIGHTED_CATEGORIES if c not in entries]
        if missing:
            raise ConfigError(f"Missing categories: {', '.join(missing)}")

        return cls(
            exercise=entries[Category.EXERCISE],
            exam=entries[Category.EXAM],
            final=entries[Category.FINAL],
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "WeightConfig":
        """Build a WeightConfig from the "categories" entry of a full config."""
        if "categories" not in config:
            raise ConfigError("Config has no 'categories' entry")
        return cls.from_mapping(config["categories"])


@dataclass(frozen=True)
class Thresholds:
    """Band boundaries: critical below ``critical``, safe from ``safe`` up."""

    critical: float = 65.0
    safe: float = 75.0

    def __post_init__(self):
        for name in ("critical", "safe"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"Threshold '{name}' must be a finite number, got {value!r}")
        if self.critical > self.safe:
            raise ConfigError(
                f"Critical threshold {self.critical} is above safe threshold {self.safe}"
            )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Thresholds":
        thresholds = config.get("thresholds", {})
        return cls(
            critical=thresholds.get("critical", cls.critical),
            safe=thresholds.get("safe", cls.safe),
        )


DEFAULT_THRESHOLDS = Thresholds()
