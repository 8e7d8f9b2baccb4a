"""Error types raised by the standing core."""


class StandingError(Exception):
    """Base class for every error the core raises."""


class ConfigError(StandingError, ValueError):
    """The weight or threshold configuration is invalid."""


class InvalidColumnRangeError(StandingError, IndexError):
    """A column-prefix index is outside the scorable range."""


class MissingValueError(StandingError, ValueError):
    """A score cell is absent or not numeric."""

    def __init__(self, message: str, student=None, column=None):
        super().__init__(message)
        self.student = student
        self.column = column


class ShapeMismatchError(StandingError, ValueError):
    """A rule's mask does not match the shape of its target."""


class RuleApplicationCancelled(StandingError):
    """A rule application pass was cancelled between two rules."""
