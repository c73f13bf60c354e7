"""Exceptions and warnings raised while turning samples into events."""
from __future__ import annotations


class GazeEventsError(Exception):
    """Base class for all gaze_events errors."""


class SchemaError(GazeEventsError, ValueError):
    """A required column is missing from the sample table."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class ValidationError(GazeEventsError, ValueError):
    """Configuration values or sample keys are out of range or malformed."""


class SourceReadError(GazeEventsError, OSError):
    """A source export could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


class TypeCoercionWarning(UserWarning):
    """Cells that could not be used as numbers were replaced by NA."""


class ComputationGap(RuntimeWarning):
    """A quantity had no input to be computed from and was left as NA."""
