"""Configuration dataclasses for event extraction."""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ValidationError

Bound = Tuple[Optional[float], Optional[float]]


def _is_positive_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and value > 0


@dataclass(frozen=True)
class ScreenConfig:
    """Display size used to scale normalized gaze into pixels."""

    screen_width: float
    screen_height: float

    def __post_init__(self) -> None:
        for name in ("screen_width", "screen_height"):
            value = getattr(self, name)
            if not _is_positive_number(value):
                raise ValidationError(f"{name} must be a positive number, got {value!r}")


@dataclass(frozen=True)
class BaselineConfig:
    """Length of the window at trial start used as pupil baseline."""

    window_ms: float = 500.0

    def __post_init__(self) -> None:
        if isinstance(self.window_ms, bool) or not isinstance(self.window_ms, numbers.Real):
            raise ValidationError(f"window_ms must be a number, got {self.window_ms!r}")
        if not math.isfinite(self.window_ms) or self.window_ms < 0:
            raise ValidationError(f"window_ms must be >= 0, got {self.window_ms!r}")


def _check_bound(name: str, bound: Bound) -> None:
    if not isinstance(bound, tuple) or len(bound) != 2:
        raise ValidationError(f"{name} must be a (low, high) tuple, got {bound!r}")
    low, high = bound
    for value in (low, high):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
            raise ValidationError(f"{name} bounds must be numbers or None, got {bound!r}")
    if low is not None and high is not None and low > high:
        raise ValidationError(f"{name} lower bound {low} exceeds upper bound {high}")


@dataclass(frozen=True)
class MetricBounds:
    """Inclusive validity ranges applied before metrics are averaged.

    ``None`` on either side leaves that side open. Typical values for
    reading tasks are ``fixation_duration=(50, 2000)``,
    ``saccade_amplitude=(None, 500)`` and ``pupil_change_rate=(-0.2, 0.2)``.
    """

    fixation_duration: Bound = (None, None)
    saccade_amplitude: Bound = (None, None)
    pupil_change_rate: Bound = (None, None)

    def __post_init__(self) -> None:
        _check_bound("fixation_duration", self.fixation_duration)
        _check_bound("saccade_amplitude", self.saccade_amplitude)
        _check_bound("pupil_change_rate", self.pupil_change_rate)


@dataclass(frozen=True)
class EngineConfig:
    """Everything the engine reads while processing a batch of trials."""

    screen: ScreenConfig
    baseline: BaselineConfig = field(default_factory=BaselineConfig)
    bounds: MetricBounds = field(default_factory=MetricBounds)

    # joblib semantics: 1 = sequential, -1 = all CPUs
    n_jobs: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.screen, ScreenConfig):
            raise ValidationError("screen must be a ScreenConfig")
        if isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, numbers.Integral) or self.n_jobs == 0:
            raise ValidationError(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")
