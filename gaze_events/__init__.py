"""Fixation, saccade and pupil event extraction for eye-tracker sample exports."""

from .config import BaselineConfig, EngineConfig, MetricBounds, ScreenConfig
from .engine import EngineResult, EventEngine, TrialEvents, process_samples
from .errors import (
    ComputationGap,
    GazeEventsError,
    SchemaError,
    SourceReadError,
    TypeCoercionWarning,
    ValidationError,
)
from .extractor import SampleNormalizer, normalize_samples
from .fixations import FixationAggregator, aggregate_fixations
from .metrics import MetricAggregator, compute_subject_metrics, compute_trial_metrics
from .pupil import PupilBaselineNormalizer, normalize_pupil
from .saccades import SaccadeAggregator, aggregate_saccades
from .segmenter import assign_saccade_runs

__all__ = [
    "BaselineConfig",
    "EngineConfig",
    "MetricBounds",
    "ScreenConfig",
    "EngineResult",
    "EventEngine",
    "TrialEvents",
    "process_samples",
    "ComputationGap",
    "GazeEventsError",
    "SchemaError",
    "SourceReadError",
    "TypeCoercionWarning",
    "ValidationError",
    "SampleNormalizer",
    "normalize_samples",
    "FixationAggregator",
    "aggregate_fixations",
    "MetricAggregator",
    "compute_subject_metrics",
    "compute_trial_metrics",
    "PupilBaselineNormalizer",
    "normalize_pupil",
    "SaccadeAggregator",
    "aggregate_saccades",
    "assign_saccade_runs",
]
