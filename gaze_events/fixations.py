"""Collapse fixation runs into fixation events."""
from __future__ import annotations

import logging
from typing import List

import numpy as np
import pandas as pd

from .config import ScreenConfig
from .errors import ValidationError
from .geometry import PixelScaler
from .tables import KEY_COLUMNS, finalize_events, require_columns, trial_keys

logger = logging.getLogger(__name__)

FIXATION_COLUMNS: List[str] = KEY_COLUMNS + [
    "run_id",
    "start_time",
    "end_time",
    "duration",
    "x",
    "y",
    "pupil_size",
]

SAMPLE_INPUT_COLUMNS: List[str] = KEY_COLUMNS + [
    "timestamp_ms",
    "gaze_x",
    "gaze_y",
    "fixation_run_id",
    "left_pupil_radius_px",
    "right_pupil_radius_px",
]


def _pooled_mean(*arrays: np.ndarray) -> float:
    values = np.concatenate(arrays)
    values = values[~np.isnan(values)]
    return float(values.mean()) if values.size else float("nan")


class FixationAggregator:
    """One event per fixation run.

    ``end_time`` is the timestamp of the sample after the run's last
    member, so a run that closes the trial has no end and is dropped.
    ``x``/``y`` come from the run's first sample, ``pupil_size`` is the
    mean of all left and right radii of the run.
    """

    def __init__(self, screen: ScreenConfig) -> None:
        if not isinstance(screen, ScreenConfig):
            raise ValidationError("screen must be a ScreenConfig with positive screen_width/screen_height")
        self.scaler = PixelScaler(screen)

    def _trial_fixations(self, trial: pd.DataFrame) -> List[dict]:
        keys = trial_keys(trial)
        times = trial["timestamp_ms"].to_numpy(dtype=float)
        next_times = np.append(times[1:], np.nan)
        gaze_x = trial["gaze_x"].to_numpy(dtype=float)
        gaze_y = trial["gaze_y"].to_numpy(dtype=float)
        left = trial["left_pupil_radius_px"].to_numpy(dtype=float)
        right = trial["right_pupil_radius_px"].to_numpy(dtype=float)

        rows = []
        for run_id, positions in trial.groupby("fixation_run_id", sort=False).indices.items():
            first, last = positions[0], positions[-1]
            x, y = self.scaler.to_pixels(gaze_x[first], gaze_y[first])
            start_time = times[first]
            end_time = next_times[last]
            rows.append(
                {
                    **keys,
                    "run_id": int(run_id),
                    "start_time": start_time,
                    "end_time": end_time,
                    "duration": end_time - start_time,
                    "x": x,
                    "y": y,
                    "pupil_size": _pooled_mean(left[positions], right[positions]),
                }
            )
        return rows

    def aggregate(self, samples: pd.DataFrame) -> pd.DataFrame:
        require_columns(samples, SAMPLE_INPUT_COLUMNS)
        rows: List[dict] = []
        for _, trial in samples.groupby("trial_id", sort=False):
            rows.extend(self._trial_fixations(trial))
        events = finalize_events(rows, FIXATION_COLUMNS)
        logger.debug("Built %d fixation event(s) from %d run(s)", len(events), len(rows))
        return events


def aggregate_fixations(samples: pd.DataFrame, screen: ScreenConfig) -> pd.DataFrame:
    return FixationAggregator(screen).aggregate(samples)
