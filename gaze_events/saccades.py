"""Collapse saccade gap runs into saccade events."""
from __future__ import annotations

import logging
from typing import List

import pandas as pd

from .config import ScreenConfig
from .errors import ValidationError
from .geometry import PixelScaler, amplitude_px, direction_deg
from .tables import KEY_COLUMNS, finalize_events, require_columns, trial_keys

logger = logging.getLogger(__name__)

SACCADE_COLUMNS: List[str] = KEY_COLUMNS + [
    "run_id",
    "start_time",
    "end_time",
    "duration",
    "start_x",
    "start_y",
    "end_x",
    "end_y",
    "amplitude",
    "angle",
]


class SaccadeAggregator:
    """One event per saccade gap run.

    Boundary positions are read from the raw samples adjacent to the gap:
    the sample just before its first member (last fixation sample) and the
    sample just after its last member (first sample of the landing
    fixation). Requires ``saccade_run_id`` from ``assign_saccade_runs``.
    """

    def __init__(self, screen: ScreenConfig) -> None:
        if not isinstance(screen, ScreenConfig):
            raise ValidationError("screen must be a ScreenConfig with positive screen_width/screen_height")
        self.scaler = PixelScaler(screen)

    def _trial_saccades(self, trial: pd.DataFrame) -> List[dict]:
        keys = trial_keys(trial)
        times = trial["timestamp_ms"].to_numpy(dtype=float)
        gaze_x = trial["gaze_x"].to_numpy(dtype=float)
        gaze_y = trial["gaze_y"].to_numpy(dtype=float)
        n = len(trial)

        rows = []
        for run_id, positions in trial.groupby("saccade_run_id", sort=False).indices.items():
            before, after = positions[0] - 1, positions[-1] + 1
            if before < 0 or after >= n:
                continue
            start_x, start_y = self.scaler.to_pixels(gaze_x[before], gaze_y[before])
            end_x, end_y = self.scaler.to_pixels(gaze_x[after], gaze_y[after])
            start_time = times[positions[0]]
            end_time = times[after]
            rows.append(
                {
                    **keys,
                    "run_id": int(run_id),
                    "start_time": start_time,
                    "end_time": end_time,
                    "duration": end_time - start_time,
                    "start_x": start_x,
                    "start_y": start_y,
                    "end_x": end_x,
                    "end_y": end_y,
                    "amplitude": amplitude_px(start_x, start_y, end_x, end_y),
                    "angle": direction_deg(start_x, start_y, end_x, end_y),
                }
            )
        return rows

    def aggregate(self, samples: pd.DataFrame) -> pd.DataFrame:
        require_columns(samples, KEY_COLUMNS + ["timestamp_ms", "gaze_x", "gaze_y", "saccade_run_id"])
        rows: List[dict] = []
        for _, trial in samples.groupby("trial_id", sort=False):
            rows.extend(self._trial_saccades(trial))
        events = finalize_events(rows, SACCADE_COLUMNS)
        logger.debug("Built %d saccade event(s) from %d gap run(s)", len(events), len(rows))
        return events


def aggregate_saccades(samples: pd.DataFrame, screen: ScreenConfig) -> pd.DataFrame:
    return SaccadeAggregator(screen).aggregate(samples)
