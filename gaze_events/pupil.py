"""Per-sample pupil size relative to a trial-start baseline."""
from __future__ import annotations

import logging
import warnings
from typing import List, Optional

import numpy as np
import pandas as pd

from .config import BaselineConfig
from .errors import ComputationGap
from .tables import KEY_COLUMNS, require_columns

logger = logging.getLogger(__name__)

PUPIL_COLUMNS: List[str] = KEY_COLUMNS + [
    "timestamp_ms",
    "current_pupil_size",
    "baseline_pupil_size",
    "pupil_change_rate",
]


def current_pupil_size(left: pd.Series, right: pd.Series) -> pd.Series:
    """Mean of both radii; NA unless both are present and positive."""
    left = pd.to_numeric(left, errors="coerce").astype(float)
    right = pd.to_numeric(right, errors="coerce").astype(float)
    valid = (left > 0) & (right > 0)
    return ((left + right) / 2.0).where(valid)


def change_rate(current: pd.Series, baseline: float) -> pd.Series:
    if pd.isna(baseline) or baseline == 0:
        return pd.Series(np.nan, index=current.index)
    return (current - baseline) / baseline


class PupilBaselineNormalizer:
    def __init__(self, config: Optional[BaselineConfig] = None) -> None:
        self.config = config or BaselineConfig()

    def baseline(self, timestamps: pd.Series, current: pd.Series) -> float:
        """Mean pupil size over the first ``window_ms`` of the trial."""
        valid_times = timestamps.dropna()
        if valid_times.empty:
            return float("nan")
        t0 = valid_times.iloc[0]
        in_window = current[timestamps <= t0 + self.config.window_ms].dropna()
        if in_window.empty:
            return float("nan")
        return float(in_window.mean())

    def normalize(self, samples: pd.DataFrame) -> pd.DataFrame:
        require_columns(
            samples,
            KEY_COLUMNS + ["timestamp_ms", "left_pupil_radius_px", "right_pupil_radius_px"],
        )
        frames = []
        for trial_id, trial in samples.groupby("trial_id", sort=False):
            out = trial[KEY_COLUMNS + ["timestamp_ms"]].copy()
            out["current_pupil_size"] = current_pupil_size(
                trial["left_pupil_radius_px"], trial["right_pupil_radius_px"]
            )
            baseline = self.baseline(trial["timestamp_ms"], out["current_pupil_size"])
            if pd.isna(baseline):
                logger.warning("Trial %s: pupil baseline is NA", trial_id)
                warnings.warn(
                    f"Trial {trial_id}: no valid pupil samples in the first "
                    f"{self.config.window_ms:g} ms, baseline is NA",
                    ComputationGap,
                    stacklevel=2,
                )
            out["baseline_pupil_size"] = baseline
            out["pupil_change_rate"] = change_rate(out["current_pupil_size"], baseline)
            logger.debug("Trial %s: pupil baseline %.4f", trial_id, baseline)
            frames.append(out)

        if not frames:
            return pd.DataFrame(columns=PUPIL_COLUMNS).astype(
                {c: float for c in PUPIL_COLUMNS if c not in KEY_COLUMNS}
            )
        return pd.concat(frames)[PUPIL_COLUMNS].reset_index(drop=True)


def normalize_pupil(samples: pd.DataFrame, config: Optional[BaselineConfig] = None) -> pd.DataFrame:
    return PupilBaselineNormalizer(config).normalize(samples)
