"""Roll fixation, saccade and pupil tables up to trial and subject metrics."""
from __future__ import annotations

import logging
from typing import List, Optional

import pandas as pd

from .config import Bound, MetricBounds
from .tables import KEY_COLUMNS, require_columns

logger = logging.getLogger(__name__)

STAT_COLUMNS: List[str] = [
    "fixation_count",
    "mean_fixation_duration",
    "mean_saccade_amplitude",
    "mean_saccade_angle",
    "mean_pupil_change_rate",
]
TRIAL_METRIC_COLUMNS: List[str] = KEY_COLUMNS + STAT_COLUMNS
SUBJECT_METRIC_COLUMNS: List[str] = ["subject_id", "n_trials"] + STAT_COLUMNS


def within_bounds(values: pd.Series, bound: Bound) -> pd.Series:
    """Inclusive range mask; NaN never passes."""
    values = pd.to_numeric(values, errors="coerce")
    low, high = bound
    mask = values.notna()
    if low is not None:
        mask &= values >= low
    if high is not None:
        mask &= values <= high
    return mask


class MetricAggregator:
    """Per-trial and per-subject summary statistics.

    Each statistic only sees the events that pass its validity range:
    fixation durations for the fixation count and mean duration, saccade
    amplitudes for the saccade means and change rates for the pupil mean.
    Groups without any valid event get NA means and a fixation count of 0.
    """

    def __init__(self, bounds: Optional[MetricBounds] = None) -> None:
        self.bounds = bounds or MetricBounds()

    def _valid(self, fixations: pd.DataFrame, saccades: pd.DataFrame, pupil: pd.DataFrame):
        require_columns(fixations, KEY_COLUMNS + ["duration"])
        require_columns(saccades, KEY_COLUMNS + ["amplitude", "angle"])
        require_columns(pupil, KEY_COLUMNS + ["pupil_change_rate"])
        b = self.bounds
        fix = fixations[within_bounds(fixations["duration"], b.fixation_duration)]
        sac = saccades[within_bounds(saccades["amplitude"], b.saccade_amplitude)]
        pup = pupil[within_bounds(pupil["pupil_change_rate"], b.pupil_change_rate)]
        logger.debug(
            "Valid events: %d/%d fixations, %d/%d saccades, %d/%d pupil samples",
            len(fix), len(fixations), len(sac), len(saccades), len(pup), len(pupil),
        )
        return fix, sac, pup

    @staticmethod
    def _summarise(keys: pd.DataFrame, by: str, fix, sac, pup) -> pd.DataFrame:
        def mean_of(df: pd.DataFrame, column: str) -> pd.Series:
            return df[column].astype(float).groupby(df[by], sort=False).mean()

        out = keys.set_index(by)
        out["fixation_count"] = fix.groupby(by, sort=False).size()
        out["mean_fixation_duration"] = mean_of(fix, "duration")
        out["mean_saccade_amplitude"] = mean_of(sac, "amplitude")
        out["mean_saccade_angle"] = mean_of(sac, "angle")
        out["mean_pupil_change_rate"] = mean_of(pup, "pupil_change_rate")
        out["fixation_count"] = out["fixation_count"].fillna(0).astype(int)
        for col in STAT_COLUMNS[1:]:
            out[col] = out[col].astype(float)
        return out.reset_index()

    @staticmethod
    def _trial_keys(*tables: pd.DataFrame) -> pd.DataFrame:
        keys = pd.concat([t[KEY_COLUMNS] for t in tables], ignore_index=True)
        return keys.drop_duplicates(subset="trial_id").reset_index(drop=True)

    def per_trial(self, fixations: pd.DataFrame, saccades: pd.DataFrame, pupil: pd.DataFrame) -> pd.DataFrame:
        fix, sac, pup = self._valid(fixations, saccades, pupil)
        keys = self._trial_keys(pupil, fixations, saccades)
        return self._summarise(keys, "trial_id", fix, sac, pup)[TRIAL_METRIC_COLUMNS]

    def per_subject(self, fixations: pd.DataFrame, saccades: pd.DataFrame, pupil: pd.DataFrame) -> pd.DataFrame:
        fix, sac, pup = self._valid(fixations, saccades, pupil)
        trials = self._trial_keys(pupil, fixations, saccades)
        keys = (
            trials.groupby("subject_id", sort=False)["trial_id"]
            .nunique()
            .rename("n_trials")
            .reset_index()
        )
        return self._summarise(keys, "subject_id", fix, sac, pup)[SUBJECT_METRIC_COLUMNS]


def compute_trial_metrics(fixations, saccades, pupil, bounds: Optional[MetricBounds] = None) -> pd.DataFrame:
    return MetricAggregator(bounds).per_trial(fixations, saccades, pupil)


def compute_subject_metrics(fixations, saccades, pupil, bounds: Optional[MetricBounds] = None) -> pd.DataFrame:
    return MetricAggregator(bounds).per_subject(fixations, saccades, pupil)
