"""Normalize raw eye-tracker exports into the canonical sample schema."""
from __future__ import annotations

import logging
import re
import warnings
from typing import Dict, List

import numpy as np
import pandas as pd

from .errors import SchemaError, TypeCoercionWarning, ValidationError
from .io import read_raw_samples
from .tables import KEY_COLUMNS

logger = logging.getLogger(__name__)

# canonical name -> exporter name (after column-name cleaning)
RAW_COLUMNS: Dict[str, str] = {
    "subject_id": "Id",
    "question_id": "QuestionsNum",
    "timestamp_ms": "GazeTimestamp_ms",
    "gaze_x": "FixationX",
    "gaze_y": "FixationY",
    "fixation_duration_s": "fixationDuration_s",
    "fixation_run_id": "fixation_ser",
    "left_pupil_radius_px": "LeftEyePupilRadius_px",
    "right_pupil_radius_px": "RightEyePupilRadius_px",
}

SAMPLE_COLUMNS: List[str] = [
    "subject_id",
    "question_id",
    "trial_id",
    "timestamp_ms",
    "gaze_x",
    "gaze_y",
    "fixation_duration_s",
    "fixation_run_id",
    "left_pupil_radius_px",
    "right_pupil_radius_px",
]

REQUIRED_COLUMNS: List[str] = [
    "timestamp_ms",
    "gaze_x",
    "gaze_y",
    "fixation_run_id",
    "left_pupil_radius_px",
    "right_pupil_radius_px",
]

NUMERIC_COLUMNS: List[str] = [
    "timestamp_ms",
    "gaze_x",
    "gaze_y",
    "fixation_duration_s",
    "fixation_run_id",
    "left_pupil_radius_px",
    "right_pupil_radius_px",
]

# -1 means "no valid fixation sample" for these fields
SENTINEL_COLUMNS: List[str] = ["gaze_x", "gaze_y", "fixation_duration_s"]
SENTINEL_VALUE = -1

# normalized screen coordinates
GAZE_COLUMNS: List[str] = ["gaze_x", "gaze_y"]

_INT64_LIMIT = 2.0**63


def clean_column_name(name: object) -> str:
    return re.sub(r"[/ ]", "_", str(name))


def _blank_to_nan(value):
    if isinstance(value, str):
        cleaned = value.strip().replace(",", ".")
        return np.nan if cleaned == "" else cleaned
    return value


def _is_text(series: pd.Series) -> bool:
    return pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series)


def coerce_numeric(series: pd.Series, name: str) -> pd.Series:
    """Convert ``series`` to finite floats; anything else becomes NaN.

    Text cells are stripped and accept a comma as decimal separator. A
    TypeCoercionWarning reports how many non-empty cells were lost,
    unparseable text and infinities alike.
    """
    if _is_text(series):
        series = series.astype(object).map(_blank_to_nan)
    values = pd.to_numeric(series, errors="coerce").to_numpy(dtype=float, na_value=np.nan)
    values = np.where(np.isinf(values), np.nan, values)
    numeric = pd.Series(values, index=series.index)
    lost = int((numeric.isna() & series.notna()).sum())
    if lost:
        logger.debug("Column %s: %d unusable cell(s) set to NA", name, lost)
        warnings.warn(
            f"{lost} cell(s) in column '{name}' could not be parsed as finite numbers and were set to NA",
            TypeCoercionWarning,
            stacklevel=3,
        )
    return numeric


def _mask_off_screen(values: pd.Series, name: str) -> pd.Series:
    off_screen = (values < 0) | (values > 1)
    if off_screen.any():
        warnings.warn(
            f"{int(off_screen.sum())} value(s) in column '{name}' lie outside [0, 1] and were set to NA",
            TypeCoercionWarning,
            stacklevel=3,
        )
        values = values.mask(off_screen)
    return values


def _as_run_ids(values: pd.Series) -> pd.Series:
    # Int64 cannot hold fractions or anything beyond the int64 range
    invalid = values.notna() & ((values != values.round()) | (values.abs() >= _INT64_LIMIT))
    if invalid.any():
        warnings.warn(
            f"{int(invalid.sum())} non-integer or out-of-range fixation_run_id value(s) were set to NA",
            TypeCoercionWarning,
            stacklevel=3,
        )
        values = values.mask(invalid)
    return values.astype("Int64")


def _as_key(values: pd.Series) -> pd.Series:
    return values.map(lambda v: v if pd.isna(v) else str(v)).astype(object)


class SampleNormalizer:
    """Rename, type and clean a raw sample table.

    The result holds exactly ``SAMPLE_COLUMNS``, is sorted by trial (in
    order of first appearance) and then by timestamp, and carries a fresh
    RangeIndex.
    """

    def __init__(self, raw_columns: Dict[str, str] | None = None) -> None:
        self.raw_columns = raw_columns or RAW_COLUMNS

    def _rename(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.rename(columns=clean_column_name)
        mapping = {
            raw: canonical
            for canonical, raw in self.raw_columns.items()
            if canonical not in df.columns and raw in df.columns
        }
        return df.rename(columns=mapping)

    def normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        df = self._rename(df).reset_index(drop=True)

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        has_keys = "subject_id" in df.columns and "question_id" in df.columns
        if "trial_id" not in df.columns and not has_keys:
            missing = ["trial_id"] + missing
        if missing:
            raise SchemaError(missing)

        out = pd.DataFrame(index=df.index)
        for col in NUMERIC_COLUMNS:
            if col in df.columns:
                out[col] = coerce_numeric(df[col], col)
            else:
                out[col] = np.nan

        for col in SENTINEL_COLUMNS:
            out[col] = out[col].mask(out[col] == SENTINEL_VALUE)
        for col in GAZE_COLUMNS:
            out[col] = _mask_off_screen(out[col], col)
        out["fixation_run_id"] = _as_run_ids(out["fixation_run_id"])

        if "trial_id" in df.columns:
            out["trial_id"] = _as_key(df["trial_id"])
            out["subject_id"] = _as_key(df["subject_id"]) if "subject_id" in df.columns else out["trial_id"]
            out["question_id"] = _as_key(df["question_id"]) if "question_id" in df.columns else out["trial_id"]
        else:
            out["subject_id"] = _as_key(df["subject_id"])
            out["question_id"] = _as_key(df["question_id"])
            out["trial_id"] = out["subject_id"].astype(str) + "_" + out["question_id"].astype(str)

        unkeyed = out[KEY_COLUMNS].isna().any(axis=1)
        if unkeyed.any():
            rows = unkeyed[unkeyed].index[:5].tolist()
            raise ValidationError(
                f"{int(unkeyed.sum())} sample(s) lack a subject, question or trial key (rows {rows})"
            )

        out["_trial_order"] = pd.factorize(out["trial_id"])[0]
        out = out.sort_values(["_trial_order", "timestamp_ms"], kind="mergesort")
        out = out[SAMPLE_COLUMNS].reset_index(drop=True)
        logger.debug("Normalized %d samples across %d trial(s)", len(out), out["trial_id"].nunique())
        return out

    def normalize_from_file(self, input_path: str, output_path: str | None = None, skip_rows: int = 1) -> pd.DataFrame:
        result = self.normalize(read_raw_samples(input_path, skip_rows=skip_rows))
        if output_path:
            result.to_csv(output_path, index=False)
        return result


def normalize_samples(df: pd.DataFrame) -> pd.DataFrame:
    return SampleNormalizer().normalize(df)
