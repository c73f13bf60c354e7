"""Small DataFrame helpers shared by the aggregators."""
from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

from .errors import SchemaError

KEY_COLUMNS: List[str] = ["subject_id", "question_id", "trial_id"]


def require_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    """Raise SchemaError naming every column of ``columns`` absent from ``df``."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(missing)


def trial_keys(trial: pd.DataFrame) -> dict:
    """Subject, question and trial key of a single-trial frame."""
    first = trial.iloc[0]
    return {key: first[key] for key in KEY_COLUMNS}


def finalize_events(
    rows: Sequence[dict],
    columns: Sequence[str],
    int_columns: Sequence[str] = ("run_id",),
) -> pd.DataFrame:
    """Build an event table, drop rows with any NA and collapse duplicates."""
    events = pd.DataFrame(list(rows), columns=list(columns))
    events = events.dropna(subset=list(columns)).drop_duplicates().reset_index(drop=True)
    dtypes = {}
    for col in columns:
        if col in KEY_COLUMNS:
            dtypes[col] = object
        elif col in int_columns:
            dtypes[col] = "int64"
        else:
            dtypes[col] = float
    return events.astype(dtypes)


def concat_tables(frames: Sequence[pd.DataFrame], columns: Sequence[str]) -> pd.DataFrame:
    non_empty = [f for f in frames if not f.empty]
    if not non_empty:
        if frames:
            return frames[0][list(columns)].reset_index(drop=True)
        return pd.DataFrame(columns=list(columns))
    return pd.concat(non_empty, ignore_index=True)[list(columns)]
