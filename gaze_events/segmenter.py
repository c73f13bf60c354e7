"""Detect saccade gap runs between fixation runs."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import pandas as pd

from .tables import require_columns

logger = logging.getLogger(__name__)


def saccade_run_ids(fixation_ids: Sequence[object]) -> List[Optional[int]]:
    """Number the gaps between fixation runs of one trial.

    The counter increases on every fixation-end edge (a fixation sample
    followed by a NA sample) and is assigned to every sample of the gap
    that follows. Fixation samples get None. A gap before the first
    fixation has no start boundary and a gap at the end of the trial has
    no landing fixation; both are left as None.
    """
    fixation_ids = list(fixation_ids)
    ids: List[Optional[int]] = []
    counter = 0
    prev_in_fixation = False
    for value in fixation_ids:
        in_fixation = not pd.isna(value)
        if in_fixation:
            ids.append(None)
        else:
            if prev_in_fixation:
                counter += 1
            ids.append(counter if counter > 0 else None)
        prev_in_fixation = in_fixation

    # trial ended mid-saccade: drop the unterminated gap
    i = len(ids) - 1
    while i >= 0 and pd.isna(fixation_ids[i]):
        ids[i] = None
        i -= 1
    return ids


def assign_saccade_runs(samples: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``samples`` with a ``saccade_run_id`` column.

    Samples must already be ordered by timestamp within each trial.
    """
    require_columns(samples, ["trial_id", "fixation_run_id"])
    out = samples.copy()
    run_ids: List[Optional[int]] = [None] * len(out)

    for trial_id, positions in out.groupby("trial_id", sort=False).indices.items():
        fixation_ids = out["fixation_run_id"].iloc[positions].tolist()
        ids = saccade_run_ids(fixation_ids)
        for position, value in zip(positions, ids):
            run_ids[position] = value
        logger.debug(
            "Trial %s: %d fixation run(s), %d saccade run(s)",
            trial_id,
            pd.Series(fixation_ids, dtype="Int64").nunique(),
            len({i for i in ids if i is not None}),
        )
    out["saccade_run_id"] = pd.array(run_ids, dtype="Int64")
    return out
