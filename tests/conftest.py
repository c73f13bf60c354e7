from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from gaze_events.config import ScreenConfig
from gaze_events.extractor import normalize_samples


def make_samples(
    fixation_run_id,
    timestamps=None,
    gaze=None,
    left=None,
    right=None,
    subject_id="s1",
    question_id="q1",
) -> pd.DataFrame:
    """Canonical-schema sample table for a single trial."""
    n = len(fixation_run_id)
    timestamps = timestamps if timestamps is not None else [i * 10.0 for i in range(n)]
    gaze = gaze if gaze is not None else [(0.5, 0.5)] * n
    return pd.DataFrame(
        {
            "subject_id": [subject_id] * n,
            "question_id": [question_id] * n,
            "timestamp_ms": timestamps,
            "gaze_x": [np.nan if g is None else g[0] for g in gaze],
            "gaze_y": [np.nan if g is None else g[1] for g in gaze],
            "fixation_run_id": [np.nan if v is None else v for v in fixation_run_id],
            "left_pupil_radius_px": left if left is not None else [3.0] * n,
            "right_pupil_radius_px": right if right is not None else [3.2] * n,
        }
    )


def write_export(path: Path, df: pd.DataFrame) -> Path:
    """Write ``df`` the way the eye tracker exports it: banner line, then CSV."""
    with open(path, "w", encoding="utf-8") as fh:
        fh.write("Exported by EyeTracker\n")
        df.to_csv(fh, index=False)
    return path


@pytest.fixture
def screen() -> ScreenConfig:
    return ScreenConfig(screen_width=1920, screen_height=1080)


@pytest.fixture
def scenario_raw() -> pd.DataFrame:
    """Five samples: fixation 1, a two-sample gap, fixation 2."""
    return make_samples(
        [1, 1, None, None, 2],
        timestamps=[0, 10, 20, 30, 40],
        gaze=[(0.1, 0.1), (0.1, 0.1), None, None, (0.5, 0.5)],
    )


@pytest.fixture
def scenario_samples(scenario_raw) -> pd.DataFrame:
    return normalize_samples(scenario_raw)


@pytest.fixture
def export_frame() -> pd.DataFrame:
    """Two questions of one subject in the exporter's column naming."""
    return pd.DataFrame(
        {
            "Id": [7] * 9,
            "QuestionsNum": [1, 1, 1, 1, 1, 2, 2, 2, 2],
            "GazeTimestamp ms": [0, 10, 20, 30, 40, 0, 10, 20, 30],
            "FixationX": [0.1, 0.1, -1, -1, 0.5, 0.2, 0.2, -1, 0.4],
            "FixationY": [0.1, 0.1, -1, -1, 0.5, 0.2, 0.2, -1, 0.4],
            "fixationDuration s": [0.02, 0.02, -1, -1, 0.01, 0.02, 0.02, -1, 0.01],
            "fixation_ser": [1, 1, None, None, 2, 1, 1, None, 2],
            "LeftEyePupilRadius/px": [3.0] * 9,
            "RightEyePupilRadius/px": [3.2] * 9,
        }
    )
