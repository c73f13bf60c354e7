import math

import pandas as pd
import pytest

from gaze_events.errors import SchemaError
from gaze_events.extractor import normalize_samples
from gaze_events.geometry import amplitude_px, direction_deg
from gaze_events.saccades import SACCADE_COLUMNS, aggregate_saccades
from gaze_events.segmenter import assign_saccade_runs

from conftest import make_samples


def _saccades(raw, screen):
    return aggregate_saccades(assign_saccade_runs(normalize_samples(raw)), screen)


def test_scenario_yields_single_saccade(scenario_samples, screen):
    saccades = aggregate_saccades(assign_saccade_runs(scenario_samples), screen)

    assert list(saccades.columns) == SACCADE_COLUMNS
    assert len(saccades) == 1
    row = saccades.iloc[0]
    assert row["run_id"] == 1
    assert row["start_time"] == 20
    assert row["end_time"] == 40
    assert row["duration"] == 20
    assert (row["start_x"], row["start_y"]) == pytest.approx((192.0, 108.0))
    assert (row["end_x"], row["end_y"]) == pytest.approx((960.0, 540.0))
    assert row["amplitude"] == pytest.approx(math.hypot(768, 432))
    assert row["amplitude"] == pytest.approx(881.16, abs=0.01)
    assert row["angle"] == pytest.approx(math.degrees(math.atan2(432, 768)))


def test_trial_ending_mid_saccade_emits_nothing(screen):
    raw = make_samples([1, 1, None, None], gaze=[(0.1, 0.1), (0.1, 0.1), None, None])

    assert _saccades(raw, screen).empty


def test_boundaries_come_from_adjacent_samples(screen):
    raw = make_samples(
        [1, 1, None, 2, 2],
        gaze=[(0.0, 0.0), (0.5, 0.5), None, (0.25, 0.0), (0.9, 0.9)],
    )

    row = _saccades(raw, screen).iloc[0]

    assert (row["start_x"], row["start_y"]) == pytest.approx((960.0, 540.0))
    assert (row["end_x"], row["end_y"]) == pytest.approx((480.0, 0.0))
    assert row["angle"] == pytest.approx(math.degrees(math.atan2(-540.0, -480.0)))


def test_saccade_with_missing_boundary_gaze_is_dropped(screen):
    raw = make_samples(
        [1, None, 2, None, 3],
        gaze=[(0.1, 0.1), None, None, None, (0.3, 0.3)],
    )

    saccades = _saccades(raw, screen)

    assert saccades.empty


def test_count_matches_fixation_runs(screen):
    raw = make_samples([1, None, 2, 2, None, None, 3, None, 4])

    saccades = _saccades(raw, screen)

    assert saccades["run_id"].tolist() == [1, 2, 3]
    assert (saccades["end_time"] > saccades["start_time"]).all()


def test_requires_saccade_run_ids(scenario_samples, screen):
    with pytest.raises(SchemaError, match="saccade_run_id"):
        aggregate_saccades(scenario_samples, screen)


def test_angle_reverses_by_half_turn():
    points = [(0, 0, 3, 4), (10, 10, -5, 2), (1, 1, 1, -7), (0, 0, -1, 0), (3, 2, 3, 2.5)]

    for x1, y1, x2, y2 in points:
        forward = direction_deg(x1, y1, x2, y2)
        backward = direction_deg(x2, y2, x1, y1)
        assert (forward - backward) % 360.0 == pytest.approx(180.0)
        assert amplitude_px(x1, y1, x2, y2) == pytest.approx(amplitude_px(x2, y2, x1, y1))


def test_angle_range_excludes_minus_180():
    assert direction_deg(0.0, 0.0, -1.0, -0.0) == 180.0
    assert -180.0 < direction_deg(0.0, 0.0, -1.0, -1e-12) <= 180.0


def test_geometry_propagates_nan():
    assert math.isnan(amplitude_px(0, 0, float("nan"), 1))
    assert math.isnan(direction_deg(0, 0, float("nan"), 1))


def test_idempotent(scenario_raw, screen):
    first = _saccades(scenario_raw, screen)
    second = _saccades(scenario_raw, screen)

    pd.testing.assert_frame_equal(first, second)
