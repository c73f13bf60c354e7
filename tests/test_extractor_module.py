import numpy as np
import pandas as pd
import pytest

from gaze_events.errors import SchemaError, TypeCoercionWarning, ValidationError
from gaze_events.extractor import SAMPLE_COLUMNS, SampleNormalizer, clean_column_name, normalize_samples

from conftest import make_samples


def test_clean_column_name_replaces_slashes_and_spaces():
    assert clean_column_name("LeftEyePupilRadius/px") == "LeftEyePupilRadius_px"
    assert clean_column_name("GazeTimestamp ms") == "GazeTimestamp_ms"
    assert clean_column_name("fixation_ser") == "fixation_ser"


def test_normalize_maps_export_columns(export_frame):
    samples = SampleNormalizer().normalize(export_frame)

    assert list(samples.columns) == SAMPLE_COLUMNS
    assert samples["trial_id"].unique().tolist() == ["7_1", "7_2"]
    assert samples["subject_id"].unique().tolist() == ["7"]
    assert samples["left_pupil_radius_px"].tolist() == [3.0] * 9
    assert str(samples["fixation_run_id"].dtype) == "Int64"


def test_normalize_recodes_minus_one_sentinel(export_frame):
    samples = normalize_samples(export_frame)

    assert samples.loc[2, ["gaze_x", "gaze_y", "fixation_duration_s"]].isna().all()
    assert samples.loc[0, "gaze_x"] == pytest.approx(0.1)


def test_sentinel_is_not_applied_to_pupil_columns():
    raw = make_samples([1, 1], left=[-1.0, 3.0])

    samples = normalize_samples(raw)

    assert samples["left_pupil_radius_px"].tolist() == [-1.0, 3.0]


def test_unparseable_cells_become_na_with_warning():
    raw = make_samples([1, 1, 1])
    raw["gaze_x"] = ["0,25", "abc", " 0.5 "]

    with pytest.warns(TypeCoercionWarning, match="gaze_x"):
        samples = normalize_samples(raw)

    assert samples["gaze_x"].iloc[0] == pytest.approx(0.25)
    assert np.isnan(samples["gaze_x"].iloc[1])
    assert samples["gaze_x"].iloc[2] == pytest.approx(0.5)


def test_blank_text_cells_are_missing_not_malformed(recwarn):
    raw = make_samples([1, 1])
    raw["timestamp_ms"] = ["0", "  "]

    samples = normalize_samples(raw)

    assert np.isnan(samples["timestamp_ms"].iloc[1])
    assert not [w for w in recwarn if issubclass(w.category, TypeCoercionWarning)]


def test_missing_required_column_raises_schema_error():
    raw = make_samples([1, 1]).drop(columns=["fixation_run_id"])

    with pytest.raises(SchemaError, match="fixation_run_id") as excinfo:
        normalize_samples(raw)

    assert excinfo.value.missing == ["fixation_run_id"]


def test_missing_trial_key_raises_schema_error():
    raw = make_samples([1, 1]).drop(columns=["question_id"])

    with pytest.raises(SchemaError, match="trial_id"):
        normalize_samples(raw)


def test_explicit_trial_id_is_kept():
    raw = make_samples([1, 1]).drop(columns=["subject_id", "question_id"])
    raw["trial_id"] = "t-9"

    samples = normalize_samples(raw)

    assert samples["trial_id"].tolist() == ["t-9", "t-9"]
    assert samples["subject_id"].tolist() == ["t-9", "t-9"]


def test_samples_are_sorted_by_trial_then_timestamp():
    first = make_samples([1, 1, 1], timestamps=[20, 0, 10], question_id="b")
    second = make_samples([1, 1], timestamps=[5, 0], question_id="a")
    raw = pd.concat([first, second], ignore_index=True)

    samples = normalize_samples(raw)

    assert samples["trial_id"].tolist() == ["s1_b"] * 3 + ["s1_a"] * 2
    assert samples["timestamp_ms"].tolist() == [0, 10, 20, 0, 5]


def test_non_integer_run_ids_are_dropped():
    raw = make_samples([1, 1.5, 2])

    with pytest.warns(TypeCoercionWarning, match="fixation_run_id"):
        samples = normalize_samples(raw)

    assert samples["fixation_run_id"].tolist() == [1, pd.NA, 2]


def test_string_dtype_cells_are_cleaned(recwarn):
    raw = make_samples([1, 1, 1])
    raw["gaze_x"] = pd.array(["0,25", "  ", " 0.5 "], dtype="string")

    samples = normalize_samples(raw)

    assert samples["gaze_x"].iloc[0] == pytest.approx(0.25)
    assert np.isnan(samples["gaze_x"].iloc[1])
    assert samples["gaze_x"].iloc[2] == pytest.approx(0.5)
    assert not [w for w in recwarn if issubclass(w.category, TypeCoercionWarning)]


@pytest.mark.parametrize("bad", ["inf", "1e30", "-inf"])
def test_unrepresentable_run_ids_become_na(bad):
    raw = make_samples([1, 1, 1, 2])
    raw["fixation_run_id"] = ["1", "1", bad, "2"]

    with pytest.warns(TypeCoercionWarning, match="fixation_run_id"):
        samples = normalize_samples(raw)

    assert samples["fixation_run_id"].tolist() == [1, 1, pd.NA, 2]
    assert str(samples["fixation_run_id"].dtype) == "Int64"


def test_non_finite_gaze_becomes_na():
    raw = make_samples([1, 1, 2], gaze=[(0.1, 0.1), (float("inf"), 0.2), (0.3, 0.3)])

    with pytest.warns(TypeCoercionWarning, match="gaze_x"):
        samples = normalize_samples(raw)

    assert np.isnan(samples["gaze_x"].iloc[1])
    assert samples["gaze_y"].iloc[1] == pytest.approx(0.2)


def test_off_screen_gaze_becomes_na():
    raw = make_samples([1, 1, 2], gaze=[(0.1, 0.1), (1.5, 0.2), (0.3, -0.25)])

    with pytest.warns(TypeCoercionWarning, match="outside"):
        samples = normalize_samples(raw)

    assert np.isnan(samples["gaze_x"].iloc[1])
    assert np.isnan(samples["gaze_y"].iloc[2])
    assert samples["gaze_x"].iloc[2] == pytest.approx(0.3)


def test_samples_without_trial_key_are_rejected():
    raw = make_samples([1, 1, None, 2]).drop(columns=["subject_id", "question_id"])
    raw["trial_id"] = ["t1", "t1", None, "t1"]

    with pytest.raises(ValidationError, match="1 sample"):
        normalize_samples(raw)


def test_samples_without_subject_are_rejected():
    raw = make_samples([1, 1])
    raw.loc[1, "subject_id"] = None

    with pytest.raises(ValidationError, match=r"rows \[1\]"):
        normalize_samples(raw)


def test_normalize_from_file_writes_csv(tmp_path, export_frame):
    from conftest import write_export

    source = write_export(tmp_path / "export.csv", export_frame)
    target = tmp_path / "samples.csv"

    result = SampleNormalizer().normalize_from_file(str(source), str(target))

    assert target.exists()
    written = pd.read_csv(target)
    assert len(written) == len(result) == 9
    assert list(written.columns) == SAMPLE_COLUMNS
