"""CSV helpers for reading exports and persisting result tables."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import pandas as pd

from .errors import SourceReadError

logger = logging.getLogger(__name__)

RESULT_FILES: Dict[str, str] = {
    "fixations": "fixations.csv",
    "saccades": "saccades.csv",
    "pupil": "pupil.csv",
    "trial_metrics": "trial_metrics.csv",
    "subject_metrics": "subject_metrics.csv",
}


def read_raw_samples(path: str | Path, skip_rows: int = 1, encoding: str = "utf-8") -> pd.DataFrame:
    """Read one exported sample CSV.

    The exporter writes a banner line above the header, so one row is
    skipped by default.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, skiprows=skip_rows, encoding=encoding, low_memory=False)
    except FileNotFoundError as exc:
        raise SourceReadError(str(path), "file not found") from exc
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise SourceReadError(str(path), str(exc)) from exc
    logger.debug("Read %d rows from %s", len(df), path)
    return df


def write_result(result, output_dir: str | Path) -> Dict[str, Path]:
    """Write the five result tables (and failures, if any) as CSV files."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for name, filename in RESULT_FILES.items():
        path = output_dir / filename
        getattr(result, name).to_csv(path, index=False)
        written[name] = path
    if result.failures:
        path = output_dir / "failures.csv"
        failures = pd.DataFrame(
            sorted(result.failures.items()), columns=["source", "error"]
        )
        failures.to_csv(path, index=False)
        written["failures"] = path
    logger.info("Wrote %d table(s) to %s", len(written), output_dir)
    return written
