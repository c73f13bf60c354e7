"""Run the full sample-to-metric pipeline over one or many trials."""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
from joblib import Parallel, delayed

from .config import EngineConfig
from .errors import ComputationGap, SchemaError, SourceReadError, ValidationError
from .extractor import SampleNormalizer
from .fixations import FIXATION_COLUMNS, FixationAggregator
from .io import read_raw_samples, write_result
from .metrics import MetricAggregator
from .pupil import PUPIL_COLUMNS, PupilBaselineNormalizer
from .saccades import SACCADE_COLUMNS, SaccadeAggregator
from .segmenter import assign_saccade_runs
from .tables import concat_tables

logger = logging.getLogger(__name__)


@dataclass
class TrialEvents:
    """Event tables of a single trial."""

    fixations: pd.DataFrame
    saccades: pd.DataFrame
    pupil: pd.DataFrame


@dataclass
class EngineResult:
    """The five output tables plus the trials or files that failed."""

    fixations: pd.DataFrame
    saccades: pd.DataFrame
    pupil: pd.DataFrame
    trial_metrics: pd.DataFrame
    subject_metrics: pd.DataFrame
    failures: Dict[str, str] = field(default_factory=dict)


TrialOutcome = Tuple[str, Optional[TrialEvents], Optional[str]]


def _run_trial(engine: "EventEngine", trial_id: str, samples: pd.DataFrame) -> TrialOutcome:
    # failures stay inside the trial so siblings keep running
    try:
        return trial_id, engine.process_trial(samples), None
    except Exception as exc:
        logger.warning("Trial %s failed: %s", trial_id, exc)
        return trial_id, None, f"{type(exc).__name__}: {exc}"


class EventEngine:
    """Turn a raw sample table into event and metric tables.

    Trials are independent: with ``n_jobs != 1`` they are dispatched with
    joblib, each trial handled start-to-finish by one worker. Output order
    follows the input trial order either way.
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self.normalizer = SampleNormalizer()
        self.fixation_aggregator = FixationAggregator(config.screen)
        self.saccade_aggregator = SaccadeAggregator(config.screen)
        self.pupil_normalizer = PupilBaselineNormalizer(config.baseline)
        self.metric_aggregator = MetricAggregator(config.bounds)

    def process_trial(self, samples: pd.DataFrame) -> TrialEvents:
        """Events of one normalized, timestamp-ordered trial."""
        segmented = assign_saccade_runs(samples)
        if segmented["fixation_run_id"].isna().all():
            trial_id = segmented["trial_id"].iloc[0] if len(segmented) else "<empty>"
            logger.warning("Trial %s has no fixation runs", trial_id)
            warnings.warn(f"Trial {trial_id} has no fixation runs", ComputationGap, stacklevel=2)
        return TrialEvents(
            fixations=self.fixation_aggregator.aggregate(segmented),
            saccades=self.saccade_aggregator.aggregate(segmented),
            pupil=self.pupil_normalizer.normalize(segmented),
        )

    def _run_trials(self, samples: pd.DataFrame) -> List[TrialOutcome]:
        trials = [
            (str(trial_id), trial.reset_index(drop=True))
            for trial_id, trial in samples.groupby("trial_id", sort=False)
        ]
        if self.config.n_jobs == 1:
            return [_run_trial(self, trial_id, trial) for trial_id, trial in trials]
        logger.info("Processing %d trial(s) with n_jobs=%d", len(trials), self.config.n_jobs)
        return Parallel(n_jobs=self.config.n_jobs)(
            delayed(_run_trial)(self, trial_id, trial) for trial_id, trial in trials
        )

    def _build_result(self, outcomes: List[TrialOutcome], failures: Dict[str, str]) -> EngineResult:
        events = [result for _, result, _ in outcomes if result is not None]
        failures = dict(failures)
        failures.update({trial_id: error for trial_id, _, error in outcomes if error is not None})

        fixations = concat_tables([e.fixations for e in events], FIXATION_COLUMNS)
        saccades = concat_tables([e.saccades for e in events], SACCADE_COLUMNS)
        pupil = concat_tables([e.pupil for e in events], PUPIL_COLUMNS)
        logger.info(
            "%d trial(s) processed, %d failed: %d fixations, %d saccades",
            len(events), len(failures), len(fixations), len(saccades),
        )
        return EngineResult(
            fixations=fixations,
            saccades=saccades,
            pupil=pupil,
            trial_metrics=self.metric_aggregator.per_trial(fixations, saccades, pupil),
            subject_metrics=self.metric_aggregator.per_subject(fixations, saccades, pupil),
            failures=failures,
        )

    def process(self, raw: pd.DataFrame) -> EngineResult:
        """Normalize ``raw`` and process every trial it contains.

        SchemaError is fatal for the call; an error inside a single trial
        is recorded in ``failures`` under its trial id.
        """
        samples = self.normalizer.normalize(raw)
        return self._build_result(self._run_trials(samples), {})

    def process_file(
        self,
        input_path: str | Path,
        output_dir: str | Path | None = None,
        skip_rows: int = 1,
    ) -> EngineResult:
        result = self.process(read_raw_samples(input_path, skip_rows=skip_rows))
        if output_dir:
            write_result(result, output_dir)
        return result

    def process_files(
        self,
        paths: Iterable[str | Path],
        output_dir: str | Path | None = None,
        skip_rows: int = 1,
    ) -> EngineResult:
        """Process several exports; a file that cannot be read, lacks
        required columns or has unkeyed samples is recorded in ``failures``
        under its path."""
        outcomes: List[TrialOutcome] = []
        failures: Dict[str, str] = {}
        for path in paths:
            try:
                samples = self.normalizer.normalize(read_raw_samples(path, skip_rows=skip_rows))
            except (SourceReadError, SchemaError, ValidationError) as exc:
                logger.warning("Skipping %s: %s", path, exc)
                failures[str(path)] = f"{type(exc).__name__}: {exc}"
                continue
            outcomes.extend(self._run_trials(samples))

        result = self._build_result(outcomes, failures)
        if output_dir:
            write_result(result, output_dir)
        return result


def process_samples(raw: pd.DataFrame, config: EngineConfig) -> EngineResult:
    return EventEngine(config).process(raw)
