"""Command line interface for gaze event extraction."""
from __future__ import annotations

import argparse
import logging

from .config import BaselineConfig, EngineConfig, MetricBounds, ScreenConfig
from .engine import EventEngine
from .errors import GazeEventsError
from .extractor import SampleNormalizer


def _add_engine_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--screen-width", type=float, required=True, help="Screen width in px")
    parser.add_argument("--screen-height", type=float, required=True, help="Screen height in px")
    parser.add_argument("--baseline-ms", type=float, default=500.0, help="Pupil baseline window in ms")
    parser.add_argument("--min-fix-ms", type=float, default=None, help="Shortest valid fixation (ms)")
    parser.add_argument("--max-fix-ms", type=float, default=None, help="Longest valid fixation (ms)")
    parser.add_argument(
        "--max-amplitude-px", type=float, default=None, help="Largest valid saccade amplitude (px)"
    )
    parser.add_argument(
        "--max-change-rate",
        type=float,
        default=None,
        help="Largest valid absolute pupil change rate (e.g. 0.2)",
    )
    parser.add_argument("--n-jobs", type=int, default=1, help="Parallel trials (-1 = all CPUs)")
    parser.add_argument("--skip-rows", type=int, default=1, help="Banner rows above the CSV header")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fixation, saccade and pupil event extraction")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    normalize = sub.add_parser("normalize", help="Write the normalized sample table")
    normalize.add_argument("input", help="Raw exported sample CSV")
    normalize.add_argument("output", help="Path to write the normalized CSV")
    normalize.add_argument("--skip-rows", type=int, default=1, help="Banner rows above the CSV header")

    events = sub.add_parser("events", help="Extract events and metrics from one export")
    events.add_argument("input", help="Raw exported sample CSV")
    events.add_argument("output_dir", help="Directory for the result tables")
    _add_engine_options(events)

    batch = sub.add_parser("batch", help="Extract events and metrics from several exports")
    batch.add_argument("inputs", nargs="+", help="Raw exported sample CSVs")
    batch.add_argument("output_dir", help="Directory for the result tables")
    _add_engine_options(batch)

    return parser


def build_engine_config(args: argparse.Namespace) -> EngineConfig:
    change_rate = (None, None)
    if args.max_change_rate is not None:
        change_rate = (-args.max_change_rate, args.max_change_rate)
    return EngineConfig(
        screen=ScreenConfig(args.screen_width, args.screen_height),
        baseline=BaselineConfig(window_ms=args.baseline_ms),
        bounds=MetricBounds(
            fixation_duration=(args.min_fix_ms, args.max_fix_ms),
            saccade_amplitude=(None, args.max_amplitude_px),
            pupil_change_rate=change_rate,
        ),
        n_jobs=args.n_jobs,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "normalize":
            SampleNormalizer().normalize_from_file(args.input, args.output, skip_rows=args.skip_rows)
            return 0

        engine = EventEngine(build_engine_config(args))
        if args.command == "events":
            result = engine.process_file(args.input, args.output_dir, skip_rows=args.skip_rows)
        else:
            result = engine.process_files(args.inputs, args.output_dir, skip_rows=args.skip_rows)
    except GazeEventsError as exc:
        print(f"error: {exc}")
        return 2

    for source, error in sorted(result.failures.items()):
        print(f"FAILED {source}: {error}")
    return 1 if result.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
