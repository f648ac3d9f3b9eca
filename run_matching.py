"""
run_matching.py
──────────────────────────────────────────────────────────────────────────────
Command-line entry point for the matching engine.

Usage:
    python run_matching.py mentee_mentor data/mentees.csv data/mentors.csv
    python run_matching.py participant_panel data/participants.csv data/panels.csv
    python run_matching.py mentee_mentor a.csv b.csv --workers 8 --measure-threads
    python run_matching.py mentee_mentor a.csv b.csv --config config/default_matching.yaml

Categories:
    mentee_mentor      Match mentees and mentors (greedy, with capacity constraints)
    participant_panel  Match participants and panels/initiatives (no constraints)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from src.datasets.config import MatchingConfig, load_config
from src.datasets.loader import load_dataset
from src.datasets.records import Dataset
from src.errors import MatchingError
from src.matching.benchmark import QUIET_LOGGERS, measure_threading_performance
from src.matching.pipeline import MatchOutcome, run_matching
from src.matching.scorer import AttributeScorer
from src.reporting.writer import (
    write_arrangements,
    write_assignment,
    write_popularity,
    write_score_pairs,
)
from src.utils.logger import set_verbosity


def build_parser(config: MatchingConfig | None = None) -> argparse.ArgumentParser:
    """Argument parser; category choices come from the default config."""
    categories = sorted((config or MatchingConfig()).categories)
    parser = argparse.ArgumentParser(description="Match two datasets by attribute overlap")
    parser.add_argument("category", help=f"Matching category ({', '.join(categories)})")
    parser.add_argument("file_a", type=str, help="CSV for dataset A (mentees / participants)")
    parser.add_argument("file_b", type=str, help="CSV for dataset B (mentors / panels)")
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_matching.yaml",
        help="Path to matching config YAML",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Scoring worker count (overrides config)"
    )
    parser.add_argument("--output", type=str, default=None, help="Result CSV (overrides config)")
    parser.add_argument(
        "--arrangements", type=str, default=None, help="Arrangement log path (overrides config)"
    )
    parser.add_argument(
        "--popularity", type=str, default=None, help="Panel popularity CSV (overrides config)"
    )
    parser.add_argument(
        "--measure-threads",
        action="store_true",
        help="Time the score-matrix build with 1, 2, 4 and --workers workers first",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def measure_build_times(
    dataset_a: Dataset,
    dataset_b: Dataset,
    worker_counts: list[int],
    config: MatchingConfig,
) -> dict[int, float]:
    """Time the build with the configured scorer, keeping per-build log lines out of the table."""
    loggers = [logging.getLogger(name) for name in QUIET_LOGGERS]
    saved = [lg.level for lg in loggers]
    for lg in loggers:
        lg.setLevel(logging.WARNING)
    try:
        return measure_threading_performance(
            dataset_a,
            dataset_b,
            worker_counts,
            scorer=AttributeScorer(config.scoring.duplicate_policy),
        )
    finally:
        for lg, level in zip(loggers, saved):
            lg.setLevel(level)


def write_results(outcome: MatchOutcome, config: MatchingConfig, args: argparse.Namespace) -> None:
    """Write output.csv and the mode-specific side files."""
    cat = outcome.category
    output_path = args.output or config.output.output_path

    if outcome.assignment is None:
        n = write_score_pairs(output_path, outcome.matrix, cat.label_a, cat.label_b)
        print(f"Wrote {n} scored pairs to {output_path}")
        popularity_path = args.popularity or config.output.popularity_path
        write_popularity(popularity_path, outcome.popularity, cat.label_b)
        print(f"Panel popularity analysis written to {popularity_path}")
        return

    write_assignment(output_path, outcome.assignment, cat.label_a, cat.label_b)
    result = outcome.assignment
    print(
        f"Assigned {len(result) - len(result.unassigned)}/{len(result)} "
        f"{cat.label_a.lower()}s (total score {result.total_score}) → {output_path}"
    )
    if outcome.arrangements is not None:
        arrangements_path = args.arrangements or config.output.arrangements_path
        write_arrangements(arrangements_path, outcome.arrangements)
        print(f"Arrangement log written to {arrangements_path}")


def main(argv: list[str] | None = None) -> int:
    """Main"""

    args = build_parser().parse_args(argv)
    set_verbosity(args.verbose)

    # Load config
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
        print(f"Loaded config from {config_path}")
    else:
        print(f"Config {config_path} not found, using defaults")
        config = MatchingConfig()

    try:
        cat = config.category(args.category)
    except KeyError as exc:
        print(f"Error: {exc.args[0]}", file=sys.stderr)
        return 1

    try:
        print(f"Parsing input file: {args.file_a}")
        dataset_a = load_dataset(args.file_a, label=cat.label_a.lower())
        print(f"Parsing input file: {args.file_b}")
        dataset_b = load_dataset(args.file_b, label=cat.label_b.lower())

        if args.measure_threads:
            counts = sorted({1, 2, 4, args.workers or config.scoring.worker_count})
            timings = measure_build_times(dataset_a, dataset_b, counts, config)
            print("Threading performance:")
            for workers, ms in timings.items():
                print(f"  {workers:>3} worker(s): {ms:8.2f} ms")

        print(f"Starting matching process for {cat.name}...")
        outcome = run_matching(cat.name, dataset_a, dataset_b, config, args.workers)
        print("Matching completed.")

        write_results(outcome, config, args)
    except MatchingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
