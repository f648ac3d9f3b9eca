"""
Generate match diagrams.

Scores two CSV datasets and writes PNG plots to the current directory:
the score heatmap always, plus panel popularity (participant_panel) or
assigned load vs capacity (mentee_mentor).

Usage:
    python plot_matches.py participant_panel data/participants.csv data/panels.csv
    python plot_matches.py mentee_mentor data/mentees.csv data/mentors.csv
    python plot_matches.py mentee_mentor a.csv b.csv --output my_scores.png --dpi 200
"""

import argparse
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

from src.datasets.config import MatchingConfig, load_config  # noqa: E402
from src.datasets.loader import load_dataset  # noqa: E402
from src.errors import MatchingError  # noqa: E402
from src.matching.pipeline import run_matching  # noqa: E402
from src.analysis.visualizations import (  # noqa: E402
    plot_assignment_load,
    plot_panel_popularity,
    plot_score_matrix,
)


def main(argv: list[str] | None = None) -> int:
    """Main function"""

    parser = argparse.ArgumentParser(
        description="Generate match diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("category", help="mentee_mentor or participant_panel")
    parser.add_argument("file_a", help="CSV for dataset A")
    parser.add_argument("file_b", help="CSV for dataset B")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to matching YAML config (default: config/default_matching.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="match_scores.png",
        help="Output PNG filename for the heatmap (default: match_scores.png)",
    )
    parser.add_argument(
        "--dpi",
        type=int,
        default=150,
        help="Output image resolution (default: 150)",
    )
    args = parser.parse_args(argv)

    # ── Load config ──────────────────────────────────────────────
    config_path = args.config
    if config_path is None:
        default_path = Path(__file__).parent / "config" / "default_matching.yaml"
        if default_path.exists():
            config_path = str(default_path)

    if config_path:
        print(f"Loading config from: {config_path}")
        config = load_config(config_path)
    else:
        print("Using default config (no YAML found)")
        config = MatchingConfig()

    try:
        cat = config.category(args.category)
    except KeyError as exc:
        print(f"Error: {exc.args[0]}", file=sys.stderr)
        return 1

    try:
        dataset_a = load_dataset(args.file_a, label=cat.label_a.lower())
        dataset_b = load_dataset(args.file_b, label=cat.label_b.lower())
        outcome = run_matching(cat.name, dataset_a, dataset_b, config)
    except MatchingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # ── Heatmap ──────────────────────────────────────────────────
    output_path = Path(args.output)
    fig = plot_score_matrix(
        outcome.matrix, title=f"{cat.label_a} × {cat.label_b} Compatibility"
    )
    fig.savefig(output_path, dpi=args.dpi, bbox_inches="tight")
    print(f"Heatmap saved: {output_path}")

    # ── Mode-specific plot ───────────────────────────────────────
    if outcome.assignment is None:
        extra_path = output_path.with_name(output_path.stem + "_popularity" + output_path.suffix)
        fig_extra = plot_panel_popularity(outcome.popularity, title=f"{cat.label_b} Popularity")
    else:
        extra_path = output_path.with_name(output_path.stem + "_load" + output_path.suffix)
        fig_extra = plot_assignment_load(outcome.assignment, dataset_b)
    fig_extra.savefig(extra_path, dpi=args.dpi, bbox_inches="tight")
    print(f"Plot saved:    {extra_path}")

    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
