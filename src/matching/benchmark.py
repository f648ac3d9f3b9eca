"""
src/matching/benchmark.py
──────────────────────────────────────────────────────────────────────────────
Benchmark: score-matrix threading and the greedy assignment's optimality gap.

Two measurements on random scenarios:
  • Build time per worker count   (same datasets, worker_count = 1, 2, 4, ...)
  • Greedy vs optimal total score (greedy CapacityAssigner against the exact
                                   optimum of the capacity-expanded LAP)

The optimum comes from scipy.optimize.linear_sum_assignment and is used ONLY
as a yardstick for how much score the greedy heuristic leaves on the table.
It never produces an assignment for the pipeline.

Usage:
    python -m src.matching.benchmark                         # 20 scenarios, defaults
    python -m src.matching.benchmark --scenarios 100
    python -m src.matching.benchmark --rows-a 400 --rows-b 60 --workers 1 2 4 8
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass

import numpy as np

from src.datasets.records import Dataset, Row
from src.matching.assigner import CapacityAssigner
from src.matching.score_matrix import ScoreMatrix, ScoreMatrixBuilder
from src.matching.scorer import AttributeScorer

QUIET_LOGGERS = ("matching.score_matrix", "matching.assigner")


# ── Scenario generation ───────────────────────────────────────────────────────


@dataclass
class BenchmarkScenario:
    """A single random matching scenario."""

    dataset_a: Dataset
    dataset_b: Dataset


def generate_scenario(
    n_a: int,
    n_b: int,
    rng: np.random.Generator,
    vocabulary_size: int = 30,
    max_attributes: int = 5,
    max_capacity: int = 3,
) -> BenchmarkScenario:
    """Random datasets drawing attributes from a shared vocabulary.

    B-rows get a capacity in [1, max_capacity]; total capacity may fall short
    of n_a, which exercises the unassigned path.
    """
    vocab = [f"topic_{k:02d}" for k in range(vocabulary_size)]

    def _attrs() -> tuple[str, ...]:
        k = int(rng.integers(1, max_attributes + 1))
        return tuple(vocab[int(x)] for x in rng.choice(vocabulary_size, size=k, replace=False))

    rows_a = [Row(f"A_{i:04d}", _attrs()) for i in range(n_a)]
    rows_b = [
        Row(f"B_{j:04d}", _attrs(), capacity=int(rng.integers(1, max_capacity + 1)))
        for j in range(n_b)
    ]
    return BenchmarkScenario(Dataset(tuple(rows_a), "A"), Dataset(tuple(rows_b), "B"))


# ── Threading performance ─────────────────────────────────────────────────────


def measure_threading_performance(
    dataset_a: Dataset,
    dataset_b: Dataset,
    worker_counts: list[int] | None = None,
    repeats: int = 3,
    scorer: AttributeScorer | None = None,
) -> dict[int, float]:
    """Best-of-``repeats`` build time in ms for each worker count.

    ``scorer`` defaults to the pairs policy; pass the configured one to time
    the same work a real run does.
    """
    timings: dict[int, float] = {}
    for workers in worker_counts or [1, 2, 4]:
        builder = ScoreMatrixBuilder(scorer, worker_count=workers)
        best = float("inf")
        for _ in range(max(repeats, 1)):
            t0 = time.perf_counter()
            builder.build(dataset_a, dataset_b)
            best = min(best, (time.perf_counter() - t0) * 1e3)
        timings[workers] = best
    return timings


# ── Optimality gap ────────────────────────────────────────────────────────────


def optimal_total_score(matrix: ScoreMatrix, dataset_b: Dataset) -> int:
    """Exact maximum total score under the capacities, for comparison only.

    Each B-row is expanded into one column per slot (unlimited → n_a slots),
    turning the one-to-many problem into a rectangular LAP.
    """
    from scipy.optimize import linear_sum_assignment  # type: ignore # pylint: disable=import-error, import-outside-toplevel

    if matrix.n_a == 0 or matrix.n_b == 0:
        return 0

    columns: list[int] = []
    for j, row in enumerate(dataset_b):
        slots = matrix.n_a if row.capacity is None else max(row.capacity, 0)
        columns.extend([j] * min(slots, matrix.n_a))
    if not columns:
        return 0

    expanded = matrix.scores[:, columns]
    rows, cols = linear_sum_assignment(expanded, maximize=True)
    return int(expanded[rows, cols].sum())


def greedy_gap(scenario: BenchmarkScenario) -> tuple[int, int]:
    """(greedy total, optimal total) for one scenario."""
    matrix = ScoreMatrixBuilder().build(scenario.dataset_a, scenario.dataset_b)
    greedy = CapacityAssigner().assign(scenario.dataset_a, scenario.dataset_b, matrix)
    return greedy.total_score, optimal_total_score(matrix, scenario.dataset_b)


# ── Main benchmark loop ───────────────────────────────────────────────────────


def run_benchmark(
    n_scenarios: int = 20,
    n_a: int = 200,
    n_b: int = 40,
    seed: int = 42,
    worker_counts: list[int] | None = None,
) -> None:
    """Run scenarios and print a summary table."""
    worker_counts = worker_counts or [1, 2, 4]
    rng = np.random.default_rng(seed)

    # Per-build log lines would drown the table
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    print("=" * 72)
    print("  Matching Engine Benchmark")
    print("=" * 72)
    print(f"  Scenarios: {n_scenarios}  |  A rows: {n_a}  |  B rows: {n_b}  |  Seed: {seed}")
    print()

    build_ms: dict[int, list[float]] = {w: [] for w in worker_counts}
    greedy_totals: list[int] = []
    optimal_totals: list[int] = []

    for _ in range(n_scenarios):
        scenario = generate_scenario(n_a, n_b, rng)
        for w, ms in measure_threading_performance(
            scenario.dataset_a, scenario.dataset_b, worker_counts, repeats=1
        ).items():
            build_ms[w].append(ms)
        g, o = greedy_gap(scenario)
        greedy_totals.append(g)
        optimal_totals.append(o)

    print(f"  {'Workers':<10}{'Avg build (ms)':>16}{'P95 build (ms)':>16}{'Speed-up':>12}")
    print("  " + "─" * 54)
    base = float(np.mean(build_ms[worker_counts[0]]))
    for w in worker_counts:
        avg = float(np.mean(build_ms[w]))
        p95 = float(np.percentile(build_ms[w], 95))
        speedup = base / avg if avg > 0 else 0.0
        print(f"  {w:<10}{avg:>16.2f}{p95:>16.2f}{speedup:>11.2f}x")

    print()
    gaps = [
        (o - g) / o * 100 if o > 0 else 0.0 for g, o in zip(greedy_totals, optimal_totals)
    ]
    print(f"  Avg greedy total score:   {np.mean(greedy_totals):.1f}")
    print(f"  Avg optimal total score:  {np.mean(optimal_totals):.1f}")
    print(f"  Avg greedy gap:           {np.mean(gaps):.2f}%  (max {np.max(gaps):.2f}%)")
    print("\n" + "=" * 72)


# ── CLI entry point ───────────────────────────────────────────────────────────

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Benchmark the matching engine")
    parser.add_argument("--scenarios", type=int, default=20)
    parser.add_argument("--rows-a", type=int, default=200)
    parser.add_argument("--rows-b", type=int, default=40)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument(
        "--workers",
        nargs="+",
        type=int,
        default=None,
        help="Worker counts to time (default: 1 2 4)",
    )
    args = parser.parse_args()
    run_benchmark(args.scenarios, args.rows_a, args.rows_b, args.seed, args.workers)
