"""
Matching pipeline diagnostic tool.

Runs the engine on small in-memory datasets with heavy instrumentation to
verify every stage: scoring → matrix build → greedy assignment → arrangement log.

This is the script you run FIRST when something looks wrong. It traces
every stage independently so you can pinpoint exactly where the break is.

Usage:
    python scripts/verify_pipeline.py

Each check is independent. If check N fails, the bug is in that stage.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import numpy as np  # noqa: E402

from src.datasets.records import Dataset  # noqa: E402
from src.errors import InvalidInputError, ScoringError  # noqa: E402
from src.matching.arrangement import ArrangementRecorder  # noqa: E402
from src.matching.assigner import CapacityAssigner  # noqa: E402
from src.matching.benchmark import generate_scenario  # noqa: E402
from src.matching.score_matrix import ScoreMatrixBuilder, partition_rows  # noqa: E402
from src.matching.scorer import AttributeScorer  # noqa: E402


def section(title: str) -> None:
    """Creates a section in the CLI display"""

    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}")


def check(label: str, condition: bool, detail: str = "") -> bool:
    """Checks if a condition is passed."""

    status = "✅ PASS" if condition else "❌ FAIL"
    msg = f"  {status}: {label}"
    if detail:
        msg += f" — {detail}"
    print(msg)
    return condition


# ─────────────────────────────────────────────────────────────
# STAGE 1: Pairwise scoring
# ─────────────────────────────────────────────────────────────
def verify_scorer() -> None:
    """Verify the scorer on hand-checked pairs."""

    section("STAGE 1: Attribute Scorer")

    ds = Dataset.from_records(
        [("a", ["Art", "Art", "Math"]), ("b", ["Art"]), ("c", []), ("d", ["Math", "Art"])]
    )
    pairs = AttributeScorer("pairs")
    sets = AttributeScorer("set")

    check("pairs: duplicates count per pair", pairs.score(ds[0], ds[1]) == 2)
    check("set: duplicates count once", sets.score(ds[0], ds[1]) == 1)
    check("empty attributes score 0", pairs.score(ds[0], ds[2]) == 0)
    check("symmetric", pairs.score(ds[0], ds[3]) == pairs.score(ds[3], ds[0]))
    check("pure", pairs.score(ds[0], ds[3]) == pairs.score(ds[0], ds[3]))


# ─────────────────────────────────────────────────────────────
# STAGE 2: Score matrix
# ─────────────────────────────────────────────────────────────
def verify_matrix() -> None:
    """Verify partitioning, shape, determinism and failure handling."""

    section("STAGE 2: Score Matrix Builder")

    slices = partition_rows(10, 4)
    covered = sorted(i for s in slices for i in s)
    check("Partition covers all rows exactly once", covered == list(range(10)), str(slices))

    scenario = generate_scenario(57, 13, np.random.default_rng(7))
    m1 = ScoreMatrixBuilder(worker_count=4).build(scenario.dataset_a, scenario.dataset_b)
    m2 = ScoreMatrixBuilder(worker_count=1).build(scenario.dataset_a, scenario.dataset_b)
    check("Cell count is |A|·|B|", len(m1) == 57 * 13, f"{len(m1)} cells")
    check("All scores >= 0", bool((m1.scores >= 0).all()))
    check("Worker count does not change result", np.array_equal(m1.scores, m2.scores))

    swapped = ScoreMatrixBuilder().build(scenario.dataset_b, scenario.dataset_a)
    check("Swapping A and B transposes", np.array_equal(m1.scores, swapped.scores.T))

    try:
        ScoreMatrixBuilder().build(None, scenario.dataset_b)
        check("Missing dataset rejected", False)
    except InvalidInputError as e:
        check("Missing dataset rejected", True, str(e))

    bad = Dataset.from_records([("x", ["Art", 3])])
    try:
        ScoreMatrixBuilder().build(bad, scenario.dataset_b)
        check("Malformed row aborts build", False)
    except ScoringError as e:
        check("Malformed row aborts build", True, str(e))


# ─────────────────────────────────────────────────────────────
# STAGE 3: Greedy assignment
# ─────────────────────────────────────────────────────────────
def verify_assignment() -> None:
    """Verify capacity conservation, tie-breaking and the arrangement log."""

    section("STAGE 3: Capacity Assigner")

    a = Dataset.from_records([("X", ["Art"]), ("Y", ["Art"])])
    b = Dataset.from_records([("Z", ["Art"], 1)])
    matrix = ScoreMatrixBuilder().build(a, b)
    recorder = ArrangementRecorder()
    result = CapacityAssigner(recorder=recorder).assign(a, b, matrix)
    check("First row wins the sole slot", result.targets == [0, None], str(result.targets))
    check("One arrangement entry per row", len(recorder) == 2, " | ".join(recorder.lines()))

    scenario = generate_scenario(120, 15, np.random.default_rng(11))
    matrix = ScoreMatrixBuilder().build(scenario.dataset_a, scenario.dataset_b)
    r1 = CapacityAssigner().assign(scenario.dataset_a, scenario.dataset_b, matrix)
    r2 = CapacityAssigner().assign(scenario.dataset_a, scenario.dataset_b, matrix)
    over = [
        j
        for j, row in enumerate(scenario.dataset_b)
        if row.capacity is not None and r1.load(j) > row.capacity
    ]
    check("No B-row over capacity", not over, f"{len(r1.unassigned)} unassigned")
    check("Deterministic", r1.targets == r2.targets)


# ─────────────────────────────────────────────────────────────
# Main
# ─────────────────────────────────────────────────────────────
if __name__ == "__main__":
    print("Matching Engine — Pipeline Verification")
    print("=" * 60)

    verify_scorer()
    verify_matrix()
    verify_assignment()

    section("VERIFICATION COMPLETE")
    print("  If all checks passed, the pipeline is working end-to-end.")
    print("  If any FAIL, the stage label tells you exactly where to look.")
