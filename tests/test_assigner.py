"""
Tests for greedy capacity-constrained assignment.

Tests cover:
1. First-pick order and smallest-index tie-breaking
2. Capacity conservation and zero / absent capacity
3. Zero-overlap rows (assigned by default, refusable by config)
4. The documented non-optimality of the greedy pass
5. Arrangement log contents and format

Run with: pytest tests/test_assigner.py -v
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import numpy as np

from src.datasets.config import AssignmentConfig
from src.datasets.records import Dataset, Row
from src.errors import InvalidInputError
from src.matching.arrangement import ArrangementRecorder
from src.matching.assigner import (
    AssignmentStatus,
    CapacityAssigner,
    CapacityLedger,
)
from src.matching.benchmark import generate_scenario, optimal_total_score
from src.matching.score_matrix import ScoreMatrixBuilder


def _assign(a: Dataset, b: Dataset, config: AssignmentConfig | None = None, recorder=None):
    matrix = ScoreMatrixBuilder().build(a, b)
    return CapacityAssigner(config, recorder).assign(a, b, matrix)


# ── Test: Concrete scenarios ──────────────────────────────────────


class TestGreedyAssignment:
    """Selection order and tie-breaking."""

    def test_diagonal_unconstrained(self):
        a = Dataset.from_records([("John", ["Math"]), ("Jane", ["Science"])])
        b = Dataset.from_records([("Alice", ["Math"]), ("Bob", ["Science"])])
        result = _assign(a, b)
        assert result.targets == [0, 1]
        assert result.scores == [1, 1]
        assert result.status == AssignmentStatus.COMPLETE

    def test_contention_first_row_wins(self):
        a = Dataset.from_records([("X", ["Art"]), ("Y", ["Art"])])
        b = Dataset.from_records([("Z", ["Art"], 1)])
        result = _assign(a, b)
        assert result.targets == [0, None]
        assert result.unassigned == [1]
        assert result.status == AssignmentStatus.PARTIAL

    def test_tie_goes_to_smallest_index(self):
        a = Dataset.from_records([("X", ["Art", "Math"])])
        b = Dataset.from_records([("P", ["Math"]), ("Q", ["Art"]), ("R", ["Art"])])
        assert _assign(a, b).targets == [0]

    def test_highest_score_wins_over_index(self):
        a = Dataset.from_records([("X", ["Art", "Math"])])
        b = Dataset.from_records([("P", ["Math"]), ("Q", ["Art", "Math"])])
        assert _assign(a, b).targets == [1]

    def test_falls_back_to_next_best_when_full(self):
        a = Dataset.from_records([("X", ["Art", "Math"]), ("Y", ["Art", "Math"])])
        b = Dataset.from_records([("P", ["Art", "Math"], 1), ("Q", ["Math"], 1)])
        result = _assign(a, b)
        assert result.targets == [0, 1]
        assert result.scores == [2, 1]
        assert result.total_score == 3

    def test_assignment_length_equals_a(self):
        scenario = generate_scenario(25, 4, np.random.default_rng(5))
        result = _assign(scenario.dataset_a, scenario.dataset_b)
        assert len(result) == 25

    def test_deterministic(self):
        scenario = generate_scenario(60, 9, np.random.default_rng(9))
        matrix = ScoreMatrixBuilder().build(scenario.dataset_a, scenario.dataset_b)
        r1 = CapacityAssigner().assign(scenario.dataset_a, scenario.dataset_b, matrix)
        r2 = CapacityAssigner().assign(scenario.dataset_a, scenario.dataset_b, matrix)
        assert r1.targets == r2.targets
        assert r1.scores == r2.scores

    def test_greedy_is_not_optimal(self):
        """An earlier row takes the slot a later row needed more."""
        a = Dataset.from_records([("x", ["Art", "Math"]), ("y", ["Art"])])
        b = Dataset.from_records([("p", ["Art"], 1), ("q", ["Math"], 1)])
        matrix = ScoreMatrixBuilder().build(a, b)
        result = CapacityAssigner().assign(a, b, matrix)
        assert result.targets == [0, 1]
        assert result.total_score == 1
        assert optimal_total_score(matrix, b) == 2


# ── Test: Capacity ────────────────────────────────────────────────


class TestCapacity:
    """Ledger behaviour and capacity conservation."""

    def test_capacity_never_exceeded(self):
        scenario = generate_scenario(150, 12, np.random.default_rng(21))
        result = _assign(scenario.dataset_a, scenario.dataset_b)
        for j, row in enumerate(scenario.dataset_b):
            assert result.load(j) <= row.capacity

    def test_zero_capacity_is_unavailable(self):
        a = Dataset.from_records([("X", ["Art"])])
        b = Dataset.from_records([("P", ["Art"], 0), ("Q", ["Math"], 1)])
        result = _assign(a, b)
        assert result.targets == [1]
        assert result.scores == [0]

    def test_all_zero_capacity_leaves_everyone_unassigned(self):
        a = Dataset.from_records([("X", ["Art"]), ("Y", ["Math"])])
        b = Dataset.from_records([("P", ["Art"], 0)])
        result = _assign(a, b)
        assert result.targets == [None, None]
        assert result.total_score == 0

    def test_absent_capacity_is_unlimited_by_default(self):
        a = Dataset.from_records([(f"A{i}", ["Art"]) for i in range(10)])
        b = Dataset.from_records([("P", ["Art"])])
        assert _assign(a, b).targets == [0] * 10

    def test_default_capacity_applies_to_absent_only(self):
        a = Dataset.from_records([(f"A{i}", ["Art"]) for i in range(4)])
        b = Dataset.from_records([("P", ["Art"]), ("Q", ["Art"], 3)])
        result = _assign(a, b, AssignmentConfig(default_capacity=1))
        assert result.targets == [0, 1, 1, 1]

    def test_empty_b_leaves_all_unassigned(self):
        a = Dataset.from_records([("X", ["Art"])])
        result = _assign(a, Dataset())
        assert result.targets == [None]

    def test_empty_a(self):
        b = Dataset.from_records([("P", ["Art"], 1)])
        result = _assign(Dataset(), b)
        assert result.targets == []
        assert result.status == AssignmentStatus.EMPTY

    def test_ledger_take_and_exhaust(self):
        ledger = CapacityLedger([2, None, 0, -3])
        assert ledger.available(0)
        ledger.take(0)
        ledger.take(0)
        assert not ledger.available(0)
        assert ledger.remaining(0) == 0
        ledger.take(1)
        assert ledger.available(1)
        assert ledger.remaining(1) is None
        assert not ledger.available(2)
        assert not ledger.available(3)
        with pytest.raises(InvalidInputError):
            ledger.take(0)


# ── Test: Zero-overlap rows ───────────────────────────────────────


class TestZeroScore:
    """Rows whose best score is 0."""

    def test_zero_overlap_goes_to_first_b_with_capacity(self):
        a = Dataset.from_records([("X", ["Music"])])
        b = Dataset.from_records([("P", ["Art"], 0), ("Q", ["Math"], 2), ("R", ["Art"], 2)])
        result = _assign(a, b)
        assert result.targets == [1]
        assert result.scores == [0]

    def test_zero_overlap_refused_when_configured(self):
        a = Dataset.from_records([("X", ["Music"]), ("Y", ["Art"])])
        b = Dataset.from_records([("P", ["Art"], 2)])
        result = _assign(a, b, AssignmentConfig(allow_zero_score=False))
        assert result.targets == [None, 0]
        assert result.status == AssignmentStatus.PARTIAL


# ── Test: Input validation ────────────────────────────────────────


class TestAssignerValidation:
    def test_missing_dataset(self):
        b = Dataset.from_records([("P", ["Art"], 1)])
        matrix = ScoreMatrixBuilder().build(b, b)
        with pytest.raises(InvalidInputError):
            CapacityAssigner().assign(None, b, matrix)

    def test_nameless_row(self):
        a = Dataset((Row(" ", ("Art",)),))
        b = Dataset.from_records([("P", ["Art"], 1)])
        good = Dataset.from_records([("X", ["Art"])])
        matrix = ScoreMatrixBuilder().build(good, b)
        with pytest.raises(InvalidInputError):
            CapacityAssigner().assign(a, b, matrix)

    def test_shape_mismatch(self):
        a = Dataset.from_records([("X", ["Art"]), ("Y", ["Art"])])
        b = Dataset.from_records([("P", ["Art"], 1)])
        matrix = ScoreMatrixBuilder().build(b, b)
        with pytest.raises(InvalidInputError, match="shape"):
            CapacityAssigner().assign(a, b, matrix)

    def test_statistics_accumulate(self):
        a = Dataset.from_records([("X", ["Art"])])
        b = Dataset.from_records([("P", ["Art"], 1)])
        matrix = ScoreMatrixBuilder().build(a, b)
        assigner = CapacityAssigner()
        for _ in range(3):
            assigner.assign(a, b, matrix)
        assert assigner.total_solves == 3
        assert assigner.total_solve_time_ms >= 0


# ── Test: Arrangement log ─────────────────────────────────────────


class TestArrangementRecorder:
    """Snapshots after each decision."""

    def test_one_entry_per_row(self):
        a = Dataset.from_records([("X", ["Art"]), ("Y", ["Art"]), ("W", ["Math"])])
        b = Dataset.from_records([("Z", ["Art"], 1), ("V", ["Math"], 1)])
        recorder = ArrangementRecorder()
        _assign(a, b, recorder=recorder)
        assert [e.row_index for e in recorder.entries] == [0, 1, 2]
        assert recorder.entries[0].assignment == (0, None, None)
        assert recorder.entries[1].assignment == (0, 1, None)
        assert recorder.entries[2].assignment == (0, 1, None)
        assert [e.score for e in recorder.entries] == [1, 0, 0]

    def test_lines_format(self):
        a = Dataset.from_records([("X", ["Art"]), ("Y", ["Art"])])
        b = Dataset.from_records([("Z", ["Art"], 1)])
        recorder = ArrangementRecorder()
        _assign(a, b, recorder=recorder)
        assert recorder.lines() == ["0: [0 -] score=1", "1: [0 -] score=0"]

    def test_cumulative_score(self):
        a = Dataset.from_records([("X", ["Art", "Math"]), ("Y", ["Art"])])
        b = Dataset.from_records([("P", ["Art", "Math"]), ("Q", ["Art"])])
        recorder = ArrangementRecorder(cumulative=True)
        _assign(a, b, recorder=recorder)
        assert [e.score for e in recorder.entries] == [2, 3]

    def test_recording_does_not_change_outcome(self):
        scenario = generate_scenario(40, 6, np.random.default_rng(17))
        plain = _assign(scenario.dataset_a, scenario.dataset_b)
        recorded = _assign(scenario.dataset_a, scenario.dataset_b, recorder=ArrangementRecorder())
        assert plain.targets == recorded.targets

    def test_entries_are_snapshots(self):
        recorder = ArrangementRecorder()
        vector = [0, None]
        recorder.record(0, vector, 1)
        vector[1] = 0
        recorder.record(1, vector, 1)
        assert recorder.entries[0].assignment == (0, None)
        assert recorder.entries[1].assignment == (0, 0)
