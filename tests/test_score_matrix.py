"""
Tests for the parallel score matrix builder.

Tests cover:
1. Row partitioning across workers
2. Matrix shape, values and read-only storage
3. Symmetry, determinism and independence from worker count
4. Fail-fast behaviour on missing datasets and malformed rows

Run with: pytest tests/test_score_matrix.py -v
"""

import threading

import numpy as np
import pytest

from src.datasets.records import Dataset, Row
from src.errors import AllocationFailureError, InvalidInputError, ScoringError
from src.matching import score_matrix as score_matrix_module
from src.matching.benchmark import generate_scenario
from src.matching.score_matrix import (
    ScoreMatrix,
    ScoreMatrixBuilder,
    build_score_matrix,
    partition_rows,
)
from src.matching.scorer import AttributeScorer


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def students() -> Dataset:
    return Dataset.from_records([("John", ["Math"]), ("Jane", ["Science"])], label="students")


@pytest.fixture
def tutors() -> Dataset:
    return Dataset.from_records([("Alice", ["Math"]), ("Bob", ["Science"])], label="tutors")


@pytest.fixture
def random_scenario():
    return generate_scenario(37, 11, np.random.default_rng(3))


# ── Test: Partitioning ────────────────────────────────────────────


class TestPartitionRows:
    """Disjoint contiguous slices."""

    def test_even_split(self):
        assert partition_rows(8, 4) == [range(0, 2), range(2, 4), range(4, 6), range(6, 8)]

    def test_uneven_split_uses_ceiling(self):
        assert partition_rows(10, 4) == [range(0, 3), range(3, 6), range(6, 9), range(9, 10)]

    def test_fewer_rows_than_workers(self):
        assert partition_rows(2, 4) == [range(0, 1), range(1, 2)]

    def test_ceiling_can_leave_workers_idle(self):
        """ceil(5/4) = 2 rows per worker → only 3 slices are needed."""
        assert partition_rows(5, 4) == [range(0, 2), range(2, 4), range(4, 5)]

    def test_zero_rows(self):
        assert partition_rows(0, 4) == []

    @pytest.mark.parametrize("n_rows,workers", [(1, 1), (7, 3), (100, 4), (13, 16)])
    def test_slices_cover_every_row_once(self, n_rows, workers):
        slices = partition_rows(n_rows, workers)
        covered = [i for s in slices for i in s]
        assert covered == list(range(n_rows))
        assert len(slices) <= workers

    def test_invalid_worker_count(self):
        with pytest.raises(InvalidInputError):
            partition_rows(10, 0)


# ── Test: Building ────────────────────────────────────────────────


class TestScoreMatrixBuilder:
    """Matrix contents and invariants."""

    def test_diagonal_scenario(self, students, tutors):
        matrix = ScoreMatrixBuilder().build(students, tutors)
        assert matrix.to_lists() == [[1, 0], [0, 1]]
        assert matrix.names_a == ("John", "Jane")
        assert matrix.names_b == ("Alice", "Bob")

    def test_len_is_cell_count(self, random_scenario):
        matrix = ScoreMatrixBuilder().build(random_scenario.dataset_a, random_scenario.dataset_b)
        assert len(matrix) == 37 * 11
        assert matrix.shape == (37, 11)

    def test_scores_non_negative(self, random_scenario):
        matrix = ScoreMatrixBuilder().build(random_scenario.dataset_a, random_scenario.dataset_b)
        assert (matrix.scores >= 0).all()

    def test_cells_match_scorer(self, random_scenario):
        a, b = random_scenario.dataset_a, random_scenario.dataset_b
        scorer = AttributeScorer()
        matrix = ScoreMatrixBuilder(scorer).build(a, b)
        for i in range(len(a)):
            for j in range(len(b)):
                assert matrix[i, j] == scorer.score(a[i], b[j])

    def test_storage_is_read_only(self, students, tutors):
        matrix = ScoreMatrixBuilder().build(students, tutors)
        with pytest.raises(ValueError):
            matrix.scores[0, 0] = 99

    def test_symmetry_when_swapped(self, random_scenario):
        a, b = random_scenario.dataset_a, random_scenario.dataset_b
        ab = ScoreMatrixBuilder().build(a, b)
        ba = ScoreMatrixBuilder().build(b, a)
        for i in range(len(a)):
            for j in range(len(b)):
                assert ab[i, j] == ba[j, i]
        assert np.array_equal(ab.transpose().scores, ba.scores)

    def test_rebuild_is_bitwise_identical(self, random_scenario):
        a, b = random_scenario.dataset_a, random_scenario.dataset_b
        builder = ScoreMatrixBuilder()
        first = builder.build(a, b)
        for _ in range(3):
            again = builder.build(a, b)
            assert again.scores.tobytes() == first.scores.tobytes()
        assert builder.total_builds == 4

    @pytest.mark.parametrize("workers", [1, 2, 3, 4, 8, 64])
    def test_worker_count_does_not_change_result(self, random_scenario, workers):
        a, b = random_scenario.dataset_a, random_scenario.dataset_b
        reference = ScoreMatrixBuilder(worker_count=1).build(a, b)
        matrix = ScoreMatrixBuilder(worker_count=workers).build(a, b)
        assert np.array_equal(matrix.scores, reference.scores)

    @pytest.mark.parametrize("cell", [(-1, 0), (0, -1), (2, 0), (0, 2)])
    def test_out_of_range_cell(self, students, tutors, cell):
        matrix = ScoreMatrixBuilder().build(students, tutors)
        with pytest.raises(IndexError):
            matrix[cell]

    def test_nonzero_pairs_row_major(self):
        a = Dataset.from_records([("p", ["x", "y"]), ("q", ["z"])])
        b = Dataset.from_records([("m", ["y"]), ("n", ["z"]), ("o", ["x"])])
        matrix = build_score_matrix(a, b)
        assert list(matrix.nonzero_pairs()) == [(0, 0, 1), (0, 2, 1), (1, 1, 1)]

    def test_uses_configured_worker_pool(self, random_scenario, monkeypatch):
        """Only the configured number of threads write into the matrix."""
        seen: set[str] = set()
        original = ScoreMatrixBuilder._score_slice

        def spy(self, *args, **kwargs):
            seen.add(threading.current_thread().name)
            return original(self, *args, **kwargs)

        monkeypatch.setattr(ScoreMatrixBuilder, "_score_slice", spy)
        ScoreMatrixBuilder(worker_count=3).build(
            random_scenario.dataset_a, random_scenario.dataset_b
        )
        assert 1 <= len(seen) <= 3
        assert all(name.startswith("score-worker") for name in seen)


class TestEmptyDatasets:
    """A zero-row dataset yields an empty matrix, not an error."""

    def test_empty_a(self, tutors):
        matrix = ScoreMatrixBuilder().build(Dataset(), tutors)
        assert matrix.shape == (0, 2)
        assert len(matrix) == 0

    def test_empty_b(self, students):
        matrix = ScoreMatrixBuilder().build(students, Dataset())
        assert matrix.shape == (2, 0)
        assert len(matrix) == 0
        assert list(matrix.nonzero_pairs()) == []

    def test_both_empty(self):
        matrix = ScoreMatrixBuilder().build(Dataset(), Dataset())
        assert isinstance(matrix, ScoreMatrix)
        assert len(matrix) == 0


class TestBuildFailures:
    """Invalid input and worker failures never publish a matrix."""

    def test_missing_dataset_a(self, tutors):
        with pytest.raises(InvalidInputError):
            ScoreMatrixBuilder().build(None, tutors)

    def test_missing_dataset_b(self, students):
        with pytest.raises(InvalidInputError):
            ScoreMatrixBuilder().build(students, None)

    def test_nameless_row(self, tutors):
        bad = Dataset((Row("", ("Math",)),))
        with pytest.raises(InvalidInputError, match="no name"):
            ScoreMatrixBuilder().build(bad, tutors)

    def test_non_row_entry(self, tutors):
        bad = Dataset((Row("x", ("Math",)), None), label="students")
        with pytest.raises(InvalidInputError, match="row 1 is not a Row"):
            ScoreMatrixBuilder().build(bad, tutors)

    def test_invalid_worker_count(self):
        with pytest.raises(InvalidInputError):
            ScoreMatrixBuilder(worker_count=0)

    def test_malformed_row_aborts_build(self, tutors):
        rows = [Row(f"r{i}", ("Math",)) for i in range(20)]
        rows[13] = Row("broken", ("Math", 42))
        with pytest.raises(ScoringError):
            ScoreMatrixBuilder(worker_count=4).build(Dataset(tuple(rows)), tutors)

    def test_unexpected_worker_exception_is_wrapped(self, students, tutors):
        class ExplodingScorer(AttributeScorer):
            def score(self, row_a, row_b):
                raise RuntimeError("boom")

        with pytest.raises(ScoringError, match="RuntimeError") as excinfo:
            ScoreMatrixBuilder(ExplodingScorer()).build(students, tutors)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_allocation_failure_surfaces(self, students, tutors, monkeypatch):
        def fail(shape, dtype=None):
            raise MemoryError

        monkeypatch.setattr(score_matrix_module.np, "zeros", fail)
        with pytest.raises(AllocationFailureError):
            ScoreMatrixBuilder().build(students, tutors)
