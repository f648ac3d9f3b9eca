"""
Score matrix computation.

Builds the dense |A| × |B| table of attribute-overlap scores with a fixed-size
worker pool. Rows of A are split up front into disjoint contiguous slices, one
per worker; each worker writes only the cells of its own rows, so the matrix
needs no lock. The caller blocks until every worker is done and only then sees
the matrix.

Usage:
    builder = ScoreMatrixBuilder(worker_count=4)
    matrix = builder.build(mentees, mentors)
    # matrix[i, j] = score(mentees[i], mentors[j])
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from src.datasets.config import DEFAULT_WORKER_COUNT
from src.datasets.records import Dataset, require_dataset
from src.errors import AllocationFailureError, InvalidInputError, ScoringError
from src.matching.scorer import AttributeScorer
from src.utils.logger import get_logger

logger = get_logger("matching.score_matrix")

SCORE_DTYPE = np.int64


@dataclass(frozen=True, eq=False)
class ScoreMatrix:
    """Read-only pairwise scores, indexed as [a_index, b_index].

    Attributes:
        names_a: Row name at each A index.
        names_b: Row name at each B index.
        scores: Non-negative integer array of shape (len(names_a), len(names_b)).
        build_time_ms: Wall-clock time spent building.
    """

    names_a: tuple[str, ...]
    names_b: tuple[str, ...]
    scores: np.ndarray
    build_time_ms: float = 0.0

    @property
    def n_a(self) -> int:
        return len(self.names_a)

    @property
    def n_b(self) -> int:
        return len(self.names_b)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_a, self.n_b)

    def __len__(self) -> int:
        """Number of cells, always n_a * n_b."""
        return self.n_a * self.n_b

    def __getitem__(self, idx: tuple[int, int]) -> int:
        i, j = idx
        # No negative wrap-around: an out-of-range index is a caller bug
        if not (0 <= i < self.n_a and 0 <= j < self.n_b):
            raise IndexError(f"Cell ({i}, {j}) outside score matrix of shape {self.shape}")
        return int(self.scores[i, j])

    def row(self, i: int) -> list[int]:
        return [int(s) for s in self.scores[i]]

    def to_lists(self) -> list[list[int]]:
        return self.scores.tolist()

    def nonzero_pairs(self) -> Iterator[tuple[int, int, int]]:
        """Yield (i, j, score) for every cell with score > 0, row-major."""
        rows, cols = np.nonzero(self.scores)
        for i, j in zip(rows, cols):
            yield int(i), int(j), int(self.scores[i, j])

    def transpose(self) -> ScoreMatrix:
        """The same scores seen from B's side."""
        scores = np.ascontiguousarray(self.scores.T)
        scores.setflags(write=False)
        return ScoreMatrix(self.names_b, self.names_a, scores, self.build_time_ms)


def partition_rows(n_rows: int, worker_count: int) -> list[range]:
    """Split range(n_rows) into disjoint contiguous slices, one per worker.

    Every slice holds ceil(n_rows / worker_count) rows except possibly the
    last; empty slices are dropped, so fewer than worker_count slices come
    back when n_rows < worker_count.
    """
    if worker_count < 1:
        raise InvalidInputError(f"worker_count must be >= 1, got {worker_count}")
    if n_rows <= 0:
        return []
    per_worker = -(-n_rows // worker_count)  # ceil
    slices = []
    for w in range(worker_count):
        start = w * per_worker
        end = min(start + per_worker, n_rows)
        if start < end:
            slices.append(range(start, end))
    return slices


def _allocate(n_a: int, n_b: int) -> np.ndarray:
    try:
        return np.zeros((n_a, n_b), dtype=SCORE_DTYPE)
    except (MemoryError, ValueError) as exc:
        raise AllocationFailureError(n_a, n_b) from exc


class ScoreMatrixBuilder:
    """Parallel builder for the full A × B score matrix.

    Args:
        scorer: Pairwise scorer. Defaults to AttributeScorer() (pairs policy).
        worker_count: Size of the worker pool. A fixed tunable, not taken
            from the CPU count, so partitioning is the same on every machine.
    """

    def __init__(
        self,
        scorer: AttributeScorer | None = None,
        worker_count: int = DEFAULT_WORKER_COUNT,
    ) -> None:
        if worker_count < 1:
            raise InvalidInputError(f"worker_count must be >= 1, got {worker_count}")
        self.scorer = scorer or AttributeScorer()
        self.worker_count = worker_count
        self.total_builds: int = 0
        self.total_build_time_ms: float = 0.0

    def build(self, dataset_a: Dataset | None, dataset_b: Dataset | None) -> ScoreMatrix:
        """Score every row of A against every row of B.

        Returns:
            ScoreMatrix of shape (len(dataset_a), len(dataset_b)).

        Raises:
            InvalidInputError: if a dataset is missing or has a nameless row.
            AllocationFailureError: if the matrix cannot be allocated.
            ScoringError: if any worker fails. No matrix is returned then.
        """
        t0 = time.perf_counter()
        dataset_a = require_dataset(dataset_a, "A")
        dataset_b = require_dataset(dataset_b, "B")
        n_a, n_b = len(dataset_a), len(dataset_b)

        scores = _allocate(n_a, n_b)
        slices = partition_rows(n_a, self.worker_count)

        if slices and n_b:
            self._run_workers(dataset_a, dataset_b, scores, slices)

        scores.setflags(write=False)
        ms = (time.perf_counter() - t0) * 1e3
        self.total_builds += 1
        self.total_build_time_ms += ms
        logger.info(
            "Built %dx%d score matrix with %d worker(s) in %.2f ms", n_a, n_b, len(slices), ms
        )
        return ScoreMatrix(tuple(dataset_a.names), tuple(dataset_b.names), scores, ms)

    # ── Internal implementation ───────────────────────────────────────────────

    def _run_workers(
        self,
        dataset_a: Dataset,
        dataset_b: Dataset,
        scores: np.ndarray,
        slices: list[range],
    ) -> None:
        abort = threading.Event()

        # Leaving the with-block joins every worker
        with ThreadPoolExecutor(
            max_workers=len(slices), thread_name_prefix="score-worker"
        ) as pool:
            futures = [
                pool.submit(self._score_slice, w, rows, dataset_a, dataset_b, scores, abort)
                for w, rows in enumerate(slices)
            ]

        failures = [f.exception() for f in futures if f.exception() is not None]
        if failures:
            first = failures[0]
            if isinstance(first, ScoringError):
                raise ScoringError(f"Score matrix build aborted: {first}") from first
            raise ScoringError(
                f"Score matrix build aborted: worker failed with {type(first).__name__}: {first}"
            ) from first

    def _score_slice(
        self,
        worker: int,
        rows: range,
        dataset_a: Dataset,
        dataset_b: Dataset,
        scores: np.ndarray,
        abort: threading.Event,
    ) -> None:
        """Fill rows[start:end] of the matrix. Runs on a pool thread."""
        logger.debug("Worker %d: rows %d..%d", worker, rows.start, rows.stop - 1)
        score = self.scorer.score
        row_b = dataset_b.rows
        try:
            for i in rows:
                if abort.is_set():
                    return
                row_a = dataset_a.rows[i]
                out = scores[i]
                for j, b in enumerate(row_b):
                    out[j] = score(row_a, b)
        except Exception:
            abort.set()
            raise


def build_score_matrix(
    dataset_a: Dataset,
    dataset_b: Dataset,
    scorer: AttributeScorer | None = None,
    worker_count: int = DEFAULT_WORKER_COUNT,
) -> ScoreMatrix:
    """Convenience wrapper: ScoreMatrixBuilder(scorer, worker_count).build(a, b)."""
    return ScoreMatrixBuilder(scorer, worker_count).build(dataset_a, dataset_b)
