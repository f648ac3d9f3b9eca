"""
Greedy capacity-constrained assignment.

Single pass over the rows of A in index order. Row i takes the available
B-row with the highest score (lowest cost = -score); ties go to the smallest
B index because the scan only replaces the current best on strict
improvement. The chosen B-row's remaining capacity drops by one. Rows that
find nothing with capacity left stay unassigned, which is a normal outcome.

Known limitation
────────────────
This is a greedy heuristic, NOT an optimal assignment. An earlier row can take
the last slot of a B-row that a later row needed far more:

    A = [x: {Art, Math}, y: {Art}]      B = [p: {Art}, cap 1]  [q: {Math}, cap 1]
    greedy:  x→p (1, tie with q, smallest index wins), y→q (0)   total 1
    optimal: x→q (1), y→p (1)                                   total 2

`src.matching.benchmark` measures the gap against an optimal yardstick.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto

from src.datasets.config import AssignmentConfig
from src.datasets.records import Dataset, require_dataset
from src.errors import AllocationFailureError, InvalidInputError
from src.matching.arrangement import ArrangementRecorder
from src.matching.score_matrix import ScoreMatrix
from src.utils.logger import get_logger

logger = get_logger("matching.assigner")


class AssignmentStatus(Enum):
    """Outcome of one assignment run."""

    COMPLETE = auto()  # every A-row got a B-row
    PARTIAL = auto()  # some A-rows are unassigned (capacity ran out / zero score refused)
    EMPTY = auto()  # dataset A had no rows


@dataclass
class AssignmentResult:
    """Per-A-row assignment produced by one CapacityAssigner.assign() call.

    Attributes:
        targets: B index chosen for each A index, None when unassigned.
            Always the same length as dataset A.
        scores: Score of the chosen cell per A index, None when unassigned.
        status: COMPLETE, PARTIAL or EMPTY.
        solve_time_ms: Wall-clock time of the assignment pass.
    """

    targets: list[int | None]
    scores: list[int | None]
    status: AssignmentStatus
    solve_time_ms: float = 0.0
    names_a: tuple[str, ...] = field(default_factory=tuple)
    names_b: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_score(self) -> int:
        return sum(s for s in self.scores if s is not None)

    @property
    def unassigned(self) -> list[int]:
        return [i for i, t in enumerate(self.targets) if t is None]

    def pairs(self) -> list[tuple[int, int]]:
        """(a_index, b_index) for every assigned A-row."""
        return [(i, t) for i, t in enumerate(self.targets) if t is not None]

    def load(self, b_index: int) -> int:
        """How many A-rows were assigned to B-row ``b_index``."""
        return sum(1 for t in self.targets if t == b_index)

    def __len__(self) -> int:
        return len(self.targets)


class CapacityLedger:
    """Remaining slots per B index for one assignment run.

    None means unlimited. Slots are only ever taken, never given back.
    """

    def __init__(self, capacities: list[int | None]) -> None:
        self._remaining: list[int | None] = [
            None if c is None else max(int(c), 0) for c in capacities
        ]

    @classmethod
    def for_dataset(cls, dataset_b: Dataset, default_capacity: int | None = None) -> CapacityLedger:
        try:
            return cls(
                [row.capacity if row.capacity is not None else default_capacity for row in dataset_b]
            )
        except MemoryError as exc:
            raise AllocationFailureError(len(dataset_b), 1, what="capacity ledger") from exc

    def available(self, j: int) -> bool:
        remaining = self._remaining[j]
        return remaining is None or remaining > 0

    def take(self, j: int) -> None:
        """Consume one slot of B-row j."""
        remaining = self._remaining[j]
        if remaining is None:
            return
        if remaining <= 0:
            raise InvalidInputError(f"B-row {j} has no capacity left")
        self._remaining[j] = remaining - 1

    def remaining(self, j: int) -> int | None:
        return self._remaining[j]

    def __len__(self) -> int:
        return len(self._remaining)


class CapacityAssigner:
    """Greedy one-to-many assigner over a precomputed score matrix.

    Single-threaded: the ledger is owned by one assign() call at a time.

    Args:
        config: Default capacity and zero-score behaviour.
        recorder: Optional arrangement recorder. Pass a fresh one per run.
    """

    def __init__(
        self,
        config: AssignmentConfig | None = None,
        recorder: ArrangementRecorder | None = None,
    ) -> None:
        self.config = config or AssignmentConfig()
        self.recorder = recorder
        self.total_solves: int = 0
        self.total_solve_time_ms: float = 0.0

    def assign(
        self,
        dataset_a: Dataset | None,
        dataset_b: Dataset | None,
        score_matrix: ScoreMatrix,
    ) -> AssignmentResult:
        """Assign every A-row to its best available B-row.

        Raises:
            InvalidInputError: if a dataset is missing, has a nameless row,
                or does not match the score matrix shape.
        """
        t0 = time.perf_counter()
        dataset_a = require_dataset(dataset_a, "A")
        dataset_b = require_dataset(dataset_b, "B")
        n_a, n_b = len(dataset_a), len(dataset_b)
        if score_matrix is None or score_matrix.shape != (n_a, n_b):
            shape = None if score_matrix is None else score_matrix.shape
            raise InvalidInputError(f"Score matrix shape {shape} does not match datasets ({n_a}, {n_b})")

        ledger = CapacityLedger.for_dataset(dataset_b, self.config.default_capacity)
        targets: list[int | None] = [None] * n_a
        chosen: list[int | None] = [None] * n_a
        scores = score_matrix.scores

        for i in range(n_a):
            best_j, best_score = self._best_available(scores[i], ledger, n_b)

            if best_j is not None and (best_score > 0 or self.config.allow_zero_score):
                targets[i] = best_j
                chosen[i] = best_score
                ledger.take(best_j)
                decision = best_score
            else:
                decision = 0

            if self.recorder is not None:
                self.recorder.record(i, targets, decision)

        ms = (time.perf_counter() - t0) * 1e3
        self.total_solves += 1
        self.total_solve_time_ms += ms

        if n_a == 0:
            status = AssignmentStatus.EMPTY
        elif any(t is None for t in targets):
            status = AssignmentStatus.PARTIAL
        else:
            status = AssignmentStatus.COMPLETE

        result = AssignmentResult(
            targets=targets,
            scores=chosen,
            status=status,
            solve_time_ms=ms,
            names_a=tuple(dataset_a.names),
            names_b=tuple(dataset_b.names),
        )
        logger.info(
            "Assigned %d/%d rows (total score %d) in %.2f ms",
            n_a - len(result.unassigned),
            n_a,
            result.total_score,
            ms,
        )
        return result

    @staticmethod
    def _best_available(row_scores, ledger: CapacityLedger, n_b: int) -> tuple[int | None, int]:
        """Smallest j with the highest score among B-rows that still have capacity."""
        best_j, best_score = None, -1
        for j in range(n_b):
            if not ledger.available(j):
                continue
            s = int(row_scores[j])
            if s > best_score:
                best_j, best_score = j, s
        return best_j, best_score
