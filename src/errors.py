"""
Error taxonomy for the matching engine.

InvalidInputError and AllocationFailureError abort a whole matching run.
A B-row without capacity, or an A-row with no eligible B-row, is NOT an
error: the assigner reports it as "unassigned".
"""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for every error raised by the matching engine."""


class InvalidInputError(MatchingError, ValueError):
    """Absent dataset, nameless row, malformed CSV or inconsistent shapes."""


class AllocationFailureError(MatchingError, MemoryError):
    """The score matrix or capacity ledger could not be allocated."""

    def __init__(self, n_rows: int, n_cols: int, what: str = "score matrix") -> None:
        super().__init__(f"Could not allocate {what} of size {n_rows} x {n_cols}")
        self.n_rows = n_rows
        self.n_cols = n_cols


class ScoringError(MatchingError):
    """A malformed row reached the scorer, or a scoring worker failed.

    Kept distinct from a genuine zero-overlap score of 0.
    """
