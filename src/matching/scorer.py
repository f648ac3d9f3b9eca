"""
Attribute-overlap scoring between two rows.

The score is the unit the score-matrix builder parallelises over, so it is a
pure function of its two inputs: no hidden state, no I/O.

Duplicate policies
──────────────────
  pairs   one match per (attribute-in-A, attribute-in-B) pair that is
          string-equal: Σ countA(x) · countB(x).   ["Art", "Art"] vs ["Art"] → 2
  set     size of the set intersection.            ["Art", "Art"] vs ["Art"] → 1

Both are symmetric in their arguments.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import TYPE_CHECKING

from src.errors import ScoringError

if TYPE_CHECKING:
    from src.datasets.records import Row


class DuplicatePolicy(str, Enum):
    """How repeated attributes inside one row are counted."""

    PAIRS = "pairs"
    SET = "set"


def _attributes_of(row: Row) -> tuple[str, ...]:
    """Extract and check a row's attributes. None / empty → ()."""
    try:
        attrs = row.attributes
    except AttributeError as exc:
        raise ScoringError(f"Malformed row {row!r}: no attributes") from exc
    if attrs is None:
        return ()
    for attr in attrs:
        if not isinstance(attr, str):
            name = getattr(row, "name", "?")
            raise ScoringError(f"Row {name!r} has a non-string attribute {attr!r}")
    return tuple(attrs)


class AttributeScorer:
    """Counts categorical attribute overlap between two rows.

    Args:
        policy: Duplicate handling, "pairs" (default) or "set".
    """

    def __init__(self, policy: DuplicatePolicy | str = DuplicatePolicy.PAIRS) -> None:
        self.policy = DuplicatePolicy(policy)

    def score(self, row_a: Row, row_b: Row) -> int:
        """Overlap score between two rows, always >= 0.

        Raises:
            ScoringError: if either row is malformed.
        """
        attrs_a = _attributes_of(row_a)
        attrs_b = _attributes_of(row_b)
        if not attrs_a or not attrs_b:
            return 0

        if self.policy is DuplicatePolicy.SET:
            return len(set(attrs_a) & set(attrs_b))

        counts_b = Counter(attrs_b)
        return sum(counts_b[attr] for attr in attrs_a)

    __call__ = score

    def __repr__(self) -> str:
        return f"AttributeScorer(policy={self.policy.value!r})"
