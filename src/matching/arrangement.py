"""
Arrangement log: an audit trail of the greedy assignment.

One entry per processed A-row, holding a copy of the full assignment vector
at that point and the score of the decision just made (or the running total
when ``cumulative=True``). Recording never influences the assignment.

Text form, one line per entry:

    0: [1 - -] score=3
    1: [1 0 -] score=2
"""

from __future__ import annotations

from dataclasses import dataclass

UNASSIGNED_TOKEN = "-"


@dataclass(frozen=True)
class ArrangementEntry:
    """Snapshot taken right after row ``row_index`` was decided."""

    row_index: int
    assignment: tuple[int | None, ...]
    score: int

    def to_line(self) -> str:
        cells = " ".join(UNASSIGNED_TOKEN if t is None else str(t) for t in self.assignment)
        return f"{self.row_index}: [{cells}] score={self.score}"


class ArrangementRecorder:
    """Append-only recorder of assignment snapshots.

    Args:
        cumulative: Record the running total score instead of the score of
            each individual decision.
    """

    def __init__(self, cumulative: bool = False) -> None:
        self.cumulative = cumulative
        self._entries: list[ArrangementEntry] = []
        self._running_total = 0

    def record(self, row_index: int, current_assignment: list[int | None], score: int) -> None:
        """Append a snapshot. ``current_assignment`` is copied, never kept."""
        self._running_total += score
        value = self._running_total if self.cumulative else score
        self._entries.append(ArrangementEntry(row_index, tuple(current_assignment), value))

    @property
    def entries(self) -> tuple[ArrangementEntry, ...]:
        return tuple(self._entries)

    def lines(self) -> list[str]:
        return [e.to_line() for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
