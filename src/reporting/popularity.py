"""
Panel popularity: how many A-rows share at least one attribute with each B-row.

Used in unconstrained mode to show which panels / initiatives attract the
most interest.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from src.matching.score_matrix import ScoreMatrix


@dataclass(frozen=True)
class PanelPopularity:
    """Interest summary for one B-row."""

    b_index: int
    name: str
    interested: int  # A-rows with score > 0
    total_score: int


def analyze_panel_popularity(matrix: ScoreMatrix) -> list[PanelPopularity]:
    """Rank B-rows by interest.

    Sorted by interested count (desc), then total score (desc), then B index.
    """
    if matrix.n_b == 0:
        return []
    if matrix.n_a == 0:
        interested = np.zeros(matrix.n_b, dtype=np.int64)
        totals = np.zeros(matrix.n_b, dtype=np.int64)
    else:
        interested = (matrix.scores > 0).sum(axis=0)
        totals = matrix.scores.sum(axis=0)

    ranked = [
        PanelPopularity(j, matrix.names_b[j], int(interested[j]), int(totals[j]))
        for j in range(matrix.n_b)
    ]
    ranked.sort(key=lambda p: (-p.interested, -p.total_score, p.b_index))
    return ranked
