"""
Match result visualization.

Renders:
- The score matrix as a heatmap (A rows × B columns)
- Panel popularity as a horizontal bar chart
- Per-B-row load against capacity after a greedy assignment

Usage:
    from src.matching import ScoreMatrixBuilder
    from src.analysis.visualizations import plot_score_matrix

    matrix = ScoreMatrixBuilder().build(participants, panels)
    fig = plot_score_matrix(matrix)
    fig.savefig("scores.png", dpi=150, bbox_inches="tight")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

from src.datasets.records import Dataset
from src.matching.assigner import AssignmentResult
from src.matching.score_matrix import ScoreMatrix
from src.reporting.popularity import PanelPopularity

if TYPE_CHECKING:
    from matplotlib.figure import Figure


# ── Styling constants ────────────────────────────────────────────

HEATMAP_CMAP = "Blues"
POPULARITY_COLOR = "#6baed6"
LOAD_COLOR = "#e6550d"
CAPACITY_COLOR = "#d9d9d9"
MAX_TICK_LABELS = 40  # beyond this, axis labels become unreadable


def plot_score_matrix(
    matrix: ScoreMatrix,
    title: str = "Compatibility Scores",
    annotate: bool | None = None,
) -> Figure:
    """Heatmap of the score matrix.

    Args:
        matrix: Scores to draw.
        title: Plot title.
        annotate: Write each score in its cell. Defaults to True for
            matrices up to 20 × 20.

    Returns:
        matplotlib Figure object.
    """
    n_a, n_b = matrix.shape
    if annotate is None:
        annotate = n_a <= 20 and n_b <= 20

    fig_w = min(18, max(6, n_b * 0.5 + 3))
    fig_h = min(18, max(4, n_a * 0.4 + 2))
    fig, ax = plt.subplots(1, 1, figsize=(fig_w, fig_h))

    data = matrix.scores if matrix.scores.size else np.zeros((max(n_a, 1), max(n_b, 1)))
    im = ax.imshow(data, cmap=HEATMAP_CMAP, aspect="auto", interpolation="nearest")
    fig.colorbar(im, ax=ax, label="Score")

    if n_b <= MAX_TICK_LABELS:
        ax.set_xticks(range(n_b))
        ax.set_xticklabels(matrix.names_b, rotation=60, ha="right", fontsize=8)
    if n_a <= MAX_TICK_LABELS:
        ax.set_yticks(range(n_a))
        ax.set_yticklabels(matrix.names_a, fontsize=8)

    if annotate and matrix.scores.size:
        vmax = max(int(matrix.scores.max()), 1)
        for i in range(n_a):
            for j in range(n_b):
                s = int(matrix.scores[i, j])
                ax.text(
                    j,
                    i,
                    str(s),
                    ha="center",
                    va="center",
                    fontsize=7,
                    color="white" if s > vmax / 2 else "black",
                )

    ax.set_title(title, fontsize=13, fontweight="bold")
    fig.tight_layout()
    return fig


def plot_panel_popularity(
    ranking: list[PanelPopularity],
    title: str = "Panel Popularity",
    top_n: int = 25,
) -> Figure:
    """Horizontal bar chart of interested A-rows per B-row, most popular on top."""
    shown = ranking[:top_n]
    fig, ax = plt.subplots(1, 1, figsize=(9, max(3, len(shown) * 0.35 + 1.5)))

    names = [p.name for p in shown][::-1]
    counts = [p.interested for p in shown][::-1]
    ax.barh(names, counts, color=POPULARITY_COLOR)
    for y, c in enumerate(counts):
        ax.text(c, y, f" {c}", va="center", fontsize=8)

    ax.set_xlabel("Interested")
    ax.set_title(title, fontsize=13, fontweight="bold")
    ax.spines[["top", "right"]].set_visible(False)
    fig.tight_layout()
    return fig


def plot_assignment_load(
    result: AssignmentResult,
    dataset_b: Dataset,
    title: str = "Assigned Load vs Capacity",
) -> Figure:
    """Per-B-row assigned count drawn over its capacity (unlimited rows show load only)."""
    n_b = len(dataset_b)
    loads = [result.load(j) for j in range(n_b)]
    caps = [row.capacity if row.capacity is not None else load for row, load in zip(dataset_b, loads)]

    fig, ax = plt.subplots(1, 1, figsize=(max(6, n_b * 0.45 + 2), 4.5))
    x = np.arange(n_b)
    ax.bar(x, caps, color=CAPACITY_COLOR, label="Capacity")
    ax.bar(x, loads, width=0.5, color=LOAD_COLOR, label="Assigned")

    if n_b <= MAX_TICK_LABELS:
        ax.set_xticks(x)
        ax.set_xticklabels(dataset_b.names, rotation=60, ha="right", fontsize=8)
    ax.set_ylabel("Rows")
    n_un = len(result.unassigned)
    ax.set_title(f"{title}  ({n_un} unassigned)", fontsize=13, fontweight="bold")
    ax.legend(loc="upper right", fontsize=8)
    ax.spines[["top", "right"]].set_visible(False)
    fig.tight_layout()
    return fig
