"""
Category dispatch: datasets in, scores (and assignment) out.

    participant_panel   unconstrained → ScoreMatrix + panel popularity
    mentee_mentor       capacity mode → ScoreMatrix + greedy Assignment + arrangement log
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.datasets.config import CategoryConfig, MatchingConfig
from src.datasets.records import Dataset
from src.matching.arrangement import ArrangementRecorder
from src.matching.assigner import AssignmentResult, CapacityAssigner
from src.matching.score_matrix import ScoreMatrix, ScoreMatrixBuilder
from src.matching.scorer import AttributeScorer
from src.reporting.popularity import PanelPopularity, analyze_panel_popularity


@dataclass
class MatchOutcome:
    """Everything one matching run produced."""

    category: CategoryConfig
    matrix: ScoreMatrix
    assignment: AssignmentResult | None = None
    arrangements: ArrangementRecorder | None = None
    popularity: list[PanelPopularity] = field(default_factory=list)


def build_builder(config: MatchingConfig, worker_count: int | None = None) -> ScoreMatrixBuilder:
    """ScoreMatrixBuilder configured from ``config.scoring``."""
    return ScoreMatrixBuilder(
        AttributeScorer(config.scoring.duplicate_policy),
        worker_count if worker_count is not None else config.scoring.worker_count,
    )


def run_matching(
    category: str,
    dataset_a: Dataset,
    dataset_b: Dataset,
    config: MatchingConfig | None = None,
    worker_count: int | None = None,
) -> MatchOutcome:
    """Run the matching flow selected by ``category``.

    Raises:
        KeyError: unknown category.
        InvalidInputError / AllocationFailureError / ScoringError: from the engine.
    """
    config = config or MatchingConfig()
    cat = config.category(category)

    matrix = build_builder(config, worker_count).build(dataset_a, dataset_b)

    if not cat.capacity_mode:
        return MatchOutcome(cat, matrix, popularity=analyze_panel_popularity(matrix))

    recorder = (
        ArrangementRecorder(cumulative=config.assignment.cumulative_score)
        if config.assignment.record_arrangements
        else None
    )
    assigner = CapacityAssigner(config.assignment, recorder)
    assignment = assigner.assign(dataset_a, dataset_b, matrix)
    return MatchOutcome(cat, matrix, assignment=assignment, arrangements=recorder)
