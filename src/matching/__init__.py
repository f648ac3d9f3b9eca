"""
Matching engine: parallel attribute-overlap scoring and greedy capacity assignment.

The assigner is a single-pass greedy heuristic, not an optimal solver.

Quick start:
    from src.matching import ScoreMatrixBuilder, CapacityAssigner
    matrix = ScoreMatrixBuilder(worker_count=4).build(mentees, mentors)
    result = CapacityAssigner().assign(mentees, mentors, matrix)
"""

from src.matching.scorer import AttributeScorer, DuplicatePolicy
from src.matching.score_matrix import (
    ScoreMatrix,
    ScoreMatrixBuilder,
    build_score_matrix,
    partition_rows,
)
from src.matching.arrangement import ArrangementEntry, ArrangementRecorder
from src.matching.assigner import (
    AssignmentResult,
    AssignmentStatus,
    CapacityAssigner,
    CapacityLedger,
)

__all__ = [
    "AttributeScorer",
    "DuplicatePolicy",
    "ScoreMatrix",
    "ScoreMatrixBuilder",
    "build_score_matrix",
    "partition_rows",
    "ArrangementEntry",
    "ArrangementRecorder",
    "AssignmentResult",
    "AssignmentStatus",
    "CapacityAssigner",
    "CapacityLedger",
]
