"""
Datasets: rows, configuration and CSV ingestion.

Quick start:
    from src.datasets import load_dataset, load_config
    mentees = load_dataset("data/mentees.csv", label="mentees")
"""

from src.datasets.config import (
    MatchingConfig,
    ScoringConfig,
    AssignmentConfig,
    OutputConfig,
    CategoryConfig,
    load_config,
)
from src.datasets.records import Row, Dataset
from src.datasets.loader import load_dataset, parse_rows, split_field

__all__ = [
    "MatchingConfig",
    "ScoringConfig",
    "AssignmentConfig",
    "OutputConfig",
    "CategoryConfig",
    "load_config",
    "Row",
    "Dataset",
    "load_dataset",
    "parse_rows",
    "split_field",
]
