"""
Matching configuration dataclasses and YAML loader.

All tunables live here as typed, frozen dataclasses.
Load from YAML with `load_config()` or construct directly for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

DEFAULT_WORKER_COUNT = 4


@dataclass(frozen=True)
class ScoringConfig:
    """Attribute scoring and score-matrix building."""

    duplicate_policy: Literal["pairs", "set"] = "pairs"  # pairs = one match per equal pair
    worker_count: int = DEFAULT_WORKER_COUNT  # fixed, never derived from hardware


@dataclass(frozen=True)
class AssignmentConfig:
    """Greedy capacity-constrained assignment."""

    default_capacity: int | None = None  # applied to rows without capacity; None = unlimited
    allow_zero_score: bool = True  # False leaves zero-overlap rows unassigned
    record_arrangements: bool = True
    cumulative_score: bool = False  # arrangement log holds running total instead of decision score


@dataclass(frozen=True)
class OutputConfig:
    """Where results are written."""

    output_path: str = "output.csv"
    arrangements_path: str = "arrangements.txt"
    popularity_path: str = "panel_popularity.csv"


@dataclass(frozen=True)
class CategoryConfig:
    """One matching category selectable from the command line."""

    name: str
    label_a: str
    label_b: str
    capacity_mode: bool


def _default_categories() -> dict[str, CategoryConfig]:
    return {
        "mentee_mentor": CategoryConfig("mentee_mentor", "Mentee", "Mentor", capacity_mode=True),
        "participant_panel": CategoryConfig(
            "participant_panel", "Participant", "Panel", capacity_mode=False
        ),
    }


@dataclass(frozen=True)
class MatchingConfig:
    """Top-level configuration aggregating all sub-configs."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    assignment: AssignmentConfig = field(default_factory=AssignmentConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    categories: dict[str, CategoryConfig] = field(default_factory=_default_categories)

    def category(self, name: str) -> CategoryConfig:
        """Look up a category by name.

        Raises:
            KeyError: if the category is not configured.
        """
        if name not in self.categories:
            valid = ", ".join(sorted(self.categories))
            raise KeyError(f"Unknown category {name!r}. Valid options: {valid}")
        return self.categories[name]


def load_config(path: str | Path) -> MatchingConfig:
    """Load a MatchingConfig from a YAML file.

    Args:
        path: Path to a YAML config file.

    Returns:
        Fully constructed MatchingConfig. Sections missing from the file
        keep their defaults.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    categories = _default_categories()
    for name, body in (raw.get("categories") or {}).items():
        categories[name] = CategoryConfig(name=name, **body)

    return MatchingConfig(
        scoring=ScoringConfig(**raw.get("scoring", {})),
        assignment=AssignmentConfig(**raw.get("assignment", {})),
        output=OutputConfig(**raw.get("output", {})),
        categories=categories,
    )
