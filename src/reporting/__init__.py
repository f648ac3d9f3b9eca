from src.reporting.popularity import PanelPopularity, analyze_panel_popularity
from src.reporting.writer import (
    write_arrangements,
    write_assignment,
    write_popularity,
    write_score_pairs,
)

__all__ = [
    "PanelPopularity",
    "analyze_panel_popularity",
    "write_arrangements",
    "write_assignment",
    "write_popularity",
    "write_score_pairs",
]
