"""
Result serialization to delimited text.

    write_score_pairs()     unconstrained mode: every (A, B) pair with score > 0
    write_assignment()      capacity mode: one line per A-row
    write_arrangements()    arrangement log, one line per processed A-row
    write_popularity()      panel popularity ranking
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from src.matching.arrangement import ArrangementRecorder
from src.matching.assigner import AssignmentResult
from src.matching.score_matrix import ScoreMatrix
from src.reporting.popularity import PanelPopularity
from src.utils.logger import get_logger

logger = get_logger("matching.writer")


def _open(path: str | Path):
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, "w", encoding="utf-8", newline="")


def write_score_pairs(
    path: str | Path,
    matrix: ScoreMatrix,
    label_a: str = "Name",
    label_b: str = "Name",
) -> int:
    """Write every pair with a positive score. Returns the number of lines written."""
    n = 0
    with _open(path) as f:
        w = csv.writer(f, lineterminator="\n")
        w.writerow([label_a, label_b, "Score"])
        for i, j, score in matrix.nonzero_pairs():
            w.writerow([matrix.names_a[i], matrix.names_b[j], score])
            n += 1
    logger.info("Wrote %d scored pairs to %s", n, path)
    return n


def write_assignment(
    path: str | Path,
    result: AssignmentResult,
    label_a: str = "Name",
    label_b: str = "Name",
) -> int:
    """Write one line per A-row. Unassigned rows get an empty B name and score 0."""
    with _open(path) as f:
        w = csv.writer(f, lineterminator="\n")
        w.writerow([label_a, label_b, "Score"])
        for i, target in enumerate(result.targets):
            if target is None:
                w.writerow([result.names_a[i], "", 0])
            else:
                w.writerow([result.names_a[i], result.names_b[target], result.scores[i]])
    logger.info(
        "Wrote %d assignments (%d unassigned) to %s",
        len(result),
        len(result.unassigned),
        path,
    )
    return len(result)


def write_arrangements(path: str | Path, recorder: ArrangementRecorder | Iterable[str]) -> int:
    """Write the arrangement log as plain text."""
    lines = recorder.lines() if isinstance(recorder, ArrangementRecorder) else list(recorder)
    with _open(path) as f:
        for line in lines:
            f.write(line + "\n")
    logger.info("Wrote %d arrangement entries to %s", len(lines), path)
    return len(lines)


def write_popularity(
    path: str | Path,
    ranking: list[PanelPopularity],
    label_b: str = "Panel",
) -> int:
    with _open(path) as f:
        w = csv.writer(f, lineterminator="\n")
        w.writerow([label_b, "Interested", "Total Score"])
        for p in ranking:
            w.writerow([p.name, p.interested, p.total_score])
    logger.info("Wrote popularity of %d %s rows to %s", len(ranking), label_b.lower(), path)
    return len(ranking)
