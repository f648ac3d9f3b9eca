"""
CSV ingestion.

Turns a delimited file into a Dataset:

    name,interests,capacity
    Alice,Math|Physics,2
    Bob,Science,

The first column is the row name. A column headed ``capacity`` holds the
optional capacity; every other column is split on ``|`` into attributes.
"""

from __future__ import annotations

import csv
from pathlib import Path

from src.datasets.records import Dataset, Row
from src.errors import InvalidInputError
from src.utils.logger import get_logger

FIELD_SEPARATOR = "|"
CAPACITY_HEADER = "capacity"

logger = get_logger("matching.loader")


def split_field(value: str, separator: str = FIELD_SEPARATOR) -> list[str]:
    """Split a multi-value field, trimming tokens and dropping empty ones."""
    return [tok.strip() for tok in value.split(separator) if tok.strip()]


def _parse_capacity(raw: str, source: str, line_no: int) -> int | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        capacity = int(raw)
    except ValueError as exc:
        raise InvalidInputError(f"{source}:{line_no}: capacity {raw!r} is not an integer") from exc
    if capacity < 0:
        raise InvalidInputError(f"{source}:{line_no}: capacity {capacity} is negative")
    return capacity


def parse_rows(lines: list[list[str]], source: str = "<memory>", label: str = "rows") -> Dataset:
    """Build a Dataset from already-split CSV lines (header included).

    Args:
        lines: CSV records; the first one is the header.
        source: Name used in error messages.
        label: Dataset label, e.g. "mentees".

    Returns:
        Dataset with one Row per non-blank record.

    Raises:
        InvalidInputError: on a missing header, a blank name or a bad capacity.
    """
    if not lines:
        raise InvalidInputError(f"{source}: file is empty (a header row is required)")

    header = [h.strip().lower() for h in lines[0]]
    capacity_col = next(
        (col for col, h in enumerate(header) if col > 0 and h == CAPACITY_HEADER), None
    )

    rows: list[Row] = []
    for line_no, record in enumerate(lines[1:], start=2):
        if not record or all(not cell.strip() for cell in record):
            continue

        name = record[0].strip()
        if not name:
            raise InvalidInputError(f"{source}:{line_no}: row has no name")

        attributes: list[str] = []
        capacity: int | None = None
        for col, cell in enumerate(record[1:], start=1):
            if col == capacity_col:
                capacity = _parse_capacity(cell, source, line_no)
            else:
                attributes.extend(split_field(cell))

        rows.append(Row(name=name, attributes=tuple(attributes), capacity=capacity))
        logger.debug("%s:%d %s has %d attributes", source, line_no, name, len(attributes))

    return Dataset(rows=tuple(rows), label=label)


def load_dataset(path: str | Path, label: str | None = None) -> Dataset:
    """Parse a CSV file into a Dataset.

    Raises:
        InvalidInputError: if the file is missing or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise InvalidInputError(f"Input file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        lines = list(csv.reader(f))

    dataset = parse_rows(lines, source=str(path), label=label or path.stem)
    logger.info("Parsed %d rows from %s", len(dataset), path)
    return dataset
