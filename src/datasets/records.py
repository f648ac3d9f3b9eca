"""
Row and Dataset: the in-memory form of one side of a match.

Rows are immutable once built. The scorer and the assigner only read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from src.errors import InvalidInputError


@dataclass(frozen=True)
class Row:
    """One named entity with its categorical attributes.

    Attributes:
        name: Identity of the row. Must be non-empty for valid input.
        attributes: Ordered attribute strings. Duplicates are kept; the
            scorer's duplicate policy decides how they count.
        capacity: Number of A-rows this row can host in capacity mode.
            None means the input had no capacity value, which is not the
            same thing as an explicit 0.
    """

    name: str
    attributes: tuple[str, ...] = ()
    capacity: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.attributes, (str, bytes)):
            raise InvalidInputError(
                f"Row {self.name!r}: attributes must be a sequence of strings, not a bare string"
            )
        # Accept any iterable (lists from JSON / CSV) but store a tuple
        attrs = () if self.attributes is None else tuple(self.attributes)
        object.__setattr__(self, "attributes", attrs)


@dataclass(frozen=True)
class Dataset:
    """Ordered collection of rows from one side of a match."""

    rows: tuple[Row, ...] = field(default_factory=tuple)
    label: str = "rows"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))

    @classmethod
    def from_records(
        cls,
        records: Iterable[tuple[str, Iterable[str]] | tuple[str, Iterable[str], int | None]],
        label: str = "rows",
    ) -> Dataset:
        """Build a dataset from ``(name, attributes[, capacity])`` tuples."""
        rows = []
        for rec in records:
            name, attrs, *rest = rec
            capacity = rest[0] if rest else None
            rows.append(Row(name=name, attributes=attrs, capacity=capacity))
        return cls(rows=tuple(rows), label=label)

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.rows]

    def validate(self) -> None:
        """Raise InvalidInputError if any entry is not a Row or has no name."""
        for idx, row in enumerate(self.rows):
            if not isinstance(row, Row):
                raise InvalidInputError(f"{self.label}: row {idx} is not a Row")
            if not isinstance(row.name, str) or not row.name.strip():
                raise InvalidInputError(f"{self.label}: row {idx} has no name")

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __getitem__(self, idx: int) -> Row:
        return self.rows[idx]


def require_dataset(dataset: Dataset | None, side: str) -> Dataset:
    """Check a dataset handed to the builder or assigner is present and valid."""
    if dataset is None:
        raise InvalidInputError(f"Dataset {side} is missing")
    dataset.validate()
    return dataset
