from __future__ import annotations

from dataclasses import dataclass, field

from .parse_result import CellValue, ParsedRow

"""Reconcile-phase models: ImportRowError and ImportResult.

Invariant: created + updated + failed == number of rows handed to reconcile().
"""

__all__ = [
    "ImportResult",
    "ImportRowError",
]


@dataclass(frozen=True)
class ImportRowError:
    row_number: int
    data: dict[str, CellValue]  # Snapshot of ParsedRow.data at failure time
    error: str


@dataclass
class ImportResult:
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.failed

    def record_created(self) -> None:
        self.created += 1

    def record_updated(self) -> None:
        self.updated += 1

    def record_failure(self, row: ParsedRow, message: str) -> None:
        self.failed += 1
        self.errors.append(ImportRowError(row_number=row.row_number, data=dict(row.data), error=message))

    def error_pairs(self) -> list[tuple[int, str]]:
        """(row_number, error) pairs in the shape generate_error_file() merges."""
        return [(e.row_number, e.error) for e in self.errors]
