from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

"""Parse-phase models: ParsedRow and ParseResult.

ParsedRow.row_number is the physical spreadsheet row (data starts on row 4),
so messages and the error file point to the row the user actually sees.
"""

__all__ = [
    "CellValue",
    "ParsedRow",
    "ParseResult",
]

CellValue = Union[str, int, float, None]


@dataclass
class ParsedRow:
    """One non-blank data row after column mapping.

    The parser creates it; the reconciliation phase may only append errors.
    """
    row_number: int  # 1-based physical row
    data: dict[str, CellValue]  # Column key (header without " *") -> cell value
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add_error(self, message: str) -> None:
        if message not in self.errors:
            self.errors.append(message)

    def error_text(self) -> str:
        return "; ".join(self.errors)


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of one parse pass. Build through from_rows() / unreadable()."""
    success: bool
    rows: list[ParsedRow]
    total_rows: int
    valid_rows: int
    error_rows: int
    headers: list[str]

    @classmethod
    def from_rows(cls, rows: list[ParsedRow], headers: list[str]) -> ParseResult:
        error_rows = sum(1 for r in rows if r.has_errors)
        return cls(
            success=error_rows == 0,
            rows=rows,
            total_rows=len(rows),
            valid_rows=len(rows) - error_rows,
            error_rows=error_rows,
            headers=headers,
        )

    @classmethod
    def unreadable(cls) -> ParseResult:
        """Degenerate result for an upload with no usable sheet."""
        return cls(success=False, rows=[], total_rows=0, valid_rows=0, error_rows=0, headers=[])

    def failing_rows(self) -> list[ParsedRow]:
        return [r for r in self.rows if r.has_errors]
