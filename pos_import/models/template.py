from __future__ import annotations

from dataclasses import dataclass

"""Spreadsheet template models.

A TemplateDefinition fixes the physical layout of an import workbook:
row 1 instruction banner, row 2 headers, row 3 descriptions, data from row 4.
Column order is significant; parsing binds cells to columns by position.
"""

__all__ = [
    "REQUIRED_MARKER",
    "TemplateColumn",
    "TemplateDefinition",
]

REQUIRED_MARKER = " *"


def strip_required_marker(header: str) -> str:
    return header.replace(REQUIRED_MARKER, "", 1).strip()


@dataclass(frozen=True)
class TemplateColumn:
    """One spreadsheet column.

    target_field None means the value is resolved through a lookup
    (category, supplier, location, price list) instead of copied to a field.
    """
    header: str  # Header as shown in the template, including " *" when required
    description: str  # Help text shown on row 3
    required: bool
    target_field: str | None = None

    @property
    def key(self) -> str:
        """Key of this column in ParsedRow.data (header without required marker)."""
        return strip_required_marker(self.header)


@dataclass(frozen=True)
class TemplateDefinition:
    sheet_name: str
    instruction: str
    columns: tuple[TemplateColumn, ...]

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.columns]
