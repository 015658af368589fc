from __future__ import annotations

import io
from collections.abc import Iterable

import pandas as pd
from openpyxl.utils import get_column_letter

from ..config.templates import ERROR_COLUMN_HEADER, get_template
from ..models.entity_type import EntityType
from ..models.parse_result import ParsedRow
from ..models.template import TemplateDefinition

"""Workbook writers: blank import template and corrective error file.

Both files keep the import layout (banner on row 1, headers on row 2,
descriptions on row 3, data from row 4) so a corrected error file can be
uploaded again as-is. The trailing "Errores" column is ignored on re-upload
because cells bind to template columns by position.
"""

__all__ = [
    "generate_error_file",
    "generate_template_file",
]

MIN_COLUMN_WIDTH = 20


def _write_sheet(sheet_name: str, grid: list[list[object]], widths: list[int], merge_banner: bool) -> bytes:
    out = io.BytesIO()
    df = pd.DataFrame(grid)
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        ws = writer.sheets[sheet_name]
        for idx, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width
        if merge_banner and len(widths) > 1:
            ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(widths))
    return out.getvalue()


def _column_widths(template: TemplateDefinition) -> list[int]:
    return [max(len(c.header), len(c.description), MIN_COLUMN_WIDTH) for c in template.columns]


def generate_template_file(entity_type: EntityType | str) -> bytes:
    """Blank upload template: banner, headers (with " *" markers), descriptions."""
    template = get_template(entity_type)
    n = len(template.columns)
    grid: list[list[object]] = [
        [template.instruction] + [None] * (n - 1),
        [c.header for c in template.columns],
        [c.description for c in template.columns],
    ]
    return _write_sheet(template.sheet_name, grid, _column_widths(template), merge_banner=True)


def merge_errors(rows: Iterable[ParsedRow], extra_errors: Iterable[tuple[int, str]]) -> None:
    """Append reconcile-time errors to the parsed rows they belong to."""
    by_number = {r.row_number: r for r in rows}
    for row_number, error in extra_errors:
        row = by_number.get(row_number)
        # parse-time failures come back as their own joined error text
        if row is not None and error != row.error_text():
            row.add_error(error)


def generate_error_file(
    rows: list[ParsedRow],
    entity_type: EntityType | str,
    extra_errors: Iterable[tuple[int, str]] | None = None,
) -> bytes:
    """Re-render only the failing rows, in template column order, plus an Errores column.

    extra_errors are (row_number, message) pairs from the reconcile phase; an
    exact message already on the row is not added twice. Rows without errors
    never reach the output.
    """
    template = get_template(entity_type)
    if extra_errors:
        merge_errors(rows, extra_errors)

    keys = template.keys
    n = len(keys) + 1
    grid: list[list[object]] = [
        [template.instruction] + [None] * (n - 1),
        keys + [ERROR_COLUMN_HEADER],
        [c.description for c in template.columns] + ["Corregí la fila y volvé a importar el archivo."],
    ]
    for row in rows:
        if not row.has_errors:
            continue
        values: list[object] = ["" if row.data.get(k) is None else row.data[k] for k in keys]
        values.append(row.error_text())
        grid.append(values)

    widths = _column_widths(template) + [max(len(ERROR_COLUMN_HEADER), 40)]
    return _write_sheet(template.sheet_name, grid, widths, merge_banner=True)
