from __future__ import annotations

import io
import logging
import math
import numbers
from collections.abc import Callable, Sequence
from typing import Any

import pandas as pd

from ..config.templates import get_template
from ..models.entity_type import EntityType
from ..models.parse_result import CellValue, ParsedRow, ParseResult
from .coercion import parse_locale_number, parse_tax_rate

"""Import workbook reader and row parser.

Layout (shared with the blank template and the error file):
- row 1: instruction banner (ignored)
- row 2: header row (index 1), used for display only
- row 3: column descriptions / example (ignored)
- row 4+: data rows (index >= 3)

Cells bind to template columns strictly by position so renamed headers cannot
silently shift data into the wrong field.
"""

__all__ = [
    "HEADER_ROW_INDEX",
    "DATA_START_INDEX",
    "WorkbookReadError",
    "parse_import_file",
    "read_workbook",
]

logger = logging.getLogger(__name__)

HEADER_ROW_INDEX = 1
DATA_START_INDEX = 3
FIRST_DATA_ROW_NUMBER = DATA_START_INDEX + 1

MSG_REQUIRED = "{key} es obligatorio"
MSG_BAD_PRICE = "Precio con IVA tiene formato inválido"
MSG_BAD_COST = "Costo sin IVA tiene formato inválido"
MSG_BAD_TAX_RATE = "Alícuota IVA inválida. Valores permitidos: 0%, 2.5%, 5%, 10.5%, 21%, 27%"
MSG_BAD_QUANTITY = "Cantidad tiene formato inválido"


class WorkbookReadError(Exception):
    """Raised when the uploaded bytes cannot be decoded as a workbook."""


def read_workbook(buffer: bytes, sheet_name: str) -> pd.DataFrame | None:
    """Read one sheet as a raw, header-less DataFrame.

    Picks `sheet_name`, falling back to the first sheet. Returns None when the
    workbook has no sheets at all.

    NA-string conversion is disabled: a cell reading "NA" or "null" stays text.
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(buffer), engine="openpyxl")
    except Exception as e:
        raise WorkbookReadError(f"cannot read workbook: {e}") from e
    names = [str(n) for n in xls.sheet_names]
    if not names:
        return None
    target = sheet_name if sheet_name in names else names[0]
    try:
        return xls.parse(target, header=None, dtype=object, keep_default_na=False, na_values=[])
    except Exception as e:
        raise WorkbookReadError(f"cannot read sheet '{target}': {e}") from e


def _is_empty_cell(value: Any) -> bool:
    """No value at all; whitespace-only text still counts as content."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value == ""


def _is_blank_cell(value: Any) -> bool:
    return _is_empty_cell(value) or (isinstance(value, str) and value.strip() == "")


def _cell_value(value: Any) -> CellValue:
    """Stored form of a non-blank cell: trimmed text, or the number as typed."""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        value = float(value)
        return int(value) if value.is_integer() else value
    return str(value).strip()


def _header_text(value: Any) -> str:
    if _is_blank_cell(value):
        return ""
    return str(value).replace(" *", "").strip()


def _validate_number(data: dict[str, CellValue], key: str, message: str, errors: list[str]) -> None:
    value = data.get(key)
    if value not in (None, "") and parse_locale_number(value) is None:
        errors.append(message)


def _validate_products(data: dict[str, CellValue], errors: list[str]) -> None:
    _validate_number(data, "Precio con IVA", MSG_BAD_PRICE, errors)
    _validate_number(data, "Costo sin IVA", MSG_BAD_COST, errors)
    rate = data.get("Alícuota IVA")
    if rate not in (None, "") and parse_tax_rate(rate) is None:
        errors.append(MSG_BAD_TAX_RATE)


def _validate_stock(data: dict[str, CellValue], errors: list[str]) -> None:
    _validate_number(data, "Cantidad", MSG_BAD_QUANTITY, errors)


def _validate_prices(data: dict[str, CellValue], errors: list[str]) -> None:
    _validate_number(data, "Precio con IVA", MSG_BAD_PRICE, errors)
    _validate_number(data, "Costo sin IVA", MSG_BAD_COST, errors)


_SECONDARY_VALIDATORS: dict[EntityType, Callable[[dict[str, CellValue], list[str]], None]] = {
    EntityType.PRODUCTS: _validate_products,
    EntityType.STOCK: _validate_stock,
    EntityType.PRICES: _validate_prices,
}


def _parse_rows(df: pd.DataFrame, entity_type: EntityType) -> ParseResult:
    template = get_template(entity_type)
    raw_rows: list[Sequence[Any]] = df.values.tolist() if not df.empty else []

    headers: list[str] = []
    if len(raw_rows) > HEADER_ROW_INDEX:
        headers = [_header_text(v) for v in raw_rows[HEADER_ROW_INDEX]]

    # empty rows are dropped before numbering
    data_rows = [
        r for r in raw_rows[DATA_START_INDEX:]
        if not all(_is_empty_cell(v) for v in r)
    ]

    validator = _SECONDARY_VALIDATORS.get(entity_type)
    parsed: list[ParsedRow] = []
    for i, raw in enumerate(data_rows):
        errors: list[str] = []
        data: dict[str, CellValue] = {}
        for col_index, column in enumerate(template.columns):
            value = raw[col_index] if col_index < len(raw) else None
            key = column.key
            if _is_blank_cell(value):
                if column.required:
                    errors.append(MSG_REQUIRED.format(key=key))
                data[key] = None
                continue
            data[key] = _cell_value(value)
        if validator is not None:
            validator(data, errors)
        parsed.append(ParsedRow(row_number=i + FIRST_DATA_ROW_NUMBER, data=data, errors=errors))

    result = ParseResult.from_rows(parsed, headers)
    logger.debug(
        "parsed entity_type=%s total=%d valid=%d errors=%d",
        entity_type.value,
        result.total_rows,
        result.valid_rows,
        result.error_rows,
    )
    return result


def parse_import_file(buffer: bytes, entity_type: EntityType | str) -> ParseResult:
    """Parse an uploaded workbook into one ParsedRow per non-blank data row.

    An unreadable or sheet-less upload is an expected input and yields
    ParseResult.unreadable(). A file with zero data rows parses successfully
    with total_rows == 0; rejecting it is the caller's decision.

    Raises:
        UnknownEntityType: entity_type is not a supported tag
        TypeError: buffer is not bytes
    """
    et = EntityType.parse(entity_type)
    if not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise TypeError(f"buffer must be bytes, got {type(buffer).__name__}")
    template = get_template(et)
    try:
        df = read_workbook(bytes(buffer), template.sheet_name)
    except WorkbookReadError as e:
        logger.warning("unreadable workbook entity_type=%s: %s", et.value, e)
        return ParseResult.unreadable()
    if df is None:
        logger.warning("workbook has no sheets entity_type=%s", et.value)
        return ParseResult.unreadable()
    return _parse_rows(df, et)
