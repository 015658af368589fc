from __future__ import annotations

from typing import Any

from ..logging.init import SUMMARY_LABEL, render_fields
from ..models.entity_type import EntityType
from ..models.import_result import ImportResult
from ..models.parse_result import ParseResult

"""SUMMARY fields for the import CLI.

Formats:
    SUMMARY type={type} rows={n} created={c} updated={u} failed={f} elapsed_sec={s}
    SUMMARY type={type} rows={n} valid={v} errors={e}            (parse preview)
"""


def _format_seconds(seconds: float) -> str:
    # no scientific notation, no trailing zeros
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def summary_fields(entity_type: EntityType, result: ImportResult, elapsed_seconds: float) -> dict[str, Any]:
    return {
        "type": entity_type.value,
        "rows": result.processed,
        "created": result.created,
        "updated": result.updated,
        "failed": result.failed,
        "elapsed_sec": _format_seconds(elapsed_seconds),
    }


def parse_summary_fields(entity_type: EntityType, result: ParseResult) -> dict[str, Any]:
    return {
        "type": entity_type.value,
        "rows": result.total_rows,
        "valid": result.valid_rows,
        "errors": result.error_rows,
    }


def render_summary_line(entity_type: EntityType, result: ImportResult, elapsed_seconds: float) -> str:
    """Render the SUMMARY line of an import run as it appears on stdout.

    Examples:
        >>> r = ImportResult(created=2, updated=1, failed=1)
        >>> render_summary_line(EntityType.PRODUCTS, r, 2.0)
        'SUMMARY type=products rows=4 created=2 updated=1 failed=1 elapsed_sec=2'
    """
    return f"{SUMMARY_LABEL} {render_fields(summary_fields(entity_type, result, elapsed_seconds))}"


def render_parse_summary_line(entity_type: EntityType, result: ParseResult) -> str:
    return f"{SUMMARY_LABEL} {render_fields(parse_summary_fields(entity_type, result))}"
