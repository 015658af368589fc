from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from ..db.store import ImportStore
from ..excel.reader import parse_import_file
from ..excel.writer import generate_error_file
from ..logging.error_log import ErrorLogBuffer
from ..models.entity_type import EntityType
from ..models.error_record import PARSE_VALIDATION_ERROR, RECONCILE_ERROR, UNREADABLE_WORKBOOK, ErrorRecord
from ..models.import_result import ImportResult
from ..models.parse_result import ParseResult
from .progress import RowProgressTracker
from .reconcile import reconcile

"""Import orchestration: one upload -> parse -> reconcile -> error file.

parse_upload() is the preview step; run_import() performs the whole pass.
Caller-contract problems (no file, no type, no data rows) raise
ImportRequestError; data problems end up in the ImportResult.
"""

__all__ = [
    "ImportOutcome",
    "ImportRequestError",
    "parse_upload",
    "run_import",
]

logger = logging.getLogger(__name__)

MSG_MISSING_INPUT = "Archivo y tipo son requeridos"
MSG_NO_DATA = "El archivo no contiene datos. Recordá que los datos empiezan en la fila 4."


class ImportRequestError(Exception):
    """The request itself is unusable (missing file/type, no data rows)."""


@dataclass(frozen=True)
class ImportOutcome:
    entity_type: EntityType
    parse_result: ParseResult
    result: ImportResult
    error_file: bytes | None  # Corrective workbook, only when some row failed
    invalidated_tags: tuple[str, ...]  # Read caches the caller should refresh
    elapsed_seconds: float


def _check_request(buffer: bytes | None, entity_type: EntityType | str | None) -> EntityType:
    if not buffer or not entity_type:
        raise ImportRequestError(MSG_MISSING_INPUT)
    return EntityType.parse(entity_type)


def parse_upload(buffer: bytes | None, entity_type: EntityType | str | None) -> ParseResult:
    """Parse for preview; nothing is written."""
    et = _check_request(buffer, entity_type)
    return parse_import_file(buffer, et)  # type: ignore[arg-type]


def _log_row_errors(
    error_log: ErrorLogBuffer, file_name: str, et: EntityType, parsed: ParseResult, result: ImportResult
) -> None:
    parse_failed = {r.row_number for r in parsed.rows if r.has_errors}
    for err in result.errors:
        error_type = PARSE_VALIDATION_ERROR if err.row_number in parse_failed else RECONCILE_ERROR
        error_log.append(ErrorRecord.create(file_name, et.value, err.row_number, error_type, err.error))


def run_import(
    buffer: bytes | None,
    entity_type: EntityType | str | None,
    scope_id: str,
    store: ImportStore,
    *,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "upload.xlsx",
) -> ImportOutcome:
    """Parse the upload and reconcile every row against the store.

    Raises:
        ImportRequestError: missing buffer/type, or the file has no data rows
        UnknownEntityType: entity_type is not supported
    """
    et = _check_request(buffer, entity_type)
    start = time.perf_counter()

    parsed = parse_import_file(buffer, et)  # type: ignore[arg-type]
    if not parsed.rows:
        if error_log is not None and not parsed.success:
            error_log.append(ErrorRecord.create(file_name, et.value, -1, UNREADABLE_WORKBOOK, MSG_NO_DATA))
        raise ImportRequestError(MSG_NO_DATA)

    logger.info(
        "importing %s: rows=%d valid=%d with_errors=%d",
        et.label, parsed.total_rows, parsed.valid_rows, parsed.error_rows,
    )
    with RowProgressTracker(parsed.total_rows, description=f"Importando {et.label}") as progress:
        result = reconcile(et, parsed.rows, scope_id, store, progress=progress)

    error_file = None
    if result.errors:
        error_file = generate_error_file(parsed.rows, et, result.error_pairs())
        if error_log is not None:
            _log_row_errors(error_log, file_name, et, parsed, result)

    elapsed = time.perf_counter() - start
    return ImportOutcome(
        entity_type=et,
        parse_result=parsed,
        result=result,
        error_file=error_file,
        invalidated_tags=et.cache_tags,
        elapsed_seconds=elapsed,
    )
