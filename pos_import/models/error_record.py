from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per failed row (or per unreadable upload, with row=-1).
The key set is fixed: timestamp, file, entity_type, row, error_type, message.
"""

__all__ = [
    "ErrorRecord",
    "PARSE_VALIDATION_ERROR",
    "RECONCILE_ERROR",
    "UNREADABLE_WORKBOOK",
]

PARSE_VALIDATION_ERROR = "PARSE_VALIDATION_ERROR"
RECONCILE_ERROR = "RECONCILE_ERROR"
UNREADABLE_WORKBOOK = "UNREADABLE_WORKBOOK"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name
        entity_type: import type tag (products, stock, ...)
        row: physical spreadsheet row, -1 when the error is not tied to a row
        error_type: classification in UPPER_SNAKE_CASE
        message: user-facing error text
    """
    timestamp: str
    file: str
    entity_type: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, entity_type: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            entity_type=entity_type,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
