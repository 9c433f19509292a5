from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .import_result import RowFailure

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass used for structured error logging
of rejected CSV rows. Each record becomes one JSON Lines entry; the key set is
fixed by user_import/schemas/error_log_schema.json.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being processed
        row: Data row number (1-based, first row after the header is 1)
        field: Offending field name, or None for row-level store rejections
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Validation message or database error text
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    field: str | None
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str, field: str | None = None) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_failure(file: str, failure: RowFailure) -> ErrorRecord:
        # reason コード (snake) → error_type (UPPER_SNAKE)
        return ErrorRecord.create(
            file=file,
            row=failure.line_number,
            error_type=failure.reason.upper(),
            message=failure.message,
            field=failure.field,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
