from __future__ import annotations

"""Row-level validation error for the CSV -> PostgreSQL user import tool.

A ValidationError is tagged with the 1-based data-row line number (the first
line after the header is 1), the field involved and a reason code. It is
raised by the normalizer and collected by the batch parser.
"""

__all__ = [
    "MISSING_FIELD",
    "INVALID_EMAIL",
    "EXTRA_FIELD",
    "MALFORMED_LINE",
    "ValidationError",
]

MISSING_FIELD = "missing_field"
INVALID_EMAIL = "invalid_email"
EXTRA_FIELD = "extra_field"
MALFORMED_LINE = "malformed_line"


class ValidationError(Exception):
    """Invalid input row.

    Attributes:
        line_number: 1-based data row number
        field: `name`, `surname`, `email`, or `line` for whole-line problems
        reason: one of `missing_field`, `invalid_email`, `extra_field`,
            `malformed_line`
    """

    def __init__(self, line_number: int, field: str, reason: str, message: str | None = None) -> None:
        self.line_number = line_number
        self.field = field
        self.reason = reason
        self.message = message or f"{field}: {reason}"
        super().__init__(f"line {line_number}: {self.message}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.line_number, self.field, self.reason, self.message) == (
            other.line_number,
            other.field,
            other.reason,
            other.message,
        )

    def __hash__(self) -> int:
        return hash((self.line_number, self.field, self.reason, self.message))

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return (
            f"ValidationError(line_number={self.line_number!r}, field={self.field!r}, "
            f"reason={self.reason!r}, message={self.message!r})"
        )
