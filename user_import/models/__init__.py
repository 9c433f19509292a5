"""Domain models for the CSV -> PostgreSQL user import tool."""

from .config_models import DatabaseConfig, RunConfig
from .error_record import ErrorRecord
from .import_result import ErrorPolicy, ImportMode, ImportResult, ImportState, RowFailure
from .records import InsertionIntent, NormalizedUser, RawRecord, Statement
from .validation import ValidationError

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "RunConfig",
    # Record models
    "RawRecord",
    "NormalizedUser",
    "InsertionIntent",
    "Statement",
    # Result / error models
    "ErrorPolicy",
    "ErrorRecord",
    "ImportMode",
    "ImportResult",
    "ImportState",
    "RowFailure",
    "ValidationError",
]
