from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .validation import ValidationError

"""Run state and result models for the CSV -> PostgreSQL user import tool.

ImportState tracks one invocation through the coordinator; ImportResult is the
structured report the CLI renders (counts, per-row failures, final mode).
"""

__all__ = [
    "ImportMode",
    "ImportState",
    "ErrorPolicy",
    "RowFailure",
    "ImportResult",
    "STORE_REJECTED",
]

STORE_REJECTED = "store_rejected"


class ImportMode(Enum):
    """Requested mode of one invocation (resolved from CLI flags)."""
    BOOTSTRAP = "bootstrap"
    DRY_RUN = "dry_run"
    IMPORT = "import"


class ErrorPolicy(Enum):
    """Parser behaviour on invalid rows.

    ABORT_ON_FIRST_ERROR is the default: the first invalid row stops the batch.
    COLLECT_ALL_ERRORS keeps validating so every bad row is reported.
    """
    ABORT_ON_FIRST_ERROR = "abort_on_first_error"
    COLLECT_ALL_ERRORS = "collect_all_errors"


class ImportState(Enum):
    """Coordinator state.

    State transitions:
      idle → bootstrap_requested
      idle → parsing → parse_failed
      idle → parsing → dry_run_complete
      idle → parsing → persisting → committed
    """
    IDLE = "idle"
    BOOTSTRAP_REQUESTED = "bootstrap_requested"
    PARSING = "parsing"
    PARSE_FAILED = "parse_failed"
    DRY_RUN_COMPLETE = "dry_run_complete"
    PERSISTING = "persisting"
    COMMITTED = "committed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    def can_transition_to(self, new: ImportState) -> bool:
        return new in _TRANSITIONS.get(self, frozenset())


_TRANSITIONS: dict[ImportState, frozenset[ImportState]] = {
    ImportState.IDLE: frozenset({ImportState.BOOTSTRAP_REQUESTED, ImportState.PARSING}),
    ImportState.PARSING: frozenset(
        {ImportState.PARSE_FAILED, ImportState.DRY_RUN_COMPLETE, ImportState.PERSISTING}
    ),
    ImportState.PERSISTING: frozenset({ImportState.COMMITTED}),
}

_TERMINAL_STATES = frozenset(
    {
        ImportState.BOOTSTRAP_REQUESTED,
        ImportState.PARSE_FAILED,
        ImportState.DRY_RUN_COMPLETE,
        ImportState.COMMITTED,
    }
)

# 終端状態 → レポート上の mode 表記
_MODE_LABELS = {
    ImportState.BOOTSTRAP_REQUESTED: "bootstrap",
    ImportState.DRY_RUN_COMPLETE: "dry-run",
    ImportState.COMMITTED: "committed",
    ImportState.PARSE_FAILED: "parse-failed",
}


@dataclass(frozen=True)
class RowFailure:
    """One rejected input row (validation or store rejection)."""
    line_number: int
    reason: str  # missing_field / invalid_email / extra_field / store_rejected
    message: str
    field: str | None = None

    @staticmethod
    def from_validation_error(err: ValidationError) -> RowFailure:
        return RowFailure(
            line_number=err.line_number,
            reason=err.reason,
            message=err.message,
            field=err.field,
        )


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one coordinator run."""
    state: ImportState
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    parsed_count: int = 0  # 検証を通過した行数
    inserted_count: int = 0  # 実際に INSERT 成功した行数
    failures: list[RowFailure] = field(default_factory=list)
    error_log_path: Path | None = None

    @property
    def mode(self) -> str:
        return _MODE_LABELS.get(self.state, self.state.value)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        """True when the run reached its goal without any reported row failure."""
        return self.state != ImportState.PARSE_FAILED and not self.failures
