from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..models.import_result import STORE_REJECTED, RowFailure
from ..models.records import InsertionIntent, Statement
from .store import Store, StoreQueryError

"""Row persistence.

compile_insert() turns an InsertionIntent into a parameter-bound INSERT; row
values only ever travel as bound parameters. insert_rows() executes the
intents one by one: a rejected row is recorded and the remaining rows are
still attempted.
"""

__all__ = [
    "IDENTIFIER_RE",
    "InsertMetrics",
    "InsertResult",
    "quote_identifier",
    "compile_insert",
    "insert_rows",
]

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class InsertMetrics:
    """Timing data for a single row insert."""
    line_number: int
    success: bool
    elapsed_seconds: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    failures: list[RowFailure] = field(default_factory=list)


def quote_identifier(name: str) -> str:
    """Double-quote a table/column/database name after checking its shape."""
    if not IDENTIFIER_RE.match(name):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return f'"{name}"'


def compile_insert(intent: InsertionIntent) -> Statement:
    """Compile an intent into INSERT ... VALUES (%s, ...) with bound params.

    The generated key column is omitted so the store assigns it.
    """
    columns = [c for c in intent.columns if c != intent.generated_key]
    if not columns:
        raise ValueError(f"intent for table {intent.table!r} has no insertable columns")
    cols_sql = ",".join(quote_identifier(c) for c in columns)
    placeholders = ",".join(["%s"] * len(columns))
    sql = f"INSERT INTO {quote_identifier(intent.table)} ({cols_sql}) VALUES ({placeholders})"
    return Statement(sql=sql, params=tuple(intent.values[c] for c in columns))


def insert_rows(
    store: Store,
    intents: Iterable[InsertionIntent],
    metrics_callback: Callable[[InsertMetrics], None] | None = None,
) -> InsertResult:
    """Execute every intent; StoreQueryError is row-scoped and non-fatal.

    Other exceptions (e.g. StoreConnectionError) propagate.
    """
    inserted = 0
    failures: list[RowFailure] = []
    for intent in intents:
        start = time.perf_counter()
        try:
            store.execute(intent)
        except StoreQueryError as e:
            failures.append(
                RowFailure(
                    line_number=intent.line_number,
                    reason=STORE_REJECTED,
                    message=str(e),
                )
            )
            success = False
        else:
            inserted += 1
            success = True
        if metrics_callback is not None:
            metrics_callback(
                InsertMetrics(
                    line_number=intent.line_number,
                    success=success,
                    elapsed_seconds=time.perf_counter() - start,
                )
            )
    return InsertResult(inserted_rows=inserted, failures=failures)
