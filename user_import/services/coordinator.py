from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..csvfile.reader import FileError, read_source_lines
from ..db.insert import InsertMetrics, insert_rows
from ..db.store import Store, open_store
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import RunConfig
from ..models.error_record import ErrorRecord
from ..models.import_result import ImportMode, ImportResult, ImportState, RowFailure
from .batch_parser import parse
from .bootstrap import bootstrap
from .progress import ProgressTracker
from .statement_builder import build

"""Import coordination.

run_import() sequences one invocation from a single RunConfig value:

    bootstrap : idle → bootstrap_requested
    dry run   : idle → parsing → dry_run_complete
    import    : idle → parsing → persisting → committed
    bad input : idle → parsing → parse_failed

Fatal problems (FileError, StoreConnectionError, StoreQueryError during
bootstrap) propagate to the caller; row-level problems are returned in the
ImportResult. No state survives between calls.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportStateError",
    "run_import",
]


class ImportStateError(Exception):
    """Illegal coordinator state transition or missing collaborator."""


def _transition(current: ImportState, new: ImportState) -> ImportState:
    if not current.can_transition_to(new):
        raise ImportStateError(f"illegal transition {current.value} -> {new.value}")
    logger.debug("state %s -> %s", current.value, new.value)
    return new


def _finish(
    state: ImportState,
    start_time: datetime,
    *,
    parsed_count: int = 0,
    inserted_count: int = 0,
    failures: list[RowFailure] | None = None,
    error_log_path: Path | None = None,
) -> ImportResult:
    end_time = datetime.now(UTC)
    return ImportResult(
        state=state,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        parsed_count=parsed_count,
        inserted_count=inserted_count,
        failures=failures or [],
        error_log_path=error_log_path,
    )


def _write_error_log(config: RunConfig, failures: list[RowFailure]) -> Path | None:
    if not failures:
        return None
    file_name = config.file_path.name if config.file_path is not None else "<none>"
    buf = ErrorLogBuffer(config.error_log_dir)
    for failure in failures:
        buf.append(ErrorRecord.from_failure(file_name, failure))
    try:
        return buf.flush()
    except OSError as e:
        # 報告本体 (ImportResult) は返せるのでログ書き込み失敗では止めない
        logger.warning("could not write error log to %s: %s", config.error_log_dir, e)
        return None


def run_import(config: RunConfig, store: Store | None = None, lines: list[str] | None = None) -> ImportResult:
    """Run one invocation.

    Args:
        config: resolved configuration (mode, file, credentials, policy)
        store: store collaborator; required for bootstrap and import, never
            touched in dry-run mode
        lines: pre-read input lines (skips reading `config.file_path`)

    Raises:
        FileError: no input file, or it is missing / empty / not .csv
        StoreConnectionError: the store could not be reached
        StoreQueryError: a bootstrap step was rejected
        ImportStateError: bootstrap/import requested without a store
    """
    start_time = datetime.now(UTC)
    state = ImportState.IDLE

    if config.mode is ImportMode.BOOTSTRAP:
        state = _transition(state, ImportState.BOOTSTRAP_REQUESTED)
        if store is None:
            raise ImportStateError("bootstrap requires a store")
        with open_store(store, config.database, select=False) as s:
            bootstrap(s, config.database.name)
        return _finish(state, start_time)

    state = _transition(state, ImportState.PARSING)
    if lines is None:
        if config.file_path is None:
            raise FileError("no input file given (--file)")
        lines = read_source_lines(config.file_path)
    outcome = parse(lines, skip_header=config.skip_header, policy=config.error_policy)
    logger.info("parsed rows=%d errors=%d", len(outcome.users), len(outcome.errors))

    if not outcome.ok:
        state = _transition(state, ImportState.PARSE_FAILED)
        failures = [RowFailure.from_validation_error(e) for e in outcome.errors]
        return _finish(
            state,
            start_time,
            parsed_count=len(outcome.users),
            failures=failures,
            error_log_path=_write_error_log(config, failures),
        )

    if config.mode is ImportMode.DRY_RUN:
        state = _transition(state, ImportState.DRY_RUN_COMPLETE)
        logger.info("dry run: %d users validated, database not altered", len(outcome.users))
        return _finish(state, start_time, parsed_count=len(outcome.users))

    state = _transition(state, ImportState.PERSISTING)
    if store is None:
        raise ImportStateError("import requires a store")
    intents = build(outcome.users, outcome.line_numbers)
    with open_store(store, config.database) as s:
        with ProgressTracker(len(intents)) as progress:

            def on_row(metrics: InsertMetrics) -> None:
                progress.advance(metrics.success)
                logger.debug(
                    "row line=%d success=%s elapsed_sec=%.6f",
                    metrics.line_number,
                    metrics.success,
                    metrics.elapsed_seconds,
                )

            result = insert_rows(s, intents, metrics_callback=on_row)
    for failure in result.failures:
        logger.warning("line=%d rejected by database: %s", failure.line_number, failure.message)

    state = _transition(state, ImportState.COMMITTED)
    return _finish(
        state,
        start_time,
        parsed_count=len(outcome.users),
        inserted_count=result.inserted_rows,
        failures=result.failures,
        error_log_path=_write_error_log(config, result.failures),
    )
