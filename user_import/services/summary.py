from __future__ import annotations

from ..models.import_result import ImportResult, RowFailure

"""Report rendering for the CLI.

SUMMARY line format (the `SUMMARY ` label is added by log_summary):
    mode={mode} parsed={n} inserted={n} failed={n} elapsed_sec={x}
"""


def _format_number(value: float) -> str:
    # 整数値は小数点なし、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY content for one run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from user_import.models.import_result import ImportState
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     state=ImportState.COMMITTED, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, parsed_count=5, inserted_count=5,
        ... )
        >>> render_summary_line(result)
        'mode=committed parsed=5 inserted=5 failed=0 elapsed_sec=2'
    """
    return (
        f"mode={result.mode} "
        f"parsed={result.parsed_count} "
        f"inserted={result.inserted_count} "
        f"failed={result.failed_count} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )


def render_failure_line(failure: RowFailure) -> str:
    """One human-readable line per rejected row."""
    field = f" field={failure.field}" if failure.field else ""
    return f"line={failure.line_number}{field} reason={failure.reason} {failure.message}"
