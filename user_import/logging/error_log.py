from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.config_models import DEFAULT_ERROR_LOG_DIR
from ..models.error_record import ErrorRecord

"""Per-run JSON Lines log of rejected CSV rows.

The coordinator fills one ErrorLogBuffer with every RowFailure of a run and
flushes it once when the run ends. A run without failures never touches the
filesystem: no directory, no file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Rejected-row records of one run, written as `errors-YYYYMMDD-HHMMSS.log` (UTC)."""

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir = log_dir if log_dir is not None else Path(DEFAULT_ERROR_LOG_DIR)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回参照時にディレクトリ作成 + ファイル名確定 (flush するまで呼ばれない)
        if self._file_path is None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append the buffered records to the run's log file.

        Returns the file path, or None when nothing has ever been written.
        """
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._records)
        self._records.clear()
        return fp
