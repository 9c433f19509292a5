from __future__ import annotations

import csv
from pathlib import Path

"""CSV source reader.

- The whole file is read once into memory (single pass, no streaming).
- Records end at a line feed only; trailing blank lines are dropped, blank lines
  in the middle are kept (the parser rejects them).
- File problems (missing / not a regular file / not .csv / empty) are raised
  as FileError before any parsing happens.
- tokenize_line() splits one line with standard CSV quoting rules.
"""

__all__ = [
    "CSV_SUFFIX",
    "FileError",
    "read_source_lines",
    "tokenize_line",
]

CSV_SUFFIX = ".csv"


class FileError(Exception):
    """Raised when the input file cannot be used at all."""


def read_source_lines(path: Path) -> list[str]:
    """Read a UTF-8 CSV file and return its lines (newline stripped).

    Raises:
        FileError: missing file, directory, wrong extension, undecodable or empty
    """
    if not path.exists():
        raise FileError(f"file not found: {path}")
    if not path.is_file():
        raise FileError(f"not a regular file: {path}")
    if path.suffix.lower() != CSV_SUFFIX:
        raise FileError(f"expected a {CSV_SUFFIX} file: {path}")
    try:
        # utf-8-sig: Excel 出力の BOM 付き CSV も許容
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileError(f"file is not valid UTF-8: {path} ({e})") from e
    except OSError as e:
        raise FileError(f"cannot read file {path}: {e}") from e

    # read_text() は \r\n / \r を \n に変換済み。splitlines() は U+2028 や \x0c でも
    # 分割してしまうため、レコード区切りは \n のみ
    lines = text.split("\n")
    # 末尾の空行 (最終改行の後ろを含む) はデータ行として数えない
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise FileError(f"file is empty: {path}")
    return lines


def tokenize_line(line: str) -> list[str]:
    """Split one CSV line into fields (quoted commas kept, "" unescaped)."""
    rows = list(csv.reader([line], skipinitialspace=False, strict=False))
    if not rows:
        return []
    return rows[0]
