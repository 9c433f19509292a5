from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..csvfile.reader import tokenize_line
from ..models.import_result import ErrorPolicy
from ..models.records import USER_FIELDS, NormalizedUser, RawRecord
from ..models.validation import EXTRA_FIELD, MALFORMED_LINE, MISSING_FIELD, ValidationError
from .normalizer import normalize

logger = logging.getLogger(__name__)

"""Batch parsing: raw CSV lines -> normalized users / validation errors.

Line numbers are 1-based data-row numbers: the line right after the header
is line 1. Every data line is a row; a blank line is a `missing_field` error
on `name`.
"""

__all__ = [
    "ParseOutcome",
    "iter_records",
    "parse",
]


@dataclass(frozen=True)
class ParseOutcome:
    users: list[NormalizedUser] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
    line_numbers: list[int] = field(default_factory=list)  # users と同順の元データ行番号

    @property
    def ok(self) -> bool:
        return not self.errors


def _tokenize(line: str, line_number: int) -> list[str]:
    try:
        return tokenize_line(line)
    except csv.Error as e:
        # 例: field larger than field limit (131072)
        raise ValidationError(line_number, "line", MALFORMED_LINE, f"cannot split line: {e}") from e


def _to_raw_record(tokens: list[str], line_number: int) -> RawRecord:
    if len(tokens) < len(USER_FIELDS):
        # 存在する列が空ならそちらを先に報告。空行は 0 列なので name が欠落扱い
        for field_name, token in zip(USER_FIELDS, tokens):
            if not token.strip():
                raise ValidationError(line_number, field_name, MISSING_FIELD, f"{field_name} is empty")
        missing = USER_FIELDS[len(tokens)]
        raise ValidationError(
            line_number,
            missing,
            MISSING_FIELD,
            f"{missing} is missing (got {len(tokens)} of {len(USER_FIELDS)} fields)",
        )
    extra = [t for t in tokens[len(USER_FIELDS):] if t.strip()]
    if extra:
        raise ValidationError(
            line_number,
            "line",
            EXTRA_FIELD,
            f"expected {len(USER_FIELDS)} fields, got {len(tokens)}",
        )
    name, surname, email = tokens[: len(USER_FIELDS)]
    return RawRecord(name=name, surname=surname, email=email)


def iter_records(
    lines: Iterable[str], skip_header: bool = True
) -> Iterator[tuple[int, NormalizedUser | ValidationError]]:
    """Lazily yield (line_number, user-or-error) for every data line.

    Single pass: the underlying iterable is consumed as the generator advances.
    """
    it = iter(lines)
    if skip_header:
        header = next(it, None)
        logger.debug("skipped header line: %r", header)
    for line_number, line in enumerate(it, start=1):
        try:
            raw = _to_raw_record(_tokenize(line, line_number), line_number)
            yield line_number, normalize(raw, line_number)
        except ValidationError as e:
            yield line_number, e


def parse(
    lines: Iterable[str],
    skip_header: bool = True,
    policy: ErrorPolicy = ErrorPolicy.ABORT_ON_FIRST_ERROR,
) -> ParseOutcome:
    """Parse and normalize all lines.

    ABORT_ON_FIRST_ERROR: stop at the first invalid row; the outcome then
    holds no users and exactly that one error (no partial import).
    COLLECT_ALL_ERRORS: validate every row and report all errors.
    """
    users: list[NormalizedUser] = []
    line_numbers: list[int] = []
    errors: list[ValidationError] = []
    for line_number, item in iter_records(lines, skip_header=skip_header):
        if isinstance(item, ValidationError):
            errors.append(item)
            if policy is ErrorPolicy.ABORT_ON_FIRST_ERROR:
                logger.debug("aborting batch at line=%d (%s)", line_number, item.reason)
                return ParseOutcome(users=[], errors=errors)
            continue
        users.append(item)
        line_numbers.append(line_number)
    return ParseOutcome(users=users, errors=errors, line_numbers=line_numbers)
