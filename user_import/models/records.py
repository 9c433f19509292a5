from __future__ import annotations

from dataclasses import dataclass, field

"""Record models for the CSV -> PostgreSQL user import tool.

RawRecord      : one tokenized CSV line before validation (ephemeral)
NormalizedUser : validated canonical form handed to the statement builder
InsertionIntent: parameter-bound representation of one row to persist
Statement      : non-insert SQL (schema DDL) with bound parameters
"""

__all__ = [
    "USER_FIELDS",
    "RawRecord",
    "NormalizedUser",
    "InsertionIntent",
    "Statement",
]

# CSV の列順 = users テーブルの挿入列順
USER_FIELDS: tuple[str, str, str] = ("name", "surname", "email")


@dataclass(frozen=True)
class RawRecord:
    """Ordered triple of text fields as they appear in one input line."""
    name: str
    surname: str
    email: str

    def fields(self) -> tuple[tuple[str, str], ...]:
        """Return (field_name, raw_value) pairs in column order."""
        return (("name", self.name), ("surname", self.surname), ("email", self.email))


@dataclass(frozen=True)
class NormalizedUser:
    """Validated user record.

    name / surname: first character upper, remainder lower, non-empty
    email: trimmed, lowercase, syntactically valid
    """
    name: str
    surname: str
    email: str

    def as_raw(self) -> RawRecord:
        return RawRecord(name=self.name, surname=self.surname, email=self.email)


@dataclass(frozen=True)
class InsertionIntent:
    """One row to be inserted, independent of any store's statement syntax.

    `generated_key` names the column the store fills in itself (auto-increment
    primary key); it is never part of `values`.
    """
    table: str
    values: dict[str, str]
    line_number: int  # 元 CSV のデータ行番号 (行単位の失敗報告用)
    generated_key: str | None = "id"

    @property
    def columns(self) -> list[str]:
        return list(self.values.keys())


@dataclass(frozen=True)
class Statement:
    """Plain SQL statement; row values only ever travel in `params`."""
    sql: str
    params: tuple[object, ...] = field(default_factory=tuple)
