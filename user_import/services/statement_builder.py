from __future__ import annotations

from collections.abc import Iterable

from ..models.records import USER_FIELDS, InsertionIntent, NormalizedUser

__all__ = [
    "USERS_TABLE",
    "build",
]

USERS_TABLE = "users"


def build(
    users: Iterable[NormalizedUser],
    line_numbers: Iterable[int] | None = None,
    table: str = USERS_TABLE,
) -> list[InsertionIntent]:
    """Turn normalized users into parameter-bound insertion intents.

    `line_numbers` maps each user back to its CSV data row for per-row
    reporting; when omitted the users are numbered 1..n in order.
    """
    users = list(users)
    numbers = list(line_numbers) if line_numbers is not None else list(range(1, len(users) + 1))
    if len(numbers) != len(users):
        raise ValueError(f"line_numbers length {len(numbers)} != users length {len(users)}")
    return [
        InsertionIntent(
            table=table,
            values={f: getattr(user, f) for f in USER_FIELDS},
            line_number=line_number,
        )
        for user, line_number in zip(users, numbers, strict=True)
    ]
