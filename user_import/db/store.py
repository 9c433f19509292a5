from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

from ..models.config_models import DatabaseConfig
from ..models.records import InsertionIntent, Statement

"""Store collaborator contract.

The coordinator only depends on this narrow interface (connect / select
database / execute / close); PostgresStore in user_import/db/postgres.py is
the psycopg2 implementation, tests use an in-memory fake.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "Store",
    "StoreError",
    "StoreConnectionError",
    "StoreQueryError",
    "open_store",
]


class StoreError(Exception):
    """Base class for store failures; message carries the store diagnostic."""


class StoreConnectionError(StoreError):
    """Credentials rejected, host unreachable, database missing."""


class StoreQueryError(StoreError):
    """A statement was rejected (schema DDL, duplicate email, ...)."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code  # SQLSTATE (例: 23505 unique_violation)


@runtime_checkable
class Store(Protocol):
    def connect(self, host: str, user: str, password: str, port: int | None = None) -> None: ...

    def select_database(self, name: str) -> None: ...

    def execute(self, statement: Statement | InsertionIntent) -> None: ...

    def close(self) -> None: ...


@contextmanager
def open_store(store: Store, db: DatabaseConfig, select: bool = True) -> Iterator[Store]:
    """Connect the store for the duration of a `with` block.

    The connection is released on every exit path. When `select` is true the
    target database (`db.name`) is made active before the block runs.
    """
    missing = db.missing_credentials()
    if missing:
        raise StoreConnectionError(f"missing connection option(s): {', '.join(missing)}")
    store.connect(db.host, db.user, db.password, port=db.port)  # type: ignore[arg-type]
    try:
        logger.info("DB connection successful host=%s user=%s", db.host, db.user)
        if select:
            store.select_database(db.name)
        yield store
    finally:
        store.close()
