from __future__ import annotations

import logging
from typing import Any

import psycopg2

from ..models.records import InsertionIntent, Statement
from .insert import compile_insert
from .store import StoreConnectionError, StoreQueryError

"""psycopg2-backed store.

PostgreSQL has no `USE <db>`: the session starts on the maintenance database
(needed for DROP/CREATE DATABASE) and select_database() re-connects to the
target. Autocommit is on, so every statement stands alone and a rejected
row does not poison the rows after it.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PostgresStore",
]


def _diagnostic(e: Exception) -> str:
    # pgerror はサーバ診断テキスト (ERROR: duplicate key ...)。無ければ str(e)
    text = getattr(e, "pgerror", None) or str(e)
    return text.strip()


class PostgresStore:
    """Store implementation over a single psycopg2 connection."""

    def __init__(self, maintenance_database: str = "postgres", connect_timeout: int = 10) -> None:
        self.maintenance_database = maintenance_database
        self.connect_timeout = connect_timeout
        self._conn: Any = None
        self._params: dict[str, Any] | None = None
        self.database: str | None = None

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def _open(self, dbname: str) -> None:
        assert self._params is not None
        try:
            conn = psycopg2.connect(dbname=dbname, connect_timeout=self.connect_timeout, **self._params)
        except psycopg2.Error as e:
            raise StoreConnectionError(f"database connection failed: {_diagnostic(e)}") from e
        conn.autocommit = True
        self._conn = conn
        self.database = dbname

    def connect(self, host: str, user: str, password: str, port: int | None = None) -> None:
        params: dict[str, Any] = {"host": host, "user": user, "password": password}
        if port is not None:
            params["port"] = port
        self._params = params
        self._open(self.maintenance_database)

    def select_database(self, name: str) -> None:
        if self._params is None:
            raise StoreConnectionError("database connection missing")
        if self.database == name and self.connected:
            return
        self.close()
        self._open(name)
        logger.debug("selected database=%s", name)

    def execute(self, statement: Statement | InsertionIntent) -> None:
        if not self.connected:
            raise StoreConnectionError("database connection missing")
        if isinstance(statement, InsertionIntent):
            statement = compile_insert(statement)
        try:
            with self._conn.cursor() as cur:
                cur.execute(statement.sql, statement.params or None)
        except psycopg2.OperationalError as e:
            if self._conn.closed:
                raise StoreConnectionError(f"database connection lost: {_diagnostic(e)}") from e
            raise StoreQueryError(_diagnostic(e), code=e.pgcode) from e
        except psycopg2.Error as e:
            raise StoreQueryError(_diagnostic(e), code=e.pgcode) from e

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None and not conn.closed:
            try:
                conn.close()
            except psycopg2.Error:  # pragma: no cover
                logger.debug("error while closing connection", exc_info=True)
