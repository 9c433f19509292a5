from __future__ import annotations

import logging

from ..db.insert import quote_identifier
from ..db.store import Store
from ..models.records import Statement
from .statement_builder import USERS_TABLE

"""Schema bootstrap: drop + recreate the target database and the users table.

Destructive. Only run on explicit request (--create_table), never as a side
effect of an import. Each step is idempotent, so two runs in a row leave the
same schema. The first failing step raises StoreQueryError (or
StoreConnectionError for the database switch) and later steps are skipped.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NAME_MAX_LENGTH",
    "create_table_statement",
    "bootstrap",
]

NAME_MAX_LENGTH = 255


def create_table_statement(table: str = USERS_TABLE) -> Statement:
    t = quote_identifier(table)
    return Statement(
        sql=(
            f"CREATE TABLE {t} ("
            "id SERIAL PRIMARY KEY, "
            f"name VARCHAR({NAME_MAX_LENGTH}) NOT NULL, "
            f"surname VARCHAR({NAME_MAX_LENGTH}) NOT NULL, "
            f"email VARCHAR({NAME_MAX_LENGTH}) NOT NULL, "
            f"CONSTRAINT {quote_identifier(table + '_email_key')} UNIQUE (email))"
        )
    )


def bootstrap(store: Store, database_name: str, table: str = USERS_TABLE) -> None:
    """Recreate `database_name` and its users table on a connected store."""
    db = quote_identifier(database_name)
    logger.info("bootstrap: dropping database %s if it exists", database_name)
    store.execute(Statement(sql=f"DROP DATABASE IF EXISTS {db}"))
    store.execute(Statement(sql=f"CREATE DATABASE {db}"))
    store.select_database(database_name)
    store.execute(create_table_statement(table))
    logger.info("bootstrap: created table %s in database %s", table, database_name)
