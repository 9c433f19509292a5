from __future__ import annotations

import pytest

from user_import.db.store import StoreQueryError
from user_import.models.records import Statement
from user_import.services.bootstrap import bootstrap, create_table_statement


def test_create_table_statement_shape():
    sql = create_table_statement().sql
    assert sql.startswith('CREATE TABLE "users" (')
    assert "id SERIAL PRIMARY KEY" in sql
    assert "name VARCHAR(255) NOT NULL" in sql
    assert "surname VARCHAR(255) NOT NULL" in sql
    assert "email VARCHAR(255) NOT NULL" in sql
    assert 'CONSTRAINT "users_email_key" UNIQUE (email)' in sql


def test_bootstrap_steps_in_order(fake_store):
    fake_store.connect("localhost", "u", "p")
    bootstrap(fake_store, "catalyst")
    steps = [
        (name, arg.sql if isinstance(arg, Statement) else arg)
        for name, arg in fake_store.calls
        if name in ("execute", "select_database")
    ]
    assert steps[0] == ("execute", 'DROP DATABASE IF EXISTS "catalyst"')
    assert steps[1] == ("execute", 'CREATE DATABASE "catalyst"')
    assert steps[2] == ("select_database", "catalyst")
    assert steps[3][1].startswith('CREATE TABLE "users"')
    assert "users" in fake_store.databases["catalyst"]


def test_bootstrap_twice_leaves_identical_schema(fake_store):
    fake_store.connect("localhost", "u", "p")
    bootstrap(fake_store, "catalyst")
    first = fake_store.schema_snapshot()
    fake_store.close()

    # 既存データがあっても drop されて同じ状態に戻る
    fake_store.rows().append({"id": 1, "name": "Old", "surname": "Row", "email": "old@example.com"})
    fake_store.connect("localhost", "u", "p")
    bootstrap(fake_store, "catalyst")
    assert fake_store.schema_snapshot() == first
    assert fake_store.rows() == []


def test_bootstrap_failure_aborts_remaining_steps(store_factory):
    store = store_factory(fail_sql=("CREATE DATABASE",))
    store.connect("localhost", "u", "p")
    with pytest.raises(StoreQueryError, match="permission denied"):
        bootstrap(store, "catalyst")
    names = [name for name, _ in store.calls]
    assert "select_database" not in names
    assert not any(
        isinstance(arg, Statement) and arg.sql.startswith("CREATE TABLE") for _, arg in store.calls
    )


def test_bootstrap_rejects_unsafe_database_name(fake_store):
    fake_store.connect("localhost", "u", "p")
    with pytest.raises(ValueError):
        bootstrap(fake_store, 'catalyst"; drop')
    assert fake_store.executed == []
