# Shared pytest fixtures
from __future__ import annotations

import re
import tempfile
from pathlib import Path

import pytest

from user_import.db.store import StoreConnectionError, StoreQueryError
from user_import.models.records import InsertionIntent, Statement

_DROP_DB = re.compile(r'^DROP DATABASE IF EXISTS "(\w+)"$')
_CREATE_DB = re.compile(r'^CREATE DATABASE "(\w+)"$')
_CREATE_TABLE = re.compile(r'^CREATE TABLE "(\w+)" \(')


class FakeStore:
    """In-memory store recording every call.

    Emulates just enough of PostgreSQL for the coordinator: databases,
    tables created by DDL, and the unique email constraint.
    """

    def __init__(self, refuse_connect: bool = False, fail_sql: tuple[str, ...] = ()) -> None:
        self.refuse_connect = refuse_connect
        self.fail_sql = fail_sql  # この部分文字列を含む Statement は拒否
        self.calls: list[tuple[str, object]] = []
        self.databases: dict[str, dict[str, dict]] = {"postgres": {}}
        self.current: str | None = None
        self.connected = False

    # -- helpers -----------------------------------------------------------
    def seed_schema(self, database: str = "catalyst", table: str = "users") -> None:
        self.databases[database] = {table: {"ddl": "seeded", "rows": []}}

    def rows(self, database: str = "catalyst", table: str = "users") -> list[dict]:
        return self.databases[database][table]["rows"]

    @property
    def executed(self) -> list[object]:
        return [arg for name, arg in self.calls if name == "execute"]

    def schema_snapshot(self) -> dict[str, dict[str, object]]:
        return {
            db: {t: (info["ddl"], len(info["rows"])) for t, info in tables.items()}
            for db, tables in self.databases.items()
        }

    # -- Store protocol ----------------------------------------------------
    def connect(self, host: str, user: str, password: str, port: int | None = None) -> None:
        self.calls.append(("connect", host))
        if self.refuse_connect:
            raise StoreConnectionError(f'password authentication failed for user "{user}"')
        self.connected = True
        self.current = "postgres"

    def select_database(self, name: str) -> None:
        self.calls.append(("select_database", name))
        if name not in self.databases:
            raise StoreConnectionError(f'database "{name}" does not exist')
        self.current = name

    def execute(self, statement: Statement | InsertionIntent) -> None:
        self.calls.append(("execute", statement))
        if not self.connected:
            raise StoreConnectionError("database connection missing")
        if isinstance(statement, InsertionIntent):
            self._insert(statement)
        else:
            self._ddl(statement)

    def close(self) -> None:
        self.calls.append(("close", None))
        self.connected = False
        self.current = None

    # -- emulation ---------------------------------------------------------
    def _insert(self, intent: InsertionIntent) -> None:
        table = self.databases[self.current].get(intent.table)
        if table is None:
            raise StoreQueryError(f'relation "{intent.table}" does not exist', code="42P01")
        email = intent.values["email"]
        if any(r["email"] == email for r in table["rows"]):
            raise StoreQueryError(
                'duplicate key value violates unique constraint "users_email_key"', code="23505"
            )
        table["rows"].append({"id": len(table["rows"]) + 1, **intent.values})

    def _ddl(self, statement: Statement) -> None:
        sql = statement.sql
        for fragment in self.fail_sql:
            if fragment in sql:
                raise StoreQueryError(f"permission denied: {fragment}", code="42501")
        if m := _DROP_DB.match(sql):
            self.databases.pop(m.group(1), None)
        elif m := _CREATE_DB.match(sql):
            if m.group(1) in self.databases:
                raise StoreQueryError(f'database "{m.group(1)}" already exists', code="42P04")
            self.databases[m.group(1)] = {}
        elif m := _CREATE_TABLE.match(sql):
            tables = self.databases[self.current]
            if m.group(1) in tables:
                raise StoreQueryError(f'relation "{m.group(1)}" already exists', code="42P07")
            tables[m.group(1)] = {"ddl": sql, "rows": []}
        else:  # pragma: no cover
            raise AssertionError(f"unexpected statement: {sql}")


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def store_factory():
    return FakeStore


@pytest.fixture(autouse=True)
def clean_pg_env(monkeypatch):
    # 開発者環境の PG* 変数がテストに混入しないように
    for name in ("PGHOST", "PGPORT", "PGUSER", "PGPASSWORD"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  name: catalyst
import:
  skip_header: true
  error_policy: abort_on_first_error
  error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(rows: list[str], name: str = "users.csv", header: str = "name,surname,email") -> Path:
        path = temp_workdir / "data" / name
        path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def valid_rows() -> list[str]:
    return [
        "John,smith,jsmith@gmail.com",
        "HAMISH,JONES,ham@seek.com",
        "Phil,CARRY   ,phil@open.edu.au",
        "Johnny,O'Hare,john@yahoo.com.au",
        "Kevin,Ruley,kevin.ruley@gmail.com",
    ]
