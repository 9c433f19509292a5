from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .import_result import ErrorPolicy, ImportMode

"""Config dataclasses for the CSV -> PostgreSQL user import tool.

These are the resolved values the coordinator runs with. Loading and
precedence (CLI flag > environment > YAML > default) live in
user_import/config/loader.py.
"""

DEFAULT_DATABASE_NAME = "catalyst"
DEFAULT_MAINTENANCE_DATABASE = "postgres"
DEFAULT_ERROR_LOG_DIR = "./logs"


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the target PostgreSQL server."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    name: str = DEFAULT_DATABASE_NAME  # import 先 DB (bootstrap で drop/create)
    maintenance_database: str = DEFAULT_MAINTENANCE_DATABASE  # 初回接続先

    def missing_credentials(self) -> list[str]:
        """Labels of the connection options that are still unset."""
        required = {
            "Host name (-h)": self.host,
            "Username (-u)": self.user,
            "Password (-p)": self.password,
        }
        return [label for label, value in required.items() if value is None]


@dataclass(frozen=True)
class RunConfig:
    """Root configuration of one invocation."""
    mode: ImportMode
    file_path: Path | None
    database: DatabaseConfig
    error_policy: ErrorPolicy = ErrorPolicy.ABORT_ON_FIRST_ERROR
    skip_header: bool = True
    error_log_dir: Path = Path(DEFAULT_ERROR_LOG_DIR)
