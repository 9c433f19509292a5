from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError as SchemaValidationError

from ..models.config_models import (
    DEFAULT_DATABASE_NAME,
    DEFAULT_ERROR_LOG_DIR,
    DEFAULT_MAINTENANCE_DATABASE,
    DatabaseConfig,
    RunConfig,
)
from ..models.import_result import ErrorPolicy, ImportMode

"""Config loader.

Responsibilities:
- Load the optional YAML config file (config/import.yml by default)
- Validate it against schemas/config_schema.json
- Resolve connection settings with precedence:
    CLI flag > environment (PGHOST / PGPORT / PGUSER / PGPASSWORD) > YAML > default
"""

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "config_schema.json"

# DatabaseConfig フィールド → 環境変数名
ENV_VARS = {
    "host": "PGHOST",
    "port": "PGPORT",
    "user": "PGUSER",
    "password": "PGPASSWORD",
}


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FileSettings:
    """Values read from the YAML config file (all optional)."""
    database: dict[str, Any] = field(default_factory=dict)
    skip_header: bool = True
    error_policy: ErrorPolicy = ErrorPolicy.ABORT_ON_FIRST_ERROR
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except SchemaValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> FileSettings:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    imp = data.get("import", {})
    return FileSettings(
        database=dict(data.get("database", {})),
        skip_header=imp.get("skip_header", True),
        error_policy=ErrorPolicy(imp.get("error_policy", ErrorPolicy.ABORT_ON_FIRST_ERROR.value)),
        error_log_dir=imp.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
    )


def _parse_port(value: Any, source: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid port from {source}: {value!r}") from e
    if not 1 <= port <= 65535:
        raise ConfigError(f"invalid port from {source}: {value!r}")
    return port


def resolve_database_config(
    overrides: Mapping[str, Any],
    settings: FileSettings,
    env: Mapping[str, str] | None = None,
) -> DatabaseConfig:
    """Merge CLI overrides, environment and YAML into a DatabaseConfig."""
    if env is None:
        env = os.environ
    resolved: dict[str, Any] = {}
    for key, env_name in ENV_VARS.items():
        if overrides.get(key) is not None:
            value, source = overrides[key], "command line"
        elif env.get(env_name):
            value, source = env[env_name], env_name
        else:
            value, source = settings.database.get(key), "config"
        resolved[key] = _parse_port(value, source) if key == "port" else value
    return DatabaseConfig(
        host=resolved["host"],
        port=resolved["port"],
        user=resolved["user"],
        password=resolved["password"],
        name=settings.database.get("name", DEFAULT_DATABASE_NAME),
        maintenance_database=settings.database.get("maintenance_database", DEFAULT_MAINTENANCE_DATABASE),
    )


def build_run_config(
    mode: ImportMode,
    file_path: Path | None,
    overrides: Mapping[str, Any],
    settings: FileSettings | None = None,
    env: Mapping[str, str] | None = None,
    collect_all_errors: bool = False,
) -> RunConfig:
    """Assemble the resolved configuration of one invocation."""
    settings = settings or FileSettings()
    policy = ErrorPolicy.COLLECT_ALL_ERRORS if collect_all_errors else settings.error_policy
    return RunConfig(
        mode=mode,
        file_path=file_path,
        database=resolve_database_config(overrides, settings, env),
        error_policy=policy,
        skip_header=settings.skip_header,
        error_log_dir=Path(settings.error_log_dir),
    )
