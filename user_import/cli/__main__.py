from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from user_import.config.loader import ConfigError, FileSettings, build_run_config, load_config
from user_import.csvfile.reader import FileError
from user_import.db.postgres import PostgresStore
from user_import.db.store import StoreConnectionError, StoreQueryError
from user_import.logging.init import log_summary, set_debug, setup_logging
from user_import.models.import_result import ImportMode, ImportState
from user_import.services.coordinator import run_import
from user_import.services.summary import render_failure_line, render_summary_line

"""CLI entrypoint.

Flow:
- Parse flags (--file / --create_table / --dry_run / -u / -p / -h / --help)
- Load .env, then the optional YAML config
- Resolve mode + credentials into one RunConfig and hand it to run_import()
- Render the ImportResult and map it to an exit code

This is the only place that decides the process exit status.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

DEFAULT_CONFIG_PATH = Path("config/import.yml")

USAGE = """== CSV Processor Usage ==
--file [csv file name] - this is the name of the CSV to be parsed
--create_table - this will cause the PostgreSQL users table to be built (and no further action will be taken)
--dry_run - this will be used with the --file directive in case we want to run the script but not insert into the DB. All other functions will be executed, but the database won't be altered
-u - PostgreSQL username
-p - PostgreSQL password
-h - PostgreSQL host
--help - this list of commands again

Additional options:
--port [port] - PostgreSQL port
--config [yml file] - configuration file (default: config/import.yml if present)
--collect_all_errors - report every invalid row instead of stopping at the first one
--debug - enable debug logging
"""


class UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    # argparse の既定は exit(2) だが 2 は部分失敗の終了コードなので例外に変換
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    # -h はホスト指定に使うため argparse 標準の help は無効化
    p = _ArgumentParser(prog="user-upload", add_help=False)
    p.add_argument("--file", dest="file", default=None)
    p.add_argument("--create_table", action="store_true")
    p.add_argument("--dry_run", action="store_true")
    p.add_argument("-u", dest="user", default=None)
    p.add_argument("-p", dest="password", default=None)
    p.add_argument("-h", dest="host", default=None)
    p.add_argument("--port", dest="port", default=None)
    p.add_argument("--config", dest="config", default=None)
    p.add_argument("--collect_all_errors", action="store_true")
    p.add_argument("--debug", action="store_true")
    p.add_argument("--help", action="store_true")
    return p.parse_args(argv)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; its values win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _load_settings(config_arg: str | None) -> FileSettings:
    if config_arg is not None:
        return load_config(Path(config_arg))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return FileSettings()


def _resolve_mode(args: argparse.Namespace, logger) -> ImportMode | None:
    if args.create_table:
        if args.file or args.dry_run:
            logger.warning("--create_table given: --file/--dry_run are ignored")
        return ImportMode.BOOTSTRAP
    if not args.file:
        logger.error("missing option: --file (or --create_table)")
        return None
    return ImportMode.DRY_RUN if args.dry_run else ImportMode.IMPORT


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] を渡されたテストで sys.argv (pytest の引数) が混入しないよう None のみ判定
    if argv is None:
        argv = sys.argv[1:]
    try:
        args = _parse_args(argv)
    except UsageError as e:
        logger.error(f"usage: {e}")
        print(USAGE)
        return EXIT_FATAL

    if args.help:
        print(USAGE)
        return EXIT_SUCCESS

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    mode = _resolve_mode(args, logger)
    if mode is None:
        return EXIT_FATAL

    try:
        settings = _load_settings(args.config)
        cfg = build_run_config(
            mode,
            Path(args.file) if args.file and mode is not ImportMode.BOOTSTRAP else None,
            {"host": args.host, "port": args.port, "user": args.user, "password": args.password},
            settings,
            collect_all_errors=args.collect_all_errors,
        )
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    store = None
    if mode is not ImportMode.DRY_RUN:
        missing = cfg.database.missing_credentials()
        if missing:
            for label in missing:
                logger.error(f"missing option: {label}")
            return EXIT_FATAL
        store = PostgresStore(maintenance_database=cfg.database.maintenance_database)

    logger.info(f"mode={mode.value} database={cfg.database.name}")
    try:
        result = run_import(cfg, store)
    except FileError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL
    except StoreConnectionError as e:
        logger.error(f"database connection: {e}")
        return EXIT_FATAL
    except StoreQueryError as e:
        logger.error(f"database query: {e}")
        return EXIT_FATAL

    if result.state is ImportState.BOOTSTRAP_REQUESTED:
        logger.info(f"users table created in database {cfg.database.name}")

    for failure in result.failures:
        logger.error(render_failure_line(failure))
    if result.error_log_path is not None:
        logger.info(f"error log: {result.error_log_path}")

    log_summary(render_summary_line(result))

    if result.state is ImportState.PARSE_FAILED:
        return EXIT_FATAL
    if result.failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
