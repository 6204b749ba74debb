#!/usr/bin/env python3
"""
dbexec CLI - run statements and batches against a configured pool.

Configuration comes from ``--config FILE`` (YAML) or, when omitted, from the
environment (ORA_USR, ORA_PWD, ORA_CONSTR, POOL_*, QUEUE_*, ...).
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import yaml

from dbexec.configs.settings import DbExecSettings
from dbexec.core.database import Database
from dbexec.utility.exceptions import ConfigError, DbExecError
from dbexec.utility.logger import get_logger


def _parse_var_value(value: str) -> Any:
    """Parse CLI bind value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    elif value.lower() in ("false", "no"):
        return False
    elif value.lower() == "null":
        return None
    elif value.lstrip("-").isdigit():
        return int(value)
    elif value.lstrip("-").replace(".", "", 1).isdigit():
        return float(value)
    else:
        return value


def _parse_params(params: Tuple[str, ...]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    parsed: Dict[str, Any] = {}
    for item in params:
        if "=" not in item:
            raise click.BadParameter(
                f"'{item}' must look like name=value", param_hint="--param"
            )
        name, value = item.split("=", 1)
        parsed[name.strip()] = _parse_var_value(value)
    return parsed


def _load_settings(config: Optional[str], alias: Optional[str]) -> DbExecSettings:
    settings = (
        DbExecSettings.load_from_yaml(config) if config else DbExecSettings.load_from_env()
    )
    # One short-lived caller: no need to pre-open a full pool
    update: Dict[str, Any] = {"pool_min": min(1, settings.pool.pool_min)}
    if alias:
        update["alias"] = alias
    return settings.model_copy(update={"pool": settings.pool.model_copy(update=update)})


def _run(settings: DbExecSettings, work) -> Any:
    async def main():
        db = Database(settings)
        await db.initialize()
        try:
            return await work(db)
        finally:
            await db.close_all()

    return asyncio.run(main())


def _echo_yaml(data: Any) -> None:
    click.echo(yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip())


@click.group()
@click.version_option(package_name="dbexec")
def dbexec():
    """
    dbexec - pooled SQL execution with all-or-nothing batches.
    """
    pass


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML settings file (default: read environment variables)",
)
alias_option = click.option("--alias", "-a", help="Pool alias to use")


@dbexec.command()
@config_option
@alias_option
def ping(config: Optional[str], alias: Optional[str]):
    """Open the configured pool, lease one connection and close again."""
    logger = get_logger("dbexec.cli.ping")
    try:
        settings = _load_settings(config, alias)

        async def work(db: Database):
            async with db.registry.lease():
                return db.registry.stats()

        stats = _run(settings, work)
    except (ConfigError, DbExecError) as e:
        logger.error(str(e))
        sys.exit(1)

    _echo_yaml(stats)


@dbexec.command(name="exec")
@click.argument("sql")
@click.option(
    "--param", "-p", "params", multiple=True, help="Bind value as name=value"
)
@config_option
@alias_option
def exec_command(
    sql: str, params: Tuple[str, ...], config: Optional[str], alias: Optional[str]
):
    """Execute SQL as one auto-committed statement.

    SQL: Statement text, e.g. "SELECT * FROM t WHERE id = :id"
    """
    logger = get_logger("dbexec.cli.exec")
    binds = _parse_params(params)
    try:
        settings = _load_settings(config, alias)
        result = _run(settings, lambda db: db.execute(sql, binds))
    except (ConfigError, DbExecError) as e:
        logger.error(str(e))
        sys.exit(1)

    _echo_yaml(result.model_dump(mode="json"))


@dbexec.command()
@click.argument("batch_file", type=click.Path(exists=True, dir_okay=False))
@config_option
@alias_option
def batch(batch_file: str, config: Optional[str], alias: Optional[str]):
    """Execute the statements in BATCH_FILE as one transaction.

    BATCH_FILE: YAML list of statements, each a string or a mapping with
    `sql` (or `query`) and optional `params` (or `parameters`).
    """
    logger = get_logger("dbexec.cli.batch")
    try:
        with open(Path(batch_file), "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
        if isinstance(data, dict):
            data = data.get("statements", [])
        if not isinstance(data, list):
            raise ConfigError(f"{batch_file} must contain a list of statements")

        settings = _load_settings(config, alias)
        results = _run(settings, lambda db: db.execute_batch(data))
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML in {batch_file}: {str(e)}")
        sys.exit(1)
    except (ConfigError, DbExecError) as e:
        logger.error(str(e))
        sys.exit(1)

    _echo_yaml([item.model_dump(mode="json") for item in results])


def main():
    dbexec()


if __name__ == "__main__":
    main()
