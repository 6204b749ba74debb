"""
Tests for development-mode SQL logging.
"""
from unittest.mock import MagicMock

import pytest

from dbexec.core import BindLogger, Database
from dbexec.utility.exceptions import TransactionError


def test_logs_rendered_statement_when_enabled():
    logger = MagicMock()
    bind_logger = BindLogger(enabled=True, logger=logger)

    bind_logger.log_statement("SELECT * FROM emp WHERE id = :id", {"id": 7})
    bind_logger.log_marker("commit")

    assert [c.args[0] for c in logger.sql.call_args_list] == [
        "SELECT * FROM emp WHERE id = 7",
        "commit",
    ]


def test_silent_when_disabled():
    logger = MagicMock()
    bind_logger = BindLogger(enabled=False, logger=logger)

    bind_logger.log_statement("SELECT :a", {"a": 1})
    bind_logger.log_marker("rollback")

    logger.sql.assert_not_called()


def test_render_failure_logs_raw_sql():
    """Test a bind set that cannot be rendered never breaks logging."""
    logger = MagicMock()
    bind_logger = BindLogger(enabled=True, logger=logger)

    bind_logger.log_statement("SELECT ?", 5)

    logger.warning.assert_called_once()
    logger.sql.assert_called_once_with("SELECT ?")


@pytest.mark.parametrize("environment,enabled", [("dev", True), ("production", False)])
def test_database_enables_by_environment(fake_settings, environment, enabled):
    settings = fake_settings.model_copy(update={"environment": environment})

    assert Database(settings).bind_logger.enabled is enabled


@pytest.mark.asyncio
async def test_batch_logs_statements_and_markers(fake_database):
    logger = MagicMock()
    fake_database.bind_logger.enabled = True
    fake_database.bind_logger.logger = logger

    await fake_database.execute_batch([("INSERT INTO t VALUES (:id)", {"id": 1})])
    with pytest.raises(TransactionError):
        await fake_database.execute_batch(["INSERT INTO t VALUES (2)", "FAIL"])

    assert [c.args[0] for c in logger.sql.call_args_list] == [
        "INSERT INTO t VALUES (1)",
        "commit",
        "INSERT INTO t VALUES (2)",
        "FAIL",
        "rollback",
    ]


@pytest.mark.asyncio
async def test_session_logs_markers(fake_database):
    logger = MagicMock()
    fake_database.bind_logger.enabled = True
    fake_database.bind_logger.logger = logger

    session = await fake_database.begin()
    await session.run("INSERT INTO t VALUES (1)")
    await session.commit()

    assert [c.args[0] for c in logger.sql.call_args_list] == [
        "begin transaction",
        "INSERT INTO t VALUES (1)",
        "commit transaction",
    ]
