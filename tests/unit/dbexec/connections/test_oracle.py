"""
Unit tests for OracleConnection.

python-oracledb is mocked; no database or Oracle client is needed.
"""
from unittest.mock import MagicMock, patch

import pytest

oracledb = pytest.importorskip("oracledb")

from dbexec.configs import PoolConfig  # noqa: E402
from dbexec.connections.base import BaseConnection  # noqa: E402
from dbexec.connections.oracle import OracleConnection, enable_thick_mode  # noqa: E402


def test_default_config_uses_oracle():
    """Test the default pool config resolves to the Oracle factory."""
    factory = BaseConnection.create(PoolConfig())

    assert isinstance(factory, OracleConnection)
    assert factory.thin_mode is True
    assert factory.describe_target() == "localhost:1521/XEPDB1"


@pytest.mark.asyncio
async def test_get_connection_passes_credentials_and_options():
    """Test connect() receives credentials, DSN and extra options."""
    factory = OracleConnection(
        PoolConfig(options={"thin_mode": True, "stmtcachesize": 40})
    )
    raw = MagicMock()

    with patch.object(oracledb, "connect", return_value=raw) as mock_connect, patch(
        "dbexec.connections.oracle.enable_thick_mode"
    ) as mock_thick:
        conn = await factory.get_connection()

    assert conn is raw
    mock_connect.assert_called_once_with(
        user="hr", password="hr", dsn="localhost:1521/XEPDB1", stmtcachesize=40
    )
    mock_thick.assert_not_called()


@pytest.mark.asyncio
async def test_thick_mode_loads_client_before_connecting():
    factory = OracleConnection(
        PoolConfig(options={"thin_mode": False, "lib_dir": "/opt/oracle/client"})
    )

    with patch.object(oracledb, "connect", return_value=MagicMock()), patch(
        "dbexec.connections.oracle.enable_thick_mode"
    ) as mock_thick:
        await factory.get_connection()

    mock_thick.assert_called_once_with("/opt/oracle/client")


def test_enable_thick_mode_only_once():
    """Test the client library is only initialized while in thin mode."""
    with patch.object(oracledb, "is_thin_mode", side_effect=[True, False]), patch.object(
        oracledb, "init_oracle_client"
    ) as mock_init:
        enable_thick_mode("/opt/oracle/client")
        enable_thick_mode("/opt/oracle/client")

    mock_init.assert_called_once_with(lib_dir="/opt/oracle/client")


@pytest.mark.asyncio
async def test_ping_uses_driver_ping():
    factory = OracleConnection(PoolConfig())
    raw = MagicMock()

    assert await factory.is_connection_alive(raw)
    raw.ping.assert_called_once_with()

    raw.ping.side_effect = oracledb.DatabaseError("DPY-4011: connection closed")
    assert not await factory.is_connection_alive(raw)
