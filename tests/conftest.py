"""
Common test fixtures and configuration.

Provides an in-memory fake DB-API driver registered as ``fake`` so pool,
batch and session behavior can be observed without a database server, plus
sqlite-backed settings for end-to-end checks.
"""
import logging
import os
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, List

import pytest
from click.testing import CliRunner

# Add src directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Keep log files out of the working tree
os.environ.setdefault("DBEXEC_LOG_DIR", tempfile.mkdtemp(prefix="dbexec-logs-"))

from dbexec.configs import DbExecSettings, PoolConfig  # noqa: E402
from dbexec.connections.base import BaseConnection  # noqa: E402
from dbexec.core import Database  # noqa: E402


class FakeDriverError(Exception):
    """Error raised by the fake driver."""


class FakeDatabase:
    """
    Committed state shared by every fake connection of one pool.

    Statements:
        - ``INSERT ...``: adds its params to the connection's pending rows
        - ``SELECT ...``: returns one row ``{"N": visible row count}``
        - ``FAIL ...``: raises FakeDriverError
        - ``SLEEP <seconds>``: blocks the worker thread
        - ``SLOWINSERT <seconds>``: blocks, then behaves like ``INSERT``
    """

    def __init__(self):
        self.rows: List[Any] = []
        self.executed: List[str] = []
        self.opened = 0
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0
        self.fail_connect = False
        self.fail_commit = False
        self.fail_rollback = False
        self.fail_close = False
        self.alive = True
        self.ping_delay = 0.0
        self.lock = threading.Lock()


class FakeCursor:
    def __init__(self, conn: "FakeRawConnection"):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self._rows: List[tuple] = []

    def execute(self, sql: str, params: Any = None) -> None:
        db = self.conn.db
        with db.lock:
            db.executed.append(sql)
        if self.conn.closed:
            raise FakeDriverError("connection is closed")

        command = sql.strip().split()[0].upper()
        if command == "FAIL":
            raise FakeDriverError(f"statement failed: {sql}")
        if command == "SLEEP":
            time.sleep(float(sql.split()[1]))
            self.rowcount = 0
        elif command == "SLOWINSERT":
            time.sleep(float(sql.split()[1]))
            self.conn.pending.append(params)
            self.rowcount = 1
        elif command == "INSERT":
            self.conn.pending.append(params)
            self.rowcount = 1
        elif command == "SELECT":
            self.description = [("N", None, None, None, None, None, None)]
            self._rows = [(len(db.rows) + len(self.conn.pending),)]
        else:
            self.rowcount = 0

    def fetchall(self) -> List[tuple]:
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        pass


class FakeRawConnection:
    def __init__(self, db: FakeDatabase):
        self.db = db
        self.pending: List[Any] = []
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        if self.db.fail_commit:
            raise FakeDriverError("commit failed")
        with self.db.lock:
            self.db.rows.extend(self.pending)
            self.db.commits += 1
        self.pending = []

    def rollback(self) -> None:
        if self.db.fail_rollback:
            raise FakeDriverError("rollback failed")
        with self.db.lock:
            self.db.rollbacks += 1
        self.pending = []

    def close(self) -> None:
        if self.db.fail_close:
            raise FakeDriverError("close failed")
        self.closed = True
        with self.db.lock:
            self.db.closed += 1


class FakeConnection(BaseConnection, driver="fake"):
    """Connection factory for FakeDatabase (``options={"database": db}``)."""

    def __init__(self, config, engine=None):
        super().__init__(config, engine)
        self.db: FakeDatabase = self.options["database"]

    def _connect(self) -> Any:
        if self.db.fail_connect:
            raise FakeDriverError("connection refused")
        with self.db.lock:
            self.db.opened += 1
        return FakeRawConnection(self.db)

    def _ping(self, conn: Any) -> None:
        time.sleep(self.db.ping_delay)
        if not self.db.alive:
            raise FakeDriverError("ping failed")


@pytest.fixture(autouse=True)
def setup_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
    yield


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def make_fake_config(fake_db):
    """Build fake-driver PoolConfigs sharing ``fake_db``."""

    def _make(alias: str = "default", **overrides) -> PoolConfig:
        data = {
            "alias": alias,
            "driver": "fake",
            "user": None,
            "password": None,
            "connect_string": "fake://memory",
            "pool_min": 1,
            "pool_max": 3,
            "queue_timeout": 2000,
            "options": {"database": fake_db},
        }
        data.update(overrides)
        return PoolConfig(**data)

    return _make


@pytest.fixture
def fake_config(make_fake_config) -> PoolConfig:
    return make_fake_config()


@pytest.fixture
def fake_settings(fake_config) -> DbExecSettings:
    return DbExecSettings(pool=fake_config, environment="test")


@pytest.fixture
def sqlite_settings(tmp_path) -> DbExecSettings:
    """Settings for a sqlite file pool with two connections."""
    return DbExecSettings(
        pool=PoolConfig(
            driver="sqlite",
            user=None,
            password=None,
            connect_string=str(tmp_path / "dbexec.db"),
            pool_min=1,
            pool_max=2,
            queue_timeout=5000,
        ),
        environment="dev",
    )


@pytest.fixture
async def fake_database(fake_settings):
    """Initialized Database on the fake driver (bind logging off)."""
    db = Database(fake_settings)
    await db.initialize()
    yield db
    await db.close_all()


@pytest.fixture
async def sqlite_database(sqlite_settings):
    """Initialized Database on a sqlite file with an empty ``items`` table."""
    db = Database(sqlite_settings)
    await db.initialize()
    await db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
    yield db
    await db.close_all()
