"""
SQLite connection factory.

Useful for local development and tests. ``connect_string`` is the database
file path (or a ``file:`` URI with ``uri: true`` in the options). Connections
are created with ``check_same_thread=False`` because the execution engine may
run successive calls for one lease on different worker threads; a lease is
never used by two operations at once.
"""
import sqlite3
from typing import Any

from .base import BaseConnection


class SqliteConnection(BaseConnection, driver="sqlite"):
    """
    SQLite connection factory.

    Options:
        - timeout: Seconds to wait on a locked database (default: 5.0)
        - uri: Treat connect_string as a URI (default: False)
    """

    def _connect(self) -> Any:
        self.logger.debug(f"Opening {self.describe_target()}")
        return sqlite3.connect(
            self.config.connect_string,
            timeout=float(self.options.get("timeout", 5.0)),
            uri=bool(self.options.get("uri", False)),
            check_same_thread=False,
        )
