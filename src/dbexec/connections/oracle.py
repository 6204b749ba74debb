"""
Oracle connection factory built on python-oracledb.

python-oracledb runs in thin mode (pure Python) by default. Setting
``thin_mode`` to False in the pool options switches the process to thick mode
by loading the Oracle client libraries before the first connection is opened.
Thick mode is process-wide and cannot be undone once enabled.
"""
import threading
from typing import Any, Optional

import oracledb

from .base import BaseConnection

_thick_mode_lock = threading.Lock()


def enable_thick_mode(lib_dir: Optional[str] = None) -> None:
    """
    Load the Oracle client libraries once for this process.

    Safe to call repeatedly; only the first call on a thin-mode process does
    any work.
    """
    with _thick_mode_lock:
        if oracledb.is_thin_mode():
            if lib_dir:
                oracledb.init_oracle_client(lib_dir=lib_dir)
            else:
                oracledb.init_oracle_client()


class OracleConnection(BaseConnection, driver="oracle"):
    """
    Oracle connection factory.

    Options:
        - thin_mode: Use thin mode (default: True)
        - lib_dir: Oracle client directory for thick mode
        - any other key is passed to ``oracledb.connect()``

    Example:
        ```python
        factory = OracleConnection(
            PoolConfig(user="hr", password="hr", connect_string="db:1521/XEPDB1")
        )
        conn = await factory.get_connection()
        ```
    """

    ping_statement = "SELECT 1 FROM DUAL"

    def __init__(self, config, engine=None):
        super().__init__(config, engine)
        self.thin_mode = self.options.pop("thin_mode", True)
        self.lib_dir = self.options.pop("lib_dir", None)

    def _connect(self) -> Any:
        if not self.thin_mode:
            enable_thick_mode(self.lib_dir)

        self.logger.debug(f"Connecting to {self.describe_target()}")
        return oracledb.connect(
            user=self.config.user,
            password=self.config.password,
            dsn=self.config.connect_string,
            **self.options,
        )

    def _ping(self, conn: Any) -> None:
        conn.ping()
