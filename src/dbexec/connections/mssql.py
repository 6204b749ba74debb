"""
MS SQL Server connection factory.

Authenticates with SQL credentials when the pool config carries a user, and
with an Azure AD access token otherwise:
- Token caching per factory with a 5-minute expiry buffer
- All blocking calls run on the factory's execution engine
"""
import struct
import time
from typing import Any, Dict, Optional, Tuple

import pyodbc
from azure.core.credentials import AccessToken
from azure.identity import DefaultAzureCredential

from dbexec.utility.exceptions import ConnectionAcquisitionError

from .base import BaseConnection
from .constants import MSSQL_CONNECTION_DEFAULTS


class MssqlConnection(BaseConnection, driver="mssql"):
    """
    MS SQL Server connection factory.

    ``connect_string`` is ``server/database``; the server part may carry a
    port as ``host,1433``.

    Options:
        - odbc_driver: ODBC driver name (default: "ODBC Driver 18 for SQL Server")
        - encrypt: Enable encryption (default: "Yes")
        - trust_cert: Trust server certificate (default: "Yes")
        - timeout: Connection timeout in seconds (default: 30)

    Example:
        ```python
        factory = MssqlConnection(
            PoolConfig(
                driver="mssql",
                user=None,
                password=None,
                connect_string="myserver.database.windows.net/mydatabase",
            )
        )
        conn = await factory.get_connection()
        ```
    """

    # SQL Server constant for access token
    SQL_COPT_SS_ACCESS_TOKEN = 1256

    # Token refresh buffer (seconds before expiry)
    TOKEN_EXPIRY_BUFFER = 300  # 5 minutes

    def __init__(self, config, engine=None):
        super().__init__(config, engine)

        self.server, _, self.database = config.connect_string.partition("/")
        if not self.server or not self.database:
            raise ValueError(
                "MSSQL connect_string must look like 'server/database', "
                f"got '{config.connect_string}'"
            )

        self.odbc_driver = self.options.get(
            "odbc_driver", MSSQL_CONNECTION_DEFAULTS.driver
        )
        self.encrypt = self.options.get("encrypt", MSSQL_CONNECTION_DEFAULTS.encrypt)
        self.trust_cert = self.options.get(
            "trust_cert", MSSQL_CONNECTION_DEFAULTS.trust_cert
        )
        self.timeout = self.options.get("timeout", MSSQL_CONNECTION_DEFAULTS.timeout)

        self.use_azure_ad = not config.user
        self._credential: Optional[DefaultAzureCredential] = None
        self._token: Optional[AccessToken] = None

    async def get_connection(self) -> pyodbc.Connection:
        """
        Create and return a new MSSQL connection.

        Raises:
            ConnectionAcquisitionError: If the ODBC driver is missing or the
                server cannot be reached
        """
        token = await self._get_token() if self.use_azure_ad else None
        conn_str, attrs_before = self._build_connection_string(token)

        try:
            self.logger.debug(f"Connecting to {self.describe_target()}")
            return await self.engine.execute(
                pyodbc.connect, conn_str, attrs_before=attrs_before
            )
        except pyodbc.Error as e:
            error_msg = str(e)
            if "IM002" in error_msg:
                raise ConnectionAcquisitionError(
                    f"ODBC Driver not found. Expected: {self.odbc_driver}",
                    alias=self.config.alias,
                ) from e
            raise ConnectionAcquisitionError(
                f"Connection error: {error_msg}", alias=self.config.alias
            ) from e

    def _connect(self) -> Any:
        conn_str, attrs_before = self._build_connection_string(None)
        return pyodbc.connect(conn_str, attrs_before=attrs_before)

    async def _get_token(self) -> AccessToken:
        """
        Get Azure AD token with caching.

        Caches token and only refreshes when within TOKEN_EXPIRY_BUFFER
        seconds of expiration.
        """
        if self._token:
            time_remaining = self._token.expires_on - time.time()
            if time_remaining > self.TOKEN_EXPIRY_BUFFER:
                return self._token

        if self._credential is None:
            self._credential = DefaultAzureCredential()

        self.logger.debug("Fetching new Azure AD token")
        self._token = await self.engine.execute(
            self._credential.get_token, "https://database.windows.net/.default"
        )
        return self._token

    def _build_connection_string(
        self, token: Optional[AccessToken]
    ) -> Tuple[str, Optional[Dict]]:
        """
        Build ODBC connection string and attributes.

        Returns:
            Tuple of (connection_string, attrs_before_dict)
        """
        conn_str = (
            f"DRIVER={{{self.odbc_driver}}};"
            f"SERVER={self.server};"
            f"DATABASE={self.database};"
            f"Encrypt={self.encrypt};"
            f"TrustServerCertificate={self.trust_cert};"
            f"Timeout={self.timeout}"
        )

        if token is None:
            conn_str += f";UID={self.config.user};PWD={self.config.password}"
            return conn_str, None

        attrs_before = {self.SQL_COPT_SS_ACCESS_TOKEN: self._convert_token_to_bytes(token)}
        return conn_str, attrs_before

    def _convert_token_to_bytes(self, token: AccessToken) -> bytes:
        """
        Convert Azure AD token to the length-prefixed UTF-16LE form SQL Server
        expects for ODBC access-token authentication.
        """
        encoded_bytes = token.token.encode("utf-16-le")
        return struct.pack("<i", len(encoded_bytes)) + encoded_bytes

    def describe_target(self) -> str:
        """Mask server name for logging (show only first part)."""
        server = self.server.split(".")[0] if "." in self.server else self.server
        return f"{server}.{self.database}"
