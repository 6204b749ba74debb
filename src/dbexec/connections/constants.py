"""
Shared constants and default configurations for pools and drivers.

Defaults live in pydantic models so they are validated once and shared by the
pool config, the env loader, and the driver factories.
"""

from pydantic import BaseModel, Field

DEFAULT_ALIAS = "default"

# Worker threads kept on top of pool_max for non-query driver calls
DEFAULT_THREAD_POOL_SIZE = 4


class PoolDefaults(BaseModel):
    """Default pool sizing and queueing."""

    pool_min: int = Field(default=10, ge=0, description="Connections opened up front")
    pool_max: int = Field(default=10, ge=1, description="Maximum live connections")
    pool_increment: int = Field(
        default=0, ge=0, description="Connections opened per growth step (0 = one)"
    )
    pool_ping_interval: int = Field(
        default=60,
        description="Ping connections idle longer than this (s); 0 always, <0 never",
    )
    queue_max: int = Field(
        default=500,
        ge=-1,
        description="Max waiting acquisitions (0 = no queue, -1 = unbounded)",
    )
    queue_timeout: int = Field(
        default=60_000, ge=0, description="Max wait for a connection (ms, 0 = forever)"
    )
    pool_closing_time: int = Field(
        default=0, ge=0, description="Drain grace period on close (s, 0 = force)"
    )


class OracleConnectionDefaults(BaseModel):
    """Default Oracle connection configuration."""

    user: str = Field(default="hr")
    password: str = Field(default="hr")
    connect_string: str = Field(default="localhost:1521/XEPDB1")
    thin_mode: bool = Field(default=True, description="python-oracledb thin mode")


class MssqlConnectionDefaults(BaseModel):
    """Default MSSQL connection configuration."""

    driver: str = Field(
        default="ODBC Driver 18 for SQL Server",
        description="ODBC driver name for SQL Server connections",
    )
    encrypt: str = Field(
        default="Yes", description="Enable encryption for SQL Server connections"
    )
    trust_cert: str = Field(
        default="Yes", description="Trust server certificate for SQL Server connections"
    )
    timeout: int = Field(default=30, ge=1, description="Connection timeout in seconds")


POOL_DEFAULTS = PoolDefaults()
ORACLE_CONNECTION_DEFAULTS = OracleConnectionDefaults()
MSSQL_CONNECTION_DEFAULTS = MssqlConnectionDefaults()


def get_pool_defaults() -> dict:
    """
    Get default pool sizing and queue options.

    Returns:
        Dictionary with default pool options
    """
    return POOL_DEFAULTS.model_dump()


def get_mssql_defaults() -> dict:
    """
    Get default MSSQL connection options.

    Returns:
        Dictionary with default MSSQL connection options
    """
    return MSSQL_CONNECTION_DEFAULTS.model_dump()
