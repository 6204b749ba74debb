"""
Connection management for dbexec.

Provides connection pooling and driver-specific connection factories.

Key components:
- BaseConnection: Interface for driver connection factories
- ConnectionPool: Bounded async pool handing out Leases
- OracleConnection / MssqlConnection / SqliteConnection: driver factories,
  imported on first use through BaseConnection.create()
"""
from .base import BUILTIN_DRIVERS, BaseConnection
from .constants import DEFAULT_ALIAS, get_mssql_defaults, get_pool_defaults
from .execution import ExecutionEngine, SimpleEngine, ThreadPoolEngine
from .pool import ConnectionPool, Lease, PoolState
from .result import QueryResult

__all__ = [
    "BUILTIN_DRIVERS",
    "BaseConnection",
    "ConnectionPool",
    "DEFAULT_ALIAS",
    "ExecutionEngine",
    "Lease",
    "PoolState",
    "QueryResult",
    "SimpleEngine",
    "ThreadPoolEngine",
    "get_mssql_defaults",
    "get_pool_defaults",
]
