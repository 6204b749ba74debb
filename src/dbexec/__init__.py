"""
Pooled database access with single, batch and manual-session execution.
"""
from .configs import DbExecSettings, PoolConfig
from .connections import BaseConnection, ConnectionPool, Lease, QueryResult
from .core import (
    Database,
    ManualSession,
    PoolRegistry,
    SessionState,
    Statement,
    StatementResult,
)
from .utility.exceptions import (
    ConfigError,
    ConnectionAcquisitionError,
    ConnectionReleaseError,
    DbExecError,
    ExecutionError,
    PoolCloseError,
    PoolCreationError,
    PoolError,
    QueueFullError,
    QueueTimeoutError,
    SessionStateError,
    TransactionError,
)

__all__ = [
    # Core components
    "Database",
    "PoolRegistry",
    "ManualSession",
    "SessionState",
    "ConnectionPool",
    "Lease",
    "BaseConnection",
    # Models
    "DbExecSettings",
    "PoolConfig",
    "Statement",
    "StatementResult",
    "QueryResult",
    # Errors
    "DbExecError",
    "ConfigError",
    "PoolError",
    "PoolCreationError",
    "PoolCloseError",
    "ConnectionAcquisitionError",
    "QueueFullError",
    "QueueTimeoutError",
    "ConnectionReleaseError",
    "ExecutionError",
    "TransactionError",
    "SessionStateError",
]
