"""
Utility functions and classes for dbexec.
"""
from .binding import render_bound_sql
from .exceptions import (
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
from .logger import DbExecLogger, get_logger

__all__ = [
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
    "DbExecLogger",
    "get_logger",
    "render_bound_sql",
]
