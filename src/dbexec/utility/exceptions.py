"""
Custom exceptions for dbexec - clear, actionable error handling.

dbexec uses a hierarchical exception system so callers can tell apart
"the pool could not give me a connection" from "my statement failed" from
"I used a finished session". Every exception carries a message, and driver
errors are always chained (`raise ... from e`) so the original traceback
survives.

Exception Hierarchy:
    DbExecError (base)
    ├── ConfigError - Invalid or missing configuration
    ├── PoolError
    │   ├── PoolCreationError - Driver rejected the pool or alias already taken
    │   ├── PoolCloseError - Pool missing or driver failed while closing
    │   ├── ConnectionAcquisitionError - No connection could be leased
    │   │   ├── QueueFullError - Too many callers already waiting
    │   │   └── QueueTimeoutError - Waited longer than queue_timeout
    │   └── ConnectionReleaseError - Lease released twice or to the wrong pool
    ├── ExecutionError - A single auto-committed statement failed
    ├── TransactionError - Batch or session statement failed (already rolled back)
    └── SessionStateError - Operation issued against a finished session

Usage Guidelines:
    - Connection release and rollback are done by the component that detected
      the failure before the exception is raised. Callers never clean up a
      connection after catching ExecutionError or TransactionError.
    - Nothing is retried. A failed operation stays failed.
"""
from typing import Optional


class DbExecError(Exception):
    """Base exception for all dbexec errors."""

    pass


class ConfigError(DbExecError):
    """Raised when there's an error in configuration."""

    pass


class PoolError(DbExecError):
    """Base exception for pool-related errors."""

    def __init__(self, message: str, alias: Optional[str] = None):
        super().__init__(message)
        self.alias = alias


class PoolCreationError(PoolError):
    """Pool could not be created."""

    pass


class PoolCloseError(PoolError):
    """Pool could not be closed."""

    pass


class ConnectionAcquisitionError(PoolError):
    """A connection could not be leased from a pool."""

    pass


class QueueFullError(ConnectionAcquisitionError):
    """Acquisition queue already holds queue_max waiters."""

    pass


class QueueTimeoutError(ConnectionAcquisitionError):
    """Acquisition waited longer than queue_timeout."""

    pass


class ConnectionReleaseError(PoolError):
    """A lease was released more than once or to a foreign pool."""

    pass


class ExecutionError(DbExecError):
    """Single statement failed."""

    pass


class TransactionError(DbExecError):
    """
    Statement inside a batch or manual session failed.

    By the time this is raised the transaction has been rolled back and the
    connection returned to its pool.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class SessionStateError(DbExecError):
    """Operation issued against a session that is no longer active."""

    pass
