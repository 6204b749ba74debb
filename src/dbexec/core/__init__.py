"""
Core execution modes for dbexec.
"""
from .batch import BatchTransactionExecutor
from .bind_logger import BindLogger
from .database import Database
from .registry import PoolRegistry
from .session import ManualSession, SessionManager, SessionState
from .single import SingleExecutor
from .statement import Statement, StatementResult

__all__ = [
    "BatchTransactionExecutor",
    "BindLogger",
    "Database",
    "ManualSession",
    "PoolRegistry",
    "SessionManager",
    "SessionState",
    "SingleExecutor",
    "Statement",
    "StatementResult",
]
