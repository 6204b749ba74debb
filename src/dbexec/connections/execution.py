"""
Execution engines for blocking DB-API drivers.

Every supported driver (python-oracledb, pyodbc, sqlite3) is synchronous, so
each driver call is pushed off the event loop:
- ThreadPoolEngine: dedicated worker threads per pool, sized to the pool
- SimpleEngine: asyncio.to_thread() for one-off calls
"""
import asyncio
import concurrent.futures
import functools
from abc import ABC, abstractmethod
from typing import Callable, Optional, TypeVar

from dbexec.utility.logger import get_logger

T = TypeVar("T")

logger = get_logger("dbexec.connections.execution")


class ExecutionEngine(ABC):
    """Base class for running synchronous driver calls from async code."""

    @abstractmethod
    async def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute a synchronous operation.

        Args:
            func: Synchronous function to execute
            *args, **kwargs: Arguments to pass to function

        Returns:
            Result of function execution
        """
        pass

    def shutdown(self) -> None:
        """Release engine resources."""
        pass


class ThreadPoolEngine(ExecutionEngine):
    """
    Execution engine backed by its own thread pool.

    One engine is created per connection pool with ``pool_max`` plus a few
    spare workers, so every leased connection can have a driver call in flight
    while commits, rollbacks and closes still find a free thread.
    """

    def __init__(self, max_workers: int = 8, name: str = "dbexec"):
        self.max_workers = max_workers
        self.name = name
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = (
            concurrent.futures.ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix=f"dbexec-{name}"
            )
        )
        logger.debug(f"Initialized ThreadPoolEngine '{name}' with {max_workers} workers")

    async def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute single synchronous operation in the thread pool.

        Raises:
            RuntimeError: If the engine has been shut down
        """
        if self._executor is None:
            raise RuntimeError(f"ThreadPoolEngine '{self.name}' is shut down")

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(func, *args, **kwargs)
        )

    def shutdown(self) -> None:
        """Shutdown thread pool."""
        if self._executor:
            logger.debug(f"Shutting down ThreadPoolEngine '{self.name}'")
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    @property
    def is_running(self) -> bool:
        """Check if the thread pool is still accepting work."""
        return self._executor is not None


class SimpleEngine(ExecutionEngine):
    """Execution engine using asyncio.to_thread()."""

    async def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)
