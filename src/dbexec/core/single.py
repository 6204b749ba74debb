"""
Single auto-committed statements.
"""
from typing import Optional

from dbexec.connections.result import QueryResult
from dbexec.utility.exceptions import ExecutionError
from dbexec.utility.logger import get_logger

from .bind_logger import BindLogger
from .registry import PoolRegistry
from .statement import Params


class SingleExecutor:
    """Runs one statement on its own lease with auto-commit."""

    def __init__(self, registry: PoolRegistry, bind_logger: BindLogger):
        self.registry = registry
        self.bind_logger = bind_logger
        self.logger = get_logger("dbexec.single")

    async def execute(
        self, sql: str, params: Params = None, alias: Optional[str] = None
    ) -> QueryResult:
        """
        Execute ``sql`` and commit it.

        The lease is released before this returns on both the success and the
        failure path. Failures are not retried.

        Raises:
            ConnectionAcquisitionError: No connection could be leased
            ExecutionError: The statement failed
        """
        lease = await self.registry.get_connection(alias)
        try:
            self.bind_logger.log_statement(sql, params)
            return await lease.execute(sql, params, auto_commit=True)
        except Exception as e:
            self.logger.error(f"Statement failed: {str(e)}")
            raise ExecutionError(str(e)) from e
        finally:
            await self.registry.release(lease)
