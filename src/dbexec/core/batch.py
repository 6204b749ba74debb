"""
All-or-nothing statement batches.

Statements run one after another on a single lease with auto-commit off. The
first failure rolls everything back and stops the batch; statements after it
never run. Only a fully successful batch is committed.
"""
import asyncio
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from dbexec.utility.exceptions import TransactionError
from dbexec.utility.logger import get_logger

from .bind_logger import BindLogger
from .registry import PoolRegistry
from .statement import Statement, StatementResult
from .transaction import rollback_and_release


class BatchTransactionExecutor:
    """Runs an ordered list of statements on one lease as one transaction."""

    def __init__(self, registry: PoolRegistry, bind_logger: BindLogger):
        self.registry = registry
        self.bind_logger = bind_logger
        self.logger = get_logger("dbexec.batch")

    async def execute_batch(
        self, statements: Iterable[Any], alias: Optional[str] = None
    ) -> List[StatementResult]:
        """
        Execute ``statements`` in order as one transaction.

        Args:
            statements: Statements, SQL strings, ``(sql, params)`` tuples or
                ``{"sql"/"query": ..., "params"/"parameters": ...}`` mappings
            alias: Pool to lease from (default alias when omitted)

        Returns:
            One StatementResult per statement, in list order

        Raises:
            ConnectionAcquisitionError: No connection could be leased
            TransactionError: A statement or the commit failed. Everything
                was rolled back; ``position`` names the failing statement.
        """
        batch: List[Statement] = []
        for position, value in enumerate(statements):
            try:
                batch.append(Statement.coerce(value))
            except (ValidationError, TypeError, ValueError) as e:
                raise TransactionError(
                    f"Invalid statement at position {position}: {str(e)}",
                    position=position,
                ) from e

        if not batch:
            return []

        lease = await self.registry.get_connection(alias)
        results: List[StatementResult] = []

        try:
            for position, statement in enumerate(batch):
                self.bind_logger.log_statement(statement.sql, statement.params)
                try:
                    result = await lease.execute(
                        statement.sql, statement.params, auto_commit=False
                    )
                except Exception as e:
                    raise TransactionError(str(e), position=position) from e
                results.append(StatementResult(position=position, result=result))

            try:
                await lease.commit()
            except Exception as e:
                raise TransactionError(f"Commit failed: {str(e)}") from e
        except (Exception, asyncio.CancelledError) as e:
            self.logger.error(
                f"Batch of {len(batch)} failed at statement "
                f"{getattr(e, 'position', None)}, rolling back: {str(e)}"
            )
            await rollback_and_release(
                self.registry, lease, self.bind_logger, self.logger
            )
            raise

        self.bind_logger.log_marker("commit")
        await self.registry.release(lease)
        return results
