"""
Shared clean-up for failed units of work.
"""
from dbexec.connections.pool import Lease
from dbexec.utility.logger import DbExecLogger

from .bind_logger import BindLogger
from .registry import PoolRegistry


async def rollback_and_release(
    registry: PoolRegistry,
    lease: Lease,
    bind_logger: BindLogger,
    logger: DbExecLogger,
) -> None:
    """
    Roll back the lease's open transaction and release it.

    A connection whose rollback failed may still hold uncommitted work, so it
    is closed rather than returned to the pool. Rollback errors are logged and
    never replace the error that triggered the clean-up.
    """
    discard = False
    try:
        await lease.rollback()
        bind_logger.log_marker("rollback")
    except Exception as e:
        discard = True
        logger.error(f"Rollback failed, discarding connection: {str(e)}")
    finally:
        await registry.release(lease, discard=discard)
