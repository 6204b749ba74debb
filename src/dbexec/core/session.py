"""
Manually driven transactions.

A ManualSession keeps one leased connection and one open transaction alive
across as many ``run`` calls as the caller needs, with application logic in
between. The caller ends it with ``commit`` or ``rollback``; a failing
statement ends it automatically.

State machine::

    ACTIVE --run ok--> ACTIVE
    ACTIVE --run fails--> AUTO_ABORTED   (rolled back, connection released)
    ACTIVE --commit--> COMMITTED         (connection released)
    ACTIVE --rollback--> ROLLED_BACK     (connection released)

Every operation on a session that is not ACTIVE raises SessionStateError
without reaching the driver.
"""
import asyncio
import uuid
from enum import Enum
from typing import Optional

from dbexec.connections.pool import Lease
from dbexec.connections.result import QueryResult
from dbexec.utility.exceptions import SessionStateError, TransactionError
from dbexec.utility.logger import get_logger

from .bind_logger import BindLogger
from .registry import PoolRegistry
from .statement import Params
from .transaction import rollback_and_release


class SessionState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    AUTO_ABORTED = "auto_aborted"


class ManualSession:
    """
    Caller-held handle on one leased connection and its open transaction.

    Calls on one session are serialized, so statements always reach the
    database in the order they were issued.
    """

    def __init__(self, lease: Lease, registry: PoolRegistry, bind_logger: BindLogger):
        self.id = uuid.uuid4().hex[:12]
        self._lease = lease
        self._registry = registry
        self._bind_logger = bind_logger
        self._lock = asyncio.Lock()
        self._state = SessionState.ACTIVE
        self.logger = get_logger("dbexec.session")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    @property
    def alias(self) -> str:
        return self._lease.pool.name

    async def run(self, sql: str, params: Params = None) -> QueryResult:
        """
        Execute ``sql`` inside the session's transaction.

        Raises:
            SessionStateError: Session is no longer active
            TransactionError: Statement failed; the session was rolled back,
                its connection released, and it is now AUTO_ABORTED
        """
        async with self._lock:
            self._check_active("run")
            self._bind_logger.log_statement(sql, params)
            try:
                return await self._lease.execute(sql, params, auto_commit=False)
            except (Exception, asyncio.CancelledError) as e:
                self.logger.error(f"Session {self.id} statement failed: {str(e)}")
                await self._abort()
                if isinstance(e, asyncio.CancelledError):
                    raise
                raise TransactionError(str(e)) from e

    async def commit(self) -> None:
        """
        Commit and release the connection.

        Raises:
            SessionStateError: Session is no longer active
            TransactionError: Commit failed; the session was rolled back and
                is now AUTO_ABORTED
        """
        async with self._lock:
            self._check_active("commit")
            try:
                await self._lease.commit()
            except Exception as e:
                self.logger.error(f"Session {self.id} commit failed: {str(e)}")
                await self._abort()
                raise TransactionError(f"Commit failed: {str(e)}") from e

            self._state = SessionState.COMMITTED
            self._bind_logger.log_marker("commit transaction")
            await self._registry.release(self._lease)

    async def rollback(self) -> None:
        """
        Roll back and release the connection.

        Raises:
            SessionStateError: Session is no longer active
        """
        async with self._lock:
            self._check_active("rollback")
            self._state = SessionState.ROLLED_BACK
            await rollback_and_release(
                self._registry, self._lease, self._bind_logger, self.logger
            )

    async def _abort(self) -> None:
        self._state = SessionState.AUTO_ABORTED
        await rollback_and_release(
            self._registry, self._lease, self._bind_logger, self.logger
        )

    def _check_active(self, operation: str) -> None:
        if self._state != SessionState.ACTIVE:
            raise SessionStateError(
                f"Cannot {operation}: session {self.id} is {self._state.value}"
            )

    def __repr__(self) -> str:
        return f"<ManualSession {self.id} alias={self.alias!r} {self._state.value}>"


class SessionManager:
    """Opens ManualSessions and drives them through handle-style calls."""

    def __init__(self, registry: PoolRegistry, bind_logger: BindLogger):
        self.registry = registry
        self.bind_logger = bind_logger

    async def begin(self, alias: Optional[str] = None) -> ManualSession:
        """
        Lease a connection and open a session on it. No statement runs yet.

        Raises:
            ConnectionAcquisitionError: No connection could be leased
        """
        lease = await self.registry.get_connection(alias)
        self.bind_logger.log_marker("begin transaction")
        return ManualSession(lease, self.registry, self.bind_logger)

    async def run(
        self, session: ManualSession, sql: str, params: Params = None
    ) -> QueryResult:
        return await session.run(sql, params)

    async def commit(self, session: ManualSession) -> None:
        await session.commit()

    async def rollback(self, session: ManualSession) -> None:
        await session.rollback()
