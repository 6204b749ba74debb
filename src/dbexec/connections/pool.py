"""
Connection pool with bounded size and a bounded acquisition queue.

Provides connection reuse across concurrent operations without exceeding the
database's connection limits. Every checkout is a Lease that must be released
exactly once.
"""
import asyncio
import itertools
import time
from collections import deque
from contextlib import asynccontextmanager
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Deque,
    Dict,
    List,
    NamedTuple,
    Optional,
    Set,
)

from dbexec.utility.exceptions import (
    ConnectionAcquisitionError,
    ConnectionReleaseError,
    PoolCloseError,
    QueueFullError,
    QueueTimeoutError,
)
from dbexec.utility.logger import get_logger

from .base import BaseConnection
from .result import QueryResult

if TYPE_CHECKING:
    from dbexec.configs.pool_config import PoolConfig

_lease_ids = itertools.count(1)


class PoolState(str, Enum):
    CREATED = "created"
    SERVING = "serving"
    CLOSING = "closing"
    CLOSED = "closed"


class _IdleEntry(NamedTuple):
    conn: Any
    last_used: float  # time.monotonic() when returned to the pool


class Lease:
    """
    Exclusive checkout of one pooled connection.

    A lease is released exactly once through ``ConnectionPool.release`` (or
    ``Lease.release``). Releasing twice raises ConnectionReleaseError.

    Driver calls run in worker threads that cannot be interrupted, so a
    cancelled caller leaves its call running. The lease remembers that call:
    the next call on the lease, and the release, wait for it to finish so the
    connection is never used by two threads at once.
    """

    def __init__(self, pool: "ConnectionPool", connection: Any):
        self.id = next(_lease_ids)
        self.pool = pool
        self.connection = connection
        self.acquired_at = time.monotonic()
        self.released = False
        # Set when the pool force-closed the connection underneath the lease
        self.revoked = False
        self._in_flight: Optional[asyncio.Future] = None

    async def release(self, discard: bool = False) -> None:
        await self.pool.release(self, discard=discard)

    async def execute(
        self, sql: str, params: Any = None, auto_commit: bool = False
    ) -> QueryResult:
        """Execute one statement on the leased connection."""
        return await self._call(
            self.pool.connection_factory.execute,
            sql,
            params,
            auto_commit=auto_commit,
        )

    async def commit(self) -> None:
        await self._call(self.pool.connection_factory.commit)

    async def rollback(self) -> None:
        await self._call(self.pool.connection_factory.rollback)

    async def wait_idle(self) -> None:
        """Wait until no driver call is running on the connection."""
        call = self._in_flight
        if call is None:
            return
        if not call.done():
            await asyncio.wait({call})
        if not call.cancelled():
            # Retrieve the outcome; the caller that started it is gone
            call.exception()
        self._in_flight = None

    async def _call(self, method, *args, **kwargs) -> Any:
        self._check_usable()
        await self.wait_idle()
        call = asyncio.ensure_future(method(self.connection, *args, **kwargs))
        self._in_flight = call
        # Cancelling the caller must not cancel the driver call itself
        return await asyncio.shield(call)

    def _check_usable(self) -> None:
        if self.released:
            raise ConnectionReleaseError(
                f"Lease {self.id} was already released", alias=self.pool.name
            )

    def __repr__(self) -> str:
        status = "released" if self.released else "active"
        return f"<Lease {self.id} pool={self.pool.name!r} {status}>"


class ConnectionPool:
    """
    Async connection pool for one alias.

    Opens ``pool_min`` connections at start-up and grows by
    ``pool_increment`` (at least one) up to ``pool_max``. When every
    connection is leased, callers wait in FIFO order; at most ``queue_max``
    may wait and none waits longer than ``queue_timeout``.

    Example:
        ```python
        pool = ConnectionPool(config, BaseConnection.create(config))
        await pool.initialize()

        async with pool.connection() as lease:
            result = await lease.execute("SELECT 1 FROM DUAL")

        await pool.close(drain_time=10)
        ```
    """

    def __init__(self, config: "PoolConfig", connection_factory: BaseConnection):
        """
        Initialize connection pool.

        Args:
            config: Pool sizing, queueing and alias
            connection_factory: Factory that opens and drives connections
        """
        self.config = config
        self.name = config.alias
        self.connection_factory = connection_factory

        self._idle: Deque[_IdleEntry] = deque()
        self._leases: Set[Lease] = set()
        self._waiters: Deque[asyncio.Future] = deque()
        # Connections being opened or pinged, not yet idle or leased
        self._pending = 0
        self._drained: Optional[asyncio.Event] = None
        self._state = PoolState.CREATED

        self.logger = get_logger(f"dbexec.pool.{self.name}")

    async def initialize(self) -> None:
        """
        Open ``pool_min`` connections and start serving.

        Raises:
            Exception: Whatever the driver raised for the first failed
                connection; connections already opened are closed first
        """
        if self._state != PoolState.CREATED:
            self.logger.warning(f"Pool {self.name} already initialized")
            return

        self.logger.debug(
            f"Opening {self.config.pool_min} connections to "
            f"{self.connection_factory.describe_target()}"
        )

        for i in range(self.config.pool_min):
            try:
                conn = await self.connection_factory.get_connection()
            except Exception as e:
                self.logger.error(f"Failed to create connection {i + 1}: {str(e)}")
                await self._close_idle()
                self.connection_factory.shutdown()
                self._state = PoolState.CLOSED
                raise
            self._idle.append(_IdleEntry(conn, time.monotonic()))

        self._state = PoolState.SERVING

    async def acquire(self) -> Lease:
        """
        Lease a connection from the pool.

        Uses an idle connection when one is available, opens new connections
        while below ``pool_max``, and otherwise waits in the queue.

        Raises:
            ConnectionAcquisitionError: Pool not serving, or a new connection
                could not be opened
            QueueFullError: ``queue_max`` callers are already waiting
            QueueTimeoutError: Waited longer than ``queue_timeout``
        """
        self._check_serving()

        conn = await self._take_idle()
        if conn is None and self.total < self.config.pool_max:
            conn = await self._grow()
        if conn is not None:
            if self._state != PoolState.SERVING:
                # Pool started closing while the connection was being opened
                await self._close_quietly(conn)
                self._check_serving()
            return self._new_lease(conn)

        return await self._wait_for_lease()

    async def release(self, lease: Lease, discard: bool = False) -> None:
        """
        Return a leased connection to the pool.

        With ``discard`` (or while the pool is closing) the connection is
        closed instead of being reused; if the pool already force-closed it,
        nothing more happens.

        Raises:
            ConnectionReleaseError: Lease belongs to another pool or was
                already released
        """
        if lease.pool is not self:
            raise ConnectionReleaseError(
                f"Lease {lease.id} does not belong to pool '{self.name}'",
                alias=self.name,
            )
        if lease.released:
            raise ConnectionReleaseError(
                f"Lease {lease.id} was already released", alias=self.name
            )

        lease.released = True
        # A call abandoned by a cancelled caller may still be using it
        await lease.wait_idle()
        self._leases.discard(lease)

        if lease.revoked:
            pass
        elif self._state == PoolState.SERVING and not discard:
            self._return_connection(lease.connection)
        else:
            await self._close_quietly(lease.connection)
            await self._serve_waiters()

        if self._drained is not None and not self._leases:
            self._drained.set()

        self.logger.debug(
            f"Released lease {lease.id} (in use: {self.in_use}, idle: {self.available})"
        )

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Lease]:
        """Lease a connection for the duration of an ``async with`` block."""
        lease = await self.acquire()
        try:
            yield lease
        finally:
            await self.release(lease)

    async def close(self, drain_time: float = 0) -> None:
        """
        Stop serving and close every connection.

        Queued callers fail immediately. Idle connections are closed at once.
        Leased connections get ``drain_time`` seconds to come back; whatever
        is still leased afterwards is force-closed. ``drain_time=0`` closes
        everything immediately.

        Raises:
            PoolCloseError: If the driver failed to close any connection
        """
        if self._state in (PoolState.CLOSING, PoolState.CLOSED):
            return

        self.logger.debug(
            f"Closing pool '{self.name}' ({self.in_use} in use, drain {drain_time}s)"
        )
        self._state = PoolState.CLOSING

        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(
                    ConnectionAcquisitionError(
                        f"Pool '{self.name}' is closing", alias=self.name
                    )
                )

        errors = await self._close_idle()

        if self._leases and drain_time > 0:
            self._drained = asyncio.Event()
            try:
                await asyncio.wait_for(self._drained.wait(), timeout=drain_time)
            except asyncio.TimeoutError:
                self.logger.warning(
                    f"{len(self._leases)} leases still active after {drain_time}s, "
                    "force-closing"
                )

        for lease in list(self._leases):
            lease.revoked = True
            try:
                await self.connection_factory.close_connection(lease.connection)
            except Exception as e:
                errors.append(e)
        self._leases.clear()

        self._state = PoolState.CLOSED
        self.connection_factory.shutdown()

        if errors:
            raise PoolCloseError(
                f"Pool '{self.name}' closed with {len(errors)} connection errors: "
                f"{str(errors[0])}",
                alias=self.name,
            ) from errors[0]

    def _check_serving(self) -> None:
        if self._state == PoolState.SERVING:
            return
        if self._state == PoolState.CREATED:
            raise ConnectionAcquisitionError(
                f"Pool {self.name} not initialized. Call initialize() first.",
                alias=self.name,
            )
        raise ConnectionAcquisitionError(
            f"Pool {self.name} is {self._state.value}", alias=self.name
        )

    def _new_lease(self, conn: Any) -> Lease:
        lease = Lease(self, conn)
        self._leases.add(lease)
        self.logger.debug(
            f"Acquired lease {lease.id} (in use: {self.in_use}, idle: {self.available})"
        )
        return lease

    def _return_connection(self, conn: Any) -> None:
        """Hand a connection to the oldest waiter, or park it as idle."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(self._new_lease(conn))
                return
        self._idle.append(_IdleEntry(conn, time.monotonic()))

    async def _take_idle(self) -> Optional[Any]:
        """Pop the most recently used idle connection, pinging stale ones."""
        interval = self.config.pool_ping_interval
        while self._idle:
            entry = self._idle.pop()
            idle_for = time.monotonic() - entry.last_used
            if interval < 0 or (interval > 0 and idle_for < interval):
                return entry.conn

            self._pending += 1
            try:
                alive = await self.connection_factory.is_connection_alive(entry.conn)
                if alive:
                    return entry.conn
                self.logger.warning("Idle connection failed ping, discarding it")
                await self._close_quietly(entry.conn)
            finally:
                self._pending -= 1
            await self._serve_waiters()
        return None

    async def _serve_waiters(self) -> None:
        """Open connections for queued callers while below ``pool_max``."""
        while (
            self._state == PoolState.SERVING
            and self.waiting
            and self.total < self.config.pool_max
        ):
            try:
                conn = await self._grow()
            except ConnectionAcquisitionError as e:
                while self._waiters:
                    waiter = self._waiters.popleft()
                    if not waiter.done():
                        waiter.set_exception(e)
                        break
                return

            if self._state != PoolState.SERVING:
                await self._close_quietly(conn)
                return
            self._return_connection(conn)

    async def _grow(self) -> Any:
        """Open up to ``pool_increment`` connections; return one, park the rest."""
        count = min(
            max(1, self.config.pool_increment), self.config.pool_max - self.total
        )
        self._pending += count
        opened: List[Any] = []
        try:
            for _ in range(count):
                opened.append(await self.connection_factory.get_connection())
        except Exception as e:
            if not opened:
                raise ConnectionAcquisitionError(
                    f"Could not open a connection for pool '{self.name}': {str(e)}",
                    alias=self.name,
                ) from e
            self.logger.warning(
                f"Pool '{self.name}' grew by {len(opened)} of {count}: {str(e)}"
            )
        finally:
            self._pending -= count

        first, *extra = opened
        for conn in extra:
            self._return_connection(conn)
        return first

    async def _wait_for_lease(self) -> Lease:
        queue_max = self.config.queue_max
        if queue_max == 0 or (queue_max > 0 and self.waiting >= queue_max):
            raise QueueFullError(
                f"Pool '{self.name}' queue is full ({self.waiting} waiting, "
                f"queue_max={queue_max})",
                alias=self.name,
            )

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            done, _ = await asyncio.wait(
                {waiter}, timeout=self.config.queue_timeout_seconds
            )
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                # Lease was handed over just as the caller was cancelled
                lease = waiter.result()
                lease.released = True
                self._leases.discard(lease)
                self._return_connection(lease.connection)
            else:
                waiter.cancel()
            raise

        if not done:
            waiter.cancel()
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass
            raise QueueTimeoutError(
                f"Timed out after {self.config.queue_timeout}ms waiting for a "
                f"connection from pool '{self.name}'",
                alias=self.name,
            )
        return waiter.result()

    async def _close_idle(self) -> List[Exception]:
        errors: List[Exception] = []
        while self._idle:
            entry = self._idle.popleft()
            try:
                await self.connection_factory.close_connection(entry.conn)
            except Exception as e:
                self.logger.warning(f"Error closing connection: {str(e)}")
                errors.append(e)
        return errors

    async def _close_quietly(self, conn: Any) -> None:
        try:
            await self.connection_factory.close_connection(conn)
        except Exception as e:
            self.logger.warning(f"Error closing connection: {str(e)}")

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def size(self) -> int:
        """Get the configured maximum pool size."""
        return self.config.pool_max

    @property
    def total(self) -> int:
        """Connections currently open or being opened."""
        return len(self._idle) + len(self._leases) + self._pending

    @property
    def available(self) -> int:
        """Get the number of idle connections in the pool."""
        return len(self._idle)

    @property
    def in_use(self) -> int:
        return len(self._leases)

    @property
    def waiting(self) -> int:
        """Callers currently queued for a connection."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    def stats(self) -> Dict[str, Any]:
        """Return pool statistics for monitoring."""
        return {
            "alias": self.name,
            "state": self._state.value,
            "open": self.total,
            "in_use": self.in_use,
            "available": self.available,
            "waiting": self.waiting,
            "pool_max": self.config.pool_max,
        }
