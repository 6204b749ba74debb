"""
Registry of named connection pools.

A PoolRegistry owns every pool it creates. Pools are looked up by alias, and
the registry's lifecycle (initialize -> close) belongs to whoever created it.
Several registries can live side by side, which keeps tests isolated.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from dbexec.configs.pool_config import PoolConfig
from dbexec.connections.base import BaseConnection
from dbexec.connections.constants import DEFAULT_THREAD_POOL_SIZE
from dbexec.connections.execution import ThreadPoolEngine
from dbexec.connections.pool import ConnectionPool, Lease
from dbexec.utility.exceptions import (
    ConnectionAcquisitionError,
    PoolCloseError,
    PoolCreationError,
)
from dbexec.utility.logger import get_logger


class PoolRegistry:
    """
    Named pools, created and destroyed explicitly.

    Example:
        ```python
        registry = PoolRegistry(PoolConfig(alias="default", ...))
        await registry.initialize()

        async with registry.lease() as lease:
            await lease.execute("SELECT 1 FROM DUAL")

        await registry.close()
        ```
    """

    def __init__(
        self,
        default_config: Optional[PoolConfig] = None,
        pool_closing_time: float = 0,
    ):
        """
        Args:
            default_config: Config used by ``initialize()`` without arguments;
                its alias is the default alias for every lookup
            pool_closing_time: Default drain time in seconds for ``close()``
        """
        self.default_config = default_config or PoolConfig()
        self.pool_closing_time = pool_closing_time
        self._pools: Dict[str, ConnectionPool] = {}
        self._creating: set = set()
        self.logger = get_logger("dbexec.registry")

    @property
    def default_alias(self) -> str:
        return self.default_config.alias

    async def initialize(self, config: Optional[PoolConfig] = None) -> ConnectionPool:
        """
        Create a pool and register it under its alias.

        Raises:
            PoolCreationError: Alias already registered, unknown driver, or the
                driver rejected the configuration
        """
        config = config or self.default_config
        alias = config.alias
        self.logger.start(f"Attempting to create pool: {alias}")

        if alias in self._pools or alias in self._creating:
            self.logger.error(f"Error creating pool: alias '{alias}' already exists")
            raise PoolCreationError(f"Pool alias '{alias}' already exists", alias=alias)

        self._creating.add(alias)
        engine = ThreadPoolEngine(
            max_workers=config.pool_max + DEFAULT_THREAD_POOL_SIZE, name=alias
        )
        try:
            factory = BaseConnection.create(config, engine)
            pool = ConnectionPool(config, factory)
            await pool.initialize()
        except Exception as e:
            engine.shutdown()
            self.logger.error(f"Error creating pool: {str(e)}")
            raise PoolCreationError(str(e), alias=alias) from e
        finally:
            self._creating.discard(alias)

        self._pools[alias] = pool
        self.logger.success(f"Pool created: {alias}")
        return pool

    async def close(
        self, alias: Optional[str] = None, drain_time: Optional[float] = None
    ) -> None:
        """
        Close a pool and remove it from the registry.

        Args:
            alias: Pool to close (default alias when omitted)
            drain_time: Seconds to wait for active leases before force-closing;
                defaults to ``pool_closing_time``. 0 force-closes immediately.

        Raises:
            PoolCloseError: No such pool, or the driver failed while closing
        """
        alias = alias or self.default_alias
        pool = self._pools.pop(alias, None)
        if pool is None:
            raise PoolCloseError(f"Pool '{alias}' does not exist", alias=alias)

        drain = self.pool_closing_time if drain_time is None else drain_time
        try:
            await pool.close(drain_time=drain)
        except PoolCloseError as e:
            self.logger.error(f"Error closing pool: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Error closing pool: {str(e)}")
            raise PoolCloseError(str(e), alias=alias) from e

        self.logger.success(f"Pool closed: {alias}")

    async def close_all(self, drain_time: Optional[float] = None) -> None:
        """
        Close every registered pool.

        Raises:
            PoolCloseError: The first close failure, after all pools were tried
        """
        errors: List[PoolCloseError] = []
        for alias in list(self._pools):
            try:
                await self.close(alias, drain_time=drain_time)
            except PoolCloseError as e:
                errors.append(e)
        if errors:
            raise errors[0]

    def get_pool(self, alias: Optional[str] = None) -> ConnectionPool:
        """
        Look up a pool by alias.

        Raises:
            ConnectionAcquisitionError: No pool registered under the alias
        """
        alias = alias or self.default_alias
        pool = self._pools.get(alias)
        if pool is None:
            raise ConnectionAcquisitionError(
                f"Pool '{alias}' does not exist. Call initialize() first.",
                alias=alias,
            )
        return pool

    async def get_connection(self, alias: Optional[str] = None) -> Lease:
        """Lease a connection from the named pool."""
        return await self.get_pool(alias).acquire()

    async def release(self, lease: Lease, discard: bool = False) -> None:
        """Return a lease to the pool it came from."""
        await lease.pool.release(lease, discard=discard)

    @asynccontextmanager
    async def lease(self, alias: Optional[str] = None) -> AsyncIterator[Lease]:
        """Lease a connection for the duration of an ``async with`` block."""
        lease = await self.get_connection(alias)
        try:
            yield lease
        finally:
            await self.release(lease)

    @property
    def aliases(self) -> List[str]:
        return list(self._pools)

    def stats(self) -> Dict[str, Dict[str, Any]]:
        """Statistics for every registered pool."""
        return {alias: pool.stats() for alias, pool in self._pools.items()}

    def __contains__(self, alias: str) -> bool:
        return alias in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    async def __aenter__(self) -> "PoolRegistry":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()
