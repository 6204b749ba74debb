"""
Base connection interface for database drivers.

Defines the contract that all driver-specific connection factories implement
and registers each factory under its driver name.
"""
import importlib
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from dbexec.utility.logger import get_logger

from .execution import ExecutionEngine, SimpleEngine
from .result import QueryResult

if TYPE_CHECKING:
    from dbexec.configs.pool_config import PoolConfig

BUILTIN_DRIVERS = {
    "oracle": "dbexec.connections.oracle",
    "mssql": "dbexec.connections.mssql",
    "sqlite": "dbexec.connections.sqlite",
}


class BaseConnection(ABC):
    """
    Abstract base class for database connection factories.

    A connection factory opens, closes, pings and drives raw DB-API
    connections for one pool. All driver calls are blocking, so each one is
    handed to the factory's execution engine and awaited.

    Subclasses register themselves by driver name:

    Example:
        ```python
        class PostgresConnection(BaseConnection, driver="postgres"):
            def _connect(self) -> Any:
                return psycopg.connect(self.config.connect_string)
        ```
    """

    _registry: Dict[str, Type["BaseConnection"]] = {}

    # Statement used by the default liveness check
    ping_statement = "SELECT 1"

    def __init_subclass__(cls, driver: Optional[str] = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if driver:
            cls.driver_name = driver
            cls._registry[driver] = cls

    def __init__(
        self, config: "PoolConfig", engine: Optional[ExecutionEngine] = None
    ):
        """
        Initialize connection factory.

        Args:
            config: Pool configuration holding target, credentials and options
            engine: Engine used to run blocking driver calls
        """
        self.config = config
        self.options = dict(config.options)
        self.engine = engine or SimpleEngine()
        self.logger = get_logger(
            f"dbexec.connections.{getattr(self, 'driver_name', 'base')}"
        )

    @classmethod
    def create(
        cls, config: "PoolConfig", engine: Optional[ExecutionEngine] = None
    ) -> "BaseConnection":
        """
        Create the factory registered for ``config.driver``.

        Built-in drivers are imported on first use so a missing optional
        driver library only matters to pools that need it.

        Raises:
            ValueError: If no factory is registered for the driver
        """
        if config.driver not in cls._registry and config.driver in BUILTIN_DRIVERS:
            importlib.import_module(BUILTIN_DRIVERS[config.driver])
        factory_class = cls._registry.get(config.driver)
        if factory_class is None:
            raise ValueError(
                f"Unknown driver '{config.driver}'. "
                f"Available drivers: {', '.join(cls.registered_drivers())}"
            )
        return factory_class(config, engine)

    @classmethod
    def registered_drivers(cls) -> List[str]:
        return sorted(set(cls._registry) | set(BUILTIN_DRIVERS))

    @abstractmethod
    def _connect(self) -> Any:
        """
        Open a new raw driver connection (blocking).

        Runs on the execution engine; never call it from the event loop.
        """
        pass

    async def get_connection(self) -> Any:
        """Create and return a new database connection."""
        return await self.engine.execute(self._connect)

    async def close_connection(self, conn: Any) -> None:
        """
        Close a database connection.

        Driver errors propagate so callers can decide whether a failed close
        matters.
        """
        await self.engine.execute(conn.close)

    async def is_connection_alive(self, conn: Any) -> bool:
        """
        Check if a connection is still alive and usable.

        Returns:
            True if a trivial round trip succeeds, False otherwise
        """
        try:
            await self.engine.execute(self._ping, conn)
            return True
        except Exception as e:
            self.logger.debug(f"Ping failed: {str(e)}")
            return False

    async def execute(
        self,
        conn: Any,
        sql: str,
        params: Any = None,
        auto_commit: bool = False,
    ) -> QueryResult:
        """
        Execute one statement on ``conn``.

        Args:
            conn: Raw driver connection
            sql: Statement text
            params: Ordered sequence or mapping of bind values
            auto_commit: Commit immediately after a successful execute

        Returns:
            QueryResult with fetched rows or the affected row count
        """
        return await self.engine.execute(
            self._execute, conn, sql, params, auto_commit
        )

    async def commit(self, conn: Any) -> None:
        await self.engine.execute(conn.commit)

    async def rollback(self, conn: Any) -> None:
        await self.engine.execute(conn.rollback)

    def shutdown(self) -> None:
        """Release the execution engine once the pool is closed."""
        self.engine.shutdown()

    def _execute(
        self, conn: Any, sql: str, params: Any, auto_commit: bool
    ) -> QueryResult:
        cursor = conn.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            result = QueryResult.from_cursor(cursor)
            if auto_commit:
                conn.commit()
            return result
        finally:
            cursor.close()

    def _ping(self, conn: Any) -> None:
        cursor = conn.cursor()
        try:
            cursor.execute(self.ping_statement)
            cursor.fetchall()
        finally:
            cursor.close()

    def describe_target(self) -> str:
        """Target description safe for logs (no credentials)."""
        return self.config.connect_string
