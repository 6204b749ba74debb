"""
Database facade.

Bundles a PoolRegistry with the three execution modes so applications hold a
single object:

    ```python
    db = Database(DbExecSettings.load_from_env())
    await db.initialize()

    await db.execute("INSERT INTO t VALUES (:id)", {"id": 1})

    await db.execute_batch([
        ("INSERT INTO t VALUES (:id)", {"id": 2}),
        ("INSERT INTO t VALUES (:id)", {"id": 3}),
    ])

    async with db.transaction() as session:
        row = (await session.run("SELECT max(id) AS m FROM t")).first()
        await session.run("INSERT INTO t VALUES (:id)", {"id": row["M"] + 1})

    await db.close()
    ```
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional

from dbexec.configs.pool_config import PoolConfig
from dbexec.configs.settings import DbExecSettings
from dbexec.connections.pool import ConnectionPool
from dbexec.connections.result import QueryResult

from .batch import BatchTransactionExecutor
from .bind_logger import BindLogger
from .registry import PoolRegistry
from .session import ManualSession, SessionManager
from .single import SingleExecutor
from .statement import Params, StatementResult


class Database:
    def __init__(
        self,
        settings: Optional[DbExecSettings] = None,
        registry: Optional[PoolRegistry] = None,
    ):
        self.settings = settings or DbExecSettings()
        self.registry = registry or PoolRegistry(
            self.settings.pool, pool_closing_time=self.settings.pool_closing_time
        )
        self.bind_logger = BindLogger(enabled=self.settings.is_development)

        self.single = SingleExecutor(self.registry, self.bind_logger)
        self.batch = BatchTransactionExecutor(self.registry, self.bind_logger)
        self.sessions = SessionManager(self.registry, self.bind_logger)

    @classmethod
    def from_env(cls) -> "Database":
        return cls(DbExecSettings.load_from_env())

    async def initialize(self, config: Optional[PoolConfig] = None) -> ConnectionPool:
        return await self.registry.initialize(config)

    async def close(
        self, alias: Optional[str] = None, drain_time: Optional[float] = None
    ) -> None:
        await self.registry.close(alias, drain_time=drain_time)

    async def close_all(self, drain_time: Optional[float] = None) -> None:
        await self.registry.close_all(drain_time=drain_time)

    async def execute(
        self, sql: str, params: Params = None, alias: Optional[str] = None
    ) -> QueryResult:
        return await self.single.execute(sql, params, alias)

    async def execute_batch(
        self, statements: Iterable[Any], alias: Optional[str] = None
    ) -> List[StatementResult]:
        return await self.batch.execute_batch(statements, alias)

    async def begin(self, alias: Optional[str] = None) -> ManualSession:
        return await self.sessions.begin(alias)

    async def run(
        self, session: ManualSession, sql: str, params: Params = None
    ) -> QueryResult:
        return await self.sessions.run(session, sql, params)

    async def commit(self, session: ManualSession) -> None:
        await self.sessions.commit(session)

    async def rollback(self, session: ManualSession) -> None:
        await self.sessions.rollback(session)

    @asynccontextmanager
    async def transaction(self, alias: Optional[str] = None) -> AsyncIterator[ManualSession]:
        """
        Manual session scoped to an ``async with`` block.

        Commits when the block exits cleanly and rolls back when it raises.
        A session the block already finished is left alone.
        """
        session = await self.begin(alias)
        try:
            yield session
        except BaseException:
            if session.is_active:
                await session.rollback()
            raise
        if session.is_active:
            await session.commit()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()
