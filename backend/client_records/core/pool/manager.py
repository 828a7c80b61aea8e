"""
Application database pool.

One ``PoolManager`` owns one SQLAlchemy engine (a bounded ``QueuePool`` of
PyMySQL connections). The engine is built lazily on first use, probed once,
then reused by every caller until ``close_pool()``.

PyMySQL is blocking, so every driver call runs in a worker thread
(``asyncio.to_thread``) and the event loop keeps serving other requests
while a caller waits for a free connection or for the server.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple, TypeVar

from sqlalchemy import create_engine
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Connection, CursorResult, Engine

from client_records.core.config import Settings
from client_records.core.errors import (
    ConfigurationError,
    DatabaseConnectionError,
    OperationTimeoutError,
)
from client_records.core.secret_manager import SecretResolver

from .connect import ConnectionConfig, build_connection_config, connect
from .health import probe

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Mapping[str, Any] | None
T = TypeVar("T")

# Added to connect_timeout so PyMySQL gives up before the probe bound expires.
PROBE_GRACE_SECONDS = 2.0


class ExecuteResult(NamedTuple):
    rowcount: int
    lastrowid: int | None


def _bind(params: Sequence[Any] | Mapping[str, Any]) -> Any:
    if isinstance(params, Mapping):
        return dict(params)
    return tuple(params)


def _rows(result: CursorResult) -> list[dict[str, Any]]:
    if not result.returns_rows:
        return []
    return [dict(row) for row in result.mappings()]


def _exec(conn: Connection, sql: str, params: Params) -> CursorResult:
    if params is None:
        # no_parameters: the driver must not %-format statements without params
        return conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
    return conn.exec_driver_sql(sql, _bind(params))


def _query_on(conn: Connection, sql: str, params: Params) -> list[dict[str, Any]]:
    return _rows(_exec(conn, sql, params))


def _execute_on(conn: Connection, sql: str, params: Params) -> ExecuteResult:
    result = _exec(conn, sql, params)
    lastrowid = result.lastrowid or None
    return ExecuteResult(rowcount=result.rowcount, lastrowid=lastrowid)


class PooledConnection:
    """A connection checked out with ``PoolManager.get_connection``; call ``release()``."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._released = False

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        return await asyncio.to_thread(_query_on, self._conn, sql, params)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        return await asyncio.to_thread(_execute_on, self._conn, sql, params)

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        await asyncio.to_thread(self._conn.close)

    async def __aenter__(self) -> "PooledConnection":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()


class PoolManager:
    """Lazily built, shared connection pool with a one-shot initializer."""

    def __init__(
        self,
        settings: Settings,
        secret_resolver: SecretResolver | None = None,
    ) -> None:
        self._settings = settings
        self._secrets = secret_resolver or SecretResolver(settings)
        self._engine: Engine | None = None
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def get_pool(self) -> Engine:
        """Return the engine, building and probing it on first call."""
        engine = self._engine
        if engine is not None:
            return engine
        async with self._lock:
            if self._engine is None:
                self._engine = await self._build()
            return self._engine

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Run one parameterized statement (``%s`` placeholders) and return its rows."""
        engine = await self.get_pool()
        return await self._with_connection(engine, _query_on, sql, params)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        """Like ``query`` but returns the affected row count and last insert id."""
        engine = await self.get_pool()
        return await self._with_connection(engine, _execute_on, sql, params)

    async def get_connection(self) -> PooledConnection:
        """Check out a connection; the caller must release it."""
        engine = await self.get_pool()
        conn = await asyncio.to_thread(self._checkout, engine)
        return PooledConnection(conn)

    async def close_pool(self) -> None:
        """Dispose the pool; the next ``get_pool()`` rebuilds from scratch."""
        async with self._lock:
            engine, self._engine = self._engine, None
        if engine is None:
            return
        await asyncio.to_thread(engine.dispose)
        logger.info("Database connection pool closed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _build(self) -> Engine:
        password = await self._secrets.resolve_db_password()
        config = build_connection_config(self._settings, password)
        missing = config.missing_fields()
        if missing:
            raise ConfigurationError(missing)

        engine = self._create_engine(config)
        timeout = config.connect_timeout + PROBE_GRACE_SECONDS
        try:
            # On timeout the probe thread is abandoned; it ends at connect_timeout.
            await asyncio.wait_for(asyncio.to_thread(probe, engine), timeout)
        except asyncio.TimeoutError:
            engine.dispose()
            logger.error("Database liveness probe timed out (%s)", config.describe())
            raise OperationTimeoutError("Database liveness probe", timeout) from None
        except Exception as e:
            engine.dispose()
            logger.error("Database connection failed (%s): %s", config.describe(), e)
            raise DatabaseConnectionError(f"Database connection failed: {e}") from e
        logger.info("Database connection established successfully (%s)", config.describe())
        return engine

    def _create_engine(self, config: ConnectionConfig) -> Engine:
        return create_engine(
            "mysql+pymysql://",
            creator=lambda: connect(config),
            pool_size=config.pool_size,
            max_overflow=0,
            pool_timeout=self._settings.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
            isolation_level="AUTOCOMMIT",
        )

    def _checkout(self, engine: Engine) -> Connection:
        try:
            return engine.connect()
        except sa_exc.TimeoutError as e:
            raise OperationTimeoutError(
                "Waiting for a pooled connection", self._settings.DB_POOL_TIMEOUT
            ) from e

    async def _with_connection(
        self,
        engine: Engine,
        fn: Callable[[Connection, str, Params], T],
        sql: str,
        params: Params,
    ) -> T:
        def run() -> T:
            with self._checkout(engine) as conn:
                return fn(conn, sql, params)

        return await asyncio.to_thread(run)
