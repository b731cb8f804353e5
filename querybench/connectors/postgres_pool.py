"""
Postgres Connection Management

Provides:
- A small async connection pool (fixture bootstrapping)
- A per-user query executor with dedicated connections and structured outcomes

Both retry transient connection failures.
"""

import asyncio
import logging
import random
import socket
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import asyncpg
from asyncpg import Pool
from asyncpg.exceptions import (
    CannotConnectNowError,
    TooManyConnectionsError,
)

from querybench.config import settings
from querybench.core.executor import QueryResult, classify_query_error

logger = logging.getLogger(__name__)


async def _retry_connect(factory, *, name: str, max_retries: int, retry_delay: float):
    """
    Run a connection factory, retrying transient failures with linear back-off.

    DNS/network errors get jitter on top of the back-off: when many virtual users
    connect at once they tend to fail (and retry) together.
    """
    attempts = max(1, int(max_retries))
    for attempt in range(attempts):
        try:
            return await factory()
        except (CannotConnectNowError, TooManyConnectionsError) as e:
            if attempt < attempts - 1:
                logger.warning(
                    f"[{name}] Connection attempt {attempt + 1} failed, retrying: {e}"
                )
                await asyncio.sleep(retry_delay * (attempt + 1))
            else:
                logger.error(f"[{name}] Failed to connect after {attempts} attempts")
                raise
        except (socket.gaierror, OSError) as e:
            if attempt < attempts - 1:
                jitter = random.uniform(0, 0.5)
                delay = retry_delay * (attempt + 1) + jitter
                logger.warning(
                    f"[{name}] Connection attempt {attempt + 1} failed "
                    f"(DNS/network error: {e}), retrying in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)
            else:
                logger.error(
                    f"[{name}] DNS/network error after {attempts} attempts: {e}"
                )
                raise


class PostgresConnectionPool:
    """
    Async connection pool for Postgres with retry logic.
    """

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 2,
        max_retries: int = settings.POSTGRES_CONNECT_MAX_RETRIES,
        retry_delay: float = settings.POSTGRES_CONNECT_RETRY_DELAY,
        command_timeout: Optional[float] = None,
        pool_name: str = "default",
    ):
        """
        Initialize Postgres connection pool.

        Args:
            dsn: Postgres connection string
            min_size: Minimum pool size
            max_size: Maximum pool size
            max_retries: Max attempts for transient connection failures
            retry_delay: Base delay between retries in seconds
            command_timeout: Default command timeout in seconds (None = unlimited)
            pool_name: Descriptive name for logging (e.g., "fixture")
        """
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.command_timeout = command_timeout
        self.pool_name = pool_name

        self._pool: Optional[Pool] = None
        self._initialized = False

    async def initialize(self):
        """Initialize the connection pool."""
        if self._initialized:
            return

        logger.info(f"[{self.pool_name}] Creating Postgres connection pool...")

        async def _create():
            return await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )

        self._pool = await _retry_connect(
            _create,
            name=self.pool_name,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
        )
        self._initialized = True
        logger.info(
            f"[{self.pool_name}] Postgres pool ready "
            f"(size: {self.min_size}-{self.max_size})"
        )

    @asynccontextmanager
    async def get_connection(self):
        """
        Get a connection from the pool (async context manager).

        Usage:
            async with pool.get_connection() as conn:
                result = await conn.fetchval("SELECT 1")
        """
        if not self._initialized:
            await self.initialize()

        if self._pool is None:
            raise RuntimeError("Pool not initialized")

        async with self._pool.acquire() as conn:
            yield conn

    async def execute_query(self, query: str, *args, timeout: Optional[float] = None) -> str:
        """
        Execute a statement that doesn't return results (DDL, INSERT, ...).

        Returns:
            Status string (e.g., "INSERT 0 1")
        """
        async with self.get_connection() as conn:
            return await conn.execute(query, *args, timeout=timeout)

    async def fetch_val(self, query: str, *args, timeout: Optional[float] = None) -> Any:
        """Fetch a single value from a query."""
        async with self.get_connection() as conn:
            return await conn.fetchval(query, *args, timeout=timeout)

    async def execute_many(
        self,
        query: str,
        args_list: List[tuple],
        timeout: Optional[float] = None,
    ):
        """
        Execute a statement once per parameter tuple, in one transaction.

        asyncpg pipelines executemany, so the whole group is a single round-trip.
        """
        async with self.get_connection() as conn:
            async with conn.transaction():
                await conn.executemany(query, args_list, timeout=timeout)

    async def close(self):
        """Close the connection pool."""
        if self._pool is not None:
            logger.info(f"[{self.pool_name}] Closing Postgres connection pool...")
            await self._pool.close()
            self._pool = None
            self._initialized = False


class PostgresSession:
    """A dedicated connection owned by one virtual user."""

    def __init__(self, conn: asyncpg.Connection, *, query_timeout: Optional[float]):
        self._conn = conn
        self._query_timeout = query_timeout

    async def execute(self, query: str) -> QueryResult:
        """
        Run a parameterless query and report its outcome.

        Results are discarded; only success, timeout or failure matters.
        """
        try:
            await self._conn.execute(query, timeout=self._query_timeout)
        except Exception as e:
            return classify_query_error(e)
        return QueryResult.success()


class PostgresQueryExecutor:
    """
    Opens one dedicated connection per virtual user.

    Virtual users must not share a connection, so this deliberately does not
    draw from a pool.
    """

    def __init__(
        self,
        dsn: str,
        *,
        query_timeout: Optional[float] = settings.QUERY_TIMEOUT_SECONDS,
        connect_timeout: float = settings.POSTGRES_CONNECT_TIMEOUT,
        max_retries: int = settings.POSTGRES_CONNECT_MAX_RETRIES,
        retry_delay: float = settings.POSTGRES_CONNECT_RETRY_DELAY,
    ):
        self.dsn = dsn
        self.query_timeout = query_timeout
        self.connect_timeout = connect_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[PostgresSession]:
        async def _open():
            return await asyncpg.connect(dsn=self.dsn, timeout=self.connect_timeout)

        conn = await _retry_connect(
            _open,
            name="user",
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
        )
        try:
            yield PostgresSession(conn, query_timeout=self.query_timeout)
        finally:
            await conn.close()

    def create_fixture_pool(self) -> PostgresConnectionPool:
        """Small pool for fixture verification and population."""
        return PostgresConnectionPool(
            dsn=self.dsn,
            min_size=1,
            max_size=2,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            pool_name="fixture",
        )
