"""
Fixture Table Bootstrapper

Ensures the benchmark fixture table exists with exactly the expected number of
synthetic rows:
- Present with the right row count: no-op
- Present with a different row count: dropped and re-created (no top-up)
- Absent: created and populated

Population is batched twice: rows into parameterized multi-row INSERTs, and
INSERTs into statement groups sent one round-trip at a time.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterator, Protocol
from uuid import uuid4

from querybench.config import settings
from querybench.core.errors import BootstrapError

logger = logging.getLogger(__name__)

# Lowercase only: unquoted identifiers fold to lowercase, and the catalog
# lookup compares the name as given.
_IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


class FixturePool(Protocol):
    async def fetch_val(self, query: str, *args: Any) -> Any: ...

    async def execute_query(self, query: str, *args: Any) -> Any: ...

    async def execute_many(self, query: str, args_list: list[tuple]) -> Any: ...


def build_insert_sql(table_name: str, row_count: int) -> str:
    """Multi-row INSERT with numbered placeholders: VALUES ($1, $2), ($3, $4), ..."""
    values = ", ".join(f"(${2 * i + 1}, ${2 * i + 2})" for i in range(row_count))
    return f"INSERT INTO {table_name} (id, name) VALUES {values}"


def iter_fixture_batches(row_count: int, batch_size: int) -> Iterator[tuple]:
    """
    Yield flattened parameter tuples of at most `batch_size` rows each.

    Rows are (uuid4, "Test User #N") for N = 1..row_count.
    """
    params: list[Any] = []
    for i in range(row_count):
        params.append(uuid4())
        params.append(f"Test User #{i + 1}")
        if len(params) == 2 * batch_size:
            yield tuple(params)
            params = []
    if params:
        yield tuple(params)


class SchemaBootstrapper:
    """Verifies, creates and populates the fixture table."""

    def __init__(
        self,
        pool: FixturePool,
        *,
        table_name: str = settings.FIXTURE_TABLE_NAME,
        row_count: int = settings.FIXTURE_ROW_COUNT,
        value_batch_size: int = settings.FIXTURE_VALUE_BATCH_SIZE,
        statement_batch_size: int = settings.FIXTURE_STATEMENT_BATCH_SIZE,
        progress_step_pct: float = settings.FIXTURE_PROGRESS_STEP_PCT,
    ):
        if not _IDENTIFIER_RE.match(str(table_name or "")):
            raise ValueError(f"Invalid fixture table name: {table_name!r}")
        if row_count < 1:
            raise ValueError("row_count must be >= 1")
        if value_batch_size < 1 or statement_batch_size < 1:
            raise ValueError("batch sizes must be >= 1")

        self.pool = pool
        self.table_name = table_name
        self.row_count = int(row_count)
        self.value_batch_size = int(value_batch_size)
        self.statement_batch_size = int(statement_batch_size)
        self.progress_step_pct = float(progress_step_pct)

    @property
    def statement_count(self) -> int:
        return math.ceil(self.row_count / self.value_batch_size)

    async def ensure_fixture(self) -> bool:
        """
        Make sure the fixture table holds exactly `row_count` rows.

        Returns:
            bool: True if the table was (re)created, False if it was already valid

        Raises:
            BootstrapError: on any verification, DDL or population failure
        """
        logger.debug("Verifying schema is in place for test")
        try:
            if await self.table_exists():
                count = await self.row_count_in_table()
                if count == self.row_count:
                    logger.debug(
                        "Fixture table '%s' already holds %s rows",
                        self.table_name,
                        f"{count:,}",
                    )
                    return False

                logger.info(
                    "Test table existed but had a mismatch of data (%s rows, expected %s); "
                    "dropping to re-create it",
                    f"{count:,}",
                    f"{self.row_count:,}",
                )
                await self.pool.execute_query(f"DROP TABLE {self.table_name}")

            await self._create_table()
            await self._populate()
        except BootstrapError:
            raise
        except Exception as e:
            raise BootstrapError(
                f"Fixture table '{self.table_name}' setup failed: {type(e).__name__}: {e}"
            ) from e
        return True

    async def table_exists(self) -> bool:
        exists = await self.pool.fetch_val(
            """
            SELECT EXISTS (
                SELECT 1
                FROM information_schema.tables
                WHERE table_schema = current_schema()
                  AND table_name = $1
                  AND table_type = 'BASE TABLE'
            )
            """,
            self.table_name,
        )
        return bool(exists)

    async def row_count_in_table(self) -> int:
        count = await self.pool.fetch_val(f"SELECT COUNT(*) FROM {self.table_name}")
        return int(count or 0)

    async def _create_table(self) -> None:
        logger.info(
            "Creating database table '%s' and filling with test data of %s rows",
            self.table_name,
            f"{self.row_count:,}",
        )
        await self.pool.execute_query(
            f"""
            CREATE TABLE {self.table_name} (
                id uuid NOT NULL,
                name varchar(255) NOT NULL,
                CONSTRAINT pk_{self.table_name} PRIMARY KEY (id)
            )
            """
        )

    async def _populate(self) -> None:
        logger.info("Committing test data to database...")
        total = self.statement_count
        full_sql = build_insert_sql(self.table_name, self.value_batch_size)

        processed = 0
        last_progress = 0.0
        group: list[tuple] = []
        for batch in iter_fixture_batches(self.row_count, self.value_batch_size):
            group.append(batch)
            processed += 1
            if len(group) < self.statement_batch_size and processed < total:
                continue

            progress = processed * 100.0 / total
            if progress - last_progress > self.progress_step_pct:
                logger.info("Executing INSERT batch (%.2f%%)", progress)
                last_progress = progress

            await self._execute_group(group, full_sql)
            group = []

        logger.info("Committed test data to database OK")

    async def _execute_group(self, group: list[tuple], full_sql: str) -> None:
        # Only the final batch of the whole fixture can be short.
        full = [args for args in group if len(args) == 2 * self.value_batch_size]
        short = [args for args in group if len(args) != 2 * self.value_batch_size]
        if full:
            await self.pool.execute_many(full_sql, full)
        for args in short:
            sql = build_insert_sql(self.table_name, len(args) // 2)
            await self.pool.execute_query(sql, *args)
