"""
Query execution boundary.

The benchmark core never talks to a database driver directly. It consumes an
executor that opens one session per virtual user, and sessions that run a query
and report a structured outcome instead of raising on timeouts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import AsyncContextManager, Optional, Protocol

# Postgres "query_canceled": raised when statement_timeout fires server-side.
QUERY_CANCELED_SQLSTATE = "57014"


class QueryOutcome(str, Enum):
    """Terminal outcome of a single query execution."""

    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class QueryResult:
    outcome: QueryOutcome
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.outcome is QueryOutcome.SUCCEEDED

    @classmethod
    def success(cls) -> "QueryResult":
        return cls(QueryOutcome.SUCCEEDED)

    @classmethod
    def timeout(cls, error: Optional[BaseException] = None) -> "QueryResult":
        return cls(QueryOutcome.TIMED_OUT, error)

    @classmethod
    def failure(cls, error: BaseException) -> "QueryResult":
        return cls(QueryOutcome.FAILED, error)


class QuerySession(Protocol):
    async def execute(self, query: str) -> QueryResult: ...


class QueryExecutor(Protocol):
    def connect(self) -> AsyncContextManager[QuerySession]: ...


def is_timeout_error(exc: BaseException) -> bool:
    """
    Return True when an execution error is a timeout-class failure.

    Covers the client-side command timeout (asyncio.TimeoutError) and a
    server-side statement_timeout cancellation (SQLSTATE 57014).
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return True
    sqlstate = getattr(exc, "sqlstate", None)
    return str(sqlstate or "") == QUERY_CANCELED_SQLSTATE


def classify_query_error(exc: BaseException) -> QueryResult:
    """Map an execution-time exception to a structured QueryResult."""
    if is_timeout_error(exc):
        return QueryResult.timeout(exc)
    return QueryResult.failure(exc)
