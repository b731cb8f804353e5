#!/usr/bin/env python3
"""
Unit tests for VirtualUserSimulator.

Uses a scripted in-memory executor (no DB connections).
"""

import asyncio
from contextlib import asynccontextmanager

import pytest

from querybench.core.errors import VirtualUserError
from querybench.core.executor import QueryResult
from querybench.core.query_template import QueryTemplate
from querybench.core.shared_counters import SharedCounters
from querybench.core.virtual_user import VirtualUserSimulator

pytestmark = pytest.mark.asyncio


class _ScriptedSession:
    def __init__(self, executor: "_ScriptedExecutor"):
        self._executor = executor
        self.executed = 0

    async def execute(self, query: str) -> QueryResult:
        self.executed += 1
        self._executor.queries.append(query)
        await asyncio.sleep(self._executor.delay)
        if self._executor.fail_on and self.executed == self._executor.fail_on:
            return QueryResult.failure(RuntimeError("relation does not exist"))
        if self._executor.timeout_every and self.executed % self._executor.timeout_every == 0:
            return QueryResult.timeout(asyncio.TimeoutError())
        return QueryResult.success()


class _ScriptedExecutor:
    def __init__(
        self,
        *,
        delay: float = 0.0,
        timeout_every: int = 0,
        fail_on: int = 0,
        connect_delay: float = 0.0,
        connect_error: Exception | None = None,
    ):
        self.delay = delay
        self.timeout_every = timeout_every
        self.fail_on = fail_on
        self.connect_delay = connect_delay
        self.connect_error = connect_error
        self.queries: list[str] = []
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def connect(self):
        await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self.opened += 1
        try:
            yield _ScriptedSession(self)
        finally:
            self.closed += 1


def _user(executor, counters, *, queries=5, template="SELECT '%guid%'", user_id=1):
    return VirtualUserSimulator(
        user_id=user_id,
        executor=executor,
        counters=counters,
        template=QueryTemplate(template),
        queries_per_user=queries,
    )


async def test_runs_all_queries_on_one_connection():
    executor = _ScriptedExecutor()
    counters = SharedCounters()

    result = await _user(executor, counters, queries=7).run()

    assert result.user_id == 1
    assert result.completed == 7
    assert result.timed_out == 0
    assert executor.opened == 1
    assert executor.closed == 1
    assert len(executor.queries) == 7
    assert len(set(executor.queries)) == 7
    assert all("%guid%" not in q for q in executor.queries)
    assert counters.drain() == (7, 0)


async def test_timeouts_are_counted_and_absorbed():
    executor = _ScriptedExecutor(timeout_every=3)
    counters = SharedCounters()

    result = await _user(executor, counters, queries=10).run()

    assert result.timed_out == 3
    assert result.completed == 7
    assert counters.drain() == (7, 3)


async def test_elapsed_sums_query_time_and_excludes_connect():
    executor = _ScriptedExecutor(delay=0.01, connect_delay=0.2)
    counters = SharedCounters()

    result = await _user(executor, counters, queries=5).run()

    assert 0.045 <= result.elapsed_seconds < 0.2


async def test_elapsed_includes_timed_out_attempts():
    executor = _ScriptedExecutor(delay=0.01, timeout_every=1)
    counters = SharedCounters()

    result = await _user(executor, counters, queries=4).run()

    assert result.completed == 0
    assert result.timed_out == 4
    assert result.elapsed_seconds >= 0.035


async def test_query_failure_is_fatal_and_identifies_user():
    executor = _ScriptedExecutor(fail_on=2)
    counters = SharedCounters()

    with pytest.raises(VirtualUserError) as exc_info:
        await _user(executor, counters, queries=5, user_id=4).run()

    err = exc_info.value
    assert err.user_id == 4
    assert err.phase == "simulation"
    assert isinstance(err.__cause__, RuntimeError)
    assert executor.closed == 1
    # The first query completed before the failure.
    assert counters.drain() == (1, 0)


async def test_connection_failure_is_fatal():
    executor = _ScriptedExecutor(connect_error=ConnectionRefusedError("refused"))
    counters = SharedCounters()

    with pytest.raises(VirtualUserError) as exc_info:
        await _user(executor, counters, user_id=2).run()

    assert exc_info.value.user_id == 2
    assert "ConnectionRefusedError" in str(exc_info.value)
    assert counters.drain() == (0, 0)
