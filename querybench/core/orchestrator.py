"""
Benchmark Orchestrator

Runs one benchmark end to end:
- Fixture verification (optional)
- Watchdog sampler start
- Fan-out of N virtual users, fan-in
- Sampler stop (with final drain) and report aggregation
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

from querybench.connectors.postgres_pool import PostgresQueryExecutor
from querybench.core.executor import QueryExecutor
from querybench.core.query_template import QueryTemplate
from querybench.core.report import aggregate_report
from querybench.core.sample_sinks import (
    CsvSampleRecorder,
    LiveSampleDisplay,
    SampleSink,
    sample_report_path,
)
from querybench.core.schema_bootstrapper import FixturePool, SchemaBootstrapper
from querybench.core.shared_counters import SharedCounters
from querybench.core.virtual_user import VirtualUserSimulator
from querybench.core.watchdog import WatchdogSampler
from querybench.models import BenchmarkConfiguration, BenchmarkReport, RunStatus

logger = logging.getLogger(__name__)


class BenchmarkOrchestrator:
    """
    Entry point for a benchmark run.

    Manages:
    - Run lifecycle (bootstrap, simulate, report)
    - Virtual user tasks
    - Watchdog sampler and its sinks
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        *,
        fixture_pool: Optional[FixturePool] = None,
        extra_sinks: Sequence[SampleSink] = (),
        bootstrap_options: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            executor: Query executor for virtual users. Defaults to a Postgres
                executor built from each run's configuration.
            fixture_pool: Pool used for fixture bootstrapping. Defaults to a small
                Postgres pool opened for the bootstrap phase only.
            extra_sinks: Additional sample sinks attached to every run
            bootstrap_options: Keyword overrides for SchemaBootstrapper
        """
        self._executor = executor
        self._fixture_pool = fixture_pool
        self._extra_sinks = list(extra_sinks)
        self._bootstrap_options = dict(bootstrap_options or {})

        self.status = RunStatus.PENDING
        self.counters: Optional[SharedCounters] = None
        self.sampler: Optional[WatchdogSampler] = None
        self.sample_report_file = None

    def _executor_for(self, config: BenchmarkConfiguration) -> QueryExecutor:
        if self._executor is not None:
            return self._executor
        return PostgresQueryExecutor(
            config.connection_target,
            query_timeout=config.query_timeout_seconds,
        )

    async def run(self, config: BenchmarkConfiguration) -> BenchmarkReport:
        """
        Execute one benchmark run.

        Raises:
            BootstrapError: fixture verification/creation failed
            VirtualUserError: a virtual user hit a fatal error
        """
        executor = self._executor_for(config)
        try:
            if not config.skip_fixture:
                self.status = RunStatus.BOOTSTRAPPING
                await self._bootstrap(executor)

            self.status = RunStatus.RUNNING
            report = await self._simulate(config, executor)
        except BaseException:
            self.status = RunStatus.FAILED
            raise

        self.status = RunStatus.COMPLETED
        return report

    async def _bootstrap(self, executor: QueryExecutor) -> None:
        pool = self._fixture_pool
        owned = False
        if pool is None:
            if not isinstance(executor, PostgresQueryExecutor):
                raise ValueError("fixture_pool is required for non-Postgres executors")
            pool = executor.create_fixture_pool()
            owned = True

        try:
            await SchemaBootstrapper(pool, **self._bootstrap_options).ensure_fixture()
        finally:
            if owned:
                await pool.close()

    def _build_sinks(self, config: BenchmarkConfiguration) -> list[SampleSink]:
        sinks: list[SampleSink] = []
        if config.live_sampling:
            sinks.append(LiveSampleDisplay())
        if config.persist_samples:
            self.sample_report_file = sample_report_path(config.sample_report_dir)
            logger.info("Writing progress report to: %s", self.sample_report_file)
            sinks.append(CsvSampleRecorder(self.sample_report_file))
        sinks.extend(self._extra_sinks)
        return sinks

    async def _simulate(
        self, config: BenchmarkConfiguration, executor: QueryExecutor
    ) -> BenchmarkReport:
        counters = SharedCounters()
        self.counters = counters

        sinks = self._build_sinks(config)
        sampler: Optional[WatchdogSampler] = None
        if sinks:
            sampler = WatchdogSampler(
                counters, sinks, interval_seconds=config.sample_interval_seconds
            )
        self.sampler = sampler

        template = QueryTemplate(config.query_template)
        users = [
            VirtualUserSimulator(
                user_id=i + 1,
                executor=executor,
                counters=counters,
                template=template,
                queries_per_user=config.queries_per_user,
            )
            for i in range(config.user_count)
        ]

        logger.info(
            "Starting %d users x %s queries (%s total)",
            config.user_count,
            f"{config.queries_per_user:,}",
            f"{config.total_queries:,}",
        )

        if sampler is not None:
            sampler.start()
        start = time.perf_counter()
        try:
            tasks = [
                asyncio.create_task(user.run(), name=f"virtual-user-{user.user_id}")
                for user in users
            ]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                # Fail fast: one fatal user voids the whole run.
                for t in tasks:
                    t.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            overall_seconds = time.perf_counter() - start
        finally:
            if sampler is not None:
                await sampler.stop()

        return aggregate_report(results, config.queries_per_user, overall_seconds)
