"""Run the query throughput benchmark from the command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from querybench.config import settings
from querybench.core.errors import BenchmarkError
from querybench.core.orchestrator import BenchmarkOrchestrator
from querybench.core.query_template import load_query_template
from querybench.logging_config import configure_logging
from querybench.models import BenchmarkConfiguration, BenchmarkReport

logger = logging.getLogger("querybench")


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _positive_float(value: str) -> float:
    try:
        x = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}")
    if x <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {x}")
    return x


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="querybench",
        description="Simulate concurrent users querying a Postgres database and report throughput.",
    )
    parser.add_argument(
        "-c",
        "--connection",
        default=settings.POSTGRES_DSN or None,
        help="Postgres connection string (default: $POSTGRES_DSN).",
    )
    parser.add_argument(
        "-q",
        "--query",
        default=settings.DEFAULT_QUERY,
        help="Query to execute for each user, or a file to read it from. "
        "%%guid%% is replaced by a fresh UUID on every execution.",
    )
    parser.add_argument(
        "-u",
        "--users",
        type=_positive_int,
        default=settings.DEFAULT_USERS,
        help="How many users to simulate.",
    )
    parser.add_argument(
        "-n",
        "--queries",
        type=_positive_int,
        default=settings.DEFAULT_QUERIES_PER_USER,
        help="How many queries to execute per user.",
    )
    parser.add_argument(
        "-i",
        "--iterations",
        type=_positive_int,
        default=settings.DEFAULT_ITERATIONS,
        help="Number of benchmark iterations to run.",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_positive_float,
        default=settings.QUERY_TIMEOUT_SECONDS,
        help="Per-query timeout in seconds.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Use verbose logging.")
    parser.add_argument(
        "--skip-fixture",
        action="store_true",
        help="Do not verify/create the fixture table.",
    )
    parser.add_argument(
        "--no-live",
        action="store_true",
        help="Do not log a line per sample interval.",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the CSV sample report.",
    )
    return parser


def build_configuration(args: argparse.Namespace) -> BenchmarkConfiguration:
    return BenchmarkConfiguration(
        connection_target=args.connection,
        query_template=load_query_template(args.query),
        user_count=args.users,
        queries_per_user=args.queries,
        skip_fixture=args.skip_fixture,
        live_sampling=not args.no_live,
        persist_samples=not args.no_report,
        query_timeout_seconds=args.timeout,
    )


def format_report_line(report: BenchmarkReport, iteration: int, iterations: int) -> str:
    return (
        f"[{iteration}/{iterations}] Benchmark Completed "
        f"[Runtime: {report.total_query_runtime_ms:,.0f}ms | "
        f"Average queries/sec: {report.average_queries_per_second:,.0f} | "
        f"Users: {report.user_count:,} | "
        f"Per-user Queries: {report.queries_per_user:,}]"
    )


async def _run(config: BenchmarkConfiguration, iterations: int) -> int:
    orchestrator = BenchmarkOrchestrator()
    logger.info("Starting Benchmark")
    for i in range(iterations):
        try:
            report = await orchestrator.run(config)
        except BenchmarkError as e:
            logger.error(
                "Benchmark iteration %d/%d failed during %s: %s",
                i + 1,
                iterations,
                e.phase,
                e,
            )
            return 1
        logger.info(format_report_line(report, i + 1, iterations))

    logger.info("Finished Benchmarking")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.connection:
        parser.error("a connection string is required (-c or $POSTGRES_DSN)")

    configure_logging(args.verbose)
    logger.info("Starting Up")

    try:
        config = build_configuration(args)
    except (OSError, ValidationError) as e:
        logger.error("Invalid benchmark configuration: %s", e)
        return 1

    try:
        return asyncio.run(_run(config, args.iterations))
    except KeyboardInterrupt:
        logger.warning("Benchmark interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
