#!/usr/bin/env python3
"""
Tests for the command-line entry point.
"""

import logging

import pytest

from querybench import cli
from querybench.core.errors import VirtualUserError
from querybench.models import BenchmarkReport


def test_parser_defaults():
    args = cli._build_parser().parse_args(["-c", "postgresql://db/bench"])

    assert args.connection == "postgresql://db/bench"
    assert args.query == "SELECT * FROM benchmark_table WHERE id = '%guid%'"
    assert args.users == 10
    assert args.queries == 100000
    assert args.iterations == 1
    assert args.verbose is False
    assert args.skip_fixture is False
    assert args.no_live is False
    assert args.no_report is False


@pytest.mark.parametrize("flag", ["-u", "-n", "-i"])
@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_parser_rejects_non_positive_counts(flag, value):
    with pytest.raises(SystemExit):
        cli._build_parser().parse_args(["-c", "postgresql://db/bench", flag, value])


def test_build_configuration_maps_flags_and_loads_query_file(tmp_path):
    query_file = tmp_path / "q.sql"
    query_file.write_text("SELECT name FROM benchmark_table WHERE id = '%guid%'")
    args = cli._build_parser().parse_args(
        [
            "-c", "postgresql://db/bench",
            "-q", str(query_file),
            "-u", "4",
            "-n", "250",
            "--skip-fixture",
            "--no-live",
            "--no-report",
            "-t", "5",
        ]
    )

    config = cli.build_configuration(args)

    assert config.query_template == query_file.read_text()
    assert config.user_count == 4
    assert config.queries_per_user == 250
    assert config.skip_fixture is True
    assert config.live_sampling is False
    assert config.persist_samples is False
    assert config.query_timeout_seconds == 5.0


def test_report_line_format():
    report = BenchmarkReport(
        user_count=10,
        queries_per_user=100000,
        total_queries_executed=1000000,
        total_query_runtime_seconds=1234.5678,
        average_queries_per_second=8100.4,
    )
    assert cli.format_report_line(report, 2, 3) == (
        "[2/3] Benchmark Completed [Runtime: 1,234,568ms | Average queries/sec: 8,100 "
        "| Users: 10 | Per-user Queries: 100,000]"
    )


def test_main_requires_connection(monkeypatch):
    monkeypatch.setattr(cli.settings, "POSTGRES_DSN", "")
    with pytest.raises(SystemExit):
        cli.main([])


class _FakeOrchestrator:
    runs = 0
    fail_on: int | None = None

    async def run(self, config):
        type(self).runs += 1
        if type(self).fail_on == type(self).runs:
            raise VirtualUserError(3, "query failed")
        return BenchmarkReport(
            user_count=config.user_count,
            queries_per_user=config.queries_per_user,
            total_queries_executed=config.total_queries,
            total_query_runtime_seconds=1.0,
            average_queries_per_second=100.0,
        )


def _patch_run(monkeypatch, fail_on=None):
    _FakeOrchestrator.runs = 0
    _FakeOrchestrator.fail_on = fail_on
    monkeypatch.setattr(cli, "BenchmarkOrchestrator", _FakeOrchestrator)
    monkeypatch.setattr(cli, "configure_logging", lambda verbose: None)


def test_main_runs_every_iteration(monkeypatch, caplog):
    _patch_run(monkeypatch)
    caplog.set_level(logging.INFO, logger="querybench")

    code = cli.main(["-c", "postgresql://db/bench", "-i", "3", "-u", "2", "-n", "5"])

    assert code == 0
    assert _FakeOrchestrator.runs == 3
    completed = [r.getMessage() for r in caplog.records if "Benchmark Completed" in r.getMessage()]
    assert [line[:5] for line in completed] == ["[1/3]", "[2/3]", "[3/3]"]


def test_main_stops_on_fatal_error(monkeypatch, caplog):
    _patch_run(monkeypatch, fail_on=2)
    caplog.set_level(logging.INFO, logger="querybench")

    code = cli.main(["-c", "postgresql://db/bench", "-i", "3"])

    assert code == 1
    assert _FakeOrchestrator.runs == 2
    assert any(
        "failed during simulation" in r.getMessage() and "User 3" in r.getMessage()
        for r in caplog.records
    )
