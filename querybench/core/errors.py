"""
Benchmark error taxonomy.

Timeouts are not errors: the executor reports them as QueryOutcome.TIMED_OUT and
virtual users absorb them. Everything here is fatal and voids the current run.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Fatal error that aborts a benchmark run."""

    phase: str = "run"

    def __init__(self, message: str, *, phase: str | None = None) -> None:
        super().__init__(message)
        if phase is not None:
            self.phase = phase

    def __str__(self) -> str:
        return f"[{self.phase}] {super().__str__()}"


class BootstrapError(BenchmarkError):
    """Fixture table could not be verified, created or populated."""

    phase = "bootstrap"


class VirtualUserError(BenchmarkError):
    """A virtual user hit a non-timeout failure (connection or query)."""

    phase = "simulation"

    def __init__(self, user_id: int, message: str) -> None:
        super().__init__(f"User {user_id}: {message}")
        self.user_id = user_id
