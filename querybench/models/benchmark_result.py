"""
Benchmark Result Models

Defines Pydantic models for per-user results, periodic samples and the
aggregate benchmark report.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class RunStatus(str, Enum):
    """Benchmark run status."""

    PENDING = "pending"
    BOOTSTRAPPING = "bootstrapping"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PerUserResult(BaseModel):
    """Cumulative timing for a single virtual user."""

    user_id: int = Field(..., ge=1, description="Virtual user ID (1-based)")
    elapsed_seconds: float = Field(
        0.0, ge=0, description="Time spent waiting on query execution"
    )
    completed: int = Field(0, ge=0, description="Queries that succeeded")
    timed_out: int = Field(0, ge=0, description="Queries that timed out")

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_seconds * 1000.0


class SampleRecord(BaseModel):
    """
    One watchdog tick.

    The tick period is one second, so the raw interval counts double as
    per-second rates.
    """

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="UTC sample time"
    )
    sequence: int = Field(..., ge=1, description="Sample number (1-based)")
    queries_per_second: int = Field(0, ge=0, description="Completed this interval")
    timeouts_per_second: int = Field(0, ge=0, description="Timed out this interval")
    final: bool = Field(
        False, description="Partial interval drained when the sampler stopped"
    )


class BenchmarkReport(BaseModel):
    """
    Aggregate results of one benchmark run.
    """

    user_count: int = Field(..., description="Virtual users")
    queries_per_user: int = Field(..., description="Queries per user")
    total_queries_executed: int = Field(
        ..., description="Attempted queries, including timeouts"
    )
    completed_queries: int = Field(0, description="Queries that succeeded")
    timed_out_queries: int = Field(0, description="Queries that timed out")

    total_query_runtime_seconds: float = Field(
        0.0, description="Sum of per-user query runtime"
    )
    overall_time_seconds: float = Field(0.0, description="Wall-clock run duration")
    average_queries_per_second: float = Field(
        0.0, description="Sum of per-user throughput rates"
    )

    per_user: List[PerUserResult] = Field(default_factory=list)

    @property
    def total_query_runtime_ms(self) -> float:
        return self.total_query_runtime_seconds * 1000.0
