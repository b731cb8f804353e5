"""
Data models for benchmark configuration and results.
"""

from querybench.models.benchmark_config import GUID_MARKER, BenchmarkConfiguration
from querybench.models.benchmark_result import (
    BenchmarkReport,
    PerUserResult,
    RunStatus,
    SampleRecord,
)

__all__ = [
    "GUID_MARKER",
    "BenchmarkConfiguration",
    "BenchmarkReport",
    "PerUserResult",
    "RunStatus",
    "SampleRecord",
]
