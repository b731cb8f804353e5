"""
Report aggregation.
"""

from __future__ import annotations

from typing import Sequence

from querybench.models import BenchmarkReport, PerUserResult


def aggregate_report(
    results: Sequence[PerUserResult],
    queries_per_user: int,
    overall_seconds: float,
) -> BenchmarkReport:
    """
    Combine per-user timings into a BenchmarkReport.

    Users ran concurrently, so their individual throughput rates are summed rather
    than averaged. Users with zero elapsed time have no defined rate and are left
    out of that sum.
    """
    total_runtime = sum(r.elapsed_seconds for r in results)

    qps = 0.0
    for r in results:
        if r.elapsed_seconds > 0:
            qps += queries_per_user / r.elapsed_seconds

    return BenchmarkReport(
        user_count=len(results),
        queries_per_user=queries_per_user,
        total_queries_executed=len(results) * queries_per_user,
        completed_queries=sum(r.completed for r in results),
        timed_out_queries=sum(r.timed_out for r in results),
        total_query_runtime_seconds=total_runtime,
        overall_time_seconds=max(float(overall_seconds), 0.0),
        average_queries_per_second=qps,
        per_user=sorted(results, key=lambda r: r.user_id),
    )
