"""
Benchmark core: orchestration, virtual users, sampling and aggregation.
"""
