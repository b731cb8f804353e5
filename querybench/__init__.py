"""
querybench - concurrent query throughput benchmark for Postgres.
"""

__version__ = "0.1.0"
