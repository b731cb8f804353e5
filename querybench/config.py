"""
Application Configuration using Pydantic Settings

Loads configuration from environment variables with sensible defaults.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ========================================================================
    # Postgres Connection Settings
    # ========================================================================
    # Used when no connection target is passed on the command line.
    POSTGRES_DSN: str = ""

    # Connector-level timeouts (seconds).
    #
    # Connection establishment is retried on transient failures (server starting up,
    # too many connections, DNS hiccups when every virtual user connects at once).
    POSTGRES_CONNECT_TIMEOUT: float = 15.0
    POSTGRES_CONNECT_MAX_RETRIES: int = 3
    POSTGRES_CONNECT_RETRY_DELAY: float = 1.0

    # ========================================================================
    # Benchmark Execution Settings
    # ========================================================================
    # Per-query client timeout. A query exceeding it is counted as a timeout,
    # not a failure.
    QUERY_TIMEOUT_SECONDS: float = 30.0
    SAMPLE_INTERVAL_SECONDS: float = 1.0

    DEFAULT_QUERY: str = "SELECT * FROM benchmark_table WHERE id = '%guid%'"
    DEFAULT_USERS: int = 10
    DEFAULT_QUERIES_PER_USER: int = 100000
    DEFAULT_ITERATIONS: int = 1

    # ========================================================================
    # Fixture Table Settings
    # ========================================================================
    FIXTURE_TABLE_NAME: str = "benchmark_table"
    FIXTURE_ROW_COUNT: int = 1_000_000
    # Rows per INSERT value list, and INSERT statements per round-trip.
    FIXTURE_VALUE_BATCH_SIZE: int = 100
    FIXTURE_STATEMENT_BATCH_SIZE: int = 5
    FIXTURE_PROGRESS_STEP_PCT: float = 5.0

    # ========================================================================
    # Storage Settings
    # ========================================================================
    SAMPLE_REPORT_DIR: str = "."

    # ========================================================================
    # Logging Settings
    # ========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(levelprefix)s %(asctime)s - %(name)s - %(message)s"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        return str(v or "INFO").strip().upper()


# Create global settings instance
settings = Settings()
