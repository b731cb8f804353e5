"""
Benchmark Configuration Models

Defines the Pydantic model describing a single benchmark run:
- Connection target and query template
- Virtual user fan-out (users x queries per user)
- Fixture and sampling switches
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from querybench.config import settings

GUID_MARKER = "%guid%"


class BenchmarkConfiguration(BaseModel):
    """
    Configuration for one benchmark run.

    Built once from external input and read-only for the duration of the run.
    """

    model_config = ConfigDict(frozen=True)

    connection_target: str = Field(..., description="Postgres DSN of the target")
    query_template: str = Field(
        ..., description=f"Query text, may contain the {GUID_MARKER} marker"
    )
    user_count: int = Field(
        settings.DEFAULT_USERS, ge=1, description="Concurrent virtual users"
    )
    queries_per_user: int = Field(
        settings.DEFAULT_QUERIES_PER_USER,
        ge=1,
        description="Sequential queries issued by each user",
    )

    skip_fixture: bool = Field(False, description="Skip fixture table bootstrapping")
    live_sampling: bool = Field(True, description="Log a sample line every tick")
    persist_samples: bool = Field(True, description="Append samples to a CSV file")

    sample_interval_seconds: float = Field(
        settings.SAMPLE_INTERVAL_SECONDS, gt=0, description="Sampler tick period"
    )
    query_timeout_seconds: float = Field(
        settings.QUERY_TIMEOUT_SECONDS, gt=0, description="Per-query timeout"
    )
    sample_report_dir: str = Field(
        settings.SAMPLE_REPORT_DIR, description="Directory for CSV sample records"
    )

    @field_validator("connection_target", "query_template")
    @classmethod
    def _require_text(cls, v: str) -> str:
        if not str(v or "").strip():
            raise ValueError("must not be empty")
        return v

    @property
    def total_queries(self) -> int:
        return self.user_count * self.queries_per_user
