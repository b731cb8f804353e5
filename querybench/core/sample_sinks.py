"""
Destinations for watchdog samples: live log line, CSV record, in-memory list.
"""

from __future__ import annotations

import csv
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List

from querybench.models import SampleRecord

logger = logging.getLogger(__name__)

SampleSink = Callable[[SampleRecord], None]

CSV_HEADER = ["UtcDateTime", "Sample", "QueriesPerSecond", "TimeoutsPerSecond"]
CSV_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def sample_report_path(directory: str | Path = ".", now: datetime | None = None) -> Path:
    """BenchmarkReport-YYYY-MM-DD_HH_MM_SS.csv, stamped in UTC."""
    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%d_%H_%M_%S")
    return Path(directory) / f"BenchmarkReport-{stamp}.csv"


def format_live_line(sample: SampleRecord) -> str:
    return (
        f"Queries Per Second: {sample.queries_per_second:,} | "
        f"Timeouts Per Second: {sample.timeouts_per_second:,}"
    )


class LiveSampleDisplay:
    """
    Logs one line per sample.

    Intervals with timeouts are logged at WARNING so the colored console
    formatter highlights them.
    """

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def __call__(self, sample: SampleRecord) -> None:
        level = logging.WARNING if sample.timeouts_per_second > 0 else logging.INFO
        self._log.log(level, format_live_line(sample))


class CsvSampleRecorder:
    """
    Append-only CSV record of samples.

    The header is written when the file is created; an existing file is appended to.
    Each sample is one short synchronous append on the event loop, which is
    negligible at the default one-second tick. Move the write off the loop before
    running sub-100ms intervals.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._header_checked = False

    def _ensure_header(self) -> None:
        if self._header_checked:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists() or self.path.stat().st_size == 0:
            with self.path.open("w", newline="", encoding="utf-8") as f:
                csv.writer(f, lineterminator="\n").writerow(CSV_HEADER)
        self._header_checked = True

    def __call__(self, sample: SampleRecord) -> None:
        self._ensure_header()
        with self.path.open("a", newline="", encoding="utf-8") as f:
            csv.writer(f, lineterminator="\n").writerow(
                [
                    sample.timestamp.astimezone(UTC).strftime(CSV_TIMESTAMP_FORMAT),
                    sample.sequence,
                    sample.queries_per_second,
                    sample.timeouts_per_second,
                ]
            )


class MemorySampleSink:
    """Keeps every sample in a list."""

    def __init__(self) -> None:
        self.samples: List[SampleRecord] = []

    def __call__(self, sample: SampleRecord) -> None:
        self.samples.append(sample)

    @property
    def total_completed(self) -> int:
        return sum(s.queries_per_second for s in self.samples)

    @property
    def total_timed_out(self) -> int:
        return sum(s.timeouts_per_second for s in self.samples)
