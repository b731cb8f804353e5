"""
Watchdog sampler.

Independently scheduled loop that drains the shared counters once per tick and
publishes a SampleRecord to every sink while virtual users are running.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import UTC, datetime
from enum import Enum
from typing import Optional, Sequence

from querybench.config import settings
from querybench.core.sample_sinks import SampleSink
from querybench.core.shared_counters import SharedCounters
from querybench.models import SampleRecord

logger = logging.getLogger(__name__)


class SamplerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class WatchdogSampler:
    """
    Start/stop handle around the sampling task.

    `stop()` returns only after the loop has exited, then drains whatever was
    counted since the last tick into one final sample. Samples therefore sum to
    exactly the counts recorded during the run.
    """

    def __init__(
        self,
        counters: SharedCounters,
        sinks: Sequence[SampleSink] = (),
        interval_seconds: float = settings.SAMPLE_INTERVAL_SECONDS,
    ):
        interval = float(interval_seconds)
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError("interval_seconds must be > 0")

        self.counters = counters
        self.sinks = list(sinks)
        self.interval = interval
        self.state = SamplerState.IDLE

        self._sequence = 0
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self.state is not SamplerState.IDLE:
            raise RuntimeError(f"Sampler cannot start from state {self.state.value}")
        self.state = SamplerState.RUNNING
        self._task = asyncio.create_task(self._run(), name="watchdog-sampler")
        logger.debug("Watchdog sampler started (interval=%.3fs)", self.interval)

    async def stop(self) -> None:
        if self.state is not SamplerState.RUNNING:
            return
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

        completed, timed_out = self.counters.drain()
        if completed or timed_out:
            self._emit(completed, timed_out, final=True)

        self.state = SamplerState.STOPPED
        logger.debug("Watchdog sampler stopped after %d samples", self._sequence)

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass

            completed, timed_out = self.counters.drain()
            self._emit(completed, timed_out)

    def _emit(self, completed: int, timed_out: int, *, final: bool = False) -> None:
        self._sequence += 1
        sample = SampleRecord(
            timestamp=datetime.now(UTC),
            sequence=self._sequence,
            queries_per_second=completed,
            timeouts_per_second=timed_out,
            final=final,
        )
        for sink in self.sinks:
            try:
                sink(sample)
            except Exception as e:
                logger.error(f"Sample sink error: {type(e).__name__}: {e}")
