"""
Virtual user simulation.
"""

from __future__ import annotations

import logging
import time

from querybench.core.errors import VirtualUserError
from querybench.core.executor import QueryExecutor, QueryOutcome
from querybench.core.query_template import QueryTemplate
from querybench.core.shared_counters import SharedCounters
from querybench.models import PerUserResult

logger = logging.getLogger(__name__)


class VirtualUserSimulator:
    """
    One simulated client issuing a fixed sequence of queries on its own connection.

    Elapsed time is the sum of per-attempt durations for every attempt that
    returned an outcome, timed-out attempts included. Connection setup and
    teardown are excluded.
    """

    def __init__(
        self,
        user_id: int,
        executor: QueryExecutor,
        counters: SharedCounters,
        template: QueryTemplate,
        queries_per_user: int,
    ):
        self.user_id = user_id
        self.executor = executor
        self.counters = counters
        self.template = template
        self.queries_per_user = queries_per_user

    async def run(self) -> PerUserResult:
        """
        Execute all queries for this user.

        Raises:
            VirtualUserError: on a connection failure or a non-timeout query error
        """
        elapsed = 0.0
        completed = 0
        timed_out = 0

        logger.debug("User %s connecting to database server", self.user_id)
        try:
            async with self.executor.connect() as session:
                for _ in range(self.queries_per_user):
                    query = self.template.render()

                    start = time.perf_counter()
                    result = await session.execute(query)
                    elapsed += time.perf_counter() - start

                    if result.outcome is QueryOutcome.SUCCEEDED:
                        completed += 1
                        self.counters.record_completed()
                    elif result.outcome is QueryOutcome.TIMED_OUT:
                        timed_out += 1
                        self.counters.record_timeout()
                    else:
                        err = result.error
                        raise VirtualUserError(
                            self.user_id,
                            f"query failed: {type(err).__name__}: {err}",
                        ) from err
        except VirtualUserError:
            raise
        except Exception as e:
            raise VirtualUserError(
                self.user_id, f"database error: {type(e).__name__}: {e}"
            ) from e

        logger.debug(
            "User %s has finished simulation (%d completed, %d timed out)",
            self.user_id,
            completed,
            timed_out,
        )
        return PerUserResult(
            user_id=self.user_id,
            elapsed_seconds=elapsed,
            completed=completed,
            timed_out=timed_out,
        )
