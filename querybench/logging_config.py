"""
Console logging setup.

Uses uvicorn's colored "LEVEL:" formatter for all loggers, so WARNING lines
(e.g. sampler intervals with timeouts) stand out.
"""

import logging
import sys

from uvicorn.logging import DefaultFormatter

from querybench.config import settings


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL, logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        DefaultFormatter(
            fmt=settings.LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            use_colors=sys.stdout.isatty(),
        )
    )

    logging.basicConfig(level=level, handlers=[console_handler], force=True)

    # Driver internals are noisy at DEBUG.
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
