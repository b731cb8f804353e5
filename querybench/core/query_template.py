"""
Query template loading and rendering.
"""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from querybench.models import GUID_MARKER

logger = logging.getLogger(__name__)


def load_query_template(query_or_path: str) -> str:
    """
    Resolve the configured query value to template text.

    If the value names an existing readable file, its full contents are the
    template; otherwise the value itself is.
    """
    candidate = str(query_or_path or "")
    try:
        path = Path(candidate)
        is_file = bool(candidate.strip()) and path.is_file()
    except (OSError, ValueError):
        # Long SQL text is not a valid path on some platforms.
        is_file = False
    if not is_file:
        return candidate

    text = path.read_text(encoding="utf-8")
    logger.info("Loaded query from file: %s", path)
    return text


class QueryTemplate:
    """A query with zero or more %guid% markers."""

    def __init__(self, text: str):
        self.text = text

    @property
    def marker_count(self) -> int:
        return self.text.count(GUID_MARKER)

    def render(self) -> str:
        """Replace every marker with one freshly generated UUID."""
        if GUID_MARKER not in self.text:
            return self.text
        return self.text.replace(GUID_MARKER, str(uuid4()))

    def __repr__(self) -> str:
        return f"QueryTemplate({self.text!r})"
