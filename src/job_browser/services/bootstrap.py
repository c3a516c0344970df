"""Startup fetch that produces the session's initial batch."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from job_browser.models import Job
from job_browser.services.interfaces import JobSource, PageResult

logger = logging.getLogger(__name__)


async def fetch_initial_batch(
    source: JobSource,
    filter_spec: dict[str, Any],
    *,
    transform: Callable[[list[Job]], list[Job]] | None = None,
    max_attempts: int = 3,
) -> PageResult[Job]:
    """Fetch raw batches until at least one job survives ``transform``.

    Stops early when the source runs dry. Errors from the source propagate
    to the caller, which decides how to report them before the UI starts.

    Returns:
        The kept jobs with the cursor/has_more of the last batch read.
    """
    cursor: str | None = None
    kept: list[Job] = []
    has_more = True
    for attempt in range(1, max(1, max_attempts) + 1):
        result = await source.fetch_page(filter_spec, cursor)
        batch = transform(list(result.records)) if transform else list(result.records)
        kept.extend(batch)
        cursor, has_more = result.next_cursor, result.has_more
        logger.debug(
            "Initial batch attempt %d: %d raw, %d kept", attempt, len(result.records), len(batch)
        )
        if not result.records:
            has_more = False
            break
        if kept or not has_more:
            break
    return PageResult(records=kept, next_cursor=cursor, has_more=has_more)


__all__ = ["fetch_initial_batch"]
