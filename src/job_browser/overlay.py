"""Per-job status tags shown over the browsed collection."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from job_browser.services.interfaces import TrackingStore, statuses_for

logger = logging.getLogger(__name__)


class StatusOverlay:
    """In-memory status tags keyed by job id, mirrored to a tracking store.

    The overlay is display-only: it never reorders records and has no say in
    prefetching. Each mutation is written through to the store before the
    method returns, so the ledger and the screen agree within a session.
    """

    def __init__(self, tracking: TrackingStore) -> None:
        self._tracking = tracking
        self._tags: dict[str, str] = {}

    def seed(self, job_ids: Iterable[str]) -> None:
        """Read stored tags for jobs that just became visible."""
        self._tags.update(statuses_for(self._tracking, list(job_ids)))

    def get(self, job_id: str) -> str | None:
        return self._tags.get(job_id)

    def toggle(self, job_id: str, tag: str, *, title: str = "") -> str | None:
        """Set ``tag`` on a job, or clear it when it is already set.

        Returns:
            The job's tag after the toggle (None when cleared).
        """
        if self._tags.get(job_id) == tag:
            del self._tags[job_id]
            if not self._tracking.clear_status(job_id):
                logger.warning("Tracking store failed to clear status for %s", job_id)
            return None

        self._tags[job_id] = tag
        if not self._tracking.set_status(job_id, tag, title=title):
            logger.warning("Tracking store failed to save %r for %s", tag, job_id)
        return tag

    def refresh(self, job_id: str) -> None:
        """Re-read one job's tag, e.g. after an external detail view changed it."""
        status = self._tracking.get_status(job_id)
        if status:
            self._tags[job_id] = status
        else:
            self._tags.pop(job_id, None)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._tags

    def __len__(self) -> int:
        return len(self._tags)


__all__ = ["StatusOverlay"]
