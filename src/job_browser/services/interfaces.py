"""Collaborator interfaces consumed by the browsing core, plus the service bundle."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import httpx

from job_browser.models import Job

T = TypeVar("T")


class FetchError(Exception):
    """A data source could not produce the next batch."""


# Everything a data source is allowed to raise out of ``fetch_page``.
FETCH_ERRORS: tuple[type[BaseException], ...] = (
    FetchError,
    httpx.HTTPError,
    OSError,
    ValueError,
)


@dataclass(slots=True)
class PageResult(Generic[T]):
    """One batch returned by a cursor-paginated source."""

    records: list[T] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


@runtime_checkable
class JobSource(Protocol):
    """Cursor-paginated source of job postings.

    Calling again with the same cursor after a failure must be safe.
    """

    async def fetch_page(
        self,
        filter_spec: dict[str, Any],
        cursor: str | None,
    ) -> PageResult[Job]:
        """Fetch the batch that follows ``cursor`` (``None`` for the first)."""
        ...


@runtime_checkable
class TrackingStore(Protocol):
    """Persistent per-job status ledger."""

    def get_status(self, job_id: str) -> str | None:
        """Return the stored tag for a job, or None when untracked."""
        ...

    def set_status(self, job_id: str, status: str, *, title: str = "") -> bool:
        """Store a tag for a job and return success."""
        ...

    def clear_status(self, job_id: str) -> bool:
        """Forget a job and return success."""
        ...


@dataclass(slots=True)
class AppServices:
    """Aggregated collaborators consumed by the app layer."""

    source: JobSource | None
    tracking: TrackingStore
    filter_spec: dict[str, Any] = field(default_factory=dict)


def statuses_for(tracking: TrackingStore, job_ids: Sequence[str]) -> dict[str, str]:
    """Look up stored tags for ``job_ids``, omitting untracked ones."""
    result: dict[str, str] = {}
    for job_id in job_ids:
        status = tracking.get_status(job_id)
        if status:
            result[job_id] = status
    return result


__all__ = [
    "FETCH_ERRORS",
    "AppServices",
    "FetchError",
    "JobSource",
    "PageResult",
    "TrackingStore",
    "statuses_for",
]
