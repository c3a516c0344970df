"""Local job source that pages through a JSON file with an offset cursor."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from job_browser.models import DEFAULT_BATCH_SIZE, Job
from job_browser.services.http_source import parse_page_payload
from job_browser.services.interfaces import FetchError, PageResult

logger = logging.getLogger(__name__)


def load_job_file(path: Path) -> list[Job]:
    """Parse a file holding a job list or a ``{"jobs": [...]}`` object.

    Raises:
        FetchError: The file is not valid JSON or has the wrong shape.
        OSError: The file cannot be read.
    """
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FetchError(f"{path.name} is not valid JSON: {exc}") from exc
    if isinstance(payload, list):
        payload = {"jobs": payload}
    return parse_page_payload(payload).records


class FileJobSource:
    """Serve a pre-parsed job list in fixed-size batches.

    The cursor is the stringified offset of the next batch, so repeating a
    call with the same cursor returns the same batch.
    """

    def __init__(self, jobs: list[Job], *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._jobs = list(jobs)
        self.batch_size = max(1, batch_size)

    @classmethod
    def from_path(cls, path: Path, *, batch_size: int = DEFAULT_BATCH_SIZE) -> FileJobSource:
        return cls(load_job_file(path), batch_size=batch_size)

    async def fetch_page(
        self,
        filter_spec: dict[str, Any],
        cursor: str | None,
    ) -> PageResult[Job]:
        try:
            start = int(cursor) if cursor else 0
        except ValueError as exc:
            raise FetchError(f"invalid file cursor {cursor!r}") from exc
        end = start + self.batch_size
        batch = self._jobs[start:end]
        has_more = end < len(self._jobs)
        logger.debug("File source served jobs %d-%d of %d", start, end, len(self._jobs))
        return PageResult(
            records=batch,
            next_cursor=str(end) if has_more else None,
            has_more=has_more,
        )


__all__ = [
    "FileJobSource",
    "load_job_file",
]
