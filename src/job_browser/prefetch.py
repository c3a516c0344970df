"""Background prefetch of the next batch while the user pages forward.

The coordinator runs on the app's asyncio loop. Its only suspension point is
the data source call; scheduling, merging and state updates are synchronous.
At most one fetch is outstanding at any time, and a pending debounce timer is
replaced (never nested) by each new trigger.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from job_browser.paging import PagedCollection, SelectionCursor
from job_browser.services.interfaces import FETCH_ERRORS, JobSource, PageResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

PREFETCH_DEBOUNCE_DELAY = 0.15  # seconds


@dataclass(slots=True)
class PrefetchState:
    """Remote paging state owned by :class:`PrefetchCoordinator`."""

    cursor: str | None = None
    has_more: bool = True
    in_flight: bool = False


class PrefetchCoordinator(Generic[T]):
    """Decide when to fetch more records and run those fetches single-flight.

    Args:
        collection: Collection that receives merged batches.
        source: Data source collaborator; ``None`` disables prefetching.
        filter_spec: Opaque filters forwarded to the source on every call.
        transform: Caller-owned filter/sort step applied to each raw batch.
        on_merged: Called with the records appended by each merge.
        on_change: Called whenever loading starts or stops (redraw hook).
        on_error: Called with the exception when a fetch fails.
        debounce_delay: Seconds to wait for navigation to settle.
    """

    def __init__(
        self,
        collection: PagedCollection[T],
        source: JobSource | None,
        *,
        filter_spec: dict[str, Any] | None = None,
        transform: Callable[[list[T]], list[T]] | None = None,
        on_merged: Callable[[list[T]], None] | None = None,
        on_change: Callable[[], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
        debounce_delay: float = PREFETCH_DEBOUNCE_DELAY,
        state: PrefetchState | None = None,
    ) -> None:
        self._collection = collection
        self._source = source
        self._filter_spec = dict(filter_spec or {})
        self._transform = transform
        self._on_merged = on_merged
        self._on_change = on_change
        self._on_error = on_error
        self._debounce_delay = max(0.0, debounce_delay)
        self.state = state or PrefetchState()
        self._timer: asyncio.TimerHandle | None = None
        self._background_tasks: set[asyncio.Task[bool]] = set()
        self._closed = False

    @property
    def enabled(self) -> bool:
        return self._source is not None

    @property
    def is_loading(self) -> bool:
        return self.state.in_flight

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def should_prefetch(self, cursor: SelectionCursor) -> bool:
        """True when a source exists and the cursor is on one of the last two pages."""
        if not self.enabled:
            return False
        size = self._collection.size()
        return cursor.is_second_to_last_page(size) or cursor.is_last_page(size)

    def needs_immediate_load(self, cursor: SelectionCursor) -> bool:
        """True when the user is on the last known page and more data exists."""
        return (
            self.should_prefetch(cursor)
            and self.state.has_more
            and cursor.is_last_page(self._collection.size())
        )

    def schedule(self, cursor: SelectionCursor, *, immediate: bool | None = None) -> None:
        """React to a navigation event.

        Restarts the debounce timer, or fetches at once when ``immediate`` is
        set (default: :meth:`needs_immediate_load`).
        """
        if self._closed or not self.should_prefetch(cursor) or not self.state.has_more:
            return
        if immediate is None:
            immediate = self.needs_immediate_load(cursor)

        self._cancel_timer()
        if immediate:
            self._fire()
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_delay, self._fire)

    async def load_more(self) -> bool:
        """Fetch and merge the next batch now.

        Returns:
            True when at least one genuinely new record was appended.
        """
        if not self._claim():
            return False
        return await self._run_fetch()

    def reset(self, cursor: str | None = None, has_more: bool = True) -> None:
        """Start over for a fresh search; any pending trigger is dropped."""
        self._cancel_timer()
        self.state.cursor = cursor
        self.state.has_more = has_more

    def close(self) -> None:
        """Stop issuing fetches. An already running fetch completes on its own."""
        self._closed = True
        self._cancel_timer()

    async def wait_idle(self) -> None:
        """Wait until spawned background fetches have finished."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _fire(self) -> None:
        self._timer = None
        if self._claim():
            self._track_task(self._run_fetch())

    def _claim(self) -> bool:
        """Mark a fetch as in flight, or refuse when one may not start."""
        if self._closed or self._source is None:
            return False
        if self.state.in_flight or not self.state.has_more:
            return False
        self.state.in_flight = True
        self._notify_change()
        return True

    async def _run_fetch(self) -> bool:
        assert self._source is not None
        progressed = False
        try:
            result: PageResult[T] = await self._source.fetch_page(
                self._filter_spec, self.state.cursor
            )
            progressed = self._apply_result(result)
        except FETCH_ERRORS as exc:
            logger.warning(
                "Prefetch failed at cursor %r: %s", self.state.cursor, exc, exc_info=True
            )
            if self._on_error is not None:
                self._on_error(exc)
        except Exception as exc:
            logger.exception("Unexpected prefetch error at cursor %r", self.state.cursor)
            if self._on_error is not None:
                self._on_error(exc)
        finally:
            self.state.in_flight = False
            self._notify_change()
        return progressed

    def _apply_result(self, result: PageResult[T]) -> bool:
        if not result.records:
            self.state.has_more = False
            logger.debug("Source returned an empty batch; no more data")
            return False

        batch = self._transform(list(result.records)) if self._transform else result.records
        appended = self._collection.merge(batch)
        self.state.cursor = result.next_cursor
        self.state.has_more = result.has_more
        logger.debug(
            "Merged %d/%d records (total=%d, has_more=%s)",
            len(appended),
            len(result.records),
            self._collection.size(),
            result.has_more,
        )
        if appended and self._on_merged is not None:
            self._on_merged(appended)
        return bool(appended)

    def _notify_change(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _track_task(self, coro: Any) -> asyncio.Task[bool]:
        """Create an asyncio task and keep a reference until it finishes."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[bool]) -> None:
        """Log unhandled exceptions from background fetches."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in prefetch task: %s", exc, exc_info=exc)


__all__ = [
    "PREFETCH_DEBOUNCE_DELAY",
    "PrefetchCoordinator",
    "PrefetchState",
]
