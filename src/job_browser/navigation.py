"""Key dispatch and the browsing session that owns all navigation state.

``dispatch`` is a pure function from a key name and the current position to a
:class:`StateDelta`. :class:`BrowseSession` is the imperative side: it applies
deltas, mutates the overlay, and asks the prefetch coordinator whether to
load more. The Textual app only translates key events and redraws.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from job_browser.models import DEFAULT_STATUS_KEYS
from job_browser.overlay import StatusOverlay
from job_browser.paging import PagedCollection, SelectionCursor
from job_browser.prefetch import PREFETCH_DEBOUNCE_DELAY, PrefetchCoordinator
from job_browser.services.interfaces import JobSource, TrackingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Commands produced by dispatch()
CMD_NONE = "none"
CMD_MOVE = "move"
CMD_SELECT = "select"
CMD_TOGGLE = "toggle"
CMD_QUIT = "quit"

NAVIGATION_KEYS = ("up", "down", "left", "right")
SELECT_KEY = "enter"
QUIT_KEYS = ("q", "ctrl+c")
# dispatch() handles these before status letters; config never binds a tag to them.
RESERVED_KEYS = frozenset({*NAVIGATION_KEYS, SELECT_KEY, *QUIT_KEYS})

# Session lifecycle phases
PHASE_IDLE = "idle"
PHASE_RUNNING = "running"
PHASE_SUSPENDED = "suspended"
PHASE_STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class KeyMap:
    """The full input vocabulary: arrows, enter, status letters, quit."""

    status_keys: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_KEYS))
    quit_keys: tuple[str, ...] = QUIT_KEYS

    def key_for(self, tag: str) -> str | None:
        """Return the letter bound to ``tag``, if any."""
        for letter, bound_tag in self.status_keys.items():
            if bound_tag == tag:
                return letter
        return None


@dataclass(frozen=True, slots=True)
class StateDelta:
    """Result of dispatching one key: what should change, not how."""

    command: str = CMD_NONE
    cursor: SelectionCursor | None = None
    moved: bool = False
    global_index: int | None = None
    tag: str | None = None


def dispatch(key: str, cursor: SelectionCursor, size: int, keymap: KeyMap) -> StateDelta:
    """Map a key press to a :class:`StateDelta` without touching ``cursor``."""
    if key in keymap.quit_keys:
        return StateDelta(command=CMD_QUIT)

    if key in NAVIGATION_KEYS:
        moved_cursor = dataclasses.replace(cursor)
        mover = {
            "up": moved_cursor.move_up,
            "down": moved_cursor.move_down,
            "left": moved_cursor.move_left,
            "right": moved_cursor.move_right,
        }[key]
        moved = mover(size)
        return StateDelta(command=CMD_MOVE, cursor=moved_cursor, moved=moved)

    if size <= 0:
        return StateDelta()

    if key == SELECT_KEY:
        return StateDelta(command=CMD_SELECT, global_index=cursor.global_index())

    tag = keymap.status_keys.get(key)
    if tag is not None:
        return StateDelta(command=CMD_TOGGLE, global_index=cursor.global_index(), tag=tag)

    return StateDelta()


class BrowseSession(Generic[T]):
    """One interactive browsing session.

    Owns the paged collection, selection cursor, prefetch coordinator (and
    its state), and status overlay. Lifecycle: ``start`` → (``suspend`` ↔
    ``resume``)* → ``stop``.
    """

    def __init__(
        self,
        *,
        key: Callable[[T], str],
        tracking: TrackingStore,
        source: JobSource | None = None,
        page_size: int,
        filter_spec: dict[str, Any] | None = None,
        transform: Callable[[list[T]], list[T]] | None = None,
        title_of: Callable[[T], str] | None = None,
        keymap: KeyMap | None = None,
        debounce_delay: float = PREFETCH_DEBOUNCE_DELAY,
        on_change: Callable[[], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._key = key
        self._title_of = title_of
        self.keymap = keymap or KeyMap()
        self.collection: PagedCollection[T] = PagedCollection(key)
        self.cursor = SelectionCursor(page_size=page_size)
        self.overlay = StatusOverlay(tracking)
        self.prefetch: PrefetchCoordinator[T] = PrefetchCoordinator(
            self.collection,
            source,
            filter_spec=filter_spec,
            transform=transform,
            on_merged=self._on_merged,
            on_change=on_change,
            on_error=on_error,
            debounce_delay=debounce_delay,
        )
        self.phase = PHASE_IDLE

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(
        self,
        records: Iterable[T] = (),
        *,
        cursor: str | None = None,
        has_more: bool = True,
    ) -> None:
        """Populate the session with its initial batch and begin accepting keys."""
        self.replace_all(records, cursor=cursor, has_more=has_more)
        self.phase = PHASE_RUNNING
        logger.debug("Session started with %d records", self.collection.size())

    def suspend(self) -> None:
        if self.phase == PHASE_RUNNING:
            self.phase = PHASE_SUSPENDED

    def resume(self) -> None:
        if self.phase == PHASE_SUSPENDED:
            self.phase = PHASE_RUNNING

    def stop(self) -> None:
        self.prefetch.close()
        self.phase = PHASE_STOPPED
        logger.debug("Session stopped with %d records", self.collection.size())

    @property
    def is_running(self) -> bool:
        return self.phase == PHASE_RUNNING

    # ── Collection management ────────────────────────────────────────────

    def replace_all(
        self,
        records: Iterable[T],
        *,
        cursor: str | None = None,
        has_more: bool = True,
    ) -> None:
        """Swap in a fresh result set (new search): cursor and paging restart."""
        self.collection.set_all(records)
        self.cursor.reset()
        self.prefetch.reset(cursor, has_more)
        self.overlay.seed(str(job_id) for job_id in self.collection.ids())

    def _on_merged(self, appended: list[T]) -> None:
        self.overlay.seed(self._key(record) for record in appended)
        self.cursor.clamp(self.collection.size())

    # ── Key handling ─────────────────────────────────────────────────────

    def handle_key(self, key: str) -> StateDelta:
        """Dispatch ``key`` and apply its delta."""
        delta = dispatch(key, self.cursor, self.collection.size(), self.keymap)
        self.apply(delta)
        return delta

    def apply(self, delta: StateDelta) -> None:
        """Apply the state part of a delta.

        Selection and quit are left to the caller, which owns the terminal.
        """
        if not self.is_running:
            return
        if delta.command == CMD_MOVE and delta.cursor is not None:
            self.cursor = delta.cursor
            self.prefetch.schedule(self.cursor)
        elif delta.command == CMD_TOGGLE and delta.tag and delta.global_index is not None:
            record = self.collection.get(delta.global_index)
            title = self._title_of(record) if self._title_of else ""
            self.overlay.toggle(self._key(record), delta.tag, title=title)

    # ── Read side for the renderer ───────────────────────────────────────

    def visible_page(self) -> list[T]:
        return self.collection.slice(self.cursor.current_page, self.cursor.page_size)

    def selected_record(self) -> T | None:
        if self.collection.size() == 0:
            return None
        index = self.cursor.global_index()
        if index >= self.collection.size():
            return None
        return self.collection.get(index)

    def status_of(self, record: T) -> str | None:
        return self.overlay.get(self._key(record))

    def page_count(self) -> int:
        return self.cursor.page_count(self.collection.size())


__all__ = [
    "CMD_MOVE",
    "CMD_NONE",
    "CMD_QUIT",
    "CMD_SELECT",
    "CMD_TOGGLE",
    "NAVIGATION_KEYS",
    "PHASE_IDLE",
    "PHASE_RUNNING",
    "PHASE_STOPPED",
    "PHASE_SUSPENDED",
    "QUIT_KEYS",
    "RESERVED_KEYS",
    "SELECT_KEY",
    "BrowseSession",
    "KeyMap",
    "StateDelta",
    "dispatch",
]
