"""In-memory paged collection and page-aware selection cursor.

Both types are synchronous and terminal-agnostic. ``PagedCollection`` owns the
ordered records and the set of ids already seen; ``SelectionCursor`` maps the
highlighted row to a ``(page, offset)`` pair over that collection.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


def page_count(size: int, page_size: int) -> int:
    """Return the number of pages needed for ``size`` records (0 when empty)."""
    if size <= 0:
        return 0
    return -(-size // page_size)


class PagedCollection(Generic[T]):
    """Ordered, id-deduplicated record store.

    Insertion order is display order. Records are never removed by
    :meth:`merge`; only :meth:`set_all` replaces the contents.
    """

    def __init__(
        self,
        key: Callable[[T], Hashable],
        records: Iterable[T] = (),
    ) -> None:
        self._key = key
        self._records: list[T] = []
        self._seen: set[Hashable] = set()
        self.set_all(records)

    def set_all(self, records: Iterable[T]) -> None:
        """Replace the collection and reset the dedupe set to the new ids."""
        self._records = []
        self._seen = set()
        self.merge(records)

    def merge(self, new_records: Iterable[T]) -> list[T]:
        """Append records whose id is unseen, in order.

        Returns:
            The records actually appended.
        """
        appended: list[T] = []
        for record in new_records:
            record_id = self._key(record)
            if record_id in self._seen:
                continue
            self._seen.add(record_id)
            self._records.append(record)
            appended.append(record)
        return appended

    def key_of(self, record: T) -> Hashable:
        return self._key(record)

    def contains_id(self, record_id: Hashable) -> bool:
        return record_id in self._seen

    def size(self) -> int:
        return len(self._records)

    def get(self, global_index: int) -> T:
        return self._records[global_index]

    def slice(self, page: int, page_size: int) -> list[T]:
        start = page * page_size
        return self._records[start : start + page_size]

    def ids(self) -> list[Hashable]:
        return [self._key(record) for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(self._records)


@dataclass(slots=True)
class SelectionCursor:
    """Highlighted row expressed as ``(current_page, selected_index)``.

    Movement methods take the current collection size and return True when
    the position changed. Every method is a no-op on an empty collection.
    """

    page_size: int
    current_page: int = 0
    selected_index: int = 0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    def page_count(self, size: int) -> int:
        return page_count(size, self.page_size)

    def rows_on_page(self, size: int, page: int | None = None) -> int:
        """Return how many records the given (default: current) page holds."""
        page = self.current_page if page is None else page
        start = page * self.page_size
        return max(0, min(self.page_size, size - start))

    def global_index(self) -> int:
        return self.current_page * self.page_size + self.selected_index

    def is_first_page(self) -> bool:
        return self.current_page == 0

    def is_last_page(self, size: int) -> bool:
        return self.current_page >= self.page_count(size) - 1

    def is_second_to_last_page(self, size: int) -> bool:
        total_pages = self.page_count(size)
        return total_pages > 1 and self.current_page == total_pages - 2

    def is_on_last_row(self, size: int) -> bool:
        """True when the highlighted row is the last known record."""
        return size > 0 and self.global_index() == size - 1

    def reset(self) -> None:
        self.current_page = 0
        self.selected_index = 0

    def clamp(self, size: int) -> None:
        """Pull the position back into range after the collection changed."""
        if size <= 0:
            self.reset()
            return
        last_page = self.page_count(size) - 1
        if self.current_page > last_page:
            self.current_page = last_page
        rows = self.rows_on_page(size)
        if self.selected_index >= rows:
            self.selected_index = rows - 1
        self.selected_index = max(0, self.selected_index)

    def move_to(self, global_index: int, size: int) -> bool:
        """Jump to a linear index; out-of-range indices are ignored."""
        if not 0 <= global_index < size:
            return False
        self.current_page, self.selected_index = divmod(global_index, self.page_size)
        return True

    def move_up(self, size: int) -> bool:
        if size <= 0:
            return False
        if self.selected_index > 0:
            self.selected_index -= 1
            return True
        if self.is_first_page():
            return False
        self.current_page -= 1
        self.selected_index = self.rows_on_page(size) - 1
        return True

    def move_down(self, size: int) -> bool:
        if size <= 0:
            return False
        if self.selected_index < self.rows_on_page(size) - 1:
            self.selected_index += 1
            return True
        if self.is_last_page(size):
            return False
        self.current_page += 1
        self.selected_index = 0
        return True

    def move_left(self, size: int) -> bool:
        if size <= 0 or self.is_first_page():
            return False
        self.current_page -= 1
        self.selected_index = min(self.selected_index, self.rows_on_page(size) - 1)
        return True

    def move_right(self, size: int) -> bool:
        if size <= 0 or self.is_last_page(size):
            return False
        self.current_page += 1
        self.selected_index = min(self.selected_index, self.rows_on_page(size) - 1)
        return True


__all__ = [
    "PagedCollection",
    "SelectionCursor",
    "page_count",
]
