"""Tests for PagedCollection and SelectionCursor."""

from __future__ import annotations

import pytest

from job_browser.paging import PagedCollection, SelectionCursor, page_count


def _collection(ids):
    return PagedCollection(lambda record: record, ids)


class TestPageCount:
    @pytest.mark.parametrize(
        ("size", "page_size", "expected"),
        [(0, 15, 0), (1, 15, 1), (15, 15, 1), (16, 15, 2), (40, 15, 3), (45, 15, 3)],
    )
    def test_ceil_division(self, size, page_size, expected):
        assert page_count(size, page_size) == expected


class TestPagedCollection:
    def test_merge_appends_only_unseen_ids_in_order(self):
        collection = _collection(["a", "b"])
        appended = collection.merge(["b", "c", "a", "d"])

        assert appended == ["c", "d"]
        assert list(collection) == ["a", "b", "c", "d"]

    def test_merge_ignores_duplicates_within_one_batch(self):
        collection = _collection([])
        assert collection.merge(["x", "x", "y"]) == ["x", "y"]
        assert collection.size() == 2

    def test_merge_of_all_known_ids_is_a_no_op(self):
        collection = _collection(["a", "b"])
        assert collection.merge(["a", "b"]) == []
        assert collection.ids() == ["a", "b"]

    def test_set_all_replaces_records_and_seen_ids(self):
        collection = _collection(["a", "b"])
        collection.set_all(["c"])

        assert collection.ids() == ["c"]
        assert not collection.contains_id("a")
        assert collection.merge(["a"]) == ["a"]

    def test_set_all_drops_duplicate_ids(self):
        collection = _collection(["a", "a", "b"])
        assert collection.ids() == ["a", "b"]

    def test_slice_returns_partial_last_page(self, make_jobs):
        collection = PagedCollection(lambda job: job.id, make_jobs(40))

        assert [job.id for job in collection.slice(2, 15)] == [str(i) for i in range(30, 40)]
        assert collection.slice(3, 15) == []

    def test_key_of_and_get(self, make_jobs):
        jobs = make_jobs(3)
        collection = PagedCollection(lambda job: job.id, jobs)

        assert collection.get(1) is jobs[1]
        assert collection.key_of(jobs[2]) == "2"
        assert len(collection) == 3


class TestSelectionCursor:
    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            SelectionCursor(page_size=0)

    def test_move_down_within_page(self):
        cursor = SelectionCursor(page_size=15)
        assert cursor.move_down(40)
        assert (cursor.current_page, cursor.selected_index) == (0, 1)

    def test_move_down_on_last_row_advances_page(self):
        cursor = SelectionCursor(page_size=15, current_page=0, selected_index=14)
        assert cursor.move_down(40)
        assert (cursor.current_page, cursor.selected_index) == (1, 0)

    def test_move_down_on_last_record_does_not_move(self):
        cursor = SelectionCursor(page_size=15, current_page=2, selected_index=9)
        assert not cursor.move_down(40)
        assert (cursor.current_page, cursor.selected_index) == (2, 9)

    def test_move_up_on_first_row_goes_to_previous_page_last_row(self):
        cursor = SelectionCursor(page_size=15, current_page=1, selected_index=0)
        assert cursor.move_up(40)
        assert (cursor.current_page, cursor.selected_index) == (0, 14)

    def test_move_up_at_origin_does_not_move(self):
        cursor = SelectionCursor(page_size=15)
        assert not cursor.move_up(40)
        assert cursor.global_index() == 0

    def test_move_right_clamps_row_to_shorter_last_page(self):
        cursor = SelectionCursor(page_size=15, current_page=1, selected_index=12)
        assert cursor.move_right(40)
        assert (cursor.current_page, cursor.selected_index) == (2, 9)

    def test_move_right_on_last_page_does_not_move(self):
        cursor = SelectionCursor(page_size=15, current_page=2)
        assert not cursor.move_right(40)

    def test_move_left_keeps_row(self):
        cursor = SelectionCursor(page_size=15, current_page=2, selected_index=7)
        assert cursor.move_left(40)
        assert (cursor.current_page, cursor.selected_index) == (1, 7)

    def test_move_left_on_first_page_does_not_move(self):
        cursor = SelectionCursor(page_size=15, selected_index=3)
        assert not cursor.move_left(40)
        assert cursor.selected_index == 3

    @pytest.mark.parametrize("move", ["move_up", "move_down", "move_left", "move_right"])
    def test_moves_on_empty_collection_are_no_ops(self, move):
        cursor = SelectionCursor(page_size=15)
        assert not getattr(cursor, move)(0)
        assert (cursor.current_page, cursor.selected_index) == (0, 0)

    def test_page_position_predicates(self):
        cursor = SelectionCursor(page_size=15, current_page=1)
        assert cursor.is_second_to_last_page(40)
        assert not cursor.is_last_page(40)
        cursor.current_page = 2
        assert cursor.is_last_page(40)
        assert not cursor.is_second_to_last_page(40)

    def test_single_page_is_never_second_to_last(self):
        cursor = SelectionCursor(page_size=15)
        assert cursor.is_last_page(10)
        assert not cursor.is_second_to_last_page(10)

    def test_is_on_last_row(self):
        cursor = SelectionCursor(page_size=15, current_page=2, selected_index=9)
        assert cursor.is_on_last_row(40)
        assert not cursor.is_on_last_row(41)
        assert not SelectionCursor(page_size=15).is_on_last_row(0)

    def test_rows_on_page(self):
        cursor = SelectionCursor(page_size=15)
        assert cursor.rows_on_page(40) == 15
        assert cursor.rows_on_page(40, page=2) == 10
        assert cursor.rows_on_page(40, page=3) == 0

    def test_clamp_pulls_cursor_back_into_range(self):
        cursor = SelectionCursor(page_size=15, current_page=4, selected_index=14)
        cursor.clamp(40)
        assert (cursor.current_page, cursor.selected_index) == (2, 9)

    def test_clamp_on_empty_collection_resets(self):
        cursor = SelectionCursor(page_size=15, current_page=2, selected_index=3)
        cursor.clamp(0)
        assert (cursor.current_page, cursor.selected_index) == (0, 0)

    def test_move_to(self):
        cursor = SelectionCursor(page_size=15)
        assert cursor.move_to(31, 40)
        assert (cursor.current_page, cursor.selected_index) == (2, 1)
        assert not cursor.move_to(40, 40)
        assert cursor.global_index() == 31
