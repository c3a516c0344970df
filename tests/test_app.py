"""TUI tests for the JobBrowser app using Textual's pilot."""

from __future__ import annotations

import re
from unittest.mock import MagicMock, patch

import httpx
import pytest

from job_browser.app import NO_MORE_JOBS_MESSAGE, JobBrowser
from job_browser.models import STATUS_APPLIED, STATUS_NOT_INTERESTED
from job_browser.services.http_source import HttpJobSource
from job_browser.services.interfaces import AppServices, PageResult
from job_browser.ui_constants import APP_CSS


def _app(jobs, tracking, *, source=None, has_more=False, config=None, **kwargs):
    services = AppServices(source=source, tracking=tracking, filter_spec={"query": "python"})
    initial = PageResult(records=jobs, next_cursor="c1" if has_more else None, has_more=has_more)
    kwargs.setdefault("debounce_delay", 0.01)
    return JobBrowser(initial, services, config, **kwargs)


@pytest.mark.asyncio
async def test_mount_starts_session_with_initial_batch(tracking_store, make_jobs):
    app = _app(make_jobs(20), tracking_store)

    async with app.run_test():
        assert app.session.is_running
        assert app.session.collection.size() == 20
        assert app.session.page_count() == 2
        assert app.sub_title == "20 jobs loaded"


@pytest.mark.asyncio
async def test_arrow_keys_move_selection(tracking_store, make_jobs):
    app = _app(make_jobs(20), tracking_store)

    async with app.run_test() as pilot:
        await pilot.press("down", "down")
        assert app.session.cursor.selected_index == 2
        await pilot.press("right")
        assert app.session.cursor.current_page == 1
        assert app.session.selected_record().id == "17"
        await pilot.press("left", "up")
        assert app.session.cursor.global_index() == 1


@pytest.mark.asyncio
async def test_status_keys_toggle_and_persist(tracking_store, make_jobs):
    app = _app(make_jobs(5), tracking_store)

    async with app.run_test() as pilot:
        await pilot.press("down", "a")
        assert tracking_store.get_status("1") == STATUS_APPLIED
        assert app.session.status_of(app.session.collection.get(1)) == STATUS_APPLIED

        await pilot.press("n")
        assert tracking_store.get_status("1") == STATUS_NOT_INTERESTED

        await pilot.press("n")
        assert tracking_store.get_status("1") is None


@pytest.mark.asyncio
async def test_quit_key_exits(tracking_store, make_jobs):
    app = _app(make_jobs(3), tracking_store)

    async with app.run_test() as pilot:
        with patch.object(app, "exit") as exit_mock:
            await pilot.press("q")
        exit_mock.assert_called_once_with()


@pytest.mark.asyncio
async def test_enter_runs_select_handler_and_resumes(tracking_store, make_jobs):
    seen = []

    def on_select(job):
        assert not app.session.is_running
        tracking_store.set_status(job.id, STATUS_APPLIED)
        seen.append(job.id)

    app = _app(make_jobs(5), tracking_store, on_select=on_select)

    async with app.run_test() as pilot:
        await pilot.press("down", "down", "enter")
        assert seen == ["2"]
        assert app.session.is_running
        # Changes made by the handler show up on return.
        assert app.session.status_of(app.session.collection.get(2)) == STATUS_APPLIED


@pytest.mark.asyncio
async def test_failing_select_handler_is_reported(tracking_store, make_jobs):
    on_select = MagicMock(side_effect=RuntimeError("viewer crashed"))
    app = _app(make_jobs(2), tracking_store, on_select=on_select)

    async with app.run_test() as pilot:
        with patch.object(app, "notify") as notify:
            await pilot.press("enter")
        assert app.session.is_running
        message = notify.call_args[0][0]
        assert message.startswith("Could not open the job details.")
        assert "viewer crashed" in message
        assert notify.call_args[1]["severity"] == "error"


@pytest.mark.asyncio
async def test_enter_on_empty_list_does_nothing(tracking_store):
    on_select = MagicMock()
    app = _app([], tracking_store, on_select=on_select)

    async with app.run_test() as pilot:
        await pilot.press("enter", "a")
    on_select.assert_not_called()


@pytest.mark.asyncio
async def test_paging_forward_prefetches_next_batch(tracking_store, stub_source, make_jobs):
    source = stub_source([PageResult(records=make_jobs(10, start=40), next_cursor="c2", has_more=True)])
    # Long debounce: only the immediate load on the last page may fire.
    app = _app(make_jobs(40), tracking_store, source=source, has_more=True, debounce_delay=5)

    async with app.run_test() as pilot:
        await pilot.press("right", "right")
        await app.session.prefetch.wait_idle()
        await pilot.pause()

        assert app.session.collection.size() == 50
        assert source.calls == [({"query": "python"}, "c1")]
        assert app.session.cursor.current_page == 2
        assert not app.session.prefetch.is_loading


@pytest.mark.asyncio
async def test_failed_prefetch_shows_warning(tracking_store, stub_source, make_jobs):
    source = stub_source([httpx.ConnectError("offline")])
    app = _app(make_jobs(10), tracking_store, source=source, has_more=True)

    async with app.run_test() as pilot:
        with patch.object(app, "notify") as notify:
            await pilot.press("down")
            await app.session.prefetch.wait_idle()
            await pilot.pause()

        assert notify.call_args[1]["severity"] == "warning"
        assert notify.call_args[0][0].startswith("Could not load more jobs.")
        assert app.session.prefetch.state.cursor == "c1"
        assert app.session.collection.size() == 10


@pytest.mark.asyncio
async def test_end_of_data_is_announced(tracking_store, make_jobs):
    app = _app(make_jobs(2), tracking_store, has_more=False)

    async with app.run_test() as pilot:
        await pilot.press("down")
        with patch.object(app, "notify") as notify:
            await pilot.press("down")
        assert notify.call_args[0][0] == NO_MORE_JOBS_MESSAGE


@pytest.mark.asyncio
async def test_corrupt_config_warning_on_mount(tracking_store, make_jobs, sample_config):
    config = sample_config()
    config.config_defaulted = True
    app = _app(make_jobs(1), tracking_store, config=config)

    with patch.object(JobBrowser, "notify") as notify:
        async with app.run_test():
            pass

    message = notify.call_args_list[0][0][0]
    assert message.startswith("Config file was corrupt")
    assert "Next step: run with --save" in message
    assert notify.call_args_list[0][1]["severity"] == "warning"


@pytest.mark.asyncio
async def test_page_size_comes_from_config(tracking_store, make_jobs, sample_config):
    app = _app(make_jobs(12), tracking_store, config=sample_config(page_size=5))

    async with app.run_test():
        assert app.session.page_count() == 3
        assert len(app.session.visible_page()) == 5


@pytest.mark.asyncio
async def test_http_client_lifecycle(tracking_store, make_jobs):
    source = HttpJobSource("https://jobs.example/search")
    app = _app(make_jobs(1), tracking_store, source=source)

    async with app.run_test():
        assert isinstance(source.client, httpx.AsyncClient)
        client = source.client

    assert source.client is None
    assert client.is_closed


@pytest.mark.asyncio
async def test_every_css_id_selector_matches_a_widget(tracking_store, make_jobs):
    app = _app(make_jobs(1), tracking_store)
    selectors = re.findall(r"^#([\w-]+)\s*\{", APP_CSS, flags=re.MULTILINE)

    async with app.run_test():
        assert selectors
        for widget_id in selectors:
            app.query_one(f"#{widget_id}")
