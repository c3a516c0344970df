"""Textual shell around :class:`~job_browser.navigation.BrowseSession`."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from rich.text import Text
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import Header, Label

from job_browser.action_messages import (
    build_actionable_error,
    build_actionable_warning,
    build_load_more_error,
    build_page_info,
)
from job_browser.details import show_job_details
from job_browser.models import Job, UserConfig
from job_browser.navigation import (
    CMD_MOVE,
    CMD_NONE,
    CMD_QUIT,
    CMD_SELECT,
    BrowseSession,
    KeyMap,
)
from job_browser.services.http_source import HttpJobSource
from job_browser.services.interfaces import AppServices, PageResult
from job_browser.ui_constants import APP_BINDINGS, APP_CSS
from job_browser.widgets.listing import (
    JobTable,
    build_controls,
    loading_text,
    set_ascii_icons,
)

logger = logging.getLogger(__name__)

NO_MORE_JOBS_MESSAGE = "No more jobs to load."


class JobBrowser(App):
    """Paginated job table with background prefetch and status tagging."""

    TITLE = "Job Browser"
    CSS = APP_CSS
    BINDINGS = APP_BINDINGS
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        initial: PageResult[Job],
        services: AppServices,
        config: UserConfig | None = None,
        *,
        transform: Callable[[list[Job]], list[Job]] | None = None,
        on_select: Callable[[Job], None] | None = None,
        ascii_icons: bool = False,
        debounce_delay: float | None = None,
    ) -> None:
        super().__init__()
        self._config = config or UserConfig()
        self._services = services
        self._initial = initial
        self._on_select = on_select or show_job_details
        set_ascii_icons(ascii_icons)
        if debounce_delay is None:
            debounce_delay = self._config.prefetch_debounce_ms / 1000

        self.session: BrowseSession[Job] = BrowseSession(
            key=lambda job: job.id,
            tracking=services.tracking,
            source=services.source,
            page_size=self._config.page_size,
            filter_spec=services.filter_spec,
            transform=transform,
            title_of=lambda job: job.title,
            keymap=KeyMap(status_keys=dict(self._config.status_keys)),
            debounce_delay=debounce_delay,
            on_change=self._redraw,
            on_error=self._on_fetch_error,
        )

        # Shared HTTP client for the job source (created in on_mount)
        self._http_client: httpx.AsyncClient | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("", id="loading-line")
        yield JobTable(id="job-table")
        yield Label("", id="page-info")
        yield Label("", id="controls")

    def on_mount(self) -> None:
        source = self._services.source
        if isinstance(source, HttpJobSource) and source.client is None:
            self._http_client = httpx.AsyncClient()
            source.client = self._http_client

        if self._config.config_defaulted:
            self.notify(
                build_actionable_warning(
                    "Config file was corrupt and has been backed up. Using defaults",
                    next_step="run with --save to write a fresh config file",
                ),
                severity="warning",
                timeout=8,
            )

        initial = self._initial
        self.session.start(
            initial.records,
            cursor=initial.next_cursor,
            has_more=initial.has_more,
        )
        self._redraw()
        logger.debug(
            "App mounted: %d jobs, has_more=%s, page_size=%d",
            self.session.collection.size(),
            initial.has_more,
            self.session.cursor.page_size,
        )

    async def on_unmount(self) -> None:
        self.session.stop()

        client = self._http_client
        self._http_client = None
        if client is not None:
            source = self._services.source
            if isinstance(source, HttpJobSource) and source.client is client:
                source.client = None
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    # ── Input ────────────────────────────────────────────────────────────

    def on_key(self, event: Key) -> None:
        """Route every key through the session's dispatcher."""
        key = event.key
        if len(key) == 1:
            key = key.lower()

        session = self.session
        delta = session.handle_key(key)
        if delta.command == CMD_NONE:
            return
        event.prevent_default()
        event.stop()

        if delta.command == CMD_QUIT:
            self.exit()
            return
        if delta.command == CMD_SELECT and delta.global_index is not None:
            self._open_job(session.collection.get(delta.global_index))
        elif delta.command == CMD_MOVE and not delta.moved:
            self._notify_if_exhausted(key)
        self._redraw()

    def _notify_if_exhausted(self, key: str) -> None:
        """Tell the user when forward navigation hits the true end of the data."""
        session = self.session
        size = session.collection.size()
        if key not in ("down", "right") or not session.cursor.is_last_page(size):
            return
        if key == "down" and not session.cursor.is_on_last_row(size):
            return
        if session.prefetch.state.has_more or session.prefetch.is_loading:
            return
        self.notify(NO_MORE_JOBS_MESSAGE, title="Jobs", timeout=3)

    # ── Selection ────────────────────────────────────────────────────────

    def _open_job(self, job: Job) -> None:
        """Hand the terminal to the selection handler, then resume browsing."""
        session = self.session
        session.suspend()
        try:
            self._run_select_handler(job)
        except Exception as exc:
            logger.exception("Selection handler failed for job %s", job.id)
            self.notify(
                build_actionable_error(
                    "open the job details",
                    why=str(exc) or type(exc).__name__,
                    next_step="press Enter to try again or pick another job",
                ),
                title="Jobs",
                severity="error",
                timeout=8,
            )
        finally:
            session.resume()
            session.overlay.refresh(job.id)

    def _run_select_handler(self, job: Job) -> None:
        try:
            with self.suspend():
                self._on_select(job)
        except SuspendNotSupported:
            logger.debug("Terminal suspend not supported; running handler in place")
            self._on_select(job)

    # ── Prefetch callbacks ───────────────────────────────────────────────

    def _on_fetch_error(self, exc: BaseException) -> None:
        self.notify(build_load_more_error(exc), title="Jobs", severity="warning", timeout=6)

    # ── Rendering ────────────────────────────────────────────────────────

    def _redraw(self) -> None:
        """Render the visible page, loading line, page info and controls."""
        try:
            table = self.query_one("#job-table", JobTable)
            loading = self.query_one("#loading-line", Label)
            page_info = self.query_one("#page-info", Label)
            controls = self.query_one("#controls", Label)
        except NoMatches:
            return

        session = self.session
        cursor = session.cursor
        size = session.collection.size()
        page = session.visible_page()
        first_index = cursor.current_page * cursor.page_size

        table.show_page(page, cursor.selected_index, session.status_of, first_index=first_index)
        loading.update(loading_text() if session.prefetch.is_loading else "")
        page_info.update(
            Text(
                build_page_info(
                    cursor.current_page,
                    session.page_count(),
                    first_index + 1,
                    first_index + len(page),
                    size,
                    has_more=session.prefetch.state.has_more,
                )
            )
        )
        selected = session.selected_record()
        controls.update(
            Text(
                build_controls(
                    session.status_of(selected) if selected is not None else None,
                    status_keys=dict(session.keymap.status_keys),
                    has_selection=selected is not None,
                    is_first_page=cursor.is_first_page(),
                    is_last_page=cursor.is_last_page(size),
                )
            )
        )
        self.sub_title = f"{size} jobs loaded"


__all__ = ["NO_MORE_JOBS_MESSAGE", "JobBrowser"]
