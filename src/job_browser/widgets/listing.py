"""Job table rendering and the widgets that display it."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from job_browser.jobs import (
    format_budget,
    format_client_info,
    format_duration,
    format_posted,
)
from job_browser.models import STATUS_APPLIED, STATUS_NOT_INTERESTED, Job

# (header, width) per column
JOB_COLUMNS: tuple[tuple[str, int], ...] = (
    ("#", 5),
    ("Job Title", 60),
    ("Budget", 16),
    ("Duration", 9),
    ("Proposals", 9),
    ("Client", 20),
    ("Country", 14),
    ("Posted", 17),
)

STATUS_STYLES: dict[str, str] = {
    STATUS_APPLIED: "green",
    STATUS_NOT_INTERESTED: "grey50",
}
SELECTED_STYLE = "yellow"
LOADING_TEXT = "Loading more jobs in background..."

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {"premium": "⚡", "loading": "🔄", "updown": "↑/↓", "left": "←", "right": "→"},
    "ascii": {"premium": "*", "loading": "...", "updown": "Up/Down", "left": "Left", "right": "Right"},
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]
_ASCII_ONLY = False


def set_ascii_icons(enabled: bool) -> None:
    """Switch table glyphs between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET, _ASCII_ONLY
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]
    _ASCII_ONLY = enabled


def row_style(status: str | None, selected: bool) -> str:
    """Selected rows are yellow (bold when tagged); otherwise color by status."""
    if selected:
        return f"bold {SELECTED_STYLE}" if status in STATUS_STYLES else SELECTED_STYLE
    return STATUS_STYLES.get(status or "", "")


def job_row_cells(job: Job, global_index: int) -> list[str]:
    """Plain cell values for one job row."""
    title = f"{_ACTIVE_ICON_SET['premium']} {job.title}" if job.premium else job.title
    country = job.client.country if job.client and job.client.country else "N/A"
    return [
        str(global_index + 1),
        title,
        format_budget(job),
        format_duration(job.duration_label),
        str(job.total_applicants),
        format_client_info(job.client, ascii_only=_ASCII_ONLY),
        country,
        format_posted(job),
    ]


def render_job_table(
    page: Sequence[Job],
    selected_index: int,
    status_of: Callable[[Job], str | None],
    *,
    first_index: int = 0,
) -> Table:
    """Render one page of jobs as a Rich table.

    Args:
        page: Jobs on the visible page.
        selected_index: Highlighted row within ``page``.
        status_of: Overlay lookup for each job.
        first_index: Global index of ``page[0]`` (for the ``#`` column).
    """
    table = Table(expand=True, header_style="bold cyan", border_style="grey50")
    for header, width in JOB_COLUMNS:
        table.add_column(header, width=width, overflow="fold")
    for offset, job in enumerate(page):
        selected = offset == selected_index
        table.add_row(
            *(Text(cell) for cell in job_row_cells(job, first_index + offset)),
            style=row_style(status_of(job), selected) or None,
        )
    return table


def build_controls(
    status: str | None,
    *,
    status_keys: dict[str, str],
    has_selection: bool,
    is_first_page: bool,
    is_last_page: bool,
) -> str:
    """Footer controls; toggle labels reflect the highlighted job's status."""
    arrows = _ACTIVE_ICON_SET
    parts = [f"[{arrows['updown']}] Navigate", "[Enter] Select"]
    if has_selection:
        for letter, tag in status_keys.items():
            label = tag.replace("-", " ").title()
            key = letter.upper()
            if status == tag:
                parts.append(f"[{key}] Clear {label}")
            else:
                parts.append(f"[{key}] {label}")
    if not is_first_page:
        parts.append(f"[{arrows['left']}] Prev Page")
    if not is_last_page:
        parts.append(f"[{arrows['right']}] Next Page")
    parts.append("[Q] Quit")
    return " | ".join(parts)


def loading_text() -> Text:
    return Text(f"{_ACTIVE_ICON_SET['loading']} {LOADING_TEXT}", style="italic cyan")


class JobTable(Static):
    """Static widget holding the rendered page table."""

    def show_page(
        self,
        page: Sequence[Job],
        selected_index: int,
        status_of: Callable[[Job], str | None],
        *,
        first_index: int = 0,
    ) -> None:
        if not page:
            self.update("[dim italic]No jobs to show.[/]")
            return
        self.update(render_job_table(page, selected_index, status_of, first_index=first_index))


__all__ = [
    "JOB_COLUMNS",
    "LOADING_TEXT",
    "JobTable",
    "build_controls",
    "job_row_cells",
    "loading_text",
    "render_job_table",
    "row_style",
    "set_ascii_icons",
]
