"""Widget classes and render helpers for the job table."""

from job_browser.widgets.listing import (
    JOB_COLUMNS,
    JobTable,
    build_controls,
    loading_text,
    render_job_table,
    set_ascii_icons,
)

__all__ = [
    "JOB_COLUMNS",
    "JobTable",
    "build_controls",
    "loading_text",
    "render_job_table",
    "set_ascii_icons",
]
