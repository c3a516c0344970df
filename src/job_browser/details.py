"""Default selection handler: print a job and wait for the user to come back."""

from __future__ import annotations

from job_browser.jobs import format_job_details
from job_browser.models import Job

RETURN_PROMPT = "Press Enter to return to the job list..."


def show_job_details(job: Job) -> None:
    """Print the detail view for ``job`` and block until Enter is pressed.

    Runs while the browser has released the terminal.
    """
    print(format_job_details(job))
    try:
        input(RETURN_PROMPT)
    except EOFError:
        print()


__all__ = ["RETURN_PROMPT", "show_job_details"]
