"""Incremental paginated job browser for the terminal."""

from job_browser.models import ClientInfo, Job, TrackedJob, UserConfig
from job_browser.navigation import BrowseSession, KeyMap, StateDelta, dispatch
from job_browser.overlay import StatusOverlay
from job_browser.paging import PagedCollection, SelectionCursor
from job_browser.prefetch import PrefetchCoordinator, PrefetchState

__version__ = "0.1.0"

__all__ = [
    "BrowseSession",
    "ClientInfo",
    "Job",
    "KeyMap",
    "PagedCollection",
    "PrefetchCoordinator",
    "PrefetchState",
    "SelectionCursor",
    "StateDelta",
    "StatusOverlay",
    "TrackedJob",
    "UserConfig",
    "dispatch",
]
