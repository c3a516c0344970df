"""Collaborator implementations: job sources and startup loading."""

from job_browser.services.bootstrap import fetch_initial_batch
from job_browser.services.file_source import FileJobSource, load_job_file
from job_browser.services.http_source import HttpJobSource, parse_page_payload
from job_browser.services.interfaces import (
    FETCH_ERRORS,
    AppServices,
    FetchError,
    JobSource,
    PageResult,
    TrackingStore,
)

__all__ = [
    "FETCH_ERRORS",
    "AppServices",
    "FetchError",
    "FileJobSource",
    "HttpJobSource",
    "JobSource",
    "PageResult",
    "TrackingStore",
    "fetch_initial_batch",
    "load_job_file",
    "parse_page_payload",
]
