"""Data models and constants for the job browser application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Application identity, the single source of truth for platformdirs paths
CONFIG_APP_NAME = "job-browser"

# Paging defaults
DEFAULT_PAGE_SIZE = 15
PAGE_SIZE_LIMIT = 100
DEFAULT_BATCH_SIZE = 50
BATCH_SIZE_LIMIT = 200
DEFAULT_INITIAL_BATCH_ATTEMPTS = 3

# Prefetch debounce (milliseconds in config, seconds at runtime)
DEFAULT_PREFETCH_DEBOUNCE_MS = 150
PREFETCH_DEBOUNCE_MS_LIMIT = 2000

# Status tags shown by the overlay and written to the tracking ledger
STATUS_APPLIED = "applied"
STATUS_NOT_INTERESTED = "not-interested"
TRACKED_STATUSES = (
    "interested",
    STATUS_APPLIED,
    "response",
    "interview",
    "hired",
    "rejected",
    STATUS_NOT_INTERESTED,
)
# Statuses that mean the user already applied (hidden from fresh results)
APPLIED_STATUSES = frozenset({STATUS_APPLIED, "response", "interview", "hired"})

DEFAULT_STATUS_KEYS: dict[str, str] = {
    "a": STATUS_APPLIED,
    "n": STATUS_NOT_INTERESTED,
}

DEFAULT_REQUIRED_LOCATION = "United States"


@dataclass(slots=True)
class ClientInfo:
    """Hiring client summary attached to a job posting."""

    verification_status: str = ""
    total_hires: int = 0
    total_feedback: float = 0.0
    total_spent: str = ""
    country: str = ""
    city: str = ""


@dataclass(slots=True)
class Job:
    """A job posting as returned by a data source."""

    id: str
    title: str
    ciphertext: str = ""
    description: str = ""
    published_at: str = ""
    created_at: str = ""
    hourly_min: str = ""
    hourly_max: str = ""
    amount: str = ""
    duration_label: str = ""
    total_applicants: int = 0
    freelancers_to_hire: int = 0
    premium: bool = False
    preferred_locations: list[str] = field(default_factory=list)
    location_mandatory: bool = False
    applied: bool = False
    client: ClientInfo | None = None
    skills: list[str] = field(default_factory=list)
    category: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(slots=True)
class TrackedJob:
    """One entry in the on-disk tracking ledger."""

    id: str
    title: str = ""
    tracked_at: str = ""
    status: str = STATUS_APPLIED
    notes: str = ""


@dataclass(slots=True)
class UserConfig:
    """User configuration persisted to disk."""

    source_url: str = ""
    api_token: str = ""
    search_filters: dict[str, Any] = field(default_factory=dict)
    page_size: int = DEFAULT_PAGE_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    prefetch_debounce_ms: int = DEFAULT_PREFETCH_DEBOUNCE_MS
    status_keys: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_KEYS))
    required_location: str = DEFAULT_REQUIRED_LOCATION
    hide_unverified_new_clients: bool = True
    initial_batch_attempts: int = DEFAULT_INITIAL_BATCH_ATTEMPTS
    version: int = 1
    config_defaulted: bool = field(default=False, repr=False)


__all__ = [
    "APPLIED_STATUSES",
    "BATCH_SIZE_LIMIT",
    "CONFIG_APP_NAME",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_INITIAL_BATCH_ATTEMPTS",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_PREFETCH_DEBOUNCE_MS",
    "DEFAULT_REQUIRED_LOCATION",
    "DEFAULT_STATUS_KEYS",
    "PAGE_SIZE_LIMIT",
    "PREFETCH_DEBOUNCE_MS_LIMIT",
    "STATUS_APPLIED",
    "STATUS_NOT_INTERESTED",
    "TRACKED_STATUSES",
    "ClientInfo",
    "Job",
    "TrackedJob",
    "UserConfig",
]
