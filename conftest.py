"""Shared test fixtures for job browser tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from job_browser.models import ClientInfo, Job, UserConfig
from job_browser.services.interfaces import PageResult
from job_browser.tracking import JsonTrackingStore
from job_browser.widgets.listing import set_ascii_icons

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_icon_mode():
    """JobBrowser(ascii_icons=True) flips a module-level icon set; undo it."""
    yield
    set_ascii_icons(False)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_job():
    """Factory fixture for creating Job instances with sensible defaults."""

    def _make(
        job_id: str = "1001",
        title: str = "Build a scraper",
        published_at: str = "2024-01-15T10:00:00Z",
        amount: str = "500",
        verified: bool = True,
        total_hires: int = 3,
        country: str = "United States",
        preferred_locations: list[str] | None = None,
        location_mandatory: bool = False,
        applied: bool = False,
        **kwargs: Any,
    ) -> Job:
        client = ClientInfo(
            verification_status="VERIFIED" if verified else "UNVERIFIED",
            total_hires=total_hires,
            total_feedback=4.8,
            total_spent="12000",
            country=country,
        )
        return Job(
            id=job_id,
            title=title,
            published_at=published_at,
            amount=amount,
            client=client,
            preferred_locations=list(preferred_locations or []),
            location_mandatory=location_mandatory,
            applied=applied,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_jobs(make_job):
    """Create ``count`` jobs with sequential ids starting at ``start``."""

    def _make(count: int, start: int = 0) -> list[Job]:
        return [make_job(job_id=str(i), title=f"Job {i}") for i in range(start, start + count)]

    return _make


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make


@pytest.fixture
def tracking_store(tmp_path: Path) -> JsonTrackingStore:
    """Tracking ledger isolated in the test's temp directory."""
    return JsonTrackingStore(tmp_path / "tracked_jobs.json")


class StubSource:
    """Scripted JobSource: returns (or raises) queued items in order.

    When ``gate`` is set, every call waits on it before answering, so tests
    can hold a fetch in flight.
    """

    def __init__(
        self,
        batches: list[PageResult[Job] | BaseException] | None = None,
        *,
        gate: asyncio.Event | None = None,
    ) -> None:
        self._batches = list(batches or [])
        self.gate = gate
        self.calls: list[tuple[dict[str, Any], str | None]] = []

    async def fetch_page(
        self,
        filter_spec: dict[str, Any],
        cursor: str | None,
    ) -> PageResult[Job]:
        self.calls.append((dict(filter_spec), cursor))
        if self.gate is not None:
            await self.gate.wait()
        if not self._batches:
            return PageResult(records=[], next_cursor=None, has_more=False)
        item = self._batches.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def stub_source():
    """Factory fixture building a :class:`StubSource`."""

    def _make(
        batches: list[PageResult[Job] | BaseException] | None = None,
        *,
        gate: asyncio.Event | None = None,
    ) -> StubSource:
        return StubSource(batches, gate=gate)

    return _make
