"""JSON-backed ledger of tracked jobs (applied, not interested, ...)."""

from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

from platformdirs import user_data_dir

from job_browser.config import _safe_get, atomic_write_text
from job_browser.models import (
    APPLIED_STATUSES,
    CONFIG_APP_NAME,
    STATUS_NOT_INTERESTED,
    TRACKED_STATUSES,
    TrackedJob,
)

logger = logging.getLogger(__name__)

TRACKING_FILENAME = "tracked_jobs.json"


def get_tracking_path() -> Path:
    """Get the path to the tracking ledger (platformdirs user data dir)."""
    return Path(user_data_dir(CONFIG_APP_NAME)) / TRACKING_FILENAME


def _parse_tracked(data: Any) -> dict[str, TrackedJob]:
    """Parse the ledger's ``tracked`` list, skipping malformed entries."""
    result: dict[str, TrackedJob] = {}
    if not isinstance(data, dict):
        return result
    raw_entries = data.get("tracked", [])
    if not isinstance(raw_entries, list):
        return result
    for entry in raw_entries:
        if not isinstance(entry, dict):
            continue
        job_id = _safe_get(entry, "id", "", str)
        status = _safe_get(entry, "status", "", str)
        if not job_id or status not in TRACKED_STATUSES:
            continue
        result[job_id] = TrackedJob(
            id=job_id,
            title=_safe_get(entry, "title", "", str),
            tracked_at=_safe_get(entry, "tracked_at", "", str),
            status=status,
            notes=_safe_get(entry, "notes", "", str),
        )
    return result


class JsonTrackingStore:
    """Tracking collaborator persisting every change immediately.

    The whole ledger is small, so it is kept in memory and rewritten
    atomically on each mutation.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_tracking_path()
        self._jobs: dict[str, TrackedJob] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, TrackedJob]:
        if self._jobs is not None:
            return self._jobs
        self._jobs = {}
        if self._path.exists():
            try:
                self._jobs = _parse_tracked(json.loads(self._path.read_text(encoding="utf-8")))
            except json.JSONDecodeError as e:
                logger.warning("Tracking ledger has invalid JSON, starting empty: %s", e)
            except OSError as e:
                logger.warning("Could not read tracking ledger: %s", e)
        return self._jobs

    def _save(self) -> bool:
        jobs = self._load()
        payload = {
            "version": 1,
            "tracked": [
                {
                    "id": job.id,
                    "title": job.title,
                    "tracked_at": job.tracked_at,
                    "status": job.status,
                    "notes": job.notes,
                }
                for job in jobs.values()
            ],
        }
        try:
            atomic_write_text(
                self._path,
                json.dumps(payload, indent=2, ensure_ascii=False),
                prefix=".tracked-",
            )
            return True
        except OSError as e:
            logger.error("Failed to save tracking ledger: %s", e)
            return False

    # ── TrackingStore protocol ───────────────────────────────────────────

    def get_status(self, job_id: str) -> str | None:
        job = self._load().get(job_id)
        return job.status if job is not None else None

    def set_status(self, job_id: str, status: str, *, title: str = "", notes: str = "") -> bool:
        if status not in TRACKED_STATUSES:
            raise ValueError(f"unknown status {status!r}")
        jobs = self._load()
        existing = jobs.get(job_id)
        jobs[job_id] = TrackedJob(
            id=job_id,
            title=title or (existing.title if existing else ""),
            tracked_at=datetime.now().isoformat(timespec="seconds"),
            status=status,
            notes=notes or (existing.notes if existing else ""),
        )
        logger.debug("Tracked %s as %s", job_id, status)
        return self._save()

    def clear_status(self, job_id: str) -> bool:
        jobs = self._load()
        if jobs.pop(job_id, None) is None:
            return True
        logger.debug("Untracked %s", job_id)
        return self._save()

    # ── Ledger queries ───────────────────────────────────────────────────

    def get(self, job_id: str) -> TrackedJob | None:
        return self._load().get(job_id)

    def has_applied(self, job_id: str) -> bool:
        return self.get_status(job_id) in APPLIED_STATUSES

    def is_not_interested(self, job_id: str) -> bool:
        return self.get_status(job_id) == STATUS_NOT_INTERESTED

    def jobs_by_status(self, status: str) -> list[TrackedJob]:
        return [job for job in self._load().values() if job.status == status]

    def stats(self) -> dict[str, int]:
        """Count tracked jobs per status (every known status present)."""
        counts = Counter(job.status for job in self._load().values())
        result = {status: counts.get(status, 0) for status in TRACKED_STATUSES}
        result["total"] = sum(counts.values())
        return result


__all__ = [
    "TRACKING_FILENAME",
    "JsonTrackingStore",
    "get_tracking_path",
]
