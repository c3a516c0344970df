"""Job payload parsing, the caller-owned filter/sort step, and display formatting."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from job_browser.models import ClientInfo, Job

logger = logging.getLogger(__name__)

JOB_URL_BASE = "https://www.upwork.com/jobs/"
JOB_URL_TITLE_MAX_LEN = 95
POSTED_DATE_FORMAT = "%m/%d/%y %I:%M %p"

_DURATION_ABBREVIATIONS = (
    ("Less than 1 month", "< 1mo"),
    ("1 to 3 months", "1-3 mo"),
    ("3 to 6 months", "3-6 mo"),
    ("More than 6 months", "6 mo+"),
    (" months", "mo"),
    (" month", "mo"),
)

_URL_TITLE_STRIP_RE = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile(r"-+")


# ============================================================================
# Parsing
# ============================================================================


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Return ``data[key]`` when it has the expected type, otherwise ``default``."""
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type in (int, float):
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _money_value(data: dict, key: str) -> str:
    """Extract a money amount from ``{displayValue, rawValue}`` or a bare value."""
    value = data.get(key)
    if isinstance(value, dict):
        for inner in ("displayValue", "rawValue"):
            raw = value.get(inner)
            if isinstance(raw, (str, int, float)) and not isinstance(raw, bool) and raw != "":
                return str(raw)
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _parse_client(raw: Any) -> ClientInfo | None:
    if not isinstance(raw, dict):
        return None
    location = raw.get("location")
    if not isinstance(location, dict):
        location = {}
    feedback = raw.get("totalFeedback", 0.0)
    if isinstance(feedback, bool) or not isinstance(feedback, (int, float)):
        feedback = 0.0
    return ClientInfo(
        verification_status=_safe_get(raw, "verificationStatus", "", str),
        total_hires=_safe_get(raw, "totalHires", 0, int),
        total_feedback=float(feedback),
        total_spent=_money_value(raw, "totalSpent"),
        country=_safe_get(location, "country", "", str),
        city=_safe_get(location, "city", "", str),
    )


def _parse_classification(raw: Any) -> tuple[list[str], str]:
    if not isinstance(raw, dict):
        return [], ""
    skills: list[str] = []
    for skill in _safe_get(raw, "skills", [], list):
        if isinstance(skill, dict):
            label = skill.get("preferredLabel")
            if isinstance(label, str) and label:
                skills.append(label)
        elif isinstance(skill, str) and skill:
            skills.append(skill)
    category = raw.get("category")
    category_label = ""
    if isinstance(category, dict):
        category_label = _safe_get(category, "preferredLabel", "", str)
    return skills, category_label


def parse_job(data: dict[str, Any]) -> Job:
    """Build a :class:`Job` from a source payload.

    Unknown or mistyped fields fall back to defaults. A missing id is a
    contract violation and raises ``ValueError``.
    """
    job_id = data.get("id")
    if isinstance(job_id, int) and not isinstance(job_id, bool):
        job_id = str(job_id)
    if not isinstance(job_id, str) or not job_id:
        raise ValueError(f"job payload has no id: {data!r:.80}")

    locations = [
        loc for loc in _safe_get(data, "preferredFreelancerLocation", [], list) if isinstance(loc, str)
    ]
    skills, category = _parse_classification(data.get("classification"))
    return Job(
        id=job_id,
        title=_safe_get(data, "title", "", str),
        ciphertext=_safe_get(data, "ciphertext", "", str),
        description=_safe_get(data, "description", "", str),
        published_at=_safe_get(data, "publishedDateTime", "", str),
        created_at=_safe_get(data, "createdDateTime", "", str),
        hourly_min=_money_value(data, "hourlyBudgetMin"),
        hourly_max=_money_value(data, "hourlyBudgetMax"),
        amount=_money_value(data, "amount"),
        duration_label=_safe_get(data, "durationLabel", "", str),
        total_applicants=_safe_get(data, "totalApplicants", 0, int),
        freelancers_to_hire=_safe_get(data, "freelancersToHire", 0, int),
        premium=_safe_get(data, "premium", False, bool),
        preferred_locations=locations,
        location_mandatory=_safe_get(data, "preferredFreelancerLocationMandatory", False, bool),
        applied=_safe_get(data, "applied", False, bool),
        client=_parse_client(data.get("client")),
        skills=skills,
        category=category,
        raw=data,
    )


# ============================================================================
# Filter / sort (owned by the caller of the prefetch coordinator)
# ============================================================================


def filter_jobs(
    jobs: Iterable[Job],
    *,
    required_location: str = "",
    has_applied: Callable[[str], bool] | None = None,
    hide_unverified_new_clients: bool = True,
) -> list[Job]:
    """Drop jobs the user cannot or should not bid on.

    Not-interested jobs are kept; the renderer greys them out instead.
    """
    kept: list[Job] = []
    for job in jobs:
        if (
            required_location
            and job.location_mandatory
            and job.preferred_locations
            and required_location not in job.preferred_locations
        ):
            continue
        if job.applied or (has_applied is not None and has_applied(job.id)):
            continue
        if (
            hide_unverified_new_clients
            and job.client is not None
            and job.client.total_hires <= 0
            and job.client.verification_status != "VERIFIED"
        ):
            continue
        kept.append(job)
    return kept


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _posted_sort_key(job: Job) -> float:
    posted = _parse_timestamp(job.published_at) or _parse_timestamp(job.created_at)
    return posted.timestamp() if posted is not None else 0.0


def sort_jobs_by_posted(jobs: Iterable[Job]) -> list[Job]:
    """Most recently posted first; created time is the fallback."""
    return sorted(jobs, key=_posted_sort_key, reverse=True)


def make_batch_transform(
    *,
    required_location: str,
    has_applied: Callable[[str], bool] | None,
    hide_unverified_new_clients: bool,
    enabled: bool = True,
) -> Callable[[list[Job]], list[Job]]:
    """Bundle the filter and sort steps into one batch transform."""

    def transform(batch: list[Job]) -> list[Job]:
        if not enabled:
            return sort_jobs_by_posted(batch)
        kept = filter_jobs(
            batch,
            required_location=required_location,
            has_applied=has_applied,
            hide_unverified_new_clients=hide_unverified_new_clients,
        )
        if len(kept) != len(batch):
            logger.debug("Filtered %d of %d jobs from batch", len(batch) - len(kept), len(batch))
        return sort_jobs_by_posted(kept)

    return transform


# ============================================================================
# Formatting
# ============================================================================


def format_dollar_amount(amount: str) -> str:
    """Render an amount without cents when it is a whole number."""
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return amount
    if value % 1:
        return f"{value:.2f}"
    return f"{value:.0f}"


def format_budget(job: Job) -> str:
    if job.hourly_min or job.hourly_max:
        low = format_dollar_amount(job.hourly_min) if job.hourly_min else "?"
        high = format_dollar_amount(job.hourly_max) if job.hourly_max else "?"
        return f"${low}-{high}/hr"
    if job.amount:
        try:
            is_zero = float(job.amount) == 0
        except ValueError:
            is_zero = False
        if not is_zero:
            return f"${format_dollar_amount(job.amount)}"
    return "TBD"


def format_duration(label: str) -> str:
    if not label:
        return "N/A"
    for long_form, short_form in _DURATION_ABBREVIATIONS:
        label = label.replace(long_form, short_form)
    return label


def format_spend(amount: str) -> str:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "$0"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1000:
        return f"${value / 1000:.0f}k"
    return f"${format_dollar_amount(amount)}"


def format_client_info(client: ClientInfo | None, *, ascii_only: bool = False) -> str:
    """Compact client reputation: verification, hires, rating, spend."""
    verified_mark, star = ("v", "*") if ascii_only else ("✓", "★")
    if client is None:
        return f"X 0h 0.0{star} $0"
    status = verified_mark if client.verification_status == "VERIFIED" else "X"
    spend = format_spend(client.total_spent) if client.total_spent else "$0"
    return f"{status} {client.total_hires}h {client.total_feedback:.1f}{star} {spend}"


def format_posted(job: Job) -> str:
    posted = _parse_timestamp(job.published_at)
    if posted is None:
        return "N/A"
    return posted.strftime(POSTED_DATE_FORMAT)


def build_job_url(title: str, ciphertext: str) -> str:
    """Build the public job URL from its title slug and ciphertext."""
    slug = _URL_TITLE_STRIP_RE.sub("", title)
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _DASHES_RE.sub("-", slug).strip("-")[:JOB_URL_TITLE_MAX_LEN]
    clean_cipher = ciphertext if ciphertext.startswith("~") else f"~{ciphertext}"
    return f"{JOB_URL_BASE}{slug}_{clean_cipher}/"


def format_job_details(job: Job) -> str:
    """Plain-text detail view printed while the browser is suspended."""
    rule = "=" * 80
    lines = [rule, f"Title:      {job.title}", f"ID:         {job.id}"]
    if job.ciphertext:
        lines.append(f"URL:        {build_job_url(job.title, job.ciphertext)}")
    lines.append(f"Budget:     {format_budget(job)}")
    if job.duration_label:
        lines.append(f"Duration:   {job.duration_label}")
    lines.append(f"Proposals:  {job.total_applicants}")
    if job.freelancers_to_hire:
        lines.append(f"Hiring:     {job.freelancers_to_hire}")
    if job.client is not None:
        location = job.client.country or "N/A"
        if job.client.city:
            location = f"{job.client.city}, {location}"
        lines.append(f"Client:     {format_client_info(job.client)}")
        lines.append(f"Location:   {location}")
    if job.category:
        lines.append(f"Category:   {job.category}")
    if job.skills:
        lines.append(f"Skills:     {', '.join(job.skills)}")
    if job.preferred_locations:
        mandatory = " (required)" if job.location_mandatory else ""
        lines.append(f"Pref. loc.: {', '.join(job.preferred_locations)}{mandatory}")
    if job.published_at:
        lines.append(f"Posted:     {job.published_at}")
    if job.description:
        lines.extend(["", "Description:", job.description])
    lines.append(rule)
    return "\n".join(lines)


__all__ = [
    "build_job_url",
    "filter_jobs",
    "format_budget",
    "format_client_info",
    "format_dollar_amount",
    "format_duration",
    "format_job_details",
    "format_posted",
    "format_spend",
    "make_batch_transform",
    "parse_job",
    "sort_jobs_by_posted",
]
