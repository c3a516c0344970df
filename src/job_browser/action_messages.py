"""UI-facing copy builders for notifications and CLI errors."""

from __future__ import annotations

import httpx

from job_browser.services.interfaces import FetchError


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def _compose(headline: str, why: str | None, next_step: str) -> str:
    parts = [headline]
    if why:
        parts.append(f"Why: {_ensure_sentence(why)}")
    parts.append(build_next_step_hint(next_step))
    return "\n".join(parts)


def build_actionable_error(action: str, *, next_step: str, why: str | None = None) -> str:
    """``Could not <action>.`` followed by an optional reason and the next step."""
    return _compose(f"Could not {action.strip()}.", why, next_step)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_warning(message: str, *, next_step: str, why: str | None = None) -> str:
    """A non-fatal notice followed by an optional reason and the next step."""
    return _compose(_ensure_sentence(message), why, next_step)


def describe_fetch_failure(exc: BaseException) -> str:
    """Explain why a job batch could not be loaded."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 429:
            return f"the job source is rate limiting requests (HTTP {status_code})"
        if status_code in (401, 403):
            return f"the job source rejected the credentials (HTTP {status_code})"
        if status_code >= 500:
            return f"the job source is unavailable right now (HTTP {status_code})"
        return f"the job source rejected the request (HTTP {status_code})"
    if isinstance(exc, (httpx.HTTPError, OSError)):
        return "a network or I/O error occurred"
    if isinstance(exc, (FetchError, ValueError)):
        return f"the job source returned unusable data ({exc})"
    return f"the job source failed unexpectedly ({type(exc).__name__}: {exc})"


def build_load_more_error(exc: BaseException) -> str:
    """Transient toast text for a failed background fetch."""
    return build_actionable_error(
        "load more jobs",
        why=describe_fetch_failure(exc),
        next_step="keep browsing; paging forward again retries the same batch",
    )


def build_page_info(
    current_page: int,
    total_pages: int,
    first: int,
    last: int,
    total: int,
    *,
    has_more: bool = False,
) -> str:
    """Build the ``Page X of Y - Jobs a-b of n`` status line."""
    more = "+" if has_more else ""
    if total == 0:
        return "Page 0 of 0 - No jobs"
    return f"Page {current_page + 1} of {total_pages}{more} - Jobs {first}-{last} of {total}{more}"


__all__ = [
    "build_actionable_error",
    "build_actionable_warning",
    "build_load_more_error",
    "build_next_step_hint",
    "build_page_info",
    "describe_fetch_failure",
]
