"""CLI/bootstrap helpers for the job browser application."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from job_browser.action_messages import build_actionable_error, describe_fetch_failure
from job_browser.config import load_config, save_config
from job_browser.jobs import make_batch_transform
from job_browser.models import (
    BATCH_SIZE_LIMIT,
    CONFIG_APP_NAME,
    PAGE_SIZE_LIMIT,
    Job,
    UserConfig,
)
from job_browser.services.bootstrap import fetch_initial_batch
from job_browser.services.file_source import FileJobSource
from job_browser.services.http_source import HttpJobSource
from job_browser.services.interfaces import (
    FETCH_ERRORS,
    AppServices,
    JobSource,
    PageResult,
)
from job_browser.tracking import JsonTrackingStore

logger = logging.getLogger(__name__)

BatchTransform = Callable[[list[Job]], list[Job]]


def _apply_overrides(args: argparse.Namespace, config: UserConfig) -> int | None:
    """Copy CLI overrides onto ``config``; return an exit code on bad values."""
    if args.page_size is not None:
        if not 1 <= args.page_size <= PAGE_SIZE_LIMIT:
            print(
                f"Error: --page-size must be between 1 and {PAGE_SIZE_LIMIT}",
                file=sys.stderr,
            )
            return 1
        config.page_size = args.page_size
    if args.batch_size is not None:
        if not 1 <= args.batch_size <= BATCH_SIZE_LIMIT:
            print(
                f"Error: --batch-size must be between 1 and {BATCH_SIZE_LIMIT}",
                file=sys.stderr,
            )
            return 1
        config.batch_size = args.batch_size
    if args.source_url:
        config.source_url = args.source_url.strip()
    return None


def _resolve_source(args: argparse.Namespace, config: UserConfig) -> JobSource | int:
    """Build the job source from ``--input`` or the configured URL."""
    if args.input is not None:
        try:
            return FileJobSource.from_path(args.input, batch_size=config.batch_size)
        except FETCH_ERRORS as exc:
            logger.debug("Failed to read input file %s", args.input, exc_info=True)
            print(
                build_actionable_error(
                    f"read {args.input}",
                    why=describe_fetch_failure(exc),
                    next_step="pass a JSON file holding a list of jobs or {\"jobs\": [...]}",
                ),
                file=sys.stderr,
            )
            return 1
    if config.source_url:
        return HttpJobSource(
            config.source_url,
            api_token=config.api_token,
            batch_size=config.batch_size,
        )
    print(
        build_actionable_error(
            "start job-browser",
            why="no job source is configured",
            next_step="pass --source-url URL (add --save to remember it) or -i jobs.json",
        ),
        file=sys.stderr,
    )
    return 1


def _build_transform(
    args: argparse.Namespace,
    config: UserConfig,
    tracking: JsonTrackingStore,
) -> BatchTransform:
    return make_batch_transform(
        required_location=config.required_location,
        has_applied=tracking.has_applied,
        hide_unverified_new_clients=config.hide_unverified_new_clients,
        enabled=not args.no_filter,
    )


def _load_initial_batch(
    source: JobSource,
    config: UserConfig,
    transform: BatchTransform,
) -> PageResult[Job] | int:
    """Fetch the startup batch; map source failures to exit code 1."""
    try:
        return asyncio.run(
            fetch_initial_batch(
                source,
                config.search_filters,
                transform=transform,
                max_attempts=config.initial_batch_attempts,
            )
        )
    except FETCH_ERRORS as exc:
        logger.warning("Initial fetch failed: %s", exc, exc_info=True)
        print(
            build_actionable_error(
                "load jobs",
                why=describe_fetch_failure(exc),
                next_step="check the source URL, token and network, then run again",
            ),
            file=sys.stderr,
        )
        return 1


def _print_stats(tracking: JsonTrackingStore) -> None:
    stats = tracking.stats()
    total = stats.pop("total")
    print(f"Tracked jobs: {total}")
    for status, count in stats.items():
        print(f"  {status:<16} {count}")


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    save_config_fn: Callable[[UserConfig], bool] = save_config,
    tracking_factory: Callable[[], JsonTrackingStore] = JsonTrackingStore,
    load_initial_batch_fn: Callable[
        [JobSource, UserConfig, BatchTransform], PageResult[Job] | int
    ] = _load_initial_batch,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        description="Browse job postings page by page with background prefetch"
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=None,
        help="Browse jobs from a local JSON file instead of the configured source",
    )
    parser.add_argument(
        "--source-url",
        type=str,
        default=None,
        help="Job search endpoint (overrides the configured source_url)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Rows per page (1-{PAGE_SIZE_LIMIT}; default: config value)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help=f"Jobs requested per fetch (1-{BATCH_SIZE_LIMIT}; default: config value)",
    )
    parser.add_argument(
        "--no-filter",
        action="store_true",
        help="Show every fetched job (skip location, applied and client filters)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save --source-url/--page-size/--batch-size to the config file",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print counts of tracked jobs per status and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/job-browser/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only icons for compatibility with limited terminals",
    )
    args = parser.parse_args(argv)

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("job-browser starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    exit_code = _apply_overrides(args, config)
    if exit_code is not None:
        return exit_code

    tracking = tracking_factory()
    if args.stats:
        _print_stats(tracking)
        return 0

    if args.save and not save_config_fn(config):
        print("Warning: could not save the config file; continuing.", file=sys.stderr)

    if not validate_interactive_tty_fn():
        print(
            "Error: job-browser requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run job-browser directly in a terminal session", file=sys.stderr)
        print("  - Use --stats for non-interactive output", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    source = _resolve_source(args, config)
    if isinstance(source, int):
        return source

    transform = _build_transform(args, config, tracking)
    initial = load_initial_batch_fn(source, config, transform)
    if isinstance(initial, int):
        return initial

    if not initial.records and not initial.has_more:
        print(
            build_actionable_error(
                "start job-browser",
                why="the source returned no jobs that pass the filters",
                next_step="adjust search_filters in the config or run with --no-filter",
            ),
            file=sys.stderr,
        )
        return 1

    if app_factory is None:
        from job_browser.app import JobBrowser as _JobBrowser

        app_factory = _JobBrowser

    services = AppServices(
        source=source,
        tracking=tracking,
        filter_spec=dict(config.search_filters),
    )
    app = app_factory(
        initial,
        services,
        config,
        transform=transform,
        ascii_icons=args.ascii,
    )
    app.run()
    # Textual sets a non-zero return code when the app dies on a terminal error.
    return app.return_code or 0


__all__ = [
    "_apply_overrides",
    "_build_transform",
    "_configure_color_mode",
    "_configure_logging",
    "_load_initial_batch",
    "_print_stats",
    "_resolve_source",
    "_validate_interactive_tty",
    "main",
]
