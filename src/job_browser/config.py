"""Configuration persistence: load and save."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from job_browser.models import (
    BATCH_SIZE_LIMIT,
    CONFIG_APP_NAME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_INITIAL_BATCH_ATTEMPTS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PREFETCH_DEBOUNCE_MS,
    DEFAULT_REQUIRED_LOCATION,
    DEFAULT_STATUS_KEYS,
    PAGE_SIZE_LIMIT,
    PREFETCH_DEBOUNCE_MS_LIMIT,
    TRACKED_STATUSES,
    UserConfig,
)
from job_browser.navigation import RESERVED_KEYS

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                  Rule                               Handler
#   ─────────────────────  ─────────────────────────────────  ──────────────────
#   page_size              1 ≤ x ≤ 100                        _coerce_int_range
#   batch_size             1 ≤ x ≤ 200                        _coerce_int_range
#   prefetch_debounce_ms   0 ≤ x ≤ 2000                       _coerce_int_range
#   status_keys            single lowercase letter → known     _parse_status_keys
#                          tag, letter not reserved
#   search_filters         JSON object                        _safe_get
#   scalar fields          type-checked via _safe_get()       _dict_to_config
#
CONFIG_FILENAME = "config.json"


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/job-browser/config.json
    - macOS: ~/Library/Application Support/job-browser/config.json
    - Windows: %APPDATA%/job-browser/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "source_url": config.source_url,
        "api_token": config.api_token,
        "search_filters": config.search_filters,
        "page_size": _coerce_int_range(config.page_size, DEFAULT_PAGE_SIZE, 1, PAGE_SIZE_LIMIT),
        "batch_size": _coerce_int_range(
            config.batch_size, DEFAULT_BATCH_SIZE, 1, BATCH_SIZE_LIMIT
        ),
        "prefetch_debounce_ms": _coerce_int_range(
            config.prefetch_debounce_ms,
            DEFAULT_PREFETCH_DEBOUNCE_MS,
            0,
            PREFETCH_DEBOUNCE_MS_LIMIT,
        ),
        "status_keys": dict(config.status_keys),
        "required_location": config.required_location,
        "hide_unverified_new_clients": config.hide_unverified_new_clients,
        "initial_batch_attempts": config.initial_batch_attempts,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_int_range(value: Any, default: int, low: int, high: int) -> int:
    """Validate an integer setting and clamp it into ``[low, high]``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(low, min(value, high))


def _parse_status_keys(raw: Any) -> dict[str, str]:
    """Parse the letter → status tag bindings, dropping invalid entries."""
    if not isinstance(raw, dict):
        return dict(DEFAULT_STATUS_KEYS)
    result: dict[str, str] = {}
    for letter, tag in raw.items():
        if not (isinstance(letter, str) and len(letter) == 1 and letter.isalpha()):
            logger.warning("Ignoring invalid status key %r", letter)
            continue
        if not letter.islower() or letter in RESERVED_KEYS:
            logger.warning("Ignoring reserved or uppercase status key %r", letter)
            continue
        if tag not in TRACKED_STATUSES:
            logger.warning("Ignoring unknown status tag %r for key %r", tag, letter)
            continue
        result[letter] = tag
    return result or dict(DEFAULT_STATUS_KEYS)


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        source_url=_safe_get(data, "source_url", "", str),
        api_token=_safe_get(data, "api_token", "", str),
        search_filters=_safe_get(data, "search_filters", {}, dict),
        page_size=_coerce_int_range(
            data.get("page_size"), DEFAULT_PAGE_SIZE, 1, PAGE_SIZE_LIMIT
        ),
        batch_size=_coerce_int_range(
            data.get("batch_size"), DEFAULT_BATCH_SIZE, 1, BATCH_SIZE_LIMIT
        ),
        prefetch_debounce_ms=_coerce_int_range(
            data.get("prefetch_debounce_ms"),
            DEFAULT_PREFETCH_DEBOUNCE_MS,
            0,
            PREFETCH_DEBOUNCE_MS_LIMIT,
        ),
        status_keys=_parse_status_keys(data.get("status_keys")),
        required_location=_safe_get(data, "required_location", DEFAULT_REQUIRED_LOCATION, str),
        hide_unverified_new_clients=_safe_get(data, "hide_unverified_new_clients", True, bool),
        initial_batch_attempts=_coerce_int_range(
            data.get("initial_batch_attempts"), DEFAULT_INITIAL_BATCH_ATTEMPTS, 1, 20
        ),
        version=_safe_get(data, "version", 1, int),
    )


def _backup_corrupt_file(path: Path) -> None:
    """Move an unreadable file aside so the next save does not clobber it."""
    backup = path.with_suffix(path.suffix + ".bak")
    try:
        os.replace(path, backup)
        logger.warning("Backed up corrupt %s to %s", path.name, backup)
    except OSError as e:
        logger.warning("Could not back up corrupt %s: %s", path.name, e)


def load_config(config_path: Path | None = None) -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted. A corrupt
    file is backed up and the returned config has ``config_defaulted`` set.
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()

    _backup_corrupt_file(config_path)
    config = UserConfig()
    config.config_defaulted = True
    return config


def atomic_write_text(path: Path, text: str, *, prefix: str) -> None:
    """Write ``text`` to ``path`` via tempfile + os.replace().

    Creates the parent directory if needed. Raises OSError on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=prefix)
    closed = False
    try:
        os.write(fd, text.encode("utf-8"))
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_config(config: UserConfig, config_path: Path | None = None) -> bool:
    """Save configuration to disk atomically.

    Returns True on success, False on failure.
    """
    config_path = config_path or get_config_path()
    try:
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        atomic_write_text(config_path, json_str, prefix=".config-")
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_FILENAME",
    "atomic_write_text",
    "get_config_path",
    "load_config",
    "save_config",
]
