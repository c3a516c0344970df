"""Internal UI constants for the JobBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $surface;
}

#loading-line {
    height: 1;
    padding: 0 1;
    color: $accent;
}

#job-table {
    height: 1fr;
    padding: 0 1;
}

#page-info {
    padding: 0 1;
    color: $text;
    text-style: bold;
}

#controls {
    padding: 0 1;
    color: $text-muted;
}
"""

# Everything else (arrows, enter, status letters, q) goes through on_key so the
# whole vocabulary is handled by navigation.dispatch().
APP_BINDINGS: list[BindingType] = [
    Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
]
