"""Watch mode: debounced file watching that syncs tags to decision logs."""

from codesyncer.watch.session_log import SessionLogger, WatchStats, format_duration
from codesyncer.watch.watcher import (
    EXCLUDED_DIRS,
    WATCH_EXTENSIONS,
    ChangeWatcher,
    PendingChange,
    WatchEvent,
    WatchState,
    resolve_decisions_path,
)

__all__ = [
    "EXCLUDED_DIRS",
    "WATCH_EXTENSIONS",
    "ChangeWatcher",
    "PendingChange",
    "SessionLogger",
    "WatchEvent",
    "WatchState",
    "WatchStats",
    "format_duration",
    "resolve_decisions_path",
]
