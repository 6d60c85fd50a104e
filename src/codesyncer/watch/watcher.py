"""File watcher that syncs inline tags into the nearest decision log.

The watchdog observer thread only enqueues events. Everything else, the
debounce table, the counters and every pipeline run, belongs to the single
thread that calls :meth:`ChangeWatcher.run_forever`.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from queue import Empty, Queue

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from codesyncer.errors import CodeSyncerError, SetupMissingError
from codesyncer.tags.decisions import DECISIONS_FILENAME, append_tag
from codesyncer.tags.parser import (
    SUPPORTED_EXTENSIONS,
    parse_tags_from_file,
    should_parse_file,
)
from codesyncer.watch.session_log import SessionLogger

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500
POLL_INTERVAL = 0.1  # seconds between stop checks when idle

MARKER_DIRS: tuple[str, ...] = (".codesyncer", ".claude")
REPO_MARKER_DIR = ".claude"

WATCH_EXTENSIONS: frozenset[str] = SUPPORTED_EXTENSIONS

# Brace-grouped globs shown in the startup banner
DISPLAY_PATTERN_GROUPS: tuple[tuple[str, ...], ...] = (
    ("ts", "tsx", "js", "jsx"),
    ("py", "java", "kt", "go", "rs", "rb", "php", "swift", "cs"),
    ("c", "cpp", "h", "hpp"),
    ("vue", "svelte", "md"),
)

EXCLUDED_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "coverage",
    "__pycache__",
    ".cache",
    "vendor",
    "target",  # Rust
    ".claude",
    ".codesyncer",
)


class WatchState(StrEnum):
    """Lifecycle of a watch session."""

    IDLE = "idle"
    STARTING = "starting"
    READY = "ready"
    ACTIVE = "active"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class WatchEvent:
    """A filesystem notification handed from the observer thread."""

    kind: str  # add, change, unlink, add_dir
    path: Path


@dataclass(frozen=True)
class PendingChange:
    """A debounced change waiting for its quiet period to end."""

    path: Path
    kind: str  # add or change
    deadline: float


def resolve_decisions_path(file_path: Path, root_path: Path) -> Path:
    """Find the decision log closest to a source file.

    Walks from the file's directory up to ``root_path``. At each level a
    ``.claude/DECISIONS.md`` wins over a bare ``DECISIONS.md``. When no log
    exists anywhere on the way, the root's marker directory is used if it
    exists, else a root-level ``DECISIONS.md``.
    """
    current = file_path.parent
    while current.is_relative_to(root_path):
        nested = current / REPO_MARKER_DIR / DECISIONS_FILENAME
        if nested.exists():
            return nested
        bare = current / DECISIONS_FILENAME
        if bare.exists():
            return bare
        if current == root_path:
            break
        current = current.parent

    root_nested = root_path / REPO_MARKER_DIR / DECISIONS_FILENAME
    root_bare = root_path / DECISIONS_FILENAME
    if root_nested.exists():
        return root_nested
    if root_bare.exists():
        return root_bare
    if (root_path / REPO_MARKER_DIR).is_dir():
        return root_nested
    return root_bare


def display_patterns() -> list[str]:
    """Watched extensions as a few brace globs, e.g. ``**/*.{ts,tsx,js,jsx}``."""
    return [f"**/*.{{{','.join(group)}}}" for group in DISPLAY_PATTERN_GROUPS]


class _QueueingHandler(FileSystemEventHandler):
    """Translates watchdog callbacks into queued :class:`WatchEvent` items."""

    def __init__(self, submit: Callable[[WatchEvent], None]) -> None:
        super().__init__()
        self._submit = submit

    def on_created(self, event: FileSystemEvent) -> None:
        kind = "add_dir" if event.is_directory else "add"
        self._submit(WatchEvent(kind, Path(os.fsdecode(event.src_path))))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit(WatchEvent("change", Path(os.fsdecode(event.src_path))))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit(WatchEvent("unlink", Path(os.fsdecode(event.src_path))))

    def on_moved(self, event: FileSystemEvent) -> None:
        # A move is a delete at the source plus a create at the destination
        self.on_deleted(event)
        dest = Path(os.fsdecode(event.dest_path))
        kind = "add_dir" if event.is_directory else "add"
        self._submit(WatchEvent(kind, dest))


class ChangeWatcher:
    """One watch session over a project tree.

    Args:
        root_path: Directory to watch; must contain ``.codesyncer`` or ``.claude``.
        session_logger: Output sink and counters. Created if not given.
        debounce_ms: Quiet period before a changed file is processed.
        extra_excludes: Additional directory names to ignore.
        clock: Monotonic time source, replaceable in tests.
        observer_factory: Builds the watchdog observer.
    """

    def __init__(
        self,
        root_path: Path,
        *,
        session_logger: SessionLogger | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        extra_excludes: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self.root_path = root_path.resolve()
        self.session_logger = session_logger or SessionLogger(self.root_path)
        self.debounce = debounce_ms / 1000
        self.excluded_dirs = frozenset(EXCLUDED_DIRS) | frozenset(extra_excludes)
        self.state = WatchState.IDLE
        self._clock = clock
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._events: Queue[WatchEvent] = Queue()
        self._pending: dict[Path, PendingChange] = {}
        self._stop_requested = threading.Event()

    # -- Filters ---------------------------------------------------------------

    def is_ignored(self, path: Path) -> bool:
        """Check if any path segment below the root is hidden or excluded."""
        try:
            parts = path.relative_to(self.root_path).parts
        except ValueError:
            return True
        return any(
            part.startswith(".") or part in self.excluded_dirs for part in parts
        )

    def is_watched_file(self, path: Path) -> bool:
        """Check if a file event should be acted on."""
        if path.name == DECISIONS_FILENAME:
            return False
        return path.suffix.lower() in WATCH_EXTENSIONS and not self.is_ignored(path)

    def count_watched_files(self) -> int:
        """Crawl the tree once and count files the watcher would act on."""
        count = 0
        for dirpath, dirnames, filenames in os.walk(self.root_path):
            dirnames[:] = [
                d
                for d in dirnames
                if not d.startswith(".") and d not in self.excluded_dirs
            ]
            for filename in filenames:
                if self.is_watched_file(Path(dirpath) / filename):
                    count += 1
        return count

    @property
    def pending(self) -> dict[Path, PendingChange]:
        """Snapshot of the debounce table."""
        return dict(self._pending)

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Check the setup, crawl the tree and start the observer.

        Raises:
            SetupMissingError: If neither marker directory exists under the root.
        """
        if not any((self.root_path / name).exists() for name in MARKER_DIRS):
            raise SetupMissingError(self.root_path)

        self.state = WatchState.STARTING
        self.session_logger.display_startup(
            display_patterns(),
            list(EXCLUDED_DIRS[:6]),
        )
        self.session_logger.set_files_watched(self.count_watched_files())

        observer = self._observer_factory()
        observer.schedule(
            _QueueingHandler(self.submit), str(self.root_path), recursive=True
        )
        try:
            observer.start()
        except OSError as e:
            self.session_logger.log_error("Watcher error", e)
        else:
            self._observer = observer

        self.state = WatchState.READY
        self.session_logger.display_waiting()
        logger.debug("Watching %s", self.root_path)

    def submit(self, event: WatchEvent) -> None:
        """Queue an event; safe to call from any thread."""
        self._events.put(event)

    def request_stop(self) -> None:
        """Ask :meth:`run_forever` to return; safe to call from any thread."""
        self._stop_requested.set()

    def run_forever(self) -> None:
        """Process events until :meth:`request_stop` or Ctrl+C."""
        self.state = WatchState.ACTIVE
        try:
            while not self._stop_requested.is_set():
                self.poll(self._next_timeout())
                if self._observer is not None and not self._observer.is_alive():
                    self.session_logger.log_error("Watcher error: observer stopped")
                    self._observer = None
        except KeyboardInterrupt:
            logger.debug("Interrupted")

    def poll(self, timeout: float = 0.0) -> int:
        """Drain queued events, then run every change that is due.

        Returns:
            Number of pipeline runs performed.
        """
        try:
            if timeout > 0:
                event = self._events.get(timeout=timeout)
            else:
                event = self._events.get_nowait()
        except Empty:
            pass
        else:
            self.dispatch(event)
            while True:
                try:
                    self.dispatch(self._events.get_nowait())
                except Empty:
                    break
        return self.run_due()

    def _next_timeout(self) -> float:
        if not self._pending:
            return POLL_INTERVAL
        earliest = min(p.deadline for p in self._pending.values())
        return max(0.0, min(POLL_INTERVAL, earliest - self._clock()))

    def stop(self) -> None:
        """Drop pending changes, stop the observer and print the summary."""
        if self.state in (WatchState.STOPPING, WatchState.STOPPED):
            return
        self.state = WatchState.STOPPING
        self._stop_requested.set()
        if self._pending:
            logger.debug("Dropping %d pending change(s)", len(self._pending))
        self._pending.clear()

        if self._observer is not None:
            self._observer.stop()
            if self._observer.is_alive():
                self._observer.join()
            self._observer = None

        self.session_logger.display_shutdown()
        self.state = WatchState.STOPPED

    # -- Event handling ----------------------------------------------------------

    def dispatch(self, event: WatchEvent, now: float | None = None) -> None:
        """Apply one event to the session. Runs on the processing thread."""
        if event.kind == "add_dir":
            ready = self.state in (WatchState.READY, WatchState.ACTIVE)
            if ready and event.path != self.root_path and not self.is_ignored(event.path):
                self.session_logger.log_new_directory(event.path)
            return

        if not self.is_watched_file(event.path):
            return

        if event.kind == "unlink":
            self._pending.pop(event.path, None)
            self.session_logger.log_change(event.path, "unlink")
            return

        now = self._clock() if now is None else now
        kind = event.kind
        existing = self._pending.get(event.path)
        if existing is not None and existing.kind == "add":
            # Editors often write a new file twice; it is still new
            kind = "add"
        self._pending[event.path] = PendingChange(
            path=event.path, kind=kind, deadline=now + self.debounce
        )

    def run_due(self, now: float | None = None) -> int:
        """Run the pipeline once for every change whose quiet period ended."""
        now = self._clock() if now is None else now
        due = [p for p in self._pending.values() if p.deadline <= now]
        for change in sorted(due, key=lambda p: p.deadline):
            del self._pending[change.path]
            self.process_change(change.path, change.kind)
        return len(due)

    def process_change(self, path: Path, kind: str) -> None:
        """Extract tags from a changed file and append them to the nearest log."""
        self.session_logger.log_change(path, kind)

        if not should_parse_file(path):
            self.session_logger.log_no_tags()
            return

        tags = parse_tags_from_file(path)
        if not tags:
            if kind == "add":
                self.session_logger.log_no_tags()
            else:
                self.session_logger.log_no_tags_warning(path)
            return

        for tag in tags:
            self.session_logger.log_tag_found(tag)
            log_path = resolve_decisions_path(tag.source_file, self.root_path)
            try:
                added = append_tag(log_path, tag, self.root_path)
            except (CodeSyncerError, OSError) as e:
                self.session_logger.log_error(f"Failed to sync {tag.token}", e)
                continue
            if added:
                self.session_logger.log_tag_synced(tag, log_path)
            else:
                self.session_logger.log_tag_exists()
