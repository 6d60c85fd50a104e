"""Console and file output for a watch session."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from codesyncer.console import console as default_console
from codesyncer.tags.base import Tag, TagKind
from codesyncer.tags.parser import format_tag_for_display

# Separate logger for the optional session log file; never propagates to
# the root handlers configured by the CLI.
file_logger = logging.getLogger("codesyncer.watch.session")
file_logger.propagate = False

RULE_WIDTH = 60
INDENT = " " * 11

KIND_ICONS: dict[TagKind, str] = {
    TagKind.DECISION: "🎯",
    TagKind.RULE: "📏",
    TagKind.INFERENCE: "💡",
    TagKind.TODO: "📝",
    TagKind.CONTEXT: "📚",
}

CHANGE_STYLES: dict[str, tuple[str, str, str]] = {
    # kind: (icon, label, style)
    "add": ("✨", "New", "green"),
    "change": ("📝", "Changed", "yellow"),
    "unlink": ("🗑️", "Deleted", "red"),
}


@dataclass
class WatchStats:
    """Cumulative counters for one watch session."""

    files_watched: int = 0
    changes_detected: int = 0
    tags_synced: int = 0
    errors: int = 0
    started_at: float = field(default_factory=time.monotonic)


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as ``Xh Ym Zs``, ``Ym Zs`` or ``Zs``."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def session_log_path(root_path: Path, today: datetime | None = None) -> Path:
    """Return ``watch-YYYY-MM-DD.log`` inside the root's setup directory.

    ``.codesyncer`` is used unless only ``.claude`` exists, so logging never
    turns a single-repository setup into a workspace one.
    """
    stamp = (today or datetime.now()).strftime("%Y-%m-%d")
    log_dir = root_path / ".codesyncer"
    if not log_dir.is_dir() and (root_path / ".claude").is_dir():
        log_dir = root_path / ".claude"
    return log_dir / f"watch-{stamp}.log"


class SessionLogger:
    """Renders one line per watch outcome and keeps the session counters.

    When ``log_file`` is given, every event is also written to that file
    through a ``logging.FileHandler`` so a session can be reviewed later.
    """

    def __init__(
        self,
        root_path: Path,
        console: Console | None = None,
        log_file: Path | None = None,
    ) -> None:
        self.root_path = root_path
        self.stats = WatchStats()
        self.log_file = log_file
        self._console = console or default_console
        self._handler: logging.FileHandler | None = None

        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(log_file, encoding="utf-8")
            self._handler.setFormatter(logging.Formatter("%(message)s"))
            file_logger.addHandler(self._handler)
            file_logger.setLevel(logging.INFO)
            self._write("")
            self._write("=" * RULE_WIDTH)
            self._write(f"Watch session started: {datetime.now().isoformat()}")
            self._write("=" * RULE_WIDTH)

    # -- Helpers ---------------------------------------------------------------

    def _write(self, message: str) -> None:
        if self._handler is not None:
            file_logger.info(message)

    def _timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def _relative(self, path: Path) -> str:
        try:
            return os.path.relpath(path, self.root_path).replace(os.sep, "/")
        except ValueError:
            # Different drive on Windows
            return str(path)

    def _stamped(self, icon: str, label: str, style: str, detail: str) -> Text:
        line = Text()
        line.append(f"[{self._timestamp()}] ", style="dim")
        line.append(f"{icon} ")
        line.append(label, style=style)
        if detail:
            line.append(f": {detail}")
        return line

    # -- Session lifecycle -------------------------------------------------------

    def display_startup(self, patterns: list[str], excluded: list[str]) -> None:
        """Print the startup banner with watched patterns and exclusions."""
        self._console.print()
        self._console.print(
            Panel(
                "[bold]🔄 CodeSyncer Watch Mode[/bold]\n[dim]Press Ctrl+C to stop[/dim]",
                border_style="cyan",
                width=RULE_WIDTH,
            )
        )
        self._console.print()
        self._console.print("[bold]📁 Watching:[/bold]")
        self._console.print(f"   [dim]{escape(str(self.root_path))}[/dim]")
        self._console.print()
        self._console.print("[bold]🎯 Patterns:[/bold]")
        for pattern in patterns:
            self._console.print(f"   [green]✓ {escape(pattern)}[/green]")
        self._console.print()
        self._console.print("[bold]🚫 Excluded:[/bold]")
        self._console.print(f"   [dim]{escape(', '.join(excluded))}[/dim]")
        self._console.print()
        self._console.print("[bold]💡 Quick Tips:[/bold]")
        self._console.print(
            '   [dim]• Add @codesyncer-decision "your decision" in code[/dim]'
        )
        self._console.print("   [dim]• Auto-synced to DECISIONS.md[/dim]")
        self._console.print("   [dim]• Also supports @codesyncer-rule, @codesyncer-todo[/dim]")
        self._console.print()
        if self.log_file is not None:
            log_name = escape(self._relative(self.log_file))
            self._console.print(f"[dim]📝 Log file: {log_name}[/dim]")
            self._console.print()

        self._write(f"Watching: {self.root_path}")
        self._write(f"Patterns: {', '.join(patterns)}")
        self._write(f"Excluded: {', '.join(excluded)}")

    def display_waiting(self) -> None:
        """Print the "watching for changes" line once the crawl is done."""
        self._console.print(
            self._stamped("👀", "Watching for changes...", "cyan", "")
        )

    def set_files_watched(self, count: int) -> None:
        self.stats.files_watched = count

    def display_shutdown(self) -> None:
        """Print the session summary and close the log file."""
        stats = self.stats
        duration = format_duration(time.monotonic() - stats.started_at)

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column()
        table.add_row("⏱  Duration:", duration)
        table.add_row("👁  Files watched:", str(stats.files_watched))
        table.add_row("✏️  Changes detected:", str(stats.changes_detected))
        table.add_row("📝 Tags synced:", f"[green]{stats.tags_synced}[/green]")
        if stats.errors > 0:
            table.add_row("❌ Errors:", f"[red]{stats.errors}[/red]")

        self._console.print()
        self._console.print("[cyan]" + "─" * RULE_WIDTH + "[/cyan]")
        self._console.print("[bold]📊 Session Summary[/bold]")
        self._console.print("[cyan]" + "─" * RULE_WIDTH + "[/cyan]")
        self._console.print(table)
        self._console.print("[cyan]" + "─" * RULE_WIDTH + "[/cyan]")
        if stats.tags_synced > 0:
            self._console.print(
                f"[green]✅ {stats.tags_synced} tag(s) were added to DECISIONS.md.[/green]"
            )
        self._console.print()

        self._write("")
        self._write("=" * RULE_WIDTH)
        self._write(f"Session ended: {datetime.now().isoformat()}")
        self._write(f"Duration: {duration}")
        self._write(f"Files watched: {stats.files_watched}")
        self._write(f"Changes detected: {stats.changes_detected}")
        self._write(f"Tags synced: {stats.tags_synced}")
        self._write(f"Errors: {stats.errors}")
        self._write("=" * RULE_WIDTH)
        self.close()

    def close(self) -> None:
        """Detach and close the session log file handler, if any."""
        if self._handler is not None:
            file_logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    # -- Events ----------------------------------------------------------------

    def log_change(self, path: Path, kind: str) -> None:
        """Report a file event (``add``, ``change`` or ``unlink``)."""
        self.stats.changes_detected += 1
        icon, label, style = CHANGE_STYLES[kind]
        relative = self._relative(path)
        self._console.print(self._stamped(icon, label, style, relative))
        self._write(f"[{self._timestamp()}] {kind.upper()} {relative}")

    def log_tag_found(self, tag: Tag) -> None:
        icon = KIND_ICONS.get(tag.kind, "🏷️")
        self._console.print(Text(f"{INDENT}└── {icon} Found: {tag.token}", style="dim"))
        quoted = Text(f"{INDENT}    \"", style="dim")
        quoted.append(tag.text, style="default")
        quoted.append('"', style="dim")
        self._console.print(quoted)
        self._write(
            f"[{self._timestamp()}] TAG_FOUND "
            f"{self._relative(tag.source_file)}:{tag.source_line} {format_tag_for_display(tag)}"
        )

    def log_tag_synced(self, tag: Tag, log_path: Path) -> None:
        self.stats.tags_synced += 1
        self._console.print(
            f"[green]{INDENT}└── ✅ Added to {escape(self._relative(log_path))}[/green]"
        )
        self._write(
            f"[{self._timestamp()}] SYNCED {self._relative(log_path)} +1 ({tag.kind})"
        )

    def log_tag_exists(self) -> None:
        self._console.print(f"[dim]{INDENT}└── (already exists)[/dim]")

    def log_no_tags(self) -> None:
        self._console.print(f"[dim]{INDENT}└── No tags found[/dim]")

    def log_no_tags_warning(self, path: Path) -> None:
        """Nudge the user when an edited file carries no tags."""
        self._console.print(
            f"[yellow]{INDENT}└── ⚠️  No tags in changed file. "
            "Consider adding @codesyncer-decision or @codesyncer-rule[/yellow]"
        )
        self._write(f"[{self._timestamp()}] NO_TAGS {self._relative(path)}")

    def log_new_directory(self, path: Path) -> None:
        relative = self._relative(path)
        self._console.print(self._stamped("📁", "New folder", "blue", f"{relative}/"))
        self._console.print(f"[dim]{INDENT}└── 💡 Consider updating ARCHITECTURE.md[/dim]")
        self._write(f"[{self._timestamp()}] NEW_DIR {relative}/")

    def log_error(self, message: str, exc: BaseException | None = None) -> None:
        """Report a recoverable error; the session continues."""
        self.stats.errors += 1
        self._console.print(self._stamped("❌", message, "red", ""))
        if exc is not None:
            self._console.print(Text(f"{INDENT}└── {exc}", style="dim"))
        self._write(f"[{self._timestamp()}] ERROR {message} {exc or ''}".rstrip())
