"""Tests for watch session output and counters."""

import io
from datetime import datetime
from pathlib import Path

import pytest
from rich.console import Console

from codesyncer.tags.base import Namespace, Tag, TagKind
from codesyncer.watch.session_log import (
    SessionLogger,
    format_duration,
    session_log_path,
)


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


def make_tag(root: Path) -> Tag:
    return Tag(
        kind=TagKind.DECISION,
        text="Use [Redis] for sessions",
        source_file=root / "src" / "cache.ts",
        source_line=12,
        namespace=Namespace.PRIMARY,
        dedup_key="cache.ts:12:decision:abc",
    )


class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0s"),
            (59.9, "59s"),
            (61, "1m 1s"),
            (3600, "1h 0m 0s"),
            (3725, "1h 2m 5s"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        """Test hour, minute and second formats."""
        assert format_duration(seconds) == expected


class TestSessionLogger:
    """Tests for SessionLogger."""

    def test_counters(self, tmp_path: Path) -> None:
        """Test which events increment which counter."""
        console, _ = make_console()
        logger = SessionLogger(tmp_path, console)
        tag = make_tag(tmp_path)

        logger.set_files_watched(7)
        logger.log_change(tmp_path / "a.ts", "change")
        logger.log_change(tmp_path / "b.ts", "unlink")
        logger.log_tag_found(tag)
        logger.log_tag_synced(tag, tmp_path / "DECISIONS.md")
        logger.log_tag_exists()
        logger.log_no_tags()
        logger.log_error("Failed", OSError("disk full"))

        assert logger.stats.files_watched == 7
        assert logger.stats.changes_detected == 2
        assert logger.stats.tags_synced == 1
        assert logger.stats.errors == 1

    def test_event_lines(self, tmp_path: Path) -> None:
        """Test one readable line per outcome."""
        console, buffer = make_console()
        logger = SessionLogger(tmp_path, console)
        tag = make_tag(tmp_path)

        logger.log_change(tmp_path / "src" / "cache.ts", "add")
        logger.log_tag_found(tag)
        logger.log_tag_synced(tag, tmp_path / ".claude" / "DECISIONS.md")
        logger.log_no_tags_warning(tmp_path / "src" / "cache.ts")
        logger.log_new_directory(tmp_path / "src" / "features")

        output = buffer.getvalue()
        assert "New: src/cache.ts" in output
        assert "Found: @codesyncer-decision" in output
        assert '"Use [Redis] for sessions"' in output
        assert "Added to .claude/DECISIONS.md" in output
        assert "No tags in changed file" in output
        assert "New folder: src/features/" in output

    def test_shutdown_summary(self, tmp_path: Path) -> None:
        """Test the summary includes counts and errors only when present."""
        console, buffer = make_console()
        logger = SessionLogger(tmp_path, console)
        logger.set_files_watched(3)
        logger.log_change(tmp_path / "a.ts", "change")

        logger.display_shutdown()

        output = buffer.getvalue()
        assert "Session Summary" in output
        assert "Files watched:" in output
        assert "Errors:" not in output

    def test_shutdown_summary_with_errors(self, tmp_path: Path) -> None:
        """Test that an errors row appears when errors were counted."""
        console, buffer = make_console()
        logger = SessionLogger(tmp_path, console)
        logger.log_error("Watcher error")

        logger.display_shutdown()

        assert "Errors:" in buffer.getvalue()

    def test_log_file(self, tmp_path: Path) -> None:
        """Test that events are mirrored to the session log file."""
        console, _ = make_console()
        log_file = tmp_path / ".codesyncer" / "watch-2025-01-15.log"
        logger = SessionLogger(tmp_path, console, log_file)

        logger.display_startup(["**/*.ts"], ["node_modules"])
        logger.log_change(tmp_path / "a.ts", "change")
        logger.display_shutdown()

        content = log_file.read_text()
        assert "Watch session started" in content
        assert "CHANGE a.ts" in content
        assert "Changes detected: 1" in content
        assert "Session ended" in content

    def test_log_file_tag_lines(self, tmp_path: Path) -> None:
        """Test the found and synced lines written for a tag."""
        console, _ = make_console()
        log_file = tmp_path / ".codesyncer" / "watch-2025-01-15.log"
        logger = SessionLogger(tmp_path, console, log_file)
        tag = make_tag(tmp_path)

        logger.log_tag_found(tag)
        logger.log_tag_synced(tag, tmp_path / ".claude" / "DECISIONS.md")
        logger.display_shutdown()

        content = log_file.read_text()
        assert 'TAG_FOUND src/cache.ts:12 Decision: "Use [Redis] for sessions"' in content
        assert "SYNCED .claude/DECISIONS.md +1 (decision)" in content

    def test_bracketed_paths_are_printed_literally(self, tmp_path: Path) -> None:
        """Test that paths and patterns containing brackets are not read as markup."""
        root = tmp_path / "proj[v2]"
        console, buffer = make_console()
        log_file = root / ".codesyncer" / "watch[1].log"
        logger = SessionLogger(root, console, log_file)

        logger.display_startup(["**/*.{ts,tsx}", "[bold]x"], ["out[dir]"])
        logger.log_tag_synced(make_tag(root), root / "pkg[a]" / "DECISIONS.md")
        logger.display_shutdown()

        output = buffer.getvalue()
        assert "proj[v2]" in output
        assert "[bold]x" in output
        assert "out[dir]" in output
        assert "watch[1].log" in output
        assert "Added to pkg[a]/DECISIONS.md" in output

    def test_no_log_file_by_default(self, tmp_path: Path) -> None:
        """Test that nothing is written to disk without a log file."""
        console, _ = make_console()
        logger = SessionLogger(tmp_path, console)
        logger.log_change(tmp_path / "a.ts", "change")
        logger.display_shutdown()

        assert list(tmp_path.iterdir()) == []


class TestSessionLogPath:
    """Tests for session_log_path."""

    def test_defaults_to_codesyncer_dir(self, tmp_path: Path) -> None:
        """Test the dated log name under .codesyncer."""
        path = session_log_path(tmp_path, datetime(2025, 1, 15))

        assert path == tmp_path / ".codesyncer" / "watch-2025-01-15.log"

    def test_uses_claude_dir_in_single_repo(self, tmp_path: Path) -> None:
        """Test that a single-repo setup logs into .claude."""
        (tmp_path / ".claude").mkdir()

        path = session_log_path(tmp_path, datetime(2025, 1, 15))

        assert path.parent == tmp_path / ".claude"
