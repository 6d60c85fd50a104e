"""Decision log (DECISIONS.md) synchronization."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from codesyncer.errors import DecisionLogWriteError
from codesyncer.tags.base import Tag

logger = logging.getLogger(__name__)

DECISIONS_FILENAME = "DECISIONS.md"

DECISIONS_HEADER = """# DECISIONS.md

> Auto-synced by CodeSyncer Watch Mode

---

## Decisions Log

"""


def format_decision_entry(
    tag: Tag, relative_file: str, now: datetime | None = None
) -> str:
    """Format a tag as a DECISIONS.md entry block."""
    now = now or datetime.now()
    return (
        f"\n### {tag.text}\n"
        "\n"
        f"- **Type**: {tag.kind}\n"
        f"- **Source**: `{relative_file}:{tag.source_line}`\n"
        f"- **Added**: {now:%Y-%m-%d %H:%M} (via Watch Mode)\n"
        f"- **Tag**: `{tag.token}`\n"
    )


def is_tag_recorded(log_path: Path, tag: Tag) -> bool:
    """Check whether a tag already appears in a decision log.

    Matching is deliberately coarse: the log counts as containing the tag
    when the lower-cased tag text is a substring of the lower-cased log, or
    when ``basename:line`` of the tag source appears verbatim. A short tag
    text that occurs inside a longer recorded title therefore also matches.
    """
    if not log_path.exists():
        return False
    try:
        content = log_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Could not read decision log %s", log_path, exc_info=True)
        return False

    if tag.text.strip().lower() in content.lower():
        return True
    return tag.location in content


def _relative_source(tag: Tag, root_path: Path) -> str:
    try:
        relative = os.path.relpath(tag.source_file, root_path)
    except ValueError:
        # different drive on Windows
        relative = str(tag.source_file)
    return relative.replace(os.sep, "/")


def append_tag(log_path: Path, tag: Tag, root_path: Path) -> bool:
    """Append a tag to the decision log unless it is already recorded.

    The existence check is repeated right before writing. There is no file
    locking; callers must not append to the same log concurrently.

    Args:
        log_path: Target DECISIONS.md (created with a header if missing).
        tag: The tag to record.
        root_path: Workspace root; the entry stores the source relative to it.

    Returns:
        True if an entry was appended, False if the tag was already present.

    Raises:
        DecisionLogWriteError: If the log cannot be created or written.
    """
    if is_tag_recorded(log_path, tag):
        return False

    entry = format_decision_entry(tag, _relative_source(tag, root_path))
    try:
        if not log_path.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
            log_path.write_text(DECISIONS_HEADER, encoding="utf-8")
        with log_path.open("a", encoding="utf-8") as f:
            f.write(entry)
    except OSError as e:
        raise DecisionLogWriteError(log_path, e.strerror or str(e)) from e

    logger.debug("Appended %s to %s", tag.dedup_key, log_path)
    return True
