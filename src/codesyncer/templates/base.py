"""Template section and status definitions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Section:
    """A named, marker-delimited span of a template document.

    ``full_text`` includes both markers; ``start``/``end`` are character
    offsets into the document the section was extracted from.
    """

    name: str
    full_text: str
    start: int
    end: int


@dataclass(frozen=True)
class TemplateStatus:
    """Version state of a generated file relative to the bundled template."""

    file: Path
    template_name: str  # e.g. "claude", "decisions"
    current_version: str | None
    latest_version: str
    is_outdated: bool


@dataclass(frozen=True)
class UpgradeResult:
    """Outcome of upgrading one generated file."""

    success: bool
    file: Path
    backup_path: Path | None = None
    error: str | None = None
    merged: bool = False  # True when section merge was used
    dry_run: bool = False


@dataclass(frozen=True)
class DocTemplate:
    """A bundled markdown template for a generated setup file."""

    name: str  # e.g. "claude", "decisions"
    description: str
    output: str  # generated file name, e.g. "CLAUDE.md"
    scope: str  # "repo" | "master" | "root"
    content: str
    source: Path | None = None  # Directory the template was loaded from
