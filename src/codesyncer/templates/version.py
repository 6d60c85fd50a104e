"""Template version extraction and comparison."""

from __future__ import annotations

import re
from pathlib import Path

from codesyncer import __version__
from codesyncer.templates.base import TemplateStatus

VERSION_PATTERN = re.compile(r"<!--\s*codesyncer-version:\s*([\d.]+)\s*-->")

# Generated file name -> bundled template name
TEMPLATE_FILE_MAP: dict[str, str] = {
    "CLAUDE.md": "claude",
    "ARCHITECTURE.md": "architecture",
    "COMMENT_GUIDE.md": "comment_guide",
    "DECISIONS.md": "decisions",
}


def extract_template_version(text: str) -> str | None:
    """Return the first ``codesyncer-version`` marker value, if any."""
    match = VERSION_PATTERN.search(text)
    return match.group(1) if match else None


def _version_parts(version: str) -> list[int]:
    parts = []
    for part in version.split("."):
        parts.append(int(part) if part.isdigit() else 0)
    return parts


def compare_versions(v1: str, v2: str) -> int:
    """Compare dotted numeric versions.

    Returns -1, 0 or 1. Missing components count as zero, so ``3.0`` equals
    ``3.0.0``.
    """
    parts1 = _version_parts(v1)
    parts2 = _version_parts(v2)
    for i in range(max(len(parts1), len(parts2))):
        p1 = parts1[i] if i < len(parts1) else 0
        p2 = parts2[i] if i < len(parts2) else 0
        if p1 < p2:
            return -1
        if p1 > p2:
            return 1
    return 0


def template_name_for(file_path: Path) -> str:
    """Map a generated file to the template it was rendered from."""
    mapped = TEMPLATE_FILE_MAP.get(file_path.name)
    if mapped:
        return mapped
    return file_path.name.lower().removesuffix(".md")


def check_template_version(
    file_path: Path, latest_version: str = __version__
) -> TemplateStatus:
    """Compare a generated file's version marker with the latest version.

    Files without a marker predate versioning and count as outdated.
    Unreadable or missing files are reported as not outdated.
    """
    current_version: str | None = None
    is_outdated = False
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        pass
    else:
        current_version = extract_template_version(content)
        if current_version is None:
            is_outdated = True
        else:
            is_outdated = compare_versions(current_version, latest_version) < 0

    return TemplateStatus(
        file=file_path,
        template_name=template_name_for(file_path),
        current_version=current_version,
        latest_version=latest_version,
        is_outdated=is_outdated,
    )


def scan_template_versions(
    marker_dir: Path, latest_version: str = __version__
) -> list[TemplateStatus]:
    """Check every known generated file present in a marker directory."""
    return [
        check_template_version(marker_dir / file_name, latest_version)
        for file_name in TEMPLATE_FILE_MAP
        if (marker_dir / file_name).exists()
    ]


def get_outdated_templates(
    marker_dir: Path, latest_version: str = __version__
) -> list[TemplateStatus]:
    """Return only the outdated generated files of a marker directory."""
    return [
        status
        for status in scan_template_versions(marker_dir, latest_version)
        if status.is_outdated
    ]
