"""Upgrade generated setup files to the latest bundled templates.

Every upgrade backs up the current file first. Files that carry section
markers are merged section by section so user edits survive; older files
without markers are replaced wholesale.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import date
from pathlib import Path

from codesyncer.errors import CodeSyncerError
from codesyncer.templates.base import TemplateStatus, UpgradeResult
from codesyncer.templates.loader import load_template, render_template
from codesyncer.templates.merge import merge_sections, supports_merge

logger = logging.getLogger(__name__)

_VAR_PATTERNS: dict[str, re.Pattern[str]] = {
    "PROJECT_NAME": re.compile(r"\*\*Project Name\*\*:\s*([^\n]+)"),
    "TECH_STACK": re.compile(r"\*\*Tech Stack\*\*:\s*([^\n]+)"),
    "PROJECT_TYPE": re.compile(r"\*\*Project Type\*\*:\s*([^\n]+)"),
    "GITHUB_USERNAME": re.compile(r"github\.com/([^/\s)]+)", re.IGNORECASE),
}


LOG_HEADING = "## Decisions Log"


def carry_over_log_entries(existing: str, rendered: str) -> str:
    """Keep recorded decision entries when a log without markers is replaced.

    Everything after the existing log heading is appended to the new
    template, which ends with the same heading.
    """
    index = existing.find(LOG_HEADING)
    entries = existing[index + len(LOG_HEADING) :] if index >= 0 else existing
    entries = entries.lstrip("\n")
    if not entries:
        return rendered
    return rendered.rstrip("\n") + "\n\n" + entries


def backup_path_for(file_path: Path, today: date | None = None) -> Path:
    """Return ``<name>.backup.YYYY-MM-DD``, adding ``.N`` if already taken."""
    stamp = (today or date.today()).isoformat()
    candidate = file_path.with_name(f"{file_path.name}.backup.{stamp}")
    counter = 1
    while candidate.exists():
        candidate = file_path.with_name(f"{file_path.name}.backup.{stamp}.{counter}")
        counter += 1
    return candidate


def backup_file(file_path: Path, today: date | None = None) -> Path:
    """Copy a file next to itself before it is modified."""
    backup = backup_path_for(file_path, today)
    shutil.copy2(file_path, backup)
    return backup


def upgrade_template(
    status: TemplateStatus,
    variables: dict[str, str],
    *,
    dry_run: bool = False,
    root: Path | None = None,
) -> UpgradeResult:
    """Upgrade one generated file.

    Args:
        status: Version status of the file (see ``check_template_version``).
        variables: Placeholder values for rendering the new template.
        dry_run: Report what would happen without touching the disk.
        root: Project root used to look up template overrides.

    Returns:
        UpgradeResult; failures are reported, never raised.
    """
    file_path = status.file
    try:
        existing = (
            file_path.read_text(encoding="utf-8") if file_path.exists() else None
        )
        mergeable = existing is not None and supports_merge(existing)

        if dry_run:
            return UpgradeResult(
                success=True,
                file=file_path,
                backup_path=backup_path_for(file_path) if existing is not None else None,
                merged=mergeable,
                dry_run=True,
            )

        template = load_template(status.template_name, root)
        rendered = render_template(template.content, variables)

        backup = backup_file(file_path) if existing is not None else None
        if existing is not None and mergeable:
            content = merge_sections(existing, rendered)
        elif existing is not None and status.template_name == "decisions":
            content = carry_over_log_entries(existing, rendered)
        else:
            content = rendered

        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    except (OSError, UnicodeDecodeError, CodeSyncerError) as e:
        logger.warning("Upgrade of %s failed: %s", file_path, e)
        return UpgradeResult(success=False, file=file_path, error=str(e))

    return UpgradeResult(
        success=True, file=file_path, backup_path=backup, merged=mergeable
    )


def upgrade_templates(
    statuses: list[TemplateStatus],
    variables: dict[str, str],
    *,
    dry_run: bool = False,
    root: Path | None = None,
) -> list[UpgradeResult]:
    """Upgrade several files in order."""
    return [
        upgrade_template(status, variables, dry_run=dry_run, root=root)
        for status in statuses
    ]


def extract_vars_from_file(file_path: Path) -> dict[str, str]:
    """Recover placeholder values from a previously rendered file."""
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return {}

    variables: dict[str, str] = {}
    for key, pattern in _VAR_PATTERNS.items():
        match = pattern.search(content)
        if match:
            value = match.group(1).strip()
            # Skip values that were never filled in
            if not value.startswith("["):
                variables[key] = value
    return variables


def get_template_vars(marker_dir: Path, today: date | None = None) -> dict[str, str]:
    """Build rendering variables for a marker directory.

    Values come from the existing CLAUDE.md where possible, with defaults
    derived from the project folder otherwise.
    """
    variables = extract_vars_from_file(marker_dir / "CLAUDE.md")
    project_dir = marker_dir.parent
    variables.setdefault("PROJECT_NAME", project_dir.name)
    variables.setdefault("TECH_STACK", "TypeScript")
    variables.setdefault("PROJECT_TYPE", "fullstack")
    variables.setdefault("GITHUB_USERNAME", "your-username")
    variables["TODAY"] = (today or date.today()).isoformat()
    return variables


def format_upgrade_summary(results: list[UpgradeResult]) -> str:
    """Format upgrade results as plain text lines."""
    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    lines: list[str] = []
    if successful:
        verb = "would be upgraded" if any(r.dry_run for r in successful) else "upgraded"
        lines.append(f"✅ {len(successful)} file(s) {verb}:")
        for r in successful:
            mode = "merged" if r.merged else "replaced"
            lines.append(f"   • {r.file.name} ({mode})")
            if r.backup_path:
                lines.append(f"     Backup: {r.backup_path.name}")
    if failed:
        lines.append(f"❌ {len(failed)} file(s) failed:")
        for r in failed:
            lines.append(f"   • {r.file.name}: {r.error}")
    return "\n".join(lines)
