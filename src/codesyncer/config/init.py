"""Project setup generation from the bundled templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from codesyncer.templates.loader import render_template, templates_for_scope
from codesyncer.workspace.scanner import (
    MASTER_DIRNAME,
    REPO_DIRNAME,
    RepositoryInfo,
    WorkspaceMode,
    list_workspace_repositories,
)

logger = logging.getLogger(__name__)

WATCH_USED_MARKER = ".watch-used"


@dataclass
class InitResult:
    """Files written and kept by ``init_project``."""

    created: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)  # already existed
    repositories: list[RepositoryInfo] = field(default_factory=list)


def default_variables(root: Path, today: date | None = None) -> dict[str, str]:
    """Placeholder values used when the caller supplies none."""
    return {
        "PROJECT_NAME": root.name,
        "PROJECT_TYPE": "fullstack",
        "TECH_STACK": "TypeScript",
        "GITHUB_USERNAME": "your-username",
        "TODAY": (today or date.today()).isoformat(),
    }


def _write_if_missing(path: Path, content: str, result: InitResult) -> None:
    if path.exists():
        result.skipped.append(path)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    result.created.append(path)
    logger.debug("Wrote %s", path)


def _write_scope(
    scope: str,
    target_dir: Path,
    variables: dict[str, str],
    result: InitResult,
    root: Path,
) -> None:
    for template in templates_for_scope(scope, root):
        content = render_template(template.content, variables)
        _write_if_missing(target_dir / template.output, content, result)


def format_repo_table(repositories: list[RepositoryInfo]) -> str:
    """Render repositories as markdown table rows."""
    rows = []
    for repo in repositories:
        folder = repo.relative_path or repo.name
        setup = "yes" if repo.has_setup else "no"
        role = "package" if repo.is_monorepo_package else "repository"
        rows.append(f"| {repo.name} | `{folder}` | {role} | {setup} |")
    return "\n".join(rows)


def init_project(
    root: Path,
    variables: dict[str, str] | None = None,
    mode: WorkspaceMode = "single",
) -> InitResult:
    """Generate setup files for a project or workspace.

    Single mode writes ``.claude/`` guides for the root itself. Multi-repo
    and monorepo modes write ``.codesyncer/MASTER_CODESYNCER.md`` plus
    ``.claude/`` guides in every repository or package found. A root
    ``CLAUDE.md`` is written in every mode. Existing files are never
    overwritten.

    Args:
        root: Project or workspace root.
        variables: Placeholder values; missing keys fall back to defaults.
        mode: Workspace layout.

    Returns:
        InitResult listing created and skipped files.
    """
    values = default_variables(root)
    values.update(variables or {})
    result = InitResult()

    if mode == "single":
        values.setdefault("REPO_COUNT", "1")
        _write_scope("repo", root / REPO_DIRNAME, values, result, root)
    else:
        repositories = list_workspace_repositories(root)
        result.repositories = repositories
        values["WORKSPACE_MODE"] = mode
        values["REPO_COUNT"] = str(len(repositories))
        values["REPO_TABLE"] = format_repo_table(repositories)
        _write_scope("master", root / MASTER_DIRNAME, values, result, root)
        for repo in repositories:
            repo_values = dict(values, PROJECT_NAME=repo.name)
            _write_scope("repo", repo.path / REPO_DIRNAME, repo_values, result, root)

    _write_scope("root", root, values, result, root)
    return result


def write_root_guide(root: Path, variables: dict[str, str]) -> InitResult:
    """Write the root ``CLAUDE.md`` entry point unless it already exists."""
    values = default_variables(root)
    values.update(variables)
    result = InitResult()
    _write_scope("root", root, values, result, root)
    return result


def watch_marker_path(root: Path) -> Path | None:
    """Return the first-run marker path inside an existing setup directory."""
    for dirname in (MASTER_DIRNAME, REPO_DIRNAME):
        marker_dir = root / dirname
        if marker_dir.is_dir():
            return marker_dir / WATCH_USED_MARKER
    return None


def is_first_watch(root: Path) -> bool:
    """Check if watch mode has never been run in this project."""
    marker = watch_marker_path(root)
    return marker is not None and not marker.exists()


def mark_watch_used(root: Path) -> None:
    """Record that watch mode has been run."""
    marker = watch_marker_path(root)
    if marker is None:
        return
    try:
        marker.write_text(datetime.now().isoformat(), encoding="utf-8")
    except OSError as e:
        logger.debug("Cannot write %s: %s", marker, e)
