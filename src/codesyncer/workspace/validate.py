"""Setup validation for single repositories and workspaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from codesyncer.templates.loader import find_placeholders
from codesyncer.workspace.scanner import (
    MASTER_DIRNAME,
    MASTER_FILENAME,
    REPO_DIRNAME,
    detect_monorepo,
    has_master_setup,
    has_single_repo_setup,
    scan_for_repositories,
    scan_monorepo_packages,
)

REQUIRED_FILES: tuple[str, ...] = (
    "CLAUDE.md",
    "ARCHITECTURE.md",
    "COMMENT_GUIDE.md",
    "DECISIONS.md",
)


@dataclass(frozen=True)
class Issue:
    """A validation error or warning."""

    code: str  # e.g. NO_SETUP, MISSING_FILE
    message: str
    path: Path | None = None
    fix: str | None = None  # command that resolves it


@dataclass
class ValidationResult:
    errors: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)
    info: list[tuple[str, str]] = field(default_factory=list)  # (label, value)

    @property
    def valid(self) -> bool:
        return not self.errors


def _check_placeholders(path: Path, label: str, result: ValidationResult) -> None:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        result.warnings.append(Issue("READ_ERROR", f"{label}: cannot read file", path))
        return
    placeholders = find_placeholders(content)
    if placeholders:
        result.warnings.append(
            Issue(
                "UNFILLED_PLACEHOLDER",
                f"{label}: Unfilled placeholders ({', '.join(placeholders[:3])})",
                path,
            )
        )


def _check_root_claude(root: Path, result: ValidationResult) -> None:
    if (root / "CLAUDE.md").exists():
        result.info.append(("Root CLAUDE.md", "✓"))
    else:
        result.warnings.append(
            Issue(
                "NO_ROOT_CLAUDE",
                "No root CLAUDE.md (not loaded automatically at session start)",
                root / "CLAUDE.md",
                fix="codesyncer upgrade",
            )
        )


def _validate_single(root: Path, result: ValidationResult) -> None:
    claude_dir = root / REPO_DIRNAME
    result.info.append((".claude/", "✓"))
    for name in REQUIRED_FILES:
        path = claude_dir / name
        if path.exists():
            _check_placeholders(path, f".claude/{name}", result)
        else:
            result.warnings.append(
                Issue("MISSING_FILE", f"Missing .claude/{name}", path, fix="codesyncer upgrade")
            )
    _check_root_claude(root, result)


def _validate_workspace(root: Path, result: ValidationResult) -> None:
    codesyncer_dir = root / MASTER_DIRNAME
    if not codesyncer_dir.exists():
        result.warnings.append(
            Issue("NO_CODESYNCER_DIR", "No .codesyncer directory", codesyncer_dir)
        )

    master_path = codesyncer_dir / MASTER_FILENAME
    if master_path.exists():
        result.info.append((MASTER_FILENAME, "✓"))
        _check_placeholders(master_path, MASTER_FILENAME, result)
    else:
        result.errors.append(
            Issue(
                "NO_MASTER",
                f"No {MASTER_FILENAME} found",
                master_path,
                fix="codesyncer init --mode multi-repo",
            )
        )
    _check_root_claude(root, result)

    monorepo = detect_monorepo(root)
    if monorepo is not None:
        repositories = scan_monorepo_packages(root, monorepo)
        result.info.append(("Monorepo", monorepo.display_name))
    else:
        repositories = scan_for_repositories(root)
    result.info.append(("Repositories", str(len(repositories))))

    for repo in repositories:
        claude_dir = repo.path / REPO_DIRNAME
        missing = [name for name in REQUIRED_FILES if not (claude_dir / name).exists()]
        if len(missing) == len(REQUIRED_FILES):
            result.errors.append(
                Issue(
                    "NO_CLAUDE_DIR",
                    f"{repo.name}: No .claude directory",
                    claude_dir,
                    fix=f"cd {repo.relative_path or repo.name} && codesyncer init",
                )
            )
            continue
        for name in missing:
            result.warnings.append(
                Issue("MISSING_FILE", f"{repo.name}: Missing {name}", claude_dir / name)
            )
        for name in REQUIRED_FILES:
            if name not in missing:
                _check_placeholders(claude_dir / name, f"{repo.name}/{name}", result)


def validate_setup(root: Path) -> ValidationResult:
    """Check a project or workspace for a complete CodeSyncer setup.

    A root with ``.codesyncer`` (or legacy ``.master``) is validated as a
    workspace; a root with only ``.claude`` as a single repository.
    """
    result = ValidationResult()
    has_master = has_master_setup(root)
    has_single = has_single_repo_setup(root)

    if not has_master and not has_single:
        result.errors.append(
            Issue("NO_SETUP", "No CodeSyncer setup found", root, fix="codesyncer init")
        )
        return result

    if has_master:
        result.info.append(("Mode", "Multi-repository"))
        _validate_workspace(root, result)
    else:
        result.info.append(("Mode", "Single repository"))
        _validate_single(root, result)
    return result
