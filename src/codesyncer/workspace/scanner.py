"""Workspace layout detection: single repo, multi-repo or monorepo."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml

logger = logging.getLogger(__name__)

WorkspaceMode = Literal["single", "multi-repo", "monorepo"]

MASTER_DIRNAME = ".codesyncer"
REPO_DIRNAME = ".claude"
LEGACY_MASTER_DIRNAME = ".master"
MASTER_FILENAME = "MASTER_CODESYNCER.md"
MARKER_DIRNAMES: tuple[str, ...] = (MASTER_DIRNAME, REPO_DIRNAME)

SKIPPED_DIRS = frozenset(
    {"node_modules", ".git", "dist", "build", ".next", "coverage"}
)

PROJECT_FILES: tuple[str, ...] = (
    "package.json",
    "pom.xml",  # Java
    "requirements.txt",  # Python
    "pyproject.toml",
    "Cargo.toml",  # Rust
    "go.mod",  # Go
    "build.gradle",  # Android/Java
    "pubspec.yaml",  # Flutter/Dart
)

MONOREPO_TOOL_NAMES: dict[str, str] = {
    "npm-workspaces": "npm Workspaces",
    "yarn-workspaces": "Yarn Workspaces",
    "pnpm": "pnpm",
    "lerna": "Lerna",
    "nx": "Nx",
    "turbo": "Turborepo",
    "rush": "Rush",
    "unknown": "Unknown",
}


@dataclass(frozen=True)
class RepositoryInfo:
    """A repository or package found in the workspace."""

    name: str
    path: Path
    has_setup: bool
    is_monorepo_package: bool = False
    relative_path: str | None = None  # e.g. "packages/api"


@dataclass(frozen=True)
class MonorepoInfo:
    """Detected monorepo tooling."""

    tool: str
    patterns: tuple[str, ...]  # e.g. ("packages/*", "apps/*")
    config_file: str | None = None

    @property
    def display_name(self) -> str:
        return get_monorepo_tool_name(self.tool)


def get_monorepo_tool_name(tool: str) -> str:
    """Human-readable name for a monorepo tool id."""
    return MONOREPO_TOOL_NAMES.get(tool, tool)


def has_setup(folder: Path) -> bool:
    """Check if a folder carries either marker directory."""
    return any((folder / name).exists() for name in MARKER_DIRNAMES)


def has_master_setup(root: Path) -> bool:
    """Check for a workspace-level (.codesyncer or legacy .master) setup."""
    return (root / MASTER_DIRNAME).exists() or (root / LEGACY_MASTER_DIRNAME).exists()


def has_single_repo_setup(root: Path) -> bool:
    """Check for a single repository (.claude) setup."""
    return (root / REPO_DIRNAME).exists()


def is_valid_repository(folder: Path) -> bool:
    """Check if a folder looks like a project."""
    if (folder / ".git").exists() or (folder / "src").exists():
        return True
    return any((folder / name).exists() for name in PROJECT_FILES)


def scan_for_repositories(root: Path) -> list[RepositoryInfo]:
    """List immediate child folders of root that look like repositories."""
    repos: list[RepositoryInfo] = []
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        logger.warning("Cannot scan %s: %s", root, e)
        return repos

    for entry in entries:
        if not entry.is_dir() or entry.name in SKIPPED_DIRS:
            continue
        if entry.name.startswith("."):
            continue
        if is_valid_repository(entry):
            repos.append(
                RepositoryInfo(
                    name=entry.name,
                    path=entry,
                    has_setup=has_setup(entry),
                    relative_path=entry.name,
                )
            )
    return repos


def _read_json(path: Path) -> dict[str, object] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _read_yaml(path: Path) -> dict[str, object] | None:
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None
    return data if isinstance(data, dict) else None


def _string_list(value: object) -> tuple[str, ...]:
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    return ()


def detect_monorepo(root: Path) -> MonorepoInfo | None:
    """Detect monorepo tooling from well-known config files."""
    pnpm_file = root / "pnpm-workspace.yaml"
    if pnpm_file.exists():
        data = _read_yaml(pnpm_file) or {}
        return MonorepoInfo(
            tool="pnpm",
            patterns=_string_list(data.get("packages")) or ("packages/*",),
            config_file=pnpm_file.name,
        )

    package_json = _read_json(root / "package.json")
    workspaces = package_json.get("workspaces") if package_json else None
    if isinstance(workspaces, dict):
        # yarn classic allows {"packages": [...]}
        workspaces = workspaces.get("packages")
    if isinstance(workspaces, list) and workspaces:
        tool = "yarn-workspaces" if (root / "yarn.lock").exists() else "npm-workspaces"
        return MonorepoInfo(
            tool=tool, patterns=_string_list(workspaces), config_file="package.json"
        )

    lerna = _read_json(root / "lerna.json")
    if lerna is not None:
        return MonorepoInfo(
            tool="lerna",
            patterns=_string_list(lerna.get("packages")) or ("packages/*",),
            config_file="lerna.json",
        )

    if (root / "nx.json").exists():
        return MonorepoInfo(
            tool="nx", patterns=("apps/*", "libs/*", "packages/*"), config_file="nx.json"
        )

    if (root / "turbo.json").exists():
        return MonorepoInfo(
            tool="turbo", patterns=("apps/*", "packages/*"), config_file="turbo.json"
        )

    rush = _read_json(root / "rush.json")
    if rush is not None:
        projects = rush.get("projects")
        folders = tuple(
            str(p["projectFolder"])
            for p in projects
            if isinstance(p, dict) and "projectFolder" in p
        ) if isinstance(projects, list) else ()
        return MonorepoInfo(tool="rush", patterns=folders, config_file="rush.json")

    return None


def scan_monorepo_packages(root: Path, info: MonorepoInfo) -> list[RepositoryInfo]:
    """Expand workspace patterns into package descriptors.

    Supports ``dir/*`` globs and literal folders; negated patterns are
    skipped.
    """
    found: dict[Path, RepositoryInfo] = {}
    for pattern in info.patterns:
        if pattern.startswith("!"):
            continue
        pattern = pattern.rstrip("/")
        candidates = sorted(root.glob(pattern)) if "*" in pattern else [root / pattern]
        for candidate in candidates:
            if not candidate.is_dir() or candidate.name in SKIPPED_DIRS:
                continue
            if candidate in found:
                continue
            relative = candidate.relative_to(root).as_posix()
            found[candidate] = RepositoryInfo(
                name=candidate.name,
                path=candidate,
                has_setup=has_setup(candidate),
                is_monorepo_package=True,
                relative_path=relative,
            )
    return list(found.values())


def detect_workspace_mode(root: Path) -> WorkspaceMode:
    """Classify the workspace rooted at ``root``.

    A monorepo config wins; otherwise a root git repository is a single
    repo, and a folder holding several repositories is a multi-repo
    workspace.
    """
    if detect_monorepo(root) is not None:
        return "monorepo"
    if (root / ".git").exists():
        return "single"
    if len(scan_for_repositories(root)) > 1:
        return "multi-repo"
    return "single"


def list_workspace_repositories(root: Path) -> list[RepositoryInfo]:
    """Return monorepo packages when detected, child repositories otherwise."""
    info = detect_monorepo(root)
    if info is not None:
        return scan_monorepo_packages(root, info)
    return scan_for_repositories(root)


@dataclass(frozen=True)
class WorkspaceDiff:
    """Repositories on disk compared with those recorded in the master doc."""

    current: tuple[RepositoryInfo, ...]
    added: tuple[RepositoryInfo, ...]
    removed: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def read_recorded_repositories(master_path: Path) -> list[str] | None:
    """Return repository names from the master doc's repository table.

    Only rows of the table headed ``| Repository |`` count; the header and
    separator rows are skipped. Returns None when the file cannot be read.
    """
    try:
        lines = master_path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", master_path, e)
        return None

    names: list[str] = []
    in_table = False
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith("|"):
            if in_table:
                break
            continue
        cells = [cell.strip() for cell in stripped.strip("|").split("|")]
        if not in_table:
            in_table = cells[0] == "Repository"
            continue
        if not cells[0] or set(cells[0]) <= {"-", ":"}:
            continue
        names.append(cells[0])
    return names


def diff_workspace_repositories(root: Path) -> WorkspaceDiff | None:
    """Compare the repositories found now with the master doc's table.

    Returns None without a ``.codesyncer/MASTER_CODESYNCER.md``.
    """
    recorded = read_recorded_repositories(root / MASTER_DIRNAME / MASTER_FILENAME)
    if recorded is None:
        return None

    current = list_workspace_repositories(root)
    current_names = {repo.name for repo in current}
    return WorkspaceDiff(
        current=tuple(current),
        added=tuple(repo for repo in current if repo.name not in recorded),
        removed=tuple(name for name in recorded if name not in current_names),
    )
