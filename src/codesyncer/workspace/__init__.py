"""Workspace detection and setup validation."""

from codesyncer.workspace.scanner import (
    MonorepoInfo,
    RepositoryInfo,
    WorkspaceDiff,
    WorkspaceMode,
    detect_monorepo,
    detect_workspace_mode,
    diff_workspace_repositories,
    has_master_setup,
    has_setup,
    has_single_repo_setup,
    list_workspace_repositories,
    read_recorded_repositories,
    scan_for_repositories,
    scan_monorepo_packages,
)
from codesyncer.workspace.validate import Issue, ValidationResult, validate_setup

__all__ = [
    "Issue",
    "MonorepoInfo",
    "RepositoryInfo",
    "ValidationResult",
    "WorkspaceDiff",
    "WorkspaceMode",
    "detect_monorepo",
    "detect_workspace_mode",
    "diff_workspace_repositories",
    "has_master_setup",
    "has_setup",
    "has_single_repo_setup",
    "list_workspace_repositories",
    "read_recorded_repositories",
    "scan_for_repositories",
    "scan_monorepo_packages",
    "validate_setup",
]
