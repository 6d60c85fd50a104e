"""Exceptions raised by codesyncer."""

from pathlib import Path


class CodeSyncerError(Exception):
    """Base exception for codesyncer operations."""


class SetupMissingError(CodeSyncerError):
    """Raised when no .codesyncer or .claude directory exists under the root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(
            f"No CodeSyncer setup found in {root}. Run `codesyncer init` first."
        )


class DecisionLogWriteError(CodeSyncerError):
    """Raised when a decision log cannot be created or appended to."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write {path}: {reason}")


class TemplateNotFoundError(CodeSyncerError):
    """Raised when a bundled template does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template not found: {name}")
