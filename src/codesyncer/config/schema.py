"""Configuration schema for codesyncer."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


@dataclass
class CodeSyncerConfig:
    """codesyncer configuration schema.

    Fields mirror the options of `codesyncer watch`.
    None values indicate "not set" and will use defaults or be inherited.
    """

    # Watch settings
    debounce_ms: int | None = None
    log_to_file: bool | None = None

    # Extra directory names the watcher ignores, on top of the built-in list
    extra_excludes: tuple[str, ...] | None = None

    def merge(self, other: CodeSyncerConfig) -> CodeSyncerConfig:
        """Merge another config into this one.

        Values from `other` take precedence when they are not None.
        Returns a new CodeSyncerConfig instance.
        """
        return CodeSyncerConfig(
            debounce_ms=(
                other.debounce_ms if other.debounce_ms is not None else self.debounce_ms
            ),
            log_to_file=(
                other.log_to_file if other.log_to_file is not None else self.log_to_file
            ),
            extra_excludes=(
                other.extra_excludes
                if other.extra_excludes is not None
                else self.extra_excludes
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "extra_excludes" and value is not None:
                result[f.name] = list(value)
            elif value is not None:
                result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeSyncerConfig:
        """Create a CodeSyncerConfig from a dictionary.

        Unknown keys are ignored. Values of the wrong type are dropped.
        """
        debounce_raw = data.get("debounce_ms")
        debounce_ms: int | None = None
        if isinstance(debounce_raw, (int, str)) and not isinstance(debounce_raw, bool):
            try:
                debounce_ms = max(0, int(debounce_raw))
            except ValueError:
                debounce_ms = None

        log_raw = data.get("log_to_file")
        log_to_file = bool(log_raw) if log_raw is not None else None

        excludes_raw = data.get("extra_excludes")
        extra_excludes: tuple[str, ...] | None = None
        if isinstance(excludes_raw, list):
            extra_excludes = tuple(str(e) for e in excludes_raw)

        return cls(
            debounce_ms=debounce_ms,
            log_to_file=log_to_file,
            extra_excludes=extra_excludes,
        )


# Default configuration values (used when not specified anywhere)
DEFAULT_CONFIG = CodeSyncerConfig(
    debounce_ms=500,
    log_to_file=False,
    extra_excludes=(),
)
