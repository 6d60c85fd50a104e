"""Tag data model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class TagKind(StrEnum):
    """Kinds of inline annotation tags."""

    RULE = "rule"
    INFERENCE = "inference"
    DECISION = "decision"
    TODO = "todo"
    CONTEXT = "context"


class Namespace(StrEnum):
    """Accepted tag prefixes. Both carry identical semantics."""

    PRIMARY = "codesyncer"
    LEGACY = "claude"  # existing codebases still use @claude-*


KIND_LABELS: dict[TagKind, str] = {
    TagKind.DECISION: "Decision",
    TagKind.RULE: "Rule",
    TagKind.INFERENCE: "Inference",
    TagKind.TODO: "Todo",
    TagKind.CONTEXT: "Context",
}


@dataclass(frozen=True)
class Tag:
    """A single annotation found in source text.

    Tags are transient: they are rebuilt on every scan and never stored
    outside of the decision log entry they produce.
    """

    kind: TagKind
    text: str  # trimmed payload, never empty
    source_file: Path
    source_line: int  # 1-based
    namespace: Namespace
    dedup_key: str

    @property
    def token(self) -> str:
        """Return the tag token as written in source, e.g. @codesyncer-rule."""
        return f"@{self.namespace}-{self.kind}"

    @property
    def location(self) -> str:
        """Return ``basename:line`` used to spot already-recorded tags."""
        return f"{self.source_file.name}:{self.source_line}"
