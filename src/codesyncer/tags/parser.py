"""Inline tag extraction from source files."""

from __future__ import annotations

import re
from pathlib import Path

from codesyncer.tags.base import KIND_LABELS, Namespace, Tag, TagKind

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".ts", ".tsx", ".js", ".jsx",
        ".py",
        ".java", ".kt",
        ".go",
        ".rs",
        ".rb",
        ".php",
        ".swift",
        ".c", ".cpp", ".h", ".hpp",
        ".cs",
        ".vue", ".svelte",
        ".md",  # tags embedded in documentation
    }
)

# One template for every (namespace, kind) pair; the payload runs to the
# closing quote or end of line.
_TAG_TEMPLATE = r"@{namespace}-{kind}\s*[:\s]?\s*[\"']?([^\"'\n]+)[\"']?"


def _compile_patterns() -> list[tuple[Namespace, TagKind, re.Pattern[str]]]:
    patterns = []
    for kind in TagKind:
        for namespace in Namespace:
            source = _TAG_TEMPLATE.format(
                namespace=re.escape(namespace.value), kind=re.escape(kind.value)
            )
            patterns.append((namespace, kind, re.compile(source, re.IGNORECASE)))
    return patterns


_PATTERNS = _compile_patterns()


def string_hash(text: str) -> str:
    """Short deterministic hex hash of a string.

    32-bit ``h * 31 + c`` rolling hash; only distinguishes tags whose text
    differs on the same line, it is not a security property.
    """
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")[:8]


def make_dedup_key(file_path: Path, line: int, kind: TagKind, text: str) -> str:
    """Build the stable ``basename:line:kind:hash`` key for a tag."""
    return f"{file_path.name}:{line}:{kind}:{string_hash(text)}"


def parse_tags(content: str, file_path: Path) -> list[Tag]:
    """Extract all tags from file content.

    Args:
        content: Full text of the file.
        file_path: Path recorded as the tag source.

    Returns:
        Tags in line order; within a line, in kind then namespace order.
    """
    tags: list[Tag] = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        if "@" not in line:
            continue
        for namespace, kind, pattern in _PATTERNS:
            for match in pattern.finditer(line):
                text = match.group(1).strip()
                if not text:
                    continue
                tags.append(
                    Tag(
                        kind=kind,
                        text=text,
                        source_file=file_path,
                        source_line=line_number,
                        namespace=namespace,
                        dedup_key=make_dedup_key(file_path, line_number, kind, text),
                    )
                )
    return tags


def parse_tags_from_file(file_path: Path) -> list[Tag]:
    """Read a file and extract its tags.

    Unreadable files produce an empty list; reporting is left to the caller.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    return parse_tags(content, file_path)


def should_parse_file(file_path: Path) -> bool:
    """Check if the file extension can carry tags."""
    return file_path.suffix.lower() in SUPPORTED_EXTENSIONS


def format_tag_for_display(tag: Tag) -> str:
    """Format a tag as ``Label: "text"``."""
    return f'{KIND_LABELS[tag.kind]}: "{tag.text}"'
