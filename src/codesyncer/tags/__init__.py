"""Inline tag parsing and decision log synchronization."""

from codesyncer.tags.base import KIND_LABELS, Namespace, Tag, TagKind
from codesyncer.tags.decisions import (
    DECISIONS_FILENAME,
    DECISIONS_HEADER,
    append_tag,
    format_decision_entry,
    is_tag_recorded,
)
from codesyncer.tags.parser import (
    SUPPORTED_EXTENSIONS,
    format_tag_for_display,
    make_dedup_key,
    parse_tags,
    parse_tags_from_file,
    should_parse_file,
)

__all__ = [
    "DECISIONS_FILENAME",
    "DECISIONS_HEADER",
    "KIND_LABELS",
    "Namespace",
    "SUPPORTED_EXTENSIONS",
    "Tag",
    "TagKind",
    "append_tag",
    "format_decision_entry",
    "format_tag_for_display",
    "is_tag_recorded",
    "make_dedup_key",
    "parse_tags",
    "parse_tags_from_file",
    "should_parse_file",
]
