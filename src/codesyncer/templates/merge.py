"""Section-level merging of generated markdown documents.

Generated documents mark the parts CodeSyncer owns with paired HTML
comments::

    <!-- codesyncer-section-start:rules -->
    ...
    <!-- codesyncer-section-end:rules -->

An upgrade replaces only the marked sections that exist in both the current
file and the new template. Everything the user wrote outside of them is left
byte-for-byte untouched.
"""

from __future__ import annotations

import re

from codesyncer.templates.base import Section

SECTION_PATTERN = re.compile(
    r"<!--\s*codesyncer-section-start:(\w+)\s*-->"
    r"[\s\S]*?"
    r"<!--\s*codesyncer-section-end:\1\s*-->"
)
SECTION_START_PATTERN = re.compile(r"<!--\s*codesyncer-section-start:\w+\s*-->")
VERSION_MARKER_PATTERN = re.compile(r"<!--\s*codesyncer-version:\s*[\d.]+\s*-->")


def extract_sections(text: str) -> list[Section]:
    """Return the well-formed sections of a document in order.

    A start marker without a matching end marker is not a section.
    """
    return [
        Section(
            name=match.group(1),
            full_text=match.group(0),
            start=match.start(),
            end=match.end(),
        )
        for match in SECTION_PATTERN.finditer(text)
    ]


def supports_merge(text: str) -> bool:
    """Check if a document has at least one section start marker."""
    return SECTION_START_PATTERN.search(text) is not None


def merge_sections(existing: str, new: str) -> str:
    """Update sections of ``existing`` in place from ``new``.

    Args:
        existing: Current document, possibly edited by the user.
        new: Freshly rendered template.

    Returns:
        ``new`` unchanged when either side has no sections. Otherwise
        ``existing`` with every section that ``new`` also defines replaced
        by the new version, and its version marker updated to the last one
        found in ``new``. Sections only present in ``new`` are not added.
    """
    existing_sections = extract_sections(existing)
    new_sections = extract_sections(new)
    if not existing_sections or not new_sections:
        return new

    replacements = {section.name: section for section in new_sections}

    # Splice back to front so earlier offsets stay valid.
    result = existing
    for section in reversed(existing_sections):
        replacement = replacements.get(section.name)
        if replacement is None:
            continue
        result = result[: section.start] + replacement.full_text + result[section.end :]

    new_versions = VERSION_MARKER_PATTERN.findall(new)
    if new_versions:
        latest = new_versions[-1]
        result = VERSION_MARKER_PATTERN.sub(lambda _: latest, result)

    return result
