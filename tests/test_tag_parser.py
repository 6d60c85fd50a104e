"""Tests for inline tag extraction."""

from pathlib import Path

from codesyncer.tags.base import Namespace, Tag, TagKind
from codesyncer.tags.parser import (
    format_tag_for_display,
    make_dedup_key,
    parse_tags,
    parse_tags_from_file,
    should_parse_file,
    string_hash,
)

SOURCE = Path("src/auth/login.ts")


class TestParseTags:
    """Tests for parse_tags."""

    def test_quoted_primary_tag(self) -> None:
        """Test that quotes are stripped from the payload."""
        tags = parse_tags('// @codesyncer-decision "Use bcrypt for hashing"', SOURCE)

        assert len(tags) == 1
        tag = tags[0]
        assert tag.kind == TagKind.DECISION
        assert tag.text == "Use bcrypt for hashing"
        assert tag.namespace == Namespace.PRIMARY
        assert tag.source_line == 1
        assert tag.source_file == SOURCE

    def test_legacy_tag_with_colon(self) -> None:
        """Test the legacy namespace with a colon separator."""
        tags = parse_tags("// @claude-rule: Always validate on the server", SOURCE)

        assert len(tags) == 1
        assert tags[0].kind == TagKind.RULE
        assert tags[0].namespace == Namespace.LEGACY
        assert tags[0].text == "Always validate on the server"
        assert tags[0].token == "@claude-rule"

    def test_bare_payload_after_whitespace(self) -> None:
        """Test a payload separated only by a space."""
        tags = parse_tags("# @codesyncer-todo add rate limiting", SOURCE)

        assert [t.text for t in tags] == ["add rate limiting"]
        assert tags[0].kind == TagKind.TODO

    def test_single_quoted_payload(self) -> None:
        """Test that single quotes are stripped as well."""
        tags = parse_tags("# @codesyncer-context 'Legacy billing module'", SOURCE)

        assert tags[0].text == "Legacy billing module"

    def test_all_kinds_recognised(self) -> None:
        """Test that every kind is found in both namespaces."""
        lines = []
        for kind in TagKind:
            lines.append(f"// @codesyncer-{kind} primary {kind}")
            lines.append(f"// @claude-{kind} legacy {kind}")
        tags = parse_tags("\n".join(lines), SOURCE)

        assert len(tags) == 2 * len(TagKind)
        assert {(t.kind, t.namespace) for t in tags} == {
            (kind, ns) for kind in TagKind for ns in Namespace
        }

    def test_line_numbers_are_one_based(self) -> None:
        """Test that tags report the line they appear on."""
        content = "const a = 1;\n\n// @codesyncer-inference \"Page size 20\"\nconst b = 2;"
        tags = parse_tags(content, SOURCE)

        assert len(tags) == 1
        assert tags[0].source_line == 3

    def test_multiple_lines_collected_independently(self) -> None:
        """Test that tags on different lines are all returned in order."""
        content = (
            '// @codesyncer-rule "No any types"\n'
            "function f() {}\n"
            '// @codesyncer-decision "Use JWT"\n'
        )
        tags = parse_tags(content, SOURCE)

        assert [(t.source_line, t.text) for t in tags] == [
            (1, "No any types"),
            (3, "Use JWT"),
        ]

    def test_case_insensitive_marker(self) -> None:
        """Test that the tag marker is matched case-insensitively."""
        tags = parse_tags("// @CodeSyncer-Decision Use Redis", SOURCE)

        assert len(tags) == 1
        assert tags[0].kind == TagKind.DECISION

    def test_no_tags(self) -> None:
        """Test that plain code yields no tags."""
        assert parse_tags("const email = 'a@b.com';\nreturn 1;", SOURCE) == []

    def test_empty_payload_is_skipped(self) -> None:
        """Test that a marker without text produces no tag."""
        assert parse_tags('// @codesyncer-decision ""', SOURCE) == []
        assert parse_tags("// @codesyncer-decision", SOURCE) == []

    def test_tags_are_immutable(self) -> None:
        """Test that Tag instances cannot be mutated."""
        tag = parse_tags("// @codesyncer-rule keep it", SOURCE)[0]
        try:
            tag.text = "changed"  # type: ignore[misc]
        except AttributeError:
            pass
        else:
            raise AssertionError("Tag should be frozen")


class TestDedupKey:
    """Tests for dedup key construction."""

    def test_key_format(self) -> None:
        """Test the basename:line:kind:hash shape."""
        key = make_dedup_key(Path("a/b/db.ts"), 42, TagKind.DECISION, "Use PostgreSQL")

        name, line, kind, digest = key.split(":")
        assert name == "db.ts"
        assert line == "42"
        assert kind == "decision"
        assert digest == string_hash("Use PostgreSQL")

    def test_key_stable_across_runs(self) -> None:
        """Test that parsing the same content twice yields identical keys."""
        content = '// @codesyncer-decision "Use PostgreSQL"'
        first = [t.dedup_key for t in parse_tags(content, SOURCE)]
        second = [t.dedup_key for t in parse_tags(content, SOURCE)]

        assert first == second

    def test_key_changes_with_text(self) -> None:
        """Test that only changing the text changes the key."""
        a = parse_tags('// @codesyncer-decision "Use PostgreSQL"', SOURCE)[0]
        b = parse_tags('// @codesyncer-decision "Use MySQL"', SOURCE)[0]

        assert a.dedup_key != b.dedup_key

    def test_string_hash_is_short_hex(self) -> None:
        """Test the hash is a short lowercase hex string."""
        digest = string_hash("some decision text")

        assert 0 < len(digest) <= 8
        int(digest, 16)
        assert string_hash("") == "0"


class TestParseTagsFromFile:
    """Tests for reading tags from disk."""

    def test_reads_file(self, tmp_path: Path) -> None:
        """Test that tags are read from a file with its path attached."""
        source = tmp_path / "service.py"
        source.write_text('# @codesyncer-rule "Keep handlers thin"\n')

        tags = parse_tags_from_file(source)

        assert len(tags) == 1
        assert tags[0].source_file == source

    def test_missing_file_returns_empty(self, tmp_path: Path) -> None:
        """Test that an unreadable file yields no tags instead of raising."""
        assert parse_tags_from_file(tmp_path / "missing.py") == []

    def test_binary_file_returns_empty(self, tmp_path: Path) -> None:
        """Test that undecodable content yields no tags."""
        blob = tmp_path / "blob.ts"
        blob.write_bytes(b"\xff\xfe\x00\x81")

        assert parse_tags_from_file(blob) == []


class TestHelpers:
    """Tests for extension filter and display formatting."""

    def test_should_parse_file(self) -> None:
        """Test the supported extension allow-list."""
        assert should_parse_file(Path("a.ts"))
        assert should_parse_file(Path("a.PY"))
        assert should_parse_file(Path("notes.md"))
        assert not should_parse_file(Path("image.png"))
        assert not should_parse_file(Path("Makefile"))

    def test_format_tag_for_display(self) -> None:
        """Test the human-readable tag label."""
        tag = Tag(
            kind=TagKind.RULE,
            text="No secrets in logs",
            source_file=SOURCE,
            source_line=3,
            namespace=Namespace.PRIMARY,
            dedup_key="x",
        )

        assert format_tag_for_display(tag) == 'Rule: "No secrets in logs"'
        assert tag.location == "login.ts:3"
