#!/usr/bin/env python3
"""Tests for skills_frontmatter.py - delimited metadata block parser."""

from skills_frontmatter import find_front_matter_block, parse_front_matter


class TestLocateBlock:
    """Tests for finding the delimited block at the head of a document."""

    def test_no_opening_delimiter_returns_none(self) -> None:
        """A document that does not start with --- has no front matter."""
        assert parse_front_matter("# Title\n\nname: foo\n") is None

    def test_opening_delimiter_must_be_first_line(self) -> None:
        """A block starting on line two is ignored."""
        assert parse_front_matter("\n---\nname: foo\n---\n") is None

    def test_unterminated_block_returns_none(self) -> None:
        """An opening delimiter without a closing one degrades to no front matter."""
        assert parse_front_matter("---\nname: foo\ndescription: bar\n") is None

    def test_empty_document_returns_none(self) -> None:
        assert parse_front_matter("") is None

    def test_empty_block_parses_to_empty_mapping(self) -> None:
        fm = parse_front_matter("---\n---\nbody\n")
        assert fm is not None
        assert fm.fields == {}

    def test_bom_and_crlf_are_tolerated(self) -> None:
        """Windows line endings and a UTF-8 BOM do not hide the block."""
        fm = parse_front_matter("\ufeff---\r\nname: foo\r\n---\r\nbody\r\n")
        assert fm is not None
        assert fm.get("name") == "foo"

    def test_closing_delimiter_index(self) -> None:
        located = find_front_matter_block("---\na: 1\nb: 2\n---\nbody")
        assert located == (["a: 1", "b: 2"], 3)


class TestFields:
    """Tests for key/value extraction."""

    def test_simple_values_are_trimmed(self) -> None:
        fm = parse_front_matter("---\nname:   rbac   \nlicense: Apache-2.0\n---\n")
        assert fm is not None
        assert fm.get("name") == "rbac"
        assert fm.get("license") == "Apache-2.0"

    def test_values_are_not_coerced(self) -> None:
        """Numbers and booleans stay strings exactly as written."""
        fm = parse_front_matter("---\nversion: 1.0\nenabled: true\n---\n")
        assert fm is not None
        assert fm.get("version") == "1.0"
        assert fm.get("enabled") == "true"

    def test_value_containing_colon_is_kept_whole(self) -> None:
        fm = parse_front_matter("---\ndescription: Use when: reviewing APIs\n---\n")
        assert fm is not None
        assert fm.get("description") == "Use when: reviewing APIs"

    def test_quotes_preserved_in_raw_value(self) -> None:
        fm = parse_front_matter('---\ndescription: "Quoted: value"\n---\n')
        assert fm is not None
        assert fm.get("description") == '"Quoted: value"'
        assert fm.is_quoted("description")
        assert fm.text("description") == "Quoted: value"

    def test_comments_and_blank_lines_skipped(self) -> None:
        fm = parse_front_matter("---\n# comment\n\nname: foo\n---\n")
        assert fm is not None
        assert list(fm.fields) == ["name"]

    def test_metadata_children_are_flattened(self) -> None:
        text = "---\nname: foo\nmetadata:\n  author: team\n  version: 1.2.3\n  category: code\n---\n"
        fm = parse_front_matter(text)
        assert fm is not None
        assert fm.get("metadata") == ""
        assert fm.get("metadata.author") == "team"
        assert fm.get("metadata.version") == "1.2.3"
        assert fm.get("metadata.category") == "code"

    def test_flow_style_metadata_is_flattened(self) -> None:
        fm = parse_front_matter('---\nmetadata: {author: a, version: 1.0.0, category: "code, data"}\n---\n')
        assert fm is not None
        assert fm.get("metadata.author") == "a"
        assert fm.get("metadata.version") == "1.0.0"
        assert fm.get("metadata.category") == '"code, data"'

    def test_deeper_metadata_nesting_is_opaque(self) -> None:
        text = "---\nmetadata:\n  tags:\n    - auth\n    - rbac\n  author: team\n---\n"
        fm = parse_front_matter(text)
        assert fm is not None
        assert fm.get("metadata.tags") == ""
        assert fm.blocks["metadata.tags"] == ["- auth", "- rbac"]
        assert fm.get("metadata.author") == "team"

    def test_other_nesting_is_opaque_text(self) -> None:
        """Indented lines under a non-metadata key are kept verbatim, not flattened."""
        fm = parse_front_matter("---\nhooks:\n  pre: lint\n---\n")
        assert fm is not None
        assert "hooks.pre" not in fm
        assert fm.blocks["hooks"] == ["pre: lint"]

    def test_duplicate_keys_recorded_last_wins(self) -> None:
        fm = parse_front_matter("---\nname: one\nname: two\n---\n")
        assert fm is not None
        assert fm.get("name") == "two"
        assert fm.duplicates == ("name",)


class TestBlockScalars:
    """Block scalar indicators must survive parsing as literal values."""

    def test_literal_indicator_preserved(self) -> None:
        fm = parse_front_matter("---\ndescription: |\n  First line\n  Second line\nname: foo\n---\n")
        assert fm is not None
        assert fm.get("description") == "|"
        assert fm.blocks["description"] == ["First line", "Second line"]
        assert fm.get("name") == "foo"

    def test_folded_indicator_preserved(self) -> None:
        fm = parse_front_matter("---\ndescription: >-\n  folded text\n---\n")
        assert fm is not None
        assert fm.get("description") == ">-"


class TestTokens:
    """Tests for list-valued fields such as allowed-tools."""

    def test_space_delimited(self) -> None:
        fm = parse_front_matter("---\nallowed-tools: Read Grep Glob\n---\n")
        assert fm is not None
        assert fm.tokens("allowed-tools") == ["Read", "Grep", "Glob"]

    def test_inline_list(self) -> None:
        fm = parse_front_matter('---\nallowed-tools: [Read, "Write", Bash(git:*)]\n---\n')
        assert fm is not None
        assert fm.tokens("allowed-tools") == ["Read", "Write", "Bash(git:*)"]

    def test_comma_delimited(self) -> None:
        fm = parse_front_matter("---\nallowed-tools: Read, Edit\n---\n")
        assert fm is not None
        assert fm.tokens("allowed-tools") == ["Read", "Edit"]

    def test_block_list(self) -> None:
        fm = parse_front_matter("---\nallowed-tools:\n  - Read\n  - Edit\n---\n")
        assert fm is not None
        assert fm.tokens("allowed-tools") == ["Read", "Edit"]

    def test_missing_key_has_no_tokens(self) -> None:
        fm = parse_front_matter("---\nname: foo\n---\n")
        assert fm is not None
        assert fm.tokens("allowed-tools") == []
