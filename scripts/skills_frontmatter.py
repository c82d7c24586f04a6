#!/usr/bin/env python3
"""
Skills Compliance Validation - Front Matter Parser

Extracts the delimited metadata block at the head of a SKILL.md and exposes
it as a flat key/value mapping. Keys nested under ``metadata:`` are flattened
to ``metadata.<key>``, from either an indented block or a one-line
``{key: value, ...}`` mapping; any other nesting is kept as opaque text lines.

Values are kept as written (trimmed, quotes preserved). In particular a block
scalar indicator such as ``description: |`` is stored as the literal value
``|`` so the rule set can reject multi-line descriptions.

An unterminated block is reported as "no front matter" rather than raising,
so one broken document never stops the rest of the corpus from being checked.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DELIMITER = "---"

# key: value / key: (block opener)
KEY_LINE_PATTERN = re.compile(r"^([A-Za-z0-9_][A-Za-z0-9_.-]*)\s*:(?:\s+(.*))?$")

# Top-level key whose children are flattened instead of kept opaque
NESTED_MAPPING_KEY = "metadata"


@dataclass(frozen=True)
class FrontMatter:
    """Parsed front matter of one document.

    Attributes:
        fields: key -> trimmed raw value, in document order
        blocks: key -> continuation lines for keys with nested/opaque content
        duplicates: keys that appeared more than once (the last value wins)
        source: raw text between the two delimiter lines
    """

    fields: dict[str, str] = field(default_factory=dict)
    blocks: dict[str, list[str]] = field(default_factory=dict)
    duplicates: tuple[str, ...] = ()
    source: str = ""

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.fields.get(key, default)

    def is_quoted(self, key: str) -> bool:
        """True if the raw value is wrapped in one pair of matching quotes."""
        value = self.fields.get(key, "")
        return len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"')

    def text(self, key: str) -> str | None:
        """Value with surrounding quotes removed, or None if the key is absent."""
        value = self.fields.get(key)
        if value is None:
            return None
        if self.is_quoted(key):
            return value[1:-1]
        return value

    def tokens(self, key: str) -> list[str]:
        """Split a list-valued field into tokens.

        Accepts inline lists (``[Read, Grep]``), space or comma separated
        values (``Read Grep``) and block lists (``- Read`` lines).
        """
        value = self.text(key) or ""
        if value.startswith("[") and value.endswith("]"):
            raw = value[1:-1].split(",")
        elif value:
            raw = re.split(r"[,\s]+", value)
        else:
            raw = [line[1:] if line.startswith("-") else line for line in self.blocks.get(key, [])]
        return [t.strip().strip("'\"") for t in raw if t.strip().strip("'\"")]


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _split_flow_items(inner: str) -> list[str]:
    """Split the body of a ``{a: 1, b: 2}`` mapping on commas outside quotes."""
    items: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in inner:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == ",":
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    items.append("".join(current))
    return [item.strip() for item in items if item.strip()]


def find_front_matter_block(text: str) -> tuple[list[str], int] | None:
    """Locate the front matter lines.

    Returns:
        (lines between the delimiters, index of the closing delimiter line),
        or None if the document has no terminated block at its very start.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != DELIMITER:
        return None
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == DELIMITER:
            return lines[1:idx], idx
    return None


def parse_front_matter(text: str) -> FrontMatter | None:
    """Parse the front matter of a document.

    Args:
        text: Full document text

    Returns:
        FrontMatter, or None if there is no opening delimiter on the first
        line or the block is never closed.
    """
    located = find_front_matter_block(text)
    if located is None:
        return None
    lines, _end = located

    fields: dict[str, str] = {}
    blocks: dict[str, list[str]] = {}
    duplicates: list[str] = []

    def set_field(key: str, value: str) -> None:
        if key in fields and key not in duplicates:
            duplicates.append(key)
        fields[key] = value

    top_key: str | None = None  # last top-level key seen
    block_key: str | None = None  # key receiving opaque continuation lines
    child_indent: int | None = None  # indentation of metadata children

    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        indent = _indent(line)
        match = KEY_LINE_PATTERN.match(stripped)

        if indent == 0 and match:
            key, value = match.group(1), (match.group(2) or "").strip()
            set_field(key, value)
            top_key = key
            block_key = key
            child_indent = None
            if key == NESTED_MAPPING_KEY and value.startswith("{") and value.endswith("}"):
                for item in _split_flow_items(value[1:-1]):
                    child = KEY_LINE_PATTERN.match(item)
                    if child:
                        set_field(f"{NESTED_MAPPING_KEY}.{child.group(1)}", (child.group(2) or "").strip())
            continue

        if indent > 0 and top_key == NESTED_MAPPING_KEY and match:
            if child_indent is None:
                child_indent = indent
            if indent == child_indent:
                key = f"{NESTED_MAPPING_KEY}.{match.group(1)}"
                set_field(key, (match.group(2) or "").strip())
                block_key = key
                continue

        if block_key is not None:
            blocks.setdefault(block_key, []).append(stripped)

    source = "\n".join(lines)
    return FrontMatter(fields=fields, blocks=blocks, duplicates=tuple(duplicates), source=source)
