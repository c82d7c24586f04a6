#!/usr/bin/env python3
"""
Skills Compliance Validation - Repository Walker

Builds the structural inventory of a skills repository:

    <root>/.claude/rules/*.md            rule documents (count checked only)
    <root>/skills/<file>                 loose file (content scans only)
    <root>/skills/<category>/<file>      loose file (content scans only)
    <root>/skills/<category>/<skill>/    one skill unit per directory
        SKILL.md                         primary document (front matter + body)
        references/, examples/, ...      supporting documents

Categories and skills are listed in lexicographic order so that output and
exit codes are reproducible across runs and platforms. Every file is read in
full and closed before the next one is opened.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from skills_frontmatter import FrontMatter, parse_front_matter
from skills_validation_common import (
    PRIMARY_DOCUMENT,
    RULES_DIR,
    SKILLS_ROOT,
    SKIP_DIRS,
    VALID_CATEGORIES,
)

# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SupportingDocument:
    """A text file inside a skill directory other than the primary document."""

    rel_path: str  # relative to the skill directory, POSIX separators
    text: str


@dataclass(frozen=True)
class RepositoryUnit:
    """One skill directory, built once per run and never modified."""

    category: str
    name: str
    path: str  # display path relative to the repository root
    is_standard_category: bool
    has_primary_document: bool
    raw_content: str | None = None
    read_error: str | None = None
    front_matter: FrontMatter | None = None
    supporting_documents: tuple[SupportingDocument, ...] = ()

    @property
    def category_label(self) -> str:
        return self.category if self.is_standard_category else "non-standard"

    @property
    def primary_path(self) -> str:
        return f"{self.path}/{PRIMARY_DOCUMENT}"

    def documents(self) -> list[tuple[str, str]]:
        """All readable documents of the unit as (path relative to the skill, text) pairs."""
        docs: list[tuple[str, str]] = []
        if self.raw_content is not None:
            docs.append((PRIMARY_DOCUMENT, self.raw_content))
        for doc in self.supporting_documents:
            docs.append((doc.rel_path, doc.text))
        return docs


@dataclass(frozen=True)
class Category:
    name: str
    path: str
    units: tuple[RepositoryUnit, ...] = ()
    loose_documents: tuple[tuple[str, str], ...] = ()  # (display path, text) of files beside the skills


@dataclass(frozen=True)
class Inventory:
    """Everything the rule set needs to know about the repository layout."""

    root: Path
    skills_root_exists: bool
    rules_dir_exists: bool
    rule_files: tuple[tuple[str, str], ...] = ()  # (display path, text)
    categories: tuple[Category, ...] = ()
    loose_documents: tuple[tuple[str, str], ...] = ()  # files directly under the skills root

    @property
    def units(self) -> list[RepositoryUnit]:
        return [unit for category in self.categories for unit in category.units]


# =============================================================================
# Walking
# =============================================================================


def _visible_dirs(path: Path) -> list[Path]:
    """Sorted non-hidden subdirectories of path."""
    return sorted(
        (p for p in path.iterdir() if p.is_dir() and not p.name.startswith(".") and p.name not in SKIP_DIRS),
        key=lambda p: p.name,
    )


def read_text_file(path: Path) -> tuple[str | None, str | None]:
    """Read a UTF-8 text file.

    Returns:
        (text, None) on success, (None, error message) otherwise
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        return None, f"cannot read file: {e.strerror or e}"
    try:
        return raw.decode("utf-8"), None
    except UnicodeDecodeError:
        return None, "file is not valid UTF-8"


def _collect_supporting_documents(skill_dir: Path) -> tuple[SupportingDocument, ...]:
    """Read every text file below skill_dir except the primary document."""
    docs: list[SupportingDocument] = []
    for path in sorted(skill_dir.rglob("*")):
        rel = path.relative_to(skill_dir)
        if any(part.startswith(".") or part in SKIP_DIRS for part in rel.parts):
            continue
        if not path.is_file() or rel.as_posix() == PRIMARY_DOCUMENT:
            continue
        text, error = read_text_file(path)
        if error is not None:
            # Binary assets (images, archives) are not content
            continue
        docs.append(SupportingDocument(rel.as_posix(), text or ""))
    return tuple(docs)


def _collect_loose_documents(directory: Path, root: Path) -> tuple[tuple[str, str], ...]:
    """Text files directly inside directory, which hold no skill of their own."""
    docs: list[tuple[str, str]] = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if path.name.startswith(".") or not path.is_file():
            continue
        text, error = read_text_file(path)
        if error is None:
            docs.append((path.relative_to(root).as_posix(), text or ""))
    return tuple(docs)


def build_unit(skill_dir: Path, category: str, root: Path, valid_categories: tuple[str, ...]) -> RepositoryUnit:
    """Build the inventory entry for one skill directory."""
    display = skill_dir.relative_to(root).as_posix()
    # Compare against the listing so SKILL.md matching is case-sensitive everywhere
    has_primary = PRIMARY_DOCUMENT in {p.name for p in skill_dir.iterdir() if p.is_file()}

    raw_content: str | None = None
    read_error: str | None = None
    front_matter: FrontMatter | None = None
    if has_primary:
        raw_content, read_error = read_text_file(skill_dir / PRIMARY_DOCUMENT)
        if raw_content is not None:
            front_matter = parse_front_matter(raw_content)

    return RepositoryUnit(
        category=category,
        name=skill_dir.name,
        path=display,
        is_standard_category=category in valid_categories,
        has_primary_document=has_primary,
        raw_content=raw_content,
        read_error=read_error,
        front_matter=front_matter,
        supporting_documents=_collect_supporting_documents(skill_dir),
    )


def _collect_rule_files(rules_dir: Path, root: Path) -> tuple[tuple[str, str], ...]:
    files: list[tuple[str, str]] = []
    for path in sorted(rules_dir.rglob("*.md")):
        if not path.is_file():
            continue
        text, _error = read_text_file(path)
        files.append((path.relative_to(root).as_posix(), text or ""))
    return tuple(files)


def walk_repository(
    root: Path,
    skills_root: str = SKILLS_ROOT,
    rules_dir: str = RULES_DIR,
    valid_categories: tuple[str, ...] = VALID_CATEGORIES,
) -> Inventory:
    """Enumerate rule files, categories and skill units beneath root.

    Args:
        root: Repository root (must exist)
        skills_root: Skills directory relative to root
        rules_dir: Rules directory relative to root
        valid_categories: Category allow-list

    Returns:
        Inventory in lexicographic (category, skill) order
    """
    skills_path = root / skills_root
    rules_path = root / rules_dir

    rule_files: tuple[tuple[str, str], ...] = ()
    if rules_path.is_dir():
        rule_files = _collect_rule_files(rules_path, root)

    loose_documents: tuple[tuple[str, str], ...] = ()
    categories: list[Category] = []
    if skills_path.is_dir():
        loose_documents = _collect_loose_documents(skills_path, root)
        for category_dir in _visible_dirs(skills_path):
            units = tuple(
                build_unit(skill_dir, category_dir.name, root, valid_categories)
                for skill_dir in _visible_dirs(category_dir)
            )
            categories.append(
                Category(
                    category_dir.name,
                    category_dir.relative_to(root).as_posix(),
                    units,
                    _collect_loose_documents(category_dir, root),
                )
            )

    return Inventory(
        root=root,
        skills_root_exists=skills_path.is_dir(),
        rules_dir_exists=rules_path.is_dir(),
        rule_files=rule_files,
        categories=tuple(categories),
        loose_documents=loose_documents,
    )
