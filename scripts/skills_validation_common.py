#!/usr/bin/env python3
"""
Skills Compliance Validation - Common Module

Shared validation infrastructure for the skills repository validator.
This module contains:
- Type definitions (Level, Diagnostic, ValidationRun)
- Common constants (categories, file names, forbidden dependencies)
- Utility functions (colour formatting, exit codes)

All other validator modules import from this module to ensure consistency.
"""

from __future__ import annotations

import fnmatch
import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

# Diagnostic severity levels
# - ERROR: structural contract broken, fails the run (exit code 1)
# - WARNING: heuristic or stylistic signal, always reported, never blocks
# - INFO: informational only, shown in verbose mode
# - OK: check passed, shown in verbose mode
Level = Literal["ERROR", "WARNING", "INFO", "OK"]

LEVELS: tuple[Level, ...] = ("ERROR", "WARNING", "INFO", "OK")

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No ERROR diagnostics (WARNING/INFO/OK only)
EXIT_ERRORS = 1  # At least one ERROR diagnostic
EXIT_SETUP = 2  # Root missing or config unusable, no units were checked

# =============================================================================
# Repository Layout
# =============================================================================

SKILLS_ROOT = "skills"
RULES_DIR = ".claude/rules"
PRIMARY_DOCUMENT = "SKILL.md"
CONFIG_FILENAME = ".skills-validator.yaml"

# Standard skill categories (first-level directories under skills/)
VALID_CATEGORIES = ("security", "quality", "code", "delivery", "operations", "meta", "data")

# Category whose documents are scanned for credential-looking strings
SECURITY_CATEGORY = "security"

# Path components whose documents may legitimately contain step-by-step text
EXECUTION_EXEMPT_PARTS = {"references", "examples"}

# =============================================================================
# Content Policy
# =============================================================================

EXPECTED_LICENSE = "Apache-2.0"

# Knowledge skills describe WHAT; workflows live in a separate project
FORBIDDEN_DEPENDENCIES = ("ccsetup", "x-workflows")

# The one attribution line allowed to name a forbidden project
ALLOWED_ATTRIBUTION_PHRASE = "Originally extracted from ccsetup"

# Workflow skills own the x- namespace
RESERVED_NAME_PREFIX = "x-"

# Skill name format enforced when scaffolding a new skill
NAME_PATTERN = re.compile(r"^[a-z][-a-z]*$")

# Semantic version pattern for metadata.version
SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?(\+[a-zA-Z0-9.]+)?$")

# Soft limit on description length (characters)
MAX_DESCRIPTION_CHARS = 1024

# Tools that modify files; knowledge skills are read-only by convention
MUTATING_TOOLS = {"write", "edit", "multiedit", "notebookedit"}

# Front matter fields every skill must declare (beyond name/description/license/category)
REQUIRED_FIELDS = ("compatibility", "allowed-tools", "metadata.author", "metadata.version")

# YAML block scalar indicators (|, >, |-, >+, |2 ...): a description using one spans lines
BLOCK_SCALAR_PATTERN = re.compile(r"[|>][-+]?[0-9]?[-+]?")

# Long alphanumeric runs that may be API keys or tokens
CREDENTIAL_PATTERN = re.compile(r"[A-Za-z0-9]{32,}")

# A line containing any of these is documentation, not a leaked secret
PLACEHOLDER_MARKERS = [
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"<[^<>]+>"),
    re.compile(r"\$\{"),
    re.compile(r"your-", re.IGNORECASE),
]

# Step-by-step patterns that indicate execution logic (HOW, not WHAT)
EXECUTION_STEP_PATTERNS = [
    (re.compile(r"\bStep [0-9]"), "Step N"),
    (re.compile(r"\bPhase [0-9]"), "Phase N"),
    (re.compile(r"\bFirst,.*\bThen,"), "First, ... Then,"),
    (re.compile(r"^\s*[0-9]+\.\s"), "numbered list"),
]

# Maximum number of locations quoted in a single content-scan diagnostic
MAX_REPORTED_LOCATIONS = 5

# Directories never descended into while walking a skill
SKIP_DIRS = {
    ".git",
    "__pycache__",
    ".venv",
    "node_modules",
    ".pytest_cache",
    ".ruff_cache",
    ".mypy_cache",
}

# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Diagnostic:
    """Single rule outcome.

    Attributes:
        level: Severity level (ERROR, WARNING, INFO, OK)
        message: Human-readable description of the result
        check: Identifier of the rule that produced it
        unit: Display path of the skill or category, None for run-level checks
        file: Optional file path related to the result
        line: Optional line number in the file
    """

    level: Level
    message: str
    check: str
    unit: str | None = None
    file: str | None = None
    line: int | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str | int | None] = {"level": self.level, "check": self.check, "message": self.message}
        if self.unit is not None:
            result["unit"] = self.unit
        if self.file is not None:
            result["file"] = self.file
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass(frozen=True)
class Suppression:
    """Accepted exception for one check on the units matching a pattern.

    Attributes:
        check: Rule identifier to suppress
        unit: fnmatch pattern on the unit display path (e.g. ``skills/meta/*``)
        reason: Why the exception is accepted (shown in the output)
    """

    check: str
    unit: str
    reason: str

    def matches(self, diagnostic: Diagnostic) -> bool:
        return diagnostic.check == self.check and fnmatch.fnmatchcase(diagnostic.unit or "", self.unit)


# Callback invoked for every diagnostic as it is recorded
Listener = Callable[[Diagnostic], None]


@dataclass
class ValidationRun:
    """Diagnostics accumulated over one validation run.

    Results are kept in the order they were added, which is the walk order
    of the repository. Nothing is deduplicated: two rules firing on the same
    unit produce two results.

    Supports:
    - Streaming, through an optional listener called on every add()
    - Suppressions, which downgrade matching ERROR/WARNING results to INFO
    - JSON serialization of the whole run
    """

    results: list[Diagnostic] = field(default_factory=list)
    listener: Listener | None = None
    suppressions: list[Suppression] = field(default_factory=list)
    used_suppressions: set[Suppression] = field(default_factory=set)

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        """Record a diagnostic, applying suppressions, and notify the listener."""
        if diagnostic.level in ("ERROR", "WARNING"):
            for suppression in self.suppressions:
                if suppression.matches(diagnostic):
                    self.used_suppressions.add(suppression)
                    diagnostic = Diagnostic(
                        "INFO",
                        f"suppressed ({suppression.reason}): {diagnostic.level} {diagnostic.message}",
                        diagnostic.check,
                        diagnostic.unit,
                        diagnostic.file,
                        diagnostic.line,
                    )
                    break
        self.results.append(diagnostic)
        if self.listener is not None:
            self.listener(diagnostic)
        return diagnostic

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        """Record several diagnostics in order."""
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def unused_suppressions(self) -> list[Suppression]:
        """Suppressions that have not matched any diagnostic so far."""
        return [s for s in self.suppressions if s not in self.used_suppressions]

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {level: 0 for level in LEVELS}
        for r in self.results:
            counts[r.level] += 1
        return counts

    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if r.level == "ERROR")

    @property
    def warnings(self) -> int:
        return sum(1 for r in self.results if r.level == "WARNING")

    @property
    def exit_code(self) -> int:
        """0 if no ERROR was recorded, else 1. WARNING never blocks."""
        return EXIT_ERRORS if self.errors else EXIT_OK

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        counts = self.count_by_level()
        return {
            "exit_code": self.exit_code,
            "passed": self.exit_code == EXIT_OK,
            "counts": {level.lower(): counts[level] for level in LEVELS},
            "results": [r.to_dict() for r in self.results],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert run to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "ERROR": "\033[0;31m",  # Red
    "WARNING": "\033[0;33m",  # Yellow
    "INFO": "\033[90m",  # Gray
    "OK": "\033[0;32m",  # Green
    "RESET": "\033[0m",  # Reset
    "BOLD": "\033[1m",  # Bold
}


def colorize(text: str, level: str, enabled: bool = True) -> str:
    """Apply color to text based on level."""
    if not enabled:
        return text
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def format_diagnostic(diagnostic: Diagnostic, color: bool = True) -> str:
    """Format a single diagnostic for terminal output.

    Example: ``ERROR: skills/code/api-design: name 'api' does not match directory``
    """
    tag = colorize(f"{diagnostic.level}:", diagnostic.level, color)
    parts = [tag, " "]
    if diagnostic.unit:
        parts.append(f"{diagnostic.unit}: ")
    parts.append(diagnostic.message)
    if diagnostic.file and diagnostic.line:
        parts.append(f" ({diagnostic.file}:{diagnostic.line})")
    return "".join(parts)
