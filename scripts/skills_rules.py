#!/usr/bin/env python3
"""
Skills Compliance Validation - Rule Set

Independent checks over the repository inventory. Every rule is a pure
function returning a (possibly empty) list of diagnostics; no rule looks at
another rule's output, so results compose by simple concatenation.

Severity policy:
- ERROR: the structural contract is broken (missing file, identity fields
  that disagree with the directory layout, wrong license). Fails the run.
- WARNING: heuristic or stylistic signal (possible credential, possible
  execution steps, description format). Reported, never blocks.

Rules are registered in RULES in the order they are evaluated. Three scopes:
- run: evaluated once per run
- category: evaluated once per category directory
- unit: evaluated once per skill directory
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Literal

import yaml
from skills_config import ValidatorConfig
from skills_inventory import Category, Inventory, RepositoryUnit
from skills_validation_common import (
    ALLOWED_ATTRIBUTION_PHRASE,
    BLOCK_SCALAR_PATTERN,
    CREDENTIAL_PATTERN,
    EXECUTION_EXEMPT_PARTS,
    EXECUTION_STEP_PATTERNS,
    FORBIDDEN_DEPENDENCIES,
    MAX_REPORTED_LOCATIONS,
    MUTATING_TOOLS,
    NAME_PATTERN,
    PLACEHOLDER_MARKERS,
    PRIMARY_DOCUMENT,
    REQUIRED_FIELDS,
    RESERVED_NAME_PREFIX,
    SECURITY_CATEGORY,
    SEMVER_PATTERN,
    Diagnostic,
    Level,
)

Scope = Literal["run", "category", "unit"]


@dataclass(frozen=True)
class RunContext:
    """Read-only inputs shared by every rule of one run."""

    root: Path
    config: ValidatorConfig
    inventory: Inventory


@dataclass(frozen=True)
class Rule:
    id: str
    scope: Scope
    title: str
    check: Callable[..., list[Diagnostic]]


def _diag(
    level: Level,
    check: str,
    unit: str | None,
    message: str,
    file: str | None = None,
    line: int | None = None,
) -> Diagnostic:
    return Diagnostic(level, message, check, unit, file, line)


def _locations(hits: list[tuple[str, int]]) -> str:
    shown = ", ".join(f"{path}:{line}" for path, line in hits[:MAX_REPORTED_LOCATIONS])
    if len(hits) > MAX_REPORTED_LOCATIONS:
        shown += f" (+{len(hits) - MAX_REPORTED_LOCATIONS} more)"
    return shown


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# =============================================================================
# Run Scope
# =============================================================================


def check_rules_directory(ctx: RunContext) -> list[Diagnostic]:
    """The rules directory must exist and hold at least one rule file."""
    rules_dir = ctx.config.rules_dir
    if not ctx.inventory.rules_dir_exists:
        return [_diag("ERROR", "rules-directory", None, f"{rules_dir}/ directory is missing")]
    if not ctx.inventory.rule_files:
        return [_diag("ERROR", "rules-directory", None, f"{rules_dir}/ contains no rule files (*.md)")]
    count = _plural(len(ctx.inventory.rule_files), "rule file")
    return [_diag("OK", "rules-directory", None, f"{rules_dir}/ has {count}")]


def check_rule_files_not_empty(ctx: RunContext) -> list[Diagnostic]:
    return [
        _diag("WARNING", "rules-empty-file", None, f"rule file {path} is empty", path)
        for path, text in ctx.inventory.rule_files
        if not text.strip()
    ]


def check_skills_root(ctx: RunContext) -> list[Diagnostic]:
    skills_root = ctx.config.skills_root
    if not ctx.inventory.skills_root_exists:
        return [_diag("WARNING", "skills-root", None, f"{skills_root}/ directory not found")]
    categories = len(ctx.inventory.categories)
    units = len(ctx.inventory.units)
    return [
        _diag(
            "OK",
            "skills-root",
            None,
            f"{skills_root}/ has {categories} categor{'y' if categories == 1 else 'ies'}, {_plural(units, 'skill')}",
        )
    ]


def check_root_loose_files(ctx: RunContext) -> list[Diagnostic]:
    """Files directly under the skills root are scanned for forbidden dependencies too."""
    return _forbidden_dependency_scan(
        "root-forbidden-dependency", ctx.config.skills_root, list(ctx.inventory.loose_documents)
    )


# =============================================================================
# Category Scope
# =============================================================================


def check_category(category: Category, ctx: RunContext) -> list[Diagnostic]:
    """Category directories should come from the fixed allow-list."""
    if category.name in ctx.config.categories:
        return [_diag("OK", "category", category.path, "valid category")]
    expected = ", ".join(ctx.config.categories)
    return [_diag("WARNING", "category", category.path, f"not a standard category (expected one of: {expected})")]


def check_category_loose_dependencies(category: Category, ctx: RunContext) -> list[Diagnostic]:
    return _forbidden_dependency_scan("category-forbidden-dependency", category.path, list(category.loose_documents))


def check_category_loose_credentials(category: Category, ctx: RunContext) -> list[Diagnostic]:
    """Loose files of the security category get the same credential heuristic as its skills."""
    if category.name != SECURITY_CATEGORY:
        return []
    return _credential_scan("category-credentials", category.path, list(category.loose_documents))


# =============================================================================
# Unit Scope - Structure and Content
# =============================================================================


def check_primary_document(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    if unit.has_primary_document:
        return []
    return [_diag("ERROR", "primary-document", unit.path, f"missing {PRIMARY_DOCUMENT}")]


def check_document_readable(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    if not unit.has_primary_document or unit.read_error is None:
        return []
    return [_diag("ERROR", "document-readable", unit.path, f"{PRIMARY_DOCUMENT}: {unit.read_error}", unit.primary_path)]


def _forbidden_dependency_scan(check: str, unit: str | None, documents: list[tuple[str, str]]) -> list[Diagnostic]:
    """Report lines naming a workflow project; the attribution line is exempt."""
    hits: list[tuple[str, int]] = []
    names: list[str] = []
    for path, text in documents:
        for lineno, line in enumerate(text.splitlines(), start=1):
            if ALLOWED_ATTRIBUTION_PHRASE in line:
                continue
            found = [name for name in FORBIDDEN_DEPENDENCIES if name in line]
            if found:
                hits.append((path, lineno))
                names.extend(n for n in found if n not in names)
    if not hits:
        return []
    file, line = hits[0]
    return [
        _diag(
            "ERROR",
            check,
            unit,
            f"references forbidden dependency {', '.join(sorted(names))} at {_locations(hits)}",
            file,
            line,
        )
    ]


def _has_placeholder_marker(line: str) -> bool:
    return any(marker.search(line) for marker in PLACEHOLDER_MARKERS)


def _credential_scan(check: str, unit: str | None, documents: list[tuple[str, str]]) -> list[Diagnostic]:
    """A long alphanumeric run is ignored when its line also carries a placeholder marker."""
    hits: list[tuple[str, int]] = []
    for path, text in documents:
        for lineno, line in enumerate(text.splitlines(), start=1):
            if CREDENTIAL_PATTERN.search(line) and not _has_placeholder_marker(line):
                hits.append((path, lineno))
    if not hits:
        return []
    file, line = hits[0]
    return [
        _diag(
            "WARNING",
            check,
            unit,
            f"potential credentials found (review manually) at {_locations(hits)}",
            file,
            line,
        )
    ]


def _unit_documents(unit: RepositoryUnit) -> list[tuple[str, str]]:
    return [(f"{unit.path}/{rel_path}", text) for rel_path, text in unit.documents()]


def check_forbidden_dependencies(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Skill documents must not reference the workflow projects."""
    return _forbidden_dependency_scan("forbidden-dependency", unit.path, _unit_documents(unit))


def check_credentials(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Heuristic scan for API keys and tokens. Only the security category is scanned."""
    if unit.category != SECURITY_CATEGORY:
        return []
    return _credential_scan("credentials", unit.path, _unit_documents(unit))


def _is_execution_exempt(rel_path: str) -> bool:
    return any(part in EXECUTION_EXEMPT_PARTS for part in PurePosixPath(rel_path).parts[:-1])


def check_execution_steps(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Knowledge skills describe WHAT, not HOW.

    Step-by-step text outside references/ and examples/ suggests the content
    belongs in a workflow skill instead.
    """
    hits: list[tuple[str, int]] = []
    kinds: list[str] = []
    for rel_path, text in unit.documents():
        if _is_execution_exempt(rel_path):
            continue
        for lineno, line in enumerate(text.splitlines(), start=1):
            for pattern, kind in EXECUTION_STEP_PATTERNS:
                if pattern.search(line):
                    hits.append((f"{unit.path}/{rel_path}", lineno))
                    if kind not in kinds:
                        kinds.append(kind)
                    break
    if not hits:
        return []
    file, line = hits[0]
    return [
        _diag(
            "WARNING",
            "execution-steps",
            unit.path,
            f"possible execution steps ({', '.join(kinds)}) at {_locations(hits)}; move them to a workflow skill",
            file,
            line,
        )
    ]


# =============================================================================
# Unit Scope - Front Matter
# =============================================================================


def check_front_matter_present(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    if unit.raw_content is None or unit.front_matter is not None:
        return []
    return [
        _diag(
            "ERROR",
            "front-matter",
            unit.path,
            f"{PRIMARY_DOCUMENT} has no front matter (missing or unterminated '---' block)",
            unit.primary_path,
            1,
        )
    ]


def check_front_matter_yaml(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Front matter should also load with a strict YAML parser."""
    fm = unit.front_matter
    if fm is None:
        return []
    try:
        data = yaml.safe_load(fm.source)
    except yaml.YAMLError as e:
        problem = getattr(e, "problem", None) or str(e).splitlines()[0]
        mark = getattr(e, "problem_mark", None)
        # +2: 0-based mark, plus the opening delimiter line
        line = mark.line + 2 if mark is not None else None
        return [
            _diag(
                "WARNING",
                "front-matter-yaml",
                unit.path,
                f"front matter is not valid YAML: {problem}",
                unit.primary_path,
                line,
            )
        ]
    if data is not None and not isinstance(data, dict):
        message = "front matter is not a YAML mapping"
        return [_diag("WARNING", "front-matter-yaml", unit.path, message, unit.primary_path)]
    return []


def check_duplicate_keys(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None:
        return []
    return [
        _diag("WARNING", "front-matter-duplicate-key", unit.path, f"front matter key '{key}' appears more than once")
        for key in fm.duplicates
    ]


def check_required_fields(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None:
        return []
    return [
        _diag("ERROR", "required-fields", unit.path, f"missing required field '{key}'", unit.primary_path)
        for key in REQUIRED_FIELDS
        if not fm.text(key) and not fm.blocks.get(key)
    ]


def check_name_matches_directory(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None:
        return []
    name = fm.text("name")
    if not name:
        return [_diag("ERROR", "name-matches-directory", unit.path, "front matter has no 'name'", unit.primary_path)]
    if name != unit.name:
        return [
            _diag(
                "ERROR",
                "name-matches-directory",
                unit.path,
                f"name '{name}' does not match directory '{unit.name}'",
                unit.primary_path,
            )
        ]
    return []


def check_name_format(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Names are lowercase words joined by hyphens."""
    fm = unit.front_matter
    name = fm.text("name") if fm is not None else None
    if not name or NAME_PATTERN.match(name):
        return []
    return [
        _diag(
            "ERROR",
            "name-format",
            unit.path,
            f"name '{name}' must match {NAME_PATTERN.pattern} (lowercase, hyphenated)",
            unit.primary_path,
        )
    ]


def check_reserved_prefix(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    name = fm.text("name") if fm is not None else None
    if not name or not name.startswith(RESERVED_NAME_PREFIX):
        return []
    return [
        _diag(
            "ERROR",
            "reserved-prefix",
            unit.path,
            f"name '{name}' must not start with '{RESERVED_NAME_PREFIX}' (reserved for workflow skills)",
            unit.primary_path,
        )
    ]


def check_category_prefix(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    name = fm.text("name") if fm is not None else None
    prefix = f"{unit.category}-"
    if not name or not name.startswith(prefix):
        return []
    return [
        _diag(
            "ERROR",
            "category-prefix",
            unit.path,
            f"name '{name}' must not carry the category prefix '{prefix}'",
            unit.primary_path,
        )
    ]


def check_category_matches_directory(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None:
        return []
    category = fm.text("metadata.category")
    if not category:
        return [
            _diag(
                "ERROR",
                "category-matches-directory",
                unit.path,
                "front matter has no 'metadata.category'",
                unit.primary_path,
            )
        ]
    if category != unit.category:
        return [
            _diag(
                "ERROR",
                "category-matches-directory",
                unit.path,
                f"metadata.category '{category}' does not match directory '{unit.category}'",
                unit.primary_path,
            )
        ]
    return []


def check_description_present(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None or fm.text("description"):
        return []
    return [_diag("ERROR", "description-present", unit.path, "front matter has no 'description'", unit.primary_path)]


def _is_block_scalar(value: str | None) -> bool:
    if value is None:
        return False
    return BLOCK_SCALAR_PATTERN.fullmatch(value) is not None


def check_description_single_line(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """The description must be one line so every loader reads it the same way."""
    fm = unit.front_matter
    if fm is None:
        return []
    value = fm.get("description")
    if _is_block_scalar(value):
        return [
            _diag(
                "ERROR",
                "description-single-line",
                unit.path,
                f"description uses block scalar indicator '{value}'; write it on a single line",
                unit.primary_path,
            )
        ]
    if value and fm.blocks.get("description"):
        return [
            _diag(
                "ERROR",
                "description-single-line",
                unit.path,
                "description spans multiple lines; write it on a single line",
                unit.primary_path,
            )
        ]
    return []


def check_description_length(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    description = fm.text("description") if fm is not None else None
    limit = ctx.config.description_max_length
    if not description or len(description) <= limit:
        return []
    return [
        _diag(
            "WARNING",
            "description-length",
            unit.path,
            f"description is long ({len(description)} chars, budget {limit})",
            unit.primary_path,
        )
    ]


def check_description_colon(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """An unquoted ': ' inside the description breaks strict YAML parsers."""
    fm = unit.front_matter
    if fm is None:
        return []
    value = fm.get("description")
    if not value or fm.is_quoted("description") or _is_block_scalar(value) or ": " not in value:
        return []
    return [
        _diag(
            "WARNING",
            "description-colon",
            unit.path,
            "description contains ': ' without quoting; wrap it in quotes",
            unit.primary_path,
        )
    ]


def check_version_format(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    version = fm.text("metadata.version") if fm is not None else None
    if not version or SEMVER_PATTERN.match(version):
        return []
    return [
        _diag(
            "WARNING",
            "version-format",
            unit.path,
            f"metadata.version '{version}' is not a semantic version (MAJOR.MINOR.PATCH)",
            unit.primary_path,
        )
    ]


def _tool_base_name(token: str) -> str:
    """'Bash(git:*)' -> 'bash'"""
    return token.split("(", 1)[0].strip().lower()


def check_read_only_tools(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Knowledge skills are read-only by convention."""
    fm = unit.front_matter
    if fm is None:
        return []
    mutating = [t for t in fm.tokens("allowed-tools") if _tool_base_name(t) in MUTATING_TOOLS]
    if not mutating:
        return []
    return [
        _diag(
            "WARNING",
            "read-only-tools",
            unit.path,
            f"allowed-tools includes mutating tool(s) {', '.join(mutating)}; knowledge skills should be read-only",
            unit.primary_path,
        )
    ]


def check_license(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    fm = unit.front_matter
    if fm is None:
        return []
    expected = ctx.config.license
    license_value = fm.text("license")
    if not license_value:
        message = f"front matter has no 'license' (expected '{expected}')"
        return [_diag("ERROR", "license", unit.path, message, unit.primary_path)]
    if license_value != expected:
        return [
            _diag(
                "ERROR",
                "license",
                unit.path,
                f"license '{license_value}' must be '{expected}'",
                unit.primary_path,
            )
        ]
    return []


# =============================================================================
# Registry
# =============================================================================

RULES: list[Rule] = [
    Rule("rules-directory", "run", "Rules directory present", check_rules_directory),
    Rule("rules-empty-file", "run", "Rule files not empty", check_rule_files_not_empty),
    Rule("skills-root", "run", "Skills directory present", check_skills_root),
    Rule("root-forbidden-dependency", "run", "No forbidden dependencies in loose files", check_root_loose_files),
    Rule("category", "category", "Category is standard", check_category),
    Rule(
        "category-forbidden-dependency",
        "category",
        "No forbidden dependencies in loose files",
        check_category_loose_dependencies,
    ),
    Rule(
        "category-credentials",
        "category",
        "No credential-looking strings in loose files",
        check_category_loose_credentials,
    ),
    Rule("primary-document", "unit", "SKILL.md present", check_primary_document),
    Rule("document-readable", "unit", "SKILL.md is UTF-8", check_document_readable),
    Rule("forbidden-dependency", "unit", "No forbidden dependencies", check_forbidden_dependencies),
    Rule("credentials", "unit", "No credential-looking strings", check_credentials),
    Rule("execution-steps", "unit", "No execution steps", check_execution_steps),
    Rule("front-matter", "unit", "Front matter present", check_front_matter_present),
    Rule("front-matter-yaml", "unit", "Front matter is valid YAML", check_front_matter_yaml),
    Rule("front-matter-duplicate-key", "unit", "No duplicate front matter keys", check_duplicate_keys),
    Rule("required-fields", "unit", "Required fields present", check_required_fields),
    Rule("name-matches-directory", "unit", "Name matches directory", check_name_matches_directory),
    Rule("name-format", "unit", "Name is lowercase and hyphenated", check_name_format),
    Rule("reserved-prefix", "unit", "Name has no reserved prefix", check_reserved_prefix),
    Rule("category-prefix", "unit", "Name has no category prefix", check_category_prefix),
    Rule("category-matches-directory", "unit", "Category matches directory", check_category_matches_directory),
    Rule("description-present", "unit", "Description present", check_description_present),
    Rule("description-single-line", "unit", "Description is single-line", check_description_single_line),
    Rule("description-length", "unit", "Description within length budget", check_description_length),
    Rule("description-colon", "unit", "Description is YAML-safe", check_description_colon),
    Rule("version-format", "unit", "Version is semantic", check_version_format),
    Rule("read-only-tools", "unit", "Allowed tools are read-only", check_read_only_tools),
    Rule("license", "unit", "License literal", check_license),
]


def rules_for(scope: Scope) -> list[Rule]:
    """Registered rules of one scope, in evaluation order."""
    return [rule for rule in RULES if rule.scope == scope]


def evaluate_run(ctx: RunContext) -> list[Diagnostic]:
    results: list[Diagnostic] = []
    for rule in rules_for("run"):
        results.extend(rule.check(ctx))
    return results


def evaluate_category(category: Category, ctx: RunContext) -> list[Diagnostic]:
    results: list[Diagnostic] = []
    for rule in rules_for("category"):
        results.extend(rule.check(category, ctx))
    return results


def evaluate_unit(unit: RepositoryUnit, ctx: RunContext) -> list[Diagnostic]:
    """Run every unit rule in registry order.

    A unit with no findings gets a single OK record.
    """
    results: list[Diagnostic] = []
    for rule in rules_for("unit"):
        results.extend(rule.check(unit, ctx))
    if not results:
        results.append(_diag("OK", "unit", unit.path, "all checks passed"))
    return results
