#!/usr/bin/env python3
"""
Skills Compliance Validation - Repository Validator

Walks a skills repository and checks structural, naming, dependency and
content-policy rules for every skill under skills/<category>/<skill>/.
Diagnostics are printed as they are produced, followed by a summary.

Usage:
    uv run python scripts/validate_skills.py
    uv run python scripts/validate_skills.py path/to/repo --verbose
    uv run python scripts/validate_skills.py path/to/repo --json

Environment:
    NO_COLOR    Disable ANSI colours (also disabled when stdout is not a TTY)

Exit codes:
    0 - No ERROR diagnostics (warnings may be present)
    1 - At least one ERROR diagnostic
    2 - Setup failure (repository root missing, invalid config file)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Callable
from pathlib import Path

from skills_config import ConfigError, ValidatorConfig, load_config
from skills_inventory import walk_repository
from skills_rules import RunContext, evaluate_category, evaluate_run, evaluate_unit, rules_for
from skills_validation_common import (
    COLORS,
    EXIT_OK,
    EXIT_SETUP,
    Diagnostic,
    ValidationRun,
    colorize,
    format_diagnostic,
)

BANNER_WIDTH = 42

# Levels printed without --verbose
ALWAYS_SHOWN = {"ERROR", "WARNING"}

# Run and category checks also confirm success without --verbose
CONFIRMED_CHECKS = {rule.id for rule in rules_for("run") + rules_for("category")}


# =============================================================================
# Validation
# =============================================================================


def validate_repository(
    root: Path,
    config: ValidatorConfig | None = None,
    run: ValidationRun | None = None,
    announce: Callable[[str], None] | None = None,
) -> ValidationRun:
    """Validate every rule of the repository at root.

    Args:
        root: Repository root (must exist)
        config: Settings; defaults when None
        run: Optional existing run to record into (its listener streams output)
        announce: Optional callback told which section is being checked

    Returns:
        ValidationRun with all diagnostics in (category, skill) order
    """
    if config is None:
        config = ValidatorConfig()
    if run is None:
        run = ValidationRun()
    if not run.suppressions:
        run.suppressions = list(config.suppressions)

    inventory = walk_repository(root, config.skills_root, config.rules_dir, config.categories)
    ctx = RunContext(root=root, config=config, inventory=inventory)

    if announce:
        announce("repository layout")
    run.extend(evaluate_run(ctx))

    for category in inventory.categories:
        if announce:
            announce(category.path)
        run.extend(evaluate_category(category, ctx))
        for unit in category.units:
            run.extend(evaluate_unit(unit, ctx))

    for suppression in run.unused_suppressions():
        run.add(
            Diagnostic(
                "INFO",
                f"suppression for '{suppression.check}' on '{suppression.unit}' matched nothing",
                "suppressions",
            )
        )

    return run


# =============================================================================
# Output Functions
# =============================================================================


def use_color(disabled: bool = False) -> bool:
    """Colour only on an interactive terminal, unless NO_COLOR is set."""
    if disabled or os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def print_banner(title: str, color: bool) -> None:
    print("=" * BANNER_WIDTH)
    print(f"{COLORS['BOLD']}{title}{COLORS['RESET']}" if color else title)
    print("=" * BANNER_WIDTH)


def make_printer(verbose: bool, color: bool) -> Callable[[Diagnostic], None]:
    """Listener that prints each diagnostic as it is recorded."""

    def _print(diagnostic: Diagnostic) -> None:
        confirmed = diagnostic.level == "OK" and diagnostic.check in CONFIRMED_CHECKS
        if diagnostic.level in ALWAYS_SHOWN or confirmed or verbose:
            print(format_diagnostic(diagnostic, color))

    return _print


def print_summary(run: ValidationRun, color: bool) -> None:
    """Print the error/warning counts and the final pass/fail line."""
    print("")
    print_banner("Validation Summary", color)
    print(f"Errors:   {colorize(str(run.errors), 'ERROR', color)}")
    print(f"Warnings: {colorize(str(run.warnings), 'WARNING', color)}")
    print("")
    if run.exit_code == EXIT_OK:
        print(colorize("Validation PASSED", "OK", color))
    else:
        print(colorize("Validation FAILED", "ERROR", color))


def print_json(run: ValidationRun, root: Path) -> None:
    """Print validation results as JSON."""
    output = {"root": str(root), **run.to_dict()}
    print(json.dumps(output, indent=2))


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate a skills repository (structure, front matter, content)")
    parser.add_argument("root", nargs="?", default=".", help="Repository root (default: current directory)")
    parser.add_argument("--config", help="Config file (default: <root>/.skills-validator.yaml if present)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Also show per-skill OK and INFO results")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colours")
    args = parser.parse_args(argv)

    root = Path(args.root).resolve()
    if not root.exists():
        print(f"Error: {root} does not exist", file=sys.stderr)
        return EXIT_SETUP
    if not root.is_dir():
        print(f"Error: {root} is not a directory", file=sys.stderr)
        return EXIT_SETUP

    try:
        config = load_config(root, Path(args.config) if args.config else None)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SETUP

    if args.json:
        run = validate_repository(root, config)
        print_json(run, root)
        return run.exit_code

    color = use_color(args.no_color)
    run = ValidationRun(listener=make_printer(args.verbose, color))

    def announce(section: str) -> None:
        print("")
        print(f"Checking {section}...")

    print_banner("Skills Repository Validation", color)
    validate_repository(root, config, run, announce)
    print_summary(run, color)

    return run.exit_code


if __name__ == "__main__":
    sys.exit(main())
