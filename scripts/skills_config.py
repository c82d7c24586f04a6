#!/usr/bin/env python3
"""
Skills Compliance Validation - Configuration

Loads the optional ``.skills-validator.yaml`` file at the repository root.
Every key is optional; a missing file means the built-in defaults.

    version: 1
    license: Apache-2.0
    categories: [security, quality, code, delivery, operations, meta, data]
    skills_root: skills
    rules_dir: .claude/rules
    description_max_length: 1024
    suppressions:
      - check: execution-steps
        unit: skills/meta/skill-authoring
        reason: documents the authoring checklist on purpose

Suppressions are the only way to accept an exception for a unit; they are
applied by the run aggregator, never inside individual rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from skills_validation_common import (
    CONFIG_FILENAME,
    EXPECTED_LICENSE,
    MAX_DESCRIPTION_CHARS,
    RULES_DIR,
    SKILLS_ROOT,
    VALID_CATEGORIES,
    Suppression,
)

SUPPORTED_CONFIG_VERSIONS = {1}

KNOWN_CONFIG_KEYS = {
    "version",
    "license",
    "categories",
    "skills_root",
    "rules_dir",
    "description_max_length",
    "suppressions",
}


class ConfigError(Exception):
    """The configuration file exists but cannot be used."""


@dataclass(frozen=True)
class ValidatorConfig:
    """Settings for one validation run."""

    license: str = EXPECTED_LICENSE
    categories: tuple[str, ...] = VALID_CATEGORIES
    skills_root: str = SKILLS_ROOT
    rules_dir: str = RULES_DIR
    description_max_length: int = MAX_DESCRIPTION_CHARS
    suppressions: tuple[Suppression, ...] = ()
    source: str | None = None  # path of the file the settings came from


def _require_str(data: dict[str, Any], key: str, where: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{where}: '{key}' must be a non-empty string")
    return value.strip()


def _relative_dir(data: dict[str, Any], key: str, where: str) -> str:
    value = _require_str(data, key, where)
    if Path(value).is_absolute() or ".." in Path(value).parts:
        raise ConfigError(f"{where}: '{key}' must be a path inside the repository, got {value!r}")
    return value


def _parse_suppressions(raw: Any, where: str) -> tuple[Suppression, ...]:
    if not isinstance(raw, list):
        raise ConfigError(f"{where}: 'suppressions' must be a list")
    suppressions: list[Suppression] = []
    for i, entry in enumerate(raw):
        entry_where = f"{where}: suppressions[{i}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{entry_where} must be a mapping with check, unit and reason")
        for key in ("check", "unit", "reason"):
            if key not in entry:
                raise ConfigError(f"{entry_where} is missing '{key}'")
        suppressions.append(
            Suppression(
                check=_require_str(entry, "check", entry_where),
                unit=_require_str(entry, "unit", entry_where),
                reason=_require_str(entry, "reason", entry_where),
            )
        )
    return tuple(suppressions)


def parse_config(data: Any, where: str = CONFIG_FILENAME) -> ValidatorConfig:
    """Build a ValidatorConfig from the decoded YAML document.

    Raises:
        ConfigError: on unknown keys, wrong types or an unsupported version
    """
    if data is None:
        return ValidatorConfig(source=where)
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: top level must be a mapping")

    non_str = [key for key in data if not isinstance(key, str)]
    if non_str:
        raise ConfigError(f"{where}: keys must be strings, got {', '.join(repr(k) for k in non_str)}")
    unknown = sorted(set(data) - KNOWN_CONFIG_KEYS)
    if unknown:
        raise ConfigError(f"{where}: unknown key(s): {', '.join(unknown)}")

    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int) or version not in SUPPORTED_CONFIG_VERSIONS:
        raise ConfigError(f"{where}: unsupported version {version!r} (supported: 1)")

    kwargs: dict[str, Any] = {"source": where}
    if "license" in data:
        kwargs["license"] = _require_str(data, "license", where)
    if "categories" in data:
        categories = data["categories"]
        if not isinstance(categories, list) or not all(isinstance(c, str) and c for c in categories):
            raise ConfigError(f"{where}: 'categories' must be a list of names")
        kwargs["categories"] = tuple(categories)
    if "skills_root" in data:
        kwargs["skills_root"] = _relative_dir(data, "skills_root", where)
    if "rules_dir" in data:
        kwargs["rules_dir"] = _relative_dir(data, "rules_dir", where)
    if "description_max_length" in data:
        limit = data["description_max_length"]
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ConfigError(f"{where}: 'description_max_length' must be a positive integer")
        kwargs["description_max_length"] = limit
    if "suppressions" in data:
        kwargs["suppressions"] = _parse_suppressions(data["suppressions"], where)

    return ValidatorConfig(**kwargs)


def load_config(root: Path, config_path: Path | None = None) -> ValidatorConfig:
    """Load the configuration for a repository.

    Args:
        root: Repository root
        config_path: Explicit config file; must exist when given

    Returns:
        ValidatorConfig (defaults when no file is present)

    Raises:
        ConfigError: if the file cannot be read or is invalid
    """
    if config_path is None:
        config_path = root / CONFIG_FILENAME
        if not config_path.is_file():
            return ValidatorConfig()
    elif not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read {config_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_path}: {e}") from e

    return parse_config(data, str(config_path))
