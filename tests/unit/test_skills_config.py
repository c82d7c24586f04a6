#!/usr/bin/env python3
"""Tests for skills_config.py - optional YAML configuration and suppressions."""

from pathlib import Path

import pytest
from skills_config import ConfigError, ValidatorConfig, load_config, parse_config
from skills_validation_common import Diagnostic, Suppression, ValidationRun


class TestLoadConfig:
    def test_defaults_when_file_absent(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config == ValidatorConfig()
        assert config.license == "Apache-2.0"
        assert "security" in config.categories

    def test_empty_file_means_defaults(self, tmp_path: Path) -> None:
        (tmp_path / ".skills-validator.yaml").write_text("")
        config = load_config(tmp_path)
        assert config.suppressions == ()
        assert config.source is not None

    def test_full_file(self, tmp_path: Path) -> None:
        (tmp_path / ".skills-validator.yaml").write_text(
            "version: 1\n"
            "license: MIT\n"
            "categories: [code, docs]\n"
            "skills_root: knowledge\n"
            "rules_dir: docs/rules\n"
            "description_max_length: 200\n"
            "suppressions:\n"
            "  - check: execution-steps\n"
            "    unit: skills/meta/*\n"
            "    reason: authoring guides list steps on purpose\n"
        )
        config = load_config(tmp_path)
        assert config.license == "MIT"
        assert config.categories == ("code", "docs")
        assert config.skills_root == "knowledge"
        assert config.rules_dir == "docs/rules"
        assert config.description_max_length == 200
        assert config.suppressions == (
            Suppression("execution-steps", "skills/meta/*", "authoring guides list steps on purpose"),
        )

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, tmp_path / "missing.yaml")

    @pytest.mark.parametrize("text", ["version: [1]\n", "1: a\nfoo: b\n"])
    def test_odd_yaml_shapes_raise_config_error(self, tmp_path: Path, text: str) -> None:
        """Unhashable or non-string values surface as ConfigError, never TypeError."""
        (tmp_path / ".skills-validator.yaml").write_text(text)
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".skills-validator.yaml").write_text("license: [unclosed\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(tmp_path)


class TestParseConfig:
    @pytest.mark.parametrize(
        ("data", "message"),
        [
            (["not", "a", "mapping"], "top level must be a mapping"),
            ({"colour": "red"}, "unknown key"),
            ({"version": 2}, "unsupported version"),
            ({"version": [1]}, "unsupported version"),
            ({"version": True}, "unsupported version"),
            ({1: "a", "foo": "b"}, "keys must be strings"),
            ({"license": ""}, "'license' must be a non-empty string"),
            ({"categories": "code"}, "'categories' must be a list"),
            ({"skills_root": "/abs/path"}, "inside the repository"),
            ({"rules_dir": "../elsewhere"}, "inside the repository"),
            ({"description_max_length": 0}, "positive integer"),
            ({"description_max_length": True}, "positive integer"),
            ({"suppressions": {"check": "x"}}, "'suppressions' must be a list"),
            ({"suppressions": [{"check": "license", "unit": "skills/*"}]}, "missing 'reason'"),
            ({"suppressions": ["license"]}, "must be a mapping"),
        ],
    )
    def test_rejects_invalid(self, data: object, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            parse_config(data)


class TestSuppressions:
    """Suppressions are applied by the run aggregator, not by rules."""

    def test_matching_warning_downgraded_to_info(self) -> None:
        suppression = Suppression("execution-steps", "skills/meta/*", "checklist by design")
        run = ValidationRun(suppressions=[suppression])
        warning = Diagnostic("WARNING", "possible execution steps", "execution-steps", "skills/meta/authoring")
        recorded = run.add(warning)

        assert recorded.level == "INFO"
        assert recorded.message.startswith("suppressed (checklist by design): WARNING")
        assert run.warnings == 0
        assert run.unused_suppressions() == []

    def test_other_check_or_unit_not_suppressed(self) -> None:
        suppression = Suppression("execution-steps", "skills/meta/*", "checklist")
        run = ValidationRun(suppressions=[suppression])
        run.add(Diagnostic("WARNING", "steps", "execution-steps", "skills/code/testing"))
        run.add(Diagnostic("ERROR", "bad license", "license", "skills/meta/authoring"))

        assert run.warnings == 1
        assert run.errors == 1
        assert run.unused_suppressions() == [suppression]

    def test_suppressed_error_does_not_fail_run(self) -> None:
        run = ValidationRun(suppressions=[Suppression("license", "skills/code/legacy", "third-party content")])
        run.add(Diagnostic("ERROR", "license 'MIT' must be 'Apache-2.0'", "license", "skills/code/legacy"))
        assert run.exit_code == 0

    def test_ok_results_never_consume_suppressions(self) -> None:
        suppression = Suppression("unit", "*", "noise")
        run = ValidationRun(suppressions=[suppression])
        run.add(Diagnostic("OK", "all checks passed", "unit", "skills/code/testing"))
        assert run.results[0].level == "OK"
        assert run.unused_suppressions() == [suppression]
