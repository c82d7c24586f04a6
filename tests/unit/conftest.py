"""Shared fixtures: build throwaway skills repositories under tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

DEFAULT_BODY = "\n# Overview\n\nCore concepts and trade-offs of the topic.\n"


def skill_md(
    name: str,
    category: str,
    fields: dict[str, str | None] | None = None,
    body: str = DEFAULT_BODY,
) -> str:
    """Render a compliant SKILL.md, with per-field overrides.

    Keys use the front matter spelling (``allowed-tools``, ``metadata.category``).
    A value of None drops the field.
    """
    values: dict[str, str | None] = {
        "name": name,
        "description": f"Knowledge about {name} for reviewers and authors.",
        "license": "Apache-2.0",
        "compatibility": "Any agent with file read access",
        "allowed-tools": "Read Grep Glob",
        "metadata.author": "skills-team",
        "metadata.version": "1.0.0",
        "metadata.category": category,
    }
    values.update(fields or {})

    lines = ["---"]
    for key, value in values.items():
        if value is not None and not key.startswith("metadata."):
            lines.append(f"{key}: {value}")
    lines.append("metadata:")
    for key, value in values.items():
        if value is not None and key.startswith("metadata."):
            lines.append(f"  {key.split('.', 1)[1]}: {value}")
    lines.append("---")
    return "\n".join(lines) + "\n" + body


class SkillRepo:
    """A skills repository rooted at a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def add_rules(self, *names: str, text: str = "# Rules\n\nKnowledge skills stay read-only.\n") -> None:
        rules_dir = self.root / ".claude" / "rules"
        rules_dir.mkdir(parents=True, exist_ok=True)
        for name in names:
            (rules_dir / name).write_text(text)

    def add_skill(
        self,
        category: str,
        name: str,
        content: str | None = None,
        fields: dict[str, str | None] | None = None,
        body: str = DEFAULT_BODY,
    ) -> Path:
        """Create skills/<category>/<name>/SKILL.md (compliant unless overridden)."""
        skill_dir = self.root / "skills" / category / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        if content is None:
            content = skill_md(name, category, fields, body)
        (skill_dir / "SKILL.md").write_text(content)
        return skill_dir

    def add_empty_skill(self, category: str, name: str) -> Path:
        skill_dir = self.root / "skills" / category / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        return skill_dir

    def add_file(self, category: str, name: str, rel_path: str, text: str) -> Path:
        path = self.root / "skills" / category / name / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path


@pytest.fixture
def repo(tmp_path: Path) -> SkillRepo:
    """Empty repository with a valid rules directory."""
    skill_repo = SkillRepo(tmp_path)
    skill_repo.add_rules("core.md")
    return skill_repo


@pytest.fixture
def render_skill():
    """The SKILL.md renderer, for tests that build documents by hand."""
    return skill_md
