"""
Pydantic models for skill corpora.

A corpus is a root directory holding one or more skill trees
(``skills/``, ``skills-codex/``, ``skills-gemini/``). Each tree holds skill
directories, each with a ``SKILL.md`` and optional ``references/`` and
``examples/`` directories.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024


class SkillFrontmatter(BaseModel):
    """Typed view of a valid SKILL.md frontmatter block."""

    model_config = ConfigDict(extra="forbid")

    name: str
    description: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"name must be 1-{MAX_NAME_LENGTH} characters")
        if not NAME_PATTERN.match(v):
            raise ValueError("name must be kebab-case (lowercase letters, digits and single hyphens)")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be empty")
        if len(v) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")
        return v


class SkillDocument(BaseModel):
    """A parsed Markdown file, frontmatter split from body."""

    path: Path
    readable: bool = True
    has_frontmatter: bool = False
    frontmatter: Optional[Dict[str, Any]] = None
    key_lines: Dict[str, int] = Field(default_factory=dict)
    body: str = ""
    body_start_line: int = 1
    parse_error: Optional[str] = None

    @property
    def body_lines(self) -> int:
        """Number of lines in the body, ignoring trailing blank lines."""
        stripped = self.body.rstrip()
        if not stripped:
            return 0
        return len(stripped.splitlines())


class Skill(BaseModel):
    """A skill directory and the files it is made of."""

    dir: Path
    tree: Optional[str] = None
    document: Optional[SkillDocument] = None
    references: List[Path] = Field(default_factory=list)
    examples: List[Path] = Field(default_factory=list)

    @property
    def dir_name(self) -> str:
        return self.dir.name

    @property
    def name(self) -> str:
        """Frontmatter name, falling back to the directory name."""
        if self.document and self.document.frontmatter:
            value = self.document.frontmatter.get("name")
            if isinstance(value, str) and value.strip():
                return value.strip()
        return self.dir.name

    @property
    def description(self) -> str:
        if self.document and self.document.frontmatter:
            value = self.document.frontmatter.get("description")
            if isinstance(value, str):
                return value.strip()
        return ""

    @property
    def skill_md_file(self) -> Optional[Path]:
        return self.document.path if self.document else None

    @property
    def label(self) -> str:
        """Tree-qualified name used in reports, e.g. ``skills-codex/postgresql-security``."""
        return f"{self.tree}/{self.dir_name}" if self.tree else self.dir_name

    def resource_files(self) -> List[Path]:
        """All files under references/ and examples/."""
        return sorted(self.references + self.examples)

    def to_frontmatter(self) -> SkillFrontmatter:
        """
        Build a typed frontmatter model.

        Raises:
            pydantic.ValidationError: If the frontmatter breaks a convention.
        """
        data = self.document.frontmatter if self.document and self.document.frontmatter else {}
        return SkillFrontmatter.model_validate(data)


class SkillTree(BaseModel):
    """One authoring pass over the corpus, e.g. ``skills-gemini/``."""

    name: Optional[str] = None
    path: Path
    skills: List[Skill] = Field(default_factory=list)

    def get(self, dir_name: str) -> Optional[Skill]:
        for skill in self.skills:
            if skill.dir_name == dir_name:
                return skill
        return None


class Corpus(BaseModel):
    """A root directory and the skill trees found under it."""

    root: Path
    trees: List[SkillTree] = Field(default_factory=list)

    @property
    def tree_names(self) -> List[str]:
        return [t.name or "." for t in self.trees]

    def all_skills(self) -> List[Skill]:
        return [skill for tree in self.trees for skill in tree.skills]

    def skill_names(self, tree: Optional[str] = None) -> List[str]:
        """Skill directory names, for one tree or across all of them."""
        names = set()
        for t in self.trees:
            if tree is None or t.name == tree:
                names.update(s.dir_name for s in t.skills)
        return sorted(names)

    def skill_md_files(self) -> List[Path]:
        return sorted(s.skill_md_file for s in self.all_skills() if s.skill_md_file)
