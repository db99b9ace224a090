"""
skillcheck: convention linter for agent skill corpora.

Checks the SKILL.md frontmatter, body structure, cross-references and SQL
examples of every skill, and the parity between the corpus skill trees.
"""

from loguru import logger

from .models import (
    SkillFrontmatter,
    SkillDocument,
    Skill,
    SkillTree,
    Corpus,
)
from .errors import SkillCheckError, SkillParseError, ConfigError
from .config import LintConfig, load_config
from .discovery import discover_corpus, discover_skills, load_skill

logger.disable("backend.skillcheck")

__version__ = "1.0.0"
__all__ = [
    "SkillFrontmatter",
    "SkillDocument",
    "Skill",
    "SkillTree",
    "Corpus",
    "SkillCheckError",
    "SkillParseError",
    "ConfigError",
    "LintConfig",
    "load_config",
    "discover_corpus",
    "discover_skills",
    "load_skill",
]
