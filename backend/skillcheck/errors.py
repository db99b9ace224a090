"""
Exceptions raised for skillcheck's own inputs.

Content problems inside a skill are never raised: validators record them as
issues on their results.
"""

from __future__ import annotations


class SkillCheckError(Exception):
    """Base error for skillcheck."""


class SkillParseError(SkillCheckError, ValueError):
    """Raised when SKILL.md frontmatter is malformed or the file is unreadable."""


class ConfigError(SkillCheckError, ValueError):
    """Raised when a skillcheck configuration file cannot be used."""
