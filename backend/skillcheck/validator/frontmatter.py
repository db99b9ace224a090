"""
Frontmatter Validation (Layer 1).

Validates the SKILL.md frontmatter block:
- Present and parseable as a YAML mapping
- Only the allowed keys (name, description)
- name is lowercase-hyphenated, bounded, free of reserved words
- description is non-empty and bounded
- name matches the skill directory name
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from ..config import LintConfig
from ..models import NAME_PATTERN, Skill
from .issues import LayerResult, display_path


# Attributes are name=value pairs; `a<b and c>d` is not a tag
XML_TAG_PATTERN = re.compile(
    r"</?[a-zA-Z][\w:-]*"
    r"(?:\s+[\w:-]+\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'<>=]+))*"
    r"\s*/?>"
)



@dataclass
class FrontmatterValidationResult(LayerResult):
    """Result of frontmatter validation."""

    name: Optional[str] = None
    description: Optional[str] = None

    layer: ClassVar[str] = "frontmatter"


class FrontmatterValidator:
    """
    Validates SKILL.md frontmatter (Layer 1).

    A missing SKILL.md or an unparseable frontmatter block is reported once
    and stops the field checks.
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()

    def validate(self, skill: Skill) -> FrontmatterValidationResult:
        """
        Validate a skill's frontmatter.

        Args:
            skill: The skill to check.

        Returns:
            FrontmatterValidationResult with the extracted name and description.
        """
        result = FrontmatterValidationResult()
        document = skill.document

        if document is None:
            result.add_issue(
                "MISSING_SKILL_MD",
                "Skill directory has no SKILL.md",
                path=display_path(skill.dir, skill),
            )
            return result

        path = display_path(document.path, skill)

        if document.path.name != "SKILL.md":
            result.add_issue(
                "LOWERCASE_SKILL_MD",
                f"Skill file is named '{document.path.name}', expected 'SKILL.md'",
                path=path,
                severity="warning",
            )

        if not document.readable:
            result.add_issue("UNREADABLE_FILE", document.parse_error or "SKILL.md cannot be read", path=path)
            return result

        if not document.has_frontmatter:
            result.add_issue("FRONTMATTER_MISSING", "Missing frontmatter block (--- ... ---)", path=path, line=1)
            return result

        if document.parse_error or document.frontmatter is None:
            result.add_issue("FRONTMATTER_INVALID", document.parse_error or "Frontmatter is empty", path=path, line=1)
            return result

        frontmatter = document.frontmatter
        key_lines = document.key_lines

        allowed = self.config.allowed_frontmatter_keys
        for key in frontmatter:
            if key not in allowed:
                result.add_issue(
                    "UNEXPECTED_FIELD",
                    f"Unexpected frontmatter field '{key}' (allowed: {', '.join(allowed)})",
                    path=path,
                    line=key_lines.get(key),
                )

        name = self._string_field(frontmatter, "name", result, path, key_lines.get("name"))
        if name is not None:
            result.name = name
            self._check_name(name, skill, result, path, key_lines.get("name"))

        description = self._string_field(frontmatter, "description", result, path, key_lines.get("description"))
        if description is not None:
            result.description = description
            self._check_description(description, result, path, key_lines.get("description"))

        return result

    def _string_field(
        self,
        frontmatter: dict[str, Any],
        key: str,
        result: FrontmatterValidationResult,
        path: str,
        line: Optional[int],
    ) -> Optional[str]:
        """Return a required string field, or record why it cannot be used."""
        if key not in frontmatter:
            result.add_issue("MISSING_FIELD", f"Missing required field: {key}", path=path, line=1)
            return None

        value = frontmatter[key]
        if value is None:
            value = ""
        if not isinstance(value, str):
            result.add_issue(
                "INVALID_FIELD_TYPE",
                f"Field '{key}' must be a string, got {type(value).__name__}",
                path=path,
                line=line,
            )
            return None
        return value.strip()

    def _check_name(
        self,
        name: str,
        skill: Skill,
        result: FrontmatterValidationResult,
        path: str,
        line: Optional[int],
    ) -> None:
        max_length = self.config.max_name_length
        if len(name) > max_length:
            result.add_issue(
                "NAME_TOO_LONG",
                f"Name is {len(name)} characters (max {max_length})",
                path=path,
                line=line,
            )

        if not NAME_PATTERN.match(name):
            result.add_issue(
                "NAME_FORMAT",
                f"Invalid name '{name}': must be lowercase letters, digits and single hyphens",
                path=path,
                line=line,
            )

        for word in self.config.reserved_words:
            if word.lower() in name.lower():
                result.add_issue(
                    "NAME_RESERVED_WORD",
                    f"Name must not contain reserved word '{word}'",
                    path=path,
                    line=line,
                )

        if XML_TAG_PATTERN.search(name):
            result.add_issue("DESCRIPTION_XML_TAGS", "Name must not contain XML tags", path=path, line=line)

        if name != skill.dir_name:
            result.add_issue(
                "NAME_DIR_MISMATCH",
                f"Name '{name}' does not match directory name '{skill.dir_name}'",
                path=path,
                line=line,
            )

    def _check_description(
        self,
        description: str,
        result: FrontmatterValidationResult,
        path: str,
        line: Optional[int],
    ) -> None:
        if not description:
            result.add_issue("DESCRIPTION_EMPTY", "Description is empty", path=path, line=line)
            return

        max_length = self.config.max_description_length
        if len(description) > max_length:
            result.add_issue(
                "DESCRIPTION_TOO_LONG",
                f"Description is {len(description)} characters (max {max_length})",
                path=path,
                line=line,
            )
        elif len(description) < self.config.min_description_length:
            result.add_issue(
                "DESCRIPTION_TOO_SHORT",
                f"Description is very short (< {self.config.min_description_length} chars)",
                path=path,
                line=line,
                severity="warning",
            )

        if XML_TAG_PATTERN.search(description):
            result.add_issue(
                "DESCRIPTION_XML_TAGS",
                "Description must not contain XML tags",
                path=path,
                line=line,
            )
