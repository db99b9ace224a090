"""
Structure Validation (Layer 2).

Validates the SKILL.md body and the skill's resource directories:
1. Body present and under the line limit
2. Required sections (Overview, When to Use by default)
3. Recommended sections (Instructions, Examples, References, Related Skills)
4. references/ and examples/ hold flat Markdown files
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from ..config import LintConfig
from ..models import Skill
from ..parser import extract_headings
from .issues import LayerResult, display_path


class SectionRequirement(Enum):
    """Section requirement level."""
    REQUIRED = "required"
    RECOMMENDED = "recommended"


@dataclass
class SectionValidation:
    """Result of checking one expected section."""
    name: str
    requirement: SectionRequirement
    present: bool
    line_number: Optional[int] = None
    content_length: int = 0
    has_content: bool = False


@dataclass
class StructureValidationResult(LayerResult):
    """Result of structure validation."""

    body_lines: int = 0
    sections: List[SectionValidation] = field(default_factory=list)

    layer: ClassVar[str] = "structure"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["body_lines"] = self.body_lines
        data["sections"] = [
            {
                "name": s.name,
                "requirement": s.requirement.value,
                "present": s.present,
                "has_content": s.has_content,
                "line": s.line_number,
            }
            for s in self.sections
        ]
        return data


# Maps lowercase alternative headings to canonical section names
SECTION_ALIASES = {
    # Overview alternatives
    "description": "Overview",
    "purpose": "Overview",
    "about": "Overview",
    "summary": "Overview",
    "introduction": "Overview",
    # When to Use alternatives
    "triggers": "When to Use",
    "use cases": "When to Use",
    "when to use this skill": "When to Use",
    "activation": "When to Use",
    "how to use": "When to Use",
    # Instructions alternatives
    "workflow": "Instructions",
    "steps": "Instructions",
    "procedure": "Instructions",
    "process": "Instructions",
    "quick start": "Instructions",
    "how it works": "Instructions",
    "usage": "Instructions",
    # Examples alternatives
    "example": "Examples",
    "example scenarios": "Examples",
    "scenarios": "Examples",
    "samples": "Examples",
    # References alternatives
    "reference": "References",
    "reference files": "References",
    "additional resources": "References",
    "deep dives": "References",
    "further reading": "References",
    # Related Skills alternatives
    "related": "Related Skills",
    "see also": "Related Skills",
    "works well with": "Related Skills",
}

MIN_SECTION_CONTENT = 10


class StructureValidator:
    """
    Validates SKILL.md body structure and resource directory layout (Layer 2).
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()
        self.section_definitions: Dict[str, SectionRequirement] = {}
        for name in self.config.recommended_sections:
            self.section_definitions[name] = SectionRequirement.RECOMMENDED
        for name in self.config.required_sections:
            self.section_definitions[name] = SectionRequirement.REQUIRED
        self.section_aliases = {**SECTION_ALIASES, **self.config.section_aliases}

    def validate(self, skill: Skill) -> StructureValidationResult:
        """
        Validate a skill's body and layout.

        Args:
            skill: The skill to check. Skills without SKILL.md only get the
                resource directory checks.

        Returns:
            StructureValidationResult with section details.
        """
        result = StructureValidationResult()

        if skill.document is not None and skill.document.readable:
            self._validate_body(skill, result)

        for subdir in ("references", "examples"):
            self._validate_resource_dir(skill, subdir, result)

        return result

    def _validate_body(self, skill: Skill, result: StructureValidationResult) -> None:
        document = skill.document
        path = display_path(document.path, skill)
        result.body_lines = document.body_lines

        if not document.body.strip():
            result.add_issue("BODY_EMPTY", "SKILL.md body is empty - add instructions for the agent", path=path)
            return

        max_lines = self.config.max_body_lines
        if result.body_lines >= max_lines:
            result.add_issue(
                "BODY_TOO_LONG",
                f"SKILL.md body is {result.body_lines} lines; keep it under {max_lines} "
                "and move details to references/",
                path=path,
                line=document.body_start_line + max_lines - 1,
            )

        headings = extract_headings(document.body, document.body_start_line)
        if not any(h.level == 1 for h in headings):
            result.add_issue("NO_TITLE", "SKILL.md body has no '#' title", path=path, severity="info")

        result.sections = self._validate_sections(document.body, document.body_start_line, path, result)

    def _validate_sections(
        self,
        body: str,
        start_line: int,
        path: str,
        result: StructureValidationResult,
    ) -> List[SectionValidation]:
        """Check required and recommended ``##`` sections."""
        lines = body.splitlines()
        headings = [h for h in extract_headings(body, start_line) if h.level <= 2]

        sections_found: Dict[str, tuple[int, str]] = {}
        for index, heading in enumerate(headings):
            if heading.level != 2:
                continue
            normalized = self._normalize_section_name(heading.title)
            if not normalized or normalized in sections_found:
                continue
            end = headings[index + 1].line if index + 1 < len(headings) else start_line + len(lines)
            content = "\n".join(lines[heading.line - start_line + 1:end - start_line])
            sections_found[normalized] = (heading.line, content)

        sections = []
        for section_name, requirement in self.section_definitions.items():
            present = section_name in sections_found
            line_number = None
            content_text = ""
            has_content = False

            if present:
                line_number, content_text = sections_found[section_name]
                has_content = len(content_text.strip()) >= MIN_SECTION_CONTENT

            if requirement == SectionRequirement.REQUIRED and not present:
                result.add_issue("MISSING_REQUIRED_SECTION", f"Missing required section: {section_name}", path=path)
            elif requirement == SectionRequirement.RECOMMENDED and not present:
                result.add_issue(
                    "MISSING_RECOMMENDED_SECTION",
                    f"Missing recommended section: {section_name}",
                    path=path,
                    severity="warning",
                )
            elif present and not has_content:
                result.add_issue(
                    "EMPTY_SECTION",
                    f"Section '{section_name}' appears empty or minimal",
                    path=path,
                    line=line_number,
                    severity="warning",
                )

            sections.append(SectionValidation(
                name=section_name,
                requirement=requirement,
                present=present,
                line_number=line_number,
                content_length=len(content_text),
                has_content=has_content,
            ))

        return sections

    def _normalize_section_name(self, name: str) -> Optional[str]:
        """Normalize a heading to a canonical section name."""
        name_lower = name.lower().strip().rstrip(":")

        # Direct match
        for canonical in self.section_definitions:
            if canonical.lower() == name_lower:
                return canonical

        # Alias match
        alias = self.section_aliases.get(name_lower)
        if alias in self.section_definitions:
            return alias

        # Partial match
        for canonical in self.section_definitions:
            if canonical.lower() in name_lower:
                return canonical

        return None

    def _validate_resource_dir(self, skill: Skill, subdir: str, result: StructureValidationResult) -> None:
        resource_dir = skill.dir / subdir
        if not resource_dir.is_dir():
            return

        files = skill.references if subdir == "references" else skill.examples
        path = display_path(resource_dir, skill)

        if not any(f.suffix.lower() == ".md" for f in files):
            result.add_issue(
                "EMPTY_RESOURCE_DIR",
                f"{subdir}/ contains no Markdown files",
                path=path,
                severity="warning",
            )

        for f in files:
            if f.suffix.lower() != ".md":
                result.add_issue(
                    "NON_MARKDOWN_RESOURCE",
                    f"{subdir}/ should hold Markdown files only, found '{f.name}'",
                    path=display_path(f, skill),
                    severity="warning",
                )

        for child in sorted(resource_dir.iterdir()):
            if child.is_dir():
                result.add_issue(
                    "NESTED_RESOURCE_DIR",
                    f"{subdir}/ should be flat, found subdirectory '{child.name}'",
                    path=display_path(child, skill),
                    severity="warning",
                )

