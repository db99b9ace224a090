"""
Validation Engine.

Combines all validation layers into a unified validation pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from ..config import LintConfig
from ..discovery import discover_corpus
from ..models import Corpus, Skill
from .frontmatter import FrontmatterValidationResult, FrontmatterValidator
from .issues import LayerResult, LintIssue, display_path
from .links import LinkValidationResult, LinkValidator
from .parity import ParityValidationResult, TreeParityValidator
from .sql import SqlValidationResult, SqlValidator
from .structure import SectionRequirement, StructureValidationResult, StructureValidator


@dataclass
class SkillValidationResult:
    """
    Combined result from the per-skill validation layers.

    Contains results from:
    - Layer 1: Frontmatter Validation
    - Layer 2: Structure Validation
    - Layer 3: Link Validation
    - Layer 4: SQL Example Validation
    """

    valid: bool
    skill: str
    name: str
    path: str = ""
    frontmatter_result: Optional[FrontmatterValidationResult] = None
    structure_result: Optional[StructureValidationResult] = None
    link_result: Optional[LinkValidationResult] = None
    sql_result: Optional[SqlValidationResult] = None

    @property
    def layer_results(self) -> List[LayerResult]:
        return [
            r for r in (self.frontmatter_result, self.structure_result, self.link_result, self.sql_result)
            if r is not None
        ]

    @property
    def issues(self) -> List[LintIssue]:
        return [issue for layer in self.layer_results for issue in layer.issues]

    @property
    def total_errors(self) -> int:
        """Total number of errors across all layers."""
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def total_warnings(self) -> int:
        """Total number of warnings across all layers."""
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def compliance_score(self) -> float:
        """Overall convention score (0.0 to 1.0)."""
        total_points = 20.0
        earned_points = 0.0

        # Frontmatter: 20 points
        fm = self.frontmatter_result
        if fm is not None:
            if fm.valid:
                earned_points += 20
            elif fm.name or fm.description:
                earned_points += 10

        # Required sections: 15 points each, recommended: 7 points each
        sections = self.structure_result.sections if self.structure_result else []
        for section in sections:
            if section.requirement == SectionRequirement.REQUIRED:
                total_points += 15
                if section.present:
                    earned_points += 10
                    if section.has_content:
                        earned_points += 5
            else:
                total_points += 7
                if section.present:
                    earned_points += 5
                    if section.has_content:
                        earned_points += 2

        return earned_points / total_points

    def summary(self) -> str:
        """Generate a summary of validation results."""
        status = "PASSED" if self.valid else "FAILED"
        lines = [
            f"{self.skill}: {status}",
            f"  Errors: {self.total_errors}, Warnings: {self.total_warnings}",
            f"  Compliance Score: {self.compliance_score:.0%}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "skill": self.skill,
            "name": self.name,
            "path": self.path,
            "valid": self.valid,
            "total_errors": self.total_errors,
            "total_warnings": self.total_warnings,
            "compliance_score": round(self.compliance_score, 3),
            "layers": {
                "frontmatter": self.frontmatter_result.to_dict() if self.frontmatter_result else None,
                "structure": self.structure_result.to_dict() if self.structure_result else None,
                "links": self.link_result.to_dict() if self.link_result else None,
                "sql": self.sql_result.to_dict() if self.sql_result else None,
            },
        }


@dataclass
class CorpusValidationResult:
    """Combined result for every skill in a corpus plus tree parity."""

    valid: bool
    root: str = ""
    trees: List[str] = field(default_factory=list)
    strict: bool = False
    skills: List[SkillValidationResult] = field(default_factory=list)
    parity_result: Optional[ParityValidationResult] = None
    errors: List[str] = field(default_factory=list)

    @property
    def issues(self) -> List[LintIssue]:
        issues = [issue for skill in self.skills for issue in skill.issues]
        if self.parity_result:
            issues.extend(self.parity_result.issues)
        return issues

    @property
    def total_errors(self) -> int:
        """Total number of errors across skills, parity and the engine itself."""
        return len(self.errors) + sum(1 for i in self.issues if i.severity == "error")

    @property
    def total_warnings(self) -> int:
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def exit_code(self) -> int:
        """0 when valid, 1 on errors, 2 when only warnings failed a strict run."""
        if self.valid:
            return 0
        if self.total_errors > 0:
            return 1
        return 2

    def get(self, skill: str) -> Optional[SkillValidationResult]:
        """Look up a skill result by label (``tree/dir``) or name."""
        for result in self.skills:
            if result.skill == skill or result.name == skill:
                return result
        return None

    def summary(self) -> str:
        """Generate a summary of validation results."""
        lines = []
        status = "PASSED" if self.valid else "FAILED"
        lines.append(f"Validation {status}")
        trees = ", ".join(self.trees) or "none"
        lines.append(f"  Skills: {len(self.skills)} (trees: {trees})")
        lines.append(f"  Errors: {self.total_errors}")
        lines.append(f"  Warnings: {self.total_warnings}")

        if self.skills:
            failed = sum(1 for s in self.skills if not s.valid)
            lines.append(f"  Failed Skills: {failed}")

        if self.parity_result and len(self.parity_result.trees) > 1:
            lines.append(f"  Tree Parity: {self.parity_result.parity_score}%")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "valid": self.valid,
            "root": self.root,
            "trees": self.trees,
            "strict": self.strict,
            "total_errors": self.total_errors,
            "total_warnings": self.total_warnings,
            "errors": self.errors,
            "skills": [s.to_dict() for s in self.skills],
            "parity": self.parity_result.to_dict() if self.parity_result else None,
        }


class ValidationEngine:
    """
    Unified validation engine combining all validation layers.

    Layers:
    - Layer 1: Frontmatter Validation (keys, name, description)
    - Layer 2: Structure Validation (body length, sections, resource dirs)
    - Layer 3: Link Validation (relative links, anchors, orphans)
    - Layer 4: SQL Example Validation (fences, dialect)
    - Layer 5: Tree Parity Validation (corpus level)
    """

    def __init__(self, config: Optional[LintConfig] = None):
        """
        Initialize the validation engine.

        Args:
            config: Conventions to check against. Defaults apply when omitted.
        """
        self.config = config or LintConfig()
        self.frontmatter_validator = FrontmatterValidator(self.config)
        self.structure_validator = StructureValidator(self.config)
        self.link_validator = LinkValidator(self.config)
        self.sql_validator = SqlValidator(self.config)
        self.parity_validator = TreeParityValidator(self.config)

    def _is_strict(self, strict: Optional[bool]) -> bool:
        return self.config.strict if strict is None else strict

    def _finish(self, layer: LayerResult) -> LayerResult:
        layer.apply_overrides(self.config.rules)
        return layer

    def validate_skill(self, skill: Skill, strict: Optional[bool] = None) -> SkillValidationResult:
        """
        Run the per-skill validation layers.

        Args:
            skill: The skill to validate.
            strict: If True, warnings also fail. Defaults to the config setting.

        Returns:
            SkillValidationResult with results from every layer that ran.
        """
        shown = display_path(skill.skill_md_file or skill.dir, skill)
        result = SkillValidationResult(valid=True, skill=skill.label, name=skill.name, path=shown)

        # Layer 1: Frontmatter Validation
        result.frontmatter_result = self._finish(self.frontmatter_validator.validate(skill))

        # Without a readable SKILL.md the other layers have nothing to inspect
        if skill.document is not None and skill.document.readable:
            # Layer 2: Structure Validation
            result.structure_result = self._finish(self.structure_validator.validate(skill))

            # Layer 3: Link Validation
            result.link_result = self._finish(self.link_validator.validate(skill))

            # Layer 4: SQL Example Validation
            result.sql_result = self._finish(self.sql_validator.validate(skill))

        result.valid = all(layer.valid for layer in result.layer_results)

        # In strict mode, warnings also cause failure
        if self._is_strict(strict) and result.total_warnings > 0:
            result.valid = False

        logger.debug(
            "{skill}: {errors} errors, {warnings} warnings",
            skill=skill.label,
            errors=result.total_errors,
            warnings=result.total_warnings,
        )
        return result

    def validate_corpus(
        self,
        corpus: Corpus,
        strict: Optional[bool] = None,
        only: Optional[Iterable[str]] = None,
    ) -> CorpusValidationResult:
        """
        Validate every skill in a corpus and the parity between its trees.

        Args:
            corpus: Discovered corpus.
            strict: If True, warnings also fail. Defaults to the config setting.
            only: Restrict validation to these skill names or directory names.
                Tree parity is skipped when a subset is requested.

        Returns:
            CorpusValidationResult with per-skill and parity results.
        """
        strict = self._is_strict(strict)
        result = CorpusValidationResult(
            valid=True,
            root=str(corpus.root),
            trees=corpus.tree_names,
            strict=strict,
        )

        selected = set(only) if only else None
        skills = corpus.all_skills()
        if selected is not None:
            skills = [s for s in skills if s.dir_name in selected or s.name in selected or s.label in selected]
            unknown = selected - {s.dir_name for s in skills} - {s.name for s in skills} - {s.label for s in skills}
            for name in sorted(unknown):
                result.errors.append(f"Skill not found: {name}")

        if not corpus.all_skills():
            result.errors.append(f"No skills found under {corpus.root}")

        for skill in skills:
            result.skills.append(self.validate_skill(skill, strict=strict))

        if self.config.check_tree_parity and selected is None:
            result.parity_result = self._finish(self.parity_validator.validate(corpus))

        result.valid = (
            not result.errors
            and all(s.valid for s in result.skills)
            and (result.parity_result is None or result.parity_result.valid)
        )
        if strict and result.total_warnings > 0:
            result.valid = False

        return result

    def validate_path(
        self,
        path: Path,
        strict: Optional[bool] = None,
        only: Optional[Iterable[str]] = None,
    ) -> CorpusValidationResult:
        """
        Discover and validate a corpus root, a single tree or a single skill.

        Args:
            path: Directory to validate.
            strict: If True, fail on warnings.
            only: Restrict validation to these skills.

        Returns:
            CorpusValidationResult with combined results.
        """
        path = Path(path)
        if not path.is_dir():
            return CorpusValidationResult(
                valid=False,
                root=str(path),
                strict=self._is_strict(strict),
                errors=[f"Directory not found: {path}"],
            )

        corpus = discover_corpus(path, self.config.trees)
        return self.validate_corpus(corpus, strict=strict, only=only)


def validate_corpus(
    root: Path,
    strict: Optional[bool] = None,
    config: Optional[LintConfig] = None,
) -> CorpusValidationResult:
    """
    Convenience function to validate a corpus directory.

    Args:
        root: Corpus root, tree or skill directory.
        strict: If True, fail on warnings.
        config: Optional configuration; defaults apply when omitted.

    Returns:
        CorpusValidationResult with combined results.
    """
    engine = ValidationEngine(config)
    return engine.validate_path(root, strict=strict)
