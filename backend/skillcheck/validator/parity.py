"""
Tree Parity Validation (Layer 5, corpus level).

The corpus keeps near-duplicate skill trees produced by different authoring
passes (``skills/``, ``skills-codex/``, ``skills-gemini/``). This layer checks
that the trees stay aligned:
- No two skills in one tree share a name
- Every skill exists in every tree
- A skill ships the same reference and example files in every tree
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from ..config import LintConfig
from ..models import Corpus, Skill
from .issues import LayerResult


@dataclass
class ParityValidationResult(LayerResult):
    """Result of tree parity validation."""

    trees: List[str] = field(default_factory=list)
    missing: Dict[str, List[str]] = field(default_factory=dict)
    skills_total: int = 0
    skills_complete: int = 0

    layer: ClassVar[str] = "parity"

    @property
    def parity_score(self) -> float:
        """Percent of skill names present in every tree."""
        if self.skills_total == 0:
            return 100.0
        return round(self.skills_complete / self.skills_total * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["trees"] = self.trees
        data["missing"] = self.missing
        data["skills_total"] = self.skills_total
        data["skills_complete"] = self.skills_complete
        data["parity_score"] = self.parity_score
        return data


def _resource_names(skill: Skill) -> List[str]:
    return sorted(p.relative_to(skill.dir).as_posix() for p in skill.resource_files())


class TreeParityValidator:
    """
    Validates alignment across skill trees (Layer 5).
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()

    def validate(self, corpus: Corpus) -> ParityValidationResult:
        """
        Validate parity between the corpus trees.

        Args:
            corpus: Discovered corpus.

        Returns:
            ParityValidationResult with missing skills per tree and a parity score.
        """
        result = ParityValidationResult(trees=corpus.tree_names)

        for tree in corpus.trees:
            self._check_duplicate_names(tree.name, tree.skills, result)

        if len(corpus.trees) < 2:
            result.skills_total = len(corpus.skill_names())
            result.skills_complete = result.skills_total
            return result

        names = corpus.skill_names()
        result.skills_total = len(names)
        result.missing = {tree.name or ".": [] for tree in corpus.trees}

        for name in names:
            present = [t for t in corpus.trees if t.get(name) is not None]
            absent = [t for t in corpus.trees if t.get(name) is None]

            if absent:
                present_in = ", ".join(t.name or "." for t in present)
                for tree in absent:
                    tree_name = tree.name or "."
                    result.missing[tree_name].append(name)
                    result.add_issue(
                        "MISSING_IN_TREE",
                        f"Skill '{name}' exists in {present_in} but not in {tree_name}",
                        path=f"{tree_name}/{name}",
                        severity="warning",
                    )
                continue

            result.skills_complete += 1
            self._check_resource_sets(name, [t.get(name) for t in corpus.trees], result)

        return result

    def _check_duplicate_names(
        self,
        tree_name: Optional[str],
        skills: List[Skill],
        result: ParityValidationResult,
    ) -> None:
        by_name: Dict[str, List[Skill]] = {}
        for skill in skills:
            by_name.setdefault(skill.name, []).append(skill)

        for name, owners in sorted(by_name.items()):
            if len(owners) < 2:
                continue
            dirs = ", ".join(s.dir_name for s in owners)
            result.add_issue(
                "DUPLICATE_SKILL_NAME",
                f"Skill name '{name}' is declared by several directories: {dirs}",
                path=tree_name or ".",
            )

    def _check_resource_sets(
        self,
        name: str,
        skills: List[Skill],
        result: ParityValidationResult,
    ) -> None:
        resource_sets = {skill.tree or ".": _resource_names(skill) for skill in skills}
        all_files = sorted(set().union(*resource_sets.values()))

        for tree_name, files in resource_sets.items():
            lacking = [f for f in all_files if f not in files]
            if lacking:
                result.add_issue(
                    "RESOURCE_SET_DIFFERS",
                    f"Skill '{name}' in {tree_name} lacks {', '.join(lacking)}",
                    path=f"{tree_name}/{name}",
                    severity="info",
                )
