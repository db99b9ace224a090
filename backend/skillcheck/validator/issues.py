"""
Issue and per-layer result types shared by every validation layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from ..models import Skill


SEVERITIES = ("error", "warning", "info")


def display_path(path: Path, skill: Skill) -> str:
    """Path as shown in reports: relative to the corpus root, e.g. ``skills/x/SKILL.md``."""
    base = skill.dir.parent.parent if skill.tree else skill.dir.parent
    for candidate, root in ((path, base), (path.resolve(), base.resolve())):
        try:
            return candidate.relative_to(root).as_posix()
        except ValueError:
            continue
    return str(path)


@dataclass
class LintIssue:
    """A single convention violation found in a skill or corpus."""

    rule: str
    severity: str
    message: str
    path: str = ""
    line: Optional[int] = None
    layer: str = ""

    @property
    def location(self) -> str:
        if self.path and self.line:
            return f"{self.path}:{self.line}"
        return self.path

    def __str__(self) -> str:
        loc = f"{self.location}: " if self.location else ""
        return f"{loc}[{self.severity.upper()}] {self.rule}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rule": self.rule,
            "severity": self.severity,
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "layer": self.layer,
        }


@dataclass
class LayerResult:
    """Base result for a validation layer."""

    valid: bool = True
    issues: List[LintIssue] = field(default_factory=list)

    layer: ClassVar[str] = ""

    def add_issue(
        self,
        rule: str,
        message: str,
        path: str = "",
        line: Optional[int] = None,
        severity: str = "error",
    ) -> None:
        """Add an issue; errors invalidate the result."""
        self.issues.append(LintIssue(
            rule=rule,
            severity=severity,
            message=message,
            path=path,
            line=line,
            layer=self.layer,
        ))
        if severity == "error":
            self.valid = False

    @property
    def errors(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    def apply_overrides(self, overrides: Mapping[str, str]) -> None:
        """
        Re-level issues by rule id.

        Args:
            overrides: Rule id to ``error``, ``warning``, ``info`` or ``off``.
        """
        if not overrides:
            return

        kept = []
        for issue in self.issues:
            level = overrides.get(issue.rule)
            if level == "off":
                continue
            if level in SEVERITIES:
                issue.severity = level
            kept.append(issue)
        self.issues = kept
        self.valid = not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
        }
