"""
Corpus Report Generator.

Generates machine-consumable lint reports for CI and review tooling.
"""

from __future__ import annotations

import hashlib
import json
import os
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .models import Corpus
from .validator import CorpusValidationResult


REPORT_VERSION = "skillcheck-report/1.0"
TOOL_VERSION = __version__

MAX_ISSUES_PER_SKILL = 20


@dataclass
class AuditMetadata:
    """Metadata for audit trail."""

    report_generated_at: str
    tool_version: str
    duration_ms: int
    corpus_checksum: Optional[str] = None
    files_checksummed: int = 0
    git_commit: Optional[str] = None
    ci_environment: Optional[Dict[str, str]] = None

    @classmethod
    def generate(
        cls,
        duration_ms: int,
        skill_md_files: Optional[List[Path]] = None,
        root: Optional[Path] = None,
    ) -> "AuditMetadata":
        """Generate audit metadata."""
        metadata = cls(
            report_generated_at=datetime.now(timezone.utc).isoformat(),
            tool_version=TOOL_VERSION,
            duration_ms=duration_ms,
        )

        if skill_md_files:
            metadata.corpus_checksum = _compute_corpus_checksum(skill_md_files, root)
            metadata.files_checksummed = len(skill_md_files)

        # Try to get git commit
        metadata.git_commit = _get_git_commit(root)

        # Get CI environment if available
        metadata.ci_environment = _get_ci_environment()

        return metadata

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "report_generated_at": self.report_generated_at,
            "tool_version": self.tool_version,
            "duration_ms": self.duration_ms,
        }

        if self.corpus_checksum:
            result["corpus_checksum"] = self.corpus_checksum
            result["files_checksummed"] = self.files_checksummed
        if self.git_commit:
            result["git_commit"] = self.git_commit
        if self.ci_environment:
            result["ci_environment"] = self.ci_environment

        return result


@dataclass
class CorpusReport:
    """Full lint report for a skill corpus."""

    report_version: str
    corpus: Dict[str, Any]
    validation: Dict[str, Any]
    audit_metadata: AuditMetadata

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "report_version": self.report_version,
            "corpus": self.corpus,
            "validation": self.validation,
            "audit_metadata": self.audit_metadata.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_markdown(self) -> str:
        """
        Convert to Markdown format report.

        Returns:
            Markdown formatted string.
        """
        lines = []
        validation = self.validation
        valid = validation.get("valid", False)
        status = "PASSED" if valid else "FAILED"
        skills = validation.get("skills", [])

        # Header
        lines.append(f"# Skill Lint Report: {self.corpus.get('root', 'Unknown')}")
        lines.append("")
        lines.append(f"**Status:** {status}")
        lines.append(f"**Skills:** {len(skills)}")
        lines.append(f"**Errors:** {validation.get('total_errors', 0)}")
        lines.append(f"**Warnings:** {validation.get('total_warnings', 0)}")
        if validation.get("strict"):
            lines.append("**Mode:** strict")
        lines.append("")

        if validation.get("errors"):
            lines.append("## Errors")
            lines.append("")
            for error in validation["errors"]:
                lines.append(f"- {error}")
            lines.append("")

        # Per-skill table
        if skills:
            lines.append("## Skills")
            lines.append("")
            lines.append("| Skill | Status | Errors | Warnings | Score |")
            lines.append("|-------|--------|--------|----------|-------|")
            for skill in skills:
                skill_status = "pass" if skill.get("valid") else "FAIL"
                score = skill.get("compliance_score", 0)
                lines.append(
                    f"| {skill.get('skill', '')} | {skill_status} | {skill.get('total_errors', 0)} "
                    f"| {skill.get('total_warnings', 0)} | {score:.0%} |"
                )
            lines.append("")

        # Issues
        with_issues = [s for s in skills if _skill_issues(s)]
        if with_issues:
            lines.append("## Issues")
            lines.append("")
            for skill in with_issues:
                issues = _skill_issues(skill)
                lines.append(f"### {skill.get('skill', '')}")
                lines.append("")
                for issue in issues[:MAX_ISSUES_PER_SKILL]:
                    location = issue.get("path", "")
                    if issue.get("line"):
                        location = f"{location}:{issue['line']}"
                    lines.append(
                        f"- **[{issue.get('severity', '')}] {issue.get('rule', '')}** "
                        f"`{location}`: {issue.get('message', '')}"
                    )
                if len(issues) > MAX_ISSUES_PER_SKILL:
                    lines.append(f"- ... and {len(issues) - MAX_ISSUES_PER_SKILL} more")
                lines.append("")

        # Tree parity
        parity = validation.get("parity")
        if parity and len(parity.get("trees", [])) > 1:
            lines.append("## Tree Parity")
            lines.append("")
            lines.append(f"- **Trees:** {', '.join(parity['trees'])}")
            lines.append(f"- **Parity Score:** {parity.get('parity_score', 0)}%")
            lines.append(
                f"- **Complete Skills:** {parity.get('skills_complete', 0)}/{parity.get('skills_total', 0)}"
            )
            lines.append("")
            missing = {tree: names for tree, names in parity.get("missing", {}).items() if names}
            if missing:
                lines.append("### Missing Skills")
                lines.append("")
                for tree, names in missing.items():
                    lines.append(f"- **{tree}:** {', '.join(names)}")
                lines.append("")

        # Audit Metadata
        lines.append("## Audit Metadata")
        lines.append("")
        audit = self.audit_metadata.to_dict()
        lines.append(f"- **Generated At:** {audit.get('report_generated_at', '')}")
        lines.append(f"- **Tool Version:** {audit.get('tool_version', '')}")
        lines.append(f"- **Duration:** {audit.get('duration_ms', 0)}ms")
        if audit.get("git_commit"):
            lines.append(f"- **Git Commit:** {audit['git_commit']}")
        if audit.get("corpus_checksum"):
            lines.append(f"- **Corpus Checksum:** {audit['corpus_checksum']}")
        lines.append("")

        return "\n".join(lines)

    def save(self, output_path: Path, format: str = "json") -> None:
        """
        Save report to file.

        Args:
            output_path: Path to save the report.
            format: Output format, either 'json' or 'markdown'.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if format == "markdown":
            output_path.write_text(self.to_markdown(), encoding="utf-8")
        else:
            output_path.write_text(self.to_json(), encoding="utf-8")


def _skill_issues(skill: Dict[str, Any]) -> List[Dict[str, Any]]:
    issues = []
    for layer in (skill.get("layers") or {}).values():
        if layer:
            issues.extend(layer.get("issues", []))
    return issues


def generate_report(
    validation_result: CorpusValidationResult,
    corpus: Optional[Corpus],
    duration_ms: int,
) -> CorpusReport:
    """
    Generate a corpus report from validation results.

    Args:
        validation_result: Result from ValidationEngine.
        corpus: The validated corpus, or None when discovery failed.
        duration_ms: Validation duration in milliseconds.

    Returns:
        CorpusReport ready for serialization.
    """
    corpus_info: Dict[str, Any] = {
        "root": validation_result.root,
        "trees": validation_result.trees,
        "skills": len(validation_result.skills),
    }

    skill_md_files: List[Path] = []
    root = None
    if corpus is not None:
        root = corpus.root
        skill_md_files = corpus.skill_md_files()

    audit_metadata = AuditMetadata.generate(
        duration_ms=duration_ms,
        skill_md_files=skill_md_files,
        root=root,
    )

    return CorpusReport(
        report_version=REPORT_VERSION,
        corpus=corpus_info,
        validation=validation_result.to_dict(),
        audit_metadata=audit_metadata,
    )


def _compute_file_checksum(path: Path) -> str:
    """Compute MD5 checksum of a file."""
    hasher = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _compute_corpus_checksum(paths: List[Path], root: Optional[Path] = None) -> str:
    """MD5 over every file's relative path and checksum, in sorted path order."""
    entries = []
    for path in paths:
        name = path.as_posix()
        if root is not None:
            try:
                name = path.relative_to(root).as_posix()
            except ValueError:
                pass
        entries.append((name, _compute_file_checksum(path)))

    hasher = hashlib.md5()
    for name, checksum in sorted(entries):
        hasher.update(f"{name}\0{checksum}\n".encode("utf-8"))
    return hasher.hexdigest()


def _get_git_commit(cwd: Optional[Path] = None) -> Optional[str]:
    """Get current git commit hash if in a git repo."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=cwd,
        )
        if result.returncode == 0:
            return result.stdout.strip()[:12]  # Short hash
    except (subprocess.SubprocessError, OSError):
        pass
    return None


def _get_ci_environment() -> Optional[Dict[str, str]]:
    """Detect CI environment from environment variables."""
    env = {}

    # GitHub Actions
    if os.getenv("GITHUB_ACTIONS"):
        env["ci_provider"] = "github_actions"
        env["build_id"] = os.getenv("GITHUB_RUN_ID", "")
        env["branch"] = os.getenv("GITHUB_REF_NAME", "")
        env["triggered_by"] = os.getenv("GITHUB_ACTOR", "")
        return env

    # GitLab CI
    if os.getenv("GITLAB_CI"):
        env["ci_provider"] = "gitlab_ci"
        env["build_id"] = os.getenv("CI_JOB_ID", "")
        env["branch"] = os.getenv("CI_COMMIT_REF_NAME", "")
        env["triggered_by"] = os.getenv("GITLAB_USER_LOGIN", "")
        return env

    # Jenkins
    if os.getenv("JENKINS_URL"):
        env["ci_provider"] = "jenkins"
        env["build_id"] = os.getenv("BUILD_NUMBER", "")
        env["branch"] = os.getenv("GIT_BRANCH", "")
        env["triggered_by"] = os.getenv("BUILD_USER", "")
        return env

    # CircleCI
    if os.getenv("CIRCLECI"):
        env["ci_provider"] = "circleci"
        env["build_id"] = os.getenv("CIRCLE_BUILD_NUM", "")
        env["branch"] = os.getenv("CIRCLE_BRANCH", "")
        env["triggered_by"] = os.getenv("CIRCLE_USERNAME", "")
        return env

    return None


class ReportTimer:
    """Context manager for timing validation."""

    def __init__(self):
        self.start_time: float = 0
        self.duration_ms: int = 0

    def __enter__(self) -> "ReportTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.duration_ms = int((time.perf_counter() - self.start_time) * 1000)
