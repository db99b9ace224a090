"""
Link Validation (Layer 3).

Validates cross-references inside a skill:
- Relative links and images resolve to files on disk
- ``references/*.md`` and ``examples/*.md`` mentioned in code spans exist
- ``#fragment`` anchors match a heading in the target file
- Every file under references/ and examples/ is reachable from SKILL.md
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Set, Tuple
from urllib.parse import unquote

from ..config import LintConfig
from ..errors import SkillParseError
from ..models import Skill
from ..parser import Link, extract_headings, extract_links, read_markdown, split_frontmatter
from .issues import LayerResult, display_path


@dataclass
class LinkValidationResult(LayerResult):
    """Result of link validation."""

    links_checked: int = 0
    files_scanned: List[str] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)

    layer: ClassVar[str] = "links"

    def add_orphan(self, item: str) -> None:
        """Add an orphan file."""
        self.orphans.append(item)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["links_checked"] = self.links_checked
        data["files_scanned"] = self.files_scanned
        data["orphans"] = self.orphans
        return data


class LinkValidator:
    """
    Validates links between a skill's Markdown files (Layer 3).

    Starts at SKILL.md and follows relative Markdown links inside the skill
    directory. Resource files that are never reached are orphans; they are
    still scanned for broken links of their own.
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()
        self._slug_cache: Dict[Path, Set[str]] = {}

    def validate(self, skill: Skill) -> LinkValidationResult:
        """
        Validate links in a skill.

        Args:
            skill: The skill to check.

        Returns:
            LinkValidationResult with issues and orphan files.
        """
        result = LinkValidationResult()
        self._slug_cache = {}
        if skill.document is None or not skill.document.readable:
            return result

        skill_root = skill.dir.resolve()
        scanned: Set[Path] = set()
        reachable: Set[Path] = set()

        queue = [skill.document.path.resolve()]
        while queue:
            source = queue.pop(0)
            if source in scanned:
                continue
            scanned.add(source)
            for target in self._scan_file(source, skill, result):
                if target in reachable:
                    continue
                reachable.add(target)
                if target.suffix.lower() == ".md" and target.is_relative_to(skill_root):
                    queue.append(target)

        resources = [f.resolve() for f in skill.resource_files()]
        for resource in resources:
            if resource.suffix.lower() == ".md" and resource not in scanned:
                scanned.add(resource)
                self._scan_file(resource, skill, result)

        for resource in resources:
            if resource not in reachable:
                shown = display_path(resource, skill)
                result.add_orphan(shown)
                result.add_issue(
                    "ORPHAN_FILE",
                    f"'{resource.relative_to(skill_root).as_posix()}' is not linked from SKILL.md",
                    path=shown,
                    severity="warning",
                )

        result.files_scanned = sorted(display_path(p, skill) for p in scanned)
        return result

    def _markdown_text(self, path: Path, skill: Skill) -> Tuple[str, int]:
        """Return (body text, first body line) for a Markdown file, without frontmatter."""
        document = skill.document
        if document is not None and path == document.path.resolve():
            return document.body, document.body_start_line

        content = read_markdown(path)
        try:
            raw, body, start = split_frontmatter(content)
        except SkillParseError:
            return content, 1
        return (body, start) if raw is not None else (content, 1)

    def _slugs(self, path: Path, skill: Skill) -> Set[str]:
        if path not in self._slug_cache:
            text, start = self._markdown_text(path, skill)
            self._slug_cache[path] = {h.slug for h in extract_headings(text, start)}
        return self._slug_cache[path]

    def _scan_file(self, source: Path, skill: Skill, result: LinkValidationResult) -> List[Path]:
        """Check every link in ``source``; return the existing local targets."""
        shown = display_path(source, skill)
        try:
            text, start = self._markdown_text(source, skill)
        except SkillParseError as e:
            result.add_issue("UNREADABLE_FILE", str(e), path=shown)
            return []

        targets = []
        for link in extract_links(text, start):
            result.links_checked += 1
            target = self._check_link(link, source, skill, result, shown)
            if target is not None:
                targets.append(target)
        return targets

    def _check_link(
        self,
        link: Link,
        source: Path,
        skill: Skill,
        result: LinkValidationResult,
        shown: str,
    ) -> Optional[Path]:
        if link.is_external:
            return None

        path_part = unquote(link.path_part).strip()
        fragment = unquote(link.fragment).lower() if link.fragment else None

        if not path_part:
            if fragment and fragment not in self._slugs(source, skill):
                result.add_issue(
                    "BROKEN_ANCHOR",
                    f"Anchor '#{fragment}' does not match any heading in this file",
                    path=shown,
                    line=link.line,
                    severity="warning",
                )
            return None

        if path_part.startswith("/") or path_part.startswith("\\"):
            result.add_issue(
                "ABSOLUTE_PATH_LINK",
                f"Link '{link.target}' uses an absolute path; use a path relative to the file",
                path=shown,
                line=link.line,
                severity="warning",
            )
            return None

        # Code-span mentions are written relative to the skill directory.
        base = skill.dir if link.kind == "mention" else source.parent
        target = (base / path_part).resolve()
        skill_root = skill.dir.resolve()

        if not target.is_relative_to(skill_root):
            result.add_issue(
                "LINK_OUTSIDE_SKILL",
                f"Link '{link.target}' points outside the skill directory",
                path=shown,
                line=link.line,
                severity="warning",
            )

        if not target.exists():
            if link.kind == "mention":
                result.add_issue(
                    "BROKEN_REFERENCE",
                    f"Referenced file '{path_part}' does not exist",
                    path=shown,
                    line=link.line,
                )
            else:
                result.add_issue(
                    "BROKEN_LINK",
                    f"Link target '{path_part}' does not exist",
                    path=shown,
                    line=link.line,
                )
            return None

        if fragment and target.is_file() and target.suffix.lower() == ".md":
            try:
                slugs = self._slugs(target, skill)
            except SkillParseError as e:
                result.add_issue("UNREADABLE_FILE", str(e), path=display_path(target, skill))
                return target
            if fragment not in slugs:
                result.add_issue(
                    "BROKEN_ANCHOR",
                    f"Anchor '#{fragment}' does not match any heading in '{path_part}'",
                    path=shown,
                    line=link.line,
                    severity="warning",
                )

        return target
