"""
Markdown and frontmatter parsing for skill files.

Splits SKILL.md frontmatter from its body and extracts the pieces the
validators inspect: headings, links and fenced code blocks. Anything inside a
fenced code block is ignored when looking for headings and links.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from .errors import SkillParseError
from .models import SkillDocument


FENCE_PATTERN = re.compile(r"^\s{0,3}(`{3,}|~{3,})\s*([^`\s]*)")
HEADING_PATTERN = re.compile(r"^\s{0,3}(#{1,6})\s+(.+?)\s*#*\s*$")
INLINE_LINK_PATTERN = re.compile(
    r"(!?)\[((?:\[[^\]]*\]|[^\[\]])*)\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*)?\s*\)"
)
LINK_DEFINITION_PATTERN = re.compile(r"^\s{0,3}\[([^\]]+)\]:\s*<?([^\s>]+)>?")
CODE_SPAN_PATTERN = re.compile(r"(`+)(.+?)\1")
TOP_LEVEL_KEY_PATTERN = re.compile(r"^([^\s#:][^:]*?)\s*:")
RESOURCE_MENTION_PATTERN = re.compile(r"^(?:\./)?((?:references|examples)/[^\s`]+?\.md(?:#[^\s`]*)?)$")


@dataclass
class Heading:
    """A Markdown ATX heading."""

    level: int
    title: str
    line: int
    slug: str


@dataclass
class Link:
    """A link found in Markdown text."""

    target: str
    text: str
    line: int
    kind: str = "inline"  # inline | image | definition | mention

    @property
    def is_external(self) -> bool:
        return bool(re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*:", self.target))

    @property
    def path_part(self) -> str:
        """Target without ``#fragment`` or ``?query``."""
        return re.split(r"[#?]", self.target, maxsplit=1)[0]

    @property
    def fragment(self) -> Optional[str]:
        if "#" not in self.target:
            return None
        return self.target.split("#", 1)[1]


@dataclass
class CodeBlock:
    """A fenced code block."""

    language: str
    content: str
    line: int
    closed: bool = True


def split_frontmatter(content: str) -> Tuple[Optional[str], str, int]:
    """
    Split raw frontmatter text from the Markdown body.

    Args:
        content: Raw file content.

    Returns:
        Tuple of (frontmatter YAML text or None, body, 1-based body start line).
        Frontmatter is None when the content does not open with ``---``.

    Raises:
        SkillParseError: If the frontmatter block is opened but never closed.
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return None, content, 1

    for index in range(1, len(lines)):
        if lines[index].strip() == "---":
            raw = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            return raw, body, index + 2

    raise SkillParseError("Frontmatter not properly closed with ---")


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Parse YAML frontmatter from SKILL.md content.

    Args:
        content: Raw content of a SKILL.md file.

    Returns:
        Tuple of (metadata mapping, Markdown body).

    Raises:
        SkillParseError: If frontmatter is missing or is not a YAML mapping.
    """
    raw, body, _ = split_frontmatter(content)
    if raw is None:
        raise SkillParseError("SKILL.md must start with YAML frontmatter (---)")
    return _load_yaml_mapping(raw), body


def _load_yaml_mapping(raw: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SkillParseError(f"Invalid YAML in frontmatter: {e}") from e

    if data is None:
        raise SkillParseError("Frontmatter is empty")
    if not isinstance(data, dict):
        raise SkillParseError("Frontmatter must be a YAML mapping")
    return {str(k): v for k, v in data.items()}


def _key_lines(raw: str) -> Dict[str, int]:
    """File line numbers of top-level frontmatter keys (the block starts on line 2)."""
    lines: Dict[str, int] = {}
    for offset, line in enumerate(raw.splitlines()):
        match = TOP_LEVEL_KEY_PATTERN.match(line)
        if match and match.group(1) not in lines:
            lines[match.group(1)] = offset + 2
    return lines


def read_markdown(path: Path) -> str:
    """Read a Markdown file as UTF-8."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SkillParseError(f"Cannot read {path}: {e}") from e


def load_document(path: Path) -> SkillDocument:
    """
    Load a SKILL.md file.

    Content problems (missing or malformed frontmatter) are recorded on the
    returned document rather than raised.

    Raises:
        SkillParseError: If the file cannot be read.
    """
    content = read_markdown(path)
    try:
        raw, body, body_start_line = split_frontmatter(content)
    except SkillParseError as e:
        return SkillDocument(path=path, has_frontmatter=True, body=content, parse_error=str(e))

    if raw is None:
        return SkillDocument(path=path, body=body, body_start_line=body_start_line)

    try:
        frontmatter = _load_yaml_mapping(raw)
    except SkillParseError as e:
        return SkillDocument(
            path=path,
            has_frontmatter=True,
            body=body,
            body_start_line=body_start_line,
            parse_error=str(e),
        )

    return SkillDocument(
        path=path,
        has_frontmatter=True,
        frontmatter=frontmatter,
        key_lines=_key_lines(raw),
        body=body,
        body_start_line=body_start_line,
    )


def _iter_lines(markdown: str, start_line: int = 1) -> Iterator[Tuple[int, str, bool]]:
    """Yield (line number, line, inside a fence) for each line, fence markers included as fenced."""
    fence: Optional[str] = None
    for offset, line in enumerate(markdown.splitlines()):
        lineno = start_line + offset
        match = FENCE_PATTERN.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                yield lineno, line, True
                continue
            yield lineno, line, False
        else:
            if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence) \
                    and not line.strip()[len(match.group(1)):].strip():
                fence = None
            yield lineno, line, True


def slugify(title: str) -> str:
    """GitHub-style anchor slug for a heading title."""
    text = title.strip().lower()
    text = re.sub(r"[^\w\- ]", "", text)
    return text.replace(" ", "-")


def extract_headings(markdown: str, start_line: int = 1) -> List[Heading]:
    """Extract ATX headings outside fenced code blocks."""
    headings: List[Heading] = []
    seen: Dict[str, int] = {}

    for lineno, line, fenced in _iter_lines(markdown, start_line):
        if fenced:
            continue
        match = HEADING_PATTERN.match(line)
        if not match:
            continue
        title = match.group(2).strip()
        slug = slugify(title)
        if slug in seen:
            seen[slug] += 1
            slug = f"{slug}-{seen[slug]}"
        else:
            seen[slug] = 0
        headings.append(Heading(level=len(match.group(1)), title=title, line=lineno, slug=slug))

    return headings


def extract_links(markdown: str, start_line: int = 1) -> List[Link]:
    """
    Extract links outside fenced code blocks.

    Finds inline links and images, reference-style link definitions, and
    bare ``references/*.md`` or ``examples/*.md`` paths written as inline code.
    """
    links: List[Link] = []

    for lineno, line, fenced in _iter_lines(markdown, start_line):
        if fenced:
            continue

        for span in CODE_SPAN_PATTERN.finditer(line):
            mention = RESOURCE_MENTION_PATTERN.match(span.group(2).strip())
            if mention:
                links.append(Link(target=mention.group(1), text=mention.group(1), line=lineno, kind="mention"))

        # Links written inside code spans are examples, not links.
        text = CODE_SPAN_PATTERN.sub(lambda m: " " * len(m.group(0)), line)

        definition = LINK_DEFINITION_PATTERN.match(text)
        if definition:
            links.append(Link(target=definition.group(2), text=definition.group(1), line=lineno, kind="definition"))
            continue

        for match in INLINE_LINK_PATTERN.finditer(text):
            links.append(_inline_link(match, lineno))
            # linked image: [![alt](img.png)](target)
            links.extend(_inline_link(inner, lineno) for inner in INLINE_LINK_PATTERN.finditer(match.group(2)))

    return links


def _inline_link(match: re.Match, lineno: int) -> Link:
    kind = "image" if match.group(1) else "inline"
    return Link(target=match.group(3), text=match.group(2), line=lineno, kind=kind)


def extract_code_blocks(markdown: str, start_line: int = 1) -> List[CodeBlock]:
    """Extract fenced code blocks. An unclosed fence runs to the end of the text."""
    blocks: List[CodeBlock] = []
    fence: Optional[str] = None
    language = ""
    opened_at = 0
    content: List[str] = []

    for offset, line in enumerate(markdown.splitlines()):
        lineno = start_line + offset
        match = FENCE_PATTERN.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                language = match.group(2).lower()
                opened_at = lineno
                content = []
            continue

        if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence) \
                and not line.strip()[len(match.group(1)):].strip():
            blocks.append(CodeBlock(language=language, content="\n".join(content), line=opened_at))
            fence = None
        else:
            content.append(line)

    if fence is not None:
        blocks.append(CodeBlock(language=language, content="\n".join(content), line=opened_at, closed=False))

    return blocks
