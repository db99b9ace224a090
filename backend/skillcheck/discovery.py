"""Skill and corpus discovery."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger

from .errors import SkillParseError
from .models import Corpus, Skill, SkillDocument, SkillTree
from .parser import load_document


SKILL_MD_NAMES = ("SKILL.md", "skill.md")
RESOURCE_DIRS = ("references", "examples")


def find_skill_md(skill_dir: Path) -> Optional[Path]:
    """
    Find the SKILL.md file in a skill directory.

    Prefers SKILL.md (uppercase) but accepts skill.md (lowercase).
    """
    for name in SKILL_MD_NAMES:
        path = skill_dir / name
        if path.is_file():
            return path
    return None


def is_skill_dir(path: Path) -> bool:
    return path.is_dir() and find_skill_md(path) is not None


def _list_resources(skill_dir: Path, subdir: str) -> List[Path]:
    resource_dir = skill_dir / subdir
    if not resource_dir.is_dir():
        return []
    return sorted(p for p in resource_dir.rglob("*") if p.is_file())


def load_skill(skill_dir: Path, tree: Optional[str] = None) -> Skill:
    """
    Load a skill directory.

    A directory without SKILL.md still yields a Skill (with ``document=None``)
    and an unreadable SKILL.md yields a document marked unreadable, so that
    the validators can report both.
    """
    skill_dir = Path(skill_dir)
    skill_md = find_skill_md(skill_dir)
    document = None
    if skill_md is not None:
        try:
            document = load_document(skill_md)
        except SkillParseError as e:
            logger.warning("Cannot read {path}: {error}", path=skill_md, error=e)
            document = SkillDocument(path=skill_md, readable=False, parse_error=str(e))

    return Skill(
        dir=skill_dir,
        tree=tree,
        document=document,
        references=_list_resources(skill_dir, "references"),
        examples=_list_resources(skill_dir, "examples"),
    )


def discover_skills(tree_dir: Path, tree: Optional[str] = None) -> List[Skill]:
    """
    Discover all skills in the given directory.

    Args:
        tree_dir: Directory whose subdirectories are skills.
        tree: Tree name recorded on each skill.

    Returns:
        Skills sorted by directory name.
    """
    if not tree_dir.is_dir():
        return []

    skills: List[Skill] = []
    for skill_dir in sorted(tree_dir.iterdir()):
        if not skill_dir.is_dir() or skill_dir.name.startswith("."):
            continue

        if find_skill_md(skill_dir) is None:
            has_resources = any((skill_dir / d).is_dir() for d in RESOURCE_DIRS)
            if not has_resources:
                logger.debug("Skipping {path}: no SKILL.md", path=skill_dir)
                continue
            # Looks like a skill that lost its SKILL.md; keep it so it gets reported.
            logger.info("Skill directory without SKILL.md: {path}", path=skill_dir)

        skills.append(load_skill(skill_dir, tree=tree))

    logger.debug("Discovered {count} skills in {path}", count=len(skills), path=tree_dir)
    return skills


def discover_corpus(root: Path, tree_names: Iterable[str]) -> Corpus:
    """
    Discover every configured skill tree under ``root``.

    Falls back to treating ``root`` as a single tree when none of the named
    trees exist, and to a one-skill corpus when ``root`` is itself a skill.
    """
    root = Path(root)
    corpus = Corpus(root=root)

    if is_skill_dir(root):
        logger.debug("{path} is a single skill", path=root)
        corpus.trees.append(SkillTree(name=None, path=root.parent, skills=[load_skill(root)]))
        return corpus

    for name in tree_names:
        tree_dir = root / name
        if not tree_dir.is_dir():
            logger.debug("Tree {name} not found under {root}", name=name, root=root)
            continue
        corpus.trees.append(SkillTree(name=name, path=tree_dir, skills=discover_skills(tree_dir, tree=name)))

    if not corpus.trees:
        skills = discover_skills(root)
        if skills:
            logger.debug("No named trees under {root}, using it as a single tree", root=root)
            corpus.trees.append(SkillTree(name=None, path=root, skills=skills))

    return corpus
