"""
Shared fixtures: small skill corpora written to tmp_path.
"""

from pathlib import Path
from typing import Dict, Optional

import pytest
from loguru import logger


DEFAULT_DESCRIPTION = "Diagnose blocking chains and lock waits on production database instances."

DEFAULT_BODY = """# {title}

## Overview

Walks through finding the head blocker of a blocking chain.

## When to Use

Use when sessions pile up behind a lock or queries stop making progress.

## Instructions

1. Capture the current requests and their wait types.
2. Follow the blocking session ids up to the head blocker.

## Examples

```sql
SELECT session_id, blocking_session_id, wait_type
FROM sys.dm_exec_requests
WHERE blocking_session_id <> 0;
```

## References

{references}

## Related Skills

- Index maintenance for the tables that show up in lock waits.
"""


def build_frontmatter(name: str, description: str = DEFAULT_DESCRIPTION) -> str:
    return f"---\nname: {name}\ndescription: {description}\n---\n"


def build_body(title: str, resources: Optional[Dict[str, str]] = None) -> str:
    links = [f"- [{Path(p).stem}]({p})" for p in sorted(resources or {})]
    references = "\n".join(links) if links else "Vendor documentation covers the wait types in depth."
    return DEFAULT_BODY.format(title=title, references=references)


def write_skill(
    parent: Path,
    dir_name: str,
    name: Optional[str] = None,
    description: str = DEFAULT_DESCRIPTION,
    body: Optional[str] = None,
    frontmatter: Optional[str] = None,
    resources: Optional[Dict[str, str]] = None,
    skill_md_name: str = "SKILL.md",
) -> Path:
    """
    Write a skill directory.

    Args:
        parent: Tree directory (or any directory) to create the skill in.
        dir_name: Skill directory name.
        name: Frontmatter name, defaults to ``dir_name``.
        description: Frontmatter description.
        body: Markdown body; defaults to a body that passes every check and
            links each resource file from its References section.
        frontmatter: Raw frontmatter block replacing the generated one.
        resources: Relative path (``references/x.md``) to file content.
        skill_md_name: File name of the skill file.

    Returns:
        The skill directory.
    """
    skill_dir = parent / dir_name
    skill_dir.mkdir(parents=True, exist_ok=True)

    for rel_path, content in (resources or {}).items():
        path = skill_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    if frontmatter is None:
        frontmatter = build_frontmatter(name or dir_name, description)
    if body is None:
        body = build_body(dir_name, resources)

    (skill_dir / skill_md_name).write_text(frontmatter + body, encoding="utf-8")
    return skill_dir


@pytest.fixture
def make_skill():
    """Factory writing a skill directory; see ``write_skill``."""
    return write_skill


@pytest.fixture
def skill_dir(tmp_path):
    """A single valid SQL Server skill with one reference file."""
    return write_skill(
        tmp_path / "skills",
        "sqlserver-blocking",
        resources={"references/lock-types.md": "# Lock Types\n\n## Shared Locks\n\nRead locks.\n"},
    )


@pytest.fixture
def corpus_root(tmp_path):
    """A corpus with three trees; one skill is missing from skills-gemini."""
    for tree in ("skills", "skills-codex", "skills-gemini"):
        write_skill(tmp_path / tree, "sqlserver-blocking")
        write_skill(tmp_path / tree, "postgresql-vacuum", body=build_body("postgresql-vacuum").replace(
            "FROM sys.dm_exec_requests\nWHERE blocking_session_id <> 0;",
            "FROM pg_stat_activity\nWHERE wait_event_type = 'Lock';",
        ))
    write_skill(tmp_path / "skills", "sqlserver-backup")
    write_skill(tmp_path / "skills-codex", "sqlserver-backup")
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logging():
    """Keep CLI log handlers from leaking between tests."""
    yield
    logger.remove()
    logger.disable("backend.skillcheck")
