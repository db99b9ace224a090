"""
SQL Example Validation (Layer 4).

Validates fenced code blocks across SKILL.md, references/ and examples/:
- Fences are closed
- SQL blocks are not empty and carry a language tag
- SQL examples match the skill's dialect (SQL Server or PostgreSQL)

The dialect comes from the skill name: ``sqlserver-index-maintenance`` is
checked for PostgreSQL markers, ``postgresql-security`` for SQL Server ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Pattern, Tuple

from ..config import LintConfig
from ..errors import SkillParseError
from ..models import Skill
from ..parser import CodeBlock, extract_code_blocks, read_markdown, split_frontmatter
from .issues import LayerResult, display_path


SQLSERVER = "sqlserver"
POSTGRESQL = "postgresql"

# A name token starting with one of these names the dialect: sqlserver2019, pgbouncer
SQLSERVER_PREFIXES = ("sqlserver", "mssql", "tsql")
POSTGRESQL_PREFIXES = ("postgres", "pg")
CROSS_DIALECT_TOKENS = {"migration", "comparison", "compare", "cross"}

SQLSERVER_TAGS = {"tsql", "t-sql", "mssql", "sqlserver"}
POSTGRESQL_TAGS = {"plpgsql", "pgsql", "psql", "postgresql", "postgres"}
SQL_TAGS = {"sql"} | SQLSERVER_TAGS | POSTGRESQL_TAGS

LOOKS_LIKE_SQL = re.compile(
    r"^\s*(SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP|WITH|EXEC|EXECUTE|BEGIN|GRANT|REVOKE|"
    r"BACKUP|RESTORE|VACUUM|ANALYZE|EXPLAIN|DECLARE|SET|USE)\b",
    re.MULTILINE,
)

# Markers that identify a dialect, with a human-readable label
SQLSERVER_MARKERS: List[Tuple[Pattern, str]] = [
    (re.compile(r"\bsys\.dm_\w+", re.IGNORECASE), "DMV (sys.dm_*)"),
    (re.compile(r"^\s*GO\s*$", re.MULTILINE), "batch separator GO"),
    (re.compile(r"\bDBCC\b", re.IGNORECASE), "DBCC command"),
    (re.compile(r"@@\w+"), "@@ global variable"),
    (re.compile(r"\bWITH\s*\(\s*NOLOCK\s*\)", re.IGNORECASE), "NOLOCK hint"),
    (re.compile(r"\bSELECT\s+TOP\s*\(?\s*\d+", re.IGNORECASE), "SELECT TOP"),
    (re.compile(r"\bsp_\w+", re.IGNORECASE), "system stored procedure (sp_*)"),
    (re.compile(r"\bmsdb\.", re.IGNORECASE), "msdb database"),
    (re.compile(r"\bBACKUP\s+(DATABASE|LOG)\b", re.IGNORECASE), "BACKUP DATABASE/LOG"),
    (re.compile(r"\[dbo\]|\bdbo\.", re.IGNORECASE), "dbo schema"),
]

POSTGRESQL_MARKERS: List[Tuple[Pattern, str]] = [
    (re.compile(r"\bpg_\w+", re.IGNORECASE), "pg_* catalog or function"),
    (re.compile(
        r"(?<!:)::\s*(int\d?|integer|bigint|text|numeric|regclass|oid|date|timestamptz|timestamp|"
        r"interval|varchar|float\d?|bool|boolean|jsonb?)\b",
        re.IGNORECASE,
    ), ":: type cast"),
    (re.compile(r"\bVACUUM\b", re.IGNORECASE), "VACUUM"),
    (re.compile(r"^\s*\\[a-z]{1,4}\+?(\s|$)", re.MULTILINE), "psql meta-command"),
    (re.compile(r"\bCREATE\s+EXTENSION\b", re.IGNORECASE), "CREATE EXTENSION"),
    (re.compile(r"\bILIKE\b", re.IGNORECASE), "ILIKE"),
    (re.compile(r"\bLIMIT\s+\d+", re.IGNORECASE), "LIMIT clause"),
]

LINE_COMMENT = re.compile(r"--[^\n]*")
BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


@dataclass
class SqlValidationResult(LayerResult):
    """Result of SQL example validation."""

    dialect: Optional[str] = None
    blocks_checked: int = 0

    layer: ClassVar[str] = "sql"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["dialect"] = self.dialect
        data["blocks_checked"] = self.blocks_checked
        return data


def infer_dialect(skill_name: str) -> Optional[str]:
    """
    Infer the SQL dialect a skill documents from its name.

    Returns:
        ``sqlserver``, ``postgresql``, or None when unknown or cross-dialect.
    """
    name = skill_name.lower()
    tokens = set(re.split(r"[-_]", name))

    sqlserver = (
        any(token.startswith(SQLSERVER_PREFIXES) for token in tokens)
        or re.search(r"(^|[-_])sql-server($|[-_])", name) is not None
    )
    postgresql = any(token.startswith(POSTGRESQL_PREFIXES) for token in tokens)

    if tokens & CROSS_DIALECT_TOKENS or (sqlserver and postgresql):
        return None
    if sqlserver:
        return SQLSERVER
    if postgresql:
        return POSTGRESQL
    return None


def strip_sql_comments(sql: str) -> str:
    return LINE_COMMENT.sub("", BLOCK_COMMENT.sub("", sql))


class SqlValidator:
    """
    Validates SQL examples in a skill (Layer 4).
    """

    def __init__(self, config: Optional[LintConfig] = None):
        self.config = config or LintConfig()

    def validate(self, skill: Skill) -> SqlValidationResult:
        """
        Validate code blocks in every Markdown file of a skill.

        Args:
            skill: The skill to check.

        Returns:
            SqlValidationResult with the inferred dialect and issues.
        """
        result = SqlValidationResult(dialect=infer_dialect(skill.dir_name))
        if skill.document is None or not skill.document.readable:
            return result

        sources: List[Tuple[Path, str, int]] = [
            (skill.document.path, skill.document.body, skill.document.body_start_line)
        ]
        for resource in skill.resource_files():
            if resource.suffix.lower() != ".md":
                continue
            try:
                content = read_markdown(resource)
            except SkillParseError:
                # Reported by the link layer.
                continue
            try:
                _, body, start = split_frontmatter(content)
            except SkillParseError:
                body, start = content, 1
            sources.append((resource, body, start))

        for path, text, start in sources:
            shown = display_path(path, skill)
            for block in extract_code_blocks(text, start):
                self._check_block(block, shown, result)

        return result

    def _check_block(self, block: CodeBlock, path: str, result: SqlValidationResult) -> None:
        if not block.closed:
            result.add_issue(
                "UNCLOSED_CODE_FENCE",
                "Code fence is never closed; the rest of the file renders as code",
                path=path,
                line=block.line,
            )

        language = block.language
        if language not in SQL_TAGS:
            if not language and LOOKS_LIKE_SQL.search(block.content):
                result.add_issue(
                    "UNTAGGED_CODE_BLOCK",
                    "Code block looks like SQL but has no language tag",
                    path=path,
                    line=block.line,
                    severity="info",
                )
            else:
                return

        result.blocks_checked += 1

        if not block.content.strip():
            result.add_issue("EMPTY_CODE_BLOCK", "SQL code block is empty", path=path, line=block.line, severity="warning")
            return

        if not self.config.check_sql_dialect or result.dialect is None:
            return

        if result.dialect == POSTGRESQL and language in SQLSERVER_TAGS:
            result.add_issue(
                "DIALECT_TAG_MISMATCH",
                f"'{language}' code block in a PostgreSQL skill",
                path=path,
                line=block.line,
                severity="warning",
            )
        elif result.dialect == SQLSERVER and language in POSTGRESQL_TAGS:
            result.add_issue(
                "DIALECT_TAG_MISMATCH",
                f"'{language}' code block in a SQL Server skill",
                path=path,
                line=block.line,
                severity="warning",
            )

        foreign_markers = POSTGRESQL_MARKERS if result.dialect == SQLSERVER else SQLSERVER_MARKERS
        foreign_name = "PostgreSQL" if result.dialect == SQLSERVER else "SQL Server"
        sql = strip_sql_comments(block.content)
        found = [label for pattern, label in foreign_markers if pattern.search(sql)]
        if found:
            result.add_issue(
                "DIALECT_MISMATCH",
                f"SQL example uses {foreign_name} syntax: {', '.join(found)}",
                path=path,
                line=block.line,
                severity="warning",
            )
