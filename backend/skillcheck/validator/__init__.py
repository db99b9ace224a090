"""
Skill corpus validation layers.

This package provides multi-layer validation for agent skill corpora:
- Layer 1: Frontmatter Validation (keys, name, description)
- Layer 2: Structure Validation (body length, sections, resource layout)
- Layer 3: Link Validation (relative links, referenced files, anchors)
- Layer 4: SQL Example Validation (code fences, dialect consistency)
- Layer 5: Tree Parity Validation (alignment across skill trees)
"""

from .issues import LintIssue, LayerResult, SEVERITIES
from .frontmatter import FrontmatterValidator, FrontmatterValidationResult
from .structure import (
    StructureValidator,
    StructureValidationResult,
    SectionValidation,
    SectionRequirement,
)
from .links import LinkValidator, LinkValidationResult
from .sql import SqlValidator, SqlValidationResult, infer_dialect
from .parity import TreeParityValidator, ParityValidationResult
from .engine import (
    ValidationEngine,
    SkillValidationResult,
    CorpusValidationResult,
    validate_corpus,
)

__all__ = [
    # Issues
    "LintIssue",
    "LayerResult",
    "SEVERITIES",
    # Layer 1: Frontmatter
    "FrontmatterValidator",
    "FrontmatterValidationResult",
    # Layer 2: Structure
    "StructureValidator",
    "StructureValidationResult",
    "SectionValidation",
    "SectionRequirement",
    # Layer 3: Links
    "LinkValidator",
    "LinkValidationResult",
    # Layer 4: SQL
    "SqlValidator",
    "SqlValidationResult",
    "infer_dialect",
    # Layer 5: Parity
    "TreeParityValidator",
    "ParityValidationResult",
    # Engine
    "ValidationEngine",
    "SkillValidationResult",
    "CorpusValidationResult",
    "validate_corpus",
]
