"""
Configuration loading from skillcheck.yaml and environment variables.

Priority: environment variables > config file > defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError


CONFIG_FILENAMES = ("skillcheck.yaml", ".skillcheck.yaml")
ENV_CONFIG_PATH = "SKILLCHECK_CONFIG"
ENV_STRICT = "SKILLCHECK_STRICT"
ENV_TREES = "SKILLCHECK_TREES"

DEFAULT_TREES = ["skills", "skills-codex", "skills-gemini"]

RuleLevel = Literal["error", "warning", "info", "off"]


class LintConfig(BaseModel):
    """Conventions a skill corpus is checked against."""

    model_config = ConfigDict(extra="forbid")

    trees: List[str] = Field(default_factory=lambda: list(DEFAULT_TREES))
    allowed_frontmatter_keys: List[str] = Field(default_factory=lambda: ["name", "description"])
    max_name_length: int = Field(default=64, ge=1)
    max_description_length: int = Field(default=1024, ge=1)
    min_description_length: int = Field(default=20, ge=0)
    max_body_lines: int = Field(default=500, ge=1)
    required_sections: List[str] = Field(default_factory=lambda: ["Overview", "When to Use"])
    recommended_sections: List[str] = Field(
        default_factory=lambda: ["Instructions", "Examples", "References", "Related Skills"]
    )
    section_aliases: Dict[str, str] = Field(default_factory=dict)
    reserved_words: List[str] = Field(default_factory=lambda: ["anthropic", "claude"])
    check_sql_dialect: bool = True
    check_tree_parity: bool = True
    strict: bool = False
    rules: Dict[str, RuleLevel] = Field(default_factory=dict)

    @field_validator("rules", mode="before")
    @classmethod
    def unquoted_off(cls, v: Any) -> Any:
        # YAML 1.1 reads a bare `off` as False
        if isinstance(v, dict):
            return {rule: "off" if level is False else level for rule, level in v.items()}
        return v

    @field_validator("rules")
    @classmethod
    def normalize_rule_ids(cls, v: Dict[str, RuleLevel]) -> Dict[str, RuleLevel]:
        return {rule.upper(): level for rule, level in v.items()}

    @field_validator("section_aliases")
    @classmethod
    def normalize_aliases(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {alias.lower().strip(): canonical for alias, canonical in v.items()}

    @field_validator("trees")
    @classmethod
    def validate_trees(cls, v: List[str]) -> List[str]:
        trees = [t.strip().strip("/") for t in v if t.strip()]
        if not trees:
            raise ValueError("at least one tree directory is required")
        return trees


def _is_truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def find_config_file(root: Optional[Path] = None, config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the configuration file.

    Raises:
        ConfigError: If an explicitly requested file does not exist.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        path = Path(env_path)
        if not path.is_file():
            raise ConfigError(f"Config file from ${ENV_CONFIG_PATH} not found: {path}")
        return path

    if root is not None:
        for name in CONFIG_FILENAMES:
            candidate = Path(root) / name
            if candidate.is_file():
                return candidate
    return None


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a YAML mapping")
    if isinstance(data.get("skillcheck"), dict):
        data = data["skillcheck"]
    return data


def load_config(root: Optional[Path] = None, config_path: Optional[Path] = None) -> LintConfig:
    """
    Load configuration for a corpus.

    Args:
        root: Corpus root searched for skillcheck.yaml / .skillcheck.yaml.
        config_path: Explicit config file, overriding the search.

    Returns:
        LintConfig with environment overrides applied.

    Raises:
        ConfigError: If the file is unreadable or holds invalid values.
    """
    path = find_config_file(root, config_path)
    data: Dict[str, Any] = {}
    if path is not None:
        data = _read_config_file(path)
        logger.debug("Loaded config from {path}", path=path)

    if os.getenv(ENV_STRICT):
        data["strict"] = _is_truthy(os.environ[ENV_STRICT])
    if os.getenv(ENV_TREES):
        data["trees"] = os.environ[ENV_TREES].split(",")

    try:
        return LintConfig.model_validate(data)
    except ValidationError as e:
        source = f" in {path}" if path else ""
        raise ConfigError(f"Invalid configuration{source}: {e}") from e
