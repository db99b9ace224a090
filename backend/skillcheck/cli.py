"""Command line interface: ``skillcheck check | list | parity``."""

from enum import Enum
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from pydantic import ValidationError

from . import __version__
from .config import LintConfig, load_config
from .discovery import discover_corpus
from .errors import ConfigError
from .log import configure_logging
from .models import Corpus
from .report import ReportTimer, generate_report
from .validator import CorpusValidationResult, ValidationEngine

cli = typer.Typer(help="Lint agent skill corpora against the SKILL.md conventions.", no_args_is_help=True)

DESCRIPTION_WIDTH = 80


class OutputFormat(str, Enum):
    text = "text"
    json = "json"
    markdown = "markdown"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"skillcheck {__version__}")
        raise typer.Exit()


@cli.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = False,
):
    """Lint agent skill corpora against the SKILL.md conventions."""


def _load(root: Path, config_path: Optional[Path], trees: Optional[List[str]]) -> LintConfig:
    if not root.is_dir():
        typer.echo(f"Error: directory not found: {root}", err=True)
        raise typer.Exit(code=2)
    try:
        config = load_config(root, config_path)
        if trees:
            config = LintConfig.model_validate({**config.model_dump(), "trees": trees})
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)
    except ValidationError as e:
        typer.echo(f"Error: Invalid --tree: {e}", err=True)
        raise typer.Exit(code=2)
    return config


def _render_text(result: CorpusValidationResult, verbose: bool) -> str:
    lines = []
    for error in result.errors:
        lines.append(f"[ERROR] {error}")
    for issue in result.issues:
        if issue.severity == "info" and not verbose:
            continue
        lines.append(str(issue))
    if lines:
        lines.append("")
    lines.append(result.summary())
    return "\n".join(lines)


@cli.command("check")
def check(
    root: Annotated[
        Path,
        typer.Argument(help="Corpus root, a single skill tree, or a single skill directory."),
    ] = Path("."),
    skill: Annotated[
        Optional[List[str]],
        typer.Option("--skill", "-s", help="Only check this skill. Can be specified multiple times."),
    ] = None,
    tree: Annotated[
        Optional[List[str]],
        typer.Option("--tree", "-t", help="Skill tree directory to check. Can be specified multiple times."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Config file. Default: skillcheck.yaml in ROOT."),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as failures."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.text,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the report to this file instead of stdout."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show info-level issues and debug logs."),
    ] = False,
):
    """Check every skill in a corpus."""
    configure_logging(verbose)
    config = _load(root, config_path, tree)
    engine = ValidationEngine(config)

    with ReportTimer() as timer:
        corpus = discover_corpus(root, config.trees)
        result = engine.validate_corpus(corpus, strict=True if strict else None, only=skill)

    if output_format == OutputFormat.text:
        text = _render_text(result, verbose)
    else:
        report = generate_report(result, corpus, timer.duration_ms)
        text = report.to_json() if output_format == OutputFormat.json else report.to_markdown()

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Report written to {output}")
        if output_format != OutputFormat.text:
            typer.echo(result.summary())
    else:
        typer.echo(text)

    raise typer.Exit(code=result.exit_code)


def _discover(root: Path, config: LintConfig) -> Corpus:
    corpus = discover_corpus(root, config.trees)
    if not corpus.all_skills():
        typer.echo(f"No skills found under {root}", err=True)
        raise typer.Exit(code=1)
    return corpus


@cli.command("list")
def list_skills(
    root: Annotated[Path, typer.Argument(help="Corpus root.")] = Path("."),
    tree: Annotated[
        Optional[List[str]],
        typer.Option("--tree", "-t", help="Skill tree directory to list. Can be specified multiple times."),
    ] = None,
    config_path: Annotated[Optional[Path], typer.Option("--config", "-c", help="Config file.")] = None,
):
    """List the skills of a corpus with their descriptions."""
    configure_logging()
    config = _load(root, config_path, tree)
    corpus = _discover(root, config)

    for skill in corpus.all_skills():
        description = " ".join(skill.description.split())
        if len(description) > DESCRIPTION_WIDTH:
            description = description[: DESCRIPTION_WIDTH - 3] + "..."
        typer.echo(f"{skill.label}: {description}")


@cli.command("parity")
def parity(
    root: Annotated[Path, typer.Argument(help="Corpus root.")] = Path("."),
    config_path: Annotated[Optional[Path], typer.Option("--config", "-c", help="Config file.")] = None,
):
    """Compare the skill trees of a corpus."""
    configure_logging()
    config = _load(root, config_path, None)
    corpus = _discover(root, config)

    engine = ValidationEngine(config)
    result = engine.parity_validator.validate(corpus)
    result.apply_overrides(config.rules)

    if len(result.trees) < 2:
        typer.echo(f"Only one skill tree found ({', '.join(result.trees)}); nothing to compare.")
    else:
        for tree_name, names in result.missing.items():
            if names:
                typer.echo(f"{tree_name}: missing {len(names)}: {', '.join(names)}")
            else:
                typer.echo(f"{tree_name}: complete")

    for issue in result.issues:
        if issue.rule != "MISSING_IN_TREE":
            typer.echo(str(issue))

    typer.echo(f"Tree Parity: {result.parity_score}% ({result.skills_complete}/{result.skills_total} skills)")
    raise typer.Exit(code=0 if result.valid else 1)
