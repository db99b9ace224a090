from __future__ import annotations

import sys

from loguru import logger

PACKAGE = "backend.skillcheck"
LOG_FORMAT = "<level>{level: <8}</level> <cyan>{name}</cyan> - {message}"


def configure_logging(verbose: bool = False) -> None:
    """Route skillcheck logs to stderr. Library use keeps them disabled."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format=LOG_FORMAT)
    logger.enable(PACKAGE)
