"""
Logging — Root logger setup for the scopekit CLI

Library modules only create loggers (logging.getLogger(__name__)); handlers
are attached here, once, by the command-line entry point.

Level resolution: --quiet -> ERROR, --verbose -> DEBUG, otherwise the
explicit level, else SCOPEKIT_LOG_LEVEL, else WARNING.
"""

import logging
import os
import sys
from typing import Optional


LOG_LEVEL_ENV = "SCOPEKIT_LOG_LEVEL"
DEFAULT_LEVEL = "WARNING"

FORMATS = {
    "simple": "%(levelname)-8s %(message)s",
    "detailed": "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s",
}


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """Effective numeric level. Raises ValueError for an unknown level name."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    name = level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LEVEL
    numeric = getattr(logging, name.upper(), None)
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {name}")
    return numeric


def setup_logging(
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
    format_style: str = "simple",
) -> int:
    """
    Replace root handlers with a single stderr handler.

    Args:
        level: Base level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        quiet: Only errors
        verbose: Everything down to DEBUG
        format_style: "simple" or "detailed"

    Returns:
        The effective numeric level
    """
    log_level = resolve_level(level, quiet, verbose)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(FORMATS.get(format_style, FORMATS["simple"]))
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    logging.getLogger("scopekit").setLevel(log_level)
    return log_level
