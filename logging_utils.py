"""Shared logging configuration helpers."""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Environment fallback when no --log-level flag is given
LOG_LEVEL_ENV = "OCRNOTE_LOG_LEVEL"


def add_logging_args(parser) -> None:
    """Add --log-level / -v / -q to an argparse parser."""
    parser.add_argument(
        "--log-level",
        choices=tuple(LOG_LEVELS),
        help=f"Set log verbosity (default: ${LOG_LEVEL_ENV} or info)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="More log output (-v for debug)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="count",
        default=0,
        help="Less log output (-q warnings, -qq errors only)",
    )


def resolve_log_level(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> int:
    """Resolve a numeric log level.

    An explicit level wins, then the environment, then -v/-q offsets
    from info.
    """
    name = log_level or os.environ.get(LOG_LEVEL_ENV)
    if name:
        try:
            return LOG_LEVELS[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None

    offset = verbose - quiet
    if offset >= 1:
        return logging.DEBUG
    if offset == 0:
        return logging.INFO
    if offset == -1:
        return logging.WARNING
    return logging.ERROR


def configure_logging(
    log_level: str | None = None,
    verbose: int = 0,
    quiet: int = 0,
) -> int:
    """Configure root logging on stderr and return the active level.

    Recognized text goes to stdout, so log records never do.
    """
    level = resolve_log_level(log_level=log_level, verbose=verbose, quiet=quiet)
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
        return level

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return level
