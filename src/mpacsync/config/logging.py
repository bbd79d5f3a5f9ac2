"""Logging setup for the command-line entry point.

Library modules only create loggers. Handlers are installed here and always
write to stderr so the plan printed on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Final

PLAN_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(message)s"
DEBUG_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def log_format(*, verbose: bool) -> tuple[int, str]:
    """Return the level and line format for a run.

    A normal run only reports the engine summary, so logger names are left out.
    ``--verbose`` switches to DEBUG and names the stage that emitted each line.
    """

    if verbose:
        return logging.DEBUG, DEBUG_LOG_FORMAT
    return logging.INFO, PLAN_LOG_FORMAT


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    level, fmt = log_format(verbose=verbose)
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=force,
    )
