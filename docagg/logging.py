"""Logging setup shared by the docagg commands.

Console output is meant for people watching an aggregation run, so its level
follows ``--verbose``/``--quiet``. The optional log file is for post-mortems
of a failed run and always records debug detail for every repository.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "docagg"
_CONSOLE_FORMAT = "[docagg] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``docagg`` or one of its children, e.g. ``docagg.copier``."""
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI flags onto a console level; ``verbose`` wins over ``quiet``."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def _detach_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | str | None = None,
) -> logging.Logger:
    """Install the console handler and, when ``log_file`` is given, a debug file sink.

    Calling this again replaces the handlers from the previous call.
    """
    logger = get_logger()
    logger.propagate = False
    _detach_handlers(logger)

    level = console_level(verbose=verbose, quiet=quiet)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is None:
        logger.setLevel(level)
        return logger

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink = logging.FileHandler(log_path, encoding="utf-8")
    sink.setLevel(logging.DEBUG)
    sink.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(sink)
    logger.setLevel(logging.DEBUG)
    return logger


__all__ = ["configure_logging", "console_level", "get_logger"]
