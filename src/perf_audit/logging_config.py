"""
Logging setup for perf-audit.

Terminal logs go through a rich handler on stderr, so ``--json`` output
on stdout is never interleaved with log lines. An optional plain-text
file handler records the same events for CI artifacts.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "perf_audit"

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Chatty third-party loggers, raised to WARNING unless running verbose
_NOISY_LOGGERS = ("watchfiles",)


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.INFO


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Install the perf-audit log handlers on the root logger.

    Args:
        verbose: DEBUG level, with timestamps, source paths and locals in tracebacks
        quiet: ERROR level only; wins over ``verbose``
        log_file: Also append plain-text records to this file

    Returns:
        The ``perf_audit`` logger
    """
    level = _level_for(verbose, quiet)

    terminal = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    terminal.setFormatter(logging.Formatter("%(message)s"))
    handlers: list[logging.Handler] = [terminal]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    # force=True replaces handlers from a previous call in the same process
    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``perf_audit`` namespace.

    ``get_logger("scanning")`` and ``get_logger("perf_audit.scanning")``
    return the same logger.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
