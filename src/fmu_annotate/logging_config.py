"""
Logging setup for fmu-annotate.

Records go to stderr through rich, so the tables and summaries printed by the
commands on stdout are not interleaved with diagnostics. A run can also copy
its log to a plain-text file (``log_file`` in the configuration).
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "fmu_annotate"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Route log records to a rich handler on stderr and optionally to a file.

    Args:
        verbosity: quiet (errors only), normal (warnings) or verbose (debug)
        log_file: Optional path receiving a copy of every record

    Returns:
        The fmu_annotate package logger
    """
    level = LEVELS.get(verbosity, logging.WARNING)

    handlers: list[logging.Handler] = [_console_handler(verbose=level <= logging.DEBUG)]
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


def setup_from_config(config) -> logging.Logger:
    """Configure logging from an AnnotateConfig's verbosity and log_file."""
    return setup_logging(config.verbosity, config.log_file)


def _console_handler(verbose: bool) -> logging.Handler:
    # Signal and file names may contain brackets; never treat messages as markup.
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger below the fmu_annotate namespace.

    ``get_logger(__name__)`` inside the package returns the module logger
    unchanged; other names (e.g. 'resolver') are prefixed with 'fmu_annotate.'.
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
