"""Logging configuration for configify.

All modules log through `get_logger(__name__)`, which places them under
the `configify` logger. `setup_logging()` attaches a single rich handler
to that logger; library use without it stays silent apart from Python's
last-resort handler for warnings.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "configify"


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under `configify`.

    Args:
        name: Usually the calling module's `__name__`.

    Returns:
        The logger for that name.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Configure the `configify` logger with a rich handler.

    Calling it again replaces the handler rather than adding another one.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        console: Console to write to (defaults to stderr).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    for handler in list(logger.handlers):
        if getattr(handler, "_configify", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler._configify = True
    logger.addHandler(handler)
    return logger
