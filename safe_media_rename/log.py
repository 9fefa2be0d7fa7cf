"""Console logging for the command-line tool."""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "safe_media_rename"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Send package log records to stderr through rich.

    Args:
        verbose: Show DEBUG records (field-by-field metadata tracing)

    Returns:
        logging.Logger: The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
