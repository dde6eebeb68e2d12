"""Logging setup for the extensible_request logger hierarchy."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "extensible_request"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[str, int] = "WARNING",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    rich_console: bool = True,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``extensible_request`` logger.

    Console output goes to stderr so it never mixes with response bodies
    written to stdout. Retries are logged at WARNING, exhausted retries at
    ERROR and per-step progress at DEBUG.

    Args:
        level: Logging level name or number; unknown names fall back to WARNING
        log_file: Optional file path for an additional plain-text handler
        format_string: Format for plain handlers (file, or console without rich)
        rich_console: Render console records with rich
        force: If True, reconfigure even if handlers exist

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), logging.WARNING)
    else:
        numeric_level = level

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        console_handler: logging.Handler
        if rich_console:
            console_handler = RichHandler(
                console=Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        else:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
