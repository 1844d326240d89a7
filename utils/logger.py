"""Logging utilities for the script expander."""
import logging
from rich.logging import RichHandler
from rich.console import Console

import config

# Logs go to stderr so expanded scripts can be piped from stdout
console = Console(stderr=True)

_configured: set[str] = set()


def setup_logger(name: str, level: int | str = config.LOG_LEVEL) -> logging.Logger:
    """Set up a logger with rich formatting.

    Args:
        name: Logger name (usually the module's __name__)
        level: Logging level, numeric or name such as "DEBUG"

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding multiple handlers when a module is re-imported
    if not logger.handlers:
        handler = RichHandler(
            rich_tracebacks=True,
            console=console,
            show_time=True,
            show_path=False,
            markup=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    _configured.add(name)
    return logger


def set_log_level(level: int | str) -> None:
    """Change the level of every logger created by setup_logger."""
    for name in _configured:
        logging.getLogger(name).setLevel(level)
